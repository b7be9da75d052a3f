"""
Blob Gateway service.
"""

from typing import Callable, Dict, Optional

from fastapi import FastAPI

from shared.base_service import BaseService
from shared.config import GatewayConfig
from shared.metrics import MetricsCollector

from .auth import AccessGuard, JWTAuthenticator, get_credential_source
from .routing import EndpointRegistry
from .storage import DataController, create_data_controller
from .transfer import TransferHandlers


class BlobGatewayService(BaseService):
    """Authenticated upload/download gateway in front of a data controller."""

    def __init__(
        self,
        config: Optional[GatewayConfig] = None,
        data_controller: Optional[DataController] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        super().__init__(config, metrics)

        self.authenticator = JWTAuthenticator(
            self.config.jwt_key,
            self.config.jwt_signing_method,
            token_ttl_seconds=self.config.token_ttl_seconds,
        )
        self.credential_source = get_credential_source(self.config.credential_transport)
        self.guard = AccessGuard(self.authenticator, self.credential_source)

        self.data_controller = (
            data_controller if data_controller is not None else create_data_controller(self.config)
        )
        self.handlers = TransferHandlers(
            self.data_controller,
            self.config.request_body_max_size,
            self.metrics,
        )
        self.registry = EndpointRegistry(self.handlers, self.guard, self.metrics)

        self.logger.info(
            "Blob gateway configured",
            prefix=self.prefix(),
            credential_transport=self.credential_source.name,
            data_controller=type(self.data_controller).__name__,
            request_body_max_size=self.config.request_body_max_size,
        )
        self.app = self.create_app()

    def prefix(self) -> str:
        return self.config.base_url or "/"

    def endpoints(self) -> Dict[str, Dict[str, Callable]]:
        return self.registry.endpoints()


def create_app(
    config: Optional[GatewayConfig] = None,
    data_controller: Optional[DataController] = None,
    metrics: Optional[MetricsCollector] = None,
) -> FastAPI:
    """Create FastAPI application."""
    service = BlobGatewayService(config, data_controller, metrics)
    return service.app


def main():
    service = BlobGatewayService()
    service.run(service.app)


if __name__ == "__main__":
    main()
