"""
Endpoint registry for the Blob Gateway.

Transfer endpoints are wrapped as ``instrument(guard(handler))`` so that
every attempt is counted, including those the guard turns away.
"""

from typing import Callable, Dict

from fastapi import Request, Response

from shared.metrics import MetricsCollector, instrument_handler

from .auth import AccessGuard
from .transfer import TransferHandlers


UPLOAD_ROUTE = "/upload"
DOWNLOAD_ROUTE = "/download"
METRICS_ROUTE = "/metrics"


class EndpointRegistry:
    """Maps path templates and methods to fully wrapped endpoints."""

    def __init__(self, handlers: TransferHandlers, guard: AccessGuard, metrics: MetricsCollector):
        self.handlers = handlers
        self.guard = guard
        self.metrics = metrics

    def _protected(self, route_name: str, handler) -> Callable:
        return instrument_handler(self.metrics, route_name)(self.guard.guard(handler))

    async def metrics_endpoint(self, request: Request) -> Response:
        return self.metrics.render()

    def endpoints(self) -> Dict[str, Dict[str, Callable]]:
        return {
            METRICS_ROUTE: {"GET": self.metrics_endpoint},
            f"{UPLOAD_ROUTE}/{{path:path}}": {
                "PUT": self._protected(UPLOAD_ROUTE, self.handlers.upload),
            },
            f"{DOWNLOAD_ROUTE}/{{path:path}}": {
                "GET": self._protected(DOWNLOAD_ROUTE, self.handlers.download),
            },
        }
