"""
Base service class for Blob Gateway services.

A service describes itself through three hooks, and ``BaseService`` turns
them into a FastAPI application:

- ``prefix()``: path prefix shared by every endpoint.
- ``middleware()``: ASGI middleware wrapped around all requests.
- ``endpoints()``: ``{path template: {HTTP method: endpoint}}``.
"""

from typing import Callable, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from starlette.middleware import Middleware
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from shared.config import GatewayConfig, get_config, validate_config
from shared.errors import GatewayError
from shared.logging import clear_context, configure_logging, get_logger, set_request_id
from shared.metrics import MetricsCollector, get_metrics_collector


REQUEST_ID_HEADER = "x-request-id"


class RequestContextMiddleware:
    """Bind a request ID into the logging context and echo it back.

    Written as plain ASGI so streamed response bodies pass through untouched.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        incoming = None
        for name, value in scope.get("headers", []):
            if name.decode("latin-1").lower() == REQUEST_ID_HEADER:
                incoming = value.decode("latin-1")
                break
        request_id = set_request_id(incoming)

        async def send_with_request_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.append((REQUEST_ID_HEADER.encode("latin-1"), request_id.encode("latin-1")))
                message["headers"] = headers
            await send(message)

        try:
            await self.app(scope, receive, send_with_request_id)
        finally:
            clear_context()


def join_path(prefix: str, template: str) -> str:
    """Join a route prefix and a path template with exactly one separator."""
    base = prefix.rstrip("/")
    return f"{base}/{template.lstrip('/')}"


class BaseService:
    """Base service class with common functionality."""

    def __init__(self, config: Optional[GatewayConfig] = None, metrics: Optional[MetricsCollector] = None):
        self.config = validate_config(config if config is not None else get_config())
        self.service_name = self.config.service_name
        self.port = self.config.port

        configure_logging(self.service_name, self.config.log_level)
        self.logger = get_logger(f"{self.service_name}.service")
        self.metrics = metrics or get_metrics_collector(self.service_name)

    def prefix(self) -> str:
        """Path prefix for all endpoints. Override in subclasses."""
        return "/"

    def middleware(self) -> List[Middleware]:
        """Middleware wrapped around all requests. Override in subclasses."""
        return [Middleware(RequestContextMiddleware)]

    def endpoints(self) -> Dict[str, Dict[str, Callable]]:
        """Endpoint map. Override in subclasses."""
        return {}

    def create_app(self) -> FastAPI:
        """Create the FastAPI application from the service hooks."""
        app = FastAPI(
            title=f"{self.service_name.title()} Service",
            version="1.0.0",
            docs_url="/docs" if self.config.env == "local" else None,
            openapi_url="/openapi.json" if self.config.env == "local" else None,
            redoc_url=None,
            middleware=self.middleware(),
        )

        prefix = self.prefix()
        for template, methods in self.endpoints().items():
            for method, endpoint in methods.items():
                app.add_api_route(
                    join_path(prefix, template),
                    endpoint,
                    methods=[method],
                    include_in_schema=False,
                )

        self._setup_exception_handlers(app)
        return app

    def _setup_exception_handlers(self, app: FastAPI):
        """Set up error handlers."""

        @app.exception_handler(GatewayError)
        async def gateway_exception_handler(request: Request, exc: GatewayError):
            """Handle GatewayError."""
            self.logger.warning(
                "Gateway error",
                code=exc.code,
                message=exc.message,
                details=exc.details
            )
            return exc.to_response()

        @app.exception_handler(Exception)
        async def general_exception_handler(request: Request, exc: Exception):
            """Handle general exceptions."""
            self.logger.error("Unhandled exception", path=request.url.path, error=str(exc), exc_info=True)
            self.metrics.record_error(type(exc).__name__)
            return PlainTextResponse("Internal Server Error", status_code=500)

    def run(self, app: Optional[FastAPI] = None):
        """Run the service."""
        import uvicorn
        uvicorn.run(
            app or self.create_app(),
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower()
        )
