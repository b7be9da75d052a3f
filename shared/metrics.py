"""
Shared metrics configuration for the Blob Gateway.
"""

from prometheus_client import CollectorRegistry, Counter, Histogram, Info, CONTENT_TYPE_LATEST, generate_latest
from typing import Any, Awaitable, Callable, Dict, Optional
import time
import functools

from fastapi import Request, Response


class MetricsCollector:
    """Centralized metrics collector for services.

    Each collector owns its registry unless one is passed in, so several
    service instances (tests, embedded apps) never clash on metric names.
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up common metrics for the service."""

        self._metrics["service_info"] = Info(
            "service",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        self._metrics["http_requests_total"] = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.registry
        )

        self._metrics["http_request_duration_seconds"] = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=self.registry
        )

        self._metrics["errors_total"] = Counter(
            "errors_total",
            "Total errors",
            ["error_type", "service"],
            registry=self.registry
        )

        self._metrics["blob_bytes_total"] = Counter(
            "blob_bytes_total",
            "Total blob bytes transferred",
            ["direction"],
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        self._metrics["http_requests_total"].labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code)
        ).inc()

        self._metrics["http_request_duration_seconds"].labels(
            method=method,
            endpoint=endpoint
        ).observe(duration)

    def record_error(self, error_type: str, service: Optional[str] = None):
        """Record error metrics."""
        service_name = service or self.service_name
        self._metrics["errors_total"].labels(error_type=error_type, service=service_name).inc()

    def record_bytes(self, direction: str, count: int):
        """Record transferred blob bytes ("upload" or "download")."""
        if count > 0:
            self._metrics["blob_bytes_total"].labels(direction=direction).inc(count)

    def render(self) -> Response:
        """Render the registry in Prometheus exposition format."""
        return Response(
            content=generate_latest(self.registry),
            media_type=CONTENT_TYPE_LATEST
        )


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)


Endpoint = Callable[[Request], Awaitable[Response]]


def instrument_handler(collector: MetricsCollector, route_name: str) -> Callable[[Endpoint], Endpoint]:
    """Decorator recording count and latency of an endpoint under ``route_name``.

    The wrapped endpoint is unaware of the instrumentation. Exceptions are
    recorded as status 500 and re-raised.
    """
    def decorator(func: Endpoint) -> Endpoint:
        @functools.wraps(func)
        async def wrapper(request: Request) -> Response:
            start_time = time.time()
            status_code = 500
            try:
                response = await func(request)
                status_code = response.status_code
                return response
            finally:
                collector.record_http_request(
                    method=request.method,
                    endpoint=route_name,
                    status_code=status_code,
                    duration=time.time() - start_time
                )

        return wrapper
    return decorator
