"""
Shared utilities for the Blob Gateway.

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Gateway error types and plain-text responses
- base_service: FastAPI app assembly from service hooks

Do not import from service_* packages into shared/.
"""
