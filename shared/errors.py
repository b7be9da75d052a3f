"""
Shared error handling for the Blob Gateway.

Every error a client can observe is a ``GatewayError`` subclass carrying the
HTTP status and the fixed plain-text reason for that status class. Internal
detail stays in ``details`` and goes to the logs only.
"""

from typing import Any, Dict, Optional

from fastapi.responses import PlainTextResponse


class ConfigurationError(ValueError):
    """Raised when the service configuration cannot be used."""


class GatewayError(Exception):
    """Base exception for gateway-visible failures."""

    status_code: int = 500
    reason: str = "Internal Server Error"

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> PlainTextResponse:
        """Convert to the plain-text response sent to the client."""
        return PlainTextResponse(self.reason, status_code=self.status_code)


class AuthenticationError(GatewayError):
    """Credential absent, malformed, wrongly signed or expired."""

    status_code = 401
    reason = "Unauthorized"

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHENTICATION_ERROR", message, details)


class PayloadTooLargeError(GatewayError):
    """Request body larger than the configured maximum."""

    status_code = 413
    reason = "Request Entity Too Large"

    def __init__(self, message: str = "Request body too large", details: Optional[Dict[str, Any]] = None):
        super().__init__("PAYLOAD_TOO_LARGE", message, details)


class InvalidRequestError(GatewayError):
    """Request the gateway or the storage engine refuses to interpret."""

    status_code = 400
    reason = "Bad Request"

    def __init__(self, message: str = "Invalid request", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_REQUEST", message, details)


class NotFoundError(GatewayError):
    """Requested blob does not exist."""

    status_code = 404
    reason = "Not Found"

    def __init__(self, message: str = "Blob not found", details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, details)


class PreconditionFailedError(GatewayError):
    """Client-supplied checksum did not match the stored bytes."""

    status_code = 412
    reason = "Precondition Failed"

    def __init__(self, message: str = "Checksum mismatch", details: Optional[Dict[str, Any]] = None):
        super().__init__("PRECONDITION_FAILED", message, details)


class InternalError(GatewayError):
    """Catch-all for unclassified failures."""

    def __init__(self, message: str = "Internal error", details: Optional[Dict[str, Any]] = None):
        super().__init__("INTERNAL_ERROR", message, details)
