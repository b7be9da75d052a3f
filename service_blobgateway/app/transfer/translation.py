"""
Translation of transfer failures into client-visible gateway errors.
"""

from fastapi.responses import PlainTextResponse

from shared.errors import (
    GatewayError,
    InternalError,
    InvalidRequestError,
    NotFoundError,
    PreconditionFailedError,
)

from ..storage.contract import ErrorKind, StorageError


_KIND_TO_ERROR = {
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.BAD_CHECKSUM: PreconditionFailedError,
    ErrorKind.INVALID_REFERENCE: InvalidRequestError,
}


def translate_error(exc: BaseException) -> GatewayError:
    """Map any failure to the gateway error the client will see.

    Gateway errors pass through unchanged, storage errors map by kind, and
    everything else is an internal error. The original message is kept for
    logging only.
    """
    if isinstance(exc, GatewayError):
        return exc
    if isinstance(exc, StorageError):
        error_cls = _KIND_TO_ERROR.get(exc.kind, InternalError)
        return error_cls(str(exc), details={"kind": exc.kind.value})
    return InternalError(str(exc), details={"exception": type(exc).__name__})


def error_response(exc: BaseException) -> PlainTextResponse:
    """Shortcut for ``translate_error(exc).to_response()``."""
    return translate_error(exc).to_response()
