"""
Blob transfer handlers and error translation.
"""

from .handlers import BoundedStream, TransferHandlers
from .translation import error_response, translate_error

__all__ = [
    "BoundedStream",
    "TransferHandlers",
    "error_response",
    "translate_error",
]
