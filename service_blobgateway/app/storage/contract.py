"""
Storage capability contract: what the gateway requires of a storage engine.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import AsyncIterator, Optional

from pydantic import BaseModel

from ..auth import Identity


class ErrorKind(str, Enum):
    """Coarse classification of a storage failure, used only for HTTP translation."""

    NOT_FOUND = "not_found"
    BAD_CHECKSUM = "bad_checksum"
    INVALID_REFERENCE = "invalid_reference"
    OTHER = "other"


class StorageError(Exception):
    """Failure reported by a storage engine."""

    kind: ErrorKind = ErrorKind.OTHER

    def __init__(self, message: str = "storage error", kind: Optional[ErrorKind] = None):
        super().__init__(message)
        if kind is not None:
            self.kind = kind


class BlobNotFoundError(StorageError):
    kind = ErrorKind.NOT_FOUND


class ChecksumMismatchError(StorageError):
    kind = ErrorKind.BAD_CHECKSUM


class InvalidBlobReferenceError(StorageError):
    kind = ErrorKind.INVALID_REFERENCE


class UploadReceipt(BaseModel):
    """Engine-supplied confirmation of a committed upload."""

    blob_ref: str
    size: int
    checksum: Optional[str] = None


class DataController(ABC):
    """Storage engine as seen by the transfer handlers.

    Engines raise ``StorageError`` (or any other exception) on failure.
    ``download_blob`` may hand back its iterator optimistically and fail on
    the first read. ``upload_blob`` must not leave a visible object behind
    when it fails part-way.
    """

    @abstractmethod
    async def upload_blob(
        self,
        identity: Identity,
        blob_ref: str,
        stream: AsyncIterator[bytes],
        client_checksum: Optional[str] = None,
    ) -> Optional[UploadReceipt]: ...

    @abstractmethod
    async def download_blob(self, identity: Identity, blob_ref: str) -> AsyncIterator[bytes]: ...
