"""
Simple local-filesystem data controller.

Uploads are written to a temp directory, checksummed, optionally verified
against the client checksum, and renamed into ``data_dir/<username>/<blob_ref>``.
"""

from __future__ import annotations

import hashlib
import uuid
from pathlib import Path
from typing import AsyncIterator, Optional

import aiofiles
import aiofiles.os

from shared.errors import ConfigurationError
from shared.logging import get_logger

from ..auth import Identity
from .contract import (
    BlobNotFoundError,
    ChecksumMismatchError,
    DataController,
    InvalidBlobReferenceError,
    UploadReceipt,
)

CHUNK_SIZE = 64 * 1024
SUPPORTED_CHECKSUMS = ("md5", "sha1", "sha256")

logger = get_logger("blobgateway.storage.simple")


class SimpleDataController(DataController):
    def __init__(
        self,
        data_dir: Path,
        temp_dir: Path,
        checksum: str = "md5",
        verify_client_checksum: bool = False,
    ):
        checksum = (checksum or "").lower()
        if checksum and checksum not in SUPPORTED_CHECKSUMS:
            raise ConfigurationError(f"unsupported checksum '{checksum}'")
        if verify_client_checksum and not checksum:
            raise ConfigurationError("client checksum verification requires a checksum algorithm")
        self.data_dir = Path(data_dir).resolve()
        self.temp_dir = Path(temp_dir).resolve()
        self.checksum = checksum
        self.verify_client_checksum = verify_client_checksum

    def blob_path(self, identity: Identity, blob_ref: str) -> Path:
        """Resolve the final location of a blob inside the user's home."""
        home = (self.data_dir / identity.username).resolve()
        if home.parent != self.data_dir:
            raise InvalidBlobReferenceError(f"invalid username '{identity.username}'")
        parts = [part for part in blob_ref.replace("\\", "/").split("/") if part]
        if not parts or any(part in (".", "..") for part in parts):
            raise InvalidBlobReferenceError(f"invalid blob reference '{blob_ref}'")
        path = home.joinpath(*parts).resolve()
        if home not in path.parents:
            raise InvalidBlobReferenceError(f"blob reference escapes home '{blob_ref}'")
        return path

    async def upload_blob(
        self,
        identity: Identity,
        blob_ref: str,
        stream: AsyncIterator[bytes],
        client_checksum: Optional[str] = None,
    ) -> UploadReceipt:
        path = self.blob_path(identity, blob_ref)
        temp_path = self.temp_dir / f"{uuid.uuid4().hex}.upload"
        hasher = hashlib.new(self.checksum) if self.checksum else None
        size = 0

        try:
            async with aiofiles.open(temp_path, "wb") as f:
                async for chunk in stream:
                    if hasher:
                        hasher.update(chunk)
                    size += len(chunk)
                    await f.write(chunk)

            checksum = f"{self.checksum}:{hasher.hexdigest()}" if hasher else None
            if self.verify_client_checksum and client_checksum:
                self._verify_checksum(client_checksum, checksum)

            await aiofiles.os.makedirs(path.parent, exist_ok=True)
            await aiofiles.os.rename(temp_path, path)
        except BaseException:
            if await aiofiles.os.path.exists(temp_path):
                await aiofiles.os.remove(temp_path)
            raise

        logger.info("Blob stored", blob_ref=blob_ref, size=size, checksum=checksum)
        return UploadReceipt(blob_ref=blob_ref, size=size, checksum=checksum)

    def _verify_checksum(self, client_checksum: str, server_checksum: str):
        if client_checksum.lower() != server_checksum:
            raise ChecksumMismatchError(
                f"client checksum {client_checksum} does not match {server_checksum}"
            )

    async def download_blob(self, identity: Identity, blob_ref: str) -> AsyncIterator[bytes]:
        path = self.blob_path(identity, blob_ref)
        if not await aiofiles.os.path.isfile(path):
            raise BlobNotFoundError(f"blob '{blob_ref}' not found")
        return self._read_chunks(path)

    async def _read_chunks(self, path: Path) -> AsyncIterator[bytes]:
        async with aiofiles.open(path, "rb") as f:
            while chunk := await f.read(CHUNK_SIZE):
                yield chunk
