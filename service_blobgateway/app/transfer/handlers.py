"""
Upload and download handlers.

Downloads use deferred status commitment: the first chunk is read from the
storage stream before any status is chosen, so an engine that hands back a
stream optimistically and then fails on first read yields a 500, never a 200
followed by a truncated body. Once the 200 is committed a later failure can
only abort the connection.
"""

from __future__ import annotations

from typing import AsyncIterator, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse, StreamingResponse

from shared.errors import InternalError, InvalidRequestError, PayloadTooLargeError
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from ..auth import Identity
from ..storage.contract import DataController
from .translation import translate_error


OCTET_STREAM = "application/octet-stream"
CHECKSUM_HEADER = "Checksum"


class BoundedStream:
    """Async byte iterator that refuses to pass on more than ``limit`` bytes."""

    def __init__(self, source: AsyncIterator[bytes], limit: int):
        self._source = source
        self.limit = limit
        self.bytes_read = 0
        self.exceeded = False

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[bytes]:
        async for chunk in self._source:
            self.bytes_read += len(chunk)
            if self.bytes_read > self.limit:
                self.exceeded = True
                raise PayloadTooLargeError(
                    "Request body exceeds limit",
                    details={"limit": self.limit}
                )
            yield chunk


async def close_stream(stream: object, logger) -> None:
    """Release a storage stream if it supports closing."""
    aclose = getattr(stream, "aclose", None)
    if aclose is None:
        return
    try:
        await aclose()
    except Exception as exc:
        logger.warning("Failed to close storage stream", error=str(exc))


class TransferHandlers:
    """Upload/download handlers bound to one data controller."""

    def __init__(self, data_controller: DataController, max_body_size: int, metrics: MetricsCollector):
        self.data_controller = data_controller
        self.max_body_size = max_body_size
        self.metrics = metrics
        self.logger = get_logger("blobgateway.transfer")

    async def upload(self, request: Request, identity: Identity) -> Response:
        blob_ref = request.path_params.get("path", "")
        if not blob_ref:
            return self._fail("upload", blob_ref, InvalidRequestError("Empty blob reference"))

        declared = self._declared_length(request)
        if declared is not None and declared > self.max_body_size:
            return self._fail(
                "upload",
                blob_ref,
                PayloadTooLargeError(
                    "Declared body length exceeds limit",
                    details={"declared": declared, "limit": self.max_body_size}
                ),
            )

        body = BoundedStream(request.stream(), self.max_body_size)
        try:
            receipt = await self.data_controller.upload_blob(
                identity,
                blob_ref,
                body,
                client_checksum=request.headers.get(CHECKSUM_HEADER),
            )
        except Exception as exc:
            if body.exceeded:
                exc = PayloadTooLargeError("Request body exceeds limit", details={"limit": self.max_body_size})
            return self._fail("upload", blob_ref, exc)

        if body.exceeded:
            self.logger.error("Data controller accepted an oversized body", blob_ref=blob_ref)
            return self._fail("upload", blob_ref, PayloadTooLargeError("Request body exceeds limit"))

        self.metrics.record_bytes("upload", body.bytes_read)
        self.logger.info("Blob uploaded", blob_ref=blob_ref, size=body.bytes_read)
        if receipt is None:
            return Response(status_code=200)
        return JSONResponse(receipt.model_dump(), status_code=200)

    async def download(self, request: Request, identity: Identity) -> Response:
        blob_ref = request.path_params.get("path", "")
        if not blob_ref:
            return self._fail("download", blob_ref, InvalidRequestError("Empty blob reference"))

        try:
            stream = await self.data_controller.download_blob(identity, blob_ref)
        except Exception as exc:
            return self._fail("download", blob_ref, exc)

        # Nothing is committed until the stream has produced its first read.
        iterator = stream.__aiter__()
        try:
            first_chunk = await iterator.__anext__()
        except StopAsyncIteration:
            await close_stream(iterator, self.logger)
            self.logger.info("Blob downloaded", blob_ref=blob_ref, size=0)
            return Response(status_code=200, media_type=OCTET_STREAM)
        except Exception as exc:
            await close_stream(iterator, self.logger)
            return self._fail(
                "download",
                blob_ref,
                InternalError("First read from storage stream failed", details={"error": str(exc)}),
            )

        return StreamingResponse(
            self._copy(blob_ref, first_chunk, iterator),
            status_code=200,
            media_type=OCTET_STREAM,
        )

    async def _copy(self, blob_ref: str, first_chunk: bytes, iterator: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
        """Yield the peeked chunk, then the rest of the storage stream."""
        sent = 0
        try:
            yield first_chunk
            sent += len(first_chunk)
            async for chunk in iterator:
                yield chunk
                sent += len(chunk)
        except Exception as exc:
            # Status is already on the wire; abort the connection instead.
            self.logger.error(
                "Download aborted after response was committed",
                blob_ref=blob_ref,
                bytes_sent=sent,
                error=str(exc)
            )
            self.metrics.record_error("download_aborted")
            raise
        else:
            self.logger.info("Blob downloaded", blob_ref=blob_ref, size=sent)
        finally:
            await close_stream(iterator, self.logger)
            self.metrics.record_bytes("download", sent)

    def _declared_length(self, request: Request) -> Optional[int]:
        value = request.headers.get("content-length")
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None

    def _fail(self, operation: str, blob_ref: str, exc: BaseException) -> Response:
        error = translate_error(exc)
        log_kwargs = {
            "operation": operation,
            "blob_ref": blob_ref,
            "status_code": error.status_code,
            "code": error.code,
            "message": error.message,
        }
        if error.status_code >= 500:
            self.logger.error("Transfer failed", exc_info=exc, **log_kwargs)
            self.metrics.record_error(error.code)
        else:
            self.logger.info("Transfer rejected", **log_kwargs)
        return error.to_response()
