"""
Tests for the download handler and its deferred status commitment.
"""

from unittest.mock import AsyncMock

import pytest

from service_blobgateway.app.auth import Identity
from service_blobgateway.app.main import create_app
from service_blobgateway.app.storage import BlobNotFoundError, InvalidBlobReferenceError, StorageError


class TestDownload:
    """Download endpoint behaviour against a mocked data controller."""

    def test_download_success(self, client, data_controller, auth_headers, make_stream):
        """Test a readable blob is returned with 200."""
        stream = make_stream(b"1")
        data_controller.download_blob = AsyncMock(return_value=stream)

        response = client.get("/download/some/blob.txt", headers=auth_headers)

        assert response.status_code == 200
        assert response.content == b"1"
        assert response.headers["content-type"] == "application/octet-stream"
        data_controller.download_blob.assert_awaited_once_with(Identity(username="alice"), "some/blob.txt")
        assert stream.closed

    def test_download_multiple_chunks(self, client, data_controller, auth_headers, make_stream):
        """Test every chunk after the first is streamed in order."""
        data_controller.download_blob = AsyncMock(return_value=make_stream(b"ab", b"cd", b"ef"))

        response = client.get("/download/blob", headers=auth_headers)

        assert response.status_code == 200
        assert response.content == b"abcdef"

    def test_download_empty_blob(self, client, data_controller, auth_headers, make_stream):
        """Test an immediately exhausted stream is an empty 200."""
        stream = make_stream()
        data_controller.download_blob = AsyncMock(return_value=stream)

        response = client.get("/download/empty", headers=auth_headers)

        assert response.status_code == 200
        assert response.content == b""
        assert stream.closed

    def test_download_not_found(self, client, data_controller, auth_headers):
        """Test a not-found storage error maps to 404."""
        data_controller.download_blob = AsyncMock(side_effect=BlobNotFoundError("missing"))

        response = client.get("/download/missing", headers=auth_headers)

        assert response.status_code == 404
        assert response.text == "Not Found"

    def test_download_invalid_reference(self, client, data_controller, auth_headers):
        """Test an invalid reference maps to 400."""
        data_controller.download_blob = AsyncMock(side_effect=InvalidBlobReferenceError("bad ref"))

        response = client.get("/download/bad", headers=auth_headers)

        assert response.status_code == 400
        assert response.text == "Bad Request"

    def test_download_generic_error(self, client, data_controller, auth_headers):
        """Test an unclassified failure maps to 500 without leaking detail."""
        data_controller.download_blob = AsyncMock(side_effect=RuntimeError("disk on fire"))

        response = client.get("/download/blob", headers=auth_headers)

        assert response.status_code == 500
        assert response.text == "Internal Server Error"
        assert "disk on fire" not in response.text

    def test_download_unclassified_storage_error(self, client, data_controller, auth_headers):
        """Test a storage error of kind other maps to 500."""
        data_controller.download_blob = AsyncMock(side_effect=StorageError("backend unavailable"))

        response = client.get("/download/blob", headers=auth_headers)

        assert response.status_code == 500

    def test_download_first_read_failure(self, client, data_controller, auth_headers, make_stream):
        """Test a stream failing on first read yields 500 and no body bytes."""
        stream = make_stream(error=BlobNotFoundError("gone after open"))
        data_controller.download_blob = AsyncMock(return_value=stream)

        response = client.get("/download/blob", headers=auth_headers)

        assert response.status_code == 500
        assert response.text == "Internal Server Error"
        assert stream.closed
        assert stream.reads == 1

    @pytest.mark.asyncio
    async def test_download_mid_stream_failure(self, test_config, data_controller, auth_headers, make_stream):
        """Test a failure after the first chunk truncates a committed 200."""
        stream = make_stream(b"first", error=RuntimeError("connection reset"))
        data_controller.download_blob = AsyncMock(return_value=stream)
        app = create_app(test_config, data_controller=data_controller)
        scope = {
            "type": "http",
            "asgi": {"version": "3.0", "spec_version": "2.4"},
            "http_version": "1.1",
            "method": "GET",
            "scheme": "http",
            "path": "/download/blob",
            "raw_path": b"/download/blob",
            "root_path": "",
            "query_string": b"",
            "headers": [(name.lower().encode("latin-1"), value.encode("latin-1")) for name, value in auth_headers.items()],
            "client": ("testclient", 50000),
            "server": ("testserver", 80),
        }
        sent = []

        async def receive():
            return {"type": "http.request", "body": b"", "more_body": False}

        async def send(message):
            sent.append(message)

        # The error is re-raised so the server drops the connection.
        with pytest.raises(Exception):
            await app(scope, receive, send)

        starts = [message for message in sent if message["type"] == "http.response.start"]
        bodies = [message.get("body", b"") for message in sent if message["type"] == "http.response.body"]
        assert len(starts) == 1
        assert starts[0]["status"] == 200
        assert bodies[0] == b"first"
        assert b"".join(bodies) == b"first"
        assert stream.closed

    def test_download_idempotent(self, client, data_controller, auth_headers, make_stream):
        """Test repeated downloads of the same blob return the same bytes."""
        data_controller.download_blob = AsyncMock(side_effect=lambda identity, ref: make_stream(b"same", b"bytes"))

        first = client.get("/download/blob", headers=auth_headers)
        second = client.get("/download/blob", headers=auth_headers)

        assert first.status_code == second.status_code == 200
        assert first.content == second.content == b"samebytes"
        assert data_controller.download_blob.await_count == 2

    def test_download_without_credential(self, client, data_controller):
        """Test an anonymous download is rejected before storage is touched."""
        response = client.get("/download/blob")

        assert response.status_code == 401
        assert response.text == "Unauthorized"
        data_controller.download_blob.assert_not_called()

    def test_download_metrics_recorded(self, client, data_controller, auth_headers, make_stream):
        """Test the download route is counted with its final status."""
        data_controller.download_blob = AsyncMock(return_value=make_stream(b"12345"))

        client.get("/download/blob", headers=auth_headers)
        metrics = client.get("/metrics").text

        assert 'http_requests_total{endpoint="/download",method="GET",status_code="200"} 1.0' in metrics
        assert 'blob_bytes_total{direction="download"} 5.0' in metrics
