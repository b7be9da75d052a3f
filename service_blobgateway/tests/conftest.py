"""
Shared fixtures for Blob Gateway unit tests.
"""

from typing import List
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from service_blobgateway.app.main import create_app
from service_blobgateway.app.storage import DataController
from shared.config import GatewayConfig
from shared.test_helpers import TEST_SECRET, MockTokenGenerator, TestUser


class RecordingStream:
    """Async byte stream that can fail after its chunks and records closing."""

    def __init__(self, chunks: List[bytes], error: Exception = None):
        self.chunks = list(chunks)
        self.error = error
        self.closed = False
        self.reads = 0

    def __aiter__(self):
        return self

    async def __anext__(self) -> bytes:
        self.reads += 1
        if self.chunks:
            return self.chunks.pop(0)
        if self.error is not None:
            raise self.error
        raise StopAsyncIteration

    async def aclose(self):
        self.closed = True


@pytest.fixture
def make_stream():
    """Factory for download streams."""
    def _make(*chunks: bytes, error: Exception = None) -> RecordingStream:
        return RecordingStream(list(chunks), error)
    return _make


@pytest.fixture
def test_user():
    return TestUser(username="alice")


@pytest.fixture
def token_generator():
    return MockTokenGenerator()


@pytest.fixture
def auth_headers(token_generator, test_user):
    """Bearer headers for the test user."""
    token = token_generator.generate_access_token(test_user)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def test_config(tmp_path):
    """Gateway configuration isolated to a temporary directory."""
    return GatewayConfig(
        env="test",
        jwt_key=TEST_SECRET,
        request_body_max_size=1024,
        simple_data_dir=str(tmp_path / "data"),
        simple_temp_dir=str(tmp_path / "tmp"),
    )


@pytest.fixture
def data_controller():
    """Mocked data controller."""
    return AsyncMock(spec=DataController)


@pytest.fixture
def make_client(test_config, data_controller):
    """Build a test client, optionally overriding configuration fields."""
    def _make(**overrides) -> TestClient:
        config = test_config.model_copy(update=overrides) if overrides else test_config
        app = create_app(config, data_controller=data_controller)
        return TestClient(app, raise_server_exceptions=False)
    return _make


@pytest.fixture
def client(make_client):
    return make_client()
