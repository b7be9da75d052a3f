"""
Storage engines for the Blob Gateway.

The gateway only talks to ``DataController``; ``create_data_controller``
picks the engine named in configuration.
"""

from pathlib import Path

from shared.config import GatewayConfig
from shared.errors import ConfigurationError

from .contract import (
    BlobNotFoundError,
    ChecksumMismatchError,
    DataController,
    ErrorKind,
    InvalidBlobReferenceError,
    StorageError,
    UploadReceipt,
)
from .simple import SimpleDataController


def create_simple_data_controller(config: GatewayConfig) -> SimpleDataController:
    """Create the data and temp directories and return a simple controller."""
    data_dir = Path(config.simple_data_dir)
    temp_dir = Path(config.simple_temp_dir)
    data_dir.mkdir(parents=True, exist_ok=True)
    temp_dir.mkdir(parents=True, exist_ok=True)
    return SimpleDataController(
        data_dir,
        temp_dir,
        checksum=config.simple_checksum,
        verify_client_checksum=config.simple_verify_client_checksum,
    )


def create_data_controller(config: GatewayConfig) -> DataController:
    """Build the data controller selected by ``data_controller_type``."""
    if config.data_controller_type.lower() == "simple":
        return create_simple_data_controller(config)
    raise ConfigurationError(f"unknown data controller type '{config.data_controller_type}'")


__all__ = [
    "BlobNotFoundError",
    "ChecksumMismatchError",
    "DataController",
    "ErrorKind",
    "InvalidBlobReferenceError",
    "SimpleDataController",
    "StorageError",
    "UploadReceipt",
    "create_data_controller",
    "create_simple_data_controller",
]
