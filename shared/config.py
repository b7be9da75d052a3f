"""
Shared configuration management for the Blob Gateway.
"""

from typing import Optional

from jose.constants import ALGORITHMS
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.errors import ConfigurationError


CREDENTIAL_TRANSPORTS = ("bearer", "token")


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="BLOBGW_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")


class GatewayConfig(BaseConfig):
    """Gateway configuration, loaded once and treated as read-only afterwards."""

    service_name: str = Field(default="blobgateway")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # General
    base_url: str = Field(default="")
    jwt_key: str = Field(default="change-me")
    jwt_signing_method: str = Field(default="HS256")
    token_ttl_seconds: int = Field(default=3600)
    credential_transport: str = Field(default="bearer")
    request_body_max_size: int = Field(default=100 * 1024 * 1024)

    # Data controller
    data_controller_type: str = Field(default="simple")
    simple_data_dir: str = Field(default="/tmp/blobgateway/data")
    simple_temp_dir: str = Field(default="/tmp/blobgateway/tmp")
    simple_checksum: str = Field(default="md5")
    simple_verify_client_checksum: bool = Field(default=False)


def validate_config(config: Optional[GatewayConfig]) -> GatewayConfig:
    """Reject configurations the gateway cannot run with."""
    if config is None:
        raise ConfigurationError("config is None")
    if config.request_body_max_size <= 0:
        raise ConfigurationError("request_body_max_size must be positive")
    if config.credential_transport.lower() not in CREDENTIAL_TRANSPORTS:
        raise ConfigurationError(
            f"unknown credential_transport '{config.credential_transport}'"
        )
    if config.jwt_signing_method not in ALGORITHMS.HMAC:
        raise ConfigurationError(
            f"unsupported jwt_signing_method '{config.jwt_signing_method}'"
        )
    return config


def get_config(**overrides) -> GatewayConfig:
    """Load gateway configuration from the environment, applying overrides."""
    return GatewayConfig(**overrides)
