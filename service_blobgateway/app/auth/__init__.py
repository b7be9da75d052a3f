"""
Authentication helpers for the Blob Gateway service.
"""

from .authenticator import Identity, JWTAuthenticator
from .guard import (
    AccessGuard,
    BearerHeaderSource,
    CredentialSource,
    TokenParameterSource,
    get_credential_source,
)

__all__ = [
    "AccessGuard",
    "BearerHeaderSource",
    "CredentialSource",
    "Identity",
    "JWTAuthenticator",
    "TokenParameterSource",
    "get_credential_source",
]
