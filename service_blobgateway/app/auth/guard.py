"""
Credential extraction and the access guard wrapped around transfer endpoints.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional

from fastapi import Request, Response

from shared.errors import AuthenticationError, ConfigurationError
from shared.logging import get_logger, set_user_context

from .authenticator import Identity, JWTAuthenticator


AuthenticatedHandler = Callable[[Request, Identity], Awaitable[Response]]
Endpoint = Callable[[Request], Awaitable[Response]]


class CredentialSource(ABC):
    """Where a deployment expects clients to put their credential."""

    name: str = ""

    @abstractmethod
    def extract(self, request: Request) -> Optional[str]:
        """Return the raw credential, or None when absent or malformed."""


class BearerHeaderSource(CredentialSource):
    """``Authorization: Bearer <token>``; the scheme is case-insensitive."""

    name = "bearer"

    def extract(self, request: Request) -> Optional[str]:
        authorization = request.headers.get("Authorization")
        if not authorization:
            return None
        parts = authorization.split(" ")
        if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1]:
            return None
        return parts[1]


class TokenParameterSource(CredentialSource):
    """Raw token in a ``token`` header, falling back to a ``token`` query parameter."""

    name = "token"

    def extract(self, request: Request) -> Optional[str]:
        token = request.headers.get("token")
        if not token:
            token = request.query_params.get("token")
        return token or None


def get_credential_source(transport: str) -> CredentialSource:
    """Build the credential source configured for this deployment."""
    sources = {
        BearerHeaderSource.name: BearerHeaderSource,
        TokenParameterSource.name: TokenParameterSource,
    }
    try:
        return sources[transport.lower()]()
    except KeyError:
        raise ConfigurationError(f"unknown credential transport '{transport}'") from None


class AccessGuard:
    """Verifies the request credential before a handler sees the request."""

    def __init__(self, authenticator: JWTAuthenticator, source: CredentialSource):
        self.authenticator = authenticator
        self.source = source
        self.logger = get_logger("blobgateway.auth.guard")

    def authenticate(self, request: Request) -> Identity:
        """Extract and verify the credential; raises AuthenticationError."""
        credential = self.source.extract(request)
        if credential is None:
            raise AuthenticationError(f"Missing or malformed {self.source.name} credential")
        return self.authenticator.verify(credential)

    def guard(self, handler: AuthenticatedHandler) -> Endpoint:
        """Wrap ``handler`` so it only runs with a verified identity."""
        async def guarded(request: Request) -> Response:
            try:
                identity = self.authenticate(request)
            except AuthenticationError as exc:
                self.logger.warning(
                    "Request not authenticated",
                    path=request.url.path,
                    reason=exc.message
                )
                return exc.to_response()

            set_user_context(identity.username)
            return await handler(request, identity)

        guarded.__name__ = getattr(handler, "__name__", "guarded")
        return guarded
