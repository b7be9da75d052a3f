"""
JWT credential issuing and verification for the Blob Gateway.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from jose import JWTError, jwt
from jose.constants import ALGORITHMS

from shared.errors import AuthenticationError, ConfigurationError
from shared.logging import get_logger


@dataclass(frozen=True)
class Identity:
    """Authenticated principal derived from a verified credential."""

    username: str


class JWTAuthenticator:
    """Signs and verifies credentials with a shared secret and algorithm."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        *,
        token_ttl_seconds: int = 3600,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise ConfigurationError("JWTAuthenticator requires a non-empty secret")
        if algorithm not in ALGORITHMS.HMAC:
            raise ConfigurationError(f"Unsupported signing algorithm '{algorithm}'")
        self._secret = secret
        self.algorithm = algorithm
        self.token_ttl_seconds = token_ttl_seconds
        self._clock = clock
        self.logger = get_logger("blobgateway.auth")

    def issue(self, identity: Identity) -> str:
        """Create a signed credential for ``identity``."""
        now = int(self._clock())
        claims: Dict[str, Any] = {
            "sub": identity.username,
            "username": identity.username,
            "iat": now,
            "exp": now + self.token_ttl_seconds,
        }
        return jwt.encode(claims, self._secret, algorithm=self.algorithm)

    def verify(self, credential: Optional[str]) -> Identity:
        """Verify signature and expiry of ``credential`` and return its identity."""
        if not credential:
            raise AuthenticationError("Missing credential")

        try:
            claims = jwt.decode(
                credential,
                self._secret,
                algorithms=[self.algorithm],
                options={"verify_aud": False, "require_exp": True},
            )
        except JWTError as exc:
            self.logger.info("Credential rejected", error=str(exc))
            raise AuthenticationError("Invalid credential", details={"error": str(exc)}) from exc

        username = claims.get("username")
        if not isinstance(username, str) or not username:
            raise AuthenticationError("Credential missing username claim")

        return Identity(username=username)
