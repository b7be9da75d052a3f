"""
Test helper functions and factory methods for the Blob Gateway.
"""

import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from jose import jwt


TEST_SECRET = "test-secret"
# base64url of {"alg":"none","typ":"JWT"}
UNSIGNED_HEADER = "eyJhbGciOiJub25lIiwidHlwIjoiSldUIn0"


@dataclass
class TestUser:
    """Test user data."""
    __test__ = False

    username: str


class TestDataFactory:
    """Factory for creating test data."""
    __test__ = False

    @staticmethod
    def create_test_users() -> List[TestUser]:
        """Create test users."""
        return [
            TestUser(username="alice"),
            TestUser(username="bob"),
        ]

    @staticmethod
    def create_test_blob(size: int, pattern: bytes = b"0123456789abcdef") -> bytes:
        """Create a deterministic blob of ``size`` bytes."""
        repeats = size // len(pattern) + 1
        return (pattern * repeats)[:size]


class MockTokenGenerator:
    """Generate JWT credentials, valid and otherwise, for testing."""

    def __init__(self, secret: str = TEST_SECRET, algorithm: str = "HS256"):
        self.secret = secret
        self.algorithm = algorithm

    def _claims(self, user: TestUser, expires_in: int) -> Dict[str, Any]:
        now = int(time.time())
        return {
            "sub": user.username,
            "username": user.username,
            "iat": now,
            "exp": now + expires_in,
        }

    def generate_access_token(self, user: TestUser, expires_in: int = 3600) -> str:
        """Generate a valid credential for user."""
        return jwt.encode(self._claims(user, expires_in), self.secret, algorithm=self.algorithm)

    def generate_expired_token(self, user: TestUser) -> str:
        """Generate a credential that expired an hour ago."""
        return self.generate_access_token(user, expires_in=-3600)

    def generate_wrong_secret_token(self, user: TestUser, secret: str = "not-the-secret") -> str:
        """Generate a credential signed with a different secret."""
        return jwt.encode(self._claims(user, 3600), secret, algorithm=self.algorithm)

    def generate_token_without_username(self, subject: Optional[str] = "anonymous") -> str:
        """Generate a correctly signed credential lacking the username claim."""
        now = int(time.time())
        claims: Dict[str, Any] = {"iat": now, "exp": now + 3600}
        if subject:
            claims["sub"] = subject
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def generate_unsigned_token(self, user: TestUser) -> str:
        """Generate a credential with the ``none`` algorithm and no signature."""
        _, payload, _ = self.generate_access_token(user).split(".")
        return f"{UNSIGNED_HEADER}.{payload}."


class TestEnvironment:
    """Test environment configuration."""
    __test__ = False

    @staticmethod
    def get_mock_config(data_dir: str = "/tmp/blobgateway-test/data",
                        temp_dir: str = "/tmp/blobgateway-test/tmp") -> Dict[str, Any]:
        """Get mock environment configuration."""
        return {
            "BLOBGW_ENV": "test",
            "BLOBGW_LOG_LEVEL": "debug",
            "BLOBGW_JWT_KEY": TEST_SECRET,
            "BLOBGW_JWT_SIGNING_METHOD": "HS256",
            "BLOBGW_CREDENTIAL_TRANSPORT": "bearer",
            "BLOBGW_REQUEST_BODY_MAX_SIZE": "1048576",
            "BLOBGW_DATA_CONTROLLER_TYPE": "simple",
            "BLOBGW_SIMPLE_DATA_DIR": data_dir,
            "BLOBGW_SIMPLE_TEMP_DIR": temp_dir,
        }


# Global instances for easy access
test_data_factory = TestDataFactory()
mock_token_generator = MockTokenGenerator()
test_environment = TestEnvironment()
