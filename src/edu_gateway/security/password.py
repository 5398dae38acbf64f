"""Password hashing for principal credentials.

Uses Argon2id. Hashes are produced once, when a raw password arrives on a
create or update request; stored records never hold plaintext.
"""

from __future__ import annotations

import structlog
from argon2 import PasswordHasher
from argon2.exceptions import (
    HashingError,
    InvalidHashError,
    VerificationError,
    VerifyMismatchError,
)

logger = structlog.get_logger(__name__)


class PasswordError(Exception):
    """Base class for password verification failures."""


class PasswordMismatch(PasswordError):
    """Password does not match the stored hash."""


class MalformedHash(PasswordError):
    """Stored hash cannot be parsed as an Argon2 hash."""


class PasswordService:
    """Service for password hashing and verification.

    Uses Argon2id with secure defaults:
    - time_cost=3: Number of iterations
    - memory_cost=65536: Memory usage in KiB (64 MiB)
    - parallelism=4: Number of parallel threads
    - hash_len=32: Length of hash output
    - salt_len=16: Length of random salt
    """

    def __init__(
        self,
        time_cost: int = 3,
        memory_cost: int = 65536,
        parallelism: int = 4,
        hash_len: int = 32,
        salt_len: int = 16,
    ) -> None:
        """Initialize password service.

        Args:
            time_cost: Number of iterations (higher = slower/more secure)
            memory_cost: Memory usage in KiB (higher = more GPU resistant)
            parallelism: Number of parallel threads
            hash_len: Length of resulting hash in bytes
            salt_len: Length of random salt in bytes
        """
        self._hasher = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            hash_len=hash_len,
            salt_len=salt_len,
        )
        self._dummy_hash: str | None = None

    def hash_password(self, password: str) -> str:
        """Hash a password using Argon2id.

        Args:
            password: Plain text password to hash

        Returns:
            Argon2id hash string (format: $argon2id$v=19$m=65536,t=3,p=4$salt$hash)

        Raises:
            HashingError: If hashing fails
            ValueError: If password is empty
        """
        if not password:
            raise ValueError("Password cannot be empty")

        try:
            return self._hasher.hash(password)
        except HashingError:
            logger.exception("Failed to hash password")
            raise

    def check_password(self, password: str, hash_value: str) -> None:
        """Verify a password, distinguishing mismatch from a broken hash.

        Args:
            password: Plain text password to verify
            hash_value: Stored Argon2id hash

        Raises:
            PasswordMismatch: If the password is wrong
            MalformedHash: If the stored hash is not a valid Argon2 hash
        """
        if not hash_value:
            raise MalformedHash("Stored hash is empty")
        if not password:
            raise PasswordMismatch("Password is empty")

        try:
            self._hasher.verify(hash_value, password)
        except VerifyMismatchError as e:
            raise PasswordMismatch("Password does not match") from e
        except InvalidHashError as e:
            logger.warning(
                "Password verification failed - invalid hash format",
                hash_prefix=hash_value[:20] + "..." if len(hash_value) > 20 else hash_value,
            )
            raise MalformedHash("Stored hash is not a valid Argon2 hash") from e
        except VerificationError as e:
            raise PasswordMismatch("Password verification failed") from e

    def verify_password(self, password: str, hash_value: str) -> bool:
        """Verify a password against a stored hash.

        Args:
            password: Plain text password to verify
            hash_value: Stored Argon2id hash to compare against

        Returns:
            True if password matches, False otherwise
        """
        try:
            self.check_password(password, hash_value)
        except PasswordError:
            return False
        return True

    def burn_verification(self, password: str) -> None:
        """Run a verification against a throwaway hash.

        Used when no stored hash exists so that unknown logins cost
        about as much time as wrong passwords.
        """
        if self._dummy_hash is None:
            self._dummy_hash = self._hasher.hash("edu-gateway-dummy-password")
        self.verify_password(password or "x", self._dummy_hash)

    def needs_rehash(self, hash_value: str) -> bool:
        """Check if a password hash was created with other parameters.

        Args:
            hash_value: Stored Argon2id hash to check

        Returns:
            True if hash should be regenerated with new parameters
        """
        try:
            return self._hasher.check_needs_rehash(hash_value)
        except InvalidHashError:
            return True


# Default password service instance
_default_service: PasswordService | None = None


def get_password_service() -> PasswordService:
    """Get or create the default password service.

    Returns:
        Shared PasswordService instance with default settings
    """
    global _default_service  # noqa: PLW0603
    if _default_service is None:
        _default_service = PasswordService()
    return _default_service


def hash_password(password: str) -> str:
    """Hash a password using the default service."""
    return get_password_service().hash_password(password)
