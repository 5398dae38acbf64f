"""Security primitives.

Provides:
- JWT token pair issuance and validation
- Password hashing with Argon2id
"""

from edu_gateway.security.jwt import TokenPair, TokenPayload, TokenService
from edu_gateway.security.password import (
    MalformedHash,
    PasswordError,
    PasswordMismatch,
    PasswordService,
    hash_password,
)

__all__ = [
    "MalformedHash",
    "PasswordError",
    "PasswordMismatch",
    "PasswordService",
    "TokenPair",
    "TokenPayload",
    "TokenService",
    "hash_password",
]
