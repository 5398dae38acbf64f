"""Education gateway - authentication and principal management.

This package provides the authentication core of an education backend:
- Sequential per-role login ids (A00001, T00042, ...)
- Argon2id password hashing
- JWT access/refresh token pairs
- Per-role login channels and role allow-list authorization
- A credential store with soft delete and salary reports
"""

__version__ = "1.0.0"

__author__ = "Education Gateway Team"

from edu_gateway.domain.model.roles import Principal, Role

__all__ = [
    "Principal",
    "Role",
    "__version__",
]
