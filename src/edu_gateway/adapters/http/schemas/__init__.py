"""Pydantic schemas for the HTTP gateway.

Provides request/response models for the REST API endpoints.
All models use Pydantic v2 for validation and serialization.
"""

from edu_gateway.adapters.http.schemas.auth import (
    LoginChannel,
    LoginRequest,
    MeResponse,
    RefreshRequest,
    TokenResponse,
)
from edu_gateway.adapters.http.schemas.common import (
    ErrorResponse,
    PaginatedResponse,
    PaginationMeta,
    SuccessResponse,
)
from edu_gateway.adapters.http.schemas.principals import (
    PrincipalCreate,
    PrincipalResponse,
    PrincipalUpdate,
    ReportEntry,
)

__all__ = [
    # Auth
    "LoginChannel",
    "LoginRequest",
    "MeResponse",
    "RefreshRequest",
    "TokenResponse",
    # Common
    "ErrorResponse",
    "PaginatedResponse",
    "PaginationMeta",
    "SuccessResponse",
    # Principals
    "PrincipalCreate",
    "PrincipalResponse",
    "PrincipalUpdate",
    "ReportEntry",
]
