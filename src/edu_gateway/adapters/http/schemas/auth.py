"""Authentication schemas.

Provides request/response models for login, token refresh, and the
current principal.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from edu_gateway.domain.model.roles import Role


class LoginChannel(str, Enum):
    """Path segment selecting the role a client logs in as."""

    SUPERADMIN = "superadmin"
    MANAGER = "manager"
    ADMINISTRATION = "administration"
    TEACHER = "teacher"
    SUPPORT_TEACHER = "support-teacher"
    STUDENT = "student"

    @property
    def role(self) -> Role:
        return _CHANNEL_ROLES[self]


_CHANNEL_ROLES = {
    LoginChannel.SUPERADMIN: Role.SUPER_ADMIN,
    LoginChannel.MANAGER: Role.MANAGER,
    LoginChannel.ADMINISTRATION: Role.ADMINISTRATION,
    LoginChannel.TEACHER: Role.TEACHER,
    LoginChannel.SUPPORT_TEACHER: Role.SUPPORT_TEACHER,
    LoginChannel.STUDENT: Role.STUDENT,
}


class LoginRequest(BaseModel):
    """Login request body.

    Attributes:
        login: Human-readable login (e.g. "T00042")
        password: Plain text password, verified against the stored hash
    """

    model_config = ConfigDict(extra="forbid")

    login: str = Field(..., min_length=1, max_length=64, description="Login")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class TokenResponse(BaseModel):
    """Token response with access and refresh tokens.

    Attributes:
        access_token: JWT access token for API authentication
        refresh_token: JWT refresh token for obtaining a new pair
        token_type: Always "bearer"
        expires_in: Access token expiration time in seconds
    """

    model_config = ConfigDict(extra="forbid")

    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., ge=0, description="Token expiration in seconds")


class RefreshRequest(BaseModel):
    """Token refresh request."""

    model_config = ConfigDict(extra="forbid")

    refresh_token: str = Field(..., description="Refresh token")


class MeResponse(BaseModel):
    """Identity of the authenticated principal.

    Attributes:
        id: Principal id
        role: Role the token was issued for
        login: Human-readable login
        fullname: Display name (absent for SuperAdmin)
    """

    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., description="Principal ID")
    role: Role = Field(..., description="Role name")
    login: str = Field(..., description="Login")
    fullname: str | None = Field(default=None, description="Full name")
