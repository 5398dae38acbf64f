"""Authentication router.

Provides endpoints for per-role login, token refresh, and the current
principal.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter

from edu_gateway.adapters.http.dependencies import (  # noqa: TC001
    ConfigDep,
    CurrentPrincipalDep,
    LoginServiceDep,
    PrincipalDirectoryDep,
)
from edu_gateway.adapters.http.schemas.auth import (
    LoginChannel,
    LoginRequest,
    MeResponse,
    RefreshRequest,
    TokenResponse,
)
from edu_gateway.domain.model.roles import Role

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post("/login/{channel}", response_model=TokenResponse)
async def login(
    channel: LoginChannel,
    request: LoginRequest,
    login_service: LoginServiceDep,
) -> TokenResponse:
    """Authenticate on a role's channel and return tokens.

    Args:
        channel: Role to log in as (e.g. "teacher", "support-teacher")
        request: Login credentials
        login_service: Login service

    Returns:
        Access and refresh tokens

    Raises:
        InvalidCredentials: If login or password is wrong
    """
    pair = await login_service.login(channel.role, request.login, request.password)

    return TokenResponse(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        token_type="bearer",
        expires_in=pair.expires_in,
    )


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    request: RefreshRequest,
    login_service: LoginServiceDep,
) -> TokenResponse:
    """Exchange a refresh token for a new token pair.

    Raises:
        TokenInvalid: If the refresh token is invalid or its principal is gone
    """
    pair = await login_service.refresh(request.refresh_token)

    return TokenResponse(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        token_type="bearer",
        expires_in=pair.expires_in,
    )


@router.get("/me", response_model=MeResponse)
async def get_current_principal_info(
    principal: CurrentPrincipalDep,
    directory: PrincipalDirectoryDep,
    config: ConfigDep,
) -> MeResponse:
    """Get the authenticated principal's own record.

    Any role may call this; stored roles only ever see their own row.
    """
    if principal.role is Role.SUPER_ADMIN:
        return MeResponse(id=principal.id, role=principal.role, login=config.superadmin.login)

    record = await directory.get(principal.role, principal.id)
    return MeResponse(
        id=record.id,
        role=principal.role,
        login=record.login,
        fullname=record.fullname,
    )
