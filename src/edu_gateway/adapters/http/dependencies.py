"""FastAPI dependencies for the HTTP gateway.

Provides dependency injection for:
- Application services stored on app state
- Bearer token extraction
- Role allow-list checks through the authorization gate
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from edu_gateway.application.authorization import AuthorizationGate
from edu_gateway.application.login_service import LoginService
from edu_gateway.application.principals import PrincipalDirectory
from edu_gateway.config.schema import ServiceConfig
from edu_gateway.domain.model.roles import Principal, Role  # noqa: TC001

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

# HTTP Bearer token security scheme
oauth2_scheme = HTTPBearer(auto_error=False)


def get_authorization_gate(request: Request) -> AuthorizationGate:
    """Get AuthorizationGate from app state."""
    return request.app.state.authorization_gate


def get_login_service(request: Request) -> LoginService:
    """Get LoginService from app state."""
    return request.app.state.login_service


def get_principal_directory(request: Request) -> PrincipalDirectory:
    """Get PrincipalDirectory from app state."""
    return request.app.state.principal_directory


def get_config(request: Request) -> ServiceConfig:
    """Get ServiceConfig from app state."""
    return request.app.state.config


def _bearer(credentials: HTTPAuthorizationCredentials | None) -> str:
    return credentials.credentials if credentials else ""


AuthorizationGateDep = Annotated[AuthorizationGate, Depends(get_authorization_gate)]
LoginServiceDep = Annotated[LoginService, Depends(get_login_service)]
PrincipalDirectoryDep = Annotated[PrincipalDirectory, Depends(get_principal_directory)]
CredentialsDep = Annotated[HTTPAuthorizationCredentials | None, Depends(oauth2_scheme)]


async def get_current_principal(
    credentials: CredentialsDep,
    gate: AuthorizationGateDep,
) -> Principal:
    """Validate the bearer access token and return its principal.

    Raises:
        TokenInvalid: If the token is missing or invalid
    """
    return gate.authenticate(_bearer(credentials))


def require_roles(*roles: Role) -> Callable[..., Awaitable[Principal]]:
    """Create a dependency that requires one of ``roles``.

    Usage:
        @router.get("", dependencies=[Depends(require_roles(Role.SUPER_ADMIN))])
        async def endpoint():
            ...

    Args:
        roles: Roles the operation accepts

    Returns:
        Dependency function returning the authorized principal
    """

    async def check_roles(
        credentials: CredentialsDep,
        gate: AuthorizationGateDep,
    ) -> Principal:
        return gate.authorize(_bearer(credentials), roles)

    return check_roles


def require_bootstrap_superadmin() -> Callable[..., Awaitable[Principal]]:
    """Create a dependency that only the bootstrap SuperAdmin passes."""

    async def check_bootstrap(
        credentials: CredentialsDep,
        gate: AuthorizationGateDep,
    ) -> Principal:
        return gate.authorize_bootstrap(_bearer(credentials))

    return check_bootstrap


# Type aliases for cleaner route signatures
ConfigDep = Annotated[ServiceConfig, Depends(get_config)]
CurrentPrincipalDep = Annotated[Principal, Depends(get_current_principal)]
