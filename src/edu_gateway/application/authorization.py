"""Authorization gate: per-operation role allow-lists.

Every protected operation names the roles allowed to call it. The gate
validates the access token, extracts the principal and checks membership.
Creating managers is reserved for the configured bootstrap SuperAdmin id.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from edu_gateway.domain.errors import Unauthorized
from edu_gateway.domain.model.roles import Principal, Role

if TYPE_CHECKING:
    from collections.abc import Iterable

    from edu_gateway.security.jwt import TokenService

logger = structlog.get_logger(__name__)


def describe_roles(roles: Iterable[Role]) -> str:
    """Build the rejection message naming the allowed roles.

    Example:
        >>> describe_roles([Role.SUPER_ADMIN, Role.MANAGER])
        'You are not a SuperAdmin or a Manager'
    """
    names = [role.value for role in roles]
    if not names:
        return "You are not authorized"
    return "You are not a " + " or a ".join(names)


class AuthorizationGate:
    """Checks access tokens against operation allow-lists."""

    def __init__(self, tokens: TokenService, bootstrap_id: str) -> None:
        """Initialize the gate.

        Args:
            tokens: Token service used to validate access tokens
            bootstrap_id: The only SuperAdmin id allowed to create managers
        """
        self._tokens = tokens
        self._bootstrap_id = bootstrap_id

    def authenticate(self, token: str) -> Principal:
        """Validate an access token and return its principal.

        Raises:
            TokenInvalid: If the token is missing, invalid or not an access token
        """
        return self._tokens.decode_token(token, expected_type="access").to_principal()

    def authorize(self, token: str, allowed_roles: Iterable[Role]) -> Principal:
        """Validate a token and require one of ``allowed_roles``.

        Args:
            token: Bearer access token
            allowed_roles: Roles the operation accepts

        Returns:
            The authenticated principal

        Raises:
            TokenInvalid: If the token is not a valid access token
            Unauthorized: If the principal's role is not allowed
        """
        allowed = tuple(allowed_roles)
        principal = self.authenticate(token)

        if not principal.has_role(*allowed):
            logger.warning(
                "Role not allowed",
                principal_id=principal.id,
                role=principal.role.value,
                allowed=[role.value for role in allowed],
            )
            raise Unauthorized(describe_roles(allowed))

        return principal

    def authorize_bootstrap(self, token: str) -> Principal:
        """Require the bootstrap SuperAdmin (role and id).

        Raises:
            TokenInvalid: If the token is not a valid access token
            Unauthorized: If the principal is not the bootstrap SuperAdmin
        """
        principal = self.authenticate(token)

        if principal.role is not Role.SUPER_ADMIN or principal.id != self._bootstrap_id:
            logger.warning(
                "Bootstrap-only operation rejected",
                principal_id=principal.id,
                role=principal.role.value,
            )
            raise Unauthorized("You are not a SUPER admin")

        return principal
