"""Login service: exchanges a role's credentials for a token pair.

One channel per role. Stored roles resolve the login in their own table;
SuperAdmin is matched against deployment configuration and never touches
the credential store.

Unknown login, soft-deleted principal, wrong password and unreadable
stored hash all end in the same InvalidCredentials error so callers
cannot probe which logins exist.
"""

from __future__ import annotations

import asyncio
import hmac
from typing import TYPE_CHECKING

import structlog

from edu_gateway.domain.errors import InvalidCredentials, TokenInvalid
from edu_gateway.domain.model.roles import Principal, Role
from edu_gateway.security.password import MalformedHash, PasswordMismatch

if TYPE_CHECKING:
    from edu_gateway.adapters.persistence.repository import CredentialStore
    from edu_gateway.config.schema import SuperAdminConfig
    from edu_gateway.security.jwt import TokenPair, TokenService
    from edu_gateway.security.password import PasswordService

logger = structlog.get_logger(__name__)


class LoginService:
    """Authenticates principals and issues token pairs.

    There are no attempt counters and no lockout: repeated failures are
    only visible in the logs.
    """

    def __init__(
        self,
        store: CredentialStore,
        tokens: TokenService,
        passwords: PasswordService,
        superadmin: SuperAdminConfig,
    ) -> None:
        self._store = store
        self._tokens = tokens
        self._passwords = passwords
        self._superadmin = superadmin

    async def login(self, role: Role, login: str, password: str) -> TokenPair:
        """Authenticate on the channel of ``role``.

        Args:
            role: Channel the client logs in through
            login: Human-readable login (e.g. "T00042")
            password: Plaintext password

        Returns:
            Fresh access and refresh tokens for the principal

        Raises:
            InvalidCredentials: On any credential mismatch
            StoreUnavailable: If the credential store fails
            ConfigError: If tokens cannot be signed
        """
        if role is Role.SUPER_ADMIN:
            principal = await self._authenticate_superadmin(login, password)
        else:
            principal = await self._authenticate_stored(role, login, password)

        pair = self._tokens.issue_token_pair(principal)
        logger.info(
            "Login succeeded",
            role=role.value,
            login=login,
            principal_id=principal.id,
        )
        return pair

    def _reject(self, role: Role, login: str, reason: str) -> InvalidCredentials:
        logger.warning("Login failed", role=role.value, login=login, reason=reason)
        return InvalidCredentials()

    async def _authenticate_superadmin(self, login: str, password: str) -> Principal:
        login_matches = hmac.compare_digest(
            login.encode("utf-8"), self._superadmin.login.encode("utf-8")
        )
        try:
            # Always verify so a wrong login costs as much as a wrong password
            await asyncio.to_thread(
                self._passwords.check_password, password, self._superadmin.password_hash
            )
        except PasswordMismatch:
            raise self._reject(Role.SUPER_ADMIN, login, "password_mismatch") from None
        except MalformedHash:
            logger.error("Configured SuperAdmin password hash is malformed")
            raise self._reject(Role.SUPER_ADMIN, login, "malformed_hash") from None

        if not login_matches:
            raise self._reject(Role.SUPER_ADMIN, login, "unknown_login")

        return Principal(id=self._superadmin.id, role=Role.SUPER_ADMIN)

    async def _authenticate_stored(self, role: Role, login: str, password: str) -> Principal:
        record = await self._store.repository(role).get_by_login(login)

        if record is None:
            await asyncio.to_thread(self._passwords.burn_verification, password)
            raise self._reject(role, login, "unknown_login")

        try:
            await asyncio.to_thread(self._passwords.check_password, password, record.password_hash)
        except PasswordMismatch:
            raise self._reject(role, login, "password_mismatch") from None
        except MalformedHash:
            logger.error(
                "Stored password hash is malformed",
                role=role.value,
                principal_id=record.id,
            )
            raise self._reject(role, login, "malformed_hash") from None

        return Principal(id=record.id, role=role)

    async def refresh(self, refresh_token: str) -> TokenPair:
        """Issue a new pair from a valid refresh token.

        Stored principals must still exist and not be soft-deleted.

        Raises:
            TokenInvalid: If the token is not a valid refresh token or its
                principal is gone
        """
        payload = self._tokens.decode_token(refresh_token, expected_type="refresh")
        principal = payload.to_principal()

        if principal.role is Role.SUPER_ADMIN:
            if principal.id != self._superadmin.id:
                raise TokenInvalid("Invalid token claims")
        else:
            record = await self._store.repository(principal.role).get_by_id(principal.id)
            if record is None:
                logger.warning(
                    "Refresh rejected for missing principal",
                    role=principal.role.value,
                    principal_id=principal.id,
                )
                raise TokenInvalid("Principal no longer exists")

        logger.info("Tokens refreshed", role=principal.role.value, principal_id=principal.id)
        return self._tokens.issue_token_pair(principal)

    async def superadmin_login(self, login: str, password: str) -> TokenPair:
        return await self.login(Role.SUPER_ADMIN, login, password)

    async def manager_login(self, login: str, password: str) -> TokenPair:
        return await self.login(Role.MANAGER, login, password)

    async def administration_login(self, login: str, password: str) -> TokenPair:
        return await self.login(Role.ADMINISTRATION, login, password)

    async def teacher_login(self, login: str, password: str) -> TokenPair:
        return await self.login(Role.TEACHER, login, password)

    async def support_teacher_login(self, login: str, password: str) -> TokenPair:
        return await self.login(Role.SUPPORT_TEACHER, login, password)

    async def student_login(self, login: str, password: str) -> TokenPair:
        return await self.login(Role.STUDENT, login, password)
