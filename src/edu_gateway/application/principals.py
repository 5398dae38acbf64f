"""Principal directory: create, read, update and delete stored principals.

Called by the HTTP layer after authorization. Input is validated before
any store call and plaintext passwords are hashed exactly once here.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import structlog

from edu_gateway.domain.errors import NotFound
from edu_gateway.domain.rules.validation import validate_password, validate_phone

if TYPE_CHECKING:
    from edu_gateway.adapters.persistence.models import PrincipalRecord
    from edu_gateway.adapters.persistence.repository import CredentialStore, ReportRow
    from edu_gateway.domain.model.roles import Role
    from edu_gateway.security.password import PasswordService

logger = structlog.get_logger(__name__)


class PrincipalDirectory:
    """Facade over the credential store for principal management."""

    def __init__(self, store: CredentialStore, passwords: PasswordService) -> None:
        self._store = store
        self._passwords = passwords

    async def create(self, role: Role, fields: dict[str, Any], password: str) -> PrincipalRecord:
        """Create a principal with the next login of its role.

        Args:
            role: Stored role of the new principal
            fields: Profile columns (fullname, phone, salary, ...)
            password: Plaintext password

        Returns:
            Created record, including its assigned login

        Raises:
            ValidationError: If phone or password is malformed
            LoginConflict: If no unique login could be assigned
            StoreUnavailable: On database failure
        """
        validate_phone(fields.get("phone", ""))
        validate_password(password)

        password_hash = await asyncio.to_thread(self._passwords.hash_password, password)
        return await self._store.repository(role).create(fields, password_hash)

    async def get(self, role: Role, principal_id: str) -> PrincipalRecord:
        """Get a principal by id.

        Raises:
            NotFound: If missing or soft-deleted
        """
        record = await self._store.repository(role).get_by_id(principal_id)
        if record is None:
            raise NotFound(f"{role.value} not found", detail={"id": principal_id})
        return record

    async def get_list(
        self,
        role: Role,
        search: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[PrincipalRecord], int]:
        return await self._store.repository(role).get_list(search=search, page=page, limit=limit)

    async def update(
        self,
        role: Role,
        principal_id: str,
        fields: dict[str, Any],
        password: str | None = None,
    ) -> PrincipalRecord:
        """Update a principal's profile and, optionally, its password.

        Only keys present in ``fields`` are changed.

        Raises:
            ValidationError: If a given phone or password is malformed
            NotFound: If missing or soft-deleted
        """
        if "phone" in fields:
            validate_phone(fields["phone"])

        password_hash = None
        if password is not None:
            validate_password(password)
            password_hash = await asyncio.to_thread(self._passwords.hash_password, password)

        return await self._store.repository(role).update(
            principal_id, fields, password_hash=password_hash
        )

    async def delete(self, role: Role, principal_id: str) -> None:
        await self._store.repository(role).delete(principal_id)

    async def get_report_list(
        self,
        role: Role,
        search: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[ReportRow], int]:
        """Salary report for a salaried role."""
        return await self._store.repository(role).get_report_list(
            search=search, page=page, limit=limit
        )
