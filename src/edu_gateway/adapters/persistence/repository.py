"""Credential store: per-role principal repositories.

Provides async access to the principal tables for the login service and
the principal CRUD surface. Uses SQLAlchemy 2.0 async mode with asyncpg
(Postgres) or aiosqlite (development and tests).

Login assignment races: two concurrent creates for one role could read
the same "last login". Creates therefore hold a per-role asyncio lock in
process, take ``pg_advisory_xact_lock`` on Postgres so other processes
serialize too, and rely on the unique ``login`` index as the last line.
"""

from __future__ import annotations

import asyncio
import zlib
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import func, or_, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from edu_gateway.adapters.persistence.models import (
    RECORD_MODELS,
    Base,
    PrincipalRecord,
    has_salary,
    record_fields,
)
from edu_gateway.domain.errors import LoginConflict, NotFound, StoreUnavailable
from edu_gateway.domain.model.roles import STORED_ROLES, Role
from edu_gateway.domain.rules.login_ids import next_login, seed_login

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from edu_gateway.config.schema import DatabaseConfig

logger = structlog.get_logger(__name__)

DEFAULT_CREATE_ATTEMPTS = 3


@dataclass
class ReportRow:
    """Salary report entry for one principal.

    Attributes:
        record: The principal row
        days_worked: Whole days since the row was created
        total_sum: Accrued salary, days_worked * salary / 30
    """

    record: PrincipalRecord
    days_worked: int
    total_sum: int


def _restore_utc(record: PrincipalRecord) -> PrincipalRecord:
    # SQLite doesn't preserve timezone info, restore UTC
    for attr in ("created_at", "updated_at", "deleted_at"):
        value = getattr(record, attr)
        if value is not None and value.tzinfo is None:
            setattr(record, attr, value.replace(tzinfo=timezone.utc))
    return record


def _is_login_conflict(error: IntegrityError) -> bool:
    return "login" in str(error.orig).lower()


class PrincipalRepository:
    """Repository for one role's principal table.

    Implements Create, GetByID, GetList, Update, Delete (soft), GetByLogin,
    GetLastLogin and GetReportList.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        model: type[PrincipalRecord],
        role: Role,
        *,
        dialect_name: str = "sqlite",
        max_create_attempts: int = DEFAULT_CREATE_ATTEMPTS,
    ) -> None:
        """Initialize the repository.

        Args:
            session_factory: Async session factory bound to the store engine
            model: ORM model of the role's table
            role: Role stored in this table
            dialect_name: SQL dialect, enables advisory locks on "postgresql"
            max_create_attempts: Inserts tried before giving up on login conflicts
        """
        self._session_factory = session_factory
        self._model = model
        self._role = role
        self._prefix = role.login_prefix
        self._dialect_name = dialect_name
        self._max_create_attempts = max_create_attempts
        self._fields = record_fields(model)
        self._create_lock = asyncio.Lock()
        self._advisory_key = zlib.crc32(f"login-sequence:{model.__tablename__}".encode())

    @property
    def role(self) -> Role:
        """Role stored in this repository."""
        return self._role

    @asynccontextmanager
    async def _session(self, action: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                yield session
        except (SQLAlchemyError, OSError) as e:
            logger.error(
                "Credential store failure",
                table=self._model.__tablename__,
                action=action,
                error=str(e),
            )
            raise StoreUnavailable(
                f"error while {action} {self._role.value.lower()}"
            ) from e

    def _values(self, fields: dict[str, Any]) -> dict[str, Any]:
        return {key: value for key, value in fields.items() if key in self._fields}

    def _active(self) -> Any:
        return select(self._model).where(self._model.deleted_at.is_(None))

    def _search(self, stmt: Any, search: str | None) -> Any:
        if not search:
            return stmt
        pattern = f"%{search}%"
        return stmt.where(
            or_(
                self._model.fullname.ilike(pattern),
                self._model.phone.ilike(pattern),
                self._model.login.ilike(pattern),
            )
        )

    # -------------------------------------------------------------------------
    # Login sequence
    # -------------------------------------------------------------------------

    async def _last_login(self, session: AsyncSession) -> str:
        # Deleted rows count too, so their numbers are never handed out again.
        result = await session.execute(select(func.max(self._model.login)))
        last = result.scalar_one_or_none()
        return last or seed_login(self._role.login_prefix)

    async def get_last_login(self) -> str:
        """Get the greatest login ever issued for this role.

        Returns:
            Last issued login, or the role's seed (e.g. "A00000") if none
        """
        async with self._session("getting last login of") as session:
            return await self._last_login(session)

    async def _lock_sequence(self, session: AsyncSession) -> None:
        if self._dialect_name == "postgresql":
            await session.execute(
                text("SELECT pg_advisory_xact_lock(:key)"),
                {"key": self._advisory_key},
            )

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    async def create(self, fields: dict[str, Any], password_hash: str) -> PrincipalRecord:
        """Insert a principal, assigning the next login of the role.

        The login is computed and inserted in one transaction while the
        role's sequence lock is held.

        Args:
            fields: Column values (unknown keys are ignored)
            password_hash: Already hashed password

        Returns:
            Created record

        Raises:
            LoginConflict: If every attempt collided on the unique login
            StoreUnavailable: On any other database failure
        """
        values = self._values(fields)

        async with self._create_lock:
            for attempt in range(1, self._max_create_attempts + 1):
                try:
                    async with self._session_factory() as session, session.begin():
                        await self._lock_sequence(session)
                        login = next_login(self._prefix, await self._last_login(session))
                        record = self._model(login=login, password_hash=password_hash, **values)
                        session.add(record)
                        await session.flush()
                except IntegrityError as e:
                    if not _is_login_conflict(e):
                        logger.error(
                            "Integrity error while creating principal",
                            role=self._role.value,
                            error=str(e.orig),
                        )
                        raise StoreUnavailable(
                            f"error while creating {self._role.value.lower()}"
                        ) from e
                    logger.warning(
                        "Login collision while creating principal",
                        role=self._role.value,
                        attempt=attempt,
                    )
                    continue
                except (SQLAlchemyError, OSError) as e:
                    logger.error(
                        "Credential store failure",
                        table=self._model.__tablename__,
                        action="create",
                        error=str(e),
                    )
                    raise StoreUnavailable(
                        f"error while creating {self._role.value.lower()}"
                    ) from e

                logger.info(
                    "Principal created",
                    role=self._role.value,
                    principal_id=record.id,
                    login=record.login,
                )
                return _restore_utc(record)

        raise LoginConflict(
            f"could not assign a unique {self._role.value} login",
            detail={"attempts": self._max_create_attempts},
        )

    async def get_by_id(self, principal_id: str) -> PrincipalRecord | None:
        """Get a non-deleted principal by id.

        Returns:
            Record or None if missing or soft-deleted
        """
        async with self._session("getting") as session:
            result = await session.execute(
                self._active().where(self._model.id == principal_id)
            )
            record = result.scalar_one_or_none()
            return _restore_utc(record) if record else None

    async def get_by_login(self, login: str) -> PrincipalRecord | None:
        """Get a non-deleted principal by login.

        Returns:
            Record or None if missing or soft-deleted
        """
        async with self._session("getting by login") as session:
            result = await session.execute(self._active().where(self._model.login == login))
            record = result.scalar_one_or_none()
            return _restore_utc(record) if record else None

    async def get_list(
        self,
        search: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[PrincipalRecord], int]:
        """List non-deleted principals.

        Args:
            search: Case-insensitive substring of fullname, phone or login
            page: 1-based page number
            limit: Page size

        Returns:
            Tuple of (records ordered by login, total matching count)
        """
        stmt = self._search(self._active(), search)

        async with self._session("listing") as session:
            total = await session.scalar(select(func.count()).select_from(stmt.subquery()))
            result = await session.execute(
                stmt.order_by(self._model.login).offset((page - 1) * limit).limit(limit)
            )
            records = [_restore_utc(r) for r in result.scalars().all()]
            return records, int(total or 0)

    async def update(
        self,
        principal_id: str,
        fields: dict[str, Any],
        password_hash: str | None = None,
    ) -> PrincipalRecord:
        """Update a non-deleted principal.

        Args:
            principal_id: Principal id
            fields: Column values to set (unknown keys are ignored)
            password_hash: New hash, if the password changed

        Returns:
            Updated record

        Raises:
            NotFound: If the principal is missing or soft-deleted
        """
        async with self._session("updating") as session, session.begin():
            result = await session.execute(
                self._active().where(self._model.id == principal_id)
            )
            record = result.scalar_one_or_none()
            if record is None:
                raise NotFound(f"{self._role.value} not found", detail={"id": principal_id})

            for key, value in self._values(fields).items():
                setattr(record, key, value)
            if password_hash is not None:
                record.password_hash = password_hash
            record.updated_at = datetime.now(timezone.utc)

        logger.info("Principal updated", role=self._role.value, principal_id=principal_id)
        return _restore_utc(record)

    async def delete(self, principal_id: str) -> None:
        """Soft-delete a principal by setting its deleted-at marker.

        Raises:
            NotFound: If the principal is missing or already deleted
        """
        async with self._session("deleting") as session, session.begin():
            result = await session.execute(
                self._active().where(self._model.id == principal_id)
            )
            record = result.scalar_one_or_none()
            if record is None:
                raise NotFound(f"{self._role.value} not found", detail={"id": principal_id})
            record.deleted_at = datetime.now(timezone.utc)

        logger.info("Principal soft-deleted", role=self._role.value, principal_id=principal_id)

    async def get_report_list(
        self,
        search: str | None = None,
        page: int = 1,
        limit: int = 10,
        now: datetime | None = None,
    ) -> tuple[list[ReportRow], int]:
        """Salary report: accrued pay per principal since creation.

        Args:
            search: Case-insensitive substring of fullname, phone or login
            page: 1-based page number
            limit: Page size
            now: Reference time (defaults to current UTC time)

        Returns:
            Tuple of (report rows, total matching count)

        Raises:
            ValueError: If the role has no salary column
        """
        if not has_salary(self._model):
            raise ValueError(f"{self._role.value} has no salary report")

        now = now or datetime.now(timezone.utc)
        records, total = await self.get_list(search=search, page=page, limit=limit)

        rows = []
        for record in records:
            days_worked = max((now - record.created_at).days, 0)
            total_sum = int(days_worked * (record.salary or 0) / 30)
            rows.append(ReportRow(record=record, days_worked=days_worked, total_sum=total_sum))
        return rows, total


class CredentialStore:
    """Engine, session factory and one repository per stored role.

    Example:
        >>> store = CredentialStore("sqlite+aiosqlite:///edu.db")
        >>> await store.initialize()
        >>> record = await store.repository(Role.TEACHER).get_by_login("T00001")
    """

    def __init__(
        self,
        database_url: str,
        *,
        pool_size: int = 10,
        max_overflow: int = 20,
        echo: bool = False,
    ) -> None:
        """Initialize the store.

        Args:
            database_url: SQLAlchemy async URL (postgresql+asyncpg or sqlite+aiosqlite)
            pool_size: Pool size for server databases
            max_overflow: Extra connections allowed above pool_size
            echo: Log SQL statements
        """
        engine_kwargs: dict[str, Any] = {"echo": echo, "pool_pre_ping": True}
        if not database_url.startswith("sqlite"):
            engine_kwargs.update(pool_size=pool_size, max_overflow=max_overflow)

        self._engine = create_async_engine(database_url, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        dialect_name = self._engine.dialect.name
        self._repositories = {
            role: PrincipalRepository(
                self._session_factory,
                RECORD_MODELS[role],
                role,
                dialect_name=dialect_name,
            )
            for role in STORED_ROLES
        }
        logger.debug("Credential store configured", dialect=dialect_name)

    @classmethod
    def from_config(cls, config: DatabaseConfig) -> CredentialStore:
        """Build a store from the database configuration section."""
        return cls(
            config.url,
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            echo=config.echo,
        )

    async def initialize(self) -> None:
        """Create principal tables if they don't exist.

        Safe to call multiple times (idempotent).
        """
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except (SQLAlchemyError, OSError) as e:
            logger.error("Failed to initialize credential store", error=str(e))
            raise StoreUnavailable("error while initializing credential store") from e
        logger.info("Credential store tables initialized")

    async def ping(self) -> None:
        """Run a trivial query to check the database answers.

        Raises:
            StoreUnavailable: If no connection can be made or the query fails
        """
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            logger.warning("Credential store ping failed", error=str(e))
            raise StoreUnavailable("credential store is not reachable") from e

    async def close(self) -> None:
        """Close database connections."""
        await self._engine.dispose()
        logger.debug("Credential store closed")

    def repository(self, role: Role) -> PrincipalRepository:
        """Get the repository for a stored role.

        Raises:
            ValueError: For SuperAdmin, which has no table
        """
        try:
            return self._repositories[role]
        except KeyError:
            raise ValueError(f"Role {role.value} is not persisted") from None
