"""SQLAlchemy ORM models for the credential store.

One table per stored role. Every table shares the principal columns
(id, login, password hash, soft-delete marker); role-specific columns are
added by mixins. Uses SQLAlchemy 2.0 declarative style.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Float, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from edu_gateway.domain.model.roles import Role


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class PrincipalRecord(Base):
    """Columns shared by every login-capable principal.

    Attributes:
        id: Opaque uuid primary key
        login: Human-readable sequential login, unique per role table
        fullname: Display name
        phone: Phone number (+998XXXXXXXXX)
        password_hash: Argon2id hash, never plaintext
        branch_id: Owning branch (external entity)
        created_at: Creation timestamp
        updated_at: Last update timestamp
        deleted_at: Soft-delete marker; set rows are excluded from lookups
    """

    __abstract__ = True

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    login: Mapped[str] = mapped_column(String(16), unique=True, index=True)
    fullname: Mapped[str] = mapped_column(String(255))
    phone: Mapped[str] = mapped_column(String(32))
    password_hash: Mapped[str] = mapped_column(String(255))
    branch_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )


class SalaryMixin:
    salary: Mapped[int] = mapped_column(Integer, default=0)


class IeltsMixin:
    ielts_score: Mapped[float | None] = mapped_column(Float, nullable=True)


class IeltsAttemptsMixin:
    ielts_attempt_count: Mapped[int | None] = mapped_column(Integer, nullable=True)


class AdministrationRecord(SalaryMixin, IeltsMixin, PrincipalRecord):
    __tablename__ = "administration"


class ManagerRecord(SalaryMixin, PrincipalRecord):
    __tablename__ = "manager"


class TeacherRecord(SalaryMixin, IeltsMixin, IeltsAttemptsMixin, PrincipalRecord):
    __tablename__ = "teacher"

    support_teacher_id: Mapped[str | None] = mapped_column(String(36), nullable=True)


class SupportTeacherRecord(SalaryMixin, IeltsMixin, IeltsAttemptsMixin, PrincipalRecord):
    __tablename__ = "support_teacher"


class StudentRecord(PrincipalRecord):
    __tablename__ = "student"

    group_name: Mapped[str | None] = mapped_column(String(64), nullable=True)


RECORD_MODELS: dict[Role, type[PrincipalRecord]] = {
    Role.ADMINISTRATION: AdministrationRecord,
    Role.MANAGER: ManagerRecord,
    Role.TEACHER: TeacherRecord,
    Role.SUPPORT_TEACHER: SupportTeacherRecord,
    Role.STUDENT: StudentRecord,
}

# Columns callers may set through create/update; everything else is managed here.
WRITABLE_COLUMNS = (
    "fullname",
    "phone",
    "branch_id",
    "salary",
    "ielts_score",
    "ielts_attempt_count",
    "support_teacher_id",
    "group_name",
)


def record_fields(model: type[PrincipalRecord]) -> set[str]:
    """Writable columns present on ``model``."""
    columns = set(model.__table__.columns.keys())
    return {name for name in WRITABLE_COLUMNS if name in columns}


def has_salary(model: type[PrincipalRecord]) -> bool:
    """Check if the role's report can aggregate salaries."""
    return "salary" in model.__table__.columns
