"""Principal management schemas.

Create and update bodies carry a plaintext password which is validated
and hashed by the principal directory. Responses never include the hash.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# CREATE
# =============================================================================


class PrincipalCreate(BaseModel):
    """Fields shared by every create request."""

    model_config = ConfigDict(extra="forbid")

    fullname: str = Field(..., min_length=1, max_length=255, description="Full name")
    phone: str = Field(..., description="Phone number, +998XXXXXXXXX")
    password: str = Field(..., description="Plain text password")
    branch_id: str | None = Field(default=None, description="Owning branch")


class ManagerCreate(PrincipalCreate):
    salary: int = Field(default=0, ge=0, description="Monthly salary")


class AdministrationCreate(ManagerCreate):
    ielts_score: float | None = Field(default=None, ge=0, le=9)


class SupportTeacherCreate(AdministrationCreate):
    ielts_attempt_count: int | None = Field(default=None, ge=0)


class TeacherCreate(SupportTeacherCreate):
    support_teacher_id: str | None = Field(default=None, description="Assigned support teacher")


class StudentCreate(PrincipalCreate):
    group_name: str | None = Field(default=None, max_length=64)


# =============================================================================
# UPDATE
# =============================================================================


class PrincipalUpdate(BaseModel):
    """Fields shared by every update request. Omitted or null fields are left unchanged."""

    model_config = ConfigDict(extra="forbid")

    fullname: str | None = Field(default=None, min_length=1, max_length=255)
    phone: str | None = Field(default=None, description="Phone number, +998XXXXXXXXX")
    password: str | None = Field(default=None, description="New plain text password")
    branch_id: str | None = Field(default=None)


class ManagerUpdate(PrincipalUpdate):
    salary: int | None = Field(default=None, ge=0)


class AdministrationUpdate(ManagerUpdate):
    ielts_score: float | None = Field(default=None, ge=0, le=9)


class SupportTeacherUpdate(AdministrationUpdate):
    ielts_attempt_count: int | None = Field(default=None, ge=0)


class TeacherUpdate(SupportTeacherUpdate):
    support_teacher_id: str | None = Field(default=None)


class StudentUpdate(PrincipalUpdate):
    group_name: str | None = Field(default=None, max_length=64)


# =============================================================================
# RESPONSES
# =============================================================================


class PrincipalResponse(BaseModel):
    """Stored principal as returned to API clients."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    login: str
    fullname: str
    phone: str
    branch_id: str | None = None
    created_at: datetime
    updated_at: datetime


class ManagerResponse(PrincipalResponse):
    salary: int = 0


class AdministrationResponse(ManagerResponse):
    ielts_score: float | None = None


class SupportTeacherResponse(AdministrationResponse):
    ielts_attempt_count: int | None = None


class TeacherResponse(SupportTeacherResponse):
    support_teacher_id: str | None = None


class StudentResponse(PrincipalResponse):
    group_name: str | None = None


class ReportEntry(BaseModel):
    """Accrued salary of one principal.

    Attributes:
        total_sum: days_worked * salary / 30, rounded down
    """

    model_config = ConfigDict(extra="forbid")

    id: str
    login: str
    fullname: str
    phone: str
    salary: int
    days_worked: int
    total_sum: int
