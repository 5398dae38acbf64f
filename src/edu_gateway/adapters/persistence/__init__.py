"""Persistence layer for the education gateway.

Provides the credential store:
- One principal table per stored role
- Sequential login assignment on create
- Soft delete, search and salary reports
"""

from edu_gateway.adapters.persistence.models import (
    RECORD_MODELS,
    AdministrationRecord,
    ManagerRecord,
    PrincipalRecord,
    StudentRecord,
    SupportTeacherRecord,
    TeacherRecord,
)
from edu_gateway.adapters.persistence.repository import (
    CredentialStore,
    PrincipalRepository,
    ReportRow,
)

__all__ = [
    "RECORD_MODELS",
    "AdministrationRecord",
    "CredentialStore",
    "ManagerRecord",
    "PrincipalRecord",
    "PrincipalRepository",
    "ReportRow",
    "StudentRecord",
    "SupportTeacherRecord",
    "TeacherRecord",
]
