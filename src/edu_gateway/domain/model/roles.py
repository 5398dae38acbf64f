"""Role and principal domain models.

Every authenticated actor carries exactly one role. The role string is
embedded verbatim in issued tokens and trusted by the authorization gate
for the lifetime of the token.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Closed set of roles that determine operation access."""

    SUPER_ADMIN = "SuperAdmin"
    MANAGER = "Manager"
    ADMINISTRATION = "Administration"
    TEACHER = "Teacher"
    SUPPORT_TEACHER = "SupportTeacher"
    STUDENT = "Student"

    @property
    def is_stored(self) -> bool:
        """Check if principals of this role are persisted in the store."""
        return self is not Role.SUPER_ADMIN

    @property
    def login_prefix(self) -> str:
        """Prefix of the human-readable login assigned to this role.

        Raises:
            ValueError: For SuperAdmin, which has no persisted logins
        """
        try:
            return LOGIN_PREFIXES[self]
        except KeyError:
            raise ValueError(f"Role {self.value} has no login sequence") from None


LOGIN_PREFIXES: dict[Role, str] = {
    Role.ADMINISTRATION: "A",
    Role.MANAGER: "M",
    Role.TEACHER: "T",
    Role.SUPPORT_TEACHER: "ST",
    Role.STUDENT: "S",
}

STORED_ROLES: tuple[Role, ...] = tuple(role for role in Role if role.is_stored)


@dataclass(frozen=True)
class Principal:
    """Authenticated identity extracted from a validated token.

    Attributes:
        id: Opaque unique identifier (uuid string)
        role: Role the token was issued for
    """

    id: str
    role: Role

    def has_role(self, *roles: Role) -> bool:
        """Check if the principal's role is one of ``roles``."""
        return self.role in roles
