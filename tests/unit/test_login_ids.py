"""Tests for sequential login generation."""

from __future__ import annotations

import pytest

from edu_gateway.domain.errors import LoginSequenceError
from edu_gateway.domain.model.roles import LOGIN_PREFIXES, STORED_ROLES, Role
from edu_gateway.domain.rules.login_ids import (
    MAX_SEQUENCE,
    format_login,
    next_login,
    parse_login,
    seed_login,
)


class TestNextLogin:
    """Tests for next_login()."""

    @pytest.mark.parametrize(
        ("prefix", "last", "expected"),
        [
            ("A", "A00000", "A00001"),
            ("A", "A00007", "A00008"),
            ("M", "M00099", "M00100"),
            ("T", "T09999", "T10000"),
            ("ST", "ST00000", "ST00001"),
            ("ST", "ST00041", "ST00042"),
            ("S", "S12345", "S12346"),
        ],
    )
    def test_increments_suffix(self, prefix: str, last: str, expected: str) -> None:
        assert next_login(prefix, last) == expected

    @pytest.mark.parametrize("role", STORED_ROLES)
    def test_seed_produces_first_login(self, role: Role) -> None:
        seed = seed_login(role.login_prefix)
        first = next_login(role.login_prefix, seed)

        assert first == f"{role.login_prefix}00001"
        assert parse_login(role.login_prefix, first) > parse_login(role.login_prefix, seed)

    def test_is_deterministic(self) -> None:
        assert next_login("T", "T00041") == next_login("T", "T00041")

    def test_result_is_strictly_greater(self) -> None:
        last = "A00000"
        for _ in range(20):
            issued = next_login("A", last)
            assert parse_login("A", issued) > parse_login("A", last)
            last = issued

    def test_exhausted_sequence_raises(self) -> None:
        with pytest.raises(LoginSequenceError, match="exhausted"):
            next_login("A", format_login("A", MAX_SEQUENCE))


class TestParseLogin:
    """Tests for parse_login()."""

    def test_parses_two_char_prefix(self) -> None:
        assert parse_login("ST", "ST00012") == 12

    @pytest.mark.parametrize(
        "login",
        ["", "A", "A12", "A1234x", "A000001", "B00001", "ST00001", "a00001", "A00001\n"],
    )
    def test_rejects_malformed_login(self, login: str) -> None:
        with pytest.raises(LoginSequenceError):
            parse_login("A", login)

    def test_error_carries_detail(self) -> None:
        with pytest.raises(LoginSequenceError) as exc_info:
            parse_login("T", "Tabcde")

        assert exc_info.value.detail == {"prefix": "T", "login": "Tabcde"}
        assert exc_info.value.code == "login_sequence_error"


class TestRolePrefixes:
    """Tests for the per-role prefixes and seeds."""

    def test_prefixes(self) -> None:
        assert LOGIN_PREFIXES == {
            Role.ADMINISTRATION: "A",
            Role.MANAGER: "M",
            Role.TEACHER: "T",
            Role.SUPPORT_TEACHER: "ST",
            Role.STUDENT: "S",
        }

    def test_seed_login(self) -> None:
        assert seed_login("ST") == "ST00000"
        assert seed_login(Role.ADMINISTRATION.login_prefix) == "A00000"

    def test_superadmin_has_no_sequence(self) -> None:
        assert not Role.SUPER_ADMIN.is_stored
        assert Role.SUPER_ADMIN not in STORED_ROLES
        with pytest.raises(ValueError, match="no login sequence"):
            _ = Role.SUPER_ADMIN.login_prefix
