"""Sequential human-readable login generation.

Logins are a role prefix followed by a zero-padded 5 digit sequence
number, e.g. ``A00007`` or ``ST00012``. The next login is always derived
from the greatest login ever issued for the role, never from a row count,
so numbers are not reused after soft deletion.
"""

from __future__ import annotations

import re

import structlog

from edu_gateway.domain.errors import LoginSequenceError

logger = structlog.get_logger(__name__)

SEQUENCE_WIDTH = 5
MAX_SEQUENCE = 10**SEQUENCE_WIDTH - 1

_SUFFIX_PATTERN = re.compile(rf"\d{{{SEQUENCE_WIDTH}}}")


def format_login(prefix: str, number: int) -> str:
    """Build a login from prefix and sequence number.

    Args:
        prefix: Role login prefix ("A", "M", "T", "ST", "S")
        number: Sequence number (0..99999)

    Returns:
        Login string such as "A00008"

    Raises:
        LoginSequenceError: If the number does not fit in the sequence width
    """
    if number < 0 or number > MAX_SEQUENCE:
        raise LoginSequenceError(
            f"Login sequence for prefix '{prefix}' exhausted",
            detail={"prefix": prefix, "number": number},
        )
    return f"{prefix}{number:0{SEQUENCE_WIDTH}d}"


def seed_login(prefix: str) -> str:
    """Login treated as "last issued" when a role has no rows."""
    return format_login(prefix, 0)


def parse_login(prefix: str, login: str) -> int:
    """Extract the sequence number from a login.

    Args:
        prefix: Expected role prefix
        login: Login to parse

    Returns:
        Numeric suffix

    Raises:
        LoginSequenceError: If the login has another prefix or a malformed suffix
    """
    suffix = login[len(prefix) :] if login.startswith(prefix) else None
    if suffix is None or not _SUFFIX_PATTERN.fullmatch(suffix):
        logger.error(
            "Unparseable login in sequence",
            prefix=prefix,
            login=login,
        )
        raise LoginSequenceError(
            f"Last issued login '{login}' does not match '{prefix}' + {SEQUENCE_WIDTH} digits",
            detail={"prefix": prefix, "login": login},
        )
    return int(suffix)


def next_login(prefix: str, last_issued: str) -> str:
    """Compute the login following ``last_issued``.

    Example:
        >>> next_login("A", "A00007")
        'A00008'
        >>> next_login("ST", "ST00000")
        'ST00001'

    Args:
        prefix: Role login prefix
        last_issued: Greatest login issued so far, or the role's seed

    Returns:
        Next login in the sequence

    Raises:
        LoginSequenceError: If ``last_issued`` is malformed or the sequence is exhausted
    """
    return format_login(prefix, parse_login(prefix, last_issued) + 1)
