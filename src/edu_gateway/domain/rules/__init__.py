"""Domain rules: login sequence generation and input validation."""

from edu_gateway.domain.rules.login_ids import (
    format_login,
    next_login,
    parse_login,
    seed_login,
)
from edu_gateway.domain.rules.validation import validate_password, validate_phone

__all__ = [
    "format_login",
    "next_login",
    "parse_login",
    "seed_login",
    "validate_password",
    "validate_phone",
]
