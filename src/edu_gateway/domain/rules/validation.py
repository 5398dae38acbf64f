"""Input validation for principal create and update requests.

Runs before any store call; failures raise ValidationError with a
message suitable for the API client.
"""

from __future__ import annotations

import re

from edu_gateway.domain.errors import ValidationError

PHONE_PATTERN = re.compile(r"\+998\d{9}")

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 30
_PASSWORD_CHARSET = re.compile(r"[A-Za-z0-9$_@.#]+")
_HAS_DIGIT = re.compile(r"[0-9]")
_HAS_LETTER = re.compile(r"[A-Za-z]")


def validate_phone(phone: str) -> None:
    """Validate an Uzbek mobile number in +998XXXXXXXXX form.

    Raises:
        ValidationError: If the number does not match
    """
    if not PHONE_PATTERN.fullmatch(phone or ""):
        raise ValidationError(
            f"error while validating phone number {phone}",
            detail={"field": "phone"},
        )


def validate_password(password: str) -> None:
    """Validate a plaintext password against the account password policy.

    Raises:
        ValidationError: Describing the first rule the password breaks
    """
    if not password:
        message = "password cannot be blank"
    elif not PASSWORD_MIN_LENGTH <= len(password) <= PASSWORD_MAX_LENGTH:
        message = (
            f"password length should be {PASSWORD_MIN_LENGTH} to "
            f"{PASSWORD_MAX_LENGTH} characters"
        )
    elif not _PASSWORD_CHARSET.fullmatch(password):
        message = (
            "password should contain only alphabetic characters, numbers "
            "and special characters(@, $, _, ., #)"
        )
    elif not _HAS_DIGIT.search(password):
        message = "password should contain at least one number"
    elif not _HAS_LETTER.search(password):
        message = "password should contain at least one alphabetic character"
    else:
        return

    raise ValidationError(message, detail={"field": "password"})
