"""Error taxonomy shared by the login, authorization and store layers.

Each error carries a short human description and a stable machine code.
The HTTP adapter renders them as ``{"error": code, "message": ..., "detail": ...}``
with the attached status code.
"""

from __future__ import annotations

from typing import Any


class EduGatewayError(Exception):
    """Base class for all domain errors."""

    code = "internal_error"
    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: str | None = None, detail: Any = None) -> None:
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class InvalidCredentials(EduGatewayError):
    """Unknown login, deleted principal, or wrong password (never distinguished)."""

    code = "invalid_credentials"
    status_code = 401
    default_message = "incorrect login or password"


class TokenInvalid(EduGatewayError):
    """Token is missing, malformed, expired, wrongly signed, or of the wrong type."""

    code = "token_invalid"
    status_code = 401
    default_message = "Invalid or expired token"


class Unauthorized(EduGatewayError):
    """Valid token whose principal is not allowed to perform the operation."""

    code = "unauthorized"
    status_code = 401
    default_message = "You are not authorized"


class NotFound(EduGatewayError):
    """Requested record does not exist or is soft-deleted."""

    code = "not_found"
    status_code = 404
    default_message = "Record not found"


class ValidationError(EduGatewayError):
    """Malformed input rejected before any store call."""

    code = "validation_error"
    status_code = 400
    default_message = "Invalid input"


class LoginSequenceError(EduGatewayError):
    """Last issued login cannot be continued."""

    code = "login_sequence_error"
    status_code = 500
    default_message = "Cannot generate next login"


class LoginConflict(EduGatewayError):
    """Concurrent creates kept colliding on the unique login constraint."""

    code = "login_conflict"
    status_code = 409
    default_message = "Could not assign a unique login"


class StoreUnavailable(EduGatewayError):
    """Database failure. Not retried."""

    code = "store_unavailable"
    status_code = 500
    default_message = "Credential store unavailable"


class ConfigError(EduGatewayError):
    """Token signing or verification is misconfigured."""

    code = "config_error"
    status_code = 500
    default_message = "Service misconfigured"
