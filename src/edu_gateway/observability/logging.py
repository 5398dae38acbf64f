"""structlog setup for the education gateway.

Console rendering for development, JSON lines for production. Credential
material is masked before any renderer sees the event.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

REDACTED = "[redacted]"

# Event keys that may carry passwords, hashes or tokens
SENSITIVE_KEYS = frozenset(
    {
        "password",
        "password_hash",
        "token",
        "access_token",
        "refresh_token",
        "jwt_secret",
        "authorization",
    }
)


def redact_credentials(
    _logger: Any, _method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Mask credential values in a log event.

    Keys are matched case-insensitively against SENSITIVE_KEYS.
    """
    for key in event_dict:
        if key.lower() in SENSITIVE_KEYS and event_dict[key] is not None:
            event_dict[key] = REDACTED
    return event_dict


def setup_logging(
    level: str | None = None,
    log_format: str | None = None,
) -> None:
    """Configure structured logging.

    Args:
        level: Log level name. Defaults to EDU_LOG_LEVEL or INFO
        log_format: "console" or "json". Defaults to EDU_LOG_FORMAT or "console"
    """
    level = level or os.environ.get("EDU_LOG_LEVEL", "INFO")
    log_format = log_format or os.environ.get("EDU_LOG_FORMAT", "console")

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        redact_credentials,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if log_format == "json":
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(exception_formatter=structlog.dev.plain_traceback)
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class LogContext:
    """Bind key/value pairs to every log line emitted inside the block.

    Example:
        with LogContext(request_id="abc", path="/api/v1/auth/login/teacher"):
            logger.info("Handling request")
    """

    def __init__(self, **kwargs: Any) -> None:
        self._context = kwargs

    def __enter__(self) -> LogContext:
        structlog.contextvars.bind_contextvars(**self._context)
        return self

    def __exit__(self, *args: Any) -> None:
        structlog.contextvars.unbind_contextvars(*self._context)
