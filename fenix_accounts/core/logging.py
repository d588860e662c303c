"""
Logging configuration for the application.
Uses structlog for structured logging (JSON in production, colorful in dev).
Credential material is redacted from every event before rendering.
"""

import logging
import sys
from typing import Any

import structlog
from asgi_correlation_id import correlation_id

from fenix_accounts.config import get_settings

settings = get_settings()

# Event keys that must never reach a log sink
REDACTED_KEYS = frozenset(
    {"password", "password_hash", "initial_password_plain_text", "newPassword", "plaintext_password"}
)
REDACTED = "***"


def add_correlation_id(logger, method_name, event_dict):
    request_id = correlation_id.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def redact_credentials(logger, method_name, event_dict):
    for key in REDACTED_KEYS.intersection(event_dict):
        event_dict[key] = REDACTED
    return event_dict


def configure_logging() -> None:
    """Configure structured logging for the app and the stdlib loggers it pulls in."""
    shared_processors: list[Any] = [
        add_correlation_id,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        redact_credentials,
    ]

    production = settings.ENVIRONMENT == "production"
    if production:
        # One JSON object per line (ELK / Datadog)
        renderer = structlog.processors.JSONRenderer()
        processors = shared_processors + [structlog.processors.format_exc_info, renderer]
    else:
        renderer = structlog.dev.ConsoleRenderer()
        processors = shared_processors + [renderer]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # uvicorn and sqlalchemy log through the stdlib; render them the same way
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(settings.LOG_LEVEL.upper())

    # RequestLoggingMiddleware already emits one line per request
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
