"""
Structured logging for the CAPTCHA service.

structlog renders JSON lines when log_format is "json" and coloured console
output otherwise. Every event passes through `redact_captcha_secrets`, so a
token or answer passed as a log field never reaches the output.
"""

import logging
import sys

import structlog

from math_captcha.config import Settings, settings as default_settings

REDACTED = "[redacted]"
SENSITIVE_KEYS = frozenset({"token", "answer", "captcha_token", "captcha_answer"})


def redact_captcha_secrets(logger, method_name: str, event_dict: dict) -> dict:
    """structlog processor masking CAPTCHA tokens and answers."""
    for key in SENSITIVE_KEYS & event_dict.keys():
        event_dict[key] = REDACTED
    return event_dict


def setup_logging(settings: Settings = default_settings) -> None:
    """
    Configure structlog for the app and route stdlib logging (APScheduler,
    uvicorn) to stdout at the same level.

    Called by create_app.
    """
    level = getattr(logging, settings.log_level.upper())

    if settings.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            redact_captcha_secrets,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)


def get_logger(name: str | None = None):
    """
    Return a lazy structlog logger, tagged with logger_name when a name is given.

    Safe to call at import time: the logger picks up the configuration from
    setup_logging on first use.
    """
    if name:
        return structlog.get_logger(logger_name=name)
    return structlog.get_logger()
