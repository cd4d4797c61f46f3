"""
structlog setup.

Every event carries the app name, version and environment, plus whatever
the request middleware bound into the context (``request_id``), so a
ledger event can be traced back to the HTTP call that caused it.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from bakery_stock.config.settings import get_settings

# Third-party loggers that are only interesting when they complain
_QUIET_LOGGERS = ("aiosqlite", "uvicorn.access")


def add_app_context(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    settings = get_settings()
    event_dict.setdefault("app", settings.app_name)
    event_dict.setdefault("version", settings.app_version)
    event_dict.setdefault("environment", settings.environment)
    return event_dict


def _renderer(log_format: str, environment: str) -> list[Processor]:
    if log_format == "auto":
        log_format = "console" if environment == "development" else "json"
    if log_format == "console":
        return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]
    return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]


def configure_logging(**overrides: Any) -> None:
    """
    Configure structlog and the stdlib root logger.

    ``overrides`` may set ``log_level`` or ``log_format`` without touching
    the environment, e.g. from a CLI flag.
    """
    settings = get_settings()
    log_level = overrides.get("log_level", settings.log_level)
    log_format = overrides.get("log_format", settings.log_format)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        add_app_context,
        *_renderer(log_format, settings.environment),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=getattr(logging, log_level))
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
