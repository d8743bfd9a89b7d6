"""Structured logging foundation.

Provides JSON logging (prod) or colored console (dev) via structlog.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import cast

import structlog


def _configure_structlog() -> None:
    """Configure structlog based on SEASONALITY_ENV."""
    env = os.environ.get("SEASONALITY_ENV", "development")
    log_level_name = os.environ.get("SEASONALITY_LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(log_level_name)
    if not isinstance(level, int):
        level = logging.INFO

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if env == "production":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    _LOG_LEVELS["current"] = log_level_name


_LOG_LEVELS: dict[str, str] = {"current": "INFO"}
_CONFIGURED = False


def get_logger(name: str) -> structlog.typing.FilteringBoundLogger:
    """Get a named logger instance.

    Args:
        name: Logger name (typically module __name__).

    Returns:
        Configured structlog logger bound to ``name``.
    """
    global _CONFIGURED
    if not _CONFIGURED:
        _configure_structlog()
        _CONFIGURED = True

    return cast(structlog.typing.FilteringBoundLogger, structlog.get_logger(name))


def current_log_level() -> str:
    """Return the level name the logging pipeline was configured with."""
    return _LOG_LEVELS["current"]
