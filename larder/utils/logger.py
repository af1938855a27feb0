"""Logging setup."""

from __future__ import annotations

import logging
import sys
from typing import Optional

import structlog

LOG_DATE_FORMAT = "iso"


def configure_logging(level: Optional[str] = None, json_output: bool = False) -> None:
    """Configure structlog for the whole package.

    Args:
        level: Minimal level name (``DEBUG``, ``INFO`` ...)
        json_output: Render events as JSON lines instead of console output
    """
    log_level = logging.getLevelName((level or "INFO").upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt=LOG_DATE_FORMAT),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=False,
    )

