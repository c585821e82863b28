"""Structured logging helpers."""

from __future__ import annotations

import logging
from typing import Any

import structlog


def setup_logging(*, debug: bool = False) -> None:
    """Configure structlog for console output.

    ``debug`` lowers the level filter to DEBUG so per-message traces
    (sender, recipient, body) become visible; otherwise only INFO and above
    are rendered.
    """
    level = logging.DEBUG if debug else logging.INFO
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )


def ensure_logging(*, debug: bool = False) -> None:
    """Apply :func:`setup_logging` unless the application configured structlog.

    An explicit ``debug`` request always wins.
    """
    if debug or not structlog.is_configured():
        setup_logging(debug=debug)


def get_logger(name: str | None = None) -> Any:
    # Must stay a lazy proxy: setup_logging() may run after module import.
    if name is None:
        return structlog.get_logger()
    return structlog.get_logger(name)
