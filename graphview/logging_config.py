"""
graphview/logging_config.py

structlog configuration shared by the viewer service and the watcher worker.

Two renderers:
  - JSON lines for production (``settings.log_json``).
  - Coloured key/value console output when ``settings.debug`` is set or
    JSON is disabled.

Modules never configure logging themselves; they only call
``structlog.get_logger(__name__)``.
"""
from __future__ import annotations

import logging

import structlog

from graphview.config import settings


def configure_logging(level: str | None = None, *, json_output: bool | None = None) -> None:
    """Configure structlog processors and the stdlib root level."""
    level_name = (level or settings.log_level).upper()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    if json_output is None:
        json_output = settings.log_json and not settings.debug

    renderer: structlog.types.Processor
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    logging.basicConfig(format="%(message)s", level=numeric_level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=True,
    )
