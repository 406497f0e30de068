"""
structlog setup shared by the server and the CLI tools.

Records from stdlib loggers (uvicorn, SQLAlchemy) are left to the stdlib
handler at the same threshold so both streams filter alike.
"""

from __future__ import annotations

import logging
import sys

import structlog

SERVICE_NAME = "speech-showcase"


def _add_service(_logger, _method, event_dict):
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def configure_logging(level: str = "info", fmt: str = "json") -> None:
    threshold = logging.getLevelName(level.upper())
    if not isinstance(threshold, int):
        threshold = logging.INFO

    logging.basicConfig(stream=sys.stderr, level=threshold, format="%(message)s")

    shared = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _add_service,
    ]
    if fmt == "json":
        renderers = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        renderers = [structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]

    structlog.configure(
        processors=shared + renderers,
        wrapper_class=structlog.make_filtering_bound_logger(threshold),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )
