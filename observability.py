"""Structured logging for the job board.

Application code logs through ``structlog.get_logger(__name__)``; records from
third-party stdlib loggers (uvicorn, SQLAlchemy, httpx) are passed through the
same processor chain by a ``ProcessorFormatter``, so every line carries the
request id bound by ``RequestIdMiddleware`` and shares one renderer.

Environment:
    LOG_FORMAT  ``json`` (default) or ``console``
    LOG_LEVEL   root level, ``INFO`` by default
"""
from __future__ import annotations

import logging
import os

import structlog

__all__ = ["init_observability", "QUIET_LOGGERS"]

HANDLER_NAME = "job-board"

# Libraries that are chatty at INFO
QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "httpx": logging.WARNING,
    "multipart": logging.WARNING,
    "python_multipart": logging.WARNING,
}

_PRE_CHAIN: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.StackInfoRenderer(),
]


def _build_formatter(log_format: str) -> structlog.stdlib.ProcessorFormatter:
    if log_format == "console":
        render = [structlog.dev.ConsoleRenderer()]
    else:
        render = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_PRE_CHAIN,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *render],
    )


def _job_board_handler(root: logging.Logger) -> logging.Handler:
    for handler in root.handlers:
        if handler.get_name() == HANDLER_NAME:
            return handler
    handler = logging.StreamHandler()
    handler.set_name(HANDLER_NAME)
    root.addHandler(handler)
    return handler


def init_observability() -> None:
    """Configure structlog and the root handler. Safe to call more than once."""
    log_format = os.getenv("LOG_FORMAT", "json").lower()
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    structlog.configure(
        processors=_PRE_CHAIN + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    _job_board_handler(root).setFormatter(_build_formatter(log_format))
    root.setLevel(log_level)

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    structlog.get_logger(__name__).info("Logging configured", log_format=log_format, log_level=log_level)
