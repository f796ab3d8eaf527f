"""structlog setup for processes that host the communicator."""

from __future__ import annotations

import logging
import sys

import structlog

from sql_tde_communicator.config import LoggingConfig, get_logging_config


def _select_renderer(log_format: str) -> structlog.typing.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    if log_format == "console":
        return structlog.dev.ConsoleRenderer()
    return structlog.dev.ConsoleRenderer() if sys.stderr.isatty() else structlog.processors.JSONRenderer()


def configure_logging(config: LoggingConfig | None = None) -> None:
    """Configure structlog for JSON or console output to stderr.

    Call once at process start, before the first communicator is used.
    """
    config = config or get_logging_config()
    level = logging.getLevelNamesMapping().get(config.level, logging.INFO)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            _select_renderer(config.format),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )
