"""Structured logging for the Schools.by client.

Library modules only call get_logger(); the output format is chosen once by
the application (scripts call setup_logging() with their SchoolsByConfig).
Diagnostics always go to stderr, stdout is left to the caller.
"""

import logging
import sys

import structlog

from src.schoolsby.config import SchoolsByConfig

# Chatty at DEBUG: connection pool and charset detection
_NOISY_LOGGERS = ("urllib3", "charset_normalizer")


def _renderer(json_output: bool):
    if json_output:
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def setup_logging(
    json_output: bool | None = None,
    log_level: str | None = None,
    config: SchoolsByConfig | None = None,
) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        json_output: JSON lines instead of console output.
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL.
        config: Supplies log_json / log_level for arguments left as None.
    """
    if config is not None:
        if json_output is None:
            json_output = config.log_json
        log_level = log_level or config.log_level
    level = logging.getLevelName((log_level or "INFO").upper())
    if not isinstance(level, int):
        level = logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _renderer(bool(json_output)),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.handlers = [logging.StreamHandler(sys.stderr)]
    root.setLevel(level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> structlog.BoundLogger:
    """Logger for a module (pass __name__)."""
    return structlog.get_logger(name)
