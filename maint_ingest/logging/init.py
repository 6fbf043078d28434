from __future__ import annotations

import logging
import sys
from typing import TextIO

"""Logging initialization with labeled prefixes.

Every line written to stdout is ``<LABEL> <message>`` with LABEL one of
DEBUG|INFO|WARN|ERROR|CRITICAL|SUMMARY. SUMMARY is a custom level between
INFO and WARNING used for the one-line outcome of a command.

Module loggers (``logging.getLogger(__name__)``) are children of the
``maint_ingest`` logger configured here, so they share its handler.
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "setup_logging",
    "get_logger",
    "log_summary",
    "set_debug",
    "reset_logging",
]

LOGGER_NAME = "maint_ingest"

# Custom SUMMARY level (between INFO=20 and WARNING=30)
SUMMARY_LEVEL = 25

_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """Formats records as ``LABEL message``."""

    LEVEL_LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
        SUMMARY_LEVEL: "SUMMARY",
    }

    def format(self, record: logging.LogRecord) -> str:
        level_label = self.LEVEL_LABELS.get(record.levelno, record.levelname)
        return f"{level_label} {record.getMessage()}"


def setup_logging(level: int = logging.INFO, stream: TextIO | None = None) -> logging.Logger:
    """Configure the package logger once (labeled format, stdout by default).

    Idempotent: later calls return the already configured logger and ignore
    their arguments.
    """
    global _logger

    if _logger is not None:
        return _logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    package_logger = logging.getLogger(LOGGER_NAME)
    package_logger.setLevel(level)
    package_logger.handlers.clear()

    console = logging.StreamHandler(stream or sys.stdout)
    console.setLevel(level)
    console.setFormatter(LabeledFormatter())
    package_logger.addHandler(console)
    # own handler only; the root logger would print every line twice
    package_logger.propagate = False

    _logger = package_logger
    return package_logger


def get_logger() -> logging.Logger:
    if _logger is None:
        return setup_logging()
    return _logger


def log_summary(message: str) -> None:
    get_logger().log(SUMMARY_LEVEL, message)


def set_debug(enabled: bool = True) -> None:
    """Switch the package logger and its handlers to DEBUG (or back to INFO)."""
    logger = get_logger()
    level = logging.DEBUG if enabled else logging.INFO
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)


def reset_logging() -> None:
    """Reset the global logger state. Mainly for testing purposes."""
    global _logger
    if _logger is not None:
        for handler in _logger.handlers[:]:
            _logger.removeHandler(handler)
        _logger.propagate = True
    _logger = None
