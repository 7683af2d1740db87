"""
Logging for pvyield.

Messages go to the standard logging module unless a feedback sink has been
attached. A feedback sink is any callable taking ``(level, message)``; the
HTTP layer uses it to collect per-request diagnostics, notebooks use it to
print inline.

Usage:
    from pvyield.pvyield_logging import get_logger

    logger = get_logger(__name__)
    logger.info("Raster opened: 1200×900 pixels")
    logger.debug(f"Sampling stride {stride}")
    logger.warning("Layer TEMP failed, continuing without it")
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from enum import IntEnum

FeedbackSink = Callable[[int, str], None]


class LogLevel(IntEnum):
    """Log levels matching Python logging."""

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40


class PVYieldLogger:
    """
    Logger that forwards either to a feedback sink or to Python logging.

    Without a sink, records go to ``logging.getLogger(name)``. With a sink,
    records at or above the logger's level are handed to the sink instead.
    """

    def __init__(self, name: str, level: LogLevel = LogLevel.INFO):
        """
        Initialize logger.

        Args:
            name: Logger name (usually module name)
            level: Minimum log level to display
        """
        self.name = name
        self.level = level
        self._feedback: FeedbackSink | None = None

    def set_feedback(self, feedback: FeedbackSink | None) -> None:
        """
        Attach (or detach with None) a feedback sink.

        Args:
            feedback: Callable receiving ``(level, message)``
        """
        self._feedback = feedback

    def _log(self, level: LogLevel, message: str) -> None:
        if level < self.level:
            return

        if self._feedback is not None:
            self._feedback(int(level), f"{self.name}: {message}")
        else:
            logging.getLogger(self.name).log(level, message)

    def debug(self, message: str) -> None:
        """Log debug message."""
        self._log(LogLevel.DEBUG, message)

    def info(self, message: str) -> None:
        """Log info message."""
        self._log(LogLevel.INFO, message)

    def warning(self, message: str) -> None:
        """Log warning message."""
        self._log(LogLevel.WARNING, message)

    def error(self, message: str) -> None:
        """Log error message."""
        self._log(LogLevel.ERROR, message)

    def set_level(self, level: LogLevel | int) -> None:
        """Set minimum log level."""
        self.level = LogLevel(level) if isinstance(level, int) else level


# Global logger registry
_loggers: dict[str, PVYieldLogger] = {}


def get_logger(name: str, level: LogLevel | int = LogLevel.INFO) -> PVYieldLogger:
    """
    Get or create a logger for the given name.

    Args:
        name: Logger name (usually module name or __name__)
        level: Minimum log level (default: INFO)

    Returns:
        PVYieldLogger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Sampling started")
    """
    if name not in _loggers:
        _loggers[name] = PVYieldLogger(name, LogLevel(level))
    return _loggers[name]


def set_global_level(level: LogLevel | int) -> None:
    """
    Set log level for all existing loggers.

    Example:
        >>> import pvyield.pvyield_logging as plog
        >>> plog.set_global_level(plog.LogLevel.DEBUG)
    """
    level = LogLevel(level)
    for logger in _loggers.values():
        logger.set_level(level)


def set_global_feedback(feedback: FeedbackSink | None) -> None:
    """Attach a feedback sink to all registered loggers."""
    for logger in _loggers.values():
        logger.set_feedback(feedback)


# Configure Python logging to be less verbose by default
logging.basicConfig(
    level=logging.INFO,
    format="%(name)s: %(message)s",
    stream=sys.stdout,
)
