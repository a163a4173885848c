"""Logging configuration for Chromy."""

import logging
import os
import sys
from enum import IntEnum
from typing import Any, Dict, List, Optional

import structlog

# Console lines are page-controlled; only a prefix is kept in log records
MAX_LINE_CHARS = 200


class LogLevel(IntEnum):
    """Log levels for Chromy, ordered by verbosity."""
    ERROR = 0
    WARN = 1
    INFO = 2
    DEBUG = 3


_STDLIB_LEVELS = {
    LogLevel.ERROR: logging.ERROR,
    LogLevel.WARN: logging.WARNING,
    LogLevel.INFO: logging.INFO,
    LogLevel.DEBUG: logging.DEBUG,
}


def configure_logging(verbose: int = 0) -> structlog.BoundLogger:
    """
    Configure structlog for Chromy.

    ``verbose`` picks the stdlib level (0 errors only, 3 everything). Output is rendered
    for humans on a terminal and as JSON lines otherwise, or always as JSON when
    ``NO_COLOR`` is set.

    Args:
        verbose: Verbosity level (0-3)

    Returns:
        Configured logger instance
    """
    level = _STDLIB_LEVELS[LogLevel(max(0, min(verbose, LogLevel.DEBUG)))]

    processors: List[Any] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if sys.stderr.isatty() and os.getenv("NO_COLOR") is None:
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)
    # Playwright's driver chatter is not Chromy output
    logging.getLogger("playwright").setLevel(max(level, logging.WARNING))

    return structlog.get_logger("chromy").bind(verbose=verbose)


class LogLine:
    """
    A categorised log record.

    Categories read ``component:action`` (``"chromy:goto"``, ``"tag_channel:error"``) and
    are split into separate ``component`` and ``action`` fields so records can be filtered
    per component.
    """

    def __init__(
        self,
        category: str,
        message: str,
        level: LogLevel = LogLevel.INFO,
        auxiliary: Optional[Dict[str, Any]] = None,
    ):
        self.category = category
        self.message = message
        self.level = level
        self.auxiliary = auxiliary or {}

    def to_dict(self) -> Dict[str, Any]:
        component, _, action = self.category.partition(":")
        data: Dict[str, Any] = {"component": component, "level": self.level.name}
        if action:
            data["action"] = action
        data.update(self.auxiliary)
        return data


class ChromyLogger:
    """Logger wrapper with categories, verbosity filtering and console-message diagnostics."""

    def __init__(self, logger: structlog.BoundLogger, verbose: int = 0):
        self.logger = logger
        self.verbose = verbose

    def enabled(self, level: LogLevel) -> bool:
        return level.value <= self.verbose

    def log(self, log_line: LogLine) -> None:
        if not self.enabled(log_line.level):
            return

        level_name = "warning" if log_line.level is LogLevel.WARN else log_line.level.name.lower()
        log_method = getattr(self.logger, level_name, self.logger.info)
        log_method(log_line.message, **log_line.to_dict())

    def error(self, category: str, message: str, **kwargs: Any) -> None:
        self.log(LogLine(category, message, LogLevel.ERROR, kwargs))

    def warn(self, category: str, message: str, **kwargs: Any) -> None:
        self.log(LogLine(category, message, LogLevel.WARN, kwargs))

    def info(self, category: str, message: str, **kwargs: Any) -> None:
        self.log(LogLine(category, message, LogLevel.INFO, kwargs))

    def debug(self, category: str, message: str, **kwargs: Any) -> None:
        self.log(LogLine(category, message, LogLevel.DEBUG, kwargs))

    def message_error(self, error: BaseException, line: str) -> None:
        """
        Default sink for console messages that could not be handled.

        Shaped like a TagChannel ``on_error`` callback. The offending line is truncated
        to MAX_LINE_CHARS.
        """
        truncated = len(line) > MAX_LINE_CHARS
        self.warn(
            "tag_channel:error",
            f"Console message handling failed: {error}",
            error=str(error),
            error_type=type(error).__name__,
            line=line[:MAX_LINE_CHARS],
            truncated=truncated,
        )

    def child(self, **bindings: Any) -> 'ChromyLogger':
        """Create a child logger with additional context."""
        return ChromyLogger(self.logger.bind(**bindings), self.verbose)


def default_logger(verbose: int = 0) -> ChromyLogger:
    """Build a ChromyLogger backed by a freshly configured structlog logger."""
    return ChromyLogger(configure_logging(verbose), verbose)
