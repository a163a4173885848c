"""Utility helpers for Chromy."""

from .logger import ChromyLogger, LogLevel, LogLine, configure_logging, default_logger

__all__ = [
    "ChromyLogger",
    "LogLevel",
    "LogLine",
    "configure_logging",
    "default_logger",
]
