"""CDP (Chrome DevTools Protocol) connections for Chromy."""

from .base import Connection, CONSOLE_EVENT, console_line
from .manager import PlaywrightConnection

__all__ = [
    "Connection",
    "CONSOLE_EVENT",
    "console_line",
    "PlaywrightConnection",
]
