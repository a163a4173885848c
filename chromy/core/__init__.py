"""Core Chromy components."""

from .chromy import Chromy
from .executor import DeadlineExecutor
from .waiter import ConditionWaiter
from .registry import ChromyRegistry
from .errors import (
    ChromyError,
    BrowserNotAvailableError,
    CDPError,
    TimeoutError,
    GotoTimeoutError,
    LoadTimeoutError,
    WaitTimeoutError,
    EvaluateTimeoutError,
    ConfigurationError,
    DeviceNotFoundError,
    TagCollisionError,
)

__all__ = [
    # Main classes
    "Chromy",
    "ChromyRegistry",
    "DeadlineExecutor",
    "ConditionWaiter",
    # Errors
    "ChromyError",
    "BrowserNotAvailableError",
    "CDPError",
    "TimeoutError",
    "GotoTimeoutError",
    "LoadTimeoutError",
    "WaitTimeoutError",
    "EvaluateTimeoutError",
    "ConfigurationError",
    "DeviceNotFoundError",
    "TagCollisionError",
]
