"""
Chromy - drive a Chromium page over the DevTools protocol from asyncio.

Chromy navigates, evaluates scripts, dispatches input and waits for page
conditions, bounding every wait by a timeout, and lets scripts in the page
send structured messages back to Python through the console.
"""

__version__ = "0.1.0"

from .core import (
    Chromy,
    ChromyRegistry,
    DeadlineExecutor,
    ConditionWaiter,
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

from .types import (
    ChromyOptions,
    JSFunction,
    WaitSpec,
    WaitKind,
    DEVICES,
)

from .cdp import Connection, PlaywrightConnection
from .messaging import TagChannel
from .scripts import ScriptInjector

__all__ = [
    # Version
    "__version__",
    # Main classes
    "Chromy",
    "ChromyRegistry",
    "DeadlineExecutor",
    "ConditionWaiter",
    "TagChannel",
    "ScriptInjector",
    "Connection",
    "PlaywrightConnection",
    # Common types
    "ChromyOptions",
    "JSFunction",
    "WaitSpec",
    "WaitKind",
    "DEVICES",
    # Common errors
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
