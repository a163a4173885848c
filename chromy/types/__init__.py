"""Type definitions for Chromy."""

from .models import (
    ChromyOptions,
    OperationState,
    PendingOperation,
    JSFunction,
    WaitKind,
    WaitSpec,
    Envelope,
    InjectedFunction,
    EvaluateResult,
    Device,
)
from .devices import DEVICES

__all__ = [
    "ChromyOptions",
    "OperationState",
    "PendingOperation",
    "JSFunction",
    "WaitKind",
    "WaitSpec",
    "Envelope",
    "InjectedFunction",
    "EvaluateResult",
    "Device",
    "DEVICES",
]
