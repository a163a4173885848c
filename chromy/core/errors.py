"""Custom exception hierarchy for Chromy."""

from typing import Optional, Any, Dict


class ChromyError(Exception):
    """Base exception for all Chromy errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class BrowserNotAvailableError(ChromyError):
    """Raised when the browser cannot be launched or attached."""

    def __init__(self, reason: str):
        super().__init__(
            f"Browser not available: {reason}",
            {"reason": reason, "error_code": "BROWSER_NOT_AVAILABLE"}
        )


class CDPError(ChromyError):
    """Raised when a DevTools command cannot be issued."""

    def __init__(self, command: str, reason: str):
        super().__init__(
            f"CDP command '{command}' failed: {reason}",
            {"command": command, "reason": reason, "error_code": "CDP_ERROR"}
        )


class TimeoutError(ChromyError):
    """Raised when a deadline-bounded operation runs past its deadline."""

    def __init__(self, operation: str, timeout_ms: float):
        super().__init__(
            f"Operation '{operation}' timed out after {timeout_ms}ms",
            {"operation": operation, "timeout_ms": timeout_ms, "error_code": "TIMEOUT"}
        )


class GotoTimeoutError(ChromyError):
    """Raised when goto() does not finish within goto_timeout."""

    def __init__(self, url: str, timeout_ms: float):
        super().__init__(
            "goto() timeout",
            {"url": url, "timeout_ms": timeout_ms, "error_code": "GOTO_TIMEOUT"}
        )


class LoadTimeoutError(ChromyError):
    """Raised when the page load event does not fire within load_timeout."""

    def __init__(self, timeout_ms: float):
        super().__init__(
            "wait_load_event() timeout",
            {"timeout_ms": timeout_ms, "error_code": "LOAD_TIMEOUT"}
        )


class WaitTimeoutError(ChromyError):
    """Raised when wait() gives up on its condition."""

    def __init__(self, condition: str, timeout_ms: float):
        super().__init__(
            "wait() timeout",
            {"condition": condition, "timeout_ms": timeout_ms, "error_code": "WAIT_TIMEOUT"}
        )


class EvaluateTimeoutError(ChromyError):
    """Raised when evaluate() does not return within evaluate_timeout."""

    def __init__(self, timeout_ms: float):
        super().__init__(
            "evaluate() timeout",
            {"timeout_ms": timeout_ms, "error_code": "EVALUATE_TIMEOUT"}
        )


class ConfigurationError(ChromyError):
    """Raised when configuration is invalid."""

    def __init__(self, reason: str):
        super().__init__(
            f"Invalid configuration: {reason}",
            {"reason": reason, "error_code": "CONFIGURATION_ERROR"}
        )


class DeviceNotFoundError(ChromyError):
    """Raised when an unknown device preset is requested."""

    def __init__(self, name: str):
        super().__init__(
            f"Unknown device: {name}",
            {"device": name, "error_code": "DEVICE_NOT_FOUND"}
        )


class TagCollisionError(ChromyError):
    """Raised when a message tag is already routed to another subscriber."""

    def __init__(self, tag: str):
        super().__init__(
            f"Tag already in use: {tag}",
            {"tag": tag, "error_code": "TAG_COLLISION"}
        )
