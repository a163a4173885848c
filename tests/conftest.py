"""Shared fixtures: an in-memory DevTools connection and a quiet logger."""

import inspect
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Tuple
from unittest.mock import MagicMock

import pytest
import structlog

from chromy import Chromy, ChromyOptions
from chromy.cdp import CONSOLE_EVENT, Connection
from chromy.utils.logger import ChromyLogger


def js_result(value: Any, type_: Optional[str] = None) -> Dict[str, Any]:
    """Runtime.evaluate response carrying ``value``."""
    if type_ is None:
        if isinstance(value, bool):
            type_ = "boolean"
        elif isinstance(value, (int, float)):
            type_ = "number"
        elif isinstance(value, str):
            type_ = "string"
        elif value is None:
            type_ = "undefined"
        else:
            type_ = "object"
    result: Dict[str, Any] = {"type": type_}
    if value is not None:
        result["value"] = value
    return {"result": result}


class FakeConnection(Connection):
    """
    Connection double.

    ``responses`` maps a method to a dict or to a callable taking the params (sync or
    async). Every command is recorded in ``sent``.
    """

    def __init__(self):
        self._connected = False
        self.connect_count = 0
        self.disconnect_count = 0
        self.sent: List[Tuple[str, Dict[str, Any]]] = []
        self.responses: Dict[str, Any] = {}
        self.listeners: Dict[str, List[Callable]] = defaultdict(list)

    @property
    def connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        self.connect_count += 1
        self._connected = True

    async def disconnect(self) -> None:
        self.disconnect_count += 1
        self._connected = False

    async def send(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        params = params or {}
        self.sent.append((method, params))
        handler = self.responses.get(method)
        if handler is None:
            return {}
        result = handler(params) if callable(handler) else handler
        if inspect.isawaitable(result):
            result = await result
        return result

    def on(self, event: str, handler: Callable) -> None:
        self.listeners[event].append(handler)

    def remove_listener(self, event: str, handler: Callable) -> None:
        self.listeners[event].remove(handler)

    def emit(self, event: str, params: Optional[Dict[str, Any]] = None) -> None:
        for handler in list(self.listeners[event]):
            handler(params or {})

    def emit_console(self, *texts: str) -> None:
        self.emit(CONSOLE_EVENT, {
            "type": "info",
            "args": [{"type": "string", "value": text} for text in texts],
        })

    def listener_count(self, event: str) -> int:
        return len(self.listeners[event])

    def sent_methods(self) -> List[str]:
        return [method for method, _ in self.sent]

    def expressions(self) -> List[str]:
        return [params["expression"] for method, params in self.sent if method == "Runtime.evaluate"]


@pytest.fixture
def connection():
    return FakeConnection()


@pytest.fixture
def logger():
    return ChromyLogger(structlog.get_logger("chromy-tests"), verbose=0)


@pytest.fixture
def mock_logger():
    mock = MagicMock(spec=ChromyLogger)
    mock.child.return_value = mock
    return mock


@pytest.fixture
def fast_options():
    return ChromyOptions(
        wait_timeout=300,
        goto_timeout=300,
        load_timeout=300,
        evaluate_timeout=300,
        predicate_attempt_timeout=100,
    )


@pytest.fixture
def chromy(connection, logger, fast_options):
    return Chromy(fast_options, connection=connection, logger=logger)
