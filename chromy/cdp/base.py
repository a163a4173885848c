"""Collaborator interface consumed by the Chromy core."""

import asyncio
import json
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

EventHandler = Callable[[Dict[str, Any]], Any]
LineCallback = Callable[[str, Dict[str, Any]], None]

CONSOLE_EVENT = "Runtime.consoleAPICalled"


def console_line(params: Dict[str, Any]) -> Optional[str]:
    """
    Flatten a Runtime.consoleAPICalled event into one text line.

    String arguments are used verbatim, other primitives are JSON-encoded and objects fall
    back to their description. Returns None for events without arguments.
    """
    args = params.get("args") or []
    if not args:
        return None
    parts = []
    for arg in args:
        if "value" in arg:
            value = arg["value"]
            parts.append(value if isinstance(value, str) else json.dumps(value))
        else:
            parts.append(arg.get("description") or arg.get("type", ""))
    return " ".join(parts)


class Connection(ABC):
    """
    One DevTools session attached to a single page target.

    Concrete transports only provide ``send`` and event registration; everything the
    client needs on top of that (evaluation, navigation, console lines) is built here.
    """

    @property
    @abstractmethod
    def connected(self) -> bool:
        pass

    @abstractmethod
    async def connect(self) -> None:
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        pass

    @abstractmethod
    async def send(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        pass

    @abstractmethod
    def on(self, event: str, handler: EventHandler) -> None:
        pass

    @abstractmethod
    def remove_listener(self, event: str, handler: EventHandler) -> None:
        pass

    def expect_event(self, event: str) -> 'asyncio.Future[Dict[str, Any]]':
        """
        Arm a one-shot listener for ``event`` and return a future for its params.

        The listener is registered before this returns, so an event fired by a command
        sent afterwards cannot be missed. Cancelling the future removes the listener.
        """
        future: 'asyncio.Future[Dict[str, Any]]' = asyncio.get_running_loop().create_future()

        def handler(params: Dict[str, Any]) -> None:
            self.remove_listener(event, handler)
            if not future.done():
                future.set_result(params)

        def on_done(f: 'asyncio.Future[Dict[str, Any]]') -> None:
            if f.cancelled():
                self.remove_listener(event, handler)

        self.on(event, handler)
        future.add_done_callback(on_done)
        return future

    async def evaluate(self, expression: str) -> Dict[str, Any]:
        return await self.send("Runtime.evaluate", {
            "expression": expression,
            "returnByValue": True,
        })

    async def navigate(self, url: str) -> Dict[str, Any]:
        return await self.send("Page.navigate", {"url": url})

    async def reload(self, ignore_cache: bool = False, script_to_evaluate_on_load: Optional[str] = None) -> None:
        params: Dict[str, Any] = {"ignoreCache": ignore_cache}
        if script_to_evaluate_on_load is not None:
            params["scriptToEvaluateOnLoad"] = script_to_evaluate_on_load
        await self.send("Page.reload", params)

    def subscribe_log_lines(self, callback: LineCallback) -> EventHandler:
        """Deliver every console line to ``callback``; returns the handle for unsubscribing."""
        def handler(params: Dict[str, Any]) -> None:
            line = console_line(params)
            if line is not None:
                callback(line, params)

        self.on(CONSOLE_EVENT, handler)
        return handler

    def unsubscribe_log_lines(self, handle: EventHandler) -> None:
        self.remove_listener(CONSOLE_EVENT, handle)

    async def dispatch_key_event(self, **params: Any) -> None:
        await self.send("Input.dispatchKeyEvent", params)

    async def capture_screenshot(self, **params: Any) -> Dict[str, Any]:
        return await self.send("Page.captureScreenshot", params)

    async def print_to_pdf(self, **params: Any) -> Dict[str, Any]:
        return await self.send("Page.printToPDF", params)

    async def set_device_metrics(self, **params: Any) -> None:
        await self.send("Emulation.setDeviceMetricsOverride", params)

    async def clear_device_metrics(self) -> None:
        await self.send("Emulation.clearDeviceMetricsOverride")

    async def set_user_agent(self, user_agent: str) -> None:
        await self.send("Network.setUserAgentOverride", {"userAgent": user_agent})

    async def set_extra_headers(self, headers: Dict[str, str]) -> None:
        await self.send("Network.setExtraHTTPHeaders", {"headers": headers})
