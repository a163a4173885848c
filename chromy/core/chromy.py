"""Core Chromy client implementation."""

import asyncio
import base64
import uuid
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from ..cdp import Connection, PlaywrightConnection
from ..messaging import DEFAULT_REPORTER, TagChannel
from ..scripts import ScriptInjector, function_to_evaluating_source
from ..scripts.source import Definition
from ..types import DEVICES, ChromyOptions, EvaluateResult, JSFunction, WaitKind, WaitSpec
from ..utils.logger import ChromyLogger, default_logger
from .errors import (
    ConfigurationError,
    DeviceNotFoundError,
    EvaluateTimeoutError,
    GotoTimeoutError,
    LoadTimeoutError,
    TimeoutError,
)
from .executor import DeadlineExecutor
from .registry import ChromyRegistry
from .waiter import ConditionWaiter

LOAD_EVENT = "Page.loadEventFired"

TYPE_INTERVAL_MS = 20

Expression = Union[str, JSFunction]


def dom_script(body: str, **values: Any) -> str:
    """
    Immediately invoked script for ``body``.

    ``__NAME__`` placeholders in ``body`` are replaced by the JS literal of the keyword
    argument ``name``, so selectors and values never need manual quoting.
    """
    replacements = {f"__{key.upper()}__": value for key, value in values.items()}
    return function_to_evaluating_source(JSFunction(body=body), replacements)


class Chromy:
    """
    Client for one page of a Chromium browser driven over the DevTools protocol.

    Every operation that needs the browser starts the client on first use. Waiting
    operations are bounded by the timeouts in ``ChromyOptions``; when one expires the
    operation raises its own timeout error while the browser-side work may still finish.
    """

    def __init__(
        self,
        options: Optional[ChromyOptions] = None,
        connection: Optional[Connection] = None,
        registry: Optional[ChromyRegistry] = None,
        logger: Optional[ChromyLogger] = None,
        on_message_error: Optional[Callable[[BaseException, str], None]] = None,
        **option_values: Any,
    ):
        """
        Initialize Chromy.

        Args:
            options: Validated options; keyword arguments override its fields
            connection: DevTools connection, a PlaywrightConnection by default
            registry: Registry the client joins while started
            logger: Logger, configured from ``options.verbose`` by default
            on_message_error: Sink for console message decoding and callback failures
            **option_values: ChromyOptions fields
        """
        if options is None:
            options = ChromyOptions.create(**option_values)
        elif option_values:
            options = ChromyOptions.create(**{**options.model_dump(), **option_values})
        self.options = options

        self.logger = logger or default_logger(options.verbose)
        self.session_id = str(uuid.uuid4())
        self._logger = self.logger.child(component="chromy", session_id=self.session_id)

        self._connection = connection or PlaywrightConnection(options, self.logger)
        self._registry = registry
        self._executor = DeadlineExecutor(self._logger, tick_ms=options.poll_interval)
        self._injector = ScriptInjector(self._connection, self._logger)
        self._channel = TagChannel(self._connection, self._injector, self.logger, on_error=on_message_error)
        self._waiter = ConditionWaiter(self.evaluate, self._executor, options, self._logger)

        self._started = False
        self._emulate_mode = False
        self._user_agent_before_emulate: Optional[str] = None

    @property
    def started(self) -> bool:
        return self._started

    @property
    def connection(self) -> Connection:
        return self._connection

    async def start(self) -> None:
        if self._started:
            return

        await self._connection.connect()
        self._started = True
        if self._registry is not None:
            self._registry.register(self)

        self._logger.info("chromy:start", "Chromy started")

        if self.options.user_agent:
            await self.user_agent(self.options.user_agent)
        if self.options.headers:
            await self.headers(self.options.headers)

    async def close(self) -> bool:
        if not self._started:
            return False

        self._channel.close()
        try:
            await self._connection.disconnect()
        finally:
            self._started = False
            if self._registry is not None:
                self._registry.unregister(self)

        self._logger.info("chromy:close", "Chromy closed")
        return True

    async def _check_start(self) -> None:
        if not self._started:
            await self.start()

    async def user_agent(self, ua: str) -> None:
        await self._check_start()
        await self._connection.set_user_agent(ua)

    async def headers(self, headers: Dict[str, str]) -> None:
        """
        Send extra HTTP headers with every request.

        Example:
            await chromy.headers({"X-Requested-By": "foo"})
        """
        await self._check_start()
        await self._connection.set_extra_headers(headers)

    async def console(self, callback: Callable[[str, Dict[str, Any]], Any]) -> None:
        """Receive every console line of the page except messages sent to receive_message()."""
        await self._check_start()
        self._channel.observe(callback)

    async def receive_message(self, callback: Callable[[Any], Any], function_name: str = DEFAULT_REPORTER) -> str:
        """
        Define ``function_name`` in the page; values passed to it reach ``callback``.

        Example:
            await chromy.receive_message(lambda msg: print(msg))
            await chromy.evaluate("sendToChromy({ready: true})")

        Returns:
            The tag of the new message stream
        """
        await self._check_start()
        return await self._channel.subscribe(callback, function_name)

    def stop_receiving(self, tag: str) -> bool:
        return self._channel.unsubscribe(tag)

    async def goto(self, url: str, wait_load_event: bool = True) -> None:
        await self._check_start()
        self._logger.info("chromy:goto", f"Navigating to {url}")

        async def navigate() -> None:
            load = self._connection.expect_event(LOAD_EVENT) if wait_load_event else None
            try:
                response = await self._connection.navigate(url)
            except Exception:
                if load is not None:
                    load.cancel()
                raise
            if response and response.get("errorText"):
                self._logger.warn("chromy:goto", "Navigation reported an error", url=url, error=response["errorText"])
            if load is not None:
                await load

        try:
            await self._executor.run(navigate, self.options.goto_timeout, operation="goto")
        except TimeoutError:
            raise GotoTimeoutError(url, self.options.goto_timeout) from None

    async def wait_load_event(self) -> None:
        await self._check_start()
        await self._wait_load(self._connection.expect_event(LOAD_EVENT))

    async def _wait_load(self, load: 'asyncio.Future[Dict[str, Any]]') -> None:
        try:
            await self._executor.run(lambda: load, self.options.load_timeout, operation="wait_load_event")
        except TimeoutError:
            load.cancel()
            raise LoadTimeoutError(self.options.load_timeout) from None

    async def _with_load_event(self, action: Callable[[], Awaitable[Any]]) -> None:
        await self._check_start()
        load = self._connection.expect_event(LOAD_EVENT)
        try:
            await action()
        except Exception:
            load.cancel()
            raise
        await self._wait_load(load)

    async def forward(self) -> None:
        await self._with_load_event(lambda: self._connection.evaluate("window.history.forward()"))

    async def back(self) -> None:
        await self._with_load_event(lambda: self._connection.evaluate("window.history.back()"))

    async def reload(self, ignore_cache: bool = False, script_to_evaluate_on_load: Optional[str] = None) -> None:
        await self._check_start()
        await self._connection.reload(ignore_cache, script_to_evaluate_on_load)

    async def evaluate(self, expr: Expression) -> Any:
        """
        Evaluate an expression or JSFunction in the page and return its value.

        JSON-looking string results are decoded; a missing result is returned as None.
        """
        if isinstance(expr, JSFunction):
            expr = function_to_evaluating_source(expr)
        await self._check_start()

        try:
            response = await self._executor.run(
                lambda: self._connection.evaluate(expr),
                self.options.evaluate_timeout,
                operation="evaluate",
            )
        except TimeoutError:
            raise EvaluateTimeoutError(self.options.evaluate_timeout) from None

        if response and response.get("exceptionDetails"):
            self._logger.debug(
                "chromy:evaluate",
                "Expression threw in page",
                text=response["exceptionDetails"].get("text"),
            )
        result = EvaluateResult.from_response(response)
        return result.decoded() if result is not None else None

    async def define_function(self, definition: Definition) -> None:
        """
        Declare functions in the page, in order.

        ``definition`` is a JSFunction, raw source, a list of those, or a mapping of
        name to function which declares one forwarding function per entry.

        Raises:
            ValueError: If a JSFunction outside a mapping has no name
        """
        await self._check_start()
        await self._injector.define(definition)

    async def sleep(self, msec: float) -> None:
        await asyncio.sleep(msec / 1000)

    async def wait(self, cond: Union[WaitSpec, JSFunction, str, int, float]) -> Any:
        """
        Wait for a delay in milliseconds, a JSFunction returning truthy, or a selector.

        Raises:
            WaitTimeoutError: If the condition is not met within wait_timeout
        """
        spec = WaitSpec.from_condition(cond)
        if spec.kind is not WaitKind.FIXED_DELAY:
            await self._check_start()
        return await self._waiter.wait(spec)

    async def type(self, selector: str, value: str) -> None:
        await self.evaluate(dom_script("document.querySelector(__SELECTOR__).focus()", selector=selector))
        for c in value:
            await self._connection.dispatch_key_event(type="char", text=c)
            await self.sleep(TYPE_INTERVAL_MS)

    async def insert(self, selector: str, value: str) -> None:
        await self.evaluate(dom_script(
            "var n = document.querySelector(__SELECTOR__);\n"
            "n.focus();\n"
            "n.value = __VALUE__;",
            selector=selector,
            value=value,
        ))

    async def click(self, selector: str, wait_load_event: bool = False) -> None:
        script = dom_script(
            "document.querySelectorAll(__SELECTOR__).forEach(function (n) { n.click() })",
            selector=selector,
        )
        if wait_load_event:
            await self._with_load_event(lambda: self.evaluate(script))
        else:
            await self.evaluate(script)

    async def check(self, selector: str) -> None:
        await self.evaluate(dom_script(
            "document.querySelectorAll(__SELECTOR__).forEach(function (n) { n.checked = true })",
            selector=selector,
        ))

    async def uncheck(self, selector: str) -> None:
        await self.evaluate(dom_script(
            "document.querySelectorAll(__SELECTOR__).forEach(function (n) { n.checked = false })",
            selector=selector,
        ))

    async def select(self, selector: str, value: str) -> None:
        await self.evaluate(dom_script(
            "document.querySelectorAll(__SELECTOR__ + ' > option').forEach(function (n) {\n"
            "  if (n.value === __VALUE__) { n.selected = true }\n"
            "})",
            selector=selector,
            value=value,
        ))

    async def screenshot(self, format: str = "png", quality: Optional[int] = None, from_surface: bool = True) -> bytes:
        if format not in ("png", "jpeg"):
            raise ConfigurationError(f"screenshot format must be png or jpeg, got {format!r}")
        await self._check_start()

        params: Dict[str, Any] = {"format": format, "fromSurface": from_surface}
        if quality is not None:
            params["quality"] = quality
        response = await self._connection.capture_screenshot(**params)
        return base64.b64decode(response["data"])

    async def pdf(self, **options: Any) -> bytes:
        """Print the page to PDF; ``options`` are Page.printToPDF parameters."""
        await self._check_start()
        response = await self._connection.print_to_pdf(**options)
        return base64.b64decode(response["data"])

    async def emulate(self, device_name: str) -> None:
        device = DEVICES.get(device_name)
        if device is None:
            raise DeviceNotFoundError(device_name)
        await self._check_start()

        if not self._emulate_mode:
            self._user_agent_before_emulate = await self.evaluate("navigator.userAgent")
        await self._connection.set_device_metrics(
            width=device.width,
            height=device.height,
            deviceScaleFactor=device.device_scale_factor,
            mobile=device.mobile,
            scale=device.page_scale_factor,
        )
        await self.user_agent(device.user_agent)
        self._emulate_mode = True

    async def clear_emulate(self) -> None:
        await self._check_start()
        await self._connection.clear_device_metrics()
        if self._user_agent_before_emulate:
            await self.user_agent(self._user_agent_before_emulate)
            self._user_agent_before_emulate = None
        self._emulate_mode = False

    async def __aenter__(self) -> 'Chromy':
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"<Chromy session={self.session_id} started={self._started}>"
