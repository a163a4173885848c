"""Waiting for conditions on the remote page."""

import asyncio
from typing import Any, Awaitable, Callable

from ..scripts import function_to_evaluating_source
from ..types import ChromyOptions, JSFunction, WaitKind, WaitSpec
from ..utils.logger import ChromyLogger
from .errors import EvaluateTimeoutError, TimeoutError, WaitTimeoutError
from .executor import DeadlineExecutor

SELECTOR_PLACEHOLDER = "__CHROMY_SELECTOR__"

SELECTOR_QUERY = JSFunction.returning(f"document.querySelector({SELECTOR_PLACEHOLDER}) !== null")


def selector_query_source(selector: str) -> str:
    """Expression that is true once ``selector`` matches an element."""
    return function_to_evaluating_source(SELECTOR_QUERY, {SELECTOR_PLACEHOLDER: selector})


class ConditionWaiter:
    """
    Resolves a WaitSpec against the page.

    Predicate and selector waits share the same polling loop: sleep one poll interval,
    give up with WaitTimeoutError once ``wait_timeout`` has elapsed, otherwise check and
    return the first truthy result. Every check is bounded by the time left on the wait,
    so a stuck evaluation ends the wait with WaitTimeoutError at its own deadline. Each
    predicate attempt is additionally bounded by ``predicate_attempt_timeout``; an
    attempt that hangs counts as a falsy result.
    """

    def __init__(
        self,
        evaluate: Callable[[str], Awaitable[Any]],
        executor: DeadlineExecutor,
        options: ChromyOptions,
        logger: ChromyLogger,
    ):
        self._evaluate = evaluate
        self._executor = executor
        self._options = options
        self._logger = logger

    async def wait(self, spec: WaitSpec) -> Any:
        handlers = {
            WaitKind.FIXED_DELAY: self._wait_delay,
            WaitKind.PREDICATE: self._wait_predicate,
            WaitKind.TARGET_QUERY: self._wait_target,
        }
        self._logger.debug("waiter:wait", "Waiting", condition=spec.describe())
        return await handlers[spec.kind](spec)

    async def _wait_delay(self, spec: WaitSpec) -> None:
        await asyncio.sleep(spec.delay_ms / 1000)

    async def _wait_predicate(self, spec: WaitSpec) -> Any:
        expression = function_to_evaluating_source(spec.predicate)

        async def attempt() -> Any:
            try:
                return await self._executor.run(
                    lambda: self._evaluate(expression),
                    self._options.predicate_attempt_timeout,
                    operation="predicate",
                )
            except (TimeoutError, EvaluateTimeoutError):
                self._logger.debug("waiter:predicate", "Predicate attempt timed out, retrying")
                return None

        return await self._poll(attempt, spec)

    async def _wait_target(self, spec: WaitSpec) -> Any:
        expression = selector_query_source(spec.selector)
        return await self._poll(lambda: self._evaluate(expression), spec)

    async def _poll(self, check: Callable[[], Awaitable[Any]], spec: WaitSpec) -> Any:
        loop = asyncio.get_running_loop()
        start = loop.time()
        timeout = self._options.wait_timeout
        interval = self._options.poll_interval / 1000

        while True:
            await asyncio.sleep(interval)
            elapsed = (loop.time() - start) * 1000
            if elapsed > timeout:
                raise WaitTimeoutError(spec.describe(), timeout)
            try:
                result = await self._executor.run(check, timeout - elapsed, operation="wait_check")
            except TimeoutError:
                # The check outlived what was left of the wait
                raise WaitTimeoutError(spec.describe(), timeout) from None
            except EvaluateTimeoutError:
                self._logger.debug("waiter:poll", "Check evaluation timed out, retrying")
                continue
            if result:
                return result
