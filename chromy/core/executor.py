"""Deadline-bounded execution of asynchronous work."""

import asyncio
from typing import Any, Awaitable, Callable, Optional, Set, TypeVar

from ..types import OperationState, PendingOperation
from ..utils.logger import ChromyLogger
from .errors import TimeoutError

T = TypeVar('T')

DEFAULT_TICK_MS = 50


class DeadlineExecutor:
    """
    Runs a unit of work and stops waiting for it once its deadline passes.

    The work is started as a task and polled every tick; timeout detection therefore has
    tick granularity (worst case deadline + one tick). A timed-out task is abandoned, not
    cancelled: it keeps running and whatever it eventually produces is discarded.
    """

    def __init__(self, logger: Optional[ChromyLogger] = None, tick_ms: int = DEFAULT_TICK_MS):
        self._logger = logger
        self._tick_ms = tick_ms
        # asyncio only keeps weak references to tasks
        self._abandoned: Set['asyncio.Task[Any]'] = set()

    @property
    def tick_ms(self) -> int:
        return self._tick_ms

    @property
    def abandoned_count(self) -> int:
        return len(self._abandoned)

    async def run(
        self,
        work: Callable[[], Awaitable[T]],
        timeout_ms: float,
        operation: str = "operation",
    ) -> T:
        """
        Await ``work()`` for at most ``timeout_ms``.

        Returns the work's result or re-raises its exception when it finishes in time,
        raises TimeoutError otherwise.
        """
        loop = asyncio.get_running_loop()
        pending = PendingOperation(
            deadline=loop.time() + timeout_ms / 1000,
            poll_interval_ms=self._tick_ms,
        )
        task = asyncio.ensure_future(work())
        task.add_done_callback(lambda t: self._settle(pending, t))

        try:
            while not pending.is_terminal:
                if pending.expired(loop.time()):
                    pending.time_out()
                    raise TimeoutError(operation, timeout_ms)
                await asyncio.sleep(self._tick_ms / 1000)
        finally:
            if not task.done():
                self._abandon(task, operation)

        if pending.state is OperationState.FAILED:
            raise pending.error
        return pending.result

    def _settle(self, pending: PendingOperation, task: 'asyncio.Task[Any]') -> None:
        if task.cancelled():
            pending.fail(asyncio.CancelledError())
            return
        error = task.exception()
        if error is not None:
            pending.fail(error)
        else:
            pending.complete(task.result())

    def _abandon(self, task: 'asyncio.Task[Any]', operation: str) -> None:
        self._abandoned.add(task)

        def forget(t: 'asyncio.Task[Any]') -> None:
            self._abandoned.discard(t)
            if self._logger is not None:
                self._logger.debug(
                    "executor:abandoned",
                    "Abandoned work finished after its deadline",
                    operation=operation,
                    failed=t.cancelled() or t.exception() is not None,
                )

        task.add_done_callback(forget)
