"""Structured page-to-host messages over the console log."""

import asyncio
import inspect
import json
import uuid
from typing import Any, Callable, Dict, List, Optional, Set, Tuple, TYPE_CHECKING

from ..core.errors import TagCollisionError
from ..scripts import ScriptInjector, function_to_source
from ..types import Envelope, JSFunction
from ..utils.logger import ChromyLogger

if TYPE_CHECKING:
    from ..cdp import Connection

DEFAULT_REPORTER = "sendToChromy"

TAG_PREFIX_PLACEHOLDER = "__CHROMY_TAG_PREFIX__"

MessageCallback = Callable[[Any], Any]
LineObserver = Callable[[str, Dict[str, Any]], Any]
ErrorSink = Callable[[BaseException, str], None]


def make_reporter(tag: str, function_name: str = DEFAULT_REPORTER) -> Tuple[JSFunction, Dict[str, str]]:
    """
    Reporter declaration plus the placeholder values it must be rendered with.

    One argument is sent as-is, several arguments are sent as a JSON array.
    """
    body = (
        "var args = Array.prototype.slice.call(arguments);\n"
        f"console.info({TAG_PREFIX_PLACEHOLDER} + JSON.stringify(args.length === 1 ? args[0] : args));"
    )
    return JSFunction(name=function_name, body=body), {TAG_PREFIX_PLACEHOLDER: f"{tag}:"}


class Subscription:
    """Routing entry for one tag."""

    def __init__(self, tag: str, function_name: str, callback: MessageCallback):
        self.tag = tag
        self.function_name = function_name
        self.callback = callback

    def __repr__(self) -> str:
        return f"<Subscription tag={self.tag} function={self.function_name}>"


class TagChannel:
    """
    Multiplexes private message streams and raw console output over one listener.

    Lines of the form ``<tag>:<json>`` whose tag is routed go to that tag's subscriber,
    decoded. Every other line goes to the raw observers. Each reporter function name has
    at most one active tag; subscribing again under the same name retires the old tag.

    Failures while decoding or inside callbacks never reach the transport: they are sent
    to ``on_error`` (default: the logger) and the listener keeps going.
    """

    def __init__(
        self,
        connection: 'Connection',
        injector: ScriptInjector,
        logger: ChromyLogger,
        on_error: Optional[ErrorSink] = None,
        tag_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
        max_tag_attempts: int = 5,
    ):
        self._connection = connection
        self._injector = injector
        self._logger = logger.child(component="tag_channel")
        self._on_error = on_error
        self._tag_factory = tag_factory
        self._max_tag_attempts = max_tag_attempts
        self._subscriptions: Dict[str, Subscription] = {}
        self._tags_by_function: Dict[str, str] = {}
        self._observers: List[LineObserver] = []
        self._handle = None
        self._callback_tasks: Set['asyncio.Task[Any]'] = set()

    @property
    def active_tags(self) -> List[str]:
        return list(self._subscriptions)

    def tag_for(self, function_name: str = DEFAULT_REPORTER) -> Optional[str]:
        return self._tags_by_function.get(function_name)

    async def subscribe(self, callback: MessageCallback, function_name: str = DEFAULT_REPORTER) -> str:
        """
        Install ``function_name`` in the page and route its messages to ``callback``.

        Returns the tag of the new stream.
        """
        tag = self._new_tag()
        previous = self._tags_by_function.get(function_name)
        if previous is not None:
            self._logger.warn(
                "tag_channel:subscribe",
                "Replacing active tag for reporter",
                function=function_name,
                retired_tag=previous,
            )
            self.unsubscribe(previous)

        # Route before installing so the first message cannot race the registration
        self._subscriptions[tag] = Subscription(tag, function_name, callback)
        self._tags_by_function[function_name] = tag
        self._ensure_listening()

        reporter, replacements = make_reporter(tag, function_name)
        await self._injector.define(function_to_source(reporter, replacements))

        self._logger.debug("tag_channel:subscribe", "Subscribed", tag=tag, function=function_name)
        return tag

    def unsubscribe(self, tag: str) -> bool:
        subscription = self._subscriptions.pop(tag, None)
        if subscription is None:
            return False
        if self._tags_by_function.get(subscription.function_name) == tag:
            del self._tags_by_function[subscription.function_name]
        return True

    def observe(self, callback: LineObserver) -> None:
        """Receive every console line that is not addressed to a routed tag."""
        self._observers.append(callback)
        self._ensure_listening()

    def close(self) -> None:
        if self._handle is not None:
            self._connection.unsubscribe_log_lines(self._handle)
            self._handle = None
        self._subscriptions.clear()
        self._tags_by_function.clear()
        self._observers.clear()

    def _new_tag(self) -> str:
        for _ in range(self._max_tag_attempts):
            tag = self._tag_factory()
            if tag not in self._subscriptions:
                return tag
        raise TagCollisionError(tag)

    def _ensure_listening(self) -> None:
        if self._handle is None:
            self._handle = self._connection.subscribe_log_lines(self._dispatch)

    def _dispatch(self, line: str, payload: Dict[str, Any]) -> None:
        for tag, subscription in list(self._subscriptions.items()):
            envelope = Envelope.parse(line, tag)
            if envelope is not None:
                self._deliver(subscription, envelope, line)
                return
        for observer in list(self._observers):
            self._invoke(observer, (line, payload), line)

    def _deliver(self, subscription: Subscription, envelope: Envelope, line: str) -> None:
        try:
            value = envelope.decode()
        except json.JSONDecodeError as e:
            self._report(e, line)
            return
        self._invoke(subscription.callback, (value,), line)

    def _invoke(self, callback: Callable[..., Any], args: Tuple[Any, ...], line: str) -> None:
        try:
            result = callback(*args)
        except Exception as e:
            self._report(e, line)
            return

        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._callback_tasks.add(task)

            def done(t: 'asyncio.Task[Any]') -> None:
                self._callback_tasks.discard(t)
                if not t.cancelled() and t.exception() is not None:
                    self._report(t.exception(), line)

            task.add_done_callback(done)

    def _report(self, error: BaseException, line: str) -> None:
        if self._on_error is None:
            self._logger.message_error(error, line)
            return
        try:
            self._on_error(error, line)
        except Exception as e:
            self._logger.error("tag_channel:error", f"Error sink failed: {e}", error=str(e))
