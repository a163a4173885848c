"""Core type definitions for Chromy."""

import json
import os
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..core.errors import ConfigurationError


class ChromyOptions(BaseModel):
    """Client configuration. All timeouts are in milliseconds."""
    host: str = "127.0.0.1"
    port: int = Field(default=9222, ge=1, le=65535)
    launch_browser: bool = False
    headless: bool = True
    browser_args: List[str] = Field(default_factory=list)
    wait_timeout: int = Field(default=30000, ge=0)
    goto_timeout: int = Field(default=30000, ge=0)
    load_timeout: int = Field(default=30000, ge=0)
    evaluate_timeout: int = Field(default=30000, ge=0)
    predicate_attempt_timeout: int = Field(default=1000, gt=0)
    poll_interval: int = Field(default=50, gt=0)
    user_agent: Optional[str] = None
    headers: Dict[str, str] = Field(default_factory=dict)
    verbose: int = Field(default=0, ge=0, le=3)

    @classmethod
    def create(cls, **values: Any) -> 'ChromyOptions':
        """Validate ``values``, raising ConfigurationError instead of ValidationError."""
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(str(e))

    @classmethod
    def from_env(cls, prefix: str = "CHROMY_", **overrides: Any) -> 'ChromyOptions':
        """
        Build options from environment variables (a ``.env`` file is loaded first).

        Recognised variables are ``<prefix>HOST``, ``<prefix>PORT``, ``<prefix>HEADLESS``,
        ``<prefix>WAIT_TIMEOUT``, ``<prefix>GOTO_TIMEOUT``, ``<prefix>LOAD_TIMEOUT``,
        ``<prefix>EVALUATE_TIMEOUT`` and ``<prefix>VERBOSE``. Keyword overrides win.
        """
        load_dotenv()

        values: Dict[str, Any] = {}
        for field_name in (
            "host", "port", "headless", "wait_timeout", "goto_timeout",
            "load_timeout", "evaluate_timeout", "verbose",
        ):
            raw = os.getenv(f"{prefix}{field_name.upper()}")
            if raw is not None:
                values[field_name] = raw
        values.update(overrides)
        return cls.create(**values)


class OperationState(str, Enum):
    """Lifecycle of a deadline-bounded operation."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class PendingOperation(BaseModel):
    """
    Book-keeping for one deadline-bounded unit of work.

    Only the executor driving the work mutates it. Once a terminal state is reached
    every later transition is ignored.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    deadline: float
    poll_interval_ms: int
    state: OperationState = OperationState.PENDING
    result: Any = None
    error: Optional[BaseException] = None

    @property
    def is_terminal(self) -> bool:
        return self.state is not OperationState.PENDING

    def expired(self, now: float) -> bool:
        return now > self.deadline

    def complete(self, result: Any) -> bool:
        if self.is_terminal:
            return False
        self.state = OperationState.COMPLETED
        self.result = result
        return True

    def fail(self, error: BaseException) -> bool:
        if self.is_terminal:
            return False
        self.state = OperationState.FAILED
        self.error = error
        return True

    def time_out(self) -> bool:
        if self.is_terminal:
            return False
        self.state = OperationState.TIMED_OUT
        return True


class JSFunction(BaseModel):
    """
    A function declared for the remote page, described by name, parameters and body.

    ``name`` may be omitted for function expressions.
    """
    model_config = ConfigDict(frozen=True)

    body: str
    params: List[str] = Field(default_factory=list)
    name: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _check_name(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.isidentifier():
            raise ValueError(f"not a valid function name: {v!r}")
        return v

    @field_validator("params")
    @classmethod
    def _check_params(cls, v: List[str]) -> List[str]:
        for param in v:
            if not param.lstrip(".").isidentifier():
                raise ValueError(f"not a valid parameter name: {param!r}")
        return v

    @classmethod
    def returning(cls, expression: str, params: Optional[List[str]] = None) -> 'JSFunction':
        """Function whose body returns ``expression``."""
        return cls(body=f"return ({expression})", params=params or [])


class WaitKind(str, Enum):
    """Kinds of condition accepted by wait()."""
    FIXED_DELAY = "fixed_delay"
    PREDICATE = "predicate"
    TARGET_QUERY = "target_query"


class WaitSpec(BaseModel):
    """Tagged union over fixed delay, remote predicate and selector presence."""
    model_config = ConfigDict(frozen=True)

    kind: WaitKind
    delay_ms: Optional[float] = None
    predicate: Optional[JSFunction] = None
    selector: Optional[str] = None

    @classmethod
    def fixed_delay(cls, ms: float) -> 'WaitSpec':
        if ms < 0:
            raise ConfigurationError(f"delay must not be negative: {ms}")
        return cls(kind=WaitKind.FIXED_DELAY, delay_ms=ms)

    @classmethod
    def for_predicate(cls, predicate: JSFunction) -> 'WaitSpec':
        return cls(kind=WaitKind.PREDICATE, predicate=predicate)

    @classmethod
    def target_query(cls, selector: str) -> 'WaitSpec':
        if not selector:
            raise ConfigurationError("selector must not be empty")
        return cls(kind=WaitKind.TARGET_QUERY, selector=selector)

    @classmethod
    def from_condition(cls, cond: Union['WaitSpec', JSFunction, str, int, float]) -> 'WaitSpec':
        """Classify a caller-supplied condition once, at the entry point."""
        if isinstance(cond, WaitSpec):
            return cond
        if isinstance(cond, JSFunction):
            return cls.for_predicate(cond)
        if isinstance(cond, str):
            return cls.target_query(cond)
        if isinstance(cond, (int, float)) and not isinstance(cond, bool):
            return cls.fixed_delay(cond)
        raise ConfigurationError(f"unsupported wait condition: {cond!r}")

    def describe(self) -> str:
        if self.kind is WaitKind.FIXED_DELAY:
            return f"delay {self.delay_ms}ms"
        if self.kind is WaitKind.PREDICATE:
            return f"predicate {self.predicate.name or '<anonymous>'}"
        return f"selector {self.selector}"


class Envelope(BaseModel):
    """One ``<tag>:<json-payload>`` line on the shared console transport."""
    model_config = ConfigDict(frozen=True)

    tag: str
    payload: str

    @classmethod
    def parse(cls, line: str, tag: str) -> Optional['Envelope']:
        """Return the envelope if ``line`` carries exactly ``tag`` as its prefix."""
        prefix = f"{tag}:"
        if not line.startswith(prefix):
            return None
        return cls(tag=tag, payload=line[len(prefix):])

    def encode(self) -> str:
        return f"{self.tag}:{self.payload}"

    def decode(self) -> Any:
        return json.loads(self.payload)


class InjectedFunction(BaseModel):
    """Declaration pushed to the page; not tracked once submitted."""
    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    source: str


class EvaluateResult(BaseModel):
    """The ``result`` object of a Runtime.evaluate response."""
    type: str
    value: Any = None
    subtype: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_response(cls, response: Optional[Dict[str, Any]]) -> Optional['EvaluateResult']:
        if not response or not response.get("result"):
            return None
        return cls.model_validate(response["result"])

    def decoded(self) -> Any:
        """String results that look like JSON objects or strings are decoded, the rest pass through."""
        if self.type == "string" and isinstance(self.value, str) and self.value[:1] in ("{", '"'):
            try:
                return json.loads(self.value)
            except json.JSONDecodeError:
                return self.value
        return self.value


class Device(BaseModel):
    """Device emulation preset."""
    name: str
    user_agent: str
    width: int
    height: int
    device_scale_factor: float = 1
    mobile: bool = False
    page_scale_factor: float = 1
