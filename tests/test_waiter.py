"""Tests for ConditionWaiter."""

import asyncio
import json

import pytest

from chromy.core.errors import EvaluateTimeoutError, WaitTimeoutError
from chromy.core.executor import DeadlineExecutor
from chromy.core.waiter import ConditionWaiter, selector_query_source
from chromy.types import ChromyOptions, JSFunction, WaitSpec

TICK = 0.05
SLACK = 0.1


def make_waiter(evaluate, logger, **option_values):
    options = ChromyOptions(**{"wait_timeout": 300, "predicate_attempt_timeout": 100, **option_values})
    return ConditionWaiter(evaluate, DeadlineExecutor(logger), options, logger)


def embedded_selector(expression: str) -> str:
    start = expression.index("querySelector(") + len("querySelector(")
    end = expression.index(") !== null")
    return json.loads(expression[start:end])


class TestSelectorQuerySource:
    """Tests for embedding selectors into the presence check."""

    def test_double_quote_selector_round_trips(self):
        selector = 'input[name="q"]'

        expression = selector_query_source(selector)

        assert embedded_selector(expression) == selector
        assert '"input[name=\\"q\\"]"' in expression

    def test_quote_cannot_terminate_the_literal(self):
        selector = '"); alert(1); ("'

        expression = selector_query_source(selector)

        assert embedded_selector(expression) == selector
        assert 'querySelector(""); alert(1)' not in expression

    def test_backslash_and_single_quote(self):
        selector = "a[title='it\\'s']"

        assert embedded_selector(selector_query_source(selector)) == selector


class TestConditionWaiter:
    """Tests for the three waiting strategies."""

    @pytest.mark.asyncio
    async def test_fixed_delay_sleeps(self, logger):
        waiter = make_waiter(None, logger)
        loop = asyncio.get_running_loop()
        start = loop.time()

        result = await waiter.wait(WaitSpec.fixed_delay(60))

        assert result is None
        assert loop.time() - start >= 0.06

    @pytest.mark.asyncio
    async def test_target_query_resolves_on_first_truthy_result(self, logger):
        answers = iter([False, None, True])
        expressions = []

        async def evaluate(expression):
            expressions.append(expression)
            return next(answers)

        waiter = make_waiter(evaluate, logger)

        result = await waiter.wait(WaitSpec.target_query("#ready"))

        assert result is True
        assert len(expressions) == 3
        assert embedded_selector(expressions[0]) == "#ready"

    @pytest.mark.asyncio
    async def test_target_query_times_out(self, logger):
        async def evaluate(expression):
            return False

        waiter = make_waiter(evaluate, logger, wait_timeout=200)
        loop = asyncio.get_running_loop()
        start = loop.time()

        with pytest.raises(WaitTimeoutError) as exc_info:
            await waiter.wait(WaitSpec.target_query("#never"))

        elapsed = loop.time() - start
        assert elapsed >= 0.2
        assert elapsed < 0.2 + TICK + SLACK
        assert exc_info.value.details["condition"] == "selector #never"

    @pytest.mark.asyncio
    async def test_stuck_target_check_is_bounded_by_wait_timeout(self, logger):
        async def evaluate(expression):
            await asyncio.sleep(5)

        waiter = make_waiter(evaluate, logger, wait_timeout=200)
        loop = asyncio.get_running_loop()
        start = loop.time()

        with pytest.raises(WaitTimeoutError):
            await waiter.wait(WaitSpec.target_query("#stuck"))

        elapsed = loop.time() - start
        assert elapsed >= 0.2
        assert elapsed < 0.2 + TICK + SLACK

    @pytest.mark.asyncio
    async def test_evaluate_timeout_during_check_is_retried(self, logger):
        calls = []

        async def evaluate(expression):
            calls.append(expression)
            if len(calls) == 1:
                raise EvaluateTimeoutError(50)
            return True

        waiter = make_waiter(evaluate, logger)

        assert await waiter.wait(WaitSpec.target_query("#later")) is True
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_target_query_propagates_evaluation_errors(self, logger):
        async def evaluate(expression):
            raise RuntimeError("target closed")

        waiter = make_waiter(evaluate, logger)

        with pytest.raises(RuntimeError, match="target closed"):
            await waiter.wait(WaitSpec.target_query("#x"))

    @pytest.mark.asyncio
    async def test_predicate_retries_after_hung_attempt(self, logger):
        calls = []

        async def evaluate(expression):
            calls.append(expression)
            if len(calls) == 1:
                await asyncio.sleep(10)
            return "ok"

        waiter = make_waiter(evaluate, logger, wait_timeout=2000)
        predicate = JSFunction.returning("window.ready")

        result = await waiter.wait(WaitSpec.for_predicate(predicate))

        assert result == "ok"
        assert len(calls) == 2
        assert calls[0] == "(function () {\nreturn (window.ready)\n})()"

    @pytest.mark.asyncio
    async def test_predicate_wait_is_bounded_by_wait_timeout(self, logger):
        async def evaluate(expression):
            return 0

        waiter = make_waiter(evaluate, logger, wait_timeout=150)

        with pytest.raises(WaitTimeoutError):
            await waiter.wait(WaitSpec.for_predicate(JSFunction.returning("false")))

    @pytest.mark.asyncio
    async def test_predicate_that_always_hangs_times_out(self, logger):
        async def evaluate(expression):
            await asyncio.sleep(10)

        waiter = make_waiter(evaluate, logger, wait_timeout=250)

        with pytest.raises(WaitTimeoutError):
            await waiter.wait(WaitSpec.for_predicate(JSFunction.returning("true")))
