import asyncio
import json

import pytest

from cv_intake_ai.cv_pipeline.errors import OperationCancelledError, RetryExhaustedError
from cv_intake_ai.cv_pipeline.quality import ValidationReport
from cv_intake_ai.cv_pipeline.retry import (
    CancellationToken,
    RetryController,
    RetryPolicy,
    RetryState,
)

from conftest import StubModelClient

PARSEABLE = json.dumps({"suggestions": [{"section": "about"}]})


def _invoker(stub):
    async def invoke(attempt):
        return await stub.generate(f"attempt {attempt}")

    return invoke


class ScriptedValidator:
    """Fails until `succeed_on`; on `partial_on` returns invalid-with-items."""

    def __init__(self, succeed_on=None, partial_on=None, partial_items=None):
        self.succeed_on = succeed_on
        self.partial_on = partial_on
        self.partial_items = partial_items or []
        self.calls = 0

    def __call__(self, parsed):
        self.calls += 1
        if self.succeed_on is not None and self.calls >= self.succeed_on:
            return ValidationReport(True, ["ok"], [], [])
        if self.partial_on is not None and self.calls == self.partial_on:
            return ValidationReport(False, list(self.partial_items), ["2 items incomplete"], ["w"])
        return ValidationReport(False, [], ["nothing usable"], [])


def test_exhausts_after_exactly_max_attempts(zero_delay_controller, diagnostics):
    stub = StubModelClient([PARSEABLE])
    controller = zero_delay_controller(5)
    with pytest.raises(RetryExhaustedError) as exc:
        asyncio.run(controller.run(_invoker(stub), ScriptedValidator()))
    assert stub.call_count == 5
    assert exc.value.attempts == 5
    assert exc.value.kind == "RETRY_EXHAUSTED"
    assert "nothing usable" in exc.value.last_error
    assert [r.attempt for r in diagnostics.records] == [1, 2, 3, 4, 5]


def test_degraded_on_last_attempt_with_items(zero_delay_controller):
    stub = StubModelClient([PARSEABLE])
    validator = ScriptedValidator(partial_on=7, partial_items=["first", "second"])
    result = asyncio.run(zero_delay_controller(7).run(_invoker(stub), validator))
    assert result.state == RetryState.DEGRADED
    assert result.fallback is True
    assert result.quality_items == ["first", "second"]
    assert result.errors == ["2 items incomplete"]
    assert stub.call_count == 7


def test_partial_items_before_last_attempt_are_retried(zero_delay_controller):
    stub = StubModelClient([PARSEABLE])
    validator = ScriptedValidator(partial_on=2, partial_items=["x"])
    with pytest.raises(RetryExhaustedError):
        asyncio.run(zero_delay_controller(3).run(_invoker(stub), validator))
    assert stub.call_count == 3


def test_stops_at_first_success(zero_delay_controller):
    stub = StubModelClient([PARSEABLE])
    result = asyncio.run(zero_delay_controller(7).run(_invoker(stub), ScriptedValidator(succeed_on=3)))
    assert result.state == RetryState.SUCCEEDED
    assert result.attempt == 3
    assert result.fallback is False
    assert stub.call_count == 3


def test_empty_response_and_exceptions_are_attempt_failures(zero_delay_controller, diagnostics):
    stub = StubModelClient(["", RuntimeError("connection reset"), "not json", PARSEABLE])
    result = asyncio.run(zero_delay_controller(4).run(_invoker(stub), ScriptedValidator(succeed_on=1)))
    assert result.attempt == 4
    kinds = [r.error_kind for r in diagnostics.records]
    assert kinds == ["EMPTY_MODEL_RESPONSE", "RuntimeError", "JSON_PARSE", None]
    assert diagnostics.records[-1].succeeded


def test_last_error_is_reported_on_exhaustion(zero_delay_controller):
    stub = StubModelClient([RuntimeError("model down")])
    with pytest.raises(RetryExhaustedError) as exc:
        asyncio.run(zero_delay_controller(2).run(_invoker(stub), ScriptedValidator()))
    assert exc.value.message == "Failed after 2 attempts: model down"


def test_fixed_delay_between_attempts_only():
    slept = []

    async def fake_sleep(seconds):
        slept.append(seconds)

    stub = StubModelClient([PARSEABLE])
    controller = RetryController(RetryPolicy.fixed(3, 1.0), sleep=fake_sleep)
    with pytest.raises(RetryExhaustedError):
        asyncio.run(controller.run(_invoker(stub), ScriptedValidator()))
    assert slept == [1.0, 1.0]


def test_diagnostic_sink_failure_does_not_abort():
    class BrokenSink:
        def record(self, attempt):
            raise ValueError("sink down")

    stub = StubModelClient([PARSEABLE])
    controller = RetryController(RetryPolicy.fixed(2, 0.0), diagnostic_sink=BrokenSink())
    result = asyncio.run(controller.run(_invoker(stub), ScriptedValidator(succeed_on=2)))
    assert result.attempt == 2


def test_cancelled_before_start(zero_delay_controller):
    stub = StubModelClient([PARSEABLE])
    token = CancellationToken()
    token.cancel()
    with pytest.raises(OperationCancelledError):
        asyncio.run(zero_delay_controller(3).run(_invoker(stub), ScriptedValidator(), cancel_token=token))
    assert stub.call_count == 0


def test_cancel_during_wait_stops_retrying():
    stub = StubModelClient([PARSEABLE])
    token = CancellationToken()

    async def invoke(attempt):
        token.cancel()
        return await stub.generate("p")

    controller = RetryController(RetryPolicy.fixed(5, 30.0))
    with pytest.raises(OperationCancelledError):
        asyncio.run(controller.run(invoke, ScriptedValidator(), cancel_token=token))
    assert stub.call_count == 1


def test_policy_requires_an_attempt():
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)
