"""
Retry controller: bounded invoke -> repair -> parse -> validate attempts.

One run moves through Attempting(n) until it either Succeeded (an attempt passed
validation), Degraded (the last attempt failed but still yielded quality items)
or Exhausted (RetryExhaustedError). Attempts are strictly sequential; every
attempt is reported to the diagnostic sink before the next one starts.
"""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional

from cv_intake_ai.config import RETRY_DELAY_SECONDS, SUGGESTION_MAX_ATTEMPTS
from cv_intake_ai.cv_pipeline.errors import (
    EmptyModelResponseError,
    OperationCancelledError,
    QualityValidationError,
    RetryExhaustedError,
)
from cv_intake_ai.cv_pipeline.quality import ValidationReport
from cv_intake_ai.cv_pipeline.response_repair import parse_json_candidate, repair_json_text
from cv_intake_ai.utils.logger import get_logger

logger = get_logger(__name__)

ModelInvoker = Callable[[int], Awaitable[str]]
Validator = Callable[[Any], ValidationReport]


def fixed_delay(seconds: float) -> Callable[[int], float]:
    """Delay function that waits the same time after every attempt."""
    return lambda attempt: seconds


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget plus delay (seconds) to wait after a failed attempt n."""

    max_attempts: int = SUGGESTION_MAX_ATTEMPTS
    delay: Callable[[int], float] = field(default=fixed_delay(RETRY_DELAY_SECONDS))

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    @classmethod
    def fixed(cls, max_attempts: int, delay_seconds: float = RETRY_DELAY_SECONDS) -> "RetryPolicy":
        return cls(max_attempts=max_attempts, delay=fixed_delay(delay_seconds))


class CancellationToken:
    """Cooperative cancellation shared between a request and its retry loop."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise OperationCancelledError("Operation cancelled")

    async def sleep(self, seconds: float) -> None:
        """Wait up to `seconds`; raise OperationCancelledError as soon as cancelled."""
        self.raise_if_cancelled()
        if seconds <= 0:
            return
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return
        self.raise_if_cancelled()


class RetryState(str, Enum):
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    DEGRADED = "degraded"
    EXHAUSTED = "exhausted"


@dataclass
class AttemptRecord:
    """Diagnostics for a single attempt; handed to the diagnostic sink, never persisted."""

    label: str
    attempt: int
    max_attempts: int
    raw_output: Optional[str] = None
    parsed: Any = None
    validation: Optional[ValidationReport] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None
    duration_ms: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.validation is not None and self.validation.succeeded


@dataclass
class RetryResult:
    """Outcome of a run that did not exhaust: full success or degraded fallback."""

    state: RetryState
    attempt: int
    parsed: Any
    quality_items: List[Any]
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def fallback(self) -> bool:
        return self.state == RetryState.DEGRADED


class RetryController:
    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        diagnostic_sink: Optional[Any] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ) -> None:
        self.policy = policy or RetryPolicy()
        self.diagnostic_sink = diagnostic_sink
        self._sleep = sleep or asyncio.sleep

    async def run(
        self,
        invoke: ModelInvoker,
        validate: Validator,
        label: str = "model",
        cancel_token: Optional[CancellationToken] = None,
    ) -> RetryResult:
        """
        Run attempts until one validates. `invoke(attempt)` returns the raw model
        text; any exception it raises only fails that attempt.
        """
        max_attempts = self.policy.max_attempts
        attempt = 0
        last_error = "no attempt was made"

        while attempt < max_attempts:
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
            attempt += 1
            record = AttemptRecord(label=label, attempt=attempt, max_attempts=max_attempts)
            started = time.perf_counter()
            result: Optional[RetryResult] = None
            try:
                raw = await invoke(attempt)
                record.raw_output = raw
                if not raw or not raw.strip():
                    raise EmptyModelResponseError("Model returned an empty response")
                parsed = parse_json_candidate(repair_json_text(raw), raw=raw)
                record.parsed = parsed
                report = validate(parsed)
                record.validation = report

                if report.succeeded:
                    result = RetryResult(
                        RetryState.SUCCEEDED, attempt, parsed, list(report.quality_items),
                        errors=list(report.errors), warnings=list(report.warnings),
                    )
                elif attempt == max_attempts and report.quality_items:
                    result = RetryResult(
                        RetryState.DEGRADED, attempt, parsed, list(report.quality_items),
                        errors=list(report.errors), warnings=list(report.warnings),
                    )
                else:
                    raise QualityValidationError(report.errors, report.warnings)
            except Exception as e:
                last_error = str(e) or e.__class__.__name__
                record.error = last_error
                record.error_kind = getattr(e, "kind", e.__class__.__name__)
            finally:
                record.duration_ms = (time.perf_counter() - started) * 1000
                self._report(record)

            if result is not None:
                if result.fallback:
                    logger.warning(
                        "%s: attempt %s/%s failed validation; returning %s partial items as fallback",
                        label, attempt, max_attempts, len(result.quality_items),
                    )
                return result

            if attempt < max_attempts:
                delay = self.policy.delay(attempt)
                if cancel_token is not None:
                    await cancel_token.sleep(delay)
                elif delay > 0:
                    await self._sleep(delay)

        logger.error("%s: all %s attempts failed; last error: %s", label, max_attempts, last_error)
        raise RetryExhaustedError(max_attempts, last_error)

    def _report(self, record: AttemptRecord) -> None:
        if self.diagnostic_sink is None:
            return
        try:
            self.diagnostic_sink.record(record)
        except Exception:
            logger.exception("Diagnostic sink failed for %s attempt %s", record.label, record.attempt)
