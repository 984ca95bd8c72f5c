"""Diagnostic sinks for retry attempts."""

from abc import ABC, abstractmethod
from typing import List

from cv_intake_ai.cv_pipeline.retry import AttemptRecord
from cv_intake_ai.utils.helpers import truncate_for_log
from cv_intake_ai.utils.logger import get_logger

logger = get_logger(__name__)


class DiagnosticSink(ABC):
    @abstractmethod
    def record(self, attempt: AttemptRecord) -> None:
        ...


class LoggingDiagnosticSink(DiagnosticSink):
    """One INFO line per attempt; raw output (truncated) at DEBUG."""

    def record(self, attempt: AttemptRecord) -> None:
        if attempt.succeeded:
            outcome = "success"
        elif attempt.validation is not None:
            outcome = f"invalid ({len(attempt.validation.quality_items)} quality items)"
        else:
            outcome = f"error {attempt.error_kind}"
        logger.info(
            "%s attempt %s/%s: %s in %.0f ms%s",
            attempt.label,
            attempt.attempt,
            attempt.max_attempts,
            outcome,
            attempt.duration_ms,
            f" - {attempt.error}" if attempt.error else "",
        )
        if attempt.validation is not None and attempt.validation.warnings:
            logger.debug("%s warnings: %s", attempt.label, "; ".join(attempt.validation.warnings))
        if attempt.raw_output is not None:
            logger.debug("%s raw output: %s", attempt.label, truncate_for_log(attempt.raw_output))


class CollectingDiagnosticSink(DiagnosticSink):
    """Keeps every attempt in memory, for debugging sessions and tests."""

    def __init__(self) -> None:
        self.records: List[AttemptRecord] = []

    def record(self, attempt: AttemptRecord) -> None:
        self.records.append(attempt)
