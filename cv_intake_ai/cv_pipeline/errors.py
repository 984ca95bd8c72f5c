"""Exception hierarchy for the CV pipeline. Each error carries a stable `kind`."""

from typing import List, Optional


class PipelineError(Exception):
    kind = "PIPELINE_ERROR"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.kind)
        self.message = message or self.kind


# ----- Intake (never retried, surfaced as client errors) -----


class IntakeError(PipelineError):
    kind = "INTAKE_ERROR"


class MissingFileError(IntakeError):
    kind = "MISSING_FILE"


class UnsupportedTypeError(IntakeError):
    kind = "UNSUPPORTED_TYPE"


class EmptyFileError(IntakeError):
    kind = "EMPTY_FILE"

    def __init__(self, message: str, details: str = "") -> None:
        super().__init__(message)
        self.details = details


class TooLargeError(IntakeError):
    kind = "TOO_LARGE"


# ----- Attempt-level failures (retryable inside the attempt budget) -----


class EmptyModelResponseError(PipelineError):
    kind = "EMPTY_MODEL_RESPONSE"


class JSONParseError(PipelineError):
    kind = "JSON_PARSE"

    def __init__(self, message: str, head: str = "", tail: str = "") -> None:
        super().__init__(message)
        self.head = head
        self.tail = tail


class QualityValidationError(PipelineError):
    kind = "QUALITY_VALIDATION"

    def __init__(self, errors: List[str], warnings: Optional[List[str]] = None) -> None:
        super().__init__(", ".join(errors) if errors else "Validation produced no quality items")
        self.errors = list(errors)
        self.warnings = list(warnings or [])


# ----- Terminal failures -----


class RetryExhaustedError(PipelineError):
    kind = "RETRY_EXHAUSTED"

    def __init__(self, attempts: int, last_error: str) -> None:
        super().__init__(f"Failed after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


class OperationCancelledError(PipelineError):
    kind = "CANCELLED"


class NoExtractionStrategyAvailableError(PipelineError):
    kind = "NO_EXTRACTION_STRATEGY"


class TextExtractionError(PipelineError):
    kind = "TEXT_EXTRACTION"


class ProfileSyncError(PipelineError):
    kind = "PROFILE_SYNC"


class StatusTransitionError(PipelineError):
    kind = "INVALID_TRANSITION"


class StorageError(PipelineError):
    kind = "STORAGE"


class ModelUnavailableError(PipelineError):
    kind = "MODEL_UNAVAILABLE"
