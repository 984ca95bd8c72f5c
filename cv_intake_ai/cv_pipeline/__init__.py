"""CV pipeline building blocks: intake, response repair, quality validation, retries, scoring."""

from .errors import (
    PipelineError,
    IntakeError,
    RetryExhaustedError,
)
from .intake import validate_upload
from .quality import ValidationReport, validate_profile_output, validate_suggestions_output
from .response_repair import parse_json_candidate, repair_json_text
from .retry import CancellationToken, RetryController, RetryPolicy, RetryResult, RetryState
from .scoring import score_profile

__all__ = [
    "PipelineError",
    "IntakeError",
    "RetryExhaustedError",
    "validate_upload",
    "ValidationReport",
    "validate_profile_output",
    "validate_suggestions_output",
    "repair_json_text",
    "parse_json_candidate",
    "CancellationToken",
    "RetryController",
    "RetryPolicy",
    "RetryResult",
    "RetryState",
    "score_profile",
]
