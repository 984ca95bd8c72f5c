"""LLM-based extraction of a structured CV profile, behind pluggable strategies."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from cv_intake_ai.config import (
    ENABLE_DIRECT_EXTRACTION,
    ENABLE_TRADITIONAL_EXTRACTION,
    LLM_TEMPERATURE_EXTRACTION,
    MAX_PROMPT_CHARS,
)
from cv_intake_ai.cv_pipeline.errors import (
    NoExtractionStrategyAvailableError,
    OperationCancelledError,
    TextExtractionError,
)
from cv_intake_ai.cv_pipeline.prompts import DIRECT_EXTRACTION_PROMPT, build_text_extraction_prompt
from cv_intake_ai.cv_pipeline.quality import validate_profile_output
from cv_intake_ai.cv_pipeline.retry import CancellationToken, RetryController
from cv_intake_ai.cv_pipeline.text_extractor import extract_text_from_file
from cv_intake_ai.schemas.cv_profile import ContactInfo, ExtractedProfile
from cv_intake_ai.schemas.cv_record import DIRECT_EXTRACTION_TEXT_SENTINEL
from cv_intake_ai.schemas.upload import UploadedFile
from cv_intake_ai.services.llm_client import ModelClient
from cv_intake_ai.utils.helpers import extract_emails
from cv_intake_ai.utils.logger import get_logger

logger = get_logger(__name__)

TextExtractor = Callable[[bytes, str], Optional[str]]


@dataclass
class ExtractionOutcome:
    """A validated profile plus the text artifact kept on the CV record."""

    profile: ExtractedProfile
    extracted_text: str
    strategy: str
    attempt: int
    fallback: bool = False
    warnings: List[str] = field(default_factory=list)


class ExtractionStrategy(ABC):
    """One way of turning an uploaded document into an ExtractedProfile."""

    name: str = "strategy"

    @abstractmethod
    def is_available(self) -> bool:
        ...

    @abstractmethod
    async def extract(
        self, upload: UploadedFile, cancel_token: Optional[CancellationToken] = None
    ) -> ExtractionOutcome:
        ...


class DirectExtractionStrategy(ExtractionStrategy):
    """Send the original document bytes to the model; no local text step."""

    name = "direct"

    def __init__(
        self,
        model_client: Optional[ModelClient],
        controller: RetryController,
        enabled: bool = ENABLE_DIRECT_EXTRACTION,
    ) -> None:
        self.model_client = model_client
        self.controller = controller
        self.enabled = enabled

    def is_available(self) -> bool:
        return self.enabled and self.model_client is not None

    async def extract(
        self, upload: UploadedFile, cancel_token: Optional[CancellationToken] = None
    ) -> ExtractionOutcome:
        async def invoke(attempt: int) -> str:
            return await self.model_client.generate(
                DIRECT_EXTRACTION_PROMPT, document=upload, temperature=LLM_TEMPERATURE_EXTRACTION
            )

        result = await self.controller.run(
            invoke, validate_profile_output, label="direct-extraction", cancel_token=cancel_token
        )
        return ExtractionOutcome(
            profile=result.quality_items[0],
            extracted_text=DIRECT_EXTRACTION_TEXT_SENTINEL,
            strategy=self.name,
            attempt=result.attempt,
            fallback=result.fallback,
            warnings=result.warnings,
        )


class TraditionalExtractionStrategy(ExtractionStrategy):
    """Extract document text locally, then prompt the model with that text."""

    name = "traditional"

    def __init__(
        self,
        model_client: Optional[ModelClient],
        controller: RetryController,
        text_extractor: TextExtractor = extract_text_from_file,
        enabled: bool = ENABLE_TRADITIONAL_EXTRACTION,
        max_prompt_chars: int = MAX_PROMPT_CHARS,
    ) -> None:
        self.model_client = model_client
        self.controller = controller
        self.text_extractor = text_extractor
        self.enabled = enabled
        self.max_prompt_chars = max_prompt_chars

    def is_available(self) -> bool:
        return self.enabled and self.model_client is not None

    async def extract(
        self, upload: UploadedFile, cancel_token: Optional[CancellationToken] = None
    ) -> ExtractionOutcome:
        text = self.text_extractor(upload.data, upload.content_type)
        if not text or not text.strip():
            raise TextExtractionError(f"No text could be extracted from {upload.filename or 'document'}")
        prompt = build_text_extraction_prompt(text[: self.max_prompt_chars].strip())

        async def invoke(attempt: int) -> str:
            return await self.model_client.generate(prompt, temperature=LLM_TEMPERATURE_EXTRACTION)

        result = await self.controller.run(
            invoke, validate_profile_output, label="text-extraction", cancel_token=cancel_token
        )
        profile = _backfill_email(result.quality_items[0], text)
        return ExtractionOutcome(
            profile=profile,
            extracted_text=text,
            strategy=self.name,
            attempt=result.attempt,
            fallback=result.fallback,
            warnings=result.warnings,
        )


def _backfill_email(profile: ExtractedProfile, text: str) -> ExtractedProfile:
    """Use the first email found in the document when the model left it out."""
    contact = profile.contact_info
    if contact is not None and contact.email:
        return profile
    emails = extract_emails(text)
    if not emails:
        return profile
    contact = (contact or ContactInfo()).model_copy(update={"email": emails[0]})
    return profile.model_copy(update={"contact_info": contact})


class ExtractionStrategySelector:
    """
    Try the configured strategies in order. A strategy that is unavailable is
    skipped; one that fails hands over to the next. When none is left the
    upload fails with NoExtractionStrategyAvailableError.
    """

    def __init__(self, strategies: Sequence[ExtractionStrategy]) -> None:
        self.strategies = list(strategies)

    async def extract(
        self, upload: UploadedFile, cancel_token: Optional[CancellationToken] = None
    ) -> ExtractionOutcome:
        last_error: Optional[Exception] = None
        for strategy in self.strategies:
            if not strategy.is_available():
                logger.info("Extraction strategy '%s' is disabled or unavailable", strategy.name)
                continue
            try:
                outcome = await strategy.extract(upload, cancel_token=cancel_token)
            except OperationCancelledError:
                raise
            except Exception as e:
                logger.warning("Extraction strategy '%s' failed: %s", strategy.name, e)
                last_error = e
                continue
            logger.info(
                "Extraction strategy '%s' succeeded on attempt %s%s",
                strategy.name, outcome.attempt, " (fallback)" if outcome.fallback else "",
            )
            return outcome

        if last_error is not None:
            raise NoExtractionStrategyAvailableError(
                f"All extraction strategies failed; last error: {last_error}"
            ) from last_error
        raise NoExtractionStrategyAvailableError("No extraction strategy is available")
