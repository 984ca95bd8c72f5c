"""Improvement suggestions for an already structured CV, generated through the retry controller."""

from collections import Counter
from typing import Any, Dict, List, Optional, Union

from cv_intake_ai.config import (
    LLM_PROVIDER,
    LLM_TEMPERATURE_SUGGESTIONS,
    SUGGESTION_CACHE_PREFIX,
    SUGGESTION_CACHE_TTL_SECONDS,
    SUGGESTION_MAX_ATTEMPTS,
)
from cv_intake_ai.cv_pipeline.errors import ModelUnavailableError
from cv_intake_ai.cv_pipeline.prompts import build_suggestion_prompt
from cv_intake_ai.cv_pipeline.quality import validate_suggestions_output
from cv_intake_ai.cv_pipeline.retry import (
    CancellationToken,
    RetryController,
    RetryPolicy,
    RetryResult,
    Validator,
)
from cv_intake_ai.schemas.cv_profile import ExtractedProfile
from cv_intake_ai.schemas.suggestion import SuggestionItem, SuggestionSection, SuggestionSummary
from cv_intake_ai.services.cache import AnalysisCache
from cv_intake_ai.services.llm_client import ModelClient
from cv_intake_ai.utils.helpers import data_hash
from cv_intake_ai.utils.logger import get_logger

logger = get_logger(__name__)


def filter_contact_suggestions(items: List[SuggestionItem]) -> List[SuggestionItem]:
    """Drop contactInfo suggestions; the removed count goes to the log only."""
    kept = [s for s in items if s.section != SuggestionSection.CONTACT_INFO]
    removed = len(items) - len(kept)
    if removed:
        logger.info("Filtered out %s contactInfo suggestions", removed)
    return kept


def summarize_suggestions(items: List[SuggestionItem]) -> SuggestionSummary:
    categories = Counter(s.suggestion_type.value for s in items)
    return SuggestionSummary(
        total_suggestions=len(items),
        high_priority=sum(1 for s in items if s.priority == "high"),
        categories=dict(categories),
    )


def build_suggestion_response(result: RetryResult, provider: str = LLM_PROVIDER) -> Dict[str, Any]:
    """Assemble the response body for a successful or degraded run."""
    items = filter_contact_suggestions(list(result.quality_items))
    response: Dict[str, Any] = {
        "suggestions": [s.to_payload() for s in items],
        "summary": summarize_suggestions(items).model_dump(by_alias=True),
        "fromCache": False,
        "provider": provider,
        "attempt": result.attempt,
        "validationWarnings": list(result.warnings),
    }
    if result.fallback:
        response["fallback"] = True
        response["validationErrors"] = list(result.errors)
    return response


class SuggestionService:
    """Generates (and caches) improvement suggestions for a structured CV."""

    def __init__(
        self,
        model_client: Optional[ModelClient],
        controller: Optional[RetryController] = None,
        cache: Optional[AnalysisCache] = None,
        provider: str = LLM_PROVIDER,
        cache_ttl_seconds: int = SUGGESTION_CACHE_TTL_SECONDS,
        validator: Validator = validate_suggestions_output,
    ) -> None:
        self.model_client = model_client
        self.controller = controller or RetryController(RetryPolicy(max_attempts=SUGGESTION_MAX_ATTEMPTS))
        self.cache = cache
        self.provider = provider
        self.cache_ttl_seconds = cache_ttl_seconds
        self.validator = validator

    def is_available(self) -> bool:
        return self.model_client is not None

    @staticmethod
    def cache_key(cv_payload: Dict[str, Any]) -> str:
        return f"{SUGGESTION_CACHE_PREFIX}{data_hash(cv_payload)}"

    async def generate(
        self,
        cv_data: Union[ExtractedProfile, Dict[str, Any]],
        cancel_token: Optional[CancellationToken] = None,
    ) -> Dict[str, Any]:
        """
        Return the suggestion response body. Raises ModelUnavailableError when no
        model is configured and RetryExhaustedError when every attempt failed.
        """
        if self.model_client is None:
            raise ModelUnavailableError("No model client is configured for suggestions")

        payload = cv_data.to_payload() if isinstance(cv_data, ExtractedProfile) else dict(cv_data)
        key = self.cache_key(payload)
        cached = await self._cache_get(key)
        if cached is not None:
            logger.info("Returning cached suggestions for %s", key)
            return {**cached, "fromCache": True, "provider": self.provider}

        prompt = build_suggestion_prompt(payload)

        async def invoke(attempt: int) -> str:
            return await self.model_client.generate(prompt, temperature=LLM_TEMPERATURE_SUGGESTIONS)

        result = await self.controller.run(
            invoke, self.validator, label="suggestions", cancel_token=cancel_token
        )
        response = build_suggestion_response(result, self.provider)
        if not result.fallback:
            await self._cache_set(key, response)
        return response

    async def _cache_get(self, key: str) -> Optional[Dict[str, Any]]:
        if self.cache is None:
            return None
        try:
            return await self.cache.get(key)
        except Exception as e:
            logger.warning("Suggestion cache read failed: %s", e)
            return None

    async def _cache_set(self, key: str, response: Dict[str, Any]) -> None:
        if self.cache is None:
            return
        try:
            await self.cache.set(key, response, self.cache_ttl_seconds)
        except Exception as e:
            logger.warning("Suggestion cache write failed: %s", e)
