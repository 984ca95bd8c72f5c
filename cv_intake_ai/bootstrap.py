"""Process bootstrap: wire the pipeline's collaborators explicitly, no module-level singletons."""

from dataclasses import dataclass
from typing import Optional

from cv_intake_ai.config import (
    EXTRACTION_MAX_ATTEMPTS,
    RETRY_DELAY_SECONDS,
    SUGGESTION_MAX_ATTEMPTS,
)
from cv_intake_ai.cv_pipeline.cv_extractor import (
    DirectExtractionStrategy,
    ExtractionStrategySelector,
    TraditionalExtractionStrategy,
)
from cv_intake_ai.cv_pipeline.retry import RetryController, RetryPolicy
from cv_intake_ai.cv_pipeline.suggestions import SuggestionService
from cv_intake_ai.services.cache import AnalysisCache, InMemoryAnalysisCache
from cv_intake_ai.services.diagnostics import DiagnosticSink, LoggingDiagnosticSink
from cv_intake_ai.services.llm_client import ModelClient, get_model_client
from cv_intake_ai.services.profile_sync import InMemoryProfileSync, ProfileSync
from cv_intake_ai.services.repository import CVRepository, InMemoryCVRepository
from cv_intake_ai.services.storage import InMemoryObjectStorage, ObjectStorage


@dataclass
class PipelineServices:
    """Everything the upload pipeline and the suggestion flow need, owned by the process."""

    storage: ObjectStorage
    repository: CVRepository
    profile_sync: ProfileSync
    cache: AnalysisCache
    diagnostic_sink: DiagnosticSink
    model_client: Optional[ModelClient]
    selector: ExtractionStrategySelector
    suggestions: SuggestionService


def build_services(
    model_client: Optional[ModelClient] = None,
    storage: Optional[ObjectStorage] = None,
    repository: Optional[CVRepository] = None,
    profile_sync: Optional[ProfileSync] = None,
    cache: Optional[AnalysisCache] = None,
    diagnostic_sink: Optional[DiagnosticSink] = None,
    extraction_policy: Optional[RetryPolicy] = None,
    suggestion_policy: Optional[RetryPolicy] = None,
    enable_direct: Optional[bool] = None,
    enable_traditional: Optional[bool] = None,
) -> PipelineServices:
    """
    Build the default wiring from configuration. Any collaborator can be
    passed in to replace its in-memory default.
    """
    if model_client is None:
        model_client = get_model_client()
    storage = storage or InMemoryObjectStorage()
    repository = repository or InMemoryCVRepository()
    profile_sync = profile_sync or InMemoryProfileSync()
    cache = cache or InMemoryAnalysisCache()
    diagnostic_sink = diagnostic_sink or LoggingDiagnosticSink()

    extraction_controller = RetryController(
        extraction_policy or RetryPolicy.fixed(EXTRACTION_MAX_ATTEMPTS, RETRY_DELAY_SECONDS),
        diagnostic_sink=diagnostic_sink,
    )
    direct_kwargs = {} if enable_direct is None else {"enabled": enable_direct}
    traditional_kwargs = {} if enable_traditional is None else {"enabled": enable_traditional}
    selector = ExtractionStrategySelector([
        DirectExtractionStrategy(model_client, extraction_controller, **direct_kwargs),
        TraditionalExtractionStrategy(model_client, extraction_controller, **traditional_kwargs),
    ])

    suggestion_controller = RetryController(
        suggestion_policy or RetryPolicy.fixed(SUGGESTION_MAX_ATTEMPTS, RETRY_DELAY_SECONDS),
        diagnostic_sink=diagnostic_sink,
    )
    suggestions = SuggestionService(model_client, suggestion_controller, cache=cache)

    return PipelineServices(
        storage=storage,
        repository=repository,
        profile_sync=profile_sync,
        cache=cache,
        diagnostic_sink=diagnostic_sink,
        model_client=model_client,
        selector=selector,
        suggestions=suggestions,
    )
