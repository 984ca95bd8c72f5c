"""CV record status lifecycle: PENDING -> ANALYZING -> COMPLETED | FAILED."""

from typing import Any, Optional

from cv_intake_ai.cv_pipeline.errors import StatusTransitionError
from cv_intake_ai.schemas.cv_record import AnalysisStatus, CVRecord, can_transition
from cv_intake_ai.services.cache import AnalysisCache
from cv_intake_ai.services.repository import CVRepository
from cv_intake_ai.utils.logger import get_logger

logger = get_logger(__name__)

CACHE_INVALIDATION_PATTERNS = ("cv:{user_id}:*", "analysis:{user_id}:*")


class LifecycleManager:
    """Moves CV records forward through the status machine and persists each move."""

    def __init__(self, repository: CVRepository, cache: Optional[AnalysisCache] = None) -> None:
        self.repository = repository
        self.cache = cache

    async def _transition(
        self, record: CVRecord, target: AnalysisStatus, **fields: Any
    ) -> CVRecord:
        if not can_transition(record.status, target):
            raise StatusTransitionError(
                f"Cannot move CV {record.id} from {record.status.value} to {target.value}"
            )
        updated = await self.repository.update(record.id, status=target, **fields)
        logger.info("[cv %s] %s -> %s", record.id, record.status.value, target.value)
        return updated

    async def mark_analyzing(self, record: CVRecord) -> CVRecord:
        return await self._transition(record, AnalysisStatus.ANALYZING)

    async def mark_completed(self, record: CVRecord, score: int, extracted_text: str) -> CVRecord:
        return await self._transition(
            record,
            AnalysisStatus.COMPLETED,
            improvement_score=max(0, min(100, int(score))),
            extracted_text=extracted_text,
        )

    async def mark_failed(self, record: CVRecord, reason: str) -> CVRecord:
        """Force FAILED and invalidate the user's cached analyses (cache errors only logged)."""
        updated = await self._transition(record, AnalysisStatus.FAILED, failure_reason=reason)
        await self._invalidate_cache(record.user_id)
        return updated

    async def _invalidate_cache(self, user_id: str) -> None:
        if self.cache is None:
            return
        for pattern in CACHE_INVALIDATION_PATTERNS:
            try:
                await self.cache.clear_pattern(pattern.format(user_id=user_id))
            except Exception as e:
                logger.warning("Cache invalidation failed for pattern %s: %s", pattern, e)
