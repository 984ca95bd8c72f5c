"""
Upload pipeline: intake -> store -> record -> analyze -> score -> profile sync -> terminal status.

Runs in the request that uploaded the file. Every upload that passes intake
ends in exactly one terminal status (COMPLETED or FAILED) before
process_upload returns; only a failure to persist that status can leave it
behind, and that is logged as critical.
"""

import asyncio
from typing import Any, Optional
from uuid import uuid4

from cv_intake_ai.config import ALLOWED_MIME_TYPES, MAX_UPLOAD_BYTES
from cv_intake_ai.cv_pipeline.cv_extractor import ExtractionStrategySelector
from cv_intake_ai.cv_pipeline.errors import ProfileSyncError, StorageError
from cv_intake_ai.cv_pipeline.intake import validate_upload
from cv_intake_ai.cv_pipeline.lifecycle import LifecycleManager
from cv_intake_ai.cv_pipeline.retry import CancellationToken
from cv_intake_ai.cv_pipeline.scoring import score_profile
from cv_intake_ai.schemas.cv_record import CVRecord
from cv_intake_ai.schemas.upload import UploadedFile
from cv_intake_ai.services.cache import AnalysisCache
from cv_intake_ai.services.profile_sync import ProfileSync
from cv_intake_ai.services.repository import CVRepository
from cv_intake_ai.services.storage import ObjectStorage
from cv_intake_ai.utils.helpers import content_hash
from cv_intake_ai.utils.logger import get_logger

logger = get_logger(__name__)


def build_storage_key(user_id: str, upload: UploadedFile) -> str:
    return f"cvs/{user_id}/{uuid4().hex}.{upload.extension}"


class CVUploadPipeline:
    def __init__(
        self,
        storage: ObjectStorage,
        repository: CVRepository,
        selector: ExtractionStrategySelector,
        profile_sync: ProfileSync,
        cache: Optional[AnalysisCache] = None,
        allowed_mime_types: tuple = ALLOWED_MIME_TYPES,
        max_bytes: int = MAX_UPLOAD_BYTES,
    ) -> None:
        self.storage = storage
        self.repository = repository
        self.selector = selector
        self.profile_sync = profile_sync
        self.lifecycle = LifecycleManager(repository, cache)
        self.allowed_mime_types = allowed_mime_types
        self.max_bytes = max_bytes

    @classmethod
    def from_services(cls, services: Any) -> "CVUploadPipeline":
        return cls(
            storage=services.storage,
            repository=services.repository,
            selector=services.selector,
            profile_sync=services.profile_sync,
            cache=services.cache,
        )

    async def process_upload(
        self,
        user_id: str,
        upload: Optional[UploadedFile],
        cancel_token: Optional[CancellationToken] = None,
    ) -> CVRecord:
        """
        Validate, store and analyze an uploaded CV; return the record in its final state.
        Intake errors and storage/record-creation errors are raised; analysis
        errors are not, they end as status FAILED on the returned record.
        """
        upload = validate_upload(upload, self.allowed_mime_types, self.max_bytes)
        storage_key = build_storage_key(user_id, upload)

        try:
            await self.storage.put(storage_key, upload.data, upload.content_type)
        except StorageError:
            raise
        except Exception as e:
            logger.exception("Failed to store upload for user %s", user_id)
            raise StorageError(f"Failed to store file: {e}") from e

        record = CVRecord(
            user_id=user_id,
            storage_key=storage_key,
            filename=upload.filename,
            mime_type=upload.content_type,
            size=len(upload.data),
            content_hash=content_hash(upload.data),
        )
        try:
            record = await self.repository.create(record)
        except Exception as e:
            logger.exception("Failed to create CV record for %s", storage_key)
            await self._delete_orphan(storage_key)
            raise StorageError(f"Failed to create CV record: {e}") from e

        logger.info("[cv %s] created for user %s (%s, %s bytes)", record.id, user_id, upload.filename, record.size)
        return await self.analyze(record, upload, cancel_token=cancel_token)

    async def analyze(
        self,
        record: CVRecord,
        upload: UploadedFile,
        cancel_token: Optional[CancellationToken] = None,
    ) -> CVRecord:
        current = record
        try:
            current = await self.lifecycle.mark_analyzing(current)
            outcome = await self.selector.extract(upload, cancel_token=cancel_token)
            score = score_profile(outcome.profile)
            try:
                await self.profile_sync.sync(record.user_id, outcome.profile)
            except Exception as e:
                raise ProfileSyncError(f"Profile sync failed: {e}") from e
            current = await self.lifecycle.mark_completed(current, score, outcome.extracted_text)
            logger.info("[cv %s] analysis completed via %s, score %s", record.id, outcome.strategy, score)
            return current
        except asyncio.CancelledError:
            await self._force_failed(current, "Analysis cancelled")
            raise
        except Exception as e:
            logger.error("[cv %s] analysis failed: %s", record.id, e, exc_info=True)
            return await self._force_failed(current, str(e) or e.__class__.__name__)

    async def _force_failed(self, record: CVRecord, reason: str) -> CVRecord:
        try:
            return await self.lifecycle.mark_failed(record, reason)
        except Exception:
            logger.critical(
                "[cv %s] could not record FAILED status (left at %s)",
                record.id, record.status.value, exc_info=True,
            )
            return record

    async def _delete_orphan(self, storage_key: str) -> None:
        try:
            await self.storage.delete(storage_key)
        except Exception:
            logger.exception("Failed to delete orphaned object %s", storage_key)
