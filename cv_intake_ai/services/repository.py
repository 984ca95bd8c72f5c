"""Persistence of CV records."""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from cv_intake_ai.schemas.cv_record import CVRecord


class CVRepository(ABC):
    @abstractmethod
    async def create(self, record: CVRecord) -> CVRecord:
        ...

    @abstractmethod
    async def update(self, cv_id: str, **fields: Any) -> CVRecord:
        """Apply field updates (model field names) and bump updated_at; KeyError if unknown."""
        ...

    @abstractmethod
    async def get(self, cv_id: str) -> Optional[CVRecord]:
        ...


class InMemoryCVRepository(CVRepository):
    def __init__(self) -> None:
        self._records: Dict[str, CVRecord] = {}

    async def create(self, record: CVRecord) -> CVRecord:
        self._records[record.id] = record.model_copy()
        return record.model_copy()

    async def update(self, cv_id: str, **fields: Any) -> CVRecord:
        current = self._records[cv_id]
        updated = current.model_copy(
            update={**fields, "updated_at": datetime.now(timezone.utc)}
        )
        self._records[cv_id] = updated
        return updated.model_copy()

    async def get(self, cv_id: str) -> Optional[CVRecord]:
        record = self._records.get(cv_id)
        return record.model_copy() if record else None
