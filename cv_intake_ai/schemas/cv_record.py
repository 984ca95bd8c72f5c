"""CV record persisted per uploaded document, with its analysis status lifecycle."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class AnalysisStatus(str, Enum):
    PENDING = "PENDING"
    ANALYZING = "ANALYZING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (AnalysisStatus.COMPLETED, AnalysisStatus.FAILED)


# Forward-only moves; terminal states have no way out without a new upload.
ALLOWED_TRANSITIONS: dict[AnalysisStatus, frozenset[AnalysisStatus]] = {
    AnalysisStatus.PENDING: frozenset({AnalysisStatus.ANALYZING, AnalysisStatus.FAILED}),
    AnalysisStatus.ANALYZING: frozenset({AnalysisStatus.COMPLETED, AnalysisStatus.FAILED}),
    AnalysisStatus.COMPLETED: frozenset(),
    AnalysisStatus.FAILED: frozenset(),
}

# Stored as extractedText when the model read the document itself.
DIRECT_EXTRACTION_TEXT_SENTINEL = "[direct-extraction: text not extracted locally]"


def can_transition(current: AnalysisStatus, target: AnalysisStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CVRecord(BaseModel):
    """One uploaded CV document and the visible state of its analysis."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: uuid4().hex, description="Opaque record id")
    user_id: str = Field(..., alias="userId", description="Owning user id")
    storage_key: str = Field(..., alias="storageKey", description="Object storage key of the raw file")
    filename: str = Field(..., description="Original file name as uploaded")
    mime_type: str = Field(..., alias="mimeType")
    size: int = Field(..., ge=0, description="Size of the stored bytes")
    content_hash: str = Field(default="", alias="contentHash", description="SHA-256 of the raw bytes")
    status: AnalysisStatus = Field(default=AnalysisStatus.PENDING)
    improvement_score: Optional[int] = Field(default=None, ge=0, le=100, alias="improvementScore")
    extracted_text: Optional[str] = Field(default=None, alias="extractedText")
    failure_reason: Optional[str] = Field(default=None, alias="failureReason")
    created_at: datetime = Field(default_factory=_utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=_utcnow, alias="updatedAt")
