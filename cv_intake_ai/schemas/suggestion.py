"""Improvement suggestion items for a structured CV."""

from enum import Enum
from typing import Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class SuggestionSection(str, Enum):
    CONTACT_INFO = "contactInfo"
    ABOUT = "about"
    SKILLS = "skills"
    EXPERIENCE = "experience"
    EDUCATION = "education"
    ACHIEVEMENTS = "achievements"


class SuggestionType(str, Enum):
    WORDING = "wording"
    ADD_CONTENT = "add_content"
    REMOVE_CONTENT = "remove_content"
    REORDER = "reorder"
    FORMAT = "format"


class SuggestionItem(BaseModel):
    """A single validated improvement suggestion."""

    model_config = ConfigDict(populate_by_name=True)

    section: SuggestionSection = Field(..., description="CV section the suggestion targets")
    suggestion_type: SuggestionType = Field(..., alias="suggestionType")
    original_text: Optional[str] = Field(default=None, alias="originalText")
    suggested_text: Optional[str] = Field(default=None, alias="suggestedText")
    reasoning: str = Field(..., min_length=10, max_length=500)
    target_id: Optional[str] = Field(default=None, alias="targetId")
    target_field: Optional[str] = Field(default=None, alias="targetField")
    priority: Literal["high", "medium", "low"] = Field(default="medium")

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class SuggestionSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_suggestions: int = Field(..., alias="totalSuggestions")
    high_priority: int = Field(..., alias="highPriority")
    categories: Dict[str, int] = Field(default_factory=dict, description="Count per suggestion type")
