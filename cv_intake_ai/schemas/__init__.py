"""Schema exports."""

from .cv_profile import (
    AchievementItem,
    ContactInfo,
    EducationItem,
    ExperienceItem,
    ExtractedProfile,
    Skill,
)
from .cv_record import AnalysisStatus, CVRecord, can_transition
from .suggestion import SuggestionItem, SuggestionSection, SuggestionSummary, SuggestionType
from .upload import UploadedFile

__all__ = [
    "AchievementItem",
    "AnalysisStatus",
    "CVRecord",
    "ContactInfo",
    "EducationItem",
    "ExperienceItem",
    "ExtractedProfile",
    "Skill",
    "SuggestionItem",
    "SuggestionSection",
    "SuggestionSummary",
    "SuggestionType",
    "UploadedFile",
    "can_transition",
]
