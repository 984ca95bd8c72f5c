"""Structured CV profile extracted from an uploaded resume (PDF/DOCX/TXT)."""

import re
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

SKILL_LEVELS = ("BEGINNER", "INTERMEDIATE", "ADVANCED", "EXPERT")


class _CVModel(BaseModel):
    """Base for CV models: camelCase aliases accepted, blank strings treated as missing."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)

    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ContactInfo(_CVModel):
    name: Optional[str] = Field(default=None, description="Full name")
    email: Optional[str] = Field(default=None, description="Email address")
    phone: Optional[str] = Field(default=None, description="Phone number")
    location: Optional[str] = Field(default=None, description="City / country")
    linkedin: Optional[str] = Field(default=None, description="LinkedIn URL")
    github: Optional[str] = Field(default=None, description="GitHub URL")
    website: Optional[str] = Field(default=None, description="Personal website URL")

    def is_empty(self) -> bool:
        return all(v is None for v in self.model_dump().values())


class Skill(_CVModel):
    name: Optional[str] = Field(default=None, description="Skill name")
    category: Optional[str] = Field(default=None, description="e.g. Programming Languages, Tools")
    level: Optional[str] = Field(default=None, description="BEGINNER | INTERMEDIATE | ADVANCED | EXPERT")

    @model_validator(mode="before")
    @classmethod
    def _from_plain_string(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"name": value}
        return value

    @field_validator("level", mode="after")
    @classmethod
    def _normalize_level(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        upper = value.strip().upper()
        return upper if upper in SKILL_LEVELS else None


class ExperienceItem(_CVModel):
    title: Optional[str] = None
    company: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[str] = Field(default=None, alias="startDate")
    end_date: Optional[str] = Field(default=None, alias="endDate")
    current: Optional[bool] = None
    responsibilities: List[str] = Field(default_factory=list)
    tech_stack: List[str] = Field(default_factory=list, alias="techStack")

    @field_validator("responsibilities", "tech_stack", mode="before")
    @classmethod
    def _string_list(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [str(v) for v in value if v is not None and str(v).strip()]
        if isinstance(value, str):
            return [value] if value.strip() else []
        return value


class EducationItem(_CVModel):
    institution: Optional[str] = None
    degree: Optional[str] = None
    field: Optional[str] = None
    year: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[str] = Field(default=None, alias="startDate")
    end_date: Optional[str] = Field(default=None, alias="endDate")


class AchievementItem(_CVModel):
    title: Optional[str] = None
    description: Optional[str] = None
    date: Optional[str] = None
    url: Optional[str] = None
    issuer: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _from_plain_string(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"title": value}
        return value


class ExtractedProfile(_CVModel):
    """
    Structured CV data produced by the extraction pipeline.
    A section the document does not contain is None, never an empty placeholder:
    empty lists, all-empty contact info and items without their identifying
    field are normalized to missing so they cannot inflate the score.
    """

    contact_info: Optional[ContactInfo] = Field(default=None, alias="contactInfo")
    about: Optional[str] = Field(default=None, description="Professional summary")
    skills: Optional[List[Skill]] = None
    experience: Optional[List[ExperienceItem]] = None
    education: Optional[List[EducationItem]] = None
    achievements: Optional[List[AchievementItem]] = None
    total_years_experience: Optional[float] = Field(default=None, alias="totalYearsExperience")

    @field_validator("total_years_experience", mode="before")
    @classmethod
    def _lenient_years(cls, value: Any) -> Any:
        if isinstance(value, str):
            match = re.search(r"\d+(?:\.\d+)?", value)
            return float(match.group()) if match else None
        return value

    @field_validator("contact_info", mode="after")
    @classmethod
    def _drop_empty_contact(cls, value: Optional[ContactInfo]) -> Optional[ContactInfo]:
        if value is None or value.is_empty():
            return None
        return value

    @field_validator("skills", mode="after")
    @classmethod
    def _drop_unnamed_skills(cls, value: Optional[List[Skill]]) -> Optional[List[Skill]]:
        return _none_if_empty([s for s in value or [] if s.name])

    @field_validator("experience", mode="after")
    @classmethod
    def _drop_blank_experience(cls, value: Optional[List[ExperienceItem]]) -> Optional[List[ExperienceItem]]:
        return _none_if_empty([e for e in value or [] if e.title or e.company])

    @field_validator("education", mode="after")
    @classmethod
    def _drop_blank_education(cls, value: Optional[List[EducationItem]]) -> Optional[List[EducationItem]]:
        return _none_if_empty([e for e in value or [] if e.institution or e.degree])

    @field_validator("achievements", mode="after")
    @classmethod
    def _drop_blank_achievements(cls, value: Optional[List[AchievementItem]]) -> Optional[List[AchievementItem]]:
        return _none_if_empty([a for a in value or [] if a.title or a.description])

    def is_empty(self) -> bool:
        """True when no section carries any data."""
        return (
            self.contact_info is None
            and self.about is None
            and not self.skills
            and not self.experience
            and not self.education
            and not self.achievements
        )

    def to_payload(self) -> dict:
        """camelCase JSON-ready dict without missing sections."""
        return self.model_dump(by_alias=True, exclude_none=True)


def _none_if_empty(items: list) -> Optional[list]:
    return items or None
