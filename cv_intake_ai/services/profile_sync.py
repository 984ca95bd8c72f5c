"""Profile sync: write a validated ExtractedProfile into the user's normalized profile."""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from cv_intake_ai.schemas.cv_profile import ExtractedProfile
from cv_intake_ai.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_SKILL_CATEGORY = "General"
DEFAULT_SKILL_LEVEL = "INTERMEDIATE"
DEFAULT_PROFILE_TITLE = "Developer"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _contact_payload(profile: ExtractedProfile) -> Optional[Dict[str, Any]]:
    contact = profile.contact_info
    if contact is None:
        return None
    return {
        "phone": contact.phone,
        "address": contact.location,
        "city": None,
        "country": None,
        "linkedin": contact.linkedin,
        "github": contact.github,
        "website": contact.website,
    }


def _skills_payload(profile: ExtractedProfile) -> List[Dict[str, Any]]:
    return [
        {
            "name": s.name,
            "category": s.category or DEFAULT_SKILL_CATEGORY,
            "level": s.level or DEFAULT_SKILL_LEVEL,
        }
        for s in profile.skills or []
        if s.name
    ]


def _experience_payload(profile: ExtractedProfile) -> List[Dict[str, Any]]:
    items = []
    for exp in profile.experience or []:
        if not (exp.title and exp.company):
            continue
        # A role without an end date is the current one.
        current = not exp.end_date
        items.append({
            "title": exp.title,
            "company": exp.company,
            "description": exp.description or "",
            "location": exp.location,
            "startDate": exp.start_date or _now_iso(),
            "endDate": None if current else exp.end_date,
            "current": current,
            "responsibilities": list(exp.responsibilities),
            "techStack": list(exp.tech_stack),
        })
    return items


def _education_payload(profile: ExtractedProfile) -> List[Dict[str, Any]]:
    return [
        {
            "degree": edu.degree,
            "institution": edu.institution,
            "field": edu.field,
            "year": edu.year or str(datetime.now(timezone.utc).year),
            "location": edu.location,
            "startDate": edu.start_date or _now_iso(),
            "endDate": edu.end_date,
        }
        for edu in profile.education or []
        if edu.institution
    ]


def _achievements_payload(profile: ExtractedProfile) -> List[Dict[str, Any]]:
    return [
        {
            "title": a.title,
            "description": a.description,
            "date": a.date or _now_iso(),
            "url": a.url,
            "issuer": a.issuer,
        }
        for a in profile.achievements or []
        if a.title and a.description
    ]


def build_profile_payload(
    profile: ExtractedProfile, existing: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Map an extracted profile onto the profile-table shape.

    Extracted values win over the existing profile; skills without a category or
    level get 'General' / 'INTERMEDIATE'; experience needs title and company,
    education needs an institution, achievements need title and description.
    """
    existing = existing or {}
    contact = profile.contact_info
    return {
        "name": (contact.name if contact else None) or existing.get("name") or "Unknown",
        "title": existing.get("title") or DEFAULT_PROFILE_TITLE,
        "profileEmail": (contact.email if contact else None) or existing.get("profileEmail"),
        "about": profile.about or existing.get("about"),
        "contactInfo": _contact_payload(profile),
        "skills": _skills_payload(profile),
        "experience": _experience_payload(profile),
        "education": _education_payload(profile),
        "achievements": _achievements_payload(profile),
        "customRoles": list(existing.get("customRoles") or []),
    }


class ProfileSync(ABC):
    @abstractmethod
    async def sync(self, user_id: str, profile: ExtractedProfile) -> None:
        """Write the profile atomically; raise on failure, never apply partially."""
        ...


class InMemoryProfileSync(ProfileSync):
    """Keeps the latest payload per user; replaces it wholesale on every sync."""

    def __init__(self) -> None:
        self.profiles: Dict[str, Dict[str, Any]] = {}

    async def sync(self, user_id: str, profile: ExtractedProfile) -> None:
        payload = build_profile_payload(profile, self.profiles.get(user_id))
        self.profiles[user_id] = payload
        logger.info(
            "Synced profile for user %s: %s skills, %s experience, %s education, %s achievements",
            user_id,
            len(payload["skills"]),
            len(payload["experience"]),
            len(payload["education"]),
            len(payload["achievements"]),
        )
