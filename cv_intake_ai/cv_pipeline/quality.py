"""Quality validation of parsed model output (suggestions and extracted profiles)."""

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ValidationError

from cv_intake_ai.schemas.cv_profile import (
    AchievementItem,
    EducationItem,
    ExperienceItem,
    ExtractedProfile,
    Skill,
)
from cv_intake_ai.schemas.suggestion import SuggestionItem, SuggestionSection, SuggestionType


@dataclass
class ValidationReport:
    """Verdict on one parsed model response. Success needs is_valid and quality items."""

    is_valid: bool
    quality_items: List[Any] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.is_valid and len(self.quality_items) > 0


def format_validation_errors(error: ValidationError) -> List[str]:
    """Human-readable 'path: message' strings from a pydantic ValidationError."""
    return [
        f"{'.'.join(str(p) for p in err['loc']) or 'root'}: {err['msg']}"
        for err in error.errors()
    ]


def field_errors(error: ValidationError) -> Dict[str, List[str]]:
    """Group pydantic errors by top-level field name."""
    grouped: Dict[str, List[str]] = {}
    for err in error.errors():
        key = str(err["loc"][0]) if err["loc"] else "root"
        grouped.setdefault(key, []).append(err["msg"])
    return grouped


# ---------------------------------------------------------------------------
# Suggestions
# ---------------------------------------------------------------------------

SECTION_ALIASES = {
    "summary": SuggestionSection.ABOUT,
    "certificates": SuggestionSection.ACHIEVEMENTS,
    "contact": SuggestionSection.CONTACT_INFO,
}
_SECTIONS_BY_NAME = {s.value.lower(): s for s in SuggestionSection}
_TYPES_BY_NAME = {t.value: t for t in SuggestionType}

PLACEHOLDERS = ("[placeholder]", "[company]", "[role]", "[name]", "todo", "fixme")
UNPROFESSIONAL_WORDS = ("awesome", "cool", "amazing", "super", "totally")
REASONING_MIN_CHARS = 10
REASONING_MAX_CHARS = 500


def sanitize_suggestions(data: Any) -> Any:
    """Accept common field-name variants the model uses instead of the schema names."""
    if not isinstance(data, dict) or not isinstance(data.get("suggestions"), list):
        return data
    cleaned = []
    for item in data["suggestions"]:
        if isinstance(item, dict):
            item = dict(item)
            if item.get("suggestedContent") and not item.get("suggestedText"):
                item["suggestedText"] = item["suggestedContent"]
            if not item.get("reasoning") and item.get("description"):
                item["reasoning"] = item["description"]
        cleaned.append(item)
    return {**data, "suggestions": cleaned}


def resolve_section(raw_section: str) -> Tuple[Optional[SuggestionSection], Optional[str]]:
    """
    Map a model-provided section ('skills', 'experience[1].description', 'summary')
    to (main section, field path or None). Unknown sections map to (None, None).
    """
    path = raw_section.strip()
    main = re.split(r"[\[.]", path, maxsplit=1)[0].strip().lower()
    section = SECTION_ALIASES.get(main) or _SECTIONS_BY_NAME.get(main)
    if section is None:
        return (None, None)
    return (section, path if path.lower() != main else None)


def _pointer(value: Any) -> Optional[str]:
    """targetId / targetField are opaque here: ints and strings become strings, anything else is dropped."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _check_suggestion(raw: Any) -> Tuple[Optional[SuggestionItem], List[str]]:
    if not isinstance(raw, dict):
        return (None, ["Suggestion is not a valid object"])

    problems: List[str] = []
    for name in ("section", "suggestionType", "reasoning"):
        if not isinstance(raw.get(name), str) or not raw[name].strip():
            problems.append(f"Missing or invalid {name}")

    section, target_field = (None, None)
    if isinstance(raw.get("section"), str) and raw["section"].strip():
        section, target_field = resolve_section(raw["section"])
        if section is None:
            problems.append(f"Invalid section: {raw['section']}")

    suggestion_type = None
    if isinstance(raw.get("suggestionType"), str) and raw["suggestionType"].strip():
        suggestion_type = _TYPES_BY_NAME.get(raw["suggestionType"].strip().lower())
        if suggestion_type is None:
            problems.append(f"Invalid suggestion type: {raw['suggestionType']}")

    reasoning = raw.get("reasoning")
    if isinstance(reasoning, str) and reasoning.strip():
        if len(reasoning) < REASONING_MIN_CHARS:
            problems.append(f"Reasoning too short (minimum {REASONING_MIN_CHARS} characters)")
        elif len(reasoning) > REASONING_MAX_CHARS:
            problems.append(f"Reasoning too long (maximum {REASONING_MAX_CHARS} characters)")

    suggested = raw.get("suggestedText")
    original = raw.get("originalText")
    if isinstance(suggested, str) and not suggested.strip():
        problems.append("Suggested content is empty")
    if suggestion_type in (SuggestionType.WORDING, SuggestionType.ADD_CONTENT) and not (
        isinstance(suggested, str) and suggested.strip()
    ):
        problems.append(f"{suggestion_type.value} suggestion needs suggestedText")
    if suggestion_type == SuggestionType.REMOVE_CONTENT and not (
        isinstance(original, str) and original.strip()
    ):
        problems.append("remove_content suggestion needs originalText")

    all_text = f"{reasoning or ''} {suggested or ''}".lower()
    for placeholder in PLACEHOLDERS:
        if placeholder in all_text:
            problems.append(f"Contains placeholder text: {placeholder}")

    if problems:
        return (None, problems)

    priority = str(raw.get("priority") or "medium").strip().lower()
    try:
        item = SuggestionItem(
            section=section,
            suggestion_type=suggestion_type,
            original_text=original or None,
            suggested_text=suggested or None,
            reasoning=reasoning.strip(),
            target_id=_pointer(raw.get("targetId")),
            target_field=_pointer(raw.get("targetField")) or target_field,
            priority=priority if priority in ("high", "medium", "low") else "medium",
        )
    except ValidationError as e:
        return (None, format_validation_errors(e))
    return (item, [])


def _dedupe_suggestions(items: List[SuggestionItem]) -> List[SuggestionItem]:
    seen: set[str] = set()
    unique: List[SuggestionItem] = []
    for item in items:
        text = item.suggested_text or item.original_text or ""
        key = f"{item.section.value}:{text[:100]}"
        if key not in seen:
            seen.add(key)
            unique.append(item)
    return unique


def _content_warnings(items: List[SuggestionItem]) -> List[str]:
    warnings: List[str] = []
    if len(items) > 1 and len({i.section for i in items}) == 1:
        warnings.append("All suggestions target the same section - consider diversifying")

    if len(items) >= 3:
        words = Counter(
            w for i in items for w in i.reasoning.lower().split() if len(w) > 4
        )
        overused = [w for w, n in words.items() if n > len(items) * 0.7]
        if overused:
            warnings.append(f"Repetitive language detected: {', '.join(sorted(overused))}")

    reasoning_text = " ".join(i.reasoning for i in items).lower()
    found = [w for w in UNPROFESSIONAL_WORDS if re.search(rf"\b{w}\b", reasoning_text)]
    if found:
        warnings.append(f"Consider more professional language: {', '.join(found)}")
    return warnings


def validate_suggestions_output(data: Any) -> ValidationReport:
    """Validate a parsed suggestions response, keeping only items that pass every rule."""
    errors: List[str] = []
    warnings: List[str] = []

    if not isinstance(data, dict):
        return ValidationReport(False, [], ["Suggestions response is not a valid object"], [])
    data = sanitize_suggestions(data)
    raw_items = data.get("suggestions")
    if not isinstance(raw_items, list):
        return ValidationReport(
            False, [], ["Suggestions response missing or invalid suggestions array"], []
        )
    if not raw_items:
        warnings.append("No suggestions provided in response")

    quality: List[SuggestionItem] = []
    for index, raw in enumerate(raw_items, start=1):
        item, problems = _check_suggestion(raw)
        if item is None:
            warnings.append(f"Suggestion {index}: {', '.join(problems)}")
        else:
            quality.append(item)

    if not quality:
        errors.append("No valid suggestions found after filtering")
    elif len(quality) < len(raw_items) * 0.5:
        warnings.append(f"Only {len(quality)} out of {len(raw_items)} suggestions passed validation")

    unique = _dedupe_suggestions(quality)
    if len(unique) < len(quality):
        warnings.append(f"Removed {len(quality) - len(unique)} duplicate suggestions")
    warnings.extend(_content_warnings(unique))

    return ValidationReport(
        is_valid=not errors and bool(unique),
        quality_items=unique,
        errors=errors,
        warnings=warnings,
    )


# ---------------------------------------------------------------------------
# Extracted profile
# ---------------------------------------------------------------------------

_LIST_SECTIONS: Dict[str, type[BaseModel]] = {
    "skills": Skill,
    "experience": ExperienceItem,
    "education": EducationItem,
    "achievements": AchievementItem,
}
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}(-\d{2})?$")
_URL_RE = re.compile(r"^(https?://)?[\w.-]+\.[a-z]{2,}(/\S*)?$", re.IGNORECASE)


def _profile_format_warnings(profile: ExtractedProfile) -> List[str]:
    warnings: List[str] = []
    contact = profile.contact_info
    if contact is not None:
        if contact.email and not _EMAIL_RE.match(contact.email):
            warnings.append(f"contactInfo.email: invalid email format ({contact.email})")
        for name in ("linkedin", "github", "website"):
            value = getattr(contact, name)
            if value and not _URL_RE.match(value):
                warnings.append(f"contactInfo.{name}: invalid URL format")

    dated = [("experience", profile.experience or []), ("education", profile.education or [])]
    for section, items in dated:
        for i, item in enumerate(items):
            for name, alias in (("start_date", "startDate"), ("end_date", "endDate")):
                value = getattr(item, name)
                if value and not _DATE_RE.match(value):
                    warnings.append(
                        f"{section}[{i}].{alias}: invalid date format (should be YYYY-MM or YYYY-MM-DD)"
                    )
    for i, achievement in enumerate(profile.achievements or []):
        if achievement.date and not _DATE_RE.match(achievement.date):
            warnings.append(f"achievements[{i}].date: invalid date format (should be YYYY-MM or YYYY-MM-DD)")
    return warnings


def validate_profile_output(data: Any) -> ValidationReport:
    """
    Validate a parsed extraction response into an ExtractedProfile.
    Malformed list items are dropped with a warning; a response with no usable
    section is an error. The single quality item is the validated profile.
    """
    if not isinstance(data, dict):
        return ValidationReport(False, [], ["Extraction response is not a JSON object"], [])

    warnings: List[str] = []
    cleaned = dict(data)
    for section, model in _LIST_SECTIONS.items():
        raw = data.get(section)
        if raw is None:
            continue
        if not isinstance(raw, list):
            warnings.append(f"{section}: expected a list, ignored")
            cleaned[section] = None
            continue
        kept = []
        for i, item in enumerate(raw):
            try:
                model.model_validate(item)
            except ValidationError as e:
                warnings.append(f"{section}[{i}] dropped: {format_validation_errors(e)[0]}")
                continue
            kept.append(item)
        cleaned[section] = kept

    try:
        profile = ExtractedProfile.model_validate(cleaned)
    except ValidationError as e:
        return ValidationReport(False, [], format_validation_errors(e), warnings)

    if profile.is_empty():
        return ValidationReport(False, [], ["No profile data extracted"], warnings)

    warnings.extend(_profile_format_warnings(profile))
    return ValidationReport(True, [profile], [], warnings)
