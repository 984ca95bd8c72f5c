"""Completeness score for an extracted profile."""

from cv_intake_ai.schemas.cv_profile import ExtractedProfile

ABOUT_MIN_CHARS = 50


def score_profile(profile: ExtractedProfile) -> int:
    """
    Coarse 0-100 completeness heuristic from presence checks and item counts.
    It says how much the CV contains, not how good it is.
    """
    score = 0
    contact = profile.contact_info
    if contact is not None and contact.name:
        score += 10
    if contact is not None and contact.email:
        score += 5
    if profile.about and len(profile.about) > ABOUT_MIN_CHARS:
        score += 15
    score += 2 * len(profile.skills or [])
    score += 5 * len(profile.experience or [])
    score += 3 * len(profile.education or [])
    score += 2 * len(profile.achievements or [])
    return max(0, min(100, score))
