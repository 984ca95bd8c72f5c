"""Prompt templates for CV extraction and improvement suggestions."""

import json
from typing import Any

_PROFILE_JSON_SHAPE = """{
  "contactInfo": {
    "name": "string | null",
    "email": "string | null",
    "phone": "string | null",
    "location": "string | null",
    "linkedin": "string | null",
    "github": "string | null",
    "website": "string | null"
  },
  "about": "string - professional summary",
  "skills": [
    {
      "name": "string",
      "category": "Programming Languages | Frameworks | Tools | Databases | Soft Skills | etc.",
      "level": "BEGINNER | INTERMEDIATE | ADVANCED | EXPERT"
    }
  ],
  "experience": [
    {
      "title": "string",
      "company": "string",
      "description": "string",
      "location": "string | null",
      "startDate": "YYYY-MM | null",
      "endDate": "YYYY-MM | null",
      "current": boolean,
      "responsibilities": ["string"],
      "techStack": ["string"]
    }
  ],
  "education": [
    {
      "institution": "string",
      "degree": "string | null",
      "field": "string | null",
      "location": "string | null",
      "startDate": "YYYY-MM | null",
      "endDate": "YYYY-MM | null"
    }
  ],
  "achievements": [
    {
      "title": "string",
      "description": "string",
      "date": "YYYY-MM | null",
      "issuer": "string | null",
      "url": "string | null"
    }
  ],
  "totalYearsExperience": number
}"""

_EXTRACTION_RULES = """Extraction rules:
1. Only use "achievements" for certifications, awards, publications or other standalone accomplishments.
2. Extract every technical skill mentioned and categorize it.
3. Calculate total experience from the date ranges.
4. Use null for missing information, do not guess.
5. Use YYYY-MM for dates.

Return ONLY the raw JSON object: no markdown, no code blocks, no explanatory text."""

DIRECT_EXTRACTION_PROMPT = f"""You are an AI CV/resume parsing system.
Extract comprehensive information from the attached CV document and return it as valid JSON
with this exact structure:

{_PROFILE_JSON_SHAPE}

{_EXTRACTION_RULES}"""

TEXT_EXTRACTION_PROMPT = f"""You are an AI CV/resume parsing system.
Extract comprehensive information from the CV content below and return it as valid JSON
with this exact structure:

{_PROFILE_JSON_SHAPE}

{_EXTRACTION_RULES}

CV content:

{{cv_text}}"""

_SUGGESTION_JSON_SHAPE = """{
  "suggestions": [
    {
      "section": "about | skills | experience | education | achievements",
      "suggestionType": "wording | add_content | remove_content | reorder | format",
      "originalText": "string | null - the text being improved",
      "suggestedText": "string | null - the improved text",
      "reasoning": "string, 10-500 characters - why this change helps",
      "targetId": "string | null - id of the item the suggestion targets",
      "targetField": "string | null - field of the item, e.g. description",
      "priority": "high | medium | low"
    }
  ]
}"""


def build_text_extraction_prompt(cv_text: str) -> str:
    return TEXT_EXTRACTION_PROMPT.replace("{cv_text}", cv_text)


def build_suggestion_prompt(cv_data: Any) -> str:
    """Prompt asking for actionable improvement suggestions for a structured CV."""
    return f"""You are an expert career coach and CV reviewer. Analyze the provided CV data
(in JSON format) and provide specific, actionable suggestions for improvement. Focus on clarity,
impact, action verbs, quantifiable results and tailoring to common software engineering roles.

Structure your response ONLY as a valid JSON object matching this schema:
{_SUGGESTION_JSON_SHAPE}

Rules:
- Do not suggest changes to contact information.
- wording and add_content suggestions must include suggestedText; remove_content must include originalText.
- Never use placeholders such as [company], [role] or [name].
- Spread suggestions across several sections and avoid duplicates.

CV data:
{json.dumps(cv_data, indent=2, ensure_ascii=False)}

Return ONLY a valid JSON object. Do not include any explanatory text before or after the JSON."""
