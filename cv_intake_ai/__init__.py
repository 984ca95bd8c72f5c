"""CV Intake AI: resume upload, LLM extraction with repair/validate/retry, scoring and profile sync."""

__version__ = "0.1.0"
