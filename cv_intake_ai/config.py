"""Configuration loaded from environment variables."""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env: try package dir then project root
_base = Path(__file__).resolve().parent
for _env_path in (_base / ".env", _base.parent / ".env"):
    if load_dotenv(_env_path):
        break
load_dotenv()  # also allow process env


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# Model access – never hardcode keys
GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_AI_API_KEY", "")
LLM_BASE_URL: str = os.getenv(
    "LLM_BASE_URL", "https://generativelanguage.googleapis.com/v1beta/openai/"
)
MODEL_NAME: str = os.getenv("MODEL_NAME", "gemini-2.5-flash")
LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "gemini")
LLM_TEMPERATURE_EXTRACTION: float = 0.1
LLM_TEMPERATURE_SUGGESTIONS: float = 0.5
LLM_MAX_OUTPUT_TOKENS: int = 8192

# Upload intake
MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024
ALLOWED_MIME_TYPES: tuple = (
    "application/pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
)

# Retry budgets (fixed delay between attempts)
EXTRACTION_MAX_ATTEMPTS: int = int(os.getenv("EXTRACTION_MAX_ATTEMPTS", "3"))
SUGGESTION_MAX_ATTEMPTS: int = int(os.getenv("SUGGESTION_MAX_ATTEMPTS", "7"))
RETRY_DELAY_SECONDS: float = float(os.getenv("RETRY_DELAY_SECONDS", "1.0"))

# Extraction strategies: direct sends the raw document to the model,
# traditional parses text locally first and is off unless explicitly enabled.
ENABLE_DIRECT_EXTRACTION: bool = _env_flag("ENABLE_DIRECT_EXTRACTION", True)
ENABLE_TRADITIONAL_EXTRACTION: bool = _env_flag("ENABLE_TRADITIONAL_EXTRACTION", False)

# Suggestion cache
SUGGESTION_CACHE_PREFIX: str = "cv_suggestion:"
SUGGESTION_CACHE_TTL_SECONDS: int = 60 * 60

# Prompt limits
MAX_PROMPT_CHARS: int = 12000

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
