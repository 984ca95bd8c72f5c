"""Model client: chat completions over an OpenAI-compatible endpoint (Gemini by default)."""

import base64
from abc import ABC, abstractmethod
from typing import Any, Optional

from openai import AsyncOpenAI

from cv_intake_ai.config import (
    GEMINI_API_KEY,
    LLM_BASE_URL,
    LLM_MAX_OUTPUT_TOKENS,
    LLM_TEMPERATURE_EXTRACTION,
    MODEL_NAME,
)
from cv_intake_ai.schemas.upload import UploadedFile
from cv_intake_ai.utils.logger import get_logger

logger = get_logger(__name__)


class ModelClient(ABC):
    """Abstract text-generation transport."""

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        document: Optional[UploadedFile] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """Send a prompt (optionally with a raw document) and return the response text, '' if none."""
        ...


class OpenAICompatibleModelClient(ModelClient):
    """AsyncOpenAI client pointed at the configured base URL."""

    def __init__(
        self,
        api_key: str = GEMINI_API_KEY,
        base_url: str = LLM_BASE_URL,
        model: str = MODEL_NAME,
        temperature: float = LLM_TEMPERATURE_EXTRACTION,
        max_output_tokens: int = LLM_MAX_OUTPUT_TOKENS,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        self._model = model
        self._temperature = temperature
        self._max_output_tokens = max_output_tokens
        self._client = client or AsyncOpenAI(api_key=api_key, base_url=base_url or None)

    @property
    def model(self) -> str:
        return self._model

    @staticmethod
    def _document_part(document: UploadedFile) -> dict[str, Any]:
        encoded = base64.b64encode(document.data).decode("ascii")
        return {
            "type": "file",
            "file": {
                "filename": document.filename or f"document.{document.extension}",
                "file_data": f"data:{document.content_type};base64,{encoded}",
            },
        }

    async def generate(
        self,
        prompt: str,
        document: Optional[UploadedFile] = None,
        temperature: Optional[float] = None,
    ) -> str:
        if document is not None:
            content: Any = [{"type": "text", "text": prompt}, self._document_part(document)]
        else:
            content = prompt
        response = await self._client.chat.completions.create(
            model=self._model,
            messages=[{"role": "user", "content": content}],
            temperature=self._temperature if temperature is None else temperature,
            max_tokens=self._max_output_tokens,
        )
        choice = response.choices[0] if response.choices else None
        if not choice or not choice.message or not choice.message.content:
            return ""
        return choice.message.content


def get_model_client(api_key: Optional[str] = None) -> Optional[ModelClient]:
    """
    Return the configured model client, or None when no API key is set
    (strategies and the suggestion service then report themselves unavailable).
    """
    key = api_key if api_key is not None else GEMINI_API_KEY
    if not key:
        logger.error("GEMINI_API_KEY is not set; model calls are disabled")
        return None
    return OpenAICompatibleModelClient(api_key=key)
