"""Thin wrapper around the Gemini SDK used by the response composer."""

import logging
from typing import Optional, Protocol

import google.generativeai as genai

from phonebot.config import ModelConfig

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    """Free-text instruction in, free-text answer out."""

    async def generate(self, prompt: str) -> str: ...


class GeminiTextGenerator:
    """Generates replies with a configured Gemini model.

    Raises on any SDK or network failure; the composer owns the fallback.
    """

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        self._model: Optional[genai.GenerativeModel] = None
        if config.api_key:
            genai.configure(api_key=config.api_key)
            self._model = genai.GenerativeModel(_normalize_model_name(config.llm_model))

    async def generate(self, prompt: str) -> str:
        if self._model is None:
            raise RuntimeError("GEMINI_API_KEY is not configured")
        response = await self._model.generate_content_async(
            prompt,
            generation_config={"temperature": self._config.llm_temperature},
        )
        text: Optional[str] = getattr(response, "text", None)
        return text or ""


def _normalize_model_name(name: str) -> str:
    """Strip the optional ``models/`` prefix and surrounding whitespace."""
    cleaned = name.strip()
    if cleaned.startswith("models/"):
        return cleaned.split("/", 1)[1]
    return cleaned
