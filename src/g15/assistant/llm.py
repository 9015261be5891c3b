"""
LLM provider abstraction for the finance assistant.

Gemini is the only production provider. Tests swap in their own provider
via set_llm_provider().
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import httpx
import structlog

from g15.config import get_settings

logger = structlog.get_logger()

SAFETY_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)


class LLMError(Exception):
    """The provider failed to produce text."""


class LLMRateLimitError(LLMError):
    """The provider rejected the call with HTTP 429."""


class BaseLLMProvider(ABC):
    """Abstract base class for text generation providers."""

    @abstractmethod
    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        """Return the generated text. Raises LLMError on failure."""
        ...


class GeminiProvider(BaseLLMProvider):
    """Generate text with the Gemini generateContent REST API."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        timeout: float = 30.0,
        temperature: float = 0.2,
        max_output_tokens: int = 800,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

    def build_payload(self, system_prompt: str, user_prompt: str) -> dict[str, Any]:
        text = f"{system_prompt}\n\nUser message: {user_prompt}" if user_prompt else system_prompt
        return {
            "contents": [{"parts": [{"text": text}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "topK": 40,
                "topP": 0.95,
                "maxOutputTokens": self.max_output_tokens,
            },
            "safetySettings": [
                {"category": category, "threshold": "BLOCK_MEDIUM_AND_ABOVE"}
                for category in SAFETY_CATEGORIES
            ],
        }

    @staticmethod
    def extract_text(data: dict[str, Any]) -> str:
        """Pull candidates[0].content.parts[0].text out of a response body."""
        try:
            text = data["candidates"][0]["content"]["parts"][0].get("text")
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            msg = "Unexpected response from language model"
            raise LLMError(msg) from e
        if not text:
            msg = "Language model returned no text"
            raise LLMError(msg)
        return text

    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        url = f"{self.base_url}/models/{self.model}:generateContent"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    url,
                    params={"key": self.api_key},
                    json=self.build_payload(system_prompt, user_prompt),
                )
        except httpx.HTTPError as e:
            logger.warning("llm_transport_error", provider="gemini", error=str(e))
            msg = f"Language model request failed: {e}"
            raise LLMError(msg) from e

        if response.status_code == 429:
            logger.warning("llm_rate_limited", provider="gemini")
            msg = "Language model rate limit reached"
            raise LLMRateLimitError(msg)
        if response.status_code >= 400:
            logger.warning("llm_http_error", provider="gemini", status=response.status_code)
            msg = f"Language model returned HTTP {response.status_code}"
            raise LLMError(msg)

        try:
            data = response.json()
        except ValueError as e:
            msg = "Language model returned invalid JSON"
            raise LLMError(msg) from e
        return self.extract_text(data)


def _create_provider() -> BaseLLMProvider:
    """Create the LLM provider based on configuration."""
    settings = get_settings()
    provider_name = settings.llm_provider.lower()

    if provider_name == "gemini":
        return GeminiProvider(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            base_url=settings.gemini_base_url,
            timeout=settings.llm_timeout_seconds,
            temperature=settings.llm_temperature,
            max_output_tokens=settings.llm_max_output_tokens,
        )
    msg = f"Unsupported LLM provider: {provider_name}"
    raise ValueError(msg)


# Module-level singleton
_provider: BaseLLMProvider | None = None


def get_llm_provider() -> BaseLLMProvider:
    global _provider  # noqa: PLW0603
    if _provider is None:
        _provider = _create_provider()
    return _provider


def set_llm_provider(provider: BaseLLMProvider) -> None:
    global _provider  # noqa: PLW0603
    _provider = provider


def reset_llm_provider() -> None:
    global _provider  # noqa: PLW0603
    _provider = None
