"""Async LLM client for Gemini, Anthropic and OpenAI with retry and timeout."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from screening_assistant.config import Settings, get_settings
from screening_assistant.errors import ConfigurationError, GenerationError

logger = logging.getLogger(__name__)

SAFETY_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)
SAFETY_THRESHOLD = "BLOCK_MEDIUM_AND_ABOVE"

_PROVIDERS = ("gemini", "anthropic", "openai")


class LLMClient:
    """Unified async interface for completion calls.

    Usage:
        client = LLMClient()
        text = await client.complete("Answer this screening question...")
    """

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        self.provider = settings.llm_provider
        self.model = settings.resolved_model
        self.api_key = settings.resolved_api_key
        self.temperature = settings.llm_temperature
        self.top_k = settings.llm_top_k
        self.top_p = settings.llm_top_p
        self.max_tokens = settings.llm_max_tokens
        self.timeout = settings.llm_timeout
        self.max_retries = max(1, settings.llm_max_retries)
        self.retry_delay = settings.llm_retry_delay

        if self.provider not in _PROVIDERS:
            raise ConfigurationError(f"Unknown LLM provider: {self.provider}")
        if not self.api_key:
            raise ConfigurationError(
                f"No API key configured for provider '{self.provider}'. "
                f"Set {self.provider.upper()}_API_KEY in your .env file."
            )

    # ── Public API ─────────────────────────────────────────────────

    async def complete(
        self,
        prompt: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Send a prompt to the LLM and return the non-empty text response.

        Raises:
            GenerationError: If every attempt failed or returned empty text.
        """
        params = {
            "temperature": self.temperature if temperature is None else temperature,
            "top_k": self.top_k,
            "top_p": self.top_p,
            "max_tokens": self.max_tokens if max_tokens is None else max_tokens,
        }
        return await self._call_with_retry(prompt, params)

    # ── Provider dispatch ──────────────────────────────────────────

    async def _call_with_retry(self, prompt: str, params: dict[str, Any]) -> str:
        """Call the LLM, waiting retry_delay * attempt between failed attempts."""
        last_error: Exception | None = None

        for attempt in range(1, self.max_retries + 1):
            try:
                start = time.time()
                result = await asyncio.wait_for(
                    self._dispatch(prompt, params), timeout=self.timeout
                )
                if not result or not result.strip():
                    raise GenerationError("No content generated")
                elapsed = time.time() - start
                logger.info(
                    "LLM call [%s/%s] completed in %.1fs (%d chars)",
                    self.provider,
                    self.model,
                    elapsed,
                    len(result),
                )
                return result
            except Exception as exc:
                last_error = exc
                if attempt < self.max_retries:
                    wait = self.retry_delay * attempt
                    logger.warning(
                        "LLM call failed (attempt %d/%d): %s. Retrying in %.1fs...",
                        attempt,
                        self.max_retries,
                        exc,
                        wait,
                    )
                    await asyncio.sleep(wait)

        raise GenerationError(
            f"LLM call failed after {self.max_retries} attempts: {last_error}"
        ) from last_error

    async def _dispatch(self, prompt: str, params: dict[str, Any]) -> str:
        """Route to the correct provider."""
        if self.provider == "gemini":
            return await self._call_gemini(prompt, params)
        elif self.provider == "anthropic":
            return await self._call_anthropic(prompt, params)
        elif self.provider == "openai":
            return await self._call_openai(prompt, params)
        else:
            raise ConfigurationError(f"Unknown LLM provider: {self.provider}")

    # ── Gemini ─────────────────────────────────────────────────────

    async def _call_gemini(self, prompt: str, params: dict[str, Any]) -> str:
        from google import genai

        client = genai.Client(api_key=self.api_key)

        config: dict[str, Any] = {
            "temperature": params["temperature"],
            "top_k": params["top_k"],
            "top_p": params["top_p"],
            "max_output_tokens": params["max_tokens"],
            "safety_settings": [
                {"category": category, "threshold": SAFETY_THRESHOLD}
                for category in SAFETY_CATEGORIES
            ],
        }

        response = await client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config=config,
        )
        return response.text or ""

    # ── Anthropic ──────────────────────────────────────────────────

    async def _call_anthropic(self, prompt: str, params: dict[str, Any]) -> str:
        import anthropic

        client = anthropic.AsyncAnthropic(api_key=self.api_key)

        message = await client.messages.create(
            model=self.model,
            max_tokens=params["max_tokens"],
            temperature=params["temperature"],
            top_k=params["top_k"],
            messages=[{"role": "user", "content": prompt}],
        )
        return "".join(
            block.text for block in message.content if getattr(block, "type", "") == "text"
        )

    # ── OpenAI ─────────────────────────────────────────────────────

    async def _call_openai(self, prompt: str, params: dict[str, Any]) -> str:
        from openai import AsyncOpenAI

        client = AsyncOpenAI(api_key=self.api_key)

        response = await client.chat.completions.create(
            model=self.model,
            temperature=params["temperature"],
            top_p=params["top_p"],
            max_tokens=params["max_tokens"],
            messages=[{"role": "user", "content": prompt}],
        )
        return response.choices[0].message.content or ""


# ── Module-level singleton ─────────────────────────────────────


_client: LLMClient | None = None


def get_llm_client() -> LLMClient:
    """Get or create the singleton LLM client."""
    global _client
    if _client is None:
        _client = LLMClient()
    return _client
