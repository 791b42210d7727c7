"""Centralized configuration, loaded from environment variables or a .env file."""

from __future__ import annotations

import os
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # ── LLM ────────────────────────────────────────────────────────
    llm_provider: str = "gemini"  # "gemini", "anthropic", or "openai"
    gemini_api_key: str = ""
    anthropic_api_key: str = ""
    openai_api_key: str = ""
    llm_model: str = ""  # blank = use provider default

    # ── Generation ─────────────────────────────────────────────────
    llm_temperature: float = 0.7
    llm_top_k: int = 40
    llm_top_p: float = 0.95
    llm_max_tokens: int = 500
    llm_timeout: int = 60  # seconds
    llm_max_retries: int = 3
    llm_retry_delay: float = 1.0  # seconds, multiplied by the attempt number

    # ── Answer cache ───────────────────────────────────────────────
    data_dir: str = os.path.join(
        os.path.dirname(os.path.dirname(__file__)), "data"
    )
    database_url: str = ""  # blank = sqlite in data_dir
    suggestion_threshold: float = 0.70  # previews / suggestions
    auto_answer_threshold: float = 0.85  # silently reusing a cached answer

    # ── Form filling ───────────────────────────────────────────────
    typing_delay: float = 0.03  # seconds per character when simulating typing

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def resolved_database_url(self) -> str:
        if self.database_url:
            return self.database_url
        os.makedirs(self.data_dir, exist_ok=True)
        return f"sqlite:///{os.path.join(self.data_dir, 'answer_cache.db')}"

    @property
    def resolved_model(self) -> str:
        if self.llm_model:
            return self.llm_model
        defaults = {
            "gemini": "gemini-1.5-flash",
            "anthropic": "claude-sonnet-4-20250514",
            "openai": "gpt-4o",
        }
        return defaults.get(self.llm_provider, "gemini-1.5-flash")

    @property
    def resolved_api_key(self) -> str:
        keys = {
            "gemini": self.gemini_api_key,
            "anthropic": self.anthropic_api_key,
            "openai": self.openai_api_key,
        }
        return keys.get(self.llm_provider, "")


@lru_cache()
def get_settings() -> Settings:
    """Cached singleton: call this to get settings anywhere."""
    return Settings()
