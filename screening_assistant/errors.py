"""Exception types raised by the screening assistant."""

from __future__ import annotations


class AssistantError(Exception):
    """Base class for all screening assistant errors."""


class ConfigurationError(AssistantError, ValueError):
    """Missing API key or unknown provider."""


class ProfileValidationError(AssistantError, ValueError):
    """The user profile lacks fields required to answer the detected questions."""

    def __init__(self, missing: list[str], recommendations: list[str] | None = None):
        self.missing = missing
        self.recommendations = recommendations or []
        super().__init__(f"Profile is missing required fields: {', '.join(missing)}")


class GenerationError(AssistantError, RuntimeError):
    """The completion endpoint failed after all retries."""


class ConcurrencyError(AssistantError, RuntimeError):
    """A batch generation is already running on this orchestrator."""


class CacheCorruptionError(AssistantError, ValueError):
    """A stored cache row could not be deserialized."""
