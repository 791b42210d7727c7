import asyncio

import pytest

from screening_assistant import llm_client
from screening_assistant.config import Settings
from screening_assistant.errors import ConfigurationError, GenerationError
from screening_assistant.llm_client import LLMClient


class ScriptedClient(LLMClient):
    """LLMClient whose provider call replays a script of results and exceptions."""

    def __init__(self, outcomes, **overrides):
        settings = {"gemini_api_key": "test-key", "llm_retry_delay": 0.0, **overrides}
        super().__init__(Settings(**settings))
        self.outcomes = list(outcomes)
        self.params: list[dict] = []

    async def _dispatch(self, prompt, params):
        self.params.append(params)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def test_returns_first_successful_response() -> None:
    client = ScriptedClient(["Generated answer"])
    assert asyncio.run(client.complete("prompt")) == "Generated answer"
    assert len(client.params) == 1


def test_retries_transient_failures() -> None:
    client = ScriptedClient([ConnectionError("reset"), TimeoutError(), "Recovered"])
    assert asyncio.run(client.complete("prompt")) == "Recovered"
    assert len(client.params) == 3


def test_raises_generation_error_after_max_retries() -> None:
    last = ConnectionError("still down")
    client = ScriptedClient([ConnectionError("down"), ConnectionError("down"), last])

    with pytest.raises(GenerationError) as excinfo:
        asyncio.run(client.complete("prompt"))

    assert excinfo.value.__cause__ is last
    assert "3 attempts" in str(excinfo.value)


def test_empty_responses_count_as_failures() -> None:
    client = ScriptedClient(["", "   \n", "Finally"])
    assert asyncio.run(client.complete("prompt")) == "Finally"

    client = ScriptedClient(["", "", ""])
    with pytest.raises(GenerationError):
        asyncio.run(client.complete("prompt"))


def test_backoff_is_linear(monkeypatch) -> None:
    waits: list[float] = []

    async def fake_sleep(delay):
        waits.append(delay)

    monkeypatch.setattr(llm_client.asyncio, "sleep", fake_sleep)
    client = ScriptedClient(
        [RuntimeError("1"), RuntimeError("2"), RuntimeError("3"), "ok"],
        llm_retry_delay=0.5,
        llm_max_retries=4,
    )

    assert asyncio.run(client.complete("prompt")) == "ok"
    assert waits == [0.5, 1.0, 1.5]


def test_call_parameters_use_settings_and_overrides() -> None:
    client = ScriptedClient(["a", "b"], llm_temperature=0.6, llm_max_tokens=400)

    asyncio.run(client.complete("prompt"))
    asyncio.run(client.complete("prompt", temperature=0.2, max_tokens=50))

    assert client.params[0] == {"temperature": 0.6, "top_k": 40, "top_p": 0.95, "max_tokens": 400}
    assert client.params[1]["temperature"] == 0.2
    assert client.params[1]["max_tokens"] == 50


def test_missing_api_key_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        LLMClient(Settings(llm_provider="gemini", gemini_api_key=""))


def test_unknown_provider_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        LLMClient(Settings(llm_provider="cohere", gemini_api_key="key"))


def test_resolved_model_defaults_per_provider() -> None:
    assert Settings(llm_provider="gemini").resolved_model == "gemini-1.5-flash"
    assert Settings(llm_provider="openai", llm_model="gpt-4o-mini").resolved_model == "gpt-4o-mini"
    assert Settings(llm_provider="anthropic", anthropic_api_key="k").resolved_api_key == "k"
