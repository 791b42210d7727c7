import asyncio
import os

import pytest

# Keep the cache in memory for every test, including the module-level app in main.py
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from screening_assistant.cache import AnswerCache  # noqa: E402
from screening_assistant.generator import AnswerGenerator  # noqa: E402
from screening_assistant.models import JobData, UserProfile  # noqa: E402
from screening_assistant.orchestrator import AssistantOrchestrator  # noqa: E402


APPLICATION_FORM = """
<html>
<body>
  <h1>Apply: Backend Engineer</h1>
  <form id="apply">
    <input type="text" name="first_name">
    <div class="form-group required">
      <label for="q1">Why do you want to work here? *</label>
      <textarea id="q1" name="question_1" maxlength="500"></textarea>
    </div>
    <div class="form-group">
      <label for="q2">What is your greatest strength?</label>
      <textarea id="q2" name="question_2"></textarea>
      <small>Give one concrete example.</small>
    </div>
    <div class="form-group">
      <label for="q3">Anything else we should know?</label>
      <textarea id="q3" name="question_3"></textarea>
    </div>
    <div class="question">
      <label for="q4">When can you start?</label>
      <textarea id="q4" name="answer_4">Immediately</textarea>
    </div>
  </form>
</body>
</html>
"""


class FakeLLMClient:
    """Stands in for LLMClient: records calls and replays scripted responses.

    A scripted Exception is raised instead of returned. Once the script runs
    out, `default` is returned. When `gate` is set, every call waits on it.
    """

    model = "fake-model"
    temperature = 0.7

    def __init__(self, responses=None, default="I am excited to bring my experience to your team."):
        self.responses = list(responses or [])
        self.default = default
        self.calls: list[dict] = []
        self.gate: asyncio.Event | None = None

    async def complete(self, prompt, temperature=None, max_tokens=None):
        self.calls.append(
            {"prompt": prompt, "temperature": temperature, "max_tokens": max_tokens}
        )
        if self.gate is not None:
            await self.gate.wait()
        if self.responses:
            response = self.responses.pop(0)
            if isinstance(response, Exception):
                raise response
            return response
        return self.default


@pytest.fixture
def application_form() -> str:
    return APPLICATION_FORM


@pytest.fixture
def fake_llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
def cache() -> AnswerCache:
    return AnswerCache("sqlite://")


@pytest.fixture
def assistant(fake_llm, cache) -> AssistantOrchestrator:
    return AssistantOrchestrator(
        AnswerGenerator(client=fake_llm), cache, typing_delay=0.0
    )


@pytest.fixture
def profile() -> UserProfile:
    return UserProfile(
        first_name="Jordan",
        last_name="Lee",
        email="jordan.lee@example.com",
        current_title="Backend Engineer",
        current_company="Globex",
        years_of_experience=6,
        skills=["Python", "PostgreSQL", "AWS"],
        experience_summary="Six years building payment APIs and data pipelines.",
        desired_salary=120000,
        notice_period="2 weeks",
    )


@pytest.fixture
def job() -> JobData:
    return JobData(
        title="Senior Backend Engineer",
        company="Acme",
        id="job-42",
        description="Build and scale the APIs behind Acme's checkout.",
        requirements="Python, PostgreSQL, distributed systems",
    )
