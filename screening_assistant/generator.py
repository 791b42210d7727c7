"""Answer Generator: turns screening questions into LLM answers.

Also produces cover letters and tailored resume sections, sharing the same
context block and retrying LLM client.
"""

from __future__ import annotations

import logging
import math
import re
import time

from screening_assistant.llm_client import LLMClient, get_llm_client
from screening_assistant.models import (
    CoverLetterInput,
    CoverLetterStyle,
    GeneratedAnswer,
    GeneratedCoverLetter,
    JobData,
    ScreeningQuestion,
    TailoredExperience,
    TailoredResume,
    TailoredResumeInput,
    UserProfile,
)
from screening_assistant.prompts import (
    build_cover_letter_prompt,
    build_question_prompt,
    build_resume_tailor_prompt,
)

logger = logging.getLogger(__name__)

COVER_LETTER_MAX_TOKENS = 1000
RESUME_TAILOR_MAX_TOKENS = 1500

# Room left after the last kept sentence when shortening to max_length
_SENTENCE_MARGIN = 10
_ELLIPSIS = "..."

_SENTENCE_END = re.compile(r"(?<=[.!?])(\s+)")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_SECTION_HEADING = re.compile(
    r"^[\s#*_-]*(SUMMARY|SKILLS|EXPERIENCE)\b[ \t*_]*:?[ \t*_]*", re.IGNORECASE | re.MULTILINE
)
_SKILL_SPLIT = re.compile(r"[,\n•;]")

_COMMON_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "by", "this", "that", "from", "your", "have", "will",
})
MAX_KEYWORDS = 20


# ── Post-processing ─────────────────────────────────────────────


def truncate_answer(answer: str, max_length: int) -> str:
    """Shorten `answer` to at most `max_length` characters.

    Keeps the longest run of whole sentences that fits within
    max_length - 10. If not even the first sentence fits, hard-cuts to
    max_length - 3 and appends "...".
    """
    if len(answer) <= max_length:
        return answer

    budget = max_length - _SENTENCE_MARGIN
    # Alternates sentence, separator, sentence, ...
    parts = _SENTENCE_END.split(answer)
    kept = ""
    for i in range(0, len(parts), 2):
        candidate = kept + parts[i - 1] + parts[i] if kept else parts[i]
        if len(candidate) > budget:
            break
        kept = candidate

    if kept:
        return kept
    if max_length <= len(_ELLIPSIS):
        return answer[:max_length]
    return answer[: max_length - len(_ELLIPSIS)] + _ELLIPSIS


def format_answer(raw_answer: str, max_length: int | None = None) -> str:
    """Trim, collapse runs of blank lines and enforce the field's length cap."""
    answer = _EXCESS_NEWLINES.sub("\n\n", raw_answer.strip())
    if max_length:
        answer = truncate_answer(answer, max_length)
    return answer


def calculate_confidence(answer: str, question: ScreeningQuestion) -> float:
    confidence = 0.7
    if len(answer) > 200:
        confidence += 0.1
    lowered = answer.lower()
    if "example" in lowered or "specifically" in lowered:
        confidence += 0.05
    if re.search(r"\d", answer):
        confidence += 0.05
    if question.requires_resume:
        confidence += 0.05
    return round(min(confidence, 1.0), 2)


def estimate_tokens(text: str) -> int:
    return math.ceil(len(text) / 4)


# ── Resume tailoring helpers ────────────────────────────────────


def split_sections(response: str) -> dict[str, str]:
    """Split an LLM response on SUMMARY/SKILLS/EXPERIENCE headings."""
    sections: dict[str, str] = {}
    matches = list(_SECTION_HEADING.finditer(response))
    for i, match in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(response)
        name = match.group(1).lower()
        if name not in sections:
            sections[name] = response[match.end():end].strip()
    return sections


def parse_skills(text: str) -> list[str]:
    skills = [part.strip().lstrip("-*").strip() for part in _SKILL_SPLIT.split(text)]
    return list(dict.fromkeys(s for s in skills if s))


def extract_keywords(text: str) -> list[str]:
    words = re.split(r"\W+", text.lower())
    keywords = [w for w in words if len(w) > 3 and w not in _COMMON_WORDS]
    return list(dict.fromkeys(keywords))[:MAX_KEYWORDS]


def calculate_ats_score(summary: str | None, skills: list[str], job: JobData) -> int:
    """Heuristic ATS compatibility score (70-100)."""
    score = 70

    job_text = f"{job.title} {job.description or ''} {job.requirements or ''}".lower()
    resume_text = f"{summary or ''} {' '.join(skills)}".lower()

    job_words = {w for w in re.split(r"\W+", job_text) if len(w) > 3}
    resume_words = [w for w in re.split(r"\W+", resume_text) if len(w) > 3]
    matched = [w for w in resume_words if w in job_words]
    score += min(len(matched) * 2, 20)

    if summary:
        score += 5
    if len(skills) > 5:
        score += 5

    return min(score, 100)


# ── Generator ───────────────────────────────────────────────────


class AnswerGenerator:
    """Generates screening answers, cover letters and tailored resumes."""

    def __init__(self, client: LLMClient | None = None) -> None:
        self._client = client

    @property
    def client(self) -> LLMClient:
        if self._client is None:
            self._client = get_llm_client()
        return self._client

    async def generate_answer(
        self,
        question: ScreeningQuestion,
        profile: UserProfile,
        job: JobData,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> GeneratedAnswer:
        """Generate an answer for one screening question.

        Raises:
            GenerationError: If the LLM failed on every retry.
        """
        prompt = build_question_prompt(question, profile, job)
        response = await self.client.complete(
            prompt, temperature=temperature, max_tokens=max_tokens
        )
        answer = format_answer(response, question.max_length)

        logger.info(
            "Generated %s answer for %s (%d chars)",
            question.type.value,
            question.id,
            len(answer),
        )
        return GeneratedAnswer(
            question_id=question.id,
            question_text=question.question_text,
            question_type=question.type,
            answer=answer,
            from_cache=False,
            token_count=estimate_tokens(prompt + answer),
            confidence=calculate_confidence(answer, question),
            metadata={
                "model": getattr(self.client, "model", ""),
                "temperature": (
                    temperature
                    if temperature is not None
                    else getattr(self.client, "temperature", None)
                ),
                "max_length": question.max_length,
            },
        )

    async def generate_cover_letter(self, data: CoverLetterInput) -> GeneratedCoverLetter:
        prompt = build_cover_letter_prompt(data)
        content = (
            await self.client.complete(prompt, max_tokens=COVER_LETTER_MAX_TOKENS)
        ).strip()
        content = _EXCESS_NEWLINES.sub("\n\n", content)

        return GeneratedCoverLetter(
            id=f"cover_{int(time.time() * 1000)}",
            content=content,
            style=CoverLetterStyle(data.style),
            word_count=len(content.split()),
            job_id=data.job_data.id,
            metadata={
                "model": getattr(self.client, "model", ""),
                "temperature": getattr(self.client, "temperature", None),
            },
        )

    async def tailor_resume(self, data: TailoredResumeInput) -> TailoredResume:
        prompt = build_resume_tailor_prompt(data)
        response = await self.client.complete(prompt, max_tokens=RESUME_TAILOR_MAX_TOKENS)

        sections = split_sections(response)
        summary = sections.get("summary") or None
        skills = parse_skills(sections.get("skills", ""))
        experience = [
            TailoredExperience(
                original=exp,
                tailored_description=exp.description or "",
                highlighted_achievements=list(exp.achievements),
            )
            for exp in data.user_profile.work_experience
        ]

        return TailoredResume(
            id=f"resume_{int(time.time() * 1000)}",
            summary=summary,
            skills=skills,
            experience=experience,
            keywords=extract_keywords(response),
            ats_score=calculate_ats_score(summary, skills, data.job_data),
        )
