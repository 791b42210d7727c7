"""
Assistant orchestrator.

Runs: detect → cache lookup → generate → (user edit) → save to cache → fill form.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import replace
from datetime import datetime, timezone

from screening_assistant.adapters import FieldAdapter
from screening_assistant.cache import AnswerCache
from screening_assistant.config import get_settings
from screening_assistant.detector import QuestionDetector
from screening_assistant.errors import (
    ConcurrencyError,
    ConfigurationError,
    ProfileValidationError,
)
from screening_assistant.generator import AnswerGenerator
from screening_assistant.models import (
    AssistantState,
    CoverLetterInput,
    FillOptions,
    FillResult,
    GeneratedAnswer,
    GeneratedCoverLetter,
    GenerationFailure,
    GenerationOptions,
    GenerationProgress,
    GenerationResult,
    JobData,
    ProfileValidation,
    ScreeningQuestion,
    TailoredResume,
    TailoredResumeInput,
    UserProfile,
    utcnow_iso,
)

logger = logging.getLogger(__name__)

PREVIEW_LIMIT = 3

_RECOMMENDATIONS = {
    "experience_summary": "Add a brief summary of your work experience for better answers",
    "skills": "List your key skills to highlight strengths effectively",
    "years_of_experience": "Specify years of experience for accurate positioning",
}


class AssistantOrchestrator:
    """Coordinates detection, cache-first answering and form filling.

    Usage:
        assistant = AssistantOrchestrator(AnswerGenerator(), AnswerCache())
        assistant.detect_questions(HtmlFormAdapter(html))
        result = await assistant.generate_all_answers(profile, job)
        await assistant.fill_form(adapter)
    """

    def __init__(
        self,
        generator: AnswerGenerator,
        cache: AnswerCache,
        detector: QuestionDetector | None = None,
        suggestion_threshold: float | None = None,
        auto_answer_threshold: float | None = None,
        typing_delay: float | None = None,
    ) -> None:
        settings = get_settings()
        self.generator = generator
        self.cache = cache
        self.detector = detector or QuestionDetector()
        self.suggestion_threshold = (
            suggestion_threshold
            if suggestion_threshold is not None
            else settings.suggestion_threshold
        )
        self.auto_answer_threshold = (
            auto_answer_threshold
            if auto_answer_threshold is not None
            else settings.auto_answer_threshold
        )
        self.typing_delay = typing_delay if typing_delay is not None else settings.typing_delay

        self.questions: list[ScreeningQuestion] = []
        # Insertion-ordered: one live answer per question id
        self._answers: dict[str, GeneratedAnswer] = {}
        self._history: list[GeneratedAnswer] = []
        self._is_generating = False
        self._cancel_requested = False
        self.last_error: str | None = None

    # ── State ──────────────────────────────────────────────────────

    @property
    def is_generating(self) -> bool:
        return self._is_generating

    def get_state(self) -> AssistantState:
        return AssistantState(
            detected_questions=list(self.questions),
            generated_answers=dict(self._answers),
            is_generating=self._is_generating,
            last_error=self.last_error,
        )

    def get_question(self, question_id: str) -> ScreeningQuestion:
        for question in self.questions:
            if question.id == question_id:
                return question
        raise KeyError(f"Question '{question_id}' not found")

    # ── Detection ──────────────────────────────────────────────────

    def detect_questions(self, adapter: FieldAdapter) -> list[ScreeningQuestion]:
        """Detect questions on the host form; replaces the current question set.

        Answers to questions that are no longer present are dropped.
        """
        self.questions = self.detector.detect(adapter)
        current_ids = {q.id for q in self.questions}
        self._answers = {
            qid: answer for qid, answer in self._answers.items() if qid in current_ids
        }
        return self.questions

    def get_questions_preview(self) -> list[dict]:
        """Cached suggestions for every detected question."""
        preview = []
        for question in self.questions:
            cached = self.cache.find_answers(
                question.question_text,
                question.type,
                threshold=self.suggestion_threshold,
                limit=PREVIEW_LIMIT,
            )
            preview.append({
                "question": question,
                "has_cached_answers": bool(cached),
                "cached_answers": [
                    {"id": c.id, "answer": c.answer, "similarity": c.similarity}
                    for c in cached
                ],
            })
        return preview

    # ── Generation ─────────────────────────────────────────────────

    async def generate_all_answers(
        self,
        profile: UserProfile,
        job: JobData,
        options: GenerationOptions | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> GenerationResult:
        """Answer every detected question, one at a time.

        Per-question failures land in `result.errors`; the batch continues.

        Raises:
            ConcurrencyError: If another batch is already running.
        """
        if self._is_generating:
            raise ConcurrencyError("Generation already in progress")
        self._is_generating = True
        self._cancel_requested = False
        self.last_error = None

        options = options or GenerationOptions()
        result = GenerationResult()
        total = len(self.questions)

        try:
            for question in list(self.questions):
                if self._cancel_requested or (cancel_event is not None and cancel_event.is_set()):
                    logger.info(
                        "Batch cancelled after %d of %d question(s)",
                        len(result.answers),
                        total,
                    )
                    result.cancelled = True
                    break

                if options.skip_filled and question.current_value:
                    continue

                try:
                    answer = await self._resolve_answer(
                        question,
                        profile,
                        job,
                        use_cached=options.use_cached,
                        temperature=options.temperature,
                        max_tokens=options.max_tokens,
                    )
                except ConfigurationError:
                    raise
                except Exception as exc:
                    logger.warning("Failed to answer %s: %s", question.id, exc)
                    self.last_error = str(exc)
                    result.errors.append(
                        GenerationFailure(
                            question_id=question.id,
                            question_text=question.question_text,
                            error=str(exc) or exc.__class__.__name__,
                        )
                    )
                    continue

                result.answers.append(answer)
                if answer.from_cache:
                    result.from_cache.append(answer)
                else:
                    result.generated.append(answer)

                if options.on_progress is not None:
                    progress = GenerationProgress(
                        current=len(result.answers),
                        total=total,
                        question=question.question_text,
                    )
                    try:
                        options.on_progress(progress)
                    except Exception as exc:
                        logger.warning("Progress callback failed for %s: %s", question.id, exc)
        finally:
            self._is_generating = False
            self._cancel_requested = False

        logger.info(
            "Batch complete: %d answered (%d cached, %d generated), %d failed",
            len(result.answers),
            len(result.from_cache),
            len(result.generated),
            len(result.errors),
        )
        return result

    def cancel(self) -> None:
        """Stop the running batch before its next question."""
        if self._is_generating:
            self._cancel_requested = True

    async def generate_single_answer(
        self,
        question_id: str,
        profile: UserProfile,
        job: JobData,
        use_cached: bool = True,
        temperature: float | None = None,
    ) -> GeneratedAnswer:
        question = self.get_question(question_id)
        return await self._resolve_answer(
            question, profile, job, use_cached=use_cached, temperature=temperature
        )

    async def regenerate_answer(
        self,
        question_id: str,
        profile: UserProfile,
        job: JobData,
        temperature: float | None = None,
    ) -> GeneratedAnswer:
        """Generate a fresh answer, never reusing the cache."""
        return await self.generate_single_answer(
            question_id, profile, job, use_cached=False, temperature=temperature
        )

    async def _resolve_answer(
        self,
        question: ScreeningQuestion,
        profile: UserProfile,
        job: JobData,
        use_cached: bool = True,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> GeneratedAnswer:
        answer = self._from_cache(question) if use_cached else None
        if answer is None:
            answer = await self.generator.generate_answer(
                question, profile, job, temperature=temperature, max_tokens=max_tokens
            )
        self._store(answer)
        return answer

    def _from_cache(self, question: ScreeningQuestion) -> GeneratedAnswer | None:
        hits = self.cache.find_answers(
            question.question_text,
            question.type,
            threshold=self.auto_answer_threshold,
            limit=1,
        )
        if not hits:
            return None

        cached = hits[0]
        self.cache.record_usage(cached.id)
        logger.info(
            "Reusing cached answer %s for %s (similarity %.2f)",
            cached.id,
            question.id,
            cached.similarity,
        )
        return GeneratedAnswer(
            question_id=question.id,
            question_text=question.question_text,
            question_type=question.type,
            answer=cached.answer,
            from_cache=True,
            cache_id=cached.id,
            similarity=cached.similarity,
        )

    def _store(self, answer: GeneratedAnswer) -> None:
        self._answers[answer.question_id] = answer
        self._history.append(answer)

    # ── Editing and caching ────────────────────────────────────────

    def update_answer(self, question_id: str, new_answer: str) -> bool:
        """Replace the answer text with the user's edit."""
        current = self._answers.get(question_id)
        if current is None:
            return False

        edited = replace(
            current, answer=new_answer, user_edited=True, edited_at=utcnow_iso()
        )
        self._answers[question_id] = edited
        self._history.append(edited)
        return True

    def save_answer_to_cache(
        self,
        question_id: str,
        rating: int | None = None,
        job_context: dict | None = None,
    ) -> str | None:
        """Persist a generated answer for reuse. Cache hits are never re-cached."""
        answer = self._answers.get(question_id)
        if answer is None or answer.from_cache:
            return None
        return self.cache.save_answer(
            answer.question_text,
            answer.question_type,
            answer.answer,
            rating=rating,
            job_context=job_context,
        )

    # ── Form filling ───────────────────────────────────────────────

    async def fill_form(
        self, adapter: FieldAdapter, options: FillOptions | None = None
    ) -> FillResult:
        """Write answers into the host form. One failing field never stops the pass."""
        options = options or FillOptions()
        result = FillResult()

        for question in self.questions:
            answer = self._answers.get(question.id)
            if answer is None:
                result.skipped.append({"question_id": question.id, "reason": "No answer generated"})
                continue
            if options.skip_filled and question.current_value:
                result.skipped.append({"question_id": question.id, "reason": "Already filled"})
                continue

            try:
                await self._fill_field(adapter, question.locator, answer.answer, options)
            except Exception as exc:
                logger.warning("Failed to fill %s: %s", question.id, exc)
                result.errors.append({"question_id": question.id, "error": str(exc)})
                continue

            result.filled.append({
                "question_id": question.id,
                "question_text": question.question_text,
                "answer_length": len(answer.answer),
            })

            if options.delay:
                await asyncio.sleep(options.delay)

        logger.info(
            "Filled %d field(s), skipped %d, %d error(s)",
            len(result.filled),
            len(result.skipped),
            len(result.errors),
        )
        return result

    async def _fill_field(
        self, adapter: FieldAdapter, locator, value: str, options: FillOptions
    ) -> None:
        if options.simulate_typing:
            adapter.set_value(locator, "")
            for i in range(1, len(value) + 1):
                adapter.set_value(locator, value[:i])
                adapter.notify_changed(locator, "input")
                await asyncio.sleep(self.typing_delay)
        else:
            adapter.set_value(locator, value)

        for event in ("input", "change", "blur"):
            adapter.notify_changed(locator, event)

    # ── Profile validation ─────────────────────────────────────────

    def validate_profile(self, profile: UserProfile) -> ProfileValidation:
        missing: list[str] = []
        if not profile.first_name:
            missing.append("first_name")
        if not profile.last_name:
            missing.append("last_name")
        if not profile.email:
            missing.append("email")

        if any(q.requires_resume for q in self.questions):
            if not profile.years_of_experience:
                missing.append("years_of_experience")
            if not profile.skills:
                missing.append("skills")
            if not profile.experience_summary:
                missing.append("experience_summary")

        recommendations = [
            _RECOMMENDATIONS[name] for name in _RECOMMENDATIONS if name in missing
        ]
        return ProfileValidation(
            is_complete=not missing,
            missing=missing,
            recommendations=recommendations,
        )

    def require_complete_profile(self, profile: UserProfile) -> None:
        """Raise ProfileValidationError unless validate_profile() passes."""
        report = self.validate_profile(profile)
        if not report.is_complete:
            raise ProfileValidationError(report.missing, report.recommendations)

    # ── Documents ──────────────────────────────────────────────────

    async def generate_cover_letter(self, data: CoverLetterInput) -> GeneratedCoverLetter:
        return await self.generator.generate_cover_letter(data)

    async def tailor_resume(self, data: TailoredResumeInput) -> TailoredResume:
        return await self.generator.tailor_resume(data)

    # ── Answers ────────────────────────────────────────────────────

    def get_all_answers(self) -> list[GeneratedAnswer]:
        return list(self._answers.values())

    def get_answer(self, question_id: str) -> GeneratedAnswer | None:
        return self._answers.get(question_id)

    def get_history(self) -> list[GeneratedAnswer]:
        """Every answer produced this session, including replaced ones."""
        return list(self._history)

    def clear_answers(self) -> None:
        self._answers.clear()

    def get_statistics(self) -> dict:
        answers = self.get_all_answers()
        by_type: dict[str, int] = {}
        for answer in answers:
            key = answer.question_type.value
            by_type[key] = by_type.get(key, 0) + 1
        return {
            "total_questions": len(self.questions),
            "total_answers": len(answers),
            "from_cache": sum(1 for a in answers if a.from_cache),
            "generated": sum(1 for a in answers if not a.from_cache),
            "user_edited": sum(1 for a in answers if a.user_edited),
            "by_type": by_type,
        }

    def export_answers(self) -> str:
        return json.dumps(
            {
                "questions": [
                    {
                        "id": q.id,
                        "text": q.question_text,
                        "type": q.type.value,
                        "is_required": q.is_required,
                    }
                    for q in self.questions
                ],
                "answers": [a.to_dict() for a in self.get_all_answers()],
                "statistics": self.get_statistics(),
                "exported_at": datetime.now(timezone.utc).isoformat(),
            },
            indent=2,
        )
