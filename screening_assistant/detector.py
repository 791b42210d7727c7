"""Question Detector: classifies form fields into screening question types."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from screening_assistant.adapters import FieldAdapter, FieldContext
from screening_assistant.models import AnswerFormat, QuestionType, ScreeningQuestion

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuestionPattern:
    """Keyword phrases and answer hints for one question type."""

    keywords: tuple[str, ...]
    score: int
    requires_research: bool = False
    requires_resume: bool = False
    format: AnswerFormat | None = None


# Declaration order is the tie-break order for equal scores
QUESTION_PATTERNS: dict[QuestionType, QuestionPattern] = {
    QuestionType.COMPANY_INTEREST: QuestionPattern(
        keywords=(
            "why do you want to work here",
            "why are you interested in this",
            "why this company",
            "what interests you about",
            "why do you want to join",
            "what attracts you to",
            "why should we hire you",
            "what makes you want to work",
            "why are you applying",
        ),
        score=15,
        requires_research=True,
    ),
    QuestionType.PROJECT_EXPERIENCE: QuestionPattern(
        keywords=(
            "describe a project",
            "challenging project",
            "difficult situation",
            "problem you solved",
            "achievement",
            "accomplishment",
            "example of when you",
            "tell me about a time",
            "give an example",
            "describe your experience with",
        ),
        score=12,
        requires_resume=True,
        format=AnswerFormat.STAR,
    ),
    QuestionType.STRENGTHS: QuestionPattern(
        keywords=(
            "greatest strength",
            "top skill",
            "what are you good at",
            "your strengths",
            "key competencies",
            "what makes you qualified",
            "unique skills",
            "standout abilities",
            "core strengths",
        ),
        score=10,
        requires_resume=True,
    ),
    QuestionType.WEAKNESSES: QuestionPattern(
        keywords=(
            "greatest weakness",
            "areas for improvement",
            "what do you struggle with",
            "challenges you face",
            "areas to develop",
            "where do you need growth",
        ),
        score=10,
        requires_resume=True,
    ),
    QuestionType.CAREER_MOTIVATION: QuestionPattern(
        keywords=(
            "why are you leaving",
            "why change jobs",
            "career goals",
            "where do you see yourself",
            "what are you looking for",
            "career aspirations",
            "professional goals",
            "why this role",
            "what motivates you",
        ),
        score=10,
    ),
    QuestionType.TECHNICAL_SKILLS: QuestionPattern(
        keywords=(
            "technical skills",
            "programming languages",
            "tools and technologies",
            "software proficiency",
            "technical experience",
            "frameworks you know",
            "development experience",
        ),
        score=10,
        requires_resume=True,
    ),
    QuestionType.SALARY: QuestionPattern(
        keywords=(
            "salary expectations",
            "desired salary",
            "compensation requirements",
            "expected pay",
            "salary range",
            "pay expectations",
            "compensation needs",
        ),
        score=8,
        requires_resume=True,
    ),
    QuestionType.WORK_STYLE: QuestionPattern(
        keywords=(
            "work style",
            "how do you work",
            "team or independent",
            "work environment preference",
            "ideal work setting",
            "collaboration style",
            "remote or office",
        ),
        score=8,
        requires_resume=True,
    ),
    QuestionType.AVAILABILITY: QuestionPattern(
        keywords=(
            "when can you start",
            "availability",
            "start date",
            "notice period",
            "how soon can you begin",
            "earliest start",
        ),
        score=5,
    ),
    QuestionType.GENERIC: QuestionPattern(keywords=(), score=0),
}

# Minimum winning score for a field to count as a screening question
MIN_QUESTION_SCORE = 5

_REQUIRED_CONTAINER_HINTS = ("required", "mandatory")


@dataclass(frozen=True)
class Classification:
    type: QuestionType
    score: int
    requires_research: bool = False
    requires_resume: bool = False
    format: AnswerFormat | None = None


def classify_text(text: str) -> Classification | None:
    """Return the highest-scoring question type for `text`, or None.

    Matching is case-insensitive substring search. Equal scores keep the type
    declared first in QUESTION_PATTERNS.
    """
    text = text.lower()
    best: Classification | None = None

    for qtype, pattern in QUESTION_PATTERNS.items():
        if qtype is QuestionType.GENERIC:
            continue
        if not any(keyword in text for keyword in pattern.keywords):
            continue
        if best is None or pattern.score > best.score:
            best = Classification(
                type=qtype,
                score=pattern.score,
                requires_research=pattern.requires_research,
                requires_resume=pattern.requires_resume,
                format=pattern.format,
            )

    if best is None or best.score < MIN_QUESTION_SCORE:
        return None
    return best


class QuestionDetector:
    """Turns host form fields into ScreeningQuestion objects."""

    def detect(self, adapter: FieldAdapter) -> list[ScreeningQuestion]:
        """Detect every screening question exposed by `adapter`, in field order."""
        questions: list[ScreeningQuestion] = []
        try:
            handles = adapter.list_fields()
        except Exception as exc:
            logger.warning("Field adapter could not list fields: %s", exc)
            return questions

        for index, handle in enumerate(handles):
            try:
                context = adapter.read_context(handle)
            except Exception as exc:
                logger.warning("Skipping unreadable field %r: %s", handle, exc)
                continue
            question = self.analyze_field(context, index)
            if question is not None:
                questions.append(question)

        logger.info("Detected %d screening question(s)", len(questions))
        return questions

    def analyze_field(
        self, context: FieldContext, index: int
    ) -> ScreeningQuestion | None:
        """Classify one field. Returns None when it is not a screening question."""
        question_text = self.question_text(context)
        text = f"{question_text} {context.placeholder} {context.label}"
        classification = classify_text(text)
        if classification is None:
            return None

        metadata = {
            "name": context.name,
            "id": context.element_id,
            "class_name": context.class_name,
            "label": context.label,
            "help_text": context.help_text,
        }
        if context.form_index is not None:
            metadata["form_index"] = context.form_index

        return ScreeningQuestion(
            id=f"question_{index}_{int(time.time() * 1000)}",
            type=classification.type,
            question_text=question_text,
            placeholder=context.placeholder,
            is_required=self.is_required(context),
            max_length=context.max_length if context.max_length else None,
            current_value=context.value or None,
            requires_research=classification.requires_research,
            requires_resume=classification.requires_resume,
            format=classification.format,
            locator=context.locator,
            metadata=metadata,
        )

    @staticmethod
    def question_text(context: FieldContext) -> str:
        """Label first, a longer nearby heading next, placeholder as last resort."""
        text = context.label
        if context.heading and len(context.heading) > len(text):
            text = context.heading
        if not text:
            text = context.placeholder
        return text

    @staticmethod
    def is_required(context: FieldContext) -> bool:
        if context.required or context.aria_required:
            return True
        label = context.label.lower()
        if "*" in label or "required" in label:
            return True
        return any(
            hint in cls.lower()
            for cls in context.container_classes
            for hint in _REQUIRED_CONTAINER_HINTS
        )

    @staticmethod
    def get_statistics(questions: list[ScreeningQuestion]) -> dict:
        by_type: dict[str, int] = {}
        for q in questions:
            by_type[q.type.value] = by_type.get(q.type.value, 0) + 1
        return {
            "total": len(questions),
            "required": sum(1 for q in questions if q.is_required),
            "by_type": by_type,
            "requires_research": sum(1 for q in questions if q.requires_research),
            "requires_resume": sum(1 for q in questions if q.requires_resume),
        }
