"""Data models shared by the detector, generator, cache and orchestrator."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _optional_number(value: Any, kind: type) -> Any:
    """Coerce a numeric profile field. Raises ValueError for non-numeric text."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        value = float(value.strip().replace(",", ""))
    return kind(value)


class QuestionType(str, Enum):
    """Screening question taxonomy, in classification tie-break order."""

    COMPANY_INTEREST = "companyInterest"
    PROJECT_EXPERIENCE = "projectExperience"
    STRENGTHS = "strengths"
    WEAKNESSES = "weaknesses"
    CAREER_MOTIVATION = "careerMotivation"
    TECHNICAL_SKILLS = "technicalSkills"
    SALARY = "salary"
    WORK_STYLE = "workStyle"
    AVAILABILITY = "availability"
    GENERIC = "generic"


class AnswerFormat(str, Enum):
    STAR = "STAR"
    BULLET = "bullet"
    PARAGRAPH = "paragraph"


# ── Host inputs ─────────────────────────────────────────────────


@dataclass
class WorkExperience:
    title: str
    company: str
    start_date: str = ""
    end_date: str | None = None
    location: str | None = None
    current: bool = False
    description: str | None = None
    achievements: list[str] = field(default_factory=list)


@dataclass
class Education:
    degree: str
    field_of_study: str = ""
    institution: str = ""
    graduation_date: str | None = None
    gpa: float | None = None


@dataclass
class UserProfile:
    """Candidate profile supplied by the host. Read-only to the pipeline."""

    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str | None = None
    current_title: str | None = None
    current_company: str | None = None
    years_of_experience: float | None = None
    education_level: str | None = None
    university: str | None = None
    major: str | None = None
    skills: list[str] = field(default_factory=list)
    experience_summary: str | None = None
    desired_salary: int | None = None
    notice_period: str | None = None
    available_from: str | None = None
    work_experience: list[WorkExperience] = field(default_factory=list)
    education: list[Education] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_dict(cls, data: dict) -> "UserProfile":
        data = dict(data)
        # Prompts format these with numeric format specs
        data["years_of_experience"] = _optional_number(data.get("years_of_experience"), float)
        data["desired_salary"] = _optional_number(data.get("desired_salary"), int)
        data["work_experience"] = [
            WorkExperience(**w) for w in data.get("work_experience") or []
        ]
        data["education"] = [Education(**e) for e in data.get("education") or []]
        return cls(**data)


@dataclass
class JobData:
    """Target job supplied by the host. Read-only to the pipeline."""

    title: str = ""
    company: str = ""
    id: str | None = None
    location: str | None = None
    description: str | None = None
    requirements: str | None = None
    salary: str | None = None
    url: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "JobData":
        return cls(**data)


# ── Questions and answers ───────────────────────────────────────


@dataclass(frozen=True)
class ScreeningQuestion:
    """A free-text screening question found in an application form."""

    id: str
    type: QuestionType
    question_text: str
    placeholder: str = ""
    is_required: bool = False
    max_length: int | None = None
    current_value: str | None = None
    requires_research: bool = False
    requires_resume: bool = False
    format: AnswerFormat | None = None
    # Opaque handle the host's FieldAdapter understands (a CSS selector for HTML)
    locator: Any = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "question_text": self.question_text,
            "placeholder": self.placeholder,
            "is_required": self.is_required,
            "max_length": self.max_length,
            "current_value": self.current_value,
            "requires_research": self.requires_research,
            "requires_resume": self.requires_resume,
            "format": self.format.value if self.format else None,
            "locator": self.locator if isinstance(self.locator, str) else None,
            "metadata": self.metadata,
        }


@dataclass
class GeneratedAnswer:
    """An answer produced for one question, either generated or reused from cache."""

    question_id: str
    question_text: str
    question_type: QuestionType
    answer: str
    from_cache: bool = False
    cache_id: str | None = None
    similarity: float | None = None
    generated_at: str = field(default_factory=utcnow_iso)
    token_count: int | None = None
    confidence: float | None = None
    user_edited: bool = False
    edited_at: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["question_type"] = self.question_type.value
        return data


@dataclass
class CacheEntry:
    """A persisted answer. Text fields are immutable once written."""

    id: str
    question_text: str
    question_type: QuestionType
    answer: str
    rating: int | None = None
    usage_count: int = 0
    created_at: str = ""
    last_used: str = ""
    keywords: list[str] = field(default_factory=list)
    job_company: str | None = None
    job_title: str | None = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["question_type"] = self.question_type.value
        return data


@dataclass
class CachedAnswer:
    """A cache entry scored against a query."""

    entry: CacheEntry
    similarity: float

    @property
    def id(self) -> str:
        return self.entry.id

    @property
    def answer(self) -> str:
        return self.entry.answer

    def to_dict(self) -> dict:
        return {**self.entry.to_dict(), "similarity": round(self.similarity, 4)}


# ── Batch generation ────────────────────────────────────────────


@dataclass
class GenerationProgress:
    current: int
    total: int
    question: str


@dataclass
class GenerationOptions:
    use_cached: bool = True
    skip_filled: bool = False
    temperature: float | None = None
    max_tokens: int | None = None
    on_progress: Callable[[GenerationProgress], None] | None = None


@dataclass
class GenerationFailure:
    """A question that could not be answered within a batch."""

    question_id: str
    question_text: str
    error: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class GenerationResult:
    answers: list[GeneratedAnswer] = field(default_factory=list)
    errors: list[GenerationFailure] = field(default_factory=list)
    from_cache: list[GeneratedAnswer] = field(default_factory=list)
    generated: list[GeneratedAnswer] = field(default_factory=list)
    cancelled: bool = False

    def to_dict(self) -> dict:
        return {
            "answers": [a.to_dict() for a in self.answers],
            "errors": [e.to_dict() for e in self.errors],
            "from_cache": [a.question_id for a in self.from_cache],
            "generated": [a.question_id for a in self.generated],
            "cancelled": self.cancelled,
        }


# ── Form filling ────────────────────────────────────────────────


@dataclass
class FillOptions:
    skip_filled: bool = False
    simulate_typing: bool = False
    delay: float = 0.0  # seconds between fields


@dataclass
class FillResult:
    filled: list[dict] = field(default_factory=list)
    skipped: list[dict] = field(default_factory=list)
    errors: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


# ── Profile validation ──────────────────────────────────────────


@dataclass
class ProfileValidation:
    is_complete: bool
    missing: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


# ── Cover letters and resume tailoring ──────────────────────────


class CoverLetterStyle(str, Enum):
    FORMAL = "formal"
    CONVERSATIONAL = "conversational"
    CREATIVE = "creative"
    CONCISE = "concise"


@dataclass
class CoverLetterInput:
    user_profile: UserProfile
    job_data: JobData
    style: CoverLetterStyle = CoverLetterStyle.FORMAL
    custom_instructions: str | None = None


@dataclass
class GeneratedCoverLetter:
    id: str
    content: str
    style: CoverLetterStyle
    word_count: int
    job_id: str | None = None
    generated_at: str = field(default_factory=utcnow_iso)
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def paragraphs(self) -> list[str]:
        return [p.strip() for p in self.content.split("\n\n") if p.strip()]

    def to_dict(self) -> dict:
        data = asdict(self)
        data["style"] = self.style.value
        return data


class ResumeSection(str, Enum):
    SUMMARY = "summary"
    SKILLS = "skills"
    EXPERIENCE = "experience"
    EDUCATION = "education"


@dataclass
class TailoredResumeInput:
    user_profile: UserProfile
    job_data: JobData
    original_resume: str | None = None
    sections: list[ResumeSection] = field(
        default_factory=lambda: [
            ResumeSection.SUMMARY,
            ResumeSection.SKILLS,
            ResumeSection.EXPERIENCE,
        ]
    )


@dataclass
class TailoredExperience:
    original: WorkExperience
    tailored_description: str
    highlighted_achievements: list[str] = field(default_factory=list)


@dataclass
class TailoredResume:
    id: str
    summary: str | None = None
    skills: list[str] = field(default_factory=list)
    experience: list[TailoredExperience] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)
    ats_score: int = 0
    generated_at: str = field(default_factory=utcnow_iso)

    def to_dict(self) -> dict:
        return asdict(self)


# ── Orchestrator state ──────────────────────────────────────────


@dataclass
class AssistantState:
    detected_questions: list[ScreeningQuestion]
    generated_answers: dict[str, GeneratedAnswer]
    is_generating: bool
    last_error: str | None = None

    def to_dict(self) -> dict:
        return {
            "detected_questions": [q.to_dict() for q in self.detected_questions],
            "generated_answers": {
                qid: a.to_dict() for qid, a in self.generated_answers.items()
            },
            "is_generating": self.is_generating,
            "last_error": self.last_error,
        }
