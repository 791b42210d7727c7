"""Screening Assistant API: local FastAPI application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict, Field

from screening_assistant.adapters import HtmlFormAdapter
from screening_assistant.cache import AnswerCache
from screening_assistant.config import get_settings
from screening_assistant.cover_letter import render_cover_letter_docx
from screening_assistant.errors import (
    ConcurrencyError,
    ConfigurationError,
    GenerationError,
)
from screening_assistant.generator import AnswerGenerator
from screening_assistant.models import (
    CoverLetterInput,
    CoverLetterStyle,
    FillOptions,
    GenerationOptions,
    JobData,
    QuestionType,
    ResumeSection,
    TailoredResumeInput,
    UserProfile,
)
from screening_assistant.orchestrator import AssistantOrchestrator

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Screening Assistant",
    description="Detect, answer, and fill job application screening questions.",
    version="0.1.0",
)

# Service instances; the LLM client is created on first generation
assistant = AssistantOrchestrator(AnswerGenerator(), AnswerCache())

# Adapter of the most recently detected form, used by /form/fill
current_form: HtmlFormAdapter | None = None


# ── Request models ──────────────────────────────────────────────


class WorkExperienceInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str
    company: str
    start_date: str = ""
    end_date: str | None = None
    location: str | None = None
    current: bool = False
    description: str | None = None
    achievements: list[str] = []


class EducationInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    degree: str
    field_of_study: str = ""
    institution: str = ""
    graduation_date: str | None = None
    gpa: float | None = None


class ProfileInput(BaseModel):
    """Candidate profile. Numeric fields accept numeric strings."""

    model_config = ConfigDict(extra="forbid")

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
    skills: list[str] = []
    experience_summary: str | None = None
    desired_salary: int | None = None
    notice_period: str | None = None
    available_from: str | None = None
    work_experience: list[WorkExperienceInput] = []
    education: list[EducationInput] = []


class JobDataInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = ""
    company: str = ""
    id: str | None = None
    location: str | None = None
    description: str | None = None
    requirements: str | None = None
    salary: str | None = None
    url: str | None = None


class DetectRequest(BaseModel):
    """Provide the form's HTML or a URL to fetch it from."""

    html: str | None = None
    url: str | None = None


class ProfileRequest(BaseModel):
    profile: ProfileInput


class GenerateRequest(BaseModel):
    """Input for batch generation."""

    profile: ProfileInput
    job: JobDataInput = Field(default_factory=JobDataInput)
    use_cached: bool = True
    skip_filled: bool = False
    temperature: float | None = None
    max_tokens: int | None = None


class SingleAnswerRequest(BaseModel):
    profile: ProfileInput
    job: JobDataInput = Field(default_factory=JobDataInput)
    use_cached: bool = True
    temperature: float | None = None


class UpdateAnswerRequest(BaseModel):
    answer: str


class CacheAnswerRequest(BaseModel):
    rating: int | None = None
    job_context: dict | None = None


class FillRequest(BaseModel):
    skip_filled: bool = False
    simulate_typing: bool = False
    delay: float = 0.0


class CoverLetterRequest(BaseModel):
    """Input for cover letter generation."""

    profile: ProfileInput
    job: JobDataInput = Field(default_factory=JobDataInput)
    style: CoverLetterStyle = CoverLetterStyle.FORMAL
    custom_instructions: str | None = None


class TailorRequest(BaseModel):
    profile: ProfileInput
    job: JobDataInput = Field(default_factory=JobDataInput)
    original_resume: str | None = None
    sections: list[ResumeSection] | None = None


class RatingRequest(BaseModel):
    rating: int


# ── Helpers ─────────────────────────────────────────────────────


def _profile(data: ProfileInput) -> UserProfile:
    return UserProfile.from_dict(data.model_dump())


def _job(data: JobDataInput) -> JobData:
    return JobData.from_dict(data.model_dump())


def _llm_error(exc: Exception) -> HTTPException:
    """Map generation-time failures to HTTP errors."""
    if isinstance(exc, ConfigurationError):
        return HTTPException(503, f"LLM is not configured: {exc}")
    if isinstance(exc, ConcurrencyError):
        return HTTPException(409, str(exc))
    return HTTPException(502, f"Generation failed: {exc}")


# ── Endpoints ───────────────────────────────────────────────────


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


@app.post("/questions/detect")
async def detect_questions(body: DetectRequest):
    """Detect screening questions in an application form.

    Replaces the current question set. The form is kept for /form/fill.
    """
    global current_form

    if not body.html and not body.url:
        raise HTTPException(400, "Provide either 'html' or 'url' in the request body.")

    if body.html:
        adapter = HtmlFormAdapter(body.html)
    else:
        try:
            adapter = HtmlFormAdapter.from_url(body.url)
        except Exception as exc:
            logger.warning("Failed to fetch %s: %s", body.url, exc)
            raise HTTPException(422, f"Failed to fetch the application page: {exc}")

    questions = assistant.detect_questions(adapter)
    current_form = adapter
    return {
        "questions": [q.to_dict() for q in questions],
        "statistics": assistant.detector.get_statistics(questions),
    }


@app.get("/questions/preview")
async def questions_preview():
    """Cached answer suggestions for each detected question."""
    return [
        {**item, "question": item["question"].to_dict()}
        for item in assistant.get_questions_preview()
    ]


@app.get("/state")
async def get_state():
    return assistant.get_state().to_dict()


@app.post("/answers/generate")
async def generate_answers(body: GenerateRequest):
    """Answer every detected question, reusing cached answers where close enough.

    Per-question failures are returned in `errors`; they never fail the request.
    """
    options = GenerationOptions(
        use_cached=body.use_cached,
        skip_filled=body.skip_filled,
        temperature=body.temperature,
        max_tokens=body.max_tokens,
    )
    try:
        result = await assistant.generate_all_answers(
            _profile(body.profile), _job(body.job), options
        )
    except (ConcurrencyError, ConfigurationError) as exc:
        raise _llm_error(exc) from exc
    return result.to_dict()


@app.post("/answers/cancel")
async def cancel_generation():
    """Stop the running batch before its next question."""
    running = assistant.is_generating
    assistant.cancel()
    return {"cancelled": running}


@app.post("/answers/{question_id}/generate")
async def generate_answer(question_id: str, body: SingleAnswerRequest):
    try:
        answer = await assistant.generate_single_answer(
            question_id,
            _profile(body.profile),
            _job(body.job),
            use_cached=body.use_cached,
            temperature=body.temperature,
        )
    except KeyError:
        raise HTTPException(404, f"Question '{question_id}' not found.")
    except (GenerationError, ConfigurationError) as exc:
        raise _llm_error(exc) from exc
    return answer.to_dict()


@app.post("/answers/{question_id}/regenerate")
async def regenerate_answer(question_id: str, body: SingleAnswerRequest):
    """Generate a fresh answer, ignoring the cache."""
    try:
        answer = await assistant.regenerate_answer(
            question_id,
            _profile(body.profile),
            _job(body.job),
            temperature=body.temperature,
        )
    except KeyError:
        raise HTTPException(404, f"Question '{question_id}' not found.")
    except (GenerationError, ConfigurationError) as exc:
        raise _llm_error(exc) from exc
    return answer.to_dict()


@app.put("/answers/{question_id}")
async def update_answer(question_id: str, body: UpdateAnswerRequest):
    """Replace an answer with the user's edited text."""
    if not assistant.update_answer(question_id, body.answer):
        raise HTTPException(404, f"No answer for question '{question_id}'.")
    return assistant.get_answer(question_id).to_dict()


@app.post("/answers/{question_id}/cache")
async def cache_answer(question_id: str, body: CacheAnswerRequest):
    """Save an accepted answer for reuse on similar questions.

    Answers that were themselves reused from the cache are not saved again.
    """
    answer = assistant.get_answer(question_id)
    if answer is None:
        raise HTTPException(404, f"No answer for question '{question_id}'.")
    try:
        cache_id = assistant.save_answer_to_cache(
            question_id, rating=body.rating, job_context=body.job_context
        )
    except ValueError as exc:
        raise HTTPException(422, str(exc))
    return {"cache_id": cache_id, "saved": cache_id is not None}


@app.get("/answers")
async def list_answers():
    return {
        "answers": [a.to_dict() for a in assistant.get_all_answers()],
        "statistics": assistant.get_statistics(),
    }


@app.get("/answers/export")
async def export_answers():
    """Download detected questions and answers as JSON."""
    return Response(
        content=assistant.export_answers(),
        media_type="application/json",
        headers={"Content-Disposition": "attachment; filename=screening_answers.json"},
    )


@app.post("/form/fill")
async def fill_form(body: FillRequest):
    """Write answers into the last detected form and return its HTML."""
    if current_form is None:
        raise HTTPException(400, "No form detected yet. Call /questions/detect first.")

    result = await assistant.fill_form(
        current_form,
        FillOptions(
            skip_filled=body.skip_filled,
            simulate_typing=body.simulate_typing,
            delay=body.delay,
        ),
    )
    return {**result.to_dict(), "html": current_form.html()}


@app.post("/profile/validate")
async def validate_profile(body: ProfileRequest):
    """Check the profile has what the detected questions need."""
    return assistant.validate_profile(_profile(body.profile)).to_dict()


@app.post("/cover-letter")
async def cover_letter(body: CoverLetterRequest):
    data = CoverLetterInput(
        user_profile=_profile(body.profile),
        job_data=_job(body.job),
        style=body.style,
        custom_instructions=body.custom_instructions,
    )
    try:
        letter = await assistant.generate_cover_letter(data)
    except (GenerationError, ConfigurationError) as exc:
        raise _llm_error(exc) from exc
    return letter.to_dict()


@app.post("/cover-letter/docx")
async def cover_letter_docx(body: CoverLetterRequest):
    """Generate a cover letter and return it as a Word document."""
    profile = _profile(body.profile)
    job = _job(body.job)
    data = CoverLetterInput(
        user_profile=profile,
        job_data=job,
        style=body.style,
        custom_instructions=body.custom_instructions,
    )
    try:
        letter = await assistant.generate_cover_letter(data)
    except (GenerationError, ConfigurationError) as exc:
        raise _llm_error(exc) from exc

    docx_bytes = render_cover_letter_docx(
        letter, candidate_name=profile.full_name, company_name=job.company
    )
    return Response(
        content=docx_bytes,
        media_type="application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        headers={"Content-Disposition": "attachment; filename=cover_letter.docx"},
    )


@app.post("/resume/tailor")
async def tailor_resume(body: TailorRequest):
    """Rewrite resume sections for the target job, with an ATS estimate."""
    data = TailoredResumeInput(
        user_profile=_profile(body.profile),
        job_data=_job(body.job),
        original_resume=body.original_resume,
    )
    if body.sections:
        data.sections = list(body.sections)
    try:
        tailored = await assistant.tailor_resume(data)
    except (GenerationError, ConfigurationError) as exc:
        raise _llm_error(exc) from exc
    return tailored.to_dict()


# ── Cache endpoints ─────────────────────────────────────────────


@app.get("/cache/search")
async def search_cache(
    question: str,
    question_type: QuestionType = Query(..., alias="type"),
    threshold: float | None = Query(None, ge=0.0, le=1.0),
    limit: int = Query(5, ge=1, le=50),
):
    """Find cached answers for a question. Defaults to the suggestion threshold."""
    hits = assistant.cache.find_answers(
        question,
        question_type,
        threshold=assistant.suggestion_threshold if threshold is None else threshold,
        limit=limit,
    )
    return [h.to_dict() for h in hits]


@app.get("/cache/stats")
async def cache_stats():
    return assistant.cache.get_statistics()


@app.put("/cache/{answer_id}/rating")
async def rate_cached_answer(answer_id: str, body: RatingRequest):
    try:
        updated = assistant.cache.update_rating(answer_id, body.rating)
    except ValueError as exc:
        raise HTTPException(422, str(exc))
    if not updated:
        raise HTTPException(404, f"Cached answer '{answer_id}' not found.")
    return assistant.cache.get_answer(answer_id).to_dict()


@app.delete("/cache/{answer_id}")
async def delete_cached_answer(answer_id: str):
    if not assistant.cache.delete_answer(answer_id):
        raise HTTPException(404, f"Cached answer '{answer_id}' not found.")
    return {"deleted": answer_id}


@app.delete("/cache")
async def clear_cache():
    return {"deleted": assistant.cache.clear()}
