import pytest

from screening_assistant.adapters import FieldAdapter, FieldContext, HtmlFormAdapter
from screening_assistant.detector import (
    MIN_QUESTION_SCORE,
    QUESTION_PATTERNS,
    QuestionDetector,
    classify_text,
)
from screening_assistant.models import AnswerFormat, QuestionType


def test_company_interest_beats_lower_weighted_types() -> None:
    result = classify_text("Why do you want to work here?")
    assert result is not None
    assert result.type is QuestionType.COMPANY_INTEREST
    assert result.score == 15
    assert result.requires_research is True


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Tell me about a time you failed", QuestionType.PROJECT_EXPERIENCE),
        ("What is your greatest weakness?", QuestionType.WEAKNESSES),
        ("Where do you see yourself in five years?", QuestionType.CAREER_MOTIVATION),
        ("Which programming languages do you use?", QuestionType.TECHNICAL_SKILLS),
        ("What are your salary expectations?", QuestionType.SALARY),
        ("Describe your work style", QuestionType.WORK_STYLE),
        ("WHEN CAN YOU START?", QuestionType.AVAILABILITY),
    ],
)
def test_classify_text_by_keyword(text: str, expected: QuestionType) -> None:
    result = classify_text(text)
    assert result is not None
    assert result.type is expected


def test_equal_scores_keep_first_declared_type() -> None:
    result = classify_text("What is your greatest strength and your greatest weakness?")
    assert result.type is QuestionType.STRENGTHS


def test_higher_score_wins_regardless_of_position() -> None:
    text = "When can you start, and describe a project you are proud of"
    assert classify_text(text).type is QuestionType.PROJECT_EXPERIENCE


def test_project_experience_carries_star_hint() -> None:
    result = classify_text("Describe a project you led")
    assert result.format is AnswerFormat.STAR
    assert result.requires_resume is True


def test_unmatched_text_is_not_a_question() -> None:
    assert classify_text("Phone number") is None
    assert classify_text("") is None


def test_every_scored_type_meets_minimum() -> None:
    for qtype, pattern in QUESTION_PATTERNS.items():
        if qtype is QuestionType.GENERIC:
            continue
        assert pattern.score >= MIN_QUESTION_SCORE


def test_classification_is_deterministic() -> None:
    text = "What motivates you and why this company?"
    assert classify_text(text) == classify_text(text)


# ── Field analysis ──────────────────────────────────────────────


def test_question_text_prefers_longer_heading() -> None:
    context = FieldContext(
        locator="#q",
        label="Why us?",
        heading="Why do you want to work here at Acme?",
    )
    assert QuestionDetector.question_text(context) == "Why do you want to work here at Acme?"


def test_question_text_falls_back_to_placeholder() -> None:
    context = FieldContext(locator="#q", placeholder="Describe a project you led")
    assert QuestionDetector.question_text(context) == "Describe a project you led"


@pytest.mark.parametrize(
    "context",
    [
        FieldContext(locator="#q", required=True),
        FieldContext(locator="#q", aria_required=True),
        FieldContext(locator="#q", label="Your strengths *"),
        FieldContext(locator="#q", label="Your strengths (required)"),
        FieldContext(locator="#q", container_classes=["field", "is-Mandatory"]),
    ],
)
def test_is_required_signals(context: FieldContext) -> None:
    assert QuestionDetector.is_required(context) is True


def test_is_required_defaults_to_false() -> None:
    assert QuestionDetector.is_required(FieldContext(locator="#q", label="Strengths")) is False


def test_analyze_field_builds_question() -> None:
    context = FieldContext(
        locator="#why",
        label="Why do you want to work here?",
        name="why",
        element_id="why",
        max_length=300,
        value="",
        form_index=0,
    )
    question = QuestionDetector().analyze_field(context, 2)

    assert question.id.startswith("question_2_")
    assert question.type is QuestionType.COMPANY_INTEREST
    assert question.max_length == 300
    assert question.current_value is None
    assert question.locator == "#why"
    assert question.metadata["name"] == "why"
    assert question.metadata["form_index"] == 0


def test_analyze_field_skips_non_questions() -> None:
    context = FieldContext(locator="#x", label="LinkedIn URL")
    assert QuestionDetector().analyze_field(context, 0) is None


# ── Detection over an adapter ───────────────────────────────────


def test_detect_html_form(application_form: str) -> None:
    adapter = HtmlFormAdapter(application_form)
    questions = QuestionDetector().detect(adapter)

    assert [q.type for q in questions] == [
        QuestionType.COMPANY_INTEREST,
        QuestionType.STRENGTHS,
        QuestionType.AVAILABILITY,
    ]
    why, strength, start = questions
    assert why.locator == "#q1"
    assert why.is_required is True
    assert why.max_length == 500
    assert strength.is_required is False
    assert strength.metadata["help_text"] == "Give one concrete example."
    assert start.current_value == "Immediately"


def test_detect_fields_with_unusual_ids() -> None:
    html = """
    <form>
      <label for=":r0:">Why do you want to work here?</label>
      <textarea id=":r0:" name="question_company"></textarea>
      <label for="123">What is your greatest strength?</label>
      <textarea id="123" name="question_strength"></textarea>
      <label for="q.2">When can you start?</label>
      <textarea id="q.2" name="question_start"></textarea>
    </form>
    """
    questions = QuestionDetector().detect(HtmlFormAdapter(html))

    assert [q.metadata["id"] for q in questions] == [":r0:", "123", "q.2"]
    assert [q.type for q in questions] == [
        QuestionType.COMPANY_INTEREST,
        QuestionType.STRENGTHS,
        QuestionType.AVAILABILITY,
    ]


class _FlakyAdapter(FieldAdapter):
    def list_fields(self):
        return ["broken", "ok"]

    def read_context(self, field):
        if field == "broken":
            raise RuntimeError("detached")
        return FieldContext(locator=field, label="What are your salary expectations?")

    def set_value(self, field, text):
        pass

    def notify_changed(self, field, event):
        pass


def test_detect_skips_unreadable_fields() -> None:
    questions = QuestionDetector().detect(_FlakyAdapter())
    assert len(questions) == 1
    assert questions[0].type is QuestionType.SALARY


def test_get_statistics(application_form: str) -> None:
    questions = QuestionDetector().detect(HtmlFormAdapter(application_form))
    stats = QuestionDetector.get_statistics(questions)

    assert stats["total"] == 3
    assert stats["required"] == 1
    assert stats["by_type"] == {"companyInterest": 1, "strengths": 1, "availability": 1}
    assert stats["requires_research"] == 1
    assert stats["requires_resume"] == 1
