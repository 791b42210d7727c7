import pytest

from screening_assistant.cache import AnswerCache, extract_keywords, jaccard_similarity
from screening_assistant.database import CachedAnswerRecord
from screening_assistant.models import QuestionType

QUERY = "alpha bravo charlie delta echo foxtrot golf hotel india juliet"


def test_extract_keywords_drops_stop_words_and_short_tokens() -> None:
    assert extract_keywords("Why do you want to work here?") == ["want", "work", "here"]


@pytest.mark.parametrize(
    ("a", "b", "expected"),
    [
        ({"work", "here"}, {"work", "here"}, 1.0),
        ({"work", "here"}, {"salary", "range"}, 0.0),
        ({"work", "here"}, {"here", "team"}, 1 / 3),
        (set(), {"here"}, 0.0),
        (set(), set(), 0.0),
    ],
)
def test_jaccard_similarity(a: set, b: set, expected: float) -> None:
    assert jaccard_similarity(a, b) == pytest.approx(expected)


def test_save_then_find_returns_exact_match(cache: AnswerCache) -> None:
    answer_id = cache.save_answer(
        "Why do you want to work here?", QuestionType.COMPANY_INTEREST, "Because..."
    )

    hits = cache.find_answers(
        "Why do you want to work here?", QuestionType.COMPANY_INTEREST, threshold=0.9
    )

    assert len(hits) == 1
    assert hits[0].id == answer_id
    assert hits[0].similarity == 1.0
    assert hits[0].answer == "Because..."


def test_find_answers_applies_threshold(cache: AnswerCache) -> None:
    words = QUERY.split()
    close_id = cache.save_answer(" ".join(words[:9]), QuestionType.GENERIC, "close")
    cache.save_answer(" ".join(words[:6]), QuestionType.GENERIC, "far")

    hits = cache.find_answers(QUERY, QuestionType.GENERIC, threshold=0.7, limit=5)

    assert [h.id for h in hits] == [close_id]
    assert hits[0].similarity == pytest.approx(0.9)


def test_find_answers_only_compares_same_type(cache: AnswerCache) -> None:
    cache.save_answer("What are your salary expectations?", QuestionType.SALARY, "80k")
    hits = cache.find_answers(
        "What are your salary expectations?", QuestionType.GENERIC, threshold=0.1
    )
    assert hits == []


def test_find_answers_ranks_by_similarity_then_rating_then_usage(cache: AnswerCache) -> None:
    text = "Describe your greatest strength"
    unrated = cache.save_answer(text, QuestionType.STRENGTHS, "unrated")
    well_used = cache.save_answer(text, QuestionType.STRENGTHS, "rated, used", rating=4)
    top_rated = cache.save_answer(text, QuestionType.STRENGTHS, "best", rating=5)
    rated = cache.save_answer(text, QuestionType.STRENGTHS, "rated", rating=4)
    cache.record_usage(well_used)
    partial = cache.save_answer("Describe strength", QuestionType.STRENGTHS, "partial", rating=5)

    hits = cache.find_answers(text, QuestionType.STRENGTHS, threshold=0.0, limit=10)

    assert [h.id for h in hits] == [top_rated, well_used, rated, unrated, partial]
    similarities = [h.similarity for h in hits]
    assert similarities == sorted(similarities, reverse=True)


def test_find_answers_respects_limit(cache: AnswerCache) -> None:
    for i in range(4):
        cache.save_answer("When can you start?", QuestionType.AVAILABILITY, f"answer {i}")
    hits = cache.find_answers("When can you start?", QuestionType.AVAILABILITY, threshold=0.5, limit=2)
    assert len(hits) == 2


def test_record_usage_increments_by_one(cache: AnswerCache) -> None:
    answer_id = cache.save_answer("Why this company?", QuestionType.COMPANY_INTEREST, "...")
    before = cache.get_answer(answer_id)

    assert cache.record_usage(answer_id) is True

    after = cache.get_answer(answer_id)
    assert after.usage_count == before.usage_count + 1
    assert after.last_used >= before.last_used
    assert cache.record_usage("answer_missing") is False


def test_update_rating(cache: AnswerCache) -> None:
    answer_id = cache.save_answer("Why this company?", QuestionType.COMPANY_INTEREST, "...")

    assert cache.update_rating(answer_id, 5) is True
    assert cache.get_answer(answer_id).rating == 5
    assert cache.update_rating("answer_missing", 3) is False


@pytest.mark.parametrize("rating", [0, 6])
def test_rating_out_of_range_is_rejected(cache: AnswerCache, rating: int) -> None:
    answer_id = cache.save_answer("Why this company?", QuestionType.COMPANY_INTEREST, "...")
    with pytest.raises(ValueError):
        cache.update_rating(answer_id, rating)
    with pytest.raises(ValueError):
        cache.save_answer("Why?", QuestionType.GENERIC, "...", rating=rating)


def test_job_context_is_stored(cache: AnswerCache) -> None:
    answer_id = cache.save_answer(
        "Why this company?",
        QuestionType.COMPANY_INTEREST,
        "...",
        job_context={"company": "Acme", "title": "Engineer"},
    )
    entry = cache.get_answer(answer_id)
    assert entry.job_company == "Acme"
    assert entry.job_title == "Engineer"
    assert entry.keywords == ["company"]


def test_delete_and_clear(cache: AnswerCache) -> None:
    first = cache.save_answer("Why this company?", QuestionType.COMPANY_INTEREST, "...")
    cache.save_answer("When can you start?", QuestionType.AVAILABILITY, "...")

    assert cache.delete_answer(first) is True
    assert cache.delete_answer(first) is False
    assert cache.get_answer(first) is None
    assert cache.count() == 1

    assert cache.clear() == 1
    assert cache.count() == 0


def test_statistics_average_only_counts_rated_entries(cache: AnswerCache) -> None:
    cache.save_answer("Why this company?", QuestionType.COMPANY_INTEREST, "...", rating=4)
    cache.save_answer("Why join us?", QuestionType.COMPANY_INTEREST, "...", rating=2)
    used = cache.save_answer("When can you start?", QuestionType.AVAILABILITY, "...")
    cache.record_usage(used)
    cache.record_usage(used)

    stats = cache.get_statistics()

    assert stats["total_answers"] == 3
    assert stats["by_type"] == {"companyInterest": 2, "availability": 1}
    assert stats["total_usage"] == 2
    assert stats["average_rating"] == pytest.approx(3.0)


def test_empty_cache_statistics(cache: AnswerCache) -> None:
    assert cache.get_statistics() == {
        "total_answers": 0,
        "by_type": {},
        "total_usage": 0,
        "average_rating": 0.0,
    }


def test_corrupted_rows_are_skipped(cache: AnswerCache) -> None:
    good = cache.save_answer("When can you start?", QuestionType.AVAILABILITY, "Monday")
    bad = cache.save_answer("When can you start?", QuestionType.AVAILABILITY, "Tuesday")

    db = cache._session_factory()
    try:
        db.get(CachedAnswerRecord, bad).keywords = "{not json"
        db.commit()
    finally:
        db.close()

    hits = cache.find_answers("When can you start?", QuestionType.AVAILABILITY, threshold=0.5)
    assert [h.id for h in hits] == [good]
    assert cache.get_statistics()["total_answers"] == 1
