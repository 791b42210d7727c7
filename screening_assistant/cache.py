"""Answer Cache: stores accepted answers and finds them again for similar questions.

Similarity is the Jaccard index over keyword sets extracted from the question
text. Only entries of the same question type are compared.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone

from sqlalchemy import delete, func, select

from screening_assistant.config import get_settings
from screening_assistant.database import CachedAnswerRecord, init_db, make_engine
from screening_assistant.errors import CacheCorruptionError
from screening_assistant.models import CacheEntry, CachedAnswer, QuestionType

logger = logging.getLogger(__name__)

STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "is", "are", "was", "were", "be", "been", "being",
    "have", "has", "had", "do", "does", "did", "will", "would", "could",
    "should", "may", "might", "can", "this", "that", "these", "those",
    "what", "which", "who", "whom", "how", "when", "where", "why", "your",
    "you", "we", "our", "us", "me", "my", "i", "it", "its",
})

MIN_RATING = 1
MAX_RATING = 5


def extract_keywords(text: str) -> list[str]:
    """Lowercase, strip punctuation, drop short tokens and stop words."""
    cleaned = re.sub(r"[^\w\s]", "", text.lower())
    return [
        word
        for word in cleaned.split()
        if len(word) > 2 and word not in STOP_WORDS
    ]


def jaccard_similarity(keywords_a: list[str] | set[str], keywords_b: list[str] | set[str]) -> float:
    """|A ∩ B| / |A ∪ B| over the keyword sets; 0.0 when either is empty."""
    set_a, set_b = set(keywords_a), set(keywords_b)
    if not set_a or not set_b:
        return 0.0
    return len(set_a & set_b) / len(set_a | set_b)


def _iso(value: datetime | None) -> str:
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def _to_entry(record: CachedAnswerRecord) -> CacheEntry:
    """Deserialize a row. Raises CacheCorruptionError for unreadable rows."""
    try:
        keywords = json.loads(record.keywords or "[]")
        question_type = QuestionType(record.question_type)
    except (json.JSONDecodeError, ValueError) as exc:
        raise CacheCorruptionError(f"Cache entry {record.id} is corrupted: {exc}") from exc
    if not isinstance(keywords, list):
        raise CacheCorruptionError(f"Cache entry {record.id} has malformed keywords")

    return CacheEntry(
        id=record.id,
        question_text=record.question_text,
        question_type=question_type,
        answer=record.answer,
        rating=record.rating,
        usage_count=record.usage_count or 0,
        created_at=_iso(record.created_at),
        last_used=_iso(record.last_used),
        keywords=[str(k) for k in keywords],
        job_company=record.job_company,
        job_title=record.job_title,
    )


class AnswerCache:
    """Persistent, similarity-searchable store of accepted answers.

    Usage:
        cache = AnswerCache("sqlite://")
        answer_id = cache.save_answer("Why here?", QuestionType.COMPANY_INTEREST, "...")
        hits = cache.find_answers("Why here?", QuestionType.COMPANY_INTEREST, threshold=0.85)
    """

    def __init__(self, database_url: str | None = None) -> None:
        url = database_url or get_settings().resolved_database_url
        self.engine = make_engine(url)
        self._session_factory = init_db(self.engine)

    # ── Writes ─────────────────────────────────────────────────────

    def save_answer(
        self,
        question_text: str,
        question_type: QuestionType,
        answer: str,
        rating: int | None = None,
        job_context: dict | None = None,
    ) -> str:
        """Append a new entry and return its id."""
        if rating is not None:
            self._check_rating(rating)
        job_context = job_context or {}
        now = datetime.now(timezone.utc)

        db = self._session_factory()
        try:
            record = CachedAnswerRecord(
                question_text=question_text,
                question_type=QuestionType(question_type).value,
                answer=answer,
                rating=rating,
                usage_count=0,
                keywords=json.dumps(extract_keywords(question_text)),
                job_company=job_context.get("company"),
                job_title=job_context.get("title"),
                created_at=now,
                last_used=now,
            )
            db.add(record)
            db.commit()
            answer_id = record.id
        finally:
            db.close()

        logger.debug("Cached answer %s (%s)", answer_id, question_type)
        return answer_id

    def record_usage(self, answer_id: str) -> bool:
        """Increment usage_count by one and touch last_used."""
        db = self._session_factory()
        try:
            record = db.get(CachedAnswerRecord, answer_id)
            if record is None:
                return False
            record.usage_count = (record.usage_count or 0) + 1
            record.last_used = datetime.now(timezone.utc)
            db.commit()
            return True
        finally:
            db.close()

    def update_rating(self, answer_id: str, rating: int) -> bool:
        """Set the rating (1-5). Returns False for unknown ids."""
        self._check_rating(rating)
        db = self._session_factory()
        try:
            record = db.get(CachedAnswerRecord, answer_id)
            if record is None:
                return False
            record.rating = rating
            db.commit()
            return True
        finally:
            db.close()

    def delete_answer(self, answer_id: str) -> bool:
        db = self._session_factory()
        try:
            result = db.execute(
                delete(CachedAnswerRecord).where(CachedAnswerRecord.id == answer_id)
            )
            db.commit()
            return result.rowcount > 0
        finally:
            db.close()

    def clear(self) -> int:
        """Delete every entry. Returns the number removed."""
        db = self._session_factory()
        try:
            result = db.execute(delete(CachedAnswerRecord))
            db.commit()
            logger.info("Cleared %d cached answer(s)", result.rowcount)
            return result.rowcount
        finally:
            db.close()

    # ── Reads ──────────────────────────────────────────────────────

    def get_answer(self, answer_id: str) -> CacheEntry | None:
        db = self._session_factory()
        try:
            record = db.get(CachedAnswerRecord, answer_id)
            if record is None:
                return None
            return _to_entry(record)
        finally:
            db.close()

    def find_answers(
        self,
        question_text: str,
        question_type: QuestionType,
        *,
        threshold: float,
        limit: int = 5,
    ) -> list[CachedAnswer]:
        """Rank same-type entries by similarity to `question_text`.

        Entries below `threshold` are never returned. Ties on similarity are
        broken by rating (unrated counts as 0), then by usage count.
        """
        query_keywords = extract_keywords(question_text)
        scored: list[CachedAnswer] = []
        for entry in self._entries(question_type):
            similarity = jaccard_similarity(query_keywords, entry.keywords)
            if similarity >= threshold:
                scored.append(CachedAnswer(entry=entry, similarity=similarity))

        scored.sort(
            key=lambda c: (c.similarity, c.entry.rating or 0, c.entry.usage_count),
            reverse=True,
        )
        return scored[:limit]

    def get_statistics(self) -> dict:
        entries = self._entries()
        by_type: dict[str, int] = {}
        total_usage = 0
        ratings: list[int] = []
        for entry in entries:
            by_type[entry.question_type.value] = by_type.get(entry.question_type.value, 0) + 1
            total_usage += entry.usage_count
            if entry.rating is not None:
                ratings.append(entry.rating)

        return {
            "total_answers": len(entries),
            "by_type": by_type,
            "total_usage": total_usage,
            # Only rated entries count towards the average
            "average_rating": sum(ratings) / len(ratings) if ratings else 0.0,
        }

    def count(self) -> int:
        db = self._session_factory()
        try:
            return db.scalar(select(func.count()).select_from(CachedAnswerRecord)) or 0
        finally:
            db.close()

    # ── Helpers ────────────────────────────────────────────────────

    def _entries(self, question_type: QuestionType | None = None) -> list[CacheEntry]:
        """Load entries, skipping rows that fail to deserialize."""
        db = self._session_factory()
        try:
            stmt = select(CachedAnswerRecord).order_by(CachedAnswerRecord.created_at)
            if question_type is not None:
                stmt = stmt.where(
                    CachedAnswerRecord.question_type == QuestionType(question_type).value
                )
            records = db.scalars(stmt).all()
        finally:
            db.close()

        entries: list[CacheEntry] = []
        for record in records:
            try:
                entries.append(_to_entry(record))
            except CacheCorruptionError as exc:
                logger.warning("Skipping cache entry: %s", exc)
        return entries

    @staticmethod
    def _check_rating(rating: int) -> None:
        if not MIN_RATING <= rating <= MAX_RATING:
            raise ValueError(f"Rating must be between {MIN_RATING} and {MAX_RATING}, got {rating}")
