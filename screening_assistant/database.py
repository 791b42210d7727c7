"""Database layer: SQLAlchemy model and session management for the answer cache.

Uses SQLite locally. Point DATABASE_URL at PostgreSQL for a shared store.
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    String,
    Text,
    create_engine,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool


# ── Base ────────────────────────────────────────────────────────


class Base(DeclarativeBase):
    pass


# ── Helpers ─────────────────────────────────────────────────────


def _new_id() -> str:
    return f"answer_{uuid4().hex[:12]}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Models ──────────────────────────────────────────────────────


class CachedAnswerRecord(Base):
    """A previously accepted answer, reusable for similar questions."""

    __tablename__ = "cached_answers"

    id = Column(String(32), primary_key=True, default=_new_id)
    question_text = Column(Text, nullable=False)
    question_type = Column(String(32), nullable=False, index=True)
    answer = Column(Text, nullable=False)
    rating = Column(Integer, nullable=True)
    usage_count = Column(Integer, nullable=False, default=0)
    keywords = Column(Text, nullable=False, default="[]")  # JSON list
    job_company = Column(String(255), nullable=True)
    job_title = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=_utcnow, index=True)
    last_used = Column(DateTime, default=_utcnow, index=True)


# ── Engine / session factory ────────────────────────────────────


def make_engine(database_url: str) -> Engine:
    """Create an engine; in-memory SQLite shares one connection across sessions."""
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )
    return create_engine(
        database_url,
        # SQLite needs check_same_thread=False when used from FastAPI
        connect_args={"check_same_thread": False} if "sqlite" in database_url else {},
        echo=False,
    )


def init_db(engine: Engine) -> sessionmaker[Session]:
    """Create all tables if they don't exist and return a session factory."""
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine)
