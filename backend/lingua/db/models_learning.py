"""
SQLAlchemy Database Models for the Review Scheduler

These models support the SM-2 spaced repetition scheduler and the study
sessions built on top of it.

Tables:
- review_states: Long-lived SM-2 state per (learner, vocabulary item)
- study_sessions: Bounded review sessions started by a learner
- session_cards: The cards inside a session, answered at most once each

ARCHITECTURE NOTE:
    This file contains SQLALCHEMY models for database persistence.
    There is a corresponding Pydantic file: lingua/models/learning.py

    Data flows: Service Layer → Gateway → SQLAlchemy → Database
"""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lingua.db.base import Base


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


# ===========================================
# Review State (SM-2)
# ===========================================


class ReviewStateRecord(Base):
    """
    SM-2 scheduling state for one learner and one vocabulary item.

    Outlives any single study session and is never deleted while the
    item exists. Only the scheduler mutates it, one answer at a time.

    Attributes:
        id: Primary key.
        owner_id: Learner identity from the authentication layer.
        item_id: The vocabulary item being scheduled.
        ease_factor: Interval growth multiplier, never below 1.3.
        interval: Days until next review (0 for never scheduled).
        repetitions: Consecutive passing recalls.
        next_review_date: When the item is next due.
        last_reviewed_at: Time of the most recent answer, if any.
    """

    __tablename__ = "review_states"
    __table_args__ = (
        UniqueConstraint("owner_id", "item_id", name="uq_review_states_owner_item"),
        Index("ix_review_states_owner_next_review", "owner_id", "next_review_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(64))
    item_id: Mapped[int] = mapped_column(
        ForeignKey("vocabulary_items.id", ondelete="CASCADE"), index=True
    )

    # SM-2 state
    ease_factor: Mapped[float] = mapped_column(Float, default=2.5)
    interval: Mapped[int] = mapped_column(Integer, default=0)
    repetitions: Mapped[int] = mapped_column(Integer, default=0)
    next_review_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )

    # Timestamps
    last_reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True)
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now
    )


# ===========================================
# Study Sessions
# ===========================================


class StudySessionRecord(Base):
    """
    One learner-initiated review session.

    Attributes:
        id: Primary key.
        owner_id: Learner who started the session.
        collection_id: Vocabulary set the cards were drawn from.
        total_cards: Number of cards, fixed at creation.
        started_at: When the session was created.
        completed_at: Set once every card is answered. Null while the
            session is in progress or abandoned.
        cards: The session's cards in position order.
    """

    __tablename__ = "study_sessions"

    id: Mapped[int] = mapped_column(primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(64), index=True)
    collection_id: Mapped[int] = mapped_column(
        ForeignKey("vocabulary_sets.id", ondelete="CASCADE"), index=True
    )

    total_cards: Mapped[int] = mapped_column(Integer)
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    cards: Mapped[List["SessionCardRecord"]] = relationship(
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="SessionCardRecord.position",
    )


class SessionCardRecord(Base):
    """
    A card inside a study session.

    The initial_* columns snapshot the learner's review state when the
    session started. The result_* columns and was_correct stay null
    until the card is answered; a non-null was_correct is what marks a
    card answered, and the answer update is conditional on it being null.

    Attributes:
        id: Primary key.
        session_id: Parent StudySessionRecord.
        item_id: Vocabulary item shown on this card.
        position: 1-based ordinal within the session.
        was_correct: True for grades >= GOOD, False below, null if unanswered.
        response_time_ms: Optional answer latency for analytics.
        answered_at: When the answer was recorded.
    """

    __tablename__ = "session_cards"
    __table_args__ = (
        UniqueConstraint("session_id", "position", name="uq_session_cards_position"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    session_id: Mapped[int] = mapped_column(
        ForeignKey("study_sessions.id", ondelete="CASCADE"), index=True
    )
    item_id: Mapped[int] = mapped_column(
        ForeignKey("vocabulary_items.id", ondelete="CASCADE")
    )
    position: Mapped[int] = mapped_column(Integer)

    # Review state as of session start
    initial_ease_factor: Mapped[float] = mapped_column(Float)
    initial_interval: Mapped[int] = mapped_column(Integer)
    initial_repetitions: Mapped[int] = mapped_column(Integer)
    initial_next_review_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True)
    )

    # Review state after the answer
    result_ease_factor: Mapped[Optional[float]] = mapped_column(Float)
    result_interval: Mapped[Optional[int]] = mapped_column(Integer)
    result_repetitions: Mapped[Optional[int]] = mapped_column(Integer)
    result_next_review_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True)
    )

    # Answer
    was_correct: Mapped[Optional[bool]] = mapped_column(Boolean)
    response_time_ms: Mapped[Optional[int]] = mapped_column(Integer)
    answered_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    session: Mapped["StudySessionRecord"] = relationship(back_populates="cards")
