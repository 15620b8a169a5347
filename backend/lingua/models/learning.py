"""
Study Session API Models (Pydantic)

Request/response schemas for the study session API:
- Starting a session and answering cards
- Review-state snapshots and session progress
- Due items and the review forecast

ARCHITECTURE NOTE:
    This file contains PYDANTIC models for API validation.
    There is a corresponding SQLAlchemy file: lingua/db/models_learning.py

    Data flows: API Request → Pydantic → Service → Gateway → Database

API Contract:
    Request models use StrictRequest (extra="forbid") to reject unknown fields.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from lingua.enums.learning import Grade
from lingua.models.base import StrictRequest, StrictResponse
from lingua.services.learning.session_types import (
    AnswerOutcome,
    DueItem,
    SessionCard,
    SessionProgress,
    StudySession,
)
from lingua.services.learning.sm2 import ReviewState, describe_interval


# ===========================================
# Review State
# ===========================================


class ReviewStateResponse(StrictResponse):
    """SM-2 scheduling state of one vocabulary item."""

    ease_factor: float = Field(..., ge=1.3, description="Interval growth multiplier")
    interval: int = Field(..., ge=0, description="Days until next review")
    repetitions: int = Field(..., ge=0, description="Consecutive passing recalls")
    next_review_date: datetime
    interval_description: str = Field(
        ..., description="Human-readable interval, e.g. '6 days'"
    )

    @classmethod
    def from_state(cls, state: ReviewState) -> ReviewStateResponse:
        return cls(
            ease_factor=state.ease_factor,
            interval=state.interval,
            repetitions=state.repetitions,
            next_review_date=state.next_review_date,
            interval_description=describe_interval(state.interval),
        )


# ===========================================
# Study Sessions
# ===========================================


class StartSessionRequest(StrictRequest):
    """
    Request to start a study session.

    max_cards defaults to the server setting when omitted; the service
    enforces the upper bound.

    Note: Uses StrictRequest - unknown fields will be rejected with 422.
    Numbers are strict: "5", 5.0 and true are rejected, not coerced.
    """

    collection_id: int = Field(
        ..., strict=True, description="Vocabulary collection to study"
    )
    max_cards: Optional[int] = Field(
        None, strict=True, ge=1, description="Maximum cards in the session"
    )


class RecordAnswerRequest(StrictRequest):
    """
    Request to record the answer for one session card.

    Grades follow SM-2 conventions: Blackout (0), Incorrect (1), Hard (2),
    Good (3), Easy (4). Good and Easy count as correct. The grade must be
    a JSON integer; true, "3" and 3.0 are rejected rather than coerced.

    Note: Uses StrictRequest - unknown fields will be rejected with 422.
    """

    session_id: int = Field(..., strict=True, description="Study session ID")
    card_id: int = Field(..., strict=True, description="Session card ID")
    grade: int = Field(
        ..., strict=True, ge=0, le=4, description="Recall quality (0-4)"
    )
    response_time_ms: Optional[int] = Field(
        None, strict=True, ge=0, description="Time taken to answer in milliseconds"
    )

    @field_validator("grade")
    @classmethod
    def _to_grade(cls, value: int) -> Grade:
        return Grade(value)


class SessionCardResponse(StrictResponse):
    """
    One card in a study session.

    initial_state is the item's review state when the session started;
    result_state and was_correct are null until the card is answered.
    """

    id: int
    position: int = Field(..., ge=1, description="1-based position in the session")
    item_id: int
    initial_state: ReviewStateResponse
    result_state: Optional[ReviewStateResponse] = None
    was_correct: Optional[bool] = None
    response_time_ms: Optional[int] = None
    answered_at: Optional[datetime] = None

    @classmethod
    def from_card(cls, card: SessionCard) -> SessionCardResponse:
        return cls(
            id=card.id,
            position=card.position,
            item_id=card.item_id,
            initial_state=ReviewStateResponse.from_state(card.initial_state),
            result_state=(
                ReviewStateResponse.from_state(card.result_state)
                if card.result_state is not None
                else None
            ),
            was_correct=card.was_correct,
            response_time_ms=card.response_time_ms,
            answered_at=card.answered_at,
        )


class SessionProgressResponse(StrictResponse):
    """Answered vs. total cards for a session."""

    answered_count: int
    total_cards: int
    is_completed: bool

    @classmethod
    def from_progress(cls, progress: SessionProgress) -> SessionProgressResponse:
        return cls(
            answered_count=progress.answered_count,
            total_cards=progress.total_cards,
            is_completed=progress.is_completed,
        )


class StudySessionResponse(StrictResponse):
    """
    A study session with its cards.

    next_card_id points at the first unanswered card in position order
    and is null once the session is complete.
    """

    id: int
    collection_id: int
    total_cards: int
    started_at: datetime
    completed_at: Optional[datetime] = None
    cards: list[SessionCardResponse]
    progress: SessionProgressResponse
    next_card_id: Optional[int] = None

    @classmethod
    def from_session(cls, session: StudySession) -> StudySessionResponse:
        next_card = session.next_card
        return cls(
            id=session.id,
            collection_id=session.collection_id,
            total_cards=session.total_cards,
            started_at=session.started_at,
            completed_at=session.completed_at,
            cards=[SessionCardResponse.from_card(card) for card in session.cards],
            progress=SessionProgressResponse.from_progress(session.progress),
            next_card_id=next_card.id if next_card else None,
        )


class RecordAnswerResponse(StrictResponse):
    """The answered card plus updated session progress."""

    card: SessionCardResponse
    progress: SessionProgressResponse

    @classmethod
    def from_outcome(cls, outcome: AnswerOutcome) -> RecordAnswerResponse:
        return cls(
            card=SessionCardResponse.from_card(outcome.card),
            progress=SessionProgressResponse.from_progress(outcome.progress),
        )


# ===========================================
# Due Items
# ===========================================


class ReviewForecast(StrictResponse):
    """
    Forecast of upcoming reviews.

    Buckets use UTC calendar days and do not overlap.
    """

    overdue: int = 0
    today: int = 0
    tomorrow: int = 0
    this_week: int = 0
    later: int = 0


class DueItemResponse(StrictResponse):
    """A vocabulary item that is due for review."""

    item_id: int
    state: ReviewStateResponse

    @classmethod
    def from_due_item(cls, item: DueItem) -> DueItemResponse:
        return cls(item_id=item.item_id, state=ReviewStateResponse.from_state(item.state))


class DueItemsResponse(StrictResponse):
    """Due items, most overdue first, with a forecast."""

    as_of: datetime
    items: list[DueItemResponse]
    total_due: int
    review_forecast: ReviewForecast
