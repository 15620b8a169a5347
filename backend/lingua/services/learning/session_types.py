"""
Study Session Domain Types

Plain dataclasses passed between the session manager and the
persistence gateway. They are decoupled from both the SQLAlchemy rows
(lingua.db.models_learning) and the API schemas (lingua.models.learning).

A session's "current card" is never stored: it is derived from the
answered flags on its cards (see StudySession.next_card).
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from lingua.services.learning.sm2 import ReviewState


@dataclass(frozen=True)
class NewSessionCard:
    """A card selected for a session that has not been persisted yet."""

    item_id: int
    position: int  # 1-based ordinal within the session
    initial_state: ReviewState


@dataclass(frozen=True)
class CardAnswer:
    """The result recorded against a session card when it is answered."""

    result_state: ReviewState
    was_correct: bool
    answered_at: datetime
    response_time_ms: Optional[int] = None


@dataclass(frozen=True)
class SessionCard:
    """
    One card inside a study session.

    initial_state is the learner's ReviewState when the session started.
    The answer fields stay None until the card is answered, which
    happens exactly once.
    """

    id: int
    session_id: int
    item_id: int
    position: int
    initial_state: ReviewState
    result_state: Optional[ReviewState] = None
    was_correct: Optional[bool] = None
    response_time_ms: Optional[int] = None
    answered_at: Optional[datetime] = None

    @property
    def is_answered(self) -> bool:
        return self.was_correct is not None

    def with_answer(self, answer: CardAnswer) -> "SessionCard":
        """Copy of this card carrying the given answer."""
        return SessionCard(
            id=self.id,
            session_id=self.session_id,
            item_id=self.item_id,
            position=self.position,
            initial_state=self.initial_state,
            result_state=answer.result_state,
            was_correct=answer.was_correct,
            response_time_ms=answer.response_time_ms,
            answered_at=answer.answered_at,
        )


@dataclass(frozen=True)
class SessionProgress:
    """How far a session has got."""

    answered_count: int
    total_cards: int

    @property
    def is_completed(self) -> bool:
        return self.answered_count >= self.total_cards


@dataclass(frozen=True)
class StudySession:
    """
    A bounded batch of cards reviewed in one sitting.

    total_cards is fixed at creation. completed_at is set once every
    card has been answered and never changes afterwards.
    """

    id: int
    owner_id: str
    collection_id: int
    total_cards: int
    started_at: datetime
    cards: tuple[SessionCard, ...] = ()
    completed_at: Optional[datetime] = None

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    @property
    def answered_count(self) -> int:
        return sum(1 for card in self.cards if card.is_answered)

    @property
    def progress(self) -> SessionProgress:
        return SessionProgress(
            answered_count=self.answered_count,
            total_cards=self.total_cards,
        )

    @property
    def next_card(self) -> Optional[SessionCard]:
        """First unanswered card in session order, if any."""
        for card in sorted(self.cards, key=lambda c: c.position):
            if not card.is_answered:
                return card
        return None


@dataclass(frozen=True)
class AnswerOutcome:
    """What RecordAnswer hands back to its caller."""

    card: SessionCard
    progress: SessionProgress


@dataclass(frozen=True)
class DueItem:
    """A learner's vocabulary item whose review date has passed."""

    item_id: int
    state: ReviewState
