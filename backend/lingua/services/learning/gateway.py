"""
Persistence Gateway

Abstract interface the study session manager uses for all durable state.
The manager never talks to a database directly; it goes through one of
the adapters:

- SQLAlchemyGateway (sql_gateway.py): PostgreSQL via async SQLAlchemy
- InMemoryGateway (memory_gateway.py): dict-backed, for development and tests

Consistency contract:
    update_session_card() must observe "not yet answered" and mark the
    card answered as one atomic step, returning False when another
    writer got there first. With lock=True, get_session() and
    get_or_create_review_state() must serialise concurrent writers on
    the same session / (owner, item) row until commit() or rollback().
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from lingua.services.learning.session_types import (
    CardAnswer,
    NewSessionCard,
    SessionCard,
    StudySession,
)
from lingua.services.learning.sm2 import ReviewState


class PersistenceGateway(ABC):
    """Durable store for review states and study sessions."""

    # -------------------------------------------------------------------------
    # Vocabulary collections (read-only content model)
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_collection_items(
        self, collection_id: int, owner_id: str
    ) -> list[int]:
        """
        Item ids of a collection in storage order.

        Raises:
            CollectionNotFoundError: Collection is missing or not owned
                by owner_id.
        """

    # -------------------------------------------------------------------------
    # Review states
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_or_create_review_state(
        self,
        owner_id: str,
        item_id: int,
        initial_state: ReviewState,
        lock: bool = False,
    ) -> ReviewState:
        """Return the stored state, inserting initial_state if there is none."""

    @abstractmethod
    async def save_review_state(
        self, owner_id: str, item_id: int, state: ReviewState
    ) -> None:
        """Overwrite the stored state for (owner_id, item_id)."""

    @abstractmethod
    async def list_review_states(
        self, owner_id: str
    ) -> list[tuple[int, ReviewState]]:
        """All (item_id, state) pairs for a learner."""

    # -------------------------------------------------------------------------
    # Study sessions
    # -------------------------------------------------------------------------

    @abstractmethod
    async def create_session(
        self,
        owner_id: str,
        collection_id: int,
        cards: list[NewSessionCard],
        started_at: datetime,
    ) -> StudySession:
        """Persist a session with its cards and return it with ids assigned."""

    @abstractmethod
    async def get_session(
        self, session_id: int, owner_id: str, lock: bool = False
    ) -> Optional[StudySession]:
        """Session with its cards, or None if missing or not owned."""

    @abstractmethod
    async def get_session_card(
        self, session_id: int, card_id: int
    ) -> Optional[SessionCard]:
        """Card if it belongs to the session, else None."""

    @abstractmethod
    async def update_session_card(
        self, session_id: int, card_id: int, answer: CardAnswer
    ) -> bool:
        """
        Record an answer on an unanswered card.

        Returns:
            True if the card was updated, False if it was already answered
            (or doesn't exist). Must never overwrite an existing answer.
        """

    @abstractmethod
    async def count_answered(self, session_id: int) -> int:
        """Number of answered cards in the session."""

    @abstractmethod
    async def mark_session_complete(
        self, session_id: int, completed_at: datetime
    ) -> None:
        """Set completed_at unless it is already set."""

    # -------------------------------------------------------------------------
    # Unit of work
    # -------------------------------------------------------------------------

    @abstractmethod
    async def commit(self) -> None:
        """Make the current operation's writes durable."""

    @abstractmethod
    async def rollback(self) -> None:
        """Discard the current operation's writes."""
