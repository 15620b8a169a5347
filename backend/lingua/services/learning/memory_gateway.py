"""
In-Memory Persistence Gateway

Dict-backed PersistenceGateway for local development and tests. Every
method does its check-and-write without awaiting in between, so on a
single event loop each call is atomic; the asyncio.Lock makes that
explicit for the conditional card update.

Writes are applied immediately; commit() and rollback() are no-ops.

Usage:
    gateway = InMemoryGateway()
    set_id = gateway.add_collection("learner-1", item_ids=[1, 2, 3])
    service = StudySessionService(gateway)
"""

import asyncio
import itertools
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from lingua.services.learning.errors import CollectionNotFoundError
from lingua.services.learning.gateway import PersistenceGateway
from lingua.services.learning.session_types import (
    CardAnswer,
    NewSessionCard,
    SessionCard,
    StudySession,
)
from lingua.services.learning.sm2 import ReviewState


@dataclass
class _Collection:
    owner_id: str
    item_ids: list[int] = field(default_factory=list)


@dataclass
class _SessionRow:
    session: StudySession
    card_ids: list[int]


class InMemoryGateway(PersistenceGateway):
    """PersistenceGateway that keeps everything in process memory."""

    def __init__(self):
        self._collections: dict[int, _Collection] = {}
        self._review_states: dict[tuple[str, int], ReviewState] = {}
        self._sessions: dict[int, _SessionRow] = {}
        self._cards: dict[int, SessionCard] = {}
        self._collection_ids = itertools.count(1)
        self._session_ids = itertools.count(1)
        self._card_ids = itertools.count(1)
        self._lock = asyncio.Lock()

    # -------------------------------------------------------------------------
    # Seeding
    # -------------------------------------------------------------------------

    def add_collection(
        self,
        owner_id: str,
        item_ids: list[int],
        collection_id: Optional[int] = None,
    ) -> int:
        """Register a vocabulary collection and return its id."""
        if collection_id is None:
            collection_id = next(self._collection_ids)
        self._collections[collection_id] = _Collection(
            owner_id=owner_id, item_ids=list(item_ids)
        )
        return collection_id

    # -------------------------------------------------------------------------
    # Vocabulary collections
    # -------------------------------------------------------------------------

    async def get_collection_items(
        self, collection_id: int, owner_id: str
    ) -> list[int]:
        collection = self._collections.get(collection_id)
        if collection is None or collection.owner_id != owner_id:
            raise CollectionNotFoundError(
                f"Collection {collection_id} not found",
                details={"collection_id": collection_id},
            )
        return list(collection.item_ids)

    # -------------------------------------------------------------------------
    # Review states
    # -------------------------------------------------------------------------

    async def get_or_create_review_state(
        self,
        owner_id: str,
        item_id: int,
        initial_state: ReviewState,
        lock: bool = False,
    ) -> ReviewState:
        return self._review_states.setdefault((owner_id, item_id), initial_state)

    async def save_review_state(
        self, owner_id: str, item_id: int, state: ReviewState
    ) -> None:
        self._review_states[(owner_id, item_id)] = state

    async def list_review_states(
        self, owner_id: str
    ) -> list[tuple[int, ReviewState]]:
        return sorted(
            (
                (item_id, state)
                for (owner, item_id), state in self._review_states.items()
                if owner == owner_id
            ),
            key=lambda pair: pair[0],
        )

    # -------------------------------------------------------------------------
    # Study sessions
    # -------------------------------------------------------------------------

    async def create_session(
        self,
        owner_id: str,
        collection_id: int,
        cards: list[NewSessionCard],
        started_at: datetime,
    ) -> StudySession:
        session_id = next(self._session_ids)
        card_ids = []
        for card in cards:
            card_id = next(self._card_ids)
            self._cards[card_id] = SessionCard(
                id=card_id,
                session_id=session_id,
                item_id=card.item_id,
                position=card.position,
                initial_state=card.initial_state,
            )
            card_ids.append(card_id)

        session = StudySession(
            id=session_id,
            owner_id=owner_id,
            collection_id=collection_id,
            total_cards=len(cards),
            started_at=started_at,
        )
        self._sessions[session_id] = _SessionRow(session=session, card_ids=card_ids)
        return self._assemble(session_id)

    async def get_session(
        self, session_id: int, owner_id: str, lock: bool = False
    ) -> Optional[StudySession]:
        row = self._sessions.get(session_id)
        if row is None or row.session.owner_id != owner_id:
            return None
        return self._assemble(session_id)

    async def get_session_card(
        self, session_id: int, card_id: int
    ) -> Optional[SessionCard]:
        card = self._cards.get(card_id)
        if card is None or card.session_id != session_id:
            return None
        return card

    async def update_session_card(
        self, session_id: int, card_id: int, answer: CardAnswer
    ) -> bool:
        async with self._lock:
            card = self._cards.get(card_id)
            if card is None or card.session_id != session_id or card.is_answered:
                return False
            self._cards[card_id] = card.with_answer(answer)
            return True

    async def count_answered(self, session_id: int) -> int:
        row = self._sessions.get(session_id)
        if row is None:
            return 0
        return sum(1 for card_id in row.card_ids if self._cards[card_id].is_answered)

    async def mark_session_complete(
        self, session_id: int, completed_at: datetime
    ) -> None:
        row = self._sessions.get(session_id)
        if row is None or row.session.completed_at is not None:
            return
        session = row.session
        row.session = StudySession(
            id=session.id,
            owner_id=session.owner_id,
            collection_id=session.collection_id,
            total_cards=session.total_cards,
            started_at=session.started_at,
            completed_at=completed_at,
        )

    # -------------------------------------------------------------------------
    # Unit of work
    # -------------------------------------------------------------------------

    async def commit(self) -> None:
        return None

    async def rollback(self) -> None:
        return None

    def _assemble(self, session_id: int) -> StudySession:
        row = self._sessions[session_id]
        session = row.session
        return StudySession(
            id=session.id,
            owner_id=session.owner_id,
            collection_id=session.collection_id,
            total_cards=session.total_cards,
            started_at=session.started_at,
            completed_at=session.completed_at,
            cards=tuple(self._cards[card_id] for card_id in row.card_ids),
        )
