"""
SQLAlchemy Persistence Gateway

PersistenceGateway adapter backed by an async SQLAlchemy session.
PostgreSQL (asyncpg) in production; SQLite (aiosqlite) works for tests.

Atomicity:
- Answering a card is a single conditional UPDATE keyed on
  was_correct IS NULL; rowcount tells us whether we won.
- Rows read with lock=True are taken with SELECT ... FOR UPDATE, so
  answers within one session and review-state writes for one
  (owner, item) serialise until commit/rollback.
- Review states are created with INSERT ... ON CONFLICT DO NOTHING on
  the (owner_id, item_id) unique constraint, so two sessions creating
  the same state at once end up with a single row.

Usage:
    async with async_session_maker() as db:
        gateway = SQLAlchemyGateway(db)
        service = StudySessionService(gateway)
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from lingua.db.models import VocabularyItem, VocabularySet
from lingua.db.models_learning import (
    ReviewStateRecord,
    SessionCardRecord,
    StudySessionRecord,
)
from lingua.services.learning.errors import CollectionNotFoundError
from lingua.services.learning.gateway import PersistenceGateway
from lingua.services.learning.session_types import (
    CardAnswer,
    NewSessionCard,
    SessionCard,
    StudySession,
)
from lingua.services.learning.sm2 import ReviewState

logger = logging.getLogger(__name__)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalise a datetime read back from the database to aware UTC.

    SQLite drops tzinfo on DateTime(timezone=True) columns.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SQLAlchemyGateway(PersistenceGateway):
    """Persistence gateway over an AsyncSession."""

    def __init__(self, db: AsyncSession):
        """
        Args:
            db: Async database session. The gateway owns the transaction
                boundaries through commit()/rollback().
        """
        self.db = db

    # -------------------------------------------------------------------------
    # Vocabulary collections
    # -------------------------------------------------------------------------

    async def get_collection_items(
        self, collection_id: int, owner_id: str
    ) -> list[int]:
        result = await self.db.execute(
            select(VocabularySet.id).where(
                VocabularySet.id == collection_id,
                VocabularySet.owner_id == owner_id,
            )
        )
        if result.scalar_one_or_none() is None:
            raise CollectionNotFoundError(
                f"Collection {collection_id} not found",
                details={"collection_id": collection_id},
            )

        result = await self.db.execute(
            select(VocabularyItem.id)
            .where(VocabularyItem.set_id == collection_id)
            .order_by(VocabularyItem.id.asc())
        )
        return list(result.scalars().all())

    # -------------------------------------------------------------------------
    # Review states
    # -------------------------------------------------------------------------

    def _insert(self):
        """Dialect-specific INSERT construct that supports ON CONFLICT."""
        if self.db.get_bind().dialect.name == "sqlite":
            return sqlite_insert
        return pg_insert

    async def _select_review_state(
        self, owner_id: str, item_id: int, lock: bool
    ) -> Optional[ReviewStateRecord]:
        query = (
            select(ReviewStateRecord)
            .where(
                ReviewStateRecord.owner_id == owner_id,
                ReviewStateRecord.item_id == item_id,
            )
            .execution_options(populate_existing=True)
        )
        if lock:
            query = query.with_for_update()

        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_or_create_review_state(
        self,
        owner_id: str,
        item_id: int,
        initial_state: ReviewState,
        lock: bool = False,
    ) -> ReviewState:
        record = await self._select_review_state(owner_id, item_id, lock)

        if record is None:
            insert = self._insert()
            stmt = (
                insert(ReviewStateRecord)
                .values(
                    owner_id=owner_id,
                    item_id=item_id,
                    ease_factor=initial_state.ease_factor,
                    interval=initial_state.interval,
                    repetitions=initial_state.repetitions,
                    next_review_date=initial_state.next_review_date,
                    created_at=initial_state.next_review_date,
                    updated_at=initial_state.next_review_date,
                )
                .on_conflict_do_nothing(index_elements=["owner_id", "item_id"])
            )
            await self.db.execute(stmt)
            record = await self._select_review_state(owner_id, item_id, lock)

        return self._to_review_state(record)

    async def save_review_state(
        self, owner_id: str, item_id: int, state: ReviewState
    ) -> None:
        now = datetime.now(timezone.utc)
        await self.db.execute(
            update(ReviewStateRecord)
            .where(
                ReviewStateRecord.owner_id == owner_id,
                ReviewStateRecord.item_id == item_id,
            )
            .values(
                ease_factor=state.ease_factor,
                interval=state.interval,
                repetitions=state.repetitions,
                next_review_date=state.next_review_date,
                last_reviewed_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session="evaluate")
        )

    async def list_review_states(
        self, owner_id: str
    ) -> list[tuple[int, ReviewState]]:
        result = await self.db.execute(
            select(ReviewStateRecord)
            .where(ReviewStateRecord.owner_id == owner_id)
            .order_by(ReviewStateRecord.item_id.asc())
            .execution_options(populate_existing=True)
        )
        return [
            (record.item_id, self._to_review_state(record))
            for record in result.scalars().all()
        ]

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
        record = StudySessionRecord(
            owner_id=owner_id,
            collection_id=collection_id,
            total_cards=len(cards),
            started_at=started_at,
            completed_at=None,
            cards=[
                SessionCardRecord(
                    item_id=card.item_id,
                    position=card.position,
                    initial_ease_factor=card.initial_state.ease_factor,
                    initial_interval=card.initial_state.interval,
                    initial_repetitions=card.initial_state.repetitions,
                    initial_next_review_date=card.initial_state.next_review_date,
                )
                for card in cards
            ],
        )
        self.db.add(record)
        await self.db.flush()

        logger.debug(f"Inserted study session {record.id} with {len(cards)} cards")

        return self._to_session(record)

    async def get_session(
        self, session_id: int, owner_id: str, lock: bool = False
    ) -> Optional[StudySession]:
        query = (
            select(StudySessionRecord)
            .where(
                StudySessionRecord.id == session_id,
                StudySessionRecord.owner_id == owner_id,
            )
            .options(selectinload(StudySessionRecord.cards))
            .execution_options(populate_existing=True)
        )
        if lock:
            query = query.with_for_update(of=StudySessionRecord)

        result = await self.db.execute(query)
        record = result.scalar_one_or_none()

        if record is None:
            return None

        return self._to_session(record)

    async def get_session_card(
        self, session_id: int, card_id: int
    ) -> Optional[SessionCard]:
        result = await self.db.execute(
            select(SessionCardRecord)
            .where(
                SessionCardRecord.id == card_id,
                SessionCardRecord.session_id == session_id,
            )
            .execution_options(populate_existing=True)
        )
        record = result.scalar_one_or_none()

        if record is None:
            return None

        return self._to_session_card(record)

    async def update_session_card(
        self, session_id: int, card_id: int, answer: CardAnswer
    ) -> bool:
        result = await self.db.execute(
            update(SessionCardRecord)
            .where(
                SessionCardRecord.id == card_id,
                SessionCardRecord.session_id == session_id,
                SessionCardRecord.was_correct.is_(None),
            )
            .values(
                result_ease_factor=answer.result_state.ease_factor,
                result_interval=answer.result_state.interval,
                result_repetitions=answer.result_state.repetitions,
                result_next_review_date=answer.result_state.next_review_date,
                was_correct=answer.was_correct,
                response_time_ms=answer.response_time_ms,
                answered_at=answer.answered_at,
            )
            .execution_options(synchronize_session="evaluate")
        )
        return result.rowcount == 1

    async def count_answered(self, session_id: int) -> int:
        result = await self.db.execute(
            select(func.count(SessionCardRecord.id)).where(
                SessionCardRecord.session_id == session_id,
                SessionCardRecord.was_correct.is_not(None),
            )
        )
        return result.scalar() or 0

    async def mark_session_complete(
        self, session_id: int, completed_at: datetime
    ) -> None:
        await self.db.execute(
            update(StudySessionRecord)
            .where(
                StudySessionRecord.id == session_id,
                StudySessionRecord.completed_at.is_(None),
            )
            .values(completed_at=completed_at)
            .execution_options(synchronize_session="evaluate")
        )

    # -------------------------------------------------------------------------
    # Unit of work
    # -------------------------------------------------------------------------

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()

    # -------------------------------------------------------------------------
    # Row → domain conversion
    # -------------------------------------------------------------------------

    @staticmethod
    def _to_review_state(record: ReviewStateRecord) -> ReviewState:
        return ReviewState(
            ease_factor=record.ease_factor,
            interval=record.interval,
            repetitions=record.repetitions,
            next_review_date=_as_utc(record.next_review_date),
        )

    @staticmethod
    def _to_session_card(record: SessionCardRecord) -> SessionCard:
        result_state = None
        if record.result_ease_factor is not None:
            result_state = ReviewState(
                ease_factor=record.result_ease_factor,
                interval=record.result_interval,
                repetitions=record.result_repetitions,
                next_review_date=_as_utc(record.result_next_review_date),
            )

        return SessionCard(
            id=record.id,
            session_id=record.session_id,
            item_id=record.item_id,
            position=record.position,
            initial_state=ReviewState(
                ease_factor=record.initial_ease_factor,
                interval=record.initial_interval,
                repetitions=record.initial_repetitions,
                next_review_date=_as_utc(record.initial_next_review_date),
            ),
            result_state=result_state,
            was_correct=record.was_correct,
            response_time_ms=record.response_time_ms,
            answered_at=_as_utc(record.answered_at),
        )

    def _to_session(self, record: StudySessionRecord) -> StudySession:
        return StudySession(
            id=record.id,
            owner_id=record.owner_id,
            collection_id=record.collection_id,
            total_cards=record.total_cards,
            started_at=_as_utc(record.started_at),
            completed_at=_as_utc(record.completed_at),
            cards=tuple(self._to_session_card(card) for card in record.cards),
        )
