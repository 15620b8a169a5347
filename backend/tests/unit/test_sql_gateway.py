"""
Unit tests for SQLAlchemyGateway.

Runs against an in-memory SQLite database (aiosqlite) with the full
schema, so the SQL paths (ON CONFLICT, conditional UPDATE, row
conversion) are exercised without PostgreSQL.
"""

from datetime import timedelta

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from lingua.db.models_learning import ReviewStateRecord, StudySessionRecord
from lingua.enums.learning import Grade
from lingua.services.learning.errors import (
    AlreadyAnsweredError,
    CollectionNotFoundError,
    EmptyCollectionError,
)
from lingua.services.learning.session_types import CardAnswer, NewSessionCard
from lingua.services.learning.sm2 import ReviewState, SM2Scheduler
from lingua.services.learning.sql_gateway import SQLAlchemyGateway
from lingua.services.learning.study_session_service import StudySessionService

OWNER = "learner-1"


@pytest.fixture
def gateway(db_session):
    return SQLAlchemyGateway(db_session)


class TestCollections:
    """Tests for collection lookup."""

    @pytest.mark.asyncio
    async def test_items_ordered_by_id(self, gateway, make_vocabulary_set, spanish_words):
        vocabulary_set = await make_vocabulary_set(OWNER, spanish_words)

        item_ids = await gateway.get_collection_items(vocabulary_set.id, OWNER)

        assert item_ids == sorted(item.id for item in vocabulary_set.items)
        assert len(item_ids) == 3

    @pytest.mark.asyncio
    async def test_other_owner_not_found(self, gateway, make_vocabulary_set, spanish_words):
        vocabulary_set = await make_vocabulary_set(OWNER, spanish_words)

        with pytest.raises(CollectionNotFoundError):
            await gateway.get_collection_items(vocabulary_set.id, "someone-else")

    @pytest.mark.asyncio
    async def test_missing_collection(self, gateway):
        with pytest.raises(CollectionNotFoundError):
            await gateway.get_collection_items(12345, OWNER)


class TestReviewStates:
    """Tests for review-state persistence."""

    @pytest.mark.asyncio
    async def test_get_or_create_single_row(
        self, gateway, db_session, make_vocabulary_set, spanish_words, now
    ):
        """Creating the same state twice leaves one row with the first values."""
        vocabulary_set = await make_vocabulary_set(OWNER, spanish_words)
        item_id = vocabulary_set.items[0].id
        first = ReviewState(next_review_date=now)
        second = ReviewState(ease_factor=1.7, next_review_date=now + timedelta(days=2))

        created = await gateway.get_or_create_review_state(OWNER, item_id, first)
        again = await gateway.get_or_create_review_state(OWNER, item_id, second, lock=True)
        await gateway.commit()

        assert created == first
        assert again == first

        count = await db_session.scalar(
            select(func.count(ReviewStateRecord.id)).where(
                ReviewStateRecord.owner_id == OWNER
            )
        )
        assert count == 1

    @pytest.mark.asyncio
    async def test_save_and_list(
        self, gateway, make_vocabulary_set, spanish_words, now
    ):
        vocabulary_set = await make_vocabulary_set(OWNER, spanish_words)
        item_ids = [item.id for item in vocabulary_set.items]
        for item_id in item_ids:
            await gateway.get_or_create_review_state(
                OWNER, item_id, ReviewState(next_review_date=now)
            )

        updated = ReviewState(
            ease_factor=2.6, interval=6, repetitions=2,
            next_review_date=now + timedelta(days=6),
        )
        await gateway.save_review_state(OWNER, item_ids[1], updated)
        await gateway.commit()

        listed = dict(await gateway.list_review_states(OWNER))

        assert list(listed) == sorted(item_ids)
        assert listed[item_ids[1]] == updated
        assert listed[item_ids[0]].next_review_date == now
        assert listed[item_ids[0]].next_review_date.tzinfo is not None


class TestSessions:
    """Tests for session storage and the conditional card update."""

    @pytest_asyncio.fixture
    async def study_session(self, gateway, make_vocabulary_set, spanish_words, now):
        vocabulary_set = await make_vocabulary_set(OWNER, spanish_words)
        cards = [
            NewSessionCard(
                item_id=item.id,
                position=position,
                initial_state=ReviewState(next_review_date=now),
            )
            for position, item in enumerate(vocabulary_set.items, start=1)
        ]
        created = await gateway.create_session(OWNER, vocabulary_set.id, cards, now)
        await gateway.commit()
        return created

    @pytest.mark.asyncio
    async def test_create_session(self, study_session, gateway, now):
        assert study_session.id is not None
        assert study_session.total_cards == 3
        assert [card.position for card in study_session.cards] == [1, 2, 3]
        assert all(not card.is_answered for card in study_session.cards)
        assert study_session.started_at == now

        loaded = await gateway.get_session(study_session.id, OWNER)
        assert loaded == study_session

    @pytest.mark.asyncio
    async def test_get_session_owner_scoped(self, study_session, gateway):
        assert await gateway.get_session(study_session.id, "someone-else") is None
        assert await gateway.get_session(study_session.id, OWNER, lock=True) is not None

    @pytest.mark.asyncio
    async def test_conditional_update(self, study_session, gateway, now):
        """The second update for the same card reports failure."""
        card = study_session.cards[0]
        answer = CardAnswer(
            result_state=ReviewState(
                interval=1, repetitions=1, next_review_date=now + timedelta(days=1)
            ),
            was_correct=True,
            answered_at=now,
            response_time_ms=950,
        )

        assert await gateway.update_session_card(study_session.id, card.id, answer) is True
        assert await gateway.update_session_card(study_session.id, card.id, answer) is False
        await gateway.commit()

        stored = await gateway.get_session_card(study_session.id, card.id)
        assert stored.was_correct is True
        assert stored.response_time_ms == 950
        assert stored.result_state == answer.result_state
        assert await gateway.count_answered(study_session.id) == 1

    @pytest.mark.asyncio
    async def test_card_in_other_session(self, study_session, gateway, now):
        card = study_session.cards[0]

        assert await gateway.get_session_card(study_session.id + 1, card.id) is None

    @pytest.mark.asyncio
    async def test_mark_complete(self, study_session, gateway, now):
        completed_at = now + timedelta(minutes=5)

        await gateway.mark_session_complete(study_session.id, completed_at)
        await gateway.mark_session_complete(study_session.id, completed_at + timedelta(hours=1))
        await gateway.commit()

        loaded = await gateway.get_session(study_session.id, OWNER)
        assert loaded.completed_at == completed_at


class TestServiceOverSQL:
    """End-to-end service flows over the SQL gateway."""

    @pytest.fixture
    def service(self, gateway):
        return StudySessionService(gateway, scheduler=SM2Scheduler())

    @pytest.mark.asyncio
    async def test_full_session(
        self, service, db_session, make_vocabulary_set, spanish_words, now
    ):
        """Three answers complete the session and reschedule every item."""
        vocabulary_set = await make_vocabulary_set(OWNER, spanish_words)

        session = await service.start_session(
            OWNER, vocabulary_set.id, max_cards=20, started_at=now
        )
        assert session.total_cards == 3

        for card, grade in zip(session.cards, [Grade.GOOD, Grade.EASY, Grade.BLACKOUT]):
            outcome = await service.record_answer(
                OWNER, session.id, card.id, grade, answered_at=now
            )

        assert outcome.progress.is_completed

        reloaded = await service.get_session(OWNER, session.id)
        assert reloaded.is_completed
        assert reloaded.completed_at == now
        assert [card.was_correct for card in reloaded.cards] == [True, True, False]

        record = await db_session.get(StudySessionRecord, session.id)
        assert record.completed_at is not None

        due_tomorrow = await service.get_due_items(OWNER, now + timedelta(days=1))
        assert len(due_tomorrow) == 3

    @pytest.mark.asyncio
    async def test_double_answer(
        self, service, make_vocabulary_set, spanish_words, now
    ):
        vocabulary_set = await make_vocabulary_set(OWNER, spanish_words)
        session = await service.start_session(OWNER, vocabulary_set.id, started_at=now)
        card = session.cards[0]

        first = await service.record_answer(
            OWNER, session.id, card.id, Grade.GOOD, answered_at=now
        )
        with pytest.raises(AlreadyAnsweredError):
            await service.record_answer(
                OWNER, session.id, card.id, Grade.INCORRECT, answered_at=now
            )

        states = dict(await service.gateway.list_review_states(OWNER))
        assert states[card.item_id] == first.card.result_state

    @pytest.mark.asyncio
    async def test_empty_collection(self, service, make_vocabulary_set):
        vocabulary_set = await make_vocabulary_set(OWNER, [])

        with pytest.raises(EmptyCollectionError):
            await service.start_session(OWNER, vocabulary_set.id)
