"""
Study Session Service

Orchestrates vocabulary study sessions on top of the SM-2 scheduler:

- start_session: pick cards from a collection, snapshot their review
  state and persist a new session
- record_answer: grade one card, reschedule its item and detect
  session completion
- get_session / get_due_items: read-side queries

All persistence goes through a PersistenceGateway, so the same service
runs against PostgreSQL in production and an in-memory store in tests.
Each write operation is one unit of work: it either commits as a whole
or is rolled back.

Usage:
    from lingua.services.learning import StudySessionService, SQLAlchemyGateway

    service = StudySessionService(SQLAlchemyGateway(db))

    session = await service.start_session("learner-1", collection_id=7)
    outcome = await service.record_answer(
        "learner-1", session.id, session.cards[0].id, Grade.GOOD
    )
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Union

from lingua.config.settings import settings
from lingua.enums.learning import Grade
from lingua.services.learning.errors import (
    AlreadyAnsweredError,
    CardNotFoundError,
    EmptyCollectionError,
    InvalidRequestError,
    SessionNotFoundError,
)
from lingua.services.learning.gateway import PersistenceGateway
from lingua.services.learning.session_types import (
    AnswerOutcome,
    CardAnswer,
    DueItem,
    NewSessionCard,
    SessionProgress,
    StudySession,
)
from lingua.services.learning.sm2 import (
    SM2Scheduler,
    create_scheduler,
    get_review_forecast,
    is_due,
)

logger = logging.getLogger(__name__)


class StudySessionService:
    """
    Study session orchestration service.

    Owns the session lifecycle: creation, per-answer transitions and
    completion. Scheduling math is delegated to SM2Scheduler and
    storage to the PersistenceGateway.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        scheduler: Optional[SM2Scheduler] = None,
        default_max_cards: Optional[int] = None,
        max_cards_limit: Optional[int] = None,
    ):
        """
        Initialize the study session service.

        Args:
            gateway: Persistence gateway for sessions and review states
            scheduler: SM-2 scheduler (defaults to create_scheduler())
            default_max_cards: Cap used when start_session gets none
                (defaults to settings.STUDY_SESSION_DEFAULT_MAX_CARDS)
            max_cards_limit: Largest cap a caller may request
                (defaults to settings.STUDY_SESSION_MAX_CARDS)
        """
        self.gateway = gateway
        self.scheduler = scheduler if scheduler is not None else create_scheduler()
        self.default_max_cards = (
            default_max_cards
            if default_max_cards is not None
            else settings.STUDY_SESSION_DEFAULT_MAX_CARDS
        )
        self.max_cards_limit = (
            max_cards_limit
            if max_cards_limit is not None
            else settings.STUDY_SESSION_MAX_CARDS
        )

    # =========================================================================
    # Main Entry Points
    # =========================================================================

    async def start_session(
        self,
        owner_id: str,
        collection_id: int,
        max_cards: Optional[int] = None,
        started_at: Optional[datetime] = None,
    ) -> StudySession:
        """
        Start a study session over a vocabulary collection.

        Cards are taken in the collection's storage order, up to
        max_cards. Items the learner has never studied get a fresh
        review state; items seen before keep theirs.

        Args:
            owner_id: Learner starting the session
            collection_id: Vocabulary collection to draw cards from
            max_cards: Card cap (1..max_cards_limit, default from settings)
            started_at: Session start time (default: now)

        Returns:
            The persisted session with its cards in position order

        Raises:
            InvalidRequestError: max_cards out of range
            CollectionNotFoundError: Collection missing or not owned
            EmptyCollectionError: Collection has no items
        """
        if max_cards is None:
            max_cards = self.default_max_cards
        self._validate_max_cards(max_cards)

        started_at = started_at or datetime.now(timezone.utc)

        try:
            item_ids = await self.gateway.get_collection_items(collection_id, owner_id)

            if not item_ids:
                raise EmptyCollectionError(
                    f"Collection {collection_id} has no cards",
                    details={"collection_id": collection_id},
                )

            selected = item_ids[:max_cards]
            initial_state = self.scheduler.initial_state(started_at)

            new_cards = []
            for position, item_id in enumerate(selected, start=1):
                state = await self.gateway.get_or_create_review_state(
                    owner_id, item_id, initial_state
                )
                new_cards.append(
                    NewSessionCard(
                        item_id=item_id, position=position, initial_state=state
                    )
                )

            session = await self.gateway.create_session(
                owner_id, collection_id, new_cards, started_at
            )
            await self.gateway.commit()
        except Exception:
            await self.gateway.rollback()
            raise

        logger.info(
            f"Started study session {session.id} for {owner_id}: "
            f"{session.total_cards} of {len(item_ids)} cards from collection {collection_id}"
        )

        return session

    async def record_answer(
        self,
        owner_id: str,
        session_id: int,
        card_id: int,
        grade: Union[Grade, int],
        response_time_ms: Optional[int] = None,
        answered_at: Optional[datetime] = None,
    ) -> AnswerOutcome:
        """
        Record the learner's answer for one session card.

        Runs SM-2 on the learner's current review state for the card's
        item, stores the result on the card and on the review state, and
        completes the session when its last card is answered. A card is
        answered at most once; the conditional update in the gateway
        makes a concurrent second answer fail instead of overwriting.

        Args:
            owner_id: Learner answering
            session_id: Session the card belongs to
            card_id: Session card being answered
            grade: Recall quality (0-4)
            response_time_ms: Optional answer latency, not used for scheduling
            answered_at: Answer time (default: now)

        Returns:
            AnswerOutcome with the answered card and session progress

        Raises:
            InvalidRequestError: Grade or latency out of range
            SessionNotFoundError: Session missing or not owned
            CardNotFoundError: Card not in this session
            AlreadyAnsweredError: Card was answered before
        """
        grade = self._validate_grade(grade)
        if response_time_ms is not None and response_time_ms < 0:
            raise InvalidRequestError(
                "response_time_ms must be >= 0",
                details={"response_time_ms": response_time_ms},
            )

        answered_at = answered_at or datetime.now(timezone.utc)

        try:
            session = await self.gateway.get_session(session_id, owner_id, lock=True)
            if session is None:
                raise SessionNotFoundError(
                    f"Study session {session_id} not found",
                    details={"session_id": session_id},
                )

            card = await self.gateway.get_session_card(session_id, card_id)
            if card is None:
                raise CardNotFoundError(
                    f"Card {card_id} not found in session {session_id}",
                    details={"session_id": session_id, "card_id": card_id},
                )
            if card.is_answered:
                raise AlreadyAnsweredError(
                    f"Card {card_id} has already been answered",
                    details={"session_id": session_id, "card_id": card_id},
                )

            current = await self.gateway.get_or_create_review_state(
                owner_id, card.item_id, card.initial_state, lock=True
            )
            new_state = self.scheduler.review(current, grade, answered_at)

            answer = CardAnswer(
                result_state=new_state,
                was_correct=grade.is_passing,
                answered_at=answered_at,
                response_time_ms=response_time_ms,
            )

            if not await self.gateway.update_session_card(session_id, card_id, answer):
                logger.warning(
                    f"Concurrent answer for card {card_id} in session {session_id} lost the race"
                )
                raise AlreadyAnsweredError(
                    f"Card {card_id} has already been answered",
                    details={"session_id": session_id, "card_id": card_id},
                )

            await self.gateway.save_review_state(owner_id, card.item_id, new_state)

            progress = SessionProgress(
                answered_count=await self.gateway.count_answered(session_id),
                total_cards=session.total_cards,
            )
            if progress.is_completed:
                await self.gateway.mark_session_complete(session_id, answered_at)

            await self.gateway.commit()
        except Exception:
            await self.gateway.rollback()
            raise

        logger.info(
            f"Session {session_id} card {card_id} graded {grade.name}: "
            f"next review in {new_state.interval} days "
            f"({progress.answered_count}/{progress.total_cards})"
        )
        if progress.is_completed:
            logger.info(f"Study session {session_id} completed")

        return AnswerOutcome(card=card.with_answer(answer), progress=progress)

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_session(self, owner_id: str, session_id: int) -> StudySession:
        """
        Load a session with its cards.

        Raises:
            SessionNotFoundError: Session missing or not owned
        """
        session = await self.gateway.get_session(session_id, owner_id)
        if session is None:
            raise SessionNotFoundError(
                f"Study session {session_id} not found",
                details={"session_id": session_id},
            )
        return session

    async def get_due_items(
        self,
        owner_id: str,
        as_of: Optional[datetime] = None,
    ) -> list[DueItem]:
        """
        Items whose next review date is at or before as_of.

        Ordered by next review date (most overdue first), then item id.
        Read-only: repeated calls with the same as_of return the same
        items as long as nothing is written in between.
        """
        as_of = as_of or datetime.now(timezone.utc)
        states = await self.gateway.list_review_states(owner_id)

        due = [
            DueItem(item_id=item_id, state=state)
            for item_id, state in states
            if is_due(state, as_of)
        ]
        due.sort(key=lambda d: (d.state.next_review_date, d.item_id))
        return due

    async def get_review_forecast(
        self,
        owner_id: str,
        as_of: Optional[datetime] = None,
    ) -> dict[str, int]:
        """Bucketed counts of the learner's upcoming reviews."""
        states = await self.gateway.list_review_states(owner_id)
        return get_review_forecast((state for _, state in states), as_of)

    # =========================================================================
    # Validation
    # =========================================================================

    def _validate_max_cards(self, max_cards: int) -> None:
        if (
            isinstance(max_cards, bool)
            or not isinstance(max_cards, int)
            or not 1 <= max_cards <= self.max_cards_limit
        ):
            raise InvalidRequestError(
                f"max_cards must be an integer between 1 and {self.max_cards_limit}",
                details={"max_cards": max_cards},
            )

    @staticmethod
    def _validate_grade(grade: Union[Grade, int]) -> Grade:
        if isinstance(grade, bool) or not isinstance(grade, int):
            raise InvalidRequestError(
                "grade must be an integer between 0 and 4",
                details={"grade": repr(grade)},
            )
        try:
            return Grade(grade)
        except ValueError:
            raise InvalidRequestError(
                "grade must be an integer between 0 and 4",
                details={"grade": grade},
            )
