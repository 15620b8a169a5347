"""
Study API Router

Endpoints for SM-2 study sessions and due reviews.

Endpoints:
- POST /api/study/start - Start a study session over a collection
- POST /api/study/respond - Record the answer for one session card
- GET /api/study/sessions/{session_id} - Get a session with its progress
- GET /api/study/due - Get items due for review plus a forecast

The calling learner comes from the X-User-Id header (see dependencies).
Service errors are mapped to HTTP responses by the error handling
middleware, so handlers here don't catch them.
"""

from datetime import datetime, timezone
from typing import Optional
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from lingua.db.base import get_db
from lingua.dependencies import get_current_owner_id
from lingua.models.base import ErrorDetail
from lingua.models.learning import (
    DueItemResponse,
    DueItemsResponse,
    RecordAnswerRequest,
    RecordAnswerResponse,
    ReviewForecast,
    StartSessionRequest,
    StudySessionResponse,
)
from lingua.services.learning import SQLAlchemyGateway, StudySessionService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/study", tags=["study"])


# ===========================================
# Dependency Injection
# ===========================================


async def get_study_session_service(
    db: AsyncSession = Depends(get_db),
) -> StudySessionService:
    """Get study session service."""
    return StudySessionService(SQLAlchemyGateway(db))


# ===========================================
# Study Session Endpoints
# ===========================================


@router.post(
    "/start",
    response_model=StudySessionResponse,
    status_code=201,
    responses={
        404: {"model": ErrorDetail, "description": "Collection not found"},
        409: {"model": ErrorDetail, "description": "Collection is empty"},
        422: {"model": ErrorDetail, "description": "Invalid max_cards"},
    },
)
async def start_session(
    request: StartSessionRequest,
    owner_id: str = Depends(get_current_owner_id),
    service: StudySessionService = Depends(get_study_session_service),
) -> StudySessionResponse:
    """
    Start a study session.

    Takes up to max_cards items from the collection in storage order.
    Items never studied before start with a fresh SM-2 state.
    """
    session = await service.start_session(
        owner_id,
        request.collection_id,
        max_cards=request.max_cards,
    )
    return StudySessionResponse.from_session(session)


@router.post(
    "/respond",
    response_model=RecordAnswerResponse,
    responses={
        404: {"model": ErrorDetail, "description": "Session or card not found"},
        409: {"model": ErrorDetail, "description": "Card already answered"},
    },
)
async def record_answer(
    request: RecordAnswerRequest,
    owner_id: str = Depends(get_current_owner_id),
    service: StudySessionService = Depends(get_study_session_service),
) -> RecordAnswerResponse:
    """
    Record the answer for a session card.

    Reschedules the card's item with SM-2 and returns the answered card
    together with session progress. The session completes when its last
    card is answered.
    """
    outcome = await service.record_answer(
        owner_id,
        request.session_id,
        request.card_id,
        request.grade,
        response_time_ms=request.response_time_ms,
    )
    return RecordAnswerResponse.from_outcome(outcome)


@router.get(
    "/sessions/{session_id}",
    response_model=StudySessionResponse,
    responses={404: {"model": ErrorDetail, "description": "Session not found"}},
)
async def get_session(
    session_id: int,
    owner_id: str = Depends(get_current_owner_id),
    service: StudySessionService = Depends(get_study_session_service),
) -> StudySessionResponse:
    """Get a study session with its cards, progress and next card."""
    session = await service.get_session(owner_id, session_id)
    return StudySessionResponse.from_session(session)


# ===========================================
# Due Reviews
# ===========================================


@router.get("/due", response_model=DueItemsResponse)
async def get_due_items(
    as_of: Optional[datetime] = Query(
        None, description="Reference time (default: now). Naive values are UTC."
    ),
    owner_id: str = Depends(get_current_owner_id),
    service: StudySessionService = Depends(get_study_session_service),
) -> DueItemsResponse:
    """
    Get items due for review.

    Returns items whose next review date is at or before as_of, most
    overdue first, plus a forecast of upcoming reviews.
    """
    if as_of is None:
        as_of = datetime.now(timezone.utc)
    elif as_of.tzinfo is None:
        as_of = as_of.replace(tzinfo=timezone.utc)

    due = await service.get_due_items(owner_id, as_of)
    forecast = await service.get_review_forecast(owner_id, as_of)

    return DueItemsResponse(
        as_of=as_of,
        items=[DueItemResponse.from_due_item(item) for item in due],
        total_due=len(due),
        review_forecast=ReviewForecast(**forecast),
    )
