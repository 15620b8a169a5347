"""
Learning System Services

Services for SM-2 based vocabulary review.

Modules:
- sm2: SM-2 scheduling algorithm and review-state helpers
- session_types: Domain dataclasses for sessions and cards
- gateway: Abstract persistence gateway
- sql_gateway: SQLAlchemy gateway adapter
- memory_gateway: In-memory gateway adapter
- study_session_service: Study session orchestration
- errors: Named error kinds

Usage:
    from lingua.services.learning import (
        StudySessionService,
        SQLAlchemyGateway,
        SM2Scheduler,
    )
"""

from lingua.services.learning.sm2 import (
    ReviewState,
    SM2Scheduler,
    calculate_next_review,
    create_initial_state,
    create_scheduler,
    describe_interval,
    get_review_forecast,
    is_due,
)
from lingua.services.learning.gateway import PersistenceGateway
from lingua.services.learning.sql_gateway import SQLAlchemyGateway
from lingua.services.learning.memory_gateway import InMemoryGateway
from lingua.services.learning.study_session_service import StudySessionService

__all__ = [
    # SM-2
    "ReviewState",
    "SM2Scheduler",
    "calculate_next_review",
    "create_initial_state",
    "create_scheduler",
    "describe_interval",
    "get_review_forecast",
    "is_due",
    # Persistence
    "PersistenceGateway",
    "SQLAlchemyGateway",
    "InMemoryGateway",
    # Services
    "StudySessionService",
]
