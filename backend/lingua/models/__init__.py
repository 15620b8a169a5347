"""
Pydantic Models Package

Request/response schemas for the HTTP API.

Modules:
- base: Strict request/response base classes and the error body
- learning: Study session, review state and due-item schemas
"""

from lingua.models.base import ErrorDetail, StrictRequest, StrictResponse
from lingua.models.learning import (
    DueItemResponse,
    DueItemsResponse,
    RecordAnswerRequest,
    RecordAnswerResponse,
    ReviewForecast,
    ReviewStateResponse,
    SessionCardResponse,
    SessionProgressResponse,
    StartSessionRequest,
    StudySessionResponse,
)

__all__ = [
    "ErrorDetail",
    "StrictRequest",
    "StrictResponse",
    "DueItemResponse",
    "DueItemsResponse",
    "RecordAnswerRequest",
    "RecordAnswerResponse",
    "ReviewForecast",
    "ReviewStateResponse",
    "SessionCardResponse",
    "SessionProgressResponse",
    "StartSessionRequest",
    "StudySessionResponse",
]
