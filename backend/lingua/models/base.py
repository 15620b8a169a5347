"""
Strict Base Models for API Request/Response Validation

Request bodies reject unknown fields so client/server mismatches fail
fast with a 422 instead of being silently ignored.

Usage:
    # For request bodies (strictest validation)
    class StartSessionRequest(StrictRequest):
        collection_id: int

    # For response bodies
    class SessionCardResponse(StrictResponse):
        id: int

Architecture:
    API Request → StrictRequest (extra="forbid") → Route Handler
    Domain object → StrictResponse (extra="ignore") → API Response
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class StrictRequest(BaseModel):
    """
    Base model for API request bodies with strict validation.

    Features:
        - extra="forbid": Unknown fields raise 422 Unprocessable Entity
        - validate_default=True: Validates default values
        - str_strip_whitespace=True: Trims whitespace from strings
    """

    model_config = ConfigDict(
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
    )


class StrictResponse(BaseModel):
    """
    Base model for API response bodies.

    Features:
        - extra="ignore": Silently ignores extra fields
        - from_attributes=True: Builds from dataclasses and ORM rows
    """

    model_config = ConfigDict(
        extra="ignore",
        validate_default=True,
        from_attributes=True,
    )


class ErrorDetail(StrictResponse):
    """
    Standardized error response detail.

    Matches the error format from the error_handling middleware.
    """

    error: str  # Error code (e.g., "already_answered")
    message: str  # Human-readable message
    error_id: str  # Correlation ID for log lookup
    details: Optional[dict] = None  # Additional context
    timestamp: datetime
