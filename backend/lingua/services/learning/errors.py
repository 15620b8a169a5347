"""
Study Session Errors

Every failure the scheduler can report has a stable error code so the
HTTP layer can render it without inspecting internals. None of these
are retried: the caller must change the request first.
"""

from lingua.middleware.error_handling import (
    ConflictError,
    NotFoundError,
    ValidationError,
)


class CollectionNotFoundError(NotFoundError):
    """Collection doesn't exist or belongs to another learner."""

    error_code = "collection_not_found"


class SessionNotFoundError(NotFoundError):
    """Study session doesn't exist or belongs to another learner."""

    error_code = "session_not_found"


class CardNotFoundError(NotFoundError):
    """Session card isn't part of the given session."""

    error_code = "card_not_found"


class EmptyCollectionError(ConflictError):
    """Collection has no vocabulary items to study."""

    error_code = "empty_collection"


class AlreadyAnsweredError(ConflictError):
    """Session card already carries an answer."""

    error_code = "already_answered"


class InvalidRequestError(ValidationError):
    """Out-of-range grade, card cap or latency."""

    error_code = "invalid_request"
