"""
Middleware Package

Provides FastAPI middleware for:
- Error handling
"""

from lingua.middleware.error_handling import (
    ConflictError,
    ErrorHandlingMiddleware,
    NotFoundError,
    ServiceError,
    ValidationError,
    setup_error_handling,
)

__all__ = [
    "ConflictError",
    "ErrorHandlingMiddleware",
    "NotFoundError",
    "ServiceError",
    "ValidationError",
    "setup_error_handling",
]
