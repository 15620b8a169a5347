"""Database package."""

from lingua.db.base import (
    Base,
    async_session_maker,
    build_engine,
    build_session_maker,
    engine,
    get_db,
    ping,
)

__all__ = [
    "Base",
    "async_session_maker",
    "build_engine",
    "build_session_maker",
    "engine",
    "get_db",
    "ping",
]
