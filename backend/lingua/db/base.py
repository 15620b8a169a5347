"""
Database Engine and Sessions

Builds the async SQLAlchemy engine for the study scheduler. Production
runs against PostgreSQL (asyncpg) with pool tuning from
config/default.yaml; an in-memory SQLite URL gets a single shared
connection so the test suite can run the same code paths.

The schema itself is owned by the Alembic migrations, not by
Base.metadata.create_all.

Usage:
    from lingua.db.base import async_session_maker

    async with async_session_maker() as session:
        gateway = SQLAlchemyGateway(session)
"""

from collections.abc import AsyncGenerator
from typing import Any, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from lingua.config import settings, yaml_config


def _engine_options(url: str) -> dict[str, Any]:
    if url.startswith("sqlite"):
        return {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }

    db_config: dict[str, Any] = yaml_config.get("database", {})
    return {
        "pool_size": db_config.get("pool_size", 5),
        "max_overflow": db_config.get("max_overflow", 10),
        "pool_timeout": db_config.get("pool_timeout", 30),
        "pool_pre_ping": db_config.get("pool_pre_ping", True),
    }


def build_engine(url: Optional[str] = None, **overrides: Any) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    Args:
        url: Database URL (defaults to settings.POSTGRES_URL)
        **overrides: Extra create_async_engine options, applied last

    Returns:
        AsyncEngine with pool options suited to the backend
    """
    url = url if url is not None else settings.POSTGRES_URL
    options = _engine_options(url)
    options.update(overrides)
    return create_async_engine(url, echo=settings.DEBUG, **options)


def build_session_maker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory whose objects stay readable after commit."""
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine()
async_session_maker = build_session_maker(engine)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


# Models register themselves on Base.metadata; import after Base exists.
from lingua.db import models, models_learning  # noqa: F401, E402


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding one session per request.

    Services commit their own unit of work; anything left open when the
    request fails is rolled back here.
    """
    async with async_session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def ping(session: AsyncSession) -> None:
    """Run a trivial query; raises if the database is unreachable."""
    await session.execute(text("SELECT 1"))
