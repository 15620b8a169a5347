"""
Shared Test Fixtures and Configuration

This module provides pytest fixtures used across the unit tests.
"""

import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncGenerator, Generator

import pytest
import pytest_asyncio
from dotenv import load_dotenv

# Add the backend directory to the path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load .env file from project root BEFORE any fixtures run
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession  # noqa: E402

from lingua.db.base import Base, build_engine, build_session_maker  # noqa: E402
from lingua.db.models import VocabularyItem, VocabularySet  # noqa: E402
from lingua.services.learning import InMemoryGateway, StudySessionService  # noqa: E402
from lingua.services.learning.sm2 import SM2Scheduler  # noqa: E402


# ============================================================================
# Environment Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment() -> Generator[None, None, None]:
    """
    Set up test environment variables before any tests run.

    Overrides values from .env so tests never point at a real database.
    """
    original_env = os.environ.copy()

    test_env = {
        "POSTGRES_HOST": os.environ.get("POSTGRES_HOST", "localhost"),
        "POSTGRES_PORT": os.environ.get("POSTGRES_PORT", "5432"),
        "POSTGRES_USER": os.environ.get("POSTGRES_TEST_USER", "testuser"),
        "POSTGRES_PASSWORD": os.environ.get("POSTGRES_TEST_PASSWORD", "testpass"),
        "POSTGRES_DB": os.environ.get("POSTGRES_TEST_DB", "testdb"),
    }
    os.environ.update(test_env)

    yield

    os.environ.clear()
    os.environ.update(original_env)


# ============================================================================
# Sample Configuration Data
# ============================================================================


@pytest.fixture
def sample_yaml_config() -> dict[str, Any]:
    """
    Provide a sample YAML configuration for testing.

    This matches the structure of config/default.yaml.
    """
    return {
        "app": {"name": "Test Lingua Review"},
        "database": {
            "pool_size": 3,
            "max_overflow": 5,
            "pool_timeout": 10,
        },
    }


# ============================================================================
# Scheduling Fixtures
# ============================================================================


@pytest.fixture
def now() -> datetime:
    """Fixed reference time so interval math is deterministic."""
    return datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def scheduler() -> SM2Scheduler:
    """Default SM-2 scheduler (ease 2.5, floor 1.3)."""
    return SM2Scheduler()


@pytest.fixture
def memory_gateway() -> InMemoryGateway:
    """Empty in-memory persistence gateway."""
    return InMemoryGateway()


@pytest.fixture
def study_service(memory_gateway: InMemoryGateway) -> StudySessionService:
    """Study session service over the in-memory gateway."""
    return StudySessionService(
        memory_gateway,
        scheduler=SM2Scheduler(),
        default_max_cards=20,
        max_cards_limit=100,
    )


# ============================================================================
# SQLite Database Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def sqlite_engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    In-memory SQLite engine with the full schema created.

    build_engine gives SQLite URLs a single shared connection, so every
    session sees the same in-memory database.
    """
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(sqlite_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Async session bound to the SQLite test engine."""
    session_maker = build_session_maker(sqlite_engine)
    async with session_maker() as session:
        yield session


@pytest.fixture
def make_vocabulary_set(db_session: AsyncSession):
    """
    Factory fixture: insert a vocabulary set with items in the given
    order and commit.
    """

    async def _make(
        owner_id: str,
        words: list[tuple[str, str]],
        name: str = "Test Set",
    ) -> VocabularySet:
        vocabulary_set = VocabularySet(
            owner_id=owner_id,
            name=name,
            items=[
                VocabularyItem(word=word, translation=translation)
                for word, translation in words
            ],
        )
        db_session.add(vocabulary_set)
        await db_session.commit()
        return vocabulary_set

    return _make


@pytest.fixture
def spanish_words() -> list[tuple[str, str]]:
    """Three vocabulary entries."""
    return [
        ("hola", "hello"),
        ("gracias", "thank you"),
        ("perro", "dog"),
    ]
