"""
Unit tests for the study API router.

Drives the FastAPI app through httpx with get_db overridden to an
in-memory SQLite session, so requests run the real service and SQL
gateway.

Note: As of httpx 0.28+, ASGITransport must be used instead of passing
`app` directly to AsyncClient.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio

from lingua.db.base import get_db
from lingua.main import app

OWNER = "learner-1"
HEADERS = {"X-User-Id": OWNER}


@pytest_asyncio.fixture
async def client(db_session):
    """HTTP client whose requests use the SQLite test session."""

    async def get_test_db():
        yield db_session

    app.dependency_overrides[get_db] = get_test_db

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def collection_id(make_vocabulary_set, spanish_words) -> int:
    vocabulary_set = await make_vocabulary_set(OWNER, spanish_words)
    return vocabulary_set.id


class TestHealth:
    """Tests for the health endpoints."""

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_ready(self, client):
        response = await client.get("/api/health/ready")

        assert response.status_code == 200
        assert response.json()["postgres"]["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_not_ready(self, client):
        broken = AsyncMock()
        broken.execute.side_effect = ConnectionRefusedError("database down")

        async def get_broken_db():
            yield broken

        app.dependency_overrides[get_db] = get_broken_db

        response = await client.get("/api/health/ready")

        assert response.status_code == 503
        assert response.json()["postgres"]["status"] == "unhealthy"


class TestAuthentication:
    """Tests for the X-User-Id requirement."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method,path,body",
        [
            ("POST", "/api/study/start", {"collection_id": 1}),
            ("POST", "/api/study/respond", {"session_id": 1, "card_id": 1, "grade": 3}),
            ("GET", "/api/study/sessions/1", None),
            ("GET", "/api/study/due", None),
        ],
    )
    async def test_missing_owner(self, client, method, path, body):
        response = await client.request(method, path, json=body)

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_blank_owner(self, client):
        response = await client.get("/api/study/due", headers={"X-User-Id": "  "})

        assert response.status_code == 401


class TestStartSession:
    """Tests for POST /api/study/start."""

    @pytest.mark.asyncio
    async def test_start(self, client, collection_id):
        response = await client.post(
            "/api/study/start",
            json={"collection_id": collection_id, "max_cards": 20},
            headers=HEADERS,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["total_cards"] == 3
        assert [card["position"] for card in data["cards"]] == [1, 2, 3]
        assert data["progress"] == {
            "answered_count": 0,
            "total_cards": 3,
            "is_completed": False,
        }
        assert data["next_card_id"] == data["cards"][0]["id"]
        assert data["cards"][0]["initial_state"]["interval_description"] == "New card"

    @pytest.mark.asyncio
    async def test_unknown_collection(self, client):
        response = await client.post(
            "/api/study/start", json={"collection_id": 999}, headers=HEADERS
        )

        assert response.status_code == 404
        data = response.json()
        assert data["error"] == "collection_not_found"
        assert "error_id" in data

    @pytest.mark.asyncio
    async def test_other_learners_collection(self, client, collection_id):
        response = await client.post(
            "/api/study/start",
            json={"collection_id": collection_id},
            headers={"X-User-Id": "learner-2"},
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_empty_collection(self, client, make_vocabulary_set):
        vocabulary_set = await make_vocabulary_set(OWNER, [])

        response = await client.post(
            "/api/study/start", json={"collection_id": vocabulary_set.id}, headers=HEADERS
        )

        assert response.status_code == 409
        assert response.json()["error"] == "empty_collection"

    @pytest.mark.asyncio
    async def test_max_cards_above_limit(self, client, collection_id):
        response = await client.post(
            "/api/study/start",
            json={"collection_id": collection_id, "max_cards": 1000},
            headers=HEADERS,
        )

        assert response.status_code == 422
        assert response.json()["error"] == "invalid_request"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"collection_id": 1, "max_cards": 0},
            {"collection_id": 1, "max_cards": "5"},
            {"collection_id": 1, "max_cards": 5.0},
            {"collection_id": "1"},
            {"collection_id": 1, "unexpected": True},
            {},
        ],
    )
    async def test_request_validation(self, client, body):
        response = await client.post("/api/study/start", json=body, headers=HEADERS)

        assert response.status_code == 422


class TestRecordAnswer:
    """Tests for POST /api/study/respond."""

    @pytest_asyncio.fixture
    async def started(self, client, collection_id) -> dict:
        response = await client.post(
            "/api/study/start", json={"collection_id": collection_id}, headers=HEADERS
        )
        assert response.status_code == 201
        return response.json()

    @pytest.mark.asyncio
    async def test_answer_all_cards(self, client, started):
        """Answering every card completes the session."""
        session_id = started["id"]

        for index, card in enumerate(started["cards"], start=1):
            response = await client.post(
                "/api/study/respond",
                json={
                    "session_id": session_id,
                    "card_id": card["id"],
                    "grade": 3,
                    "response_time_ms": 1200,
                },
                headers=HEADERS,
            )
            assert response.status_code == 200
            data = response.json()
            assert data["card"]["was_correct"] is True
            assert data["card"]["result_state"]["interval"] == 1
            assert data["card"]["result_state"]["interval_description"] == "1 day"
            assert data["progress"]["answered_count"] == index

        assert data["progress"]["is_completed"] is True

        response = await client.get(f"/api/study/sessions/{session_id}", headers=HEADERS)
        assert response.status_code == 200
        session = response.json()
        assert session["completed_at"] is not None
        assert session["next_card_id"] is None

    @pytest.mark.asyncio
    async def test_double_answer(self, client, started):
        body = {
            "session_id": started["id"],
            "card_id": started["cards"][0]["id"],
            "grade": 4,
        }

        first = await client.post("/api/study/respond", json=body, headers=HEADERS)
        second = await client.post(
            "/api/study/respond", json={**body, "grade": 0}, headers=HEADERS
        )

        assert first.status_code == 200
        assert second.status_code == 409
        assert second.json()["error"] == "already_answered"

    @pytest.mark.asyncio
    async def test_unknown_card(self, client, started):
        response = await client.post(
            "/api/study/respond",
            json={"session_id": started["id"], "card_id": 99999, "grade": 3},
            headers=HEADERS,
        )

        assert response.status_code == 404
        assert response.json()["error"] == "card_not_found"

    @pytest.mark.asyncio
    async def test_unknown_session(self, client):
        response = await client.post(
            "/api/study/respond",
            json={"session_id": 99999, "card_id": 1, "grade": 3},
            headers=HEADERS,
        )

        assert response.status_code == 404
        assert response.json()["error"] == "session_not_found"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "override",
        [
            {"grade": 5},
            {"grade": -1},
            {"grade": True},
            {"grade": "3"},
            {"grade": "4"},
            {"grade": 3.0},
            {"response_time_ms": -10},
            {"response_time_ms": "1200"},
        ],
    )
    async def test_invalid_answer(self, client, started, override):
        body = {
            "session_id": started["id"],
            "card_id": started["cards"][0]["id"],
            "grade": 3,
            **override,
        }

        response = await client.post("/api/study/respond", json=body, headers=HEADERS)

        assert response.status_code == 422

        session = await client.get(f"/api/study/sessions/{started['id']}", headers=HEADERS)
        assert session.json()["progress"]["answered_count"] == 0
        assert session.json()["cards"][0]["was_correct"] is None

    @pytest.mark.asyncio
    async def test_session_of_other_learner(self, client, started):
        response = await client.get(
            f"/api/study/sessions/{started['id']}", headers={"X-User-Id": "learner-2"}
        )

        assert response.status_code == 404


class TestDueItems:
    """Tests for GET /api/study/due."""

    @pytest.mark.asyncio
    async def test_due_after_session(self, client, collection_id):
        start = await client.post(
            "/api/study/start", json={"collection_id": collection_id}, headers=HEADERS
        )
        cards = start.json()["cards"]
        await client.post(
            "/api/study/respond",
            json={"session_id": start.json()["id"], "card_id": cards[0]["id"], "grade": 3},
            headers=HEADERS,
        )

        now = datetime.now(timezone.utc)
        response = await client.get(
            "/api/study/due",
            params={"as_of": (now + timedelta(minutes=1)).isoformat()},
            headers=HEADERS,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total_due"] == 2
        assert [item["item_id"] for item in data["items"]] == [
            cards[1]["item_id"],
            cards[2]["item_id"],
        ]
        assert sum(data["review_forecast"].values()) == 3

    @pytest.mark.asyncio
    async def test_no_states(self, client):
        response = await client.get("/api/study/due", headers=HEADERS)

        assert response.status_code == 200
        data = response.json()
        assert data["items"] == []
        assert data["total_due"] == 0
