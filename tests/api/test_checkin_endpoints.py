"""
Tests de los endpoints HTTP de check-in, progreso y leaderboard.

La app corre contra una base SQLite en archivo; Redis se reemplaza por None
(sin caché) mediante dependency overrides.
"""
import asyncio
from contextlib import asynccontextmanager

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.core.timezone_utils import get_checkin_today
from app.db.base import Base
from app.db.redis_client import get_redis_client
from app.db.session import get_async_db
from app.main import app
from app.models.gym import Gym
from app.models.member import Member
from app.services.async_checkin import async_checkin_service


async def _prepare_database(engine):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        gym = Gym(name="Iron Paradise", slug="iron-paradise")
        other_gym = Gym(name="Muscle Factory", slug="muscle-factory")
        session.add_all([gym, other_gym])
        await session.flush()
        session.add_all([
            Member(gym_id=gym.id, user_id=501, name="Ravi Kumar Sharma", phone="9876543210"),
            Member(gym_id=gym.id, user_id=502, name="Anita Desai", phone="9876500000", is_active=False),
        ])
        await session.commit()
        return {"gym_id": gym.id, "other_gym_id": other_gym.id}


@pytest.fixture
def api_context(tmp_path, monkeypatch):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'api_test.db'}", poolclass=NullPool)
    ids = asyncio.run(_prepare_database(engine))
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_async_db():
        async with factory() as session:
            yield session

    async def override_get_redis_client():
        yield None

    @asynccontextmanager
    async def job_session():
        async with factory() as session:
            yield session

    @asynccontextmanager
    async def job_redis():
        yield None

    monkeypatch.setattr(async_checkin_service, "session_factory", job_session)
    monkeypatch.setattr(async_checkin_service, "redis_factory", job_redis)
    app.dependency_overrides[get_async_db] = override_get_async_db
    app.dependency_overrides[get_redis_client] = override_get_redis_client

    with TestClient(app) as client:
        yield client, ids

    app.dependency_overrides.clear()


class TestFrontDeskCheckIn:

    def test_check_in_then_duplicate(self, api_context):
        client, ids = api_context
        url = f"/api/v1/gyms/{ids['gym_id']}/attendance"

        first = client.post(url, json={"member_id": 1})
        assert first.status_code == 201
        body = first.json()
        assert body["status"] == "success"
        assert body["attendance"]["member_id"] == 1
        assert body["check_in_date"] == get_checkin_today().isoformat()

        second = client.post(url, json={"member_id": 1})
        assert second.status_code == 200
        assert second.json()["status"] == "already_checked_in"

    def test_unknown_member_404(self, api_context):
        client, ids = api_context
        response = client.post(f"/api/v1/gyms/{ids['gym_id']}/attendance", json={"member_id": 999})
        assert response.status_code == 404

    def test_member_of_other_gym_404(self, api_context):
        client, ids = api_context
        response = client.post(f"/api/v1/gyms/{ids['other_gym_id']}/attendance", json={"member_id": 1})
        assert response.status_code == 404

    def test_inactive_member_404(self, api_context):
        client, ids = api_context
        response = client.post(f"/api/v1/gyms/{ids['gym_id']}/attendance", json={"member_id": 2})
        assert response.status_code == 404

    def test_invalid_body_422(self, api_context):
        client, ids = api_context
        response = client.post(f"/api/v1/gyms/{ids['gym_id']}/attendance", json={"member_id": 0})
        assert response.status_code == 422

    def test_list_attendance_for_today(self, api_context):
        client, ids = api_context
        client.post(f"/api/v1/gyms/{ids['gym_id']}/attendance", json={"member_id": 1})

        response = client.get(f"/api/v1/gyms/{ids['gym_id']}/attendance")
        assert response.status_code == 200
        records = response.json()
        assert len(records) == 1
        assert records[0]["member_name"] == "Ravi Kumar Sharma"

        empty = client.get(f"/api/v1/gyms/{ids['gym_id']}/attendance", params={"date": "2020-01-01"})
        assert empty.json() == []


class TestSelfCheckIn:

    def test_self_check_in_shares_idempotency(self, api_context):
        client, ids = api_context

        first = client.post("/api/v1/me/check-in", json={"user_id": 501, "gym_id": ids["gym_id"]})
        assert first.status_code == 201

        second = client.post(f"/api/v1/gyms/{ids['gym_id']}/attendance", json={"member_id": 1})
        assert second.status_code == 200
        assert second.json()["status"] == "already_checked_in"

    def test_unknown_user_404(self, api_context):
        client, ids = api_context
        response = client.post("/api/v1/me/check-in", json={"user_id": 777, "gym_id": ids["gym_id"]})
        assert response.status_code == 404


class TestProgressAndLeaderboard:

    def test_progress_after_check_in(self, api_context):
        client, ids = api_context
        client.post(f"/api/v1/gyms/{ids['gym_id']}/attendance", json={"member_id": 1})

        response = client.get(f"/api/v1/gyms/{ids['gym_id']}/members/1/progress")
        assert response.status_code == 200
        progress = response.json()
        assert progress["current_streak"] == 1
        assert progress["total_checkins"] == 1
        assert progress["checked_in_today"] is True
        assert len(progress["attendance_grid"]) == 30

    def test_progress_unknown_member_404(self, api_context):
        client, ids = api_context
        response = client.get(f"/api/v1/gyms/{ids['gym_id']}/members/999/progress")
        assert response.status_code == 404

    def test_leaderboard_marks_viewer(self, api_context):
        client, ids = api_context
        client.post(f"/api/v1/gyms/{ids['gym_id']}/attendance", json={"member_id": 1})

        response = client.get(f"/api/v1/gyms/{ids['gym_id']}/leaderboard", params={"member_id": 1})
        assert response.status_code == 200
        entries = response.json()["entries"]
        assert entries == [{"rank": 1, "member_id": 1, "name": "Ravi S.", "count": 1, "is_me": True}]


def test_root_and_health(api_context):
    client, _ = api_context
    assert client.get("/").status_code == 200
    health = client.get("/health")
    assert health.status_code == 200
    assert health.json()["status"] == "ok"
