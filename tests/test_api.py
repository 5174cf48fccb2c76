"""Tests for the monitor and tier HTTP endpoints."""

from __future__ import annotations

import asyncio
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from agentwatch.database import Base, get_db
from agentwatch.main import app
from agentwatch.models import UptimeEvent
from agentwatch.services.scheduler import SchedulerService

from conftest import AGENT_A, UP, FakeAgents, FakeStore, make_monitor


@pytest.fixture
def client(sqlite_engine, session_factory):
    """TestClient on a temporary SQLite database, without the lifespan hook."""

    async def create_tables() -> None:
        async with sqlite_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create_tables())

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        if hasattr(app.state, "scheduler_service"):
            del app.state.scheduler_service


def _create(client: TestClient, **overrides) -> dict:
    body = {"user_id": "user-1", "url": "example.com", "port": 443, "frequency": 1}
    body.update(overrides)
    response = client.post("/api/monitors", json=body)
    assert response.status_code == 201, response.text
    return response.json()


class TestMonitors:
    def test_create(self, client: TestClient) -> None:
        data = _create(client)
        assert data["url"] == "example.com"
        assert data["frequency"] == 1
        assert data["is_paused"] is False
        assert data["last_checked_at"] is None

    def test_create_without_port(self, client: TestClient) -> None:
        data = _create(client, port=None)
        assert data["port"] is None

    @pytest.mark.parametrize("frequency", [0, 2, 15, 120])
    def test_rejects_unknown_frequency(self, client: TestClient, frequency: int) -> None:
        response = client.post(
            "/api/monitors", json={"user_id": "u", "url": "example.com", "frequency": frequency}
        )
        assert response.status_code == 422

    def test_list_only_own_monitors(self, client: TestClient) -> None:
        _create(client, user_id="alice", url="a.example")
        _create(client, user_id="bob", url="b.example")
        response = client.get("/api/monitors", params={"user_id": "alice"})
        assert response.status_code == 200
        assert [m["url"] for m in response.json()] == ["a.example"]

    def test_pause_and_resume(self, client: TestClient) -> None:
        monitor = _create(client)
        paused = client.put(f"/api/monitors/{monitor['id']}/pause")
        assert paused.status_code == 200
        assert paused.json()["is_paused"] is True
        resumed = client.put(f"/api/monitors/{monitor['id']}/resume")
        assert resumed.json()["is_paused"] is False

    def test_pause_missing_monitor(self, client: TestClient) -> None:
        assert client.put("/api/monitors/999/pause").status_code == 404

    def test_events_latest_first(self, client: TestClient, session_factory) -> None:
        monitor = _create(client)

        async def add_events() -> None:
            async with session_factory() as session:
                for i, availability in enumerate(["Up", "Down"]):
                    session.add(UptimeEvent(
                        monitor_id=monitor["id"],
                        timestamp=datetime(2026, 1, 1, 12, i),
                        availability=availability, ping="Reachable", port="Open",
                        response_time_ms=10, confirmed_by_agent=AGENT_A,
                    ))
                await session.commit()

        asyncio.run(add_events())

        response = client.get(f"/api/monitors/{monitor['id']}/events", params={"user_id": "user-1"})
        assert response.status_code == 200
        data = response.json()
        assert data["url"] == "example.com"
        assert [e["availability"] for e in data["uptime_events"]] == ["Down", "Up"]

    def test_events_of_someone_elses_monitor(self, client: TestClient) -> None:
        monitor = _create(client, user_id="alice")
        response = client.get(f"/api/monitors/{monitor['id']}/events", params={"user_id": "bob"})
        assert response.status_code == 404


class TestTiers:
    def test_engine_not_running(self, client: TestClient) -> None:
        assert client.post("/api/tiers/1/run").status_code == 503

    def test_run_tier(self, client: TestClient, make_dispatcher, agents: FakeAgents) -> None:
        store = FakeStore([make_monitor(1, frequency=5)])
        agents.script(AGENT_A, UP)
        app.state.scheduler_service = SchedulerService(store, make_dispatcher(target_store=store))

        response = client.post("/api/tiers/5/run")

        assert response.status_code == 200
        assert response.json() == {"tier": 5, "due": 1, "recorded": 1, "abandoned": 0, "failed": 0}
        assert len(store.events) == 1

    def test_run_unknown_tier(self, client: TestClient, make_dispatcher) -> None:
        app.state.scheduler_service = SchedulerService(FakeStore(), make_dispatcher())
        assert client.post("/api/tiers/7/run").status_code == 404

    def test_list_tiers(self, client: TestClient, make_dispatcher) -> None:
        app.state.scheduler_service = SchedulerService(FakeStore(), make_dispatcher())
        assert client.get("/api/tiers").json() == {"tiers": [1, 5, 10, 30, 60]}


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_health_reports_stopped_scheduler(client: TestClient, make_dispatcher) -> None:
    service = SchedulerService(FakeStore(), make_dispatcher())
    service._running = True
    app.state.scheduler_service = service
    assert client.get("/health").json()["scheduler"] is True

    service._running = False
    assert client.get("/health").json()["scheduler"] is False
