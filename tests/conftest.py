"""Shared test fixtures."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from agentwatch.database import Base
from agentwatch.models import Monitor, UptimeEvent
from agentwatch.services.agent_directory import AgentDirectory
from agentwatch.services.dispatcher import Dispatcher
from agentwatch.services.probe_client import ProbeClient
from agentwatch.services.selector import RoundRobinSelector
from agentwatch.services.store import MonitorStore, PersistenceFailure, SqlMonitorStore

AGENT_A = "http://agent-a.test/check"
AGENT_B = "http://agent-b.test/check"
AGENT_C = "http://agent-c.test/check"

UP = {"availability": "Up", "ping": "Reachable", "port": "Open"}
DOWN = {"availability": "Down", "ping": "Unreachable", "port": "Closed"}


class FakeAgents:
    """Scripted check agents behind an httpx.MockTransport.

    Each endpoint gets a list of behaviours consumed one per request; the
    last one repeats. A behaviour is a response dict, an int status code,
    or an exception class raised as a transport error.
    """

    def __init__(self) -> None:
        self.behaviours: dict[str, list[Any]] = {}
        self.calls: list[tuple[str, dict]] = []

    def script(self, endpoint: str, *behaviours: Any) -> None:
        self.behaviours[endpoint] = list(behaviours)

    def endpoints_called(self) -> list[str]:
        return [endpoint for endpoint, _ in self.calls]

    def handler(self, request: httpx.Request) -> httpx.Response:
        endpoint = str(request.url)
        self.calls.append((endpoint, json.loads(request.content)))

        script = self.behaviours.get(endpoint)
        if not script:
            raise httpx.ConnectError("connection refused", request=request)
        behaviour = script.pop(0) if len(script) > 1 else script[0]

        if isinstance(behaviour, type) and issubclass(behaviour, Exception):
            raise behaviour("scripted failure", request=request)
        if isinstance(behaviour, int):
            return httpx.Response(behaviour, json={"error": "scripted"})
        return httpx.Response(200, json=behaviour)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class FakeStore(MonitorStore):
    """In-memory MonitorStore recording every write."""

    def __init__(self, monitors: list[Monitor] | None = None) -> None:
        self.monitors = {m.id: m for m in monitors or []}
        self.events: list[UptimeEvent] = []
        self.timestamp_updates: list[tuple[int, datetime]] = []
        self.fail_writes = False
        self.fail_queries = False

    async def find_due_monitors(self, tier: int, stale_before: datetime) -> list[Monitor]:
        if self.fail_queries:
            raise RuntimeError("store offline")
        return [
            m for m in self.monitors.values()
            if m.frequency == tier
            and not m.is_paused
            and (m.last_checked_at is None or m.last_checked_at <= stale_before)
        ]

    async def save_event(self, event: UptimeEvent) -> None:
        if self.fail_writes:
            raise PersistenceFailure("disk full")
        self.events.append(event)

    async def update_monitor_timestamp(self, monitor_id: int, now: datetime) -> None:
        if self.fail_writes:
            raise PersistenceFailure("disk full")
        self.timestamp_updates.append((monitor_id, now))
        self.monitors[monitor_id].last_checked_at = now


def make_monitor(
    monitor_id: int = 1,
    url: str = "example.com",
    port: int | None = 443,
    frequency: int = 1,
    is_paused: bool = False,
    last_checked_at: datetime | None = None,
) -> Monitor:
    return Monitor(
        id=monitor_id,
        user_id="user-1",
        url=url,
        port=port,
        frequency=frequency,
        is_paused=is_paused,
        last_checked_at=last_checked_at,
    )


@pytest.fixture
def agents() -> FakeAgents:
    return FakeAgents()


@pytest.fixture
def store() -> FakeStore:
    return FakeStore([make_monitor()])


@pytest.fixture
def make_dispatcher(agents: FakeAgents, store: FakeStore) -> Callable[..., Dispatcher]:
    """Build a Dispatcher over the fake agents for a given directory."""

    def _make(*endpoints: str, on_outcome=None, target_store: MonitorStore | None = None) -> Dispatcher:
        return Dispatcher(
            selector=RoundRobinSelector(AgentDirectory(endpoints or (AGENT_A, AGENT_B))),
            probe_client=ProbeClient("test-token", timeout=1.0, transport=agents.transport),
            store=target_store or store,
            on_outcome=on_outcome,
        )

    return _make


@pytest.fixture
def sqlite_engine(tmp_path: Path) -> AsyncEngine:
    """Engine on a fresh SQLite file; NullPool keeps connections loop-local."""
    return create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'agentwatch.db'}", poolclass=NullPool)


@pytest.fixture
def session_factory(sqlite_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(sqlite_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def sql_store(sqlite_engine: AsyncEngine, session_factory) -> SqlMonitorStore:
    async with sqlite_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield SqlMonitorStore(session_factory)
    await sqlite_engine.dispose()
