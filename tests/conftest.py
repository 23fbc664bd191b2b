from __future__ import annotations

import os
from collections.abc import Generator
from datetime import UTC, datetime
from pathlib import Path

import pytest

from event_overlay.api.models import Event, EventCreateRequest
from event_overlay.core.windows import applies_to_region, is_live, is_upcoming
from event_overlay.core.repository import EventRepository, build_event

# Pinned clock shared by tests that go through the HTTP layer.
NOW = datetime(2026, 3, 27, 12, 0, tzinfo=UTC)

ADMIN_TOKEN = "test-admin-token"


@pytest.fixture(scope="session", autouse=True)
def _load_dotenv_for_tests() -> None:
    """Load repo .env for local runs (PyCharm/CLI).

    In CI, we *don't* auto-load `.env` by default so a developer's local
    REDIS_URL or admin token can't leak into the run.
    """

    # Opt-in in CI with: EVENT_OVERLAY_LOAD_DOTENV_FOR_TESTS=1
    if os.environ.get("CI") and os.environ.get("EVENT_OVERLAY_LOAD_DOTENV_FOR_TESTS") != "1":
        return

    env_path = Path(__file__).resolve().parents[1] / ".env"
    if env_path.exists():
        from dotenv import load_dotenv

        load_dotenv(dotenv_path=env_path, override=False)


class InMemoryEventRepository(EventRepository):
    """List-backed repository; iteration order is insertion order."""

    def __init__(self) -> None:
        self.events: list[Event] = []
        self.calls: list[str] = []

    def find_active_events(self, now: datetime) -> list[Event]:
        self.calls.append("find_active_events")
        return [e for e in self.events if is_live(e, now)]

    def find_upcoming(self, now: datetime, limit: int) -> list[Event]:
        self.calls.append("find_upcoming")
        upcoming = [e for e in self.events if is_upcoming(e, now)]
        upcoming.sort(key=lambda e: (e.start_time, e.seq))
        return upcoming[:limit]

    def find_active_for_region(self, region_id: str, now: datetime) -> list[Event]:
        self.calls.append("find_active_for_region")
        return [e for e in self.events if is_live(e, now) and applies_to_region(e, region_id)]

    def create_event_with_spawns(self, data: EventCreateRequest) -> Event:
        self.calls.append("create_event_with_spawns")
        event = build_event(data=data, seq=len(self.events) + 1)
        self.events.append(event)
        return event

    def get_event(self, event_id: str) -> Event | None:
        return next((e for e in self.events if e.id == event_id), None)


@pytest.fixture()
def memory_repo() -> InMemoryEventRepository:
    return InMemoryEventRepository()


@pytest.fixture()
def client_and_redis(monkeypatch: pytest.MonkeyPatch):
    """FastAPI TestClient on fakeredis with the clock pinned to NOW and admin routes enabled."""

    import fakeredis
    from fastapi.testclient import TestClient

    from event_overlay.api.deps import get_now, get_redis
    from event_overlay.main import app

    monkeypatch.setenv("EVENT_OVERLAY_ADMIN_TOKEN", ADMIN_TOKEN)
    monkeypatch.delenv("EVENT_OVERLAY_UPCOMING_LIMIT", raising=False)
    monkeypatch.delenv("EVENT_OVERLAY_KEY_PREFIX", raising=False)

    r = fakeredis.FakeRedis(decode_responses=True)

    def _override() -> Generator[fakeredis.FakeRedis, None, None]:
        yield r

    app.dependency_overrides[get_redis] = _override
    app.dependency_overrides[get_now] = lambda: NOW
    with TestClient(app) as c:
        yield c, r
    app.dependency_overrides.clear()
