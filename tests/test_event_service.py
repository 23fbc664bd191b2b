from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from event_overlay.api.models import EventConfig, EventCreateRequest, EventType, is_known_event_type
from event_overlay.event_service import EventQueryService

NOW = datetime(2026, 3, 27, 12, 0, tzinfo=UTC)


def _payload(**overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "name": "Forest Rally",
        "description": "Grass types swarm the forest.",
        "type": "hunt_boost",
        "startTime": "2026-03-27T10:00:00Z",
        "endTime": "2026-03-27T13:30:00Z",
        "regionId": "forest",
        "spawns": [
            {"species": "bulbasaur", "rarity": "uncommon", "spawnRate": 0.2, "minLevel": 3, "maxLevel": 8},
        ],
    }
    data.update(overrides)
    return data


def test_create_event_applies_defaults(memory_repo) -> None:
    event = EventQueryService(memory_repo).create_event(_payload())

    assert event.priority == 0
    assert event.config == EventConfig()
    assert event.is_active is True
    assert event.start_time == datetime(2026, 3, 27, 10, 0, tzinfo=UTC)
    assert len(event.spawns) == 1
    assert event.spawns[0].is_guaranteed is False
    assert event.spawns[0].event_id == event.id


def test_create_event_null_config_and_priority(memory_repo) -> None:
    event = EventQueryService(memory_repo).create_event(_payload(config=None, priority=None))

    assert event.config == EventConfig()
    assert event.priority == 0


def test_create_event_accepts_request_model(memory_repo) -> None:
    req = EventCreateRequest(
        name="Spring Fest",
        description="",
        type="double_xp",
        start_time=NOW,
        end_time=NOW + timedelta(days=7),
        config=EventConfig(xp_multiplier=2),
    )
    event = EventQueryService(memory_repo).create_event(req)

    assert event.region_id is None
    assert event.config.xp_multiplier == 2
    assert memory_repo.get_event(event.id) is not None


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": None},
        {"name": ""},
        {"type": ""},
        {"description": None},
        {"startTime": None},
        {"endTime": "not a date"},
        {"endTime": "2026-03-27T10:00:00Z"},
        {"endTime": "2026-03-27T09:00:00Z"},
        {"config": {"xpMultiplier": 0}},
        {"config": {"spawnBonus": -0.1}},
        {"spawns": [{"species": "x", "rarity": "common", "spawnRate": 0.1, "minLevel": 9, "maxLevel": 3}]},
        {"spawns": [{"species": "x", "rarity": "common"}]},
    ],
)
def test_create_event_rejects_before_writing(memory_repo, overrides: dict[str, Any]) -> None:
    payload = _payload(**overrides)
    payload = {k: v for k, v in payload.items() if v is not None or k in {"config", "priority"}}

    with pytest.raises(ValueError):
        EventQueryService(memory_repo).create_event(payload)

    assert memory_repo.events == []
    assert "create_event_with_spawns" not in memory_repo.calls


def test_create_event_unknown_type_is_accepted(memory_repo) -> None:
    event = EventQueryService(memory_repo).create_event(_payload(type="moon_festival"))
    assert event.type == "moon_festival"


def test_active_events_projection(memory_repo) -> None:
    service = EventQueryService(memory_repo)
    service.create_event(_payload())

    views = service.active_events(NOW)

    assert len(views) == 1
    view = views[0]
    assert view.time_remaining == "1h 30m remaining"
    assert view.region_id == "forest"
    assert view.spawns[0].species == "bulbasaur"
    dumped = view.model_dump(by_alias=True, mode="json")
    assert dumped["timeRemaining"] == "1h 30m remaining"
    assert dumped["startTime"] == "2026-03-27T10:00:00Z"
    assert set(dumped["spawns"][0]) == {"species", "rarity", "spawnRate", "minLevel", "maxLevel", "isGuaranteed"}


def test_naive_now_is_treated_as_utc(memory_repo) -> None:
    service = EventQueryService(memory_repo)
    service.create_event(_payload())

    views = service.active_events(datetime(2026, 3, 27, 12, 0))

    assert [v.name for v in views] == ["Forest Rally"]


def test_now_defaults_to_clock(memory_repo) -> None:
    service = EventQueryService(memory_repo)
    start = datetime.now(tz=UTC) - timedelta(minutes=1)
    service.create_event(_payload(startTime=start.isoformat(), endTime=(start + timedelta(days=2)).isoformat()))

    assert [v.name for v in service.active_events()] == ["Forest Rally"]
    assert service.region_spawn_override("forest") is not None
    assert service.upcoming_events() == []


def test_upcoming_limit_from_settings(memory_repo, monkeypatch: pytest.MonkeyPatch) -> None:
    service = EventQueryService(memory_repo)
    for i in range(1, 9):
        start = NOW + timedelta(hours=i)
        service.create_event(
            _payload(name=f"e{i}", startTime=start.isoformat(), endTime=(start + timedelta(hours=1)).isoformat())
        )

    monkeypatch.delenv("EVENT_OVERLAY_UPCOMING_LIMIT", raising=False)
    assert [v.name for v in service.upcoming_events(NOW)] == ["e1", "e2", "e3", "e4", "e5"]

    monkeypatch.setenv("EVENT_OVERLAY_UPCOMING_LIMIT", "3")
    assert [v.name for v in service.upcoming_events(NOW)] == ["e1", "e2", "e3"]

    upcoming = service.upcoming_events(NOW, limit=1)
    assert upcoming[0].starts_in == "Starts in 1h 0m"
    assert upcoming[0].model_dump(by_alias=True)["startsIn"] == "Starts in 1h 0m"


def test_region_override_none_when_nothing_applies(memory_repo) -> None:
    service = EventQueryService(memory_repo)
    service.create_event(_payload())

    assert service.region_spawn_override("desert", NOW) is None
    override = service.region_spawn_override("forest", NOW)
    assert override is not None
    assert override.xp_multiplier == 1
    assert override.spawn_bonus == 0
    assert override.active_events == ["Forest Rally"]


def test_known_event_types() -> None:
    assert {t.value for t in EventType} == {"hunt_boost", "rare_spawn", "double_xp", "special_hunt", "shiny_chance"}
    assert is_known_event_type("double_xp")
    assert not is_known_event_type("moon_festival")


def test_unknown_type_is_logged_on_create(memory_repo, caplog: pytest.LogCaptureFixture) -> None:
    service = EventQueryService(memory_repo)

    with caplog.at_level(logging.INFO, logger="event_overlay.event_service"):
        service.create_event(_payload(type="double_xp"))
        assert "unrecognized type" not in caplog.text
        event = service.create_event(_payload(type="moon_festival"))

    assert f"event {event.id} has unrecognized type 'moon_festival'" in caplog.text
