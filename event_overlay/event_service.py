from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from event_overlay.api.models import (
    ActiveEventView,
    Event,
    EventCreateRequest,
    RegionSpawnOverride,
    SpawnRow,
    UpcomingEventView,
    as_utc,
    is_known_event_type,
)
from event_overlay.core.resolver import ActiveEvent, EventResolver, UpcomingEvent
from event_overlay.core.repository import EventRepository
from event_overlay.settings import get_upcoming_limit

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(tz=UTC)


def _at(now: datetime | None) -> datetime:
    return as_utc(now) if now is not None else _now()


def _active_view(item: ActiveEvent) -> ActiveEventView:
    e = item.event
    return ActiveEventView(
        id=e.id,
        name=e.name,
        description=e.description,
        type=e.type,
        start_time=e.start_time,
        end_time=e.end_time,
        time_remaining=item.time_remaining,
        region_id=e.region_id,
        banner_url=e.banner_url,
        config=e.config,
        # Field-mapped for the client: identifiers stay server side.
        spawns=[
            SpawnRow(
                species=s.species,
                rarity=s.rarity,
                spawn_rate=s.spawn_rate,
                min_level=s.min_level,
                max_level=s.max_level,
                is_guaranteed=s.is_guaranteed,
            )
            for s in e.spawns
        ],
    )


def _upcoming_view(item: UpcomingEvent) -> UpcomingEventView:
    e = item.event
    return UpcomingEventView(
        id=e.id,
        name=e.name,
        description=e.description,
        type=e.type,
        start_time=e.start_time,
        end_time=e.end_time,
        starts_in=item.starts_in,
        banner_url=e.banner_url,
    )


class EventQueryService:
    """Façade used by the web boundary, the hunting subsystem and seeding tools.

    When `now` is omitted each call captures the clock exactly once.
    """

    def __init__(self, repository: EventRepository) -> None:
        self._repository = repository
        self._resolver = EventResolver(repository)

    def active_events(self, now: datetime | None = None) -> list[ActiveEventView]:
        at = _at(now)
        return [_active_view(item) for item in self._resolver.active_events(at)]

    def upcoming_events(self, now: datetime | None = None, limit: int | None = None) -> list[UpcomingEventView]:
        at = _at(now)
        cap = get_upcoming_limit() if limit is None else limit
        return [_upcoming_view(item) for item in self._resolver.upcoming_events(at, cap)]

    def region_spawn_override(self, region_id: str, now: datetime | None = None) -> RegionSpawnOverride | None:
        return self._resolver.region_spawn_override(region_id, _at(now))

    def get_event(self, event_id: str) -> Event | None:
        return self._repository.get_event(event_id)

    def create_event(self, data: EventCreateRequest | Mapping[str, Any]) -> Event:
        """Validate and persist an event with its spawn rows.

        Raises ValueError (pydantic's ValidationError included) before anything is written.
        """

        request = data if isinstance(data, EventCreateRequest) else EventCreateRequest.model_validate(dict(data))
        event = self._repository.create_event_with_spawns(request)
        logger.info(
            "created event %s (%s, type=%s, region=%s, spawns=%d)",
            event.id,
            event.name,
            event.type,
            event.region_id or "global",
            len(event.spawns),
        )
        if not is_known_event_type(event.type):
            logger.info("event %s has unrecognized type %r; stored as pass-through", event.id, event.type)
        return event
