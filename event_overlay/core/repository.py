from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import UTC, datetime
from uuid import uuid4

from event_overlay.api.models import Event, EventCreateRequest, EventSpawn


class EventRepository(ABC):
    """Persistence boundary for events and their spawn rows.

    Active and region queries return events in insertion order; ordering for
    display is the resolver's job.
    """

    @abstractmethod
    def find_active_events(self, now: datetime) -> list[Event]:
        """Enabled events whose window contains `now`."""

    @abstractmethod
    def find_upcoming(self, now: datetime, limit: int) -> list[Event]:
        """Enabled events starting after `now`, earliest first, at most `limit`."""

    @abstractmethod
    def find_active_for_region(self, region_id: str, now: datetime) -> list[Event]:
        """Active events scoped to `region_id` plus global ones."""

    @abstractmethod
    def create_event_with_spawns(self, data: EventCreateRequest) -> Event:
        """Persist an event and its spawn rows as one unit."""

    @abstractmethod
    def get_event(self, event_id: str) -> Event | None: ...


def build_event(*, data: EventCreateRequest, seq: int) -> Event:
    """Assign identifiers to a validated creation request."""

    event_id = str(uuid4())
    spawns = [EventSpawn(id=str(uuid4()), event_id=event_id, **row.model_dump()) for row in data.spawns]
    return Event(
        id=event_id,
        seq=seq,
        created_at=datetime.now(tz=UTC),
        spawns=spawns,
        **data.model_dump(exclude={"spawns"}),
    )
