from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from event_overlay.api.models import Event, OverrideSpawn, RegionSpawnOverride, as_utc
from event_overlay.core.countdown import format_remaining, format_until
from event_overlay.core.repository import EventRepository

logger = logging.getLogger(__name__)

# Neutral values for events that leave a modifier unset.
DEFAULT_XP_MULTIPLIER = 1.0
DEFAULT_SPAWN_BONUS = 0.0


@dataclass(frozen=True, slots=True)
class ActiveEvent:
    event: Event
    time_remaining: str


@dataclass(frozen=True, slots=True)
class UpcomingEvent:
    event: Event
    starts_in: str


def strongest_xp_multiplier(events: Sequence[Event]) -> float:
    """Max-wins merge: the strongest single campaign decides, nothing stacks."""

    return max(
        (e.config.xp_multiplier if e.config.xp_multiplier is not None else DEFAULT_XP_MULTIPLIER for e in events),
        default=DEFAULT_XP_MULTIPLIER,
    )


def strongest_spawn_bonus(events: Sequence[Event]) -> float:
    return max(
        (e.config.spawn_bonus if e.config.spawn_bonus is not None else DEFAULT_SPAWN_BONUS for e in events),
        default=DEFAULT_SPAWN_BONUS,
    )


def merge_region_events(events: Sequence[Event]) -> RegionSpawnOverride | None:
    """Fold the events matching a region into a single override.

    Returns None for an empty match so callers fall back to the default spawn tables.
    """

    if not events:
        return None

    spawns = [
        OverrideSpawn(**spawn.model_dump(), event_name=event.name, event_type=event.type)
        for event in events
        for spawn in event.spawns
    ]
    return RegionSpawnOverride(
        event_spawns=spawns,
        xp_multiplier=strongest_xp_multiplier(events),
        spawn_bonus=strongest_spawn_bonus(events),
        active_events=[e.name for e in events],
    )


def by_priority(events: Sequence[Event]) -> list[Event]:
    # sorted() is stable, so equal priorities keep repository order.
    return sorted(events, key=lambda e: e.priority, reverse=True)


class EventResolver:
    """Answers time-window queries against an EventRepository.

    Every method takes the caller's captured `now` (naive values are UTC);
    the predicate and the countdowns are both derived from it.
    """

    def __init__(self, repository: EventRepository) -> None:
        self._repository = repository

    def active_events(self, now: datetime) -> list[ActiveEvent]:
        now = as_utc(now)
        ordered = by_priority(self._repository.find_active_events(now))
        logger.debug("active events at %s: %d", now.isoformat(), len(ordered))
        return [ActiveEvent(event=e, time_remaining=format_remaining(e.end_time - now)) for e in ordered]

    def upcoming_events(self, now: datetime, limit: int = 5) -> list[UpcomingEvent]:
        if limit <= 0:
            return []
        now = as_utc(now)
        events = self._repository.find_upcoming(now, limit)
        ordered = sorted(events, key=lambda e: e.start_time)[:limit]
        return [UpcomingEvent(event=e, starts_in=format_until(e.start_time - now)) for e in ordered]

    def region_spawn_override(self, region_id: str, now: datetime) -> RegionSpawnOverride | None:
        now = as_utc(now)
        # Same order as the active list, so attribution reads the way the banner list does.
        events = by_priority(self._repository.find_active_for_region(region_id, now))
        override = merge_region_events(events)
        if override is not None:
            logger.debug(
                "region %s override: xp=%s bonus=%s events=%s",
                region_id,
                override.xp_multiplier,
                override.spawn_bonus,
                override.active_events,
            )
        return override
