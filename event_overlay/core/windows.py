from __future__ import annotations

from datetime import datetime

from event_overlay.api.models import Event


def is_live(event: Event, now: datetime) -> bool:
    """Enabled and inside its window. Both bounds are inclusive."""

    return event.is_active and event.start_time <= now <= event.end_time


def is_upcoming(event: Event, now: datetime) -> bool:
    return event.is_active and event.start_time > now


def applies_to_region(event: Event, region_id: str) -> bool:
    # Global events (no region) apply everywhere.
    return event.region_id is None or event.region_id == region_id
