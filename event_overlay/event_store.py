from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

import redis

from event_overlay.api.models import Event, EventCreateRequest, as_utc
from event_overlay.core.repository import EventRepository, build_event
from event_overlay.core.windows import applies_to_region, is_live, is_upcoming
from event_overlay.settings import get_key_prefix

logger = logging.getLogger(__name__)


class RepositoryUnavailableError(RuntimeError):
    """The backing store could not be reached. Callers decide whether to retry."""


class RedisEventRepository(EventRepository):
    """Events stored as pydantic JSON, indexed by start and end time.

    Keys (with the configured prefix):
      - `{prefix}:event:{id}`        event JSON with nested spawns
      - `{prefix}:events:by_start`   sorted set, score = start epoch seconds
      - `{prefix}:events:by_end`     sorted set, score = end epoch seconds
      - `{prefix}:events:seq`        insertion counter
    """

    def __init__(self, *, r: redis.Redis, prefix: str | None = None) -> None:
        self._r = r
        self._prefix = prefix or get_key_prefix()

    def _event_key(self, event_id: str) -> str:
        return f"{self._prefix}:event:{event_id}"

    @property
    def _by_start_key(self) -> str:
        return f"{self._prefix}:events:by_start"

    @property
    def _by_end_key(self) -> str:
        return f"{self._prefix}:events:by_end"

    @property
    def _seq_key(self) -> str:
        return f"{self._prefix}:events:seq"

    @contextmanager
    def _unavailable_on_failure(self) -> Iterator[None]:
        try:
            yield
        except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError) as e:
            logger.warning("event store unavailable: %s", e)
            raise RepositoryUnavailableError(str(e)) from e

    def _load_many(self, event_ids: list[str]) -> list[Event]:
        if not event_ids:
            return []
        raws = self._r.mget([self._event_key(eid) for eid in event_ids])
        return [Event.model_validate_json(raw) for raw in raws if raw]

    def _started_by(self, now: datetime) -> list[Event]:
        now = as_utc(now)
        ts = now.timestamp()
        with self._unavailable_on_failure():
            # Windows not yet closed, narrowed to those already opened; expired history is never loaded.
            open_ids = list(self._r.zrangebyscore(self._by_end_key, ts, "+inf"))
            starts = self._r.zmscore(self._by_start_key, open_ids) if open_ids else []
            ids = [eid for eid, start in zip(open_ids, starts) if start is not None and start <= ts]
            events = self._load_many(ids)
        live = [e for e in events if is_live(e, now)]
        live.sort(key=lambda e: e.seq)
        return live

    def find_active_events(self, now: datetime) -> list[Event]:
        return self._started_by(now)

    def find_active_for_region(self, region_id: str, now: datetime) -> list[Event]:
        return [e for e in self._started_by(now) if applies_to_region(e, region_id)]

    def find_upcoming(self, now: datetime, limit: int) -> list[Event]:
        if limit <= 0:
            return []
        now = as_utc(now)
        with self._unavailable_on_failure():
            ids = self._r.zrangebyscore(self._by_start_key, f"({now.timestamp()}", "+inf")
            events = self._load_many(list(ids))
        upcoming = [e for e in events if is_upcoming(e, now)]
        upcoming.sort(key=lambda e: (e.start_time, e.seq))
        return upcoming[:limit]

    def create_event_with_spawns(self, data: EventCreateRequest) -> Event:
        with self._unavailable_on_failure():
            seq = int(self._r.incr(self._seq_key))
            event = build_event(data=data, seq=seq)

            # MULTI/EXEC: the record and its index land together or not at all.
            pipe = self._r.pipeline(transaction=True)
            pipe.set(self._event_key(event.id), event.model_dump_json())
            pipe.zadd(self._by_start_key, {event.id: event.start_time.timestamp()})
            pipe.zadd(self._by_end_key, {event.id: event.end_time.timestamp()})
            pipe.execute()
        return event

    def get_event(self, event_id: str) -> Event | None:
        with self._unavailable_on_failure():
            raw = self._r.get(self._event_key(event_id))
        if not raw:
            return None
        return Event.model_validate_json(raw)
