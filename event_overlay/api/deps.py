from __future__ import annotations

from collections.abc import Generator
from datetime import UTC, datetime

import redis
from fastapi import Depends, Header, HTTPException, status

from event_overlay.event_service import EventQueryService
from event_overlay.event_store import RedisEventRepository
from event_overlay.infra.redis_client import create_redis
from event_overlay.settings import get_admin_token


def get_redis() -> Generator[redis.Redis, None, None]:
    client = create_redis()
    try:
        yield client
    finally:
        try:
            client.close()
        except Exception:
            # Some redis client versions don't require explicit close.
            pass


def get_event_service(r: redis.Redis = Depends(get_redis)) -> EventQueryService:
    return EventQueryService(RedisEventRepository(r=r))


def get_now() -> datetime:
    # One captured instant per request; tests override this to pin the clock.
    return datetime.now(tz=UTC)


def require_admin_token(x_admin_token: str | None = Header(default=None)) -> None:
    expected = get_admin_token()
    if expected is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin routes are disabled")
    if x_admin_token != expected:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid admin token")
