"""Create promotional events from a JSON file.

Contract
- Input: a JSON list of event payloads (camelCase or snake_case keys), each
  optionally carrying a `spawns` list.
- Every entry is validated before the first write; one bad entry aborts the run.
- Output: one created event id per line.

Usage:
    REDIS_URL=redis://localhost:6379/0 uv run python scripts/seed_events.py scripts/sample_events.json
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import redis
from pydantic import ValidationError

from event_overlay.api.models import EventCreateRequest
from event_overlay.event_service import EventQueryService
from event_overlay.event_store import RedisEventRepository
from event_overlay.infra.redis_client import create_redis

logger = logging.getLogger(__name__)


def load_requests(path: Path) -> list[EventCreateRequest]:
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValueError(f"{path}: expected a JSON list of events")

    requests: list[EventCreateRequest] = []
    for idx, item in enumerate(raw):
        try:
            requests.append(EventCreateRequest.model_validate(item))
        except ValidationError as e:
            raise ValueError(f"{path}: entry {idx} is invalid: {e}") from e
    return requests


def seed(*, r: redis.Redis, requests: list[EventCreateRequest]) -> list[str]:
    service = EventQueryService(RedisEventRepository(r=r))
    return [service.create_event(req).id for req in requests]


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1:
        print("usage: seed_events.py <events.json>", file=sys.stderr)
        return 2

    logging.basicConfig(level=logging.INFO)
    try:
        requests = load_requests(Path(args[0]))
    except (OSError, ValueError) as e:
        print(str(e), file=sys.stderr)
        return 1

    r = create_redis()
    try:
        for event_id in seed(r=r, requests=requests):
            print(event_id)
    finally:
        r.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
