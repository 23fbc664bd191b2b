from __future__ import annotations

import asyncio
from collections import defaultdict

from fastapi import WebSocket

# Channel every subscriber joins unless it asks for a single region.
GLOBAL_CHANNEL = "global"


class EventWebSocketHub:
    """In-process WebSocket fan-out keyed by channel (a region id or `global`).

    Payloads should be JSON-serializable dicts.

    Note: this is intentionally minimal. If we later run multiple API replicas,
    this should move to Redis pub/sub.
    """

    def __init__(self) -> None:
        self._by_channel: dict[str, set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def connect(self, channel: str, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._by_channel[channel].add(websocket)

    async def disconnect(self, channel: str, websocket: WebSocket) -> None:
        async with self._lock:
            conns = self._by_channel.get(channel)
            if not conns:
                return
            conns.discard(websocket)
            if not conns:
                self._by_channel.pop(channel, None)

    def subscriber_count(self, channel: str) -> int:
        return len(self._by_channel.get(channel, ()))

    async def broadcast(self, channel: str, payload: dict[str, object]) -> None:
        async with self._lock:
            conns = list(self._by_channel.get(channel, set()))

        if not conns:
            return

        dead: list[WebSocket] = []
        for ws in conns:
            try:
                await ws.send_json(payload)
            except Exception:
                dead.append(ws)

        if dead:
            async with self._lock:
                for ws in dead:
                    self._by_channel.get(channel, set()).discard(ws)

    async def announce_event_created(self, *, event_id: str, region_id: str | None) -> None:
        payload: dict[str, object] = {"type": "event_created", "event_id": event_id, "region_id": region_id}
        await self.broadcast(GLOBAL_CHANNEL, payload)
        if region_id is not None and region_id != GLOBAL_CHANNEL:
            await self.broadcast(region_id, payload)


hub = EventWebSocketHub()
