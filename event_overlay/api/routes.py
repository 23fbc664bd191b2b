from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status

from event_overlay.api.deps import get_event_service, get_now, require_admin_token
from event_overlay.api.models import (
    ActiveEventView,
    Event,
    EventCreateRequest,
    RegionSpawnOverride,
    UpcomingEventView,
)
from event_overlay.event_service import EventQueryService
from event_overlay.event_store import RepositoryUnavailableError
from event_overlay.websocket_hub import GLOBAL_CHANNEL, hub

router = APIRouter()


@router.websocket("/ws/events")
async def event_updates_ws(websocket: WebSocket, region: str | None = None) -> None:
    channel = region or GLOBAL_CHANNEL
    await hub.connect(channel, websocket)

    try:
        # Keep the socket open; client can optionally send pings.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await hub.disconnect(channel, websocket)
    except Exception:
        await hub.disconnect(channel, websocket)
        raise


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/event/active", response_model=list[ActiveEventView])
async def active_events_route(
    service: EventQueryService = Depends(get_event_service),
    now: datetime = Depends(get_now),
) -> list[ActiveEventView]:
    try:
        return service.active_events(now)
    except RepositoryUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e


@router.get("/event/upcoming", response_model=list[UpcomingEventView])
async def upcoming_events_route(
    limit: int | None = Query(default=None, ge=1, le=50),
    service: EventQueryService = Depends(get_event_service),
    now: datetime = Depends(get_now),
) -> list[UpcomingEventView]:
    try:
        return service.upcoming_events(now, limit)
    except RepositoryUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e


@router.get("/event/region/{region_id}/override", response_model=RegionSpawnOverride | None)
async def region_override_route(
    region_id: str,
    service: EventQueryService = Depends(get_event_service),
    now: datetime = Depends(get_now),
) -> RegionSpawnOverride | None:
    """Merged modifiers for a region, or null when no event applies.

    Consumed by the hunting subsystem; handy for checking a campaign setup by hand.
    """

    try:
        return service.region_spawn_override(region_id, now)
    except RepositoryUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e


@router.post(
    "/event",
    response_model=Event,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin_token)],
)
async def create_event_route(
    payload: EventCreateRequest,
    service: EventQueryService = Depends(get_event_service),
) -> Event:
    try:
        event = service.create_event(payload)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    except RepositoryUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e

    await hub.announce_event_created(event_id=event.id, region_id=event.region_id)
    return event


# Declared last so /event/active and /event/upcoming win the match.
@router.get("/event/{event_id}", response_model=Event, dependencies=[Depends(require_admin_token)])
async def get_event_route(event_id: str, service: EventQueryService = Depends(get_event_service)) -> Event:
    try:
        event = service.get_event(event_id)
    except RepositoryUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e
    if event is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return event
