from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator
from pydantic.alias_generators import to_camel


class EventType(StrEnum):
    # Known campaign kinds. Event.type stays a plain string so new kinds pass through untouched.
    hunt_boost = "hunt_boost"
    rare_spawn = "rare_spawn"
    double_xp = "double_xp"
    special_hunt = "special_hunt"
    shiny_chance = "shiny_chance"


def is_known_event_type(value: str) -> bool:
    return value in {t.value for t in EventType}


class CamelModel(BaseModel):
    """Base for everything that crosses the wire.

    The mobile client speaks camelCase; Python code uses snake_case attributes.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def as_utc(value: datetime) -> datetime:
    # Naive instants are taken to be UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class EventConfig(CamelModel):
    # Fractional bonus to baseline encounter probability, e.g. 0.5 = +50%.
    spawn_bonus: float | None = Field(default=None, ge=0)
    # Multiplicative XP factor; absent means 1.
    xp_multiplier: float | None = Field(default=None, gt=0)
    featured_species: list[str] | None = None
    guaranteed_encounter: str | None = None


class SpawnRow(CamelModel):
    species: str = Field(..., min_length=1)
    rarity: str = Field(..., min_length=1)
    spawn_rate: float = Field(..., ge=0)
    min_level: int = Field(..., ge=1)
    max_level: int = Field(..., ge=1)
    # Guaranteed rows bypass rarity odds.
    is_guaranteed: bool = False

    @model_validator(mode="after")
    def _check_levels(self) -> "SpawnRow":
        if self.min_level > self.max_level:
            raise ValueError("minLevel must not exceed maxLevel")
        return self


class EventSpawn(SpawnRow):
    id: str
    event_id: str


class OverrideSpawn(EventSpawn):
    # Attribution only, for display and debugging.
    event_name: str
    event_type: str


class _EventFields(CamelModel):
    name: str = Field(..., min_length=1)
    description: str
    type: str = Field(..., min_length=1)
    start_time: datetime
    end_time: datetime

    # None means the event applies to every region.
    region_id: str | None = None
    banner_url: str | None = None
    config: EventConfig = Field(default_factory=EventConfig)
    priority: int = 0

    # Administrative switch, independent of the time window.
    is_active: bool = True

    @field_validator("start_time", "end_time")
    @classmethod
    def _normalize_instant(cls, value: datetime) -> datetime:
        return as_utc(value)

    @field_validator("config", "priority", mode="before")
    @classmethod
    def _default_when_null(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return {} if info.field_name == "config" else 0
        return value

    @model_validator(mode="after")
    def _check_window(self) -> "_EventFields":
        if self.start_time >= self.end_time:
            raise ValueError("startTime must be before endTime")
        return self


class EventCreateRequest(_EventFields):
    spawns: list[SpawnRow] = Field(default_factory=list)


class Event(_EventFields):
    id: str
    # Repository insertion order; breaks priority ties.
    seq: int
    created_at: datetime
    spawns: list[EventSpawn] = Field(default_factory=list)


class ActiveEventView(CamelModel):
    id: str
    name: str
    description: str
    type: str
    start_time: datetime
    end_time: datetime
    time_remaining: str
    region_id: str | None = None
    banner_url: str | None = None
    config: EventConfig = Field(default_factory=EventConfig)
    spawns: list[SpawnRow] = Field(default_factory=list)


class UpcomingEventView(CamelModel):
    id: str
    name: str
    description: str
    type: str
    start_time: datetime
    end_time: datetime
    starts_in: str
    banner_url: str | None = None


class RegionSpawnOverride(CamelModel):
    event_spawns: list[OverrideSpawn] = Field(default_factory=list)
    xp_multiplier: float = 1.0
    spawn_bonus: float = 0.0
    # Names of contributing events, in match order.
    active_events: list[str] = Field(default_factory=list)
