from __future__ import annotations

from datetime import timedelta
from typing import Literal

CountdownKind = Literal["remaining", "until"]

_SECONDS_PER_MINUTE = 60
_SECONDS_PER_HOUR = 60 * _SECONDS_PER_MINUTE
_SECONDS_PER_DAY = 24 * _SECONDS_PER_HOUR


def _split(delta: timedelta) -> tuple[int, int, int]:
    # Floor at every step; a partial minute never rounds up.
    total = int(delta.total_seconds())
    days, rest = divmod(total, _SECONDS_PER_DAY)
    hours, rest = divmod(rest, _SECONDS_PER_HOUR)
    minutes = rest // _SECONDS_PER_MINUTE
    return days, hours, minutes


def format_countdown(delta: timedelta, kind: CountdownKind) -> str:
    """Render a coarse countdown using at most the two most significant units.

    `kind="remaining"` describes time left until an event ends,
    `kind="until"` describes time left until an event starts.
    """

    if delta <= timedelta(0):
        return "Ended" if kind == "remaining" else "Starting now"

    days, hours, minutes = _split(delta)

    if days > 0:
        body = f"{days}d {hours}h"
    elif hours > 0:
        body = f"{hours}h {minutes}m"
    else:
        body = f"{minutes}m"

    if kind == "remaining":
        return f"{body} remaining"
    return f"Starts in {body}"


def format_remaining(delta: timedelta) -> str:
    return format_countdown(delta, "remaining")


def format_until(delta: timedelta) -> str:
    return format_countdown(delta, "until")
