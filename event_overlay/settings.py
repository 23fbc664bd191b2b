from __future__ import annotations

import os

DEFAULT_UPCOMING_LIMIT = 5


def get_key_prefix() -> str:
    return os.environ.get("EVENT_OVERLAY_KEY_PREFIX", "overlay")


def get_upcoming_limit() -> int:
    raw = os.environ.get("EVENT_OVERLAY_UPCOMING_LIMIT")
    if not raw:
        return DEFAULT_UPCOMING_LIMIT
    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError("EVENT_OVERLAY_UPCOMING_LIMIT must be an integer") from e
    if value < 1:
        raise ValueError("EVENT_OVERLAY_UPCOMING_LIMIT must be positive")
    return value


def get_admin_token() -> str | None:
    # Unset or empty disables the admin routes.
    return os.environ.get("EVENT_OVERLAY_ADMIN_TOKEN") or None


def get_log_level() -> str:
    return os.environ.get("EVENT_OVERLAY_LOG_LEVEL", "INFO").upper()


def validate_settings() -> None:
    """Fail fast on malformed configuration; called once at startup."""

    get_upcoming_limit()
    level = get_log_level()
    if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
        raise ValueError(f"EVENT_OVERLAY_LOG_LEVEL has unknown level {level!r}")
