"""Shared datetime helpers for enforcing UTC awareness."""

from __future__ import annotations

from datetime import UTC, datetime
from zoneinfo import ZoneInfo


def ensure_utc(value: datetime) -> datetime:
    """Return a timezone-aware datetime in UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def utc_now() -> datetime:
    """Return the current UTC datetime."""

    return datetime.now(UTC)


def from_unix(seconds: int | float) -> datetime:
    """Convert a unix timestamp in seconds to an aware UTC datetime."""

    return datetime.fromtimestamp(seconds, tz=UTC)


def parse_iso(value: str) -> datetime | None:
    """Parse an ISO-8601 string, returning None when it is not parseable."""

    candidate = value.strip()
    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"
    try:
        return ensure_utc(datetime.fromisoformat(candidate))
    except ValueError:
        return None


def hour_in_timezone(moment: datetime, timezone: str) -> int:
    """Return the wall-clock hour of ``moment`` in the named IANA zone."""

    return ensure_utc(moment).astimezone(ZoneInfo(timezone)).hour


def age_ms(moment: datetime, now: datetime) -> float:
    return (ensure_utc(now) - ensure_utc(moment)).total_seconds() * 1000
