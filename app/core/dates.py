"""Calendar-day helpers for the canonical activity timezone."""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.utils.exceptions import ValidationError


@lru_cache(maxsize=32)
def activity_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValidationError(f"Unknown timezone: {name}", {"timezone": name}) from exc


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(moment: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo; they are stored in UTC.
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def local_day(moment: datetime, tz_name: str) -> date:
    """Calendar date of ``moment`` in ``tz_name``."""

    return as_utc(moment).astimezone(activity_zone(tz_name)).date()


def today_in(tz_name: str, now: datetime | None = None) -> date:
    return local_day(now or utcnow(), tz_name)


def day_bounds(day: date, tz_name: str) -> tuple[datetime, datetime]:
    """Half-open ``[start, end)`` UTC instants covering ``day`` in ``tz_name``."""

    zone = activity_zone(tz_name)
    start = datetime.combine(day, time.min, tzinfo=zone)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


__all__ = ["activity_zone", "as_utc", "day_bounds", "local_day", "today_in", "utcnow"]
