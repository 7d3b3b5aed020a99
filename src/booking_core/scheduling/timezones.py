"""Conversion between business wall-clock time and stored UTC instants.

Every conversion takes the IANA zone id explicitly. Callers resolve the zone
for the company (or staff override) at the start of each request and pass it
down; nothing in this module caches a zone between calls.

Wall-clock times that occur twice (DST fall-back) resolve to the first
occurrence. Wall-clock times that do not exist (DST spring-forward gap) are
shifted forward by the length of the gap, which is what ``zoneinfo`` does for
``fold=0``.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import NamedTuple, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from booking_core.exceptions import InvalidTimezoneError, ValidationError
from booking_core.scheduling.intervals import TimeInterval

DateLike = Union[str, date]
TimeLike = Union[str, time]

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2}))?\s*(am|pm)?\s*$", re.IGNORECASE)


class LocalDateTime(NamedTuple):
    """A wall-clock date and time in some zone."""

    date: date
    time: time

    def isoformat(self) -> str:
        return f"{self.date.isoformat()}T{self.time.strftime('%H:%M')}"


def resolve_zone(tz: str) -> ZoneInfo:
    """Return the ``ZoneInfo`` for an IANA id or raise ``InvalidTimezoneError``."""
    if not tz or not isinstance(tz, str):
        raise InvalidTimezoneError(str(tz))
    try:
        return ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidTimezoneError(tz) from e


def parse_local_date(value: DateLike) -> date:
    """Parse ``YYYY-MM-DD`` (or pass a ``date`` through)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip())
    except (AttributeError, ValueError) as e:
        raise ValidationError(
            f"Invalid date {value!r}; expected YYYY-MM-DD",
            errors={"date": "invalid format"},
        ) from e


def parse_local_time(value: TimeLike) -> time:
    """Parse ``HH:MM`` (24h) or ``h:MM am/pm`` (or pass a ``time`` through)."""
    if isinstance(value, time):
        return value.replace(tzinfo=None)
    match = _TIME_RE.match(value or "")
    if not match:
        raise ValidationError(
            f"Invalid time {value!r}; expected HH:MM",
            errors={"time": "invalid format"},
        )
    hour, minute = int(match.group(1)), int(match.group(2))
    second = int(match.group(3) or 0)
    meridiem = (match.group(4) or "").lower()
    if meridiem:
        if not 1 <= hour <= 12:
            raise ValidationError(f"Invalid time {value!r}", errors={"time": "hour out of range"})
        if meridiem == "pm" and hour < 12:
            hour += 12
        elif meridiem == "am" and hour == 12:
            hour = 0
    if hour > 23 or minute > 59 or second > 59:
        raise ValidationError(f"Invalid time {value!r}", errors={"time": "out of range"})
    return time(hour, minute, second)


def to_utc(local_date: DateLike, local_time: TimeLike, tz: str) -> datetime:
    """Convert a wall-clock date and time in ``tz`` to an aware UTC datetime.

    Example:
        >>> to_utc("2025-01-20", "15:33", "America/New_York")
        datetime.datetime(2025, 1, 20, 20, 33, tzinfo=datetime.timezone.utc)
    """
    zone = resolve_zone(tz)
    naive = datetime.combine(parse_local_date(local_date), parse_local_time(local_time))
    return naive.replace(tzinfo=zone).astimezone(timezone.utc)


def to_local(instant: datetime, tz: str) -> LocalDateTime:
    """Convert an instant to its wall-clock date and time in ``tz``."""
    zone = resolve_zone(tz)
    local = ensure_utc(instant).astimezone(zone)
    return LocalDateTime(local.date(), local.time().replace(tzinfo=None))


def local_date_of(instant: datetime, tz: str) -> date:
    """Calendar day an instant falls on for someone looking at a clock in ``tz``."""
    return to_local(instant, tz).date


def local_day_bounds(day: DateLike, tz: str) -> TimeInterval:
    """Local midnight to the next local midnight, in UTC.

    The result is 23 or 25 hours long on DST transition days.
    """
    zone = resolve_zone(tz)
    start_day = parse_local_date(day)
    start = datetime.combine(start_day, time.min, tzinfo=zone)
    end = datetime.combine(start_day + timedelta(days=1), time.min, tzinfo=zone)
    return TimeInterval(start.astimezone(timezone.utc), end.astimezone(timezone.utc))


def local_range_bounds(first_day: DateLike, last_day: DateLike, tz: str) -> TimeInterval:
    """Local midnight of ``first_day`` to the midnight after ``last_day``, in UTC."""
    first = local_day_bounds(first_day, tz)
    last = local_day_bounds(last_day, tz)
    return TimeInterval(first.start, last.end)


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
