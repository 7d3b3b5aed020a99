"""Slot calculation over open-hours windows and busy intervals.

Everything here is pure: the caller fetches rules and busy intervals from the
stores and passes them in, so the same inputs always give the same slots.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional, Tuple

from booking_core.exceptions import InvalidIntervalError
from booking_core.scheduling.intervals import TimeInterval, subtract
from booking_core.scheduling.timezones import to_utc


@dataclass(frozen=True)
class WeeklyWindow:
    """Recurring open hours on one weekday (Monday=0), in business wall-clock time."""

    day_of_week: int
    local_start: time
    local_end: time


def open_windows_for_day(day: date, windows: Iterable[WeeklyWindow], tz: str) -> List[TimeInterval]:
    """UTC intervals for the windows that apply to ``day``.

    Each window is converted on its own so a DST change on ``day`` is honoured.
    A window swallowed entirely by a DST gap is dropped.
    """
    result: List[TimeInterval] = []
    weekday = day.weekday()
    for window in windows:
        if window.day_of_week != weekday:
            continue
        start = to_utc(day, window.local_start, tz)
        end = to_utc(day, window.local_end, tz)
        if end > start:
            result.append(TimeInterval(start, end))
    return sorted(result)


def compute_free_slots(
    open_windows: Iterable[TimeInterval],
    busy: Iterable[TimeInterval],
    duration: timedelta,
    buffer: timedelta = timedelta(0),
    step: Optional[timedelta] = None,
    starts_after: Optional[datetime] = None,
) -> Tuple[TimeInterval, ...]:
    """Every bookable interval of length ``duration`` inside the open windows.

    Busy intervals are padded by ``buffer`` on both sides and removed from the
    windows. A window of ``duration`` then slides across each remaining free
    region from its start, ``step`` at a time (default ``duration``). Slots
    that do not start strictly after ``starts_after`` are dropped, the same
    cut-off the booking path applies to "now".
    """
    if duration <= timedelta(0):
        raise InvalidIntervalError("Slot duration must be positive")
    step = step or duration
    if step <= timedelta(0):
        raise InvalidIntervalError("Slot step must be positive")

    padded = [interval.padded(buffer) for interval in busy]
    slots = []
    for region in subtract(open_windows, padded):
        cursor = region.start
        if starts_after is not None and cursor <= starts_after:
            cursor += ((starts_after - cursor) // step + 1) * step
        while cursor + duration <= region.end:
            slots.append(TimeInterval(cursor, cursor + duration))
            cursor += step
    return tuple(sorted(set(slots)))
