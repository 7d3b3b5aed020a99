"""Half-open UTC time intervals and the set operations the scheduler needs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List

from booking_core.exceptions import InvalidIntervalError


@dataclass(frozen=True, order=True)
class TimeInterval:
    """``[start, end)`` between two aware instants."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise InvalidIntervalError(
                "Interval bounds must be timezone-aware",
                details={"start": str(self.start), "end": str(self.end)},
            )
        if self.end <= self.start:
            raise InvalidIntervalError(
                details={"start": self.start.isoformat(), "end": self.end.isoformat()}
            )

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def overlaps(self, other: "TimeInterval") -> bool:
        """True iff the intervals share any instant. Touching ends do not overlap."""
        return self.start < other.end and other.start < self.end

    def padded(self, buffer: timedelta) -> "TimeInterval":
        """Grow the interval by ``buffer`` on both sides."""
        if buffer <= timedelta(0):
            return self
        return TimeInterval(self.start - buffer, self.end + buffer)

    def as_dict(self) -> dict:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


def merge(intervals: Iterable[TimeInterval]) -> List[TimeInterval]:
    """Union overlapping or touching intervals into a sorted disjoint list."""
    merged: List[TimeInterval] = []
    for interval in sorted(intervals):
        if merged and interval.start <= merged[-1].end:
            last = merged[-1]
            if interval.end > last.end:
                merged[-1] = TimeInterval(last.start, interval.end)
        else:
            merged.append(interval)
    return merged


def subtract(windows: Iterable[TimeInterval], busy: Iterable[TimeInterval]) -> List[TimeInterval]:
    """Remove every busy interval from the windows.

    Returns the free region as sorted, disjoint intervals.
    """
    blocks = merge(busy)
    free: List[TimeInterval] = []
    for window in merge(windows):
        cursor = window.start
        for block in blocks:
            if block.end <= cursor:
                continue
            if block.start >= window.end:
                break
            if block.start > cursor:
                free.append(TimeInterval(cursor, block.start))
            cursor = max(cursor, block.end)
            if cursor >= window.end:
                break
        if cursor < window.end:
            free.append(TimeInterval(cursor, window.end))
    return free
