"""Expansion of a recurrence request into concrete occurrence dates.

The expansion is a bounded generator: whatever the date range, it never yields
more than ``limit`` dates (``MAX_OCCURRENCES`` by default).

Monthly recurrence keeps the start date's day-of-month as its anchor and
clamps to the last day of shorter months, so a series starting Jan 31 runs
Jan 31, Feb 28 (29), Mar 31, Apr 30, ...
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Iterator, Optional, Tuple

from dateutil.relativedelta import relativedelta

from booking_core.exceptions import InvalidIntervalError

MAX_OCCURRENCES = 50


class Frequency(str, Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass(frozen=True)
class RecurrencePlan:
    dates: Tuple[date, ...]
    truncated: bool

    def __len__(self) -> int:
        return len(self.dates)

    def __iter__(self):
        return iter(self.dates)


def _nth_occurrence(start: date, frequency: Frequency, n: int) -> date:
    if frequency == Frequency.DAILY:
        return start + timedelta(days=n)
    if frequency == Frequency.WEEKLY:
        return start + timedelta(weeks=n)
    # Always measured from the anchor so a clamp in February doesn't stick
    return start + relativedelta(months=n)


def expand(
    start: date,
    frequency: Frequency,
    until: Optional[date] = None,
    limit: int = MAX_OCCURRENCES,
) -> Iterator[date]:
    """Yield occurrence dates from ``start`` through ``until`` (inclusive), at most ``limit``."""
    frequency = Frequency(frequency)
    limit = max(0, min(limit, MAX_OCCURRENCES))
    if limit == 0:
        return
    if frequency == Frequency.NONE:
        yield start
        return
    if until is None:
        raise InvalidIntervalError("A repeating booking needs an end date")
    if until < start:
        raise InvalidIntervalError(
            "Recurrence end date is before its start date",
            details={"start": start.isoformat(), "until": until.isoformat()},
        )

    for n in range(limit):
        occurrence = _nth_occurrence(start, frequency, n)
        if occurrence > until:
            return
        yield occurrence


def plan_occurrences(
    start: date,
    frequency: Frequency,
    until: Optional[date] = None,
    limit: int = MAX_OCCURRENCES,
) -> RecurrencePlan:
    """Materialise :func:`expand` and note whether the cap cut the series short."""
    dates = tuple(expand(start, frequency, until, limit))
    truncated = False
    if dates and Frequency(frequency) != Frequency.NONE:
        following = _nth_occurrence(start, Frequency(frequency), len(dates))
        truncated = following <= until
    return RecurrencePlan(dates=dates, truncated=truncated)
