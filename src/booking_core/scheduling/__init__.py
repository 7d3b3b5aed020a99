"""Scheduling engine: time normalization, intervals, slots, conflicts, recurrence."""

from booking_core.scheduling.conflicts import (
    Conflict,
    ConflictKind,
    ConflictReport,
    ScheduleEntry,
    find_conflicts,
)
from booking_core.scheduling.intervals import TimeInterval, merge, subtract
from booking_core.scheduling.recurrence import (
    MAX_OCCURRENCES,
    Frequency,
    RecurrencePlan,
    expand,
    plan_occurrences,
)
from booking_core.scheduling.slots import WeeklyWindow, compute_free_slots, open_windows_for_day
from booking_core.scheduling.timezones import (
    LocalDateTime,
    local_date_of,
    local_day_bounds,
    resolve_zone,
    to_local,
    to_utc,
)

__all__ = [
    "TimeInterval",
    "merge",
    "subtract",
    "LocalDateTime",
    "resolve_zone",
    "to_utc",
    "to_local",
    "local_date_of",
    "local_day_bounds",
    "WeeklyWindow",
    "open_windows_for_day",
    "compute_free_slots",
    "Conflict",
    "ConflictKind",
    "ConflictReport",
    "ScheduleEntry",
    "find_conflicts",
    "Frequency",
    "RecurrencePlan",
    "MAX_OCCURRENCES",
    "expand",
    "plan_occurrences",
]
