"""Overlap detection between a proposed interval and a staff member's schedule."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List

from booking_core.scheduling.intervals import TimeInterval


class ConflictKind(str, Enum):
    APPOINTMENT = "appointment"
    TIME_OFF = "time_off"
    RESERVATION = "reservation"


@dataclass(frozen=True)
class ScheduleEntry:
    """Something occupying a staff calendar, as seen by the detector."""

    id: str
    kind: ConflictKind
    interval: TimeInterval
    summary: str = ""
    blocking: bool = True


@dataclass(frozen=True)
class Conflict:
    id: str
    kind: ConflictKind
    summary: str
    interval: TimeInterval
    blocking: bool


@dataclass(frozen=True)
class ConflictReport:
    conflicts: List[Conflict] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    @property
    def has_blocking_conflicts(self) -> bool:
        return any(conflict.blocking for conflict in self.conflicts)

    def of_kind(self, kind: ConflictKind) -> List[Conflict]:
        return [conflict for conflict in self.conflicts if conflict.kind == kind]


def find_conflicts(target: TimeInterval, entries: Iterable[ScheduleEntry]) -> ConflictReport:
    """Report every entry whose interval overlaps ``target``, ordered by start."""
    hits = [
        Conflict(
            id=entry.id,
            kind=entry.kind,
            summary=entry.summary,
            interval=entry.interval,
            blocking=entry.blocking,
        )
        for entry in entries
        if entry.interval.overlaps(target)
    ]
    hits.sort(key=lambda conflict: (conflict.interval.start, conflict.kind.value, conflict.id))
    return ConflictReport(conflicts=hits)
