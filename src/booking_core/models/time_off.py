"""Pydantic models for time-off endpoints."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from booking_core.database.models import TimeOff, TimeOffStatus
from booking_core.scheduling.conflicts import Conflict, ConflictReport


class TimeOffCreateRequest(BaseModel):
    """Partial-day blocks use start_at/end_at; full-day blocks use start_date/end_date."""

    staff_id: str
    start_at: Optional[datetime] = Field(None, description="Start instant (naive values are UTC)")
    end_at: Optional[datetime] = Field(None, description="End instant (naive values are UTC)")
    start_date: Optional[date] = Field(None, description="First day off (full-day blocks)")
    end_date: Optional[date] = Field(None, description="Last day off, inclusive (full-day blocks)")
    is_full_day: bool = False
    reason: Optional[str] = Field(None, max_length=500)
    status: TimeOffStatus = TimeOffStatus.PENDING


class TimeOffConflictCheckRequest(BaseModel):
    staff_id: str
    start_at: datetime
    end_at: datetime
    exclude_time_off_id: Optional[str] = Field(None, description="Block being moved, if any")


class TimeOffStatusUpdateRequest(BaseModel):
    status: TimeOffStatus


class ConflictResponse(BaseModel):
    id: str
    kind: str = Field(..., description="appointment, time_off or reservation")
    summary: str
    start_at: datetime
    end_at: datetime
    blocking: bool

    @classmethod
    def from_conflict(cls, conflict: Conflict) -> "ConflictResponse":
        return cls(
            id=conflict.id,
            kind=conflict.kind.value,
            summary=conflict.summary,
            start_at=conflict.interval.start,
            end_at=conflict.interval.end,
            blocking=conflict.blocking,
        )


class ConflictReportResponse(BaseModel):
    has_conflicts: bool
    has_blocking_conflicts: bool
    conflicts: List[ConflictResponse] = Field(default_factory=list)

    @classmethod
    def from_report(cls, report: ConflictReport) -> "ConflictReportResponse":
        return cls(
            has_conflicts=report.has_conflicts,
            has_blocking_conflicts=report.has_blocking_conflicts,
            conflicts=[ConflictResponse.from_conflict(c) for c in report.conflicts],
        )


class TimeOffResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    staff_id: str
    start_at: datetime
    end_at: datetime
    is_full_day: bool
    reason: Optional[str] = None
    status: str
    created_at: datetime


class TimeOffCreateResponse(BaseModel):
    time_off: TimeOffResponse
    affected_appointments: List[ConflictResponse] = Field(
        default_factory=list, description="Appointments already booked inside the block"
    )
