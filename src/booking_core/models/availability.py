"""Pydantic models for availability endpoints."""

from __future__ import annotations

import datetime as dt
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from booking_core.database.models import AvailabilityRule
from booking_core.scheduling.intervals import TimeInterval
from booking_core.scheduling.timezones import to_local


class SlotResponse(BaseModel):
    """A single bookable slot."""

    start: datetime = Field(..., description="Slot start (UTC, ISO8601)")
    end: datetime = Field(..., description="Slot end (UTC, ISO8601)")
    local_date: date = Field(..., description="Slot start date in the requested timezone")
    local_time: str = Field(..., description="Slot start time (HH:MM) in the requested timezone")

    @classmethod
    def from_interval(cls, interval: TimeInterval, tz: str) -> "SlotResponse":
        local = to_local(interval.start, tz)
        return cls(
            start=interval.start,
            end=interval.end,
            local_date=local.date,
            local_time=local.time.strftime("%H:%M"),
        )


class AvailabilityResponse(BaseModel):
    """Response model for a slot query."""

    staff_id: str = Field(..., description="Staff ID")
    service_id: str = Field(..., description="Service ID")
    date: dt.date = Field(..., description="Business-local date the slots fall on")
    timezone: str = Field(..., description="Timezone local times are rendered in (IANA)")
    business_timezone: str = Field(..., description="Timezone the opening hours are defined in")
    duration_minutes: int = Field(..., description="Service duration used for slots")
    buffer_minutes: int = Field(..., description="Buffer applied around busy intervals")
    slots: List[SlotResponse] = Field(default_factory=list, description="Bookable slots, ascending")


class AvailabilityRuleCreateRequest(BaseModel):
    """Request model for adding weekly open hours."""

    staff_id: str = Field(..., description="Staff ID")
    day_of_week: int = Field(..., ge=0, le=6, description="Weekday, Monday=0 .. Sunday=6")
    local_start: str = Field(..., description="Opening time (HH:MM or h:MM am/pm)")
    local_end: str = Field(..., description="Closing time (HH:MM or h:MM am/pm)")
    is_available: bool = Field(True, description="Whether the window is bookable")


class AvailabilityRuleUpdateRequest(BaseModel):
    """Request model for changing weekly open hours."""

    day_of_week: Optional[int] = Field(None, ge=0, le=6, description="Weekday, Monday=0")
    local_start: Optional[str] = Field(None, description="Opening time")
    local_end: Optional[str] = Field(None, description="Closing time")
    is_available: Optional[bool] = Field(None, description="Whether the window is bookable")


class AvailabilityRuleResponse(BaseModel):
    id: str
    staff_id: str
    day_of_week: int
    local_start: str
    local_end: str
    is_available: bool

    @classmethod
    def from_model(cls, rule: AvailabilityRule) -> "AvailabilityRuleResponse":
        return cls(
            id=rule.id,
            staff_id=rule.staff_id,
            day_of_week=rule.day_of_week,
            local_start=rule.local_start.strftime("%H:%M"),
            local_end=rule.local_end.strftime("%H:%M"),
            is_available=rule.is_available,
        )
