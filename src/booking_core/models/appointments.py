"""Pydantic models for appointment booking endpoints."""

from __future__ import annotations

import datetime as dt
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from booking_core.database.models import Appointment, AppointmentReservation, AppointmentStatus
from booking_core.scheduling.recurrence import Frequency
from booking_core.scheduling.timezones import to_local


class RecurrenceSpec(BaseModel):
    """How often a booking repeats and until when."""

    frequency: Frequency = Field(Frequency.NONE, description="none, daily, weekly or monthly")
    until: Optional[date] = Field(None, description="Last date (inclusive) an occurrence may fall on")


class AppointmentCreateRequest(BaseModel):
    """Request model for booking one appointment or a recurring series."""

    staff_id: str = Field(..., description="Staff ID")
    service_id: str = Field(..., description="Service ID")
    customer_id: str = Field(..., description="Customer ID")
    date: dt.date = Field(..., description="Local date of the (first) appointment")
    time: str = Field(..., description="Local start time (HH:MM or h:MM am/pm)")
    timezone: Optional[str] = Field(
        None, description="IANA timezone of date/time; defaults to the business timezone"
    )
    recurrence: Optional[RecurrenceSpec] = Field(None, description="Optional recurrence")
    reservation_id: Optional[str] = Field(None, description="Checkout hold to convert")
    session_id: Optional[str] = Field(
        None, description="Checkout session that placed the hold; required with reservation_id"
    )
    notes: Optional[str] = Field(None, max_length=2000, description="Optional notes")


class AppointmentRescheduleRequest(BaseModel):
    date: dt.date = Field(..., description="New local date")
    time: str = Field(..., description="New local start time")
    timezone: Optional[str] = Field(None, description="IANA timezone; defaults to the booked one")


class AppointmentStatusUpdateRequest(BaseModel):
    status: AppointmentStatus = Field(..., description="Target status")


class AppointmentResponse(BaseModel):
    """Response model for a stored appointment."""

    id: str = Field(..., description="Appointment ID")
    staff_id: str
    service_id: str
    customer_id: str
    start_at: datetime = Field(..., description="Start (UTC)")
    end_at: datetime = Field(..., description="End (UTC)")
    timezone: str = Field(..., description="Timezone the appointment was booked in")
    local_date: date = Field(..., description="Start date in the booked timezone")
    local_time: str = Field(..., description="Start time (HH:MM) in the booked timezone")
    status: str = Field(..., description="pending, confirmed, cancelled or completed")
    series_id: Optional[str] = Field(None, description="Shared by occurrences of a recurring booking")
    notes: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_model(cls, appointment: Appointment) -> "AppointmentResponse":
        local = to_local(appointment.start_at, appointment.timezone)
        return cls(
            id=appointment.id,
            staff_id=appointment.staff_id,
            service_id=appointment.service_id,
            customer_id=appointment.customer_id,
            start_at=appointment.start_at,
            end_at=appointment.end_at,
            timezone=appointment.timezone,
            local_date=local.date,
            local_time=local.time.strftime("%H:%M"),
            status=appointment.status,
            series_id=appointment.series_id,
            notes=appointment.notes,
            created_at=appointment.created_at,
        )


class OccurrenceFailureResponse(BaseModel):
    date: dt.date
    reason: str
    code: str


class BookingResponse(BaseModel):
    """Outcome of a booking request, one entry per occurrence."""

    created: List[AppointmentResponse] = Field(default_factory=list)
    failed: List[OccurrenceFailureResponse] = Field(default_factory=list)
    requested: int = Field(..., description="Occurrences attempted")
    truncated: bool = Field(False, description="True when the occurrence cap cut the series short")
    series_id: Optional[str] = None


class ReservationCreateRequest(BaseModel):
    """Request model for holding a slot during checkout."""

    staff_id: str
    service_id: str
    date: dt.date
    time: str
    session_id: str = Field(..., min_length=1, max_length=100, description="Checkout session")
    timezone: Optional[str] = None


class ReservationResponse(BaseModel):
    id: str
    staff_id: str
    service_id: str
    start_at: datetime
    end_at: datetime
    session_id: str
    expires_at: datetime

    @classmethod
    def from_model(cls, hold: AppointmentReservation) -> "ReservationResponse":
        return cls(
            id=hold.id,
            staff_id=hold.staff_id,
            service_id=hold.service_id,
            start_at=hold.start_at,
            end_at=hold.end_at,
            session_id=hold.session_id,
            expires_at=hold.expires_at,
        )
