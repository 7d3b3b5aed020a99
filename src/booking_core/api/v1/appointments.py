"""Appointment booking endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from booking_core.dependencies import get_session_factory
from booking_core.models.appointments import (
    AppointmentCreateRequest,
    AppointmentRescheduleRequest,
    AppointmentResponse,
    AppointmentStatusUpdateRequest,
    BookingResponse,
    OccurrenceFailureResponse,
    ReservationCreateRequest,
    ReservationResponse,
)
from booking_core.services.booking_service import RecurrenceRequest, get_booking_service

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book an appointment",
    description=(
        "Book a single appointment or a recurring series. A single booking that cannot be "
        "placed fails with 409/422. A recurring booking reports each failed occurrence in "
        "`failed` and books the rest."
    ),
)
async def create_appointment(
    request: AppointmentCreateRequest,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> BookingResponse:
    recurrence = None
    if request.recurrence is not None:
        recurrence = RecurrenceRequest(
            frequency=request.recurrence.frequency, until=request.recurrence.until
        )

    result = await get_booking_service(session_factory).create_appointment(
        staff_id=request.staff_id,
        service_id=request.service_id,
        customer_id=request.customer_id,
        local_date=request.date,
        local_time=request.time,
        tz=request.timezone,
        recurrence=recurrence,
        reservation_id=request.reservation_id,
        session_id=request.session_id,
        notes=request.notes,
    )
    return BookingResponse(
        created=[AppointmentResponse.from_model(a) for a in result.created],
        failed=[OccurrenceFailureResponse(**f.to_dict()) for f in result.failed],
        requested=result.requested,
        truncated=result.truncated,
        series_id=result.series_id,
    )


@router.put(
    "/{appointment_id}/schedule",
    response_model=AppointmentResponse,
    summary="Reschedule an appointment",
)
async def reschedule_appointment(
    appointment_id: str,
    request: AppointmentRescheduleRequest,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> AppointmentResponse:
    appointment = await get_booking_service(session_factory).reschedule_appointment(
        appointment_id, request.date, request.time, tz=request.timezone
    )
    return AppointmentResponse.from_model(appointment)


@router.patch(
    "/{appointment_id}/status",
    response_model=AppointmentResponse,
    summary="Change appointment status",
    description="pending -> confirmed|cancelled|completed, confirmed -> cancelled|completed.",
)
async def update_appointment_status(
    appointment_id: str,
    request: AppointmentStatusUpdateRequest,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> AppointmentResponse:
    appointment = await get_booking_service(session_factory).update_appointment_status(
        appointment_id, request.status
    )
    return AppointmentResponse.from_model(appointment)


@router.post(
    "/reservations",
    response_model=ReservationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Hold a slot during checkout",
)
async def create_reservation(
    request: ReservationCreateRequest,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> ReservationResponse:
    hold = await get_booking_service(session_factory).create_reservation(
        request.staff_id,
        request.service_id,
        request.date,
        request.time,
        session_id=request.session_id,
        tz=request.timezone,
    )
    return ReservationResponse.from_model(hold)
