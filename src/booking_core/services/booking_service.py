"""Booking orchestration: single and recurring appointments, reschedules, holds.

Availability shown to customers is advisory. The write path is the authority:
for every occurrence it takes the per-staff lock, opens its own transaction,
locks the staff row, re-reads the schedule and only then inserts. On
PostgreSQL an exclusion constraint backs this up and an ``IntegrityError``
from it is reported as ``SlotUnavailableError``.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
import weakref
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from booking_core.config import Settings, get_settings
from booking_core.database.models import (
    Appointment,
    AppointmentReservation,
    AppointmentStatus,
    Company,
    Service,
)
from booking_core.exceptions import APIException, DatabaseError, SlotUnavailableError, ValidationError
from booking_core.repositories.appointments_repository import AppointmentsRepository
from booking_core.repositories.directory_repository import DirectoryRepository
from booking_core.repositories.reservations_repository import ReservationsRepository
from booking_core.scheduling.conflicts import ConflictReport
from booking_core.scheduling.intervals import TimeInterval
from booking_core.scheduling.recurrence import Frequency, plan_occurrences
from booking_core.scheduling.timezones import (
    DateLike,
    TimeLike,
    ensure_utc,
    parse_local_date,
    parse_local_time,
    resolve_zone,
    to_utc,
    utc_now,
)
from booking_core.services.availability_service import resolve_buffer_minutes
from booking_core.services.conflict_service import ConflictService
from booking_core.utils.logging import bind_log_context, log_fields

logger = logging.getLogger(__name__)

PAST_DATE_BOOKING = "PAST_DATE_BOOKING"
INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
INVALID_RESERVATION = "INVALID_RESERVATION"

ALLOWED_TRANSITIONS = {
    AppointmentStatus.PENDING: {
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.COMPLETED,
    },
    AppointmentStatus.CONFIRMED: {AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED},
    AppointmentStatus.CANCELLED: set(),
    AppointmentStatus.COMPLETED: set(),
}


class StaffLocks:
    """Process-local ``asyncio.Lock`` per staff member.

    Locks are held weakly and disappear once no coroutine is using them.
    """

    def __init__(self) -> None:
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def get(self, staff_id: str) -> asyncio.Lock:
        lock = self._locks.get(staff_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[staff_id] = lock
        return lock


_staff_locks = StaffLocks()


@dataclass(frozen=True)
class RecurrenceRequest:
    frequency: Frequency = Frequency.NONE
    until: Optional[date] = None


@dataclass(frozen=True)
class OccurrenceFailure:
    date: date
    reason: str
    code: str

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date.isoformat(), "reason": self.reason, "code": self.code}


@dataclass
class BookingResult:
    created: List[Appointment] = field(default_factory=list)
    failed: List[OccurrenceFailure] = field(default_factory=list)
    requested: int = 0
    truncated: bool = False
    series_id: Optional[str] = None


@dataclass(frozen=True)
class _BookingContext:
    """Everything resolved once per request and reused for each occurrence."""

    staff_id: str
    company: Company
    service: Service
    timezone: str
    duration: timedelta
    buffer: timedelta


class BookingService:
    """Creates and moves appointments without ever double-booking a staff member.

    Takes a session factory rather than a session: each occurrence commits or
    rolls back on its own.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Optional[Settings] = None,
        locks: Optional[StaffLocks] = None,
    ):
        self._session_factory = session_factory
        self._settings = settings or get_settings()
        self._locks = locks or _staff_locks

    async def create_appointment(
        self,
        staff_id: str,
        service_id: str,
        customer_id: str,
        local_date: DateLike,
        local_time: TimeLike,
        tz: Optional[str] = None,
        recurrence: Optional[RecurrenceRequest] = None,
        reservation_id: Optional[str] = None,
        session_id: Optional[str] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> BookingResult:
        """Book one appointment or a recurring series.

        A single booking raises on failure. A recurring booking records each
        failed occurrence as ``{date, reason, code}`` and keeps going.

        ``reservation_id`` converts the caller's own hold: it must belong to
        ``session_id``, be unexpired, and cover exactly the requested first
        slot. Only the occurrence it covers is excused from the hold and
        releases it.
        """
        recurrence = recurrence or RecurrenceRequest()
        first_day = parse_local_date(local_date)
        start_time = parse_local_time(local_time)
        context = await self._load_context(staff_id, service_id, tz)

        held: Optional[TimeInterval] = None
        if reservation_id:
            held = await self._check_hold(
                reservation_id,
                session_id,
                context,
                to_utc(first_day, start_time, context.timezone),
                ensure_utc(now) if now else utc_now(),
            )

        plan = plan_occurrences(
            first_day,
            recurrence.frequency,
            recurrence.until,
            limit=self._settings.scheduling.max_occurrences,
        )
        is_series = Frequency(recurrence.frequency) != Frequency.NONE
        result = BookingResult(
            requested=len(plan),
            truncated=plan.truncated,
            series_id=str(uuid.uuid4()) if is_series else None,
        )
        with bind_log_context(staff_id=staff_id, service_id=service_id, series_id=result.series_id):
            if plan.truncated:
                logger.warning(
                    f"Recurring booking for staff {staff_id} capped at {len(plan)} occurrences",
                    extra=log_fields(requested=len(plan)),
                )

            for day in plan.dates:
                moment = ensure_utc(now) if now else utc_now()
                try:
                    appointment = await self._book_occurrence(
                        context,
                        day,
                        start_time,
                        customer_id=customer_id,
                        series_id=result.series_id,
                        reservation_id=reservation_id,
                        held=held,
                        notes=notes,
                        now=moment,
                    )
                except APIException as e:
                    if not is_series:
                        raise
                    logger.info(
                        f"Occurrence on {day.isoformat()} not booked: {e.message}",
                        extra=log_fields(date=day.isoformat(), code=e.code),
                    )
                    result.failed.append(OccurrenceFailure(date=day, reason=e.message, code=e.code))
                    continue
                result.created.append(appointment)

            logger.info(
                f"Booked {len(result.created)}/{result.requested} appointment(s) for staff {staff_id}"
                + (f", {len(result.failed)} failed" if result.failed else ""),
                extra=log_fields(
                    appointment_ids=[a.id for a in result.created] or None,
                    failed=len(result.failed) or None,
                ),
            )
        return result

    async def reschedule_appointment(
        self,
        appointment_id: str,
        local_date: DateLike,
        local_time: TimeLike,
        tz: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Appointment:
        """Move an appointment, checking the new time the same way a booking does."""
        async with self._session_factory() as session:
            appointment = await AppointmentsRepository(session).get_or_raise(appointment_id)
        self._ensure_movable(appointment)

        context = await self._load_context(
            appointment.staff_id, appointment.service_id, tz or appointment.timezone, active_only=False
        )
        moment = ensure_utc(now) if now else utc_now()
        interval = self._occurrence_interval(
            context, parse_local_date(local_date), parse_local_time(local_time), moment
        )

        with bind_log_context(staff_id=context.staff_id, appointment_id=appointment_id):
            async with self._locks.get(context.staff_id):
                async with self._session_factory() as session:
                    try:
                        async with session.begin():
                            await self._ensure_free(
                                session,
                                context,
                                interval,
                                moment,
                                exclude_appointment_id=appointment_id,
                            )
                            repo = AppointmentsRepository(session)
                            # Status may have changed since the first read
                            self._ensure_movable(await repo.get_or_raise(appointment_id))
                            updated = await repo.update(
                                appointment_id,
                                start_at=interval.start,
                                end_at=interval.end,
                                timezone=context.timezone,
                            )
                    except IntegrityError as e:
                        logger.warning(f"Lost race rescheduling appointment {appointment_id}")
                        raise SlotUnavailableError() from e

            logger.info(
                f"Rescheduled appointment {appointment_id} to {interval.start.isoformat()}",
                extra=log_fields(start_at=interval.start.isoformat()),
            )
        return updated

    async def update_appointment_status(
        self, appointment_id: str, status: AppointmentStatus
    ) -> Appointment:
        target = AppointmentStatus(status)
        async with self._session_factory() as session:
            async with session.begin():
                repo = AppointmentsRepository(session)
                appointment = await repo.get_or_raise(appointment_id)
                current = AppointmentStatus(appointment.status)
                if current == target:
                    return appointment
                if target not in ALLOWED_TRANSITIONS[current]:
                    raise ValidationError(
                        f"Cannot change appointment status from {current.value} to {target.value}",
                        code=INVALID_STATUS_TRANSITION,
                        details={"from": current.value, "to": target.value},
                    )
                appointment = await repo.update_status(appointment_id, target)

        logger.info(
            f"Appointment {appointment_id} status {current.value} -> {target.value}",
            extra=log_fields(appointment_id=appointment_id, staff_id=appointment.staff_id),
        )
        return appointment

    async def create_reservation(
        self,
        staff_id: str,
        service_id: str,
        local_date: DateLike,
        local_time: TimeLike,
        session_id: str,
        tz: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AppointmentReservation:
        """Hold a slot for the checkout TTL so no one else can take it."""
        context = await self._load_context(staff_id, service_id, tz)
        moment = ensure_utc(now) if now else utc_now()
        interval = self._occurrence_interval(
            context, parse_local_date(local_date), parse_local_time(local_time), moment
        )
        ttl = timedelta(minutes=self._settings.scheduling.reservation_ttl_minutes)

        async with self._locks.get(staff_id):
            async with self._session_factory() as session:
                async with session.begin():
                    reservations = ReservationsRepository(session)
                    await reservations.delete_expired(moment)
                    await self._ensure_free(session, context, interval, moment)
                    hold = await reservations.create(
                        staff_id=staff_id,
                        service_id=service_id,
                        start_at=interval.start,
                        end_at=interval.end,
                        session_id=session_id,
                        expires_at=moment + ttl,
                    )

        logger.info(
            f"Reserved {interval.start.isoformat()} for staff {staff_id} "
            f"until {hold.expires_at.isoformat()}",
            extra=log_fields(staff_id=staff_id, reservation_id=hold.id),
        )
        return hold

    async def _load_context(
        self, staff_id: str, service_id: str, tz: Optional[str], active_only: bool = True
    ) -> _BookingContext:
        async with self._session_factory() as session:
            directory = DirectoryRepository(session)
            staff = await directory.get_staff(staff_id, active_only=active_only)
            service = await directory.get_service(service_id, active_only=active_only)
            if not await directory.is_staff_eligible(staff_id, service_id):
                raise ValidationError(
                    "Staff member does not offer this service",
                    details={"staff_id": staff_id, "service_id": service_id},
                )
            company = await directory.get_company(staff.company_id)
            zone = tz or await directory.resolve_timezone(staff_id)
        resolve_zone(zone)

        return _BookingContext(
            staff_id=staff_id,
            company=company,
            service=service,
            timezone=zone,
            duration=timedelta(minutes=service.duration_minutes),
            buffer=timedelta(minutes=resolve_buffer_minutes(service, company, self._settings)),
        )

    @staticmethod
    def _ensure_movable(appointment: Appointment) -> None:
        current = AppointmentStatus(appointment.status)
        if not ALLOWED_TRANSITIONS[current]:
            raise ValidationError(
                f"A {current.value} appointment cannot be rescheduled",
                code=INVALID_STATUS_TRANSITION,
                details={"status": current.value},
            )

    async def _check_hold(
        self,
        reservation_id: str,
        session_id: Optional[str],
        context: _BookingContext,
        start: datetime,
        now: datetime,
    ) -> TimeInterval:
        """Return the held interval if the hold is the caller's and fits this booking."""
        async with self._session_factory() as session:
            hold = await ReservationsRepository(session).get_by_id(reservation_id)

        requested = TimeInterval(start, start + context.duration)
        if hold is None or hold.expires_at <= now:
            problem = "has expired or was already used"
        elif session_id is None or hold.session_id != session_id:
            problem = "belongs to another checkout session"
        elif hold.staff_id != context.staff_id or hold.service_id != context.service.id:
            problem = "is for a different staff member or service"
        elif TimeInterval(hold.start_at, hold.end_at) != requested:
            problem = "is for a different time"
        else:
            return requested

        logger.warning(
            f"Rejected reservation {reservation_id}: {problem}",
            extra=log_fields(reservation_id=reservation_id, staff_id=context.staff_id),
        )
        raise ValidationError(
            f"Reservation {problem}",
            code=INVALID_RESERVATION,
            details={"reservation_id": reservation_id},
        )

    @staticmethod
    def _occurrence_interval(
        context: _BookingContext, day: date, start_time: time, now: datetime
    ) -> TimeInterval:
        # Resolved per occurrence so each date gets its own UTC offset
        start = to_utc(day, start_time, context.timezone)
        if start <= now:
            raise ValidationError(
                "Cannot book an appointment in the past",
                code=PAST_DATE_BOOKING,
                details={"date": day.isoformat(), "start_at": start.isoformat()},
            )
        return TimeInterval(start, start + context.duration)

    async def _ensure_free(
        self,
        session: AsyncSession,
        context: _BookingContext,
        interval: TimeInterval,
        now: datetime,
        exclude_appointment_id: Optional[str] = None,
        exclude_reservation_id: Optional[str] = None,
    ) -> None:
        """Lock the staff row and re-read the schedule inside the current transaction."""
        await DirectoryRepository(session).lock_staff(context.staff_id)
        report: ConflictReport = await ConflictService(session, self._settings).find_conflicts(
            context.staff_id,
            interval.padded(context.buffer),
            now=now,
            exclude_appointment_id=exclude_appointment_id,
            exclude_reservation_id=exclude_reservation_id,
        )
        if report.has_blocking_conflicts:
            blocking = [c for c in report.conflicts if c.blocking]
            raise SlotUnavailableError(
                details={
                    "start_at": interval.start.isoformat(),
                    "conflicts": [
                        {"id": c.id, "kind": c.kind.value, **c.interval.as_dict()} for c in blocking
                    ],
                }
            )

    async def _book_occurrence(
        self,
        context: _BookingContext,
        day: date,
        start_time: time,
        customer_id: str,
        series_id: Optional[str],
        reservation_id: Optional[str],
        held: Optional[TimeInterval],
        notes: Optional[str],
        now: datetime,
    ) -> Appointment:
        interval = self._occurrence_interval(context, day, start_time, now)
        # The hold only excuses the occurrence it was placed for
        claimed = reservation_id if held is not None and held == interval else None

        async with self._locks.get(context.staff_id):
            async with self._session_factory() as session:
                try:
                    async with session.begin():
                        await self._ensure_free(
                            session, context, interval, now, exclude_reservation_id=claimed
                        )
                        appointment = await AppointmentsRepository(session).create(
                            company_id=context.company.id,
                            staff_id=context.staff_id,
                            service_id=context.service.id,
                            customer_id=customer_id,
                            start_at=interval.start,
                            end_at=interval.end,
                            timezone=context.timezone,
                            status=AppointmentStatus.PENDING.value,
                            series_id=series_id,
                            notes=notes,
                        )
                        if claimed:
                            await ReservationsRepository(session).delete(claimed)
                except IntegrityError as e:
                    logger.warning(
                        f"Lost race booking staff {context.staff_id} at {interval.start.isoformat()}"
                    )
                    raise SlotUnavailableError() from e
                except SQLAlchemyError as e:
                    logger.error(f"Error booking staff {context.staff_id} on {day.isoformat()}: {e}")
                    raise DatabaseError("Failed to book appointment") from e

        logger.debug(
            f"Booked appointment {appointment.id}",
            extra=log_fields(appointment_id=appointment.id, start_at=interval.start.isoformat()),
        )
        return appointment


def get_booking_service(session_factory: async_sessionmaker[AsyncSession]) -> BookingService:
    """Create a BookingService that opens its own transactions."""
    return BookingService(session_factory)
