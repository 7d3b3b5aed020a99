"""Schedule lookups shared by slot queries, bookings and the time-off dialog."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.config import Settings, get_settings
from booking_core.database.models import TimeOffStatus
from booking_core.repositories.appointments_repository import AppointmentsRepository
from booking_core.repositories.reservations_repository import ReservationsRepository
from booking_core.repositories.time_off_repository import TimeOffRepository
from booking_core.scheduling.conflicts import (
    ConflictKind,
    ConflictReport,
    ScheduleEntry,
    find_conflicts,
)
from booking_core.scheduling.intervals import TimeInterval
from booking_core.scheduling.timezones import ensure_utc, utc_now
from booking_core.utils.logging import log_fields

logger = logging.getLogger(__name__)


class ConflictService:
    """Turns stored appointments, time-off and holds into schedule entries."""

    def __init__(self, session: AsyncSession, settings: Optional[Settings] = None):
        self._session = session
        self._settings = settings or get_settings()
        self._appointments = AppointmentsRepository(session)
        self._time_off = TimeOffRepository(session)
        self._reservations = ReservationsRepository(session)

    async def schedule_entries(
        self,
        staff_id: str,
        window: TimeInterval,
        now: Optional[datetime] = None,
        include_reservations: bool = True,
        exclude_appointment_id: Optional[str] = None,
        exclude_reservation_id: Optional[str] = None,
        exclude_time_off_id: Optional[str] = None,
    ) -> List[ScheduleEntry]:
        """Everything occupying the staff calendar inside ``window``.

        Cancelled appointments, rejected time-off and expired holds are left
        out. Pending time-off is included but only blocks when the
        ``pending_time_off_blocks`` policy is on.
        """
        entries: List[ScheduleEntry] = []

        for appointment in await self._appointments.get_appointments(
            staff_id, window, exclude_id=exclude_appointment_id
        ):
            entries.append(
                ScheduleEntry(
                    id=appointment.id,
                    kind=ConflictKind.APPOINTMENT,
                    interval=TimeInterval(appointment.start_at, appointment.end_at),
                    summary=f"Appointment ({appointment.status})",
                )
            )

        pending_blocks = self._settings.scheduling.pending_time_off_blocks
        for time_off in await self._time_off.get_time_off(
            staff_id,
            window,
            statuses=(TimeOffStatus.APPROVED, TimeOffStatus.PENDING),
            exclude_id=exclude_time_off_id,
        ):
            approved = time_off.status == TimeOffStatus.APPROVED.value
            entries.append(
                ScheduleEntry(
                    id=time_off.id,
                    kind=ConflictKind.TIME_OFF,
                    interval=TimeInterval(time_off.start_at, time_off.end_at),
                    summary=time_off.reason or f"Time off ({time_off.status})",
                    blocking=approved or pending_blocks,
                )
            )

        if include_reservations:
            moment = ensure_utc(now) if now else utc_now()
            for hold in await self._reservations.get_active(
                staff_id, window, moment, exclude_id=exclude_reservation_id
            ):
                entries.append(
                    ScheduleEntry(
                        id=hold.id,
                        kind=ConflictKind.RESERVATION,
                        interval=TimeInterval(hold.start_at, hold.end_at),
                        summary="Held during checkout",
                    )
                )

        return entries

    async def find_conflicts(
        self,
        staff_id: str,
        interval: TimeInterval,
        now: Optional[datetime] = None,
        include_reservations: bool = True,
        exclude_appointment_id: Optional[str] = None,
        exclude_reservation_id: Optional[str] = None,
    ) -> ConflictReport:
        """Read-only overlap report for a proposed interval."""
        entries = await self.schedule_entries(
            staff_id,
            interval,
            now=now,
            include_reservations=include_reservations,
            exclude_appointment_id=exclude_appointment_id,
            exclude_reservation_id=exclude_reservation_id,
        )
        return find_conflicts(interval, entries)

    async def check_time_off(
        self,
        staff_id: str,
        start: datetime,
        end: datetime,
        exclude_time_off_id: Optional[str] = None,
    ) -> ConflictReport:
        """What a proposed time-off block would collide with.

        Used by the admin dialog before a block is created or moved. Checkout
        holds are ignored since they expire on their own.
        """
        interval = TimeInterval(ensure_utc(start), ensure_utc(end))
        entries = await self.schedule_entries(
            staff_id,
            interval,
            include_reservations=False,
            exclude_time_off_id=exclude_time_off_id,
        )
        report = find_conflicts(interval, entries)
        if report.has_conflicts:
            logger.info(
                f"Time off for staff {staff_id} overlaps {len(report.conflicts)} existing entries",
                extra=log_fields(staff_id=staff_id, conflict_ids=[c.id for c in report.conflicts]),
            )
        return report


def get_conflict_service(session: AsyncSession) -> ConflictService:
    """Create a ConflictService bound to a DB session."""
    return ConflictService(session)
