"""Staff time-off management."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.config import Settings, get_settings
from booking_core.database.models import TimeOff, TimeOffStatus
from booking_core.exceptions import ConflictError, NotFoundError, ValidationError
from booking_core.repositories.directory_repository import DirectoryRepository
from booking_core.repositories.time_off_repository import TimeOffRepository
from booking_core.scheduling.conflicts import ConflictKind, ConflictReport
from booking_core.scheduling.intervals import TimeInterval
from booking_core.scheduling.timezones import DateLike, ensure_utc, local_range_bounds
from booking_core.services.conflict_service import ConflictService
from booking_core.utils.logging import log_fields

logger = logging.getLogger(__name__)


@dataclass
class TimeOffResult:
    time_off: TimeOff
    # Appointments already booked inside the block; the admin decides what to do with them
    affected: ConflictReport


class TimeOffService:
    """Create, list, approve and remove time-off blocks."""

    def __init__(self, session: AsyncSession, settings: Optional[Settings] = None):
        self._session = session
        self._settings = settings or get_settings()
        self._directory = DirectoryRepository(session)
        self._time_off = TimeOffRepository(session)
        self._conflicts = ConflictService(session, self._settings)

    async def resolve_interval(
        self,
        staff_id: str,
        start_at: Optional[datetime] = None,
        end_at: Optional[datetime] = None,
        start_date: Optional[DateLike] = None,
        end_date: Optional[DateLike] = None,
        is_full_day: bool = False,
    ) -> TimeInterval:
        """UTC span of a time-off request.

        Full-day blocks run from local midnight of ``start_date`` to the
        midnight after ``end_date`` in the staff member's zone.
        """
        if is_full_day:
            if start_date is None:
                raise ValidationError(
                    "Full-day time off needs a start date", errors={"start_date": "required"}
                )
            zone = await self._directory.resolve_timezone(staff_id)
            return local_range_bounds(start_date, end_date or start_date, zone)

        if start_at is None or end_at is None:
            raise ValidationError(
                "Time off needs a start and an end",
                errors={"start_at": "required", "end_at": "required"},
            )
        return TimeInterval(ensure_utc(start_at), ensure_utc(end_at))

    async def create_time_off(
        self,
        staff_id: str,
        start_at: Optional[datetime] = None,
        end_at: Optional[datetime] = None,
        start_date: Optional[DateLike] = None,
        end_date: Optional[DateLike] = None,
        is_full_day: bool = False,
        reason: Optional[str] = None,
        status: TimeOffStatus = TimeOffStatus.PENDING,
    ) -> TimeOffResult:
        await self._directory.get_staff(staff_id, active_only=False)
        interval = await self.resolve_interval(
            staff_id, start_at, end_at, start_date, end_date, is_full_day
        )

        overlapping = await self._time_off.get_time_off(
            staff_id, interval, statuses=(TimeOffStatus.PENDING, TimeOffStatus.APPROVED)
        )
        if overlapping:
            raise ConflictError(
                "Time off overlaps an existing time-off period",
                details={"time_off_ids": [t.id for t in overlapping]},
                code="TIME_OFF_OVERLAP",
            )

        affected = await self._conflicts.check_time_off(staff_id, interval.start, interval.end)
        time_off = await self._time_off.create(
            staff_id=staff_id,
            start_at=interval.start,
            end_at=interval.end,
            is_full_day=is_full_day,
            reason=reason,
            status=TimeOffStatus(status).value,
        )
        logger.info(
            f"Created time off {time_off.id} for staff {staff_id} "
            f"({interval.start.isoformat()} - {interval.end.isoformat()})",
            extra=log_fields(
                staff_id=staff_id,
                time_off_id=time_off.id,
                affected_appointments=len(affected.of_kind(ConflictKind.APPOINTMENT)),
            ),
        )
        return TimeOffResult(
            time_off=time_off,
            affected=ConflictReport(conflicts=affected.of_kind(ConflictKind.APPOINTMENT)),
        )

    async def list_time_off(self, staff_id: str) -> List[TimeOff]:
        await self._directory.get_staff(staff_id, active_only=False)
        return await self._time_off.list_for_staff(staff_id)

    async def update_status(self, time_off_id: str, status: TimeOffStatus) -> TimeOff:
        time_off = await self._time_off.get_or_raise(time_off_id)
        time_off = await self._time_off.update(time_off.id, status=TimeOffStatus(status).value)
        logger.info(
            f"Time off {time_off_id} is now {time_off.status}",
            extra=log_fields(staff_id=time_off.staff_id, time_off_id=time_off_id),
        )
        return time_off

    async def delete_time_off(self, time_off_id: str) -> None:
        if not await self._time_off.delete(time_off_id):
            raise NotFoundError(resource="TimeOff", resource_id=time_off_id)
        logger.info(f"Deleted time off {time_off_id}")


def get_time_off_service(session: AsyncSession) -> TimeOffService:
    """Create a TimeOffService bound to a DB session."""
    return TimeOffService(session)
