"""Availability: bookable slot queries and weekly open-hours rules."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.config import Settings, get_settings
from booking_core.database.models import AvailabilityRule, Company, Service
from booking_core.exceptions import ConflictError, InvalidIntervalError, NotFoundError, ValidationError
from booking_core.repositories.availability_repository import AvailabilityRepository
from booking_core.repositories.directory_repository import DirectoryRepository
from booking_core.scheduling.intervals import TimeInterval
from booking_core.scheduling.slots import WeeklyWindow, compute_free_slots, open_windows_for_day
from booking_core.scheduling.timezones import (
    DateLike,
    TimeLike,
    ensure_utc,
    local_date_of,
    parse_local_date,
    parse_local_time,
    resolve_zone,
    utc_now,
)
from booking_core.services.conflict_service import ConflictService
from booking_core.utils.logging import log_fields

logger = logging.getLogger(__name__)


def resolve_buffer_minutes(service: Service, company: Company, settings: Settings) -> int:
    """Service override first, then the company buffer, then the configured default."""
    if service.buffer_minutes is not None:
        return service.buffer_minutes
    if company.buffer_minutes:
        return company.buffer_minutes
    return settings.scheduling.default_buffer_minutes


@dataclass(frozen=True)
class SlotQueryResult:
    """Slots for one staff member, service and business-local day."""

    staff_id: str
    service_id: str
    date: date
    timezone: str
    business_timezone: str
    duration_minutes: int
    buffer_minutes: int
    slots: Tuple[TimeInterval, ...] = field(default_factory=tuple)


class AvailabilityService:
    """Fetches the schedule from the stores and runs the slot calculator."""

    def __init__(self, session: AsyncSession, settings: Optional[Settings] = None):
        self._session = session
        self._settings = settings or get_settings()
        self._directory = DirectoryRepository(session)
        self._rules = AvailabilityRepository(session)
        self._conflicts = ConflictService(session, self._settings)

    async def compute_free_slots(
        self,
        staff_id: str,
        service_id: str,
        day: DateLike,
        tz: Optional[str] = None,
        now: Optional[datetime] = None,
        reservation_id: Optional[str] = None,
    ) -> SlotQueryResult:
        """Bookable slots for ``day`` (a date in the business zone).

        ``tz`` is the zone the caller wants local times rendered in and
        defaults to the business zone. A hold presented as ``reservation_id``
        does not block its own slot.
        """
        day = parse_local_date(day)
        staff = await self._directory.get_staff(staff_id)
        service = await self._directory.get_service(service_id)
        if not await self._directory.is_staff_eligible(staff_id, service_id):
            raise ValidationError(
                "Staff member does not offer this service",
                details={"staff_id": staff_id, "service_id": service_id},
            )
        company = await self._directory.get_company(staff.company_id)

        business_tz = await self._directory.resolve_timezone(staff_id)
        display_tz = tz or business_tz
        resolve_zone(display_tz)

        buffer_minutes = resolve_buffer_minutes(service, company, self._settings)
        result = SlotQueryResult(
            staff_id=staff_id,
            service_id=service_id,
            date=day,
            timezone=display_tz,
            business_timezone=business_tz,
            duration_minutes=service.duration_minutes,
            buffer_minutes=buffer_minutes,
        )

        now = ensure_utc(now) if now else utc_now()
        if day < local_date_of(now, business_tz):
            return result

        rules = await self._rules.get_rules_for_day(staff_id, day.weekday())
        windows = open_windows_for_day(
            day,
            [WeeklyWindow(r.day_of_week, r.local_start, r.local_end) for r in rules],
            business_tz,
        )
        if not windows:
            return result

        buffer = timedelta(minutes=buffer_minutes)
        span = TimeInterval(windows[0].start - buffer, max(w.end for w in windows) + buffer)
        entries = await self._conflicts.schedule_entries(
            staff_id, span, now=now, exclude_reservation_id=reservation_id
        )
        busy = [entry.interval for entry in entries if entry.blocking]

        interval_minutes = self._settings.scheduling.slot_interval_minutes
        slots = compute_free_slots(
            windows,
            busy,
            duration=timedelta(minutes=service.duration_minutes),
            buffer=buffer,
            step=timedelta(minutes=interval_minutes) if interval_minutes else None,
            starts_after=now,
        )
        logger.debug(
            f"Computed {len(slots)} slots for staff {staff_id} on {day.isoformat()} "
            f"({len(busy)} busy intervals, buffer {buffer_minutes}m)",
            extra=log_fields(
                staff_id=staff_id, service_id=service_id, date=day.isoformat(), slots=len(slots)
            ),
        )
        return SlotQueryResult(
            staff_id=staff_id,
            service_id=service_id,
            date=day,
            timezone=display_tz,
            business_timezone=business_tz,
            duration_minutes=service.duration_minutes,
            buffer_minutes=buffer_minutes,
            slots=slots,
        )


class AvailabilityRulesService:
    """Management of weekly open-hours rules."""

    def __init__(self, session: AsyncSession):
        self._session = session
        self._directory = DirectoryRepository(session)
        self._rules = AvailabilityRepository(session)

    async def list_rules(self, staff_id: str) -> List[AvailabilityRule]:
        await self._directory.get_staff(staff_id, active_only=False)
        return await self._rules.get_weekly_rules(staff_id)

    async def create_rule(
        self,
        staff_id: str,
        day_of_week: int,
        local_start: TimeLike,
        local_end: TimeLike,
        is_available: bool = True,
    ) -> AvailabilityRule:
        await self._directory.get_staff(staff_id, active_only=False)
        start, end = self._validate_hours(day_of_week, local_start, local_end)
        if is_available:
            await self._ensure_no_overlap(staff_id, day_of_week, start, end)

        rule = await self._rules.create(
            staff_id=staff_id,
            day_of_week=day_of_week,
            local_start=start,
            local_end=end,
            is_available=is_available,
        )
        logger.info(
            f"Created availability rule {rule.id} for staff {staff_id}",
            extra=log_fields(staff_id=staff_id, rule_id=rule.id),
        )
        return rule

    async def update_rule(
        self,
        rule_id: str,
        day_of_week: Optional[int] = None,
        local_start: Optional[TimeLike] = None,
        local_end: Optional[TimeLike] = None,
        is_available: Optional[bool] = None,
    ) -> AvailabilityRule:
        rule = await self._rules.get_or_raise(rule_id)
        day = rule.day_of_week if day_of_week is None else day_of_week
        start, end = self._validate_hours(
            day,
            rule.local_start if local_start is None else local_start,
            rule.local_end if local_end is None else local_end,
        )
        available = rule.is_available if is_available is None else is_available
        if available:
            await self._ensure_no_overlap(rule.staff_id, day, start, end, exclude_id=rule.id)

        return await self._rules.update(
            rule_id, day_of_week=day, local_start=start, local_end=end, is_available=available
        )

    async def delete_rule(self, rule_id: str) -> None:
        if not await self._rules.delete(rule_id):
            raise NotFoundError(resource="AvailabilityRule", resource_id=rule_id)
        logger.info(f"Deleted availability rule {rule_id}")

    @staticmethod
    def _validate_hours(day_of_week: int, local_start: TimeLike, local_end: TimeLike) -> Tuple[time, time]:
        if not 0 <= day_of_week <= 6:
            raise ValidationError(
                "day_of_week must be between 0 (Monday) and 6 (Sunday)",
                errors={"day_of_week": "out of range"},
            )
        start = parse_local_time(local_start)
        end = parse_local_time(local_end)
        if end <= start:
            raise InvalidIntervalError(
                "End time must be after start time",
                details={"local_start": start.isoformat(), "local_end": end.isoformat()},
            )
        return start, end

    async def _ensure_no_overlap(
        self,
        staff_id: str,
        day_of_week: int,
        start: time,
        end: time,
        exclude_id: Optional[str] = None,
    ) -> None:
        clash = await self._rules.find_overlapping_rule(
            staff_id, day_of_week, start, end, exclude_id=exclude_id
        )
        if clash is not None:
            raise ConflictError(
                "Availability rule overlaps an existing rule for this day",
                details={
                    "rule_id": clash.id,
                    "local_start": clash.local_start.isoformat(),
                    "local_end": clash.local_end.isoformat(),
                },
            )


def get_availability_service(session: AsyncSession) -> AvailabilityService:
    """Create an AvailabilityService bound to a DB session."""
    return AvailabilityService(session)


def get_availability_rules_service(session: AsyncSession) -> AvailabilityRulesService:
    """Create an AvailabilityRulesService bound to a DB session."""
    return AvailabilityRulesService(session)
