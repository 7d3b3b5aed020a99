"""Tests for time-off management and the time-off conflict check."""

from datetime import date, datetime, time, timezone

import pytest

from booking_core.database.models import TimeOffStatus
from booking_core.exceptions import (
    ConflictError,
    InvalidIntervalError,
    NotFoundError,
    ValidationError,
)
from booking_core.scheduling.conflicts import ConflictKind
from booking_core.services.conflict_service import ConflictService
from booking_core.services.time_off_service import TimeOffService

BOOKING_DAY = date(2030, 1, 7)


def utc(hour, day=7):
    return datetime(2030, 1, day, hour, tzinfo=timezone.utc)


async def test_create_reports_affected_appointments(session, seed, settings):
    booked = await seed.add_appointment(BOOKING_DAY, time(10, 0))
    await seed.add_appointment(BOOKING_DAY, time(15, 0))

    result = await TimeOffService(session, settings).create_time_off(
        seed.staff.id, start_at=utc(14), end_at=utc(18), reason="Dentist"
    )

    assert result.time_off.status == TimeOffStatus.PENDING.value
    assert result.time_off.reason == "Dentist"
    assert [c.id for c in result.affected.conflicts] == [booked.id]
    assert result.affected.conflicts[0].kind == ConflictKind.APPOINTMENT


async def test_full_day_uses_staff_zone(session, seed, settings):
    result = await TimeOffService(session, settings).create_time_off(
        seed.staff.id, start_date="2030-01-07", end_date="2030-01-08", is_full_day=True
    )

    # Local midnight in New York is 05:00 UTC in January
    assert result.time_off.start_at == utc(5)
    assert result.time_off.end_at == utc(5, day=9)
    assert result.time_off.is_full_day is True


async def test_overlapping_time_off_rejected(session, seed, settings):
    service = TimeOffService(session, settings)
    await service.create_time_off(seed.staff.id, start_at=utc(14), end_at=utc(18))

    with pytest.raises(ConflictError) as exc_info:
        await service.create_time_off(seed.staff.id, start_at=utc(17), end_at=utc(20))
    assert exc_info.value.code == "TIME_OFF_OVERLAP"


async def test_rejected_time_off_does_not_count_as_overlap(session, seed, settings):
    await seed.add_time_off(utc(14), utc(18), status="rejected")

    result = await TimeOffService(session, settings).create_time_off(
        seed.staff.id, start_at=utc(14), end_at=utc(18)
    )
    assert result.time_off.id


async def test_missing_bounds(session, seed, settings):
    with pytest.raises(ValidationError):
        await TimeOffService(session, settings).create_time_off(seed.staff.id, start_at=utc(14))


async def test_end_before_start(session, seed, settings):
    with pytest.raises(InvalidIntervalError):
        await TimeOffService(session, settings).create_time_off(
            seed.staff.id, start_at=utc(18), end_at=utc(14)
        )


async def test_approve_list_and_delete(session, seed, settings):
    service = TimeOffService(session, settings)
    later = await service.create_time_off(seed.staff.id, start_at=utc(14, day=9), end_at=utc(15, day=9))
    earlier = await service.create_time_off(seed.staff.id, start_at=utc(14), end_at=utc(15))

    approved = await service.update_status(earlier.time_off.id, TimeOffStatus.APPROVED)
    assert approved.status == "approved"

    listed = await service.list_time_off(seed.staff.id)
    assert [t.id for t in listed] == [earlier.time_off.id, later.time_off.id]

    await service.delete_time_off(later.time_off.id)
    assert len(await service.list_time_off(seed.staff.id)) == 1

    with pytest.raises(NotFoundError):
        await service.delete_time_off(later.time_off.id)


async def test_unknown_time_off(session, seed, settings):
    with pytest.raises(NotFoundError):
        await TimeOffService(session, settings).update_status("missing", "approved")


async def test_conflict_check_marks_pending_time_off_advisory(session, seed, settings):
    await seed.add_time_off(utc(14), utc(16), status="pending")
    await seed.add_time_off(utc(16), utc(18), status="approved")

    report = await ConflictService(session, settings).check_time_off(seed.staff.id, utc(13), utc(19))

    assert [c.blocking for c in report.of_kind(ConflictKind.TIME_OFF)] == [False, True]
    assert report.has_blocking_conflicts
