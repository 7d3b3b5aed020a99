"""Tests for slot queries and weekly rules management."""

from datetime import date, datetime, time, timedelta, timezone

import pytest

from booking_core.config import SchedulingSettings, Settings
from booking_core.database.models import Service
from booking_core.exceptions import (
    ConflictError,
    InvalidIntervalError,
    InvalidTimezoneError,
    NotFoundError,
    ValidationError,
)
from booking_core.services.availability_service import (
    AvailabilityRulesService,
    AvailabilityService,
    resolve_buffer_minutes,
)
from booking_core.services.booking_service import BookingService, StaffLocks

BUSINESS_TZ = "America/New_York"
BOOKING_DAY = date(2030, 1, 7)
NOW = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)


def utc(hour, minute=0, day=BOOKING_DAY):
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)


def starts(result):
    return [slot.start for slot in result.slots]


async def query(session, seed, settings, day=BOOKING_DAY, now=NOW, **kwargs):
    service = AvailabilityService(session, settings)
    return await service.compute_free_slots(seed.staff.id, seed.service.id, day, now=now, **kwargs)


async def test_open_day_offers_every_hour(session, seed, settings):
    result = await query(session, seed, settings)

    assert len(result.slots) == 8
    assert starts(result)[0] == utc(14)  # 09:00 EST
    assert starts(result)[-1] == utc(21)
    assert result.business_timezone == BUSINESS_TZ
    assert result.timezone == BUSINESS_TZ
    assert result.duration_minutes == 60


async def test_booked_hour_is_removed(session, seed, settings):
    await seed.add_appointment(BOOKING_DAY, time(12, 0))

    result = await query(session, seed, settings)

    assert len(result.slots) == 7
    assert utc(17) not in starts(result)


async def test_cancelled_appointment_does_not_block(session, seed, settings):
    await seed.add_appointment(BOOKING_DAY, time(12, 0), status="cancelled")

    result = await query(session, seed, settings)

    assert len(result.slots) == 8


async def test_full_day_time_off_leaves_nothing(session, seed, settings):
    await seed.add_time_off(utc(5), utc(5, day=BOOKING_DAY + timedelta(days=1)), is_full_day=True)

    result = await query(session, seed, settings)

    assert result.slots == ()


async def test_pending_time_off_is_advisory_by_default(session, seed, settings):
    await seed.add_time_off(utc(14), utc(18), status="pending")

    result = await query(session, seed, settings)

    assert len(result.slots) == 8


async def test_pending_time_off_blocks_when_configured(session, seed):
    await seed.add_time_off(utc(14), utc(18), status="pending")
    strict = Settings(scheduling=SchedulingSettings(pending_time_off_blocks=True))

    result = await query(session, seed, strict)

    assert starts(result) == [utc(h) for h in range(18, 22)]


async def test_rejected_time_off_is_ignored(session, seed, settings):
    await seed.add_time_off(utc(14), utc(18), status="rejected")

    result = await query(session, seed, settings)

    assert len(result.slots) == 8


async def test_buffer_pushes_neighbouring_slots_away(session, seed):
    await seed.add_appointment(BOOKING_DAY, time(10, 0))
    buffered = Settings(
        scheduling=SchedulingSettings(default_buffer_minutes=15, slot_interval_minutes=15)
    )

    result = await query(session, seed, buffered)

    assert result.buffer_minutes == 15
    assert starts(result)[0] == utc(16, 15)  # 11:15 local
    for start in starts(result):
        assert not utc(14, 45) <= start < utc(16, 15)


async def test_service_buffer_overrides_company_buffer(seed, settings):
    service = Service(company_id=seed.company.id, name="Color", duration_minutes=90, buffer_minutes=0)
    seed.company.buffer_minutes = 30
    assert resolve_buffer_minutes(service, seed.company, settings) == 0

    service.buffer_minutes = None
    assert resolve_buffer_minutes(service, seed.company, settings) == 30

    seed.company.buffer_minutes = 0
    assert resolve_buffer_minutes(service, seed.company, settings) == 0


async def test_past_day_is_empty(session, seed, settings):
    result = await query(session, seed, settings, day=date(2029, 12, 31))

    assert result.slots == ()


async def test_today_drops_slots_that_already_started(session, seed, settings):
    # 12:30 in New York
    result = await query(session, seed, settings, now=utc(17, 30))

    assert starts(result) == [utc(h) for h in range(18, 22)]


async def test_slot_starting_now_is_neither_offered_nor_bookable(
    session, session_factory, seed, settings
):
    # 10:00 in New York, on a slot boundary
    now = utc(15)

    result = await query(session, seed, settings, now=now)
    assert starts(result) == [utc(h) for h in range(16, 22)]

    booking = BookingService(session_factory, settings, locks=StaffLocks())
    with pytest.raises(ValidationError) as exc_info:
        await booking.create_appointment(
            seed.staff.id, seed.service.id, "customer-1", BOOKING_DAY, "10:00", now=now
        )
    assert exc_info.value.code == "PAST_DATE_BOOKING"


async def test_day_after_spring_forward(session, seed, settings):
    result = await query(session, seed, settings, day=date(2030, 3, 11))

    assert starts(result)[0] == datetime(2030, 3, 11, 13, tzinfo=timezone.utc)
    assert len(result.slots) == 8


async def test_display_timezone_is_echoed(session, seed, settings):
    result = await query(session, seed, settings, tz="Europe/London")

    assert result.timezone == "Europe/London"
    assert result.business_timezone == BUSINESS_TZ
    assert starts(result)[0] == utc(14)


async def test_unknown_display_timezone(session, seed, settings):
    with pytest.raises(InvalidTimezoneError):
        await query(session, seed, settings, tz="Nowhere/Special")


async def test_staff_must_offer_service(session, seed, settings):
    other = await seed.add(Service(company_id=seed.company.id, name="Massage", duration_minutes=30))

    with pytest.raises(ValidationError):
        await AvailabilityService(session, settings).compute_free_slots(
            seed.staff.id, other.id, BOOKING_DAY, now=NOW
        )


async def test_unknown_staff(session, seed, settings):
    with pytest.raises(NotFoundError):
        await AvailabilityService(session, settings).compute_free_slots(
            "missing", seed.service.id, BOOKING_DAY, now=NOW
        )


async def test_hold_blocks_everyone_but_its_owner(session_factory, session, seed, settings):
    booking = BookingService(session_factory, settings, locks=StaffLocks())
    hold = await booking.create_reservation(
        seed.staff.id, seed.service.id, BOOKING_DAY, "10:00", session_id="checkout-1", now=NOW
    )

    others = await query(session, seed, settings)
    owner = await query(session, seed, settings, reservation_id=hold.id)
    later = await query(session, seed, settings, now=NOW + timedelta(hours=1))

    assert utc(15) not in starts(others)
    assert utc(15) in starts(owner)
    assert utc(15) in starts(later)


class TestAvailabilityRules:
    async def test_list_rules(self, session, seed):
        rules = await AvailabilityRulesService(session).list_rules(seed.staff.id)

        assert len(rules) == 7
        assert [r.day_of_week for r in rules] == list(range(7))

    async def test_overlapping_rule_rejected(self, session, seed):
        service = AvailabilityRulesService(session)

        with pytest.raises(ConflictError):
            await service.create_rule(seed.staff.id, 0, "16:00", "18:00")

    async def test_split_shift_and_unavailable_rule(self, session, seed):
        service = AvailabilityRulesService(session)

        evening = await service.create_rule(seed.staff.id, 0, "17:00", "20:00")
        blocked = await service.create_rule(seed.staff.id, 0, "10:00", "11:00", is_available=False)

        assert evening.local_start == time(17, 0)
        assert blocked.is_available is False

    async def test_end_before_start(self, session, seed):
        with pytest.raises(InvalidIntervalError):
            await AvailabilityRulesService(session).create_rule(seed.staff.id, 0, "18:00", "17:00")

    async def test_day_out_of_range(self, session, seed):
        with pytest.raises(ValidationError):
            await AvailabilityRulesService(session).create_rule(seed.staff.id, 7, "09:00", "10:00")

    async def test_update_and_delete(self, session, seed):
        service = AvailabilityRulesService(session)
        monday = (await service.list_rules(seed.staff.id))[0]

        updated = await service.update_rule(monday.id, local_end="12:00")
        assert updated.local_end == time(12, 0)
        assert updated.local_start == time(9, 0)

        await service.delete_rule(monday.id)
        assert len(await service.list_rules(seed.staff.id)) == 6

        with pytest.raises(NotFoundError):
            await service.delete_rule(monday.id)
