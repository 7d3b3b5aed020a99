"""Tests for the pure slot calculator."""

from datetime import date, datetime, time, timedelta, timezone

import pytest

from booking_core.exceptions import InvalidIntervalError
from booking_core.scheduling.intervals import TimeInterval
from booking_core.scheduling.slots import WeeklyWindow, compute_free_slots, open_windows_for_day

NY = "America/New_York"
HOUR = timedelta(hours=1)


def utc(hour, minute=0):
    return datetime(2030, 1, 7, hour, minute, tzinfo=timezone.utc)


def nine_to_five():
    # 09:00-17:00 in New York on 2030-01-07 (EST, UTC-5)
    return [TimeInterval(utc(14), utc(22))]


def starts(slots):
    return [slot.start for slot in slots]


def test_open_windows_for_day_uses_business_zone():
    windows = open_windows_for_day(
        date(2030, 1, 7),
        [WeeklyWindow(0, time(9), time(17)), WeeklyWindow(1, time(9), time(17))],
        NY,
    )
    assert windows == nine_to_five()


def test_open_windows_for_day_split_shift():
    windows = open_windows_for_day(
        date(2030, 1, 7),
        [WeeklyWindow(0, time(13), time(17)), WeeklyWindow(0, time(9), time(12))],
        NY,
    )
    assert windows == [TimeInterval(utc(14), utc(17)), TimeInterval(utc(18), utc(22))]


def test_open_windows_follow_dst():
    # 2030-03-11 is the Monday after spring-forward: 09:00 EDT is 13:00 UTC
    windows = open_windows_for_day(date(2030, 3, 11), [WeeklyWindow(0, time(9), time(17))], NY)
    assert windows == [
        TimeInterval(
            datetime(2030, 3, 11, 13, tzinfo=timezone.utc),
            datetime(2030, 3, 11, 21, tzinfo=timezone.utc),
        )
    ]


def test_full_day_hourly_slots():
    slots = compute_free_slots(nine_to_five(), [], duration=HOUR)
    assert len(slots) == 8
    assert starts(slots) == [utc(h) for h in range(14, 22)]


def test_existing_appointment_removes_its_slot():
    slots = compute_free_slots(nine_to_five(), [TimeInterval(utc(17), utc(18))], duration=HOUR)
    assert utc(17) not in starts(slots)
    assert utc(16) in starts(slots)
    assert utc(18) in starts(slots)


def test_buffer_excludes_neighbouring_starts():
    busy = [TimeInterval(utc(15), utc(16))]  # 10:00-11:00 local
    slots = compute_free_slots(
        nine_to_five(), busy, duration=HOUR, buffer=timedelta(minutes=15), step=timedelta(minutes=15)
    )
    blocked = TimeInterval(utc(14, 45), utc(16, 15))
    assert not any(blocked.start <= s < blocked.end for s in starts(slots))
    assert starts(slots)[0] == utc(16, 15)
    for slot in slots:
        assert not slot.overlaps(blocked)


def test_region_shorter_than_duration_yields_nothing():
    window = [TimeInterval(utc(14), utc(14, 45))]
    assert compute_free_slots(window, [], duration=HOUR) == ()


def test_no_open_hours():
    assert compute_free_slots([], [], duration=HOUR) == ()


def test_starts_after_drops_past_starts_and_keeps_step_alignment():
    slots = compute_free_slots(nine_to_five(), [], duration=HOUR, starts_after=utc(15, 20))
    assert starts(slots) == [utc(h) for h in range(16, 22)]


def test_slot_starting_exactly_now_is_not_offered():
    slots = compute_free_slots(nine_to_five(), [], duration=HOUR, starts_after=utc(15))
    assert starts(slots) == [utc(h) for h in range(16, 22)]


def test_custom_step():
    slots = compute_free_slots(nine_to_five(), [], duration=HOUR, step=timedelta(minutes=30))
    assert len(slots) == 15
    assert starts(slots)[-1] == utc(21)


def test_results_are_sorted_and_repeatable():
    busy = [TimeInterval(utc(19), utc(20)), TimeInterval(utc(15), utc(16))]
    first = compute_free_slots(nine_to_five(), busy, duration=HOUR)
    second = compute_free_slots(nine_to_five(), list(reversed(busy)), duration=HOUR)
    assert first == second
    assert list(first) == sorted(first)
    assert len(set(first)) == len(first)


def test_duration_must_be_positive():
    with pytest.raises(InvalidIntervalError):
        compute_free_slots(nine_to_five(), [], duration=timedelta(0))
