"""Tests for wall-clock / UTC conversion."""

from datetime import date, datetime, time, timedelta, timezone

import pytest

from booking_core.exceptions import InvalidTimezoneError, ValidationError
from booking_core.scheduling.timezones import (
    LocalDateTime,
    local_date_of,
    local_day_bounds,
    parse_local_time,
    to_local,
    to_utc,
)

NY = "America/New_York"


def test_to_utc_standard_time():
    assert to_utc("2025-01-20", "15:33", NY) == datetime(2025, 1, 20, 20, 33, tzinfo=timezone.utc)


def test_to_utc_daylight_time():
    assert to_utc("2025-07-01", "09:00", NY) == datetime(2025, 7, 1, 13, 0, tzinfo=timezone.utc)


def test_to_utc_accepts_twelve_hour_clock():
    assert to_utc(date(2025, 1, 20), "3:33 pm", NY) == to_utc(date(2025, 1, 20), "15:33", NY)
    assert parse_local_time("12:05 am") == time(0, 5)
    assert parse_local_time("12:05 PM") == time(12, 5)


@pytest.mark.parametrize(
    "day, clock",
    [
        (date(2025, 1, 20), time(15, 33)),
        (date(2025, 3, 9), time(1, 59)),  # just before spring-forward
        (date(2025, 3, 9), time(3, 0)),  # just after spring-forward
        (date(2025, 11, 2), time(0, 30)),
        (date(2025, 11, 2), time(2, 30)),  # after fall-back
    ],
)
def test_round_trip(day, clock):
    assert to_local(to_utc(day, clock, NY), NY) == LocalDateTime(day, clock)


def test_ambiguous_time_resolves_to_first_occurrence():
    # 01:30 happens twice on 2025-11-02; the first is still EDT (-4)
    assert to_utc("2025-11-02", "01:30", NY) == datetime(2025, 11, 2, 5, 30, tzinfo=timezone.utc)


def test_nonexistent_time_shifts_forward():
    # 02:30 doesn't exist on 2025-03-09; it lands at 03:30 EDT
    instant = to_utc("2025-03-09", "02:30", NY)
    assert instant == datetime(2025, 3, 9, 7, 30, tzinfo=timezone.utc)
    assert to_local(instant, NY).time == time(3, 30)


def test_local_date_of_buckets_by_zone():
    instant = datetime(2025, 1, 21, 3, 0, tzinfo=timezone.utc)
    assert local_date_of(instant, NY) == date(2025, 1, 20)
    assert local_date_of(instant, "UTC") == date(2025, 1, 21)


def test_local_day_bounds_on_dst_days():
    assert local_day_bounds("2025-03-09", NY).duration == timedelta(hours=23)
    assert local_day_bounds("2025-11-02", NY).duration == timedelta(hours=25)
    assert local_day_bounds("2025-06-01", NY).duration == timedelta(hours=24)


def test_unknown_timezone():
    with pytest.raises(InvalidTimezoneError) as exc_info:
        to_utc("2025-01-20", "10:00", "Mars/Olympus_Mons")
    assert exc_info.value.code == "INVALID_TIMEZONE"
    assert exc_info.value.status_code == 422


@pytest.mark.parametrize("value", ["25:00", "10:61", "noon", "13:00 pm", ""])
def test_malformed_time(value):
    with pytest.raises(ValidationError):
        parse_local_time(value)


def test_malformed_date():
    with pytest.raises(ValidationError):
        to_utc("2025-13-40", "10:00", NY)
