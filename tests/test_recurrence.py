"""Tests for recurrence expansion."""

from datetime import date, timedelta

import pytest

from booking_core.exceptions import InvalidIntervalError
from booking_core.scheduling.recurrence import (
    MAX_OCCURRENCES,
    Frequency,
    expand,
    plan_occurrences,
)


def test_daily_expansion_is_capped():
    start = date(2030, 1, 1)
    dates = list(expand(start, Frequency.DAILY, start + timedelta(days=200)))
    assert len(dates) == MAX_OCCURRENCES == 50
    assert dates[0] == start
    assert dates[-1] == start + timedelta(days=49)


def test_plan_reports_truncation():
    start = date(2030, 1, 1)
    plan = plan_occurrences(start, Frequency.DAILY, start + timedelta(days=200))
    assert plan.truncated is True
    assert len(plan) == 50

    plan = plan_occurrences(start, Frequency.DAILY, start + timedelta(days=49))
    assert plan.truncated is False
    assert len(plan) == 50


def test_weekly_expansion_is_inclusive_of_until():
    dates = list(expand(date(2030, 1, 7), Frequency.WEEKLY, date(2030, 1, 28)))
    assert dates == [date(2030, 1, 7), date(2030, 1, 14), date(2030, 1, 21), date(2030, 1, 28)]


def test_monthly_clamps_and_keeps_anchor_day():
    dates = list(expand(date(2030, 1, 31), Frequency.MONTHLY, date(2030, 5, 31)))
    assert dates == [
        date(2030, 1, 31),
        date(2030, 2, 28),
        date(2030, 3, 31),
        date(2030, 4, 30),
        date(2030, 5, 31),
    ]


def test_monthly_leap_year_and_year_rollover():
    leap = list(expand(date(2028, 1, 29), Frequency.MONTHLY, date(2028, 3, 1)))
    assert leap == [date(2028, 1, 29), date(2028, 2, 29)]

    rollover = list(expand(date(2030, 11, 30), Frequency.MONTHLY, date(2031, 3, 1)))
    assert rollover == [
        date(2030, 11, 30),
        date(2030, 12, 30),
        date(2031, 1, 30),
        date(2031, 2, 28),
    ]


def test_none_yields_only_start():
    assert list(expand(date(2030, 1, 7), Frequency.NONE)) == [date(2030, 1, 7)]
    plan = plan_occurrences(date(2030, 1, 7), "none")
    assert plan.dates == (date(2030, 1, 7),)
    assert plan.truncated is False


def test_until_before_start():
    with pytest.raises(InvalidIntervalError):
        list(expand(date(2030, 1, 7), Frequency.WEEKLY, date(2030, 1, 1)))


def test_repeating_requires_until():
    with pytest.raises(InvalidIntervalError):
        plan_occurrences(date(2030, 1, 7), Frequency.DAILY)


def test_limit_cannot_exceed_cap():
    start = date(2030, 1, 1)
    assert len(list(expand(start, Frequency.DAILY, start + timedelta(days=500), limit=500))) == 50
    assert len(list(expand(start, Frequency.DAILY, start + timedelta(days=500), limit=5))) == 5


def test_expand_is_lazy():
    generator = expand(date(2030, 1, 1), Frequency.DAILY, date(2031, 1, 1))
    assert next(generator) == date(2030, 1, 1)
    assert next(generator) == date(2030, 1, 2)
