from __future__ import annotations

import datetime as dt

import pytest

from crewclock.utils import (day_name, format_clock_time, format_elapsed,
                             format_hours, hours_between, start_of_week)

START = dt.datetime(2024, 1, 8, 8, 0, tzinfo=dt.timezone.utc)


@pytest.mark.parametrize(
    "minutes, expected",
    [
        (0, 0.0),
        (7, 0.0),
        (8, 0.25),
        (22, 0.25),
        (23, 0.5),
        (60, 1.0),
        (487, 8.0),
        (487.5, 8.25),
        (495, 8.25),
    ],
)
def test_hours_between_rounds_to_nearest_quarter(minutes: float, expected: float) -> None:
    assert hours_between(START, START + dt.timedelta(minutes=minutes)) == expected


def test_hours_between_is_a_non_negative_quarter_multiple() -> None:
    for seconds in range(0, 12 * 3600, 317):
        hours = hours_between(START, START + dt.timedelta(seconds=seconds))
        assert hours >= 0
        assert (hours * 4).is_integer()


def test_hours_between_reversed_interval_is_zero() -> None:
    assert hours_between(START, START - dt.timedelta(hours=2)) == 0.0


def test_format_elapsed() -> None:
    assert format_elapsed(START, START + dt.timedelta(minutes=45, seconds=59)) == "45m"
    assert format_elapsed(START, START + dt.timedelta(hours=2, minutes=5)) == "2h 5m"
    assert format_elapsed(START, START + dt.timedelta(hours=1)) == "1h 0m"
    assert format_elapsed(START, START - dt.timedelta(minutes=3)) == "0m"


@pytest.mark.parametrize(
    "today, expected",
    [
        (dt.date(2024, 1, 7), dt.date(2024, 1, 7)),
        (dt.date(2024, 1, 8), dt.date(2024, 1, 7)),
        (dt.date(2024, 1, 13), dt.date(2024, 1, 7)),
        (dt.date(2024, 1, 14), dt.date(2024, 1, 14)),
    ],
)
def test_start_of_week_is_most_recent_sunday(today: dt.date, expected: dt.date) -> None:
    assert start_of_week(today) == expected


def test_format_clock_time_uses_twelve_hour_clock() -> None:
    assert format_clock_time(dt.datetime(2024, 1, 8, 9, 5)) == "9:05 AM"
    assert format_clock_time(dt.datetime(2024, 1, 8, 0, 0)) == "12:00 AM"
    assert format_clock_time(dt.datetime(2024, 1, 8, 12, 30)) == "12:30 PM"
    assert format_clock_time(dt.datetime(2024, 1, 8, 13, 30)) == "1:30 PM"


def test_format_hours_and_day_name() -> None:
    assert format_hours(8.0) == "8"
    assert format_hours(8.25) == "8.25"
    assert day_name(dt.date(2024, 1, 8)) == "Mon"
