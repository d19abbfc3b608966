"""Date, duration and formatting helpers shared by the reducers and widgets."""

from __future__ import annotations

import datetime as dt
import math


def local_now() -> dt.datetime:
    """Current wall-clock time as an aware datetime in the local zone."""
    return dt.datetime.now().astimezone()


def as_local(value: dt.datetime) -> dt.datetime:
    # Naive values are taken as local wall time.
    return value.astimezone()


def hours_between(start: dt.datetime, end: dt.datetime) -> float:
    """Hours from ``start`` to ``end`` rounded half-up to the nearest quarter hour."""
    hours = (end - start).total_seconds() / 3600
    if hours <= 0:
        return 0.0
    return math.floor(hours * 4 + 0.5) / 4


def format_elapsed(start: dt.datetime, now: dt.datetime) -> str:
    total_minutes = max(0, int((now - start).total_seconds() // 60))
    hours, minutes = divmod(total_minutes, 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def start_of_week(today: dt.date) -> dt.date:
    """Most recent Sunday, ``today`` included."""
    # date.weekday(): Monday == 0 ... Sunday == 6
    return today - dt.timedelta(days=(today.weekday() + 1) % 7)


def format_clock_time(value: dt.datetime) -> str:
    local = as_local(value)
    return f"{local.hour % 12 or 12}:{local.minute:02d} {'AM' if local.hour < 12 else 'PM'}"


def format_hours(hours: float) -> str:
    return f"{hours:g}"


def day_name(day: dt.date) -> str:
    return day.strftime("%a")


def epoch_millis(value: dt.datetime) -> int:
    return int(value.timestamp() * 1000)


__all__ = [
    "local_now",
    "as_local",
    "hours_between",
    "format_elapsed",
    "start_of_week",
    "format_clock_time",
    "format_hours",
    "day_name",
    "epoch_millis",
]
