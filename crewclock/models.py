"""Data models for the CrewClock client."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple


@dataclass(frozen=True, slots=True)
class Technician:
    """A crew member from the remote roster."""

    name: str
    hourly_rate: Optional[float] = None
    fixed_route_miles: Optional[float] = None


@dataclass(frozen=True, slots=True)
class ClockSession:
    """Open/closed clock state of the active technician."""

    is_clocked_in: bool = False
    clock_in_time: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.is_clocked_in != (self.clock_in_time is not None):
            raise ValueError("clock_in_time must be set exactly when clocked in")

    @classmethod
    def clocked_in(cls, at: datetime) -> "ClockSession":
        return cls(is_clocked_in=True, clock_in_time=at)

    @classmethod
    def clocked_out(cls) -> "ClockSession":
        return cls()


@dataclass(frozen=True, slots=True)
class TimeEntry:
    """One shift. ``clock_out`` stays ``None`` while the shift is open."""

    shift_id: str
    date: date
    clock_in: datetime
    clock_out: Optional[datetime] = None
    hours_worked: Optional[float] = None
    edited: bool = False

    @property
    def is_open(self) -> bool:
        return self.clock_out is None


@dataclass(frozen=True, slots=True)
class MileageEntry:
    """A single mileage submission."""

    entry_id: str
    date: date
    miles: float
    description: str


@dataclass(frozen=True, slots=True)
class AppState:
    """Everything the UI renders, replaced wholesale on every transition."""

    technicians: Tuple[Technician, ...] = ()
    current_technician: Optional[str] = None
    session: ClockSession = ClockSession()
    time_entries: Tuple[TimeEntry, ...] = ()
    mileage_entries: Tuple[MileageEntry, ...] = ()
    # Server-computed week total from the last history load, None until loaded.
    week_total_hours: Optional[float] = None
    elapsed: str = ""
    confirmation: Optional[str] = None
    error: Optional[str] = None
    clock_button_disabled: bool = False
    mileage_submitting: bool = False
    pending_actions: int = 0


__all__ = ["Technician", "ClockSession", "TimeEntry", "MileageEntry", "AppState"]
