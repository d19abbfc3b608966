"""pydantic models for webhook payloads, persisted entries and form input."""

from __future__ import annotations

import datetime as dt
import math
from typing import Annotated, Any, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator

from .models import ClockSession, MileageEntry, Technician, TimeEntry


def _ensure_aware(value: dt.datetime) -> dt.datetime:
    # Webhook timestamps without an offset are UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value


AwareDatetime = Annotated[dt.datetime, AfterValidator(_ensure_aware)]


class WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class TechnicianPayload(WireModel):
    name: str
    hourly_rate: Optional[float] = None
    fixed_route_miles: Optional[float] = None

    def to_technician(self) -> Technician:
        return Technician(
            name=self.name,
            hourly_rate=self.hourly_rate,
            fixed_route_miles=self.fixed_route_miles,
        )


class TechnicianRoster(WireModel):
    technicians: List[TechnicianPayload] = Field(default_factory=list)


def decode_technicians(data: Any) -> List[Technician]:
    """Normalize the roster response into a technician list.

    The endpoint answers either ``{"technicians": [...]}`` or a bare list.
    Anything else raises ``ValueError``.
    """
    if isinstance(data, list):
        roster = TechnicianRoster(technicians=data)
    elif isinstance(data, dict) and "technicians" in data:
        roster = TechnicianRoster.model_validate(data)
    else:
        raise ValueError(f"Unexpected technician roster payload: {type(data).__name__}")
    return [item.to_technician() for item in roster.technicians]


class ActionResult(WireModel):
    # A parsed body without an explicit flag still counts as accepted.
    success: bool = True
    error: Optional[str] = None


class ClockResult(ActionResult):
    shift_id: Optional[str] = None
    hours_worked: Optional[float] = None


class MileageResult(ActionResult):
    entry_id: Optional[str] = None


class StatusPayload(WireModel):
    clocked_in: bool = False
    clock_in_time: Optional[AwareDatetime] = None
    elapsed_minutes: Optional[float] = None

    def to_session(self) -> ClockSession:
        if self.clocked_in and self.clock_in_time is not None:
            return ClockSession.clocked_in(self.clock_in_time)
        return ClockSession.clocked_out()


class ClockSessionPayload(WireModel):
    is_clocked_in: bool = False
    clock_in_time: Optional[AwareDatetime] = None

    @classmethod
    def from_session(cls, session: ClockSession) -> "ClockSessionPayload":
        return cls(is_clocked_in=session.is_clocked_in, clock_in_time=session.clock_in_time)

    def to_session(self) -> ClockSession:
        if self.is_clocked_in and self.clock_in_time is not None:
            return ClockSession.clocked_in(self.clock_in_time)
        return ClockSession.clocked_out()


class TimeEntryPayload(WireModel):
    shift_id: str
    date: dt.date
    clock_in: AwareDatetime
    clock_out: Optional[AwareDatetime] = None
    hours_worked: Optional[float] = None
    edited: bool = False

    @classmethod
    def from_entry(cls, entry: TimeEntry) -> "TimeEntryPayload":
        return cls(
            shift_id=entry.shift_id,
            date=entry.date,
            clock_in=entry.clock_in,
            clock_out=entry.clock_out,
            hours_worked=entry.hours_worked,
            edited=entry.edited,
        )

    def to_entry(self) -> TimeEntry:
        return TimeEntry(
            shift_id=self.shift_id,
            date=self.date,
            clock_in=self.clock_in,
            clock_out=self.clock_out,
            hours_worked=self.hours_worked,
            edited=self.edited,
        )


class MileageEntryPayload(WireModel):
    entry_id: str
    date: dt.date
    miles: float
    description: str = ""

    @classmethod
    def from_entry(cls, entry: MileageEntry) -> "MileageEntryPayload":
        return cls(
            entry_id=entry.entry_id,
            date=entry.date,
            miles=entry.miles,
            description=entry.description,
        )

    def to_entry(self) -> MileageEntry:
        return MileageEntry(
            entry_id=self.entry_id,
            date=self.date,
            miles=self.miles,
            description=self.description,
        )


class HistoryPayload(WireModel):
    time_entries: List[TimeEntryPayload] = Field(default_factory=list)
    mileage_entries: List[MileageEntryPayload] = Field(default_factory=list)
    week_total_hours: Optional[float] = None

    @classmethod
    def empty(cls) -> "HistoryPayload":
        return cls(week_total_hours=0)


class MileageSubmission(BaseModel):
    """Validated mileage form input, checked before anything is sent."""

    model_config = ConfigDict(str_strip_whitespace=True)

    date: dt.date
    miles: float
    description: str = Field(min_length=1)

    @field_validator("miles")
    @classmethod
    def _check_miles(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("miles must be a finite number")
        if value < 0:
            raise ValueError("miles must not be negative")
        return value

    def to_payload(self, tech_name: str) -> dict[str, Any]:
        return {
            "tech_name": tech_name,
            "date": self.date.isoformat(),
            "miles": self.miles,
            "description": self.description,
        }


__all__ = [
    "ActionResult",
    "ClockResult",
    "ClockSessionPayload",
    "HistoryPayload",
    "MileageEntryPayload",
    "MileageResult",
    "MileageSubmission",
    "StatusPayload",
    "TechnicianPayload",
    "TimeEntryPayload",
    "decode_technicians",
]
