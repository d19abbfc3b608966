from __future__ import annotations

import datetime as dt
import math

import pytest
from pydantic import ValidationError

from crewclock.models import ClockSession, Technician
from crewclock.schemas import (HistoryPayload, MileageSubmission, StatusPayload,
                               decode_technicians)


def test_decode_technicians_accepts_wrapped_roster() -> None:
    data = {"technicians": [{"name": "Bri", "hourly_rate": 22.5}, {"name": "Nick", "fixed_route_miles": 41}]}
    assert decode_technicians(data) == [
        Technician(name="Bri", hourly_rate=22.5),
        Technician(name="Nick", fixed_route_miles=41.0),
    ]


def test_decode_technicians_accepts_bare_list() -> None:
    assert decode_technicians([{"name": "Bri"}]) == [Technician(name="Bri")]


@pytest.mark.parametrize("data", [{"roster": []}, "Bri,Nick", None, [{"hourly_rate": 20}]])
def test_decode_technicians_rejects_other_shapes(data) -> None:
    with pytest.raises(ValueError):
        decode_technicians(data)


def test_history_payload_parses_server_entries() -> None:
    history = HistoryPayload.model_validate(
        {
            "time_entries": [
                {
                    "shift_id": "2024-01-08_Bri",
                    "date": "2024-01-08",
                    "clock_in": "2024-01-08T14:00:00.000Z",
                    "clock_out": None,
                    "hours_worked": None,
                    "edited": False,
                }
            ],
            "mileage_entries": [
                {"entry_id": "m1", "date": "2024-01-08", "miles": "12.5", "description": "Site visit"}
            ],
            "week_total_hours": 6.5,
        }
    )
    entry = history.time_entries[0].to_entry()
    assert entry.clock_in == dt.datetime(2024, 1, 8, 14, 0, tzinfo=dt.timezone.utc)
    assert entry.is_open
    assert history.mileage_entries[0].to_entry().miles == 12.5
    assert history.week_total_hours == 6.5


def test_naive_timestamps_are_read_as_utc() -> None:
    status = StatusPayload.model_validate({"clocked_in": True, "clock_in_time": "2024-01-08T14:00:00"})
    assert status.clock_in_time.tzinfo is dt.timezone.utc
    assert status.to_session() == ClockSession.clocked_in(status.clock_in_time)


def test_status_without_clock_in_time_is_clocked_out() -> None:
    assert StatusPayload(clocked_in=True).to_session() == ClockSession.clocked_out()


def test_mileage_submission_parses_text_input() -> None:
    submission = MileageSubmission(date="2024-01-08", miles="12.5", description="  Site visit ")
    assert submission.miles == 12.5
    assert submission.description == "Site visit"
    assert submission.to_payload("Bri") == {
        "tech_name": "Bri",
        "date": "2024-01-08",
        "miles": 12.5,
        "description": "Site visit",
    }


@pytest.mark.parametrize("miles", ["abc", "", "-1", "nan", "inf", math.nan])
def test_mileage_submission_rejects_invalid_miles(miles) -> None:
    with pytest.raises(ValidationError):
        MileageSubmission(date="2024-01-08", miles=miles, description="Site visit")


def test_mileage_submission_requires_description() -> None:
    with pytest.raises(ValidationError):
        MileageSubmission(date="2024-01-08", miles=3, description="   ")


def test_zero_miles_are_allowed() -> None:
    assert MileageSubmission(date=dt.date(2024, 1, 8), miles=0, description="Yard").miles == 0.0
