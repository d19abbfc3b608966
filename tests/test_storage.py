from __future__ import annotations

import datetime as dt

from crewclock.models import AppState, ClockSession, MileageEntry, TimeEntry
from crewclock.storage import CLOCK_SESSION_KEY, CURRENT_TECHNICIAN_KEY, TIME_ENTRIES_KEY, LocalStore, Snapshot

from .conftest import BASE_TIME


def sample_state() -> AppState:
    return AppState(
        current_technician="Bri",
        session=ClockSession.clocked_in(BASE_TIME),
        time_entries=(
            TimeEntry(shift_id="2024-01-08_Bri", date=BASE_TIME.date(), clock_in=BASE_TIME),
            TimeEntry(
                shift_id="2024-01-05_Bri",
                date=dt.date(2024, 1, 5),
                clock_in=BASE_TIME - dt.timedelta(days=3),
                clock_out=BASE_TIME - dt.timedelta(days=3) + dt.timedelta(hours=8),
                hours_worked=8.0,
                edited=True,
            ),
        ),
        mileage_entries=(MileageEntry(entry_id="m1", date=dt.date(2024, 1, 8), miles=12.5, description="Site visit"),),
    )


def test_snapshot_round_trip(store: LocalStore) -> None:
    snapshot = Snapshot.of(sample_state())
    store.save_snapshot(snapshot)

    restored = store.load_snapshot()

    assert restored == snapshot
    assert restored.session.clock_in_time == BASE_TIME


def test_empty_store_loads_defaults(store: LocalStore) -> None:
    assert store.load_snapshot() == Snapshot()


def test_clearing_technician_removes_key(store: LocalStore) -> None:
    store.save_snapshot(Snapshot.of(sample_state()))
    store.save_snapshot(Snapshot.of(AppState()))

    assert store.get(CURRENT_TECHNICIAN_KEY) is None
    assert store.load_snapshot().time_entries == ()


def test_unreadable_values_are_ignored(store: LocalStore) -> None:
    store.set(CURRENT_TECHNICIAN_KEY, "Nick")
    store.set(CLOCK_SESSION_KEY, "{not json")
    store.set_json(TIME_ENTRIES_KEY, [{"shift_id": "broken"}, {
        "shift_id": "2024-01-08_Nick",
        "date": "2024-01-08",
        "clock_in": "2024-01-08T14:00:00Z",
    }])

    snapshot = store.load_snapshot()

    assert snapshot.current_technician == "Nick"
    assert snapshot.session == ClockSession.clocked_out()
    assert [entry.shift_id for entry in snapshot.time_entries] == ["2024-01-08_Nick"]


def test_values_survive_a_new_store(tmp_path) -> None:
    path = tmp_path / "nested" / "state.db"
    LocalStore.at_path(path).set("greeting", "hello")
    assert LocalStore.at_path(path).get("greeting") == "hello"
