"""Time and mileage ledger for the active technician.

All functions are pure: collections are tuples and every change returns a
new tuple (or a new ``AppState``). The newest entry sits at the head of each
collection; display orderings are derived with :func:`history_view` and
:func:`current_week_view` and never stored.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import replace
from typing import Iterable, Optional, Sequence, Tuple, TypeVar

from .models import AppState, MileageEntry, TimeEntry
from .schemas import HistoryPayload, MileageResult, MileageSubmission
from .utils import epoch_millis, start_of_week

EDITABLE_FIELDS = ("clock_in", "clock_out", "hours_worked")

EntryT = TypeVar("EntryT", TimeEntry, MileageEntry)


def upsert_time_entry(entries: Sequence[TimeEntry], entry: TimeEntry) -> Tuple[TimeEntry, ...]:
    """Put ``entry`` at the head, dropping any entry with the same ``shift_id``."""
    return (entry,) + tuple(item for item in entries if item.shift_id != entry.shift_id)


def find_open_entry(entries: Sequence[TimeEntry], day: dt.date) -> Optional[int]:
    """Index of the first still-open entry dated ``day``.

    Matching by date rather than ``shift_id`` tolerates server ids that differ
    from the ones synthesized locally, and two shifts on the same day.
    """
    for index, entry in enumerate(entries):
        if entry.date == day and entry.clock_out is None:
            return index
    return None


def close_open_entry(entries: Sequence[TimeEntry], day: dt.date, clock_out: dt.datetime,
                     hours_worked: float) -> Tuple[TimeEntry, ...]:
    index = find_open_entry(entries, day)
    if index is None:
        return tuple(entries)
    updated = list(entries)
    updated[index] = replace(updated[index], clock_out=clock_out, hours_worked=hours_worked)
    return tuple(updated)


def contains_entry(entries: Iterable[TimeEntry], target: TimeEntry) -> bool:
    return any(item is target for item in entries)


def replace_time_entry(entries: Sequence[TimeEntry], target: TimeEntry,
                       entry: TimeEntry) -> Tuple[TimeEntry, ...]:
    """Swap ``target`` for ``entry`` in place, keeping order.

    ``target`` is matched by identity: two shifts on the same day share a
    ``shift_id``.
    """
    return tuple(entry if item is target else item for item in entries)


def edit_time_entry_field(entry: TimeEntry, field: str, value) -> TimeEntry:
    if field not in EDITABLE_FIELDS:
        raise ValueError(f"Field {field!r} cannot be edited")
    return replace(entry, **{field: value}, edited=True)


def add_mileage_entry(entries: Sequence[MileageEntry], entry: MileageEntry) -> Tuple[MileageEntry, ...]:
    return (entry,) + tuple(entries)


def week_total(entries: Iterable[TimeEntry], today: dt.date) -> float:
    """Hours worked since the most recent Sunday, ignoring open shifts."""
    week_start = start_of_week(today)
    return float(sum(
        entry.hours_worked
        for entry in entries
        if entry.date >= week_start and entry.hours_worked is not None
    ))


def effective_week_total(state: AppState, today: dt.date) -> float:
    # A non-zero server figure wins; otherwise derive it from the ledger.
    if state.week_total_hours:
        return state.week_total_hours
    return week_total(state.time_entries, today)


def history_view(entries: Iterable[EntryT]) -> list[EntryT]:
    """Newest day first; entries of the same day keep their ledger order."""
    return sorted(entries, key=lambda entry: entry.date, reverse=True)


def current_week_view(entries: Iterable[EntryT], today: dt.date) -> list[EntryT]:
    week_start = start_of_week(today)
    return sorted((entry for entry in entries if entry.date >= week_start), key=lambda entry: entry.date)


def week_mileage_total(entries: Iterable[MileageEntry], today: dt.date) -> float:
    week_start = start_of_week(today)
    return float(sum(entry.miles for entry in entries if entry.date >= week_start))


# ----------------------------------------------------------------------
# Reducers
# ----------------------------------------------------------------------
def apply_history(state: AppState, history: HistoryPayload) -> AppState:
    """Replace the whole ledger with the server's view."""
    return replace(
        state,
        time_entries=tuple(item.to_entry() for item in history.time_entries),
        mileage_entries=tuple(item.to_entry() for item in history.mileage_entries),
        week_total_hours=history.week_total_hours,
    )


def confirm_mileage(state: AppState, submission: MileageSubmission, result: MileageResult,
                    now: dt.datetime) -> AppState:
    entry = MileageEntry(
        entry_id=result.entry_id or f"mileage_{epoch_millis(now)}",
        date=submission.date,
        miles=submission.miles,
        description=submission.description,
    )
    return replace(
        state,
        mileage_entries=add_mileage_entry(state.mileage_entries, entry),
        mileage_submitting=False,
        confirmation="Mileage entry saved",
        error=None,
    )


def apply_entry_edit(state: AppState, original: TimeEntry, edited: TimeEntry, today: dt.date) -> AppState:
    """Swap ``original`` for ``edited`` and keep a loaded server week total in step.

    Rolling back is the same call with the two entries swapped. Nothing
    changes when ``original`` is no longer in the ledger.
    """
    if not contains_entry(state.time_entries, original):
        return state
    week_total_hours = state.week_total_hours
    if week_total_hours and edited.date >= start_of_week(today):
        week_total_hours += (edited.hours_worked or 0.0) - (original.hours_worked or 0.0)
    return replace(
        state,
        time_entries=replace_time_entry(state.time_entries, original, edited),
        week_total_hours=week_total_hours,
    )


def reject_mileage(state: AppState, error: Optional[str]) -> AppState:
    return replace(state, mileage_submitting=False, error=error or "Failed to save mileage")


__all__ = [
    "EDITABLE_FIELDS",
    "add_mileage_entry",
    "apply_entry_edit",
    "apply_history",
    "close_open_entry",
    "confirm_mileage",
    "contains_entry",
    "current_week_view",
    "edit_time_entry_field",
    "effective_week_total",
    "find_open_entry",
    "history_view",
    "reject_mileage",
    "replace_time_entry",
    "upsert_time_entry",
    "week_mileage_total",
    "week_total",
]
