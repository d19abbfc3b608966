"""Clock-in/clock-out state machine for the active technician.

The reducers below are pure ``AppState -> AppState`` functions implementing
the optimistic protocol: a ``begin_*`` step applies the change before the
webhook answers, then either ``confirm_*`` or ``rollback_*`` runs with the
result. They do not refuse a clock-in while already clocked in; the UI only
offers the button that matches the current state.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import replace
from typing import Callable, Iterable, Optional, Tuple

from .config import DEBOUNCE_BY_COMPLETION, DEBOUNCE_BY_TIMER
from .ledger import close_open_entry, upsert_time_entry
from .models import AppState, ClockSession, Technician, TimeEntry
from .runtime import Scheduler, TimerHandle
from .schemas import ClockResult, StatusPayload
from .utils import format_clock_time, format_elapsed, format_hours, hours_between

logger = logging.getLogger(__name__)


def synthesize_shift_id(day: dt.date, tech_name: str) -> str:
    return f"{day.isoformat()}_{tech_name}"


# ----------------------------------------------------------------------
# Technician selection
# ----------------------------------------------------------------------
def set_technicians(state: AppState, technicians: Iterable[Technician]) -> AppState:
    return replace(state, technicians=tuple(technicians))


def select_technician(state: AppState, name: str) -> AppState:
    """Start a fresh session for ``name``; nothing of the previous one survives."""
    return AppState(technicians=state.technicians, current_technician=name)


def clear_technician(state: AppState) -> AppState:
    return AppState(technicians=state.technicians)


def apply_status(state: AppState, status: StatusPayload, now: dt.datetime) -> AppState:
    return tick_elapsed(replace(state, session=status.to_session()), now)


# ----------------------------------------------------------------------
# Clock in
# ----------------------------------------------------------------------
def begin_clock_in(state: AppState, now: dt.datetime) -> AppState:
    return replace(
        state,
        session=ClockSession.clocked_in(now),
        elapsed=format_elapsed(now, now),
        confirmation=f"Clocked in at {format_clock_time(now)}",
        error=None,
    )


def confirm_clock_in(state: AppState, now: dt.datetime, result: ClockResult) -> AppState:
    tech_name = state.current_technician or ""
    entry = TimeEntry(
        shift_id=result.shift_id or synthesize_shift_id(now.date(), tech_name),
        date=now.date(),
        clock_in=now,
    )
    return replace(state, time_entries=upsert_time_entry(state.time_entries, entry))


def rollback_clock_in(state: AppState, error: Optional[str]) -> AppState:
    return replace(
        state,
        session=ClockSession.clocked_out(),
        elapsed="",
        confirmation=None,
        error=error or "Failed to clock in",
    )


# ----------------------------------------------------------------------
# Clock out
# ----------------------------------------------------------------------
def begin_clock_out(state: AppState, now: dt.datetime) -> Tuple[AppState, float]:
    """Clock out optimistically; returns the new state and the estimated hours."""
    clock_in_time = state.session.clock_in_time
    hours = hours_between(clock_in_time, now) if clock_in_time is not None else 0.0
    new_state = replace(
        state,
        session=ClockSession.clocked_out(),
        elapsed="",
        confirmation=f"Clocked out. You worked {format_hours(hours)}h today.",
        error=None,
    )
    return new_state, hours


def confirm_clock_out(state: AppState, now: dt.datetime, estimated_hours: float,
                      result: ClockResult) -> AppState:
    hours = result.hours_worked if result.hours_worked is not None else estimated_hours
    week_total = state.week_total_hours
    if week_total is not None:
        week_total += hours
    return replace(
        state,
        time_entries=close_open_entry(state.time_entries, now.date(), now, hours),
        week_total_hours=week_total,
    )


def rollback_clock_out(state: AppState, previous: ClockSession, error: Optional[str],
                       now: dt.datetime) -> AppState:
    return tick_elapsed(
        replace(state, session=previous, confirmation=None, error=error or "Failed to clock out"),
        now,
    )


def tick_elapsed(state: AppState, now: dt.datetime) -> AppState:
    session = state.session
    if session.is_clocked_in and session.clock_in_time is not None:
        return replace(state, elapsed=format_elapsed(session.clock_in_time, now))
    return replace(state, elapsed="")


# ----------------------------------------------------------------------
# Timers
# ----------------------------------------------------------------------
class ClockActionGate:
    """Debounce window for the clock button.

    With the ``timer`` policy the gate reopens a fixed delay after it was
    taken, even when the webhook has not answered yet, so a slow request can
    still be in flight when a second tap goes through. The ``completion``
    policy keeps it closed until :meth:`action_finished` is called.
    """

    def __init__(self, scheduler: Scheduler, delay_ms: int, policy: str = DEBOUNCE_BY_TIMER,
                 on_change: Optional[Callable[[bool], None]] = None) -> None:
        if policy not in (DEBOUNCE_BY_TIMER, DEBOUNCE_BY_COMPLETION):
            raise ValueError(f"Unknown debounce policy {policy!r}")
        self.scheduler = scheduler
        self.delay_ms = delay_ms
        self.policy = policy
        self.on_change = on_change
        self.locked = False
        self._handle: Optional[TimerHandle] = None

    def acquire(self) -> bool:
        """Close the gate; returns ``False`` if it was already closed."""
        if self.locked:
            logger.debug("Clock action ignored, debounce window still open")
            return False
        self._set_locked(True)
        if self.policy == DEBOUNCE_BY_TIMER:
            self._handle = self.scheduler.call_later(self.delay_ms, self.release)
        return True

    def action_finished(self) -> None:
        if self.policy == DEBOUNCE_BY_COMPLETION:
            self.release()

    def release(self) -> None:
        self._handle = None
        self._set_locked(False)

    def reset(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self.release()

    def _set_locked(self, locked: bool) -> None:
        if self.locked == locked:
            return
        self.locked = locked
        if self.on_change is not None:
            self.on_change(locked)


class ElapsedTicker:
    """Refreshes the elapsed-time text now and then every ``interval_ms``."""

    def __init__(self, scheduler: Scheduler, interval_ms: int, on_tick: Callable[[], None]) -> None:
        self.scheduler = scheduler
        self.interval_ms = interval_ms
        self.on_tick = on_tick
        self._handle: Optional[TimerHandle] = None

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        self.stop()
        self.on_tick()
        self._handle = self.scheduler.call_every(self.interval_ms, self.on_tick)

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


__all__ = [
    "ClockActionGate",
    "ElapsedTicker",
    "apply_status",
    "begin_clock_in",
    "begin_clock_out",
    "clear_technician",
    "confirm_clock_in",
    "confirm_clock_out",
    "rollback_clock_in",
    "rollback_clock_out",
    "select_technician",
    "set_technicians",
    "synthesize_shift_id",
    "tick_elapsed",
]
