"""Application controller tying state, webhooks, timers and persistence together."""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import replace
from typing import Any, Callable, List, Optional

from pydantic import ValidationError

from . import ledger, session
from .api_client import ApiClient
from .config import AppConfig
from .models import AppState, TimeEntry
from .runtime import Scheduler, TaskRunner, TimerHandle
from .schemas import ActionResult, ClockResult, HistoryPayload, MileageResult, MileageSubmission, StatusPayload
from .storage import LocalStore, Snapshot
from .utils import local_now

logger = logging.getLogger(__name__)

Listener = Callable[[AppState], None]

INVALID_MILEAGE_MESSAGE = "Enter a date, a number of miles and a description"


class CrewClockController:
    """Owns the ``AppState`` and runs every user action against the webhooks.

    Each action applies its optimistic change right away, hands the remote
    call to the ``TaskRunner`` and reconciles once the result arrives. Results
    for a technician that is no longer selected are dropped.
    """

    def __init__(self, api: ApiClient, store: LocalStore, scheduler: Scheduler, runner: TaskRunner,
                 config: AppConfig, now: Callable[[], dt.datetime] = local_now) -> None:
        self.api = api
        self.store = store
        self.scheduler = scheduler
        self.runner = runner
        self.config = config
        self.now = now
        self.state = AppState()
        self._listeners: List[Listener] = []
        self._toast_handles: dict[str, TimerHandle] = {}
        self.clock_gate = session.ClockActionGate(
            scheduler,
            config.debounce_ms,
            config.debounce_policy,
            on_change=self._on_gate_change,
        )
        self.ticker = session.ElapsedTicker(scheduler, config.elapsed_refresh_ms, self._tick)
        self._ticking_since: Optional[dt.datetime] = None

    # ------------------------------------------------------------------
    # State plumbing
    # ------------------------------------------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)
        listener(self.state)
        return lambda: self._listeners.remove(listener)

    def _set_state(self, new_state: AppState) -> None:
        previous = self.state
        self.state = new_state
        if Snapshot.of(previous) != Snapshot.of(new_state):
            self.store.save_snapshot(Snapshot.of(new_state))
        self._sync_ticker()
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.state)

    def _update(self, **changes: Any) -> None:
        self._set_state(replace(self.state, **changes))

    def _sync_ticker(self) -> None:
        clock = self.state.session
        if clock.is_clocked_in:
            if not self.ticker.running or self._ticking_since != clock.clock_in_time:
                self._ticking_since = clock.clock_in_time
                self.ticker.start()
        elif self.ticker.running:
            self.ticker.stop()
            self._ticking_since = None

    def _tick(self) -> None:
        ticked = session.tick_elapsed(self.state, self.now())
        if ticked != self.state:
            self.state = ticked
            self._notify()

    def _on_gate_change(self, locked: bool) -> None:
        if self.state.clock_button_disabled != locked:
            self._update(clock_button_disabled=locked)

    def _is_current(self, tech_name: str) -> bool:
        if self.state.current_technician != tech_name:
            logger.info("Dropping result for %s, technician changed", tech_name)
            return False
        return True

    # ------------------------------------------------------------------
    # Toasts
    # ------------------------------------------------------------------
    def _cancel_dismiss(self, kind: str) -> None:
        handle = self._toast_handles.pop(kind, None)
        if handle is not None:
            handle.cancel()

    def _schedule_dismiss(self, kind: str, delay_ms: int) -> None:
        self._cancel_dismiss(kind)
        self._toast_handles[kind] = self.scheduler.call_later(delay_ms, lambda: self.dismiss(kind))

    def dismiss(self, kind: str) -> None:
        """Hide the ``confirmation`` or ``error`` toast."""
        self._cancel_dismiss(kind)
        if getattr(self.state, kind) is not None:
            self._update(**{kind: None})

    def _show_error(self, message: str) -> None:
        self._update(error=message)
        self._schedule_dismiss("error", self.config.error_toast_ms)

    # ------------------------------------------------------------------
    # Startup and technician selection
    # ------------------------------------------------------------------
    def start(self) -> None:
        snapshot = self.store.load_snapshot()
        self.state = AppState(
            current_technician=snapshot.current_technician,
            session=snapshot.session,
            time_entries=snapshot.time_entries,
            mileage_entries=snapshot.mileage_entries,
        )
        logger.info("Starting with technician %s", snapshot.current_technician or "<none>")
        self._sync_ticker()
        self.load_technicians()
        if snapshot.current_technician:
            self._load_user_data()

    def load_technicians(self) -> None:
        def done(technicians) -> None:
            self._set_state(session.set_technicians(self.state, technicians))

        self.runner.submit(self.api.fetch_technicians, done)

    def select_technician(self, name: str) -> None:
        logger.info("Technician %s selected", name)
        self._reset_timers()
        self._set_state(session.select_technician(self.state, name))
        self._load_user_data()

    def switch_technician(self) -> None:
        logger.info("Technician %s signed off this device", self.state.current_technician)
        self._reset_timers()
        self._set_state(session.clear_technician(self.state))

    def _reset_timers(self) -> None:
        self.clock_gate.reset()
        for kind in list(self._toast_handles):
            self._cancel_dismiss(kind)

    def _load_user_data(self) -> None:
        self.refresh_status()
        self.load_history()

    def refresh_status(self) -> None:
        tech_name = self.state.current_technician
        if tech_name is None:
            return

        def done(status: StatusPayload) -> None:
            if self._is_current(tech_name):
                self._set_state(session.apply_status(self.state, status, self.now()))

        self.runner.submit(lambda: self.api.check_status(tech_name), done)

    def load_history(self, days: Optional[int] = None) -> None:
        tech_name = self.state.current_technician
        if tech_name is None:
            return
        days = days or self.config.history_days

        def done(history: HistoryPayload) -> None:
            if self._is_current(tech_name):
                self._set_state(ledger.apply_history(self.state, history))

        self.runner.submit(lambda: self.api.fetch_history(tech_name, days), done)

    # ------------------------------------------------------------------
    # Remote writes
    # ------------------------------------------------------------------
    def _dispatch(self, task: Callable[[], ActionResult], on_done: Callable[[Any], None],
                  failure: ActionResult) -> None:
        """Run a remote write; ``failure`` stands in for the result if the task raises."""
        self._update(pending_actions=self.state.pending_actions + 1)

        def finish(result: ActionResult) -> None:
            self._update(pending_actions=max(0, self.state.pending_actions - 1))
            on_done(result)

        def fail(exc: BaseException) -> None:
            logger.error("Remote write failed: %s", exc)
            finish(failure)

        self.runner.submit(task, finish, on_error=fail)

    def clock_in(self) -> None:
        tech_name = self.state.current_technician
        if tech_name is None or not self.clock_gate.acquire():
            return
        now = self.now()
        self._set_state(session.begin_clock_in(self.state, now))
        self._cancel_dismiss("confirmation")

        def done(result: ClockResult) -> None:
            self.clock_gate.action_finished()
            if not self._is_current(tech_name):
                return
            if result.success:
                self._set_state(session.confirm_clock_in(self.state, now, result))
                self._schedule_dismiss("confirmation", self.config.success_toast_ms)
            else:
                logger.warning("Clock in for %s rolled back: %s", tech_name, result.error)
                self._set_state(session.rollback_clock_in(self.state, result.error))
                self._schedule_dismiss("error", self.config.error_toast_ms)

        self._dispatch(lambda: self.api.clock_in(tech_name, now), done, ClockResult(success=False))

    def clock_out(self) -> None:
        tech_name = self.state.current_technician
        if tech_name is None or not self.clock_gate.acquire():
            return
        now = self.now()
        previous = self.state.session
        new_state, estimated = session.begin_clock_out(self.state, now)
        self._set_state(new_state)
        self._cancel_dismiss("confirmation")

        def done(result: ClockResult) -> None:
            self.clock_gate.action_finished()
            if not self._is_current(tech_name):
                return
            if result.success:
                self._set_state(session.confirm_clock_out(self.state, now, estimated, result))
                self._schedule_dismiss("confirmation", self.config.success_toast_ms)
            else:
                logger.warning("Clock out for %s rolled back: %s", tech_name, result.error)
                self._set_state(session.rollback_clock_out(self.state, previous, result.error, self.now()))
                self._schedule_dismiss("error", self.config.error_toast_ms)

        self._dispatch(lambda: self.api.clock_out(tech_name, now), done, ClockResult(success=False))

    def submit_mileage(self, date: str | dt.date, miles: str | float, description: str) -> bool:
        """Validate and send a mileage entry.

        Returns ``False`` when the input was rejected locally or a submission
        is already running; the result of the remote call arrives through the
        state.
        """
        tech_name = self.state.current_technician
        if tech_name is None or self.state.mileage_submitting:
            return False
        try:
            submission = MileageSubmission(date=date, miles=miles, description=description)
        except ValidationError as exc:
            logger.info("Rejected mileage input: %s", exc)
            self._show_error(INVALID_MILEAGE_MESSAGE)
            return False

        self._update(mileage_submitting=True)

        def done(result: MileageResult) -> None:
            if not self._is_current(tech_name):
                return
            if result.success:
                self._set_state(ledger.confirm_mileage(self.state, submission, result, self.now()))
                self._schedule_dismiss("confirmation", self.config.success_toast_ms)
            else:
                logger.warning("Mileage for %s not saved: %s", tech_name, result.error)
                self._set_state(ledger.reject_mileage(self.state, result.error))
                self._schedule_dismiss("error", self.config.error_toast_ms)

        self._dispatch(lambda: self.api.submit_mileage(tech_name, submission), done, MileageResult(success=False))
        return True

    def edit_time_entry(self, entry: TimeEntry, field: str, new_value: Any, reason: str) -> bool:
        """Correct one field of a shift, optimistically.

        ``entry`` must be an entry of the current ledger; it is matched by
        identity since shifts on the same day share a ``shift_id``.
        ``clock_in``/``clock_out`` take datetimes, ``hours_worked`` a number.
        Returns ``False`` if the entry or field is unknown.
        """
        tech_name = self.state.current_technician
        if tech_name is None or not ledger.contains_entry(self.state.time_entries, entry):
            return False
        try:
            edited = ledger.edit_time_entry_field(entry, field, new_value)
        except ValueError as exc:
            self._show_error(str(exc))
            return False

        self._set_state(ledger.apply_entry_edit(self.state, entry, edited, self.now().date()))
        old_value = _wire_value(getattr(entry, field))
        new_wire_value = _wire_value(new_value)

        def done(result: ActionResult) -> None:
            if not self._is_current(tech_name):
                return
            if result.success:
                self._update(confirmation="Entry updated", error=None)
                self._schedule_dismiss("confirmation", self.config.success_toast_ms)
            else:
                restored = ledger.apply_entry_edit(self.state, edited, entry, self.now().date())
                self._set_state(replace(restored, error=result.error or "Failed to update entry"))
                self._schedule_dismiss("error", self.config.error_toast_ms)

        self._dispatch(
            lambda: self.api.edit_entry(tech_name, entry.shift_id, field, old_value, new_wire_value, reason),
            done,
            ActionResult(success=False),
        )
        return True

    # ------------------------------------------------------------------
    # Derived values for the views
    # ------------------------------------------------------------------
    def week_total(self) -> float:
        return ledger.effective_week_total(self.state, self.now().date())

    def this_week_entries(self) -> list[TimeEntry]:
        return ledger.current_week_view(self.state.time_entries, self.now().date())


def _wire_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, dt.datetime):
        return value.isoformat()
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


__all__ = ["CrewClockController", "INVALID_MILEAGE_MESSAGE"]
