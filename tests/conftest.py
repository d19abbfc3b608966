from __future__ import annotations

import datetime as dt
import json
from pathlib import Path
from typing import Any, Callable, Generator, Optional

import pytest
import requests

from crewclock.config import AppConfig
from crewclock.controller import CrewClockController
from crewclock.models import Technician
from crewclock.runtime import ImmediateRunner
from crewclock.schemas import ActionResult, ClockResult, HistoryPayload, MileageResult, StatusPayload
from crewclock.storage import LocalStore

EASTERN = dt.timezone(dt.timedelta(hours=-5))
# Monday; the week started on Sunday 2024-01-07.
BASE_TIME = dt.datetime(2024, 1, 8, 9, 0, tzinfo=EASTERN)


class FakeTimer:
    def __init__(self, due: int, interval: Optional[int], callback: Callable[[], None]) -> None:
        self.due = due
        self.interval = interval
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Scheduler driven by :meth:`advance` instead of the wall clock."""

    def __init__(self) -> None:
        self.now_ms = 0
        self.timers: list[FakeTimer] = []

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(self.now_ms + delay_ms, None, callback)
        self.timers.append(timer)
        return timer

    def call_every(self, interval_ms: int, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(self.now_ms + interval_ms, interval_ms, callback)
        self.timers.append(timer)
        return timer

    @property
    def active(self) -> list[FakeTimer]:
        return [timer for timer in self.timers if not timer.cancelled]

    def advance(self, ms: int) -> None:
        target = self.now_ms + ms
        while True:
            due = [timer for timer in self.active if timer.due <= target]
            if not due:
                break
            timer = min(due, key=lambda item: item.due)
            self.now_ms = timer.due
            if timer.interval is None:
                timer.cancelled = True
            else:
                timer.due += timer.interval
            timer.callback()
        self.now_ms = target


class FakeClock:
    """Wall clock that follows the fake scheduler, plus manual jumps."""

    def __init__(self, scheduler: FakeScheduler, start: dt.datetime = BASE_TIME) -> None:
        self.scheduler = scheduler
        self.start = start
        self.offset = dt.timedelta()

    def __call__(self) -> dt.datetime:
        return self.start + self.offset + dt.timedelta(milliseconds=self.scheduler.now_ms)

    def jump(self, **kwargs: float) -> None:
        self.offset += dt.timedelta(**kwargs)


class DeferredRunner:
    """Keeps submitted tasks until the test decides to complete them."""

    def __init__(self) -> None:
        self.queue: list[tuple[Callable[[], Any], Callable[[Any], None], Optional[Callable]]] = []

    def submit(self, task: Callable[[], Any], on_done: Callable[[Any], None],
               on_error: Optional[Callable[[BaseException], None]] = None) -> None:
        self.queue.append((task, on_done, on_error))

    def run_next(self) -> None:
        task, on_done, on_error = self.queue.pop(0)
        try:
            result = task()
        except Exception as exc:
            if on_error is None:
                raise
            on_error(exc)
            return
        on_done(result)

    def run_all(self) -> None:
        while self.queue:
            self.run_next()


class FakeApi:
    """Stands in for ``ApiClient`` and records every call."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.technicians = [Technician(name="Bri"), Technician(name="Nick")]
        self.status = StatusPayload(clocked_in=False)
        self.history = HistoryPayload()
        self.clock_results: list[ClockResult] = []
        self.mileage_result = MileageResult(success=True, entry_id="mileage-srv-1")
        self.edit_result = ActionResult(success=True)

    def _next_clock(self) -> ClockResult:
        if self.clock_results:
            return self.clock_results.pop(0)
        return ClockResult(success=True)

    def fetch_technicians(self) -> list[Technician]:
        self.calls.append(("technicians",))
        return list(self.technicians)

    def check_status(self, tech_name: str) -> StatusPayload:
        self.calls.append(("status", tech_name))
        return self.status

    def fetch_history(self, tech_name: str, days: int = 14) -> HistoryPayload:
        self.calls.append(("history", tech_name, days))
        return self.history

    def clock_in(self, tech_name: str, timestamp: dt.datetime) -> ClockResult:
        self.calls.append(("clock_in", tech_name, timestamp))
        return self._next_clock()

    def clock_out(self, tech_name: str, timestamp: dt.datetime) -> ClockResult:
        self.calls.append(("clock_out", tech_name, timestamp))
        return self._next_clock()

    def submit_mileage(self, tech_name: str, submission) -> MileageResult:
        self.calls.append(("mileage", tech_name, submission))
        return self.mileage_result

    def edit_entry(self, tech_name, shift_id, field, old_value, new_value, reason) -> ActionResult:
        self.calls.append(("edit", tech_name, shift_id, field, old_value, new_value, reason))
        return self.edit_result

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)


def make_response(status: int = 200, body: Any = "", content_type: Optional[str] = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    if isinstance(body, str):
        response._content = body.encode("utf-8")
        response.headers["Content-Type"] = content_type or "text/plain"
    else:
        response._content = json.dumps(body).encode("utf-8")
        response.headers["Content-Type"] = content_type or "application/json"
    response.encoding = "utf-8"
    return response


@pytest.fixture()
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture()
def clock(scheduler: FakeScheduler) -> FakeClock:
    return FakeClock(scheduler)


@pytest.fixture()
def fake_api() -> FakeApi:
    return FakeApi()


@pytest.fixture()
def store(tmp_path: Path) -> LocalStore:
    return LocalStore.at_path(tmp_path / "state.db")


@pytest.fixture()
def config(tmp_path: Path) -> AppConfig:
    return AppConfig(state_db_path=tmp_path / "state.db")


@pytest.fixture()
def make_controller(fake_api: FakeApi, store: LocalStore, scheduler: FakeScheduler, clock: FakeClock,
                    config: AppConfig) -> Generator[Callable[..., CrewClockController], None, None]:
    def factory(runner=None, **config_overrides: Any) -> CrewClockController:
        cfg = AppConfig(**{**{"state_db_path": config.state_db_path}, **config_overrides})
        return CrewClockController(fake_api, store, scheduler, runner or ImmediateRunner(), cfg, now=clock)

    yield factory


@pytest.fixture()
def controller(make_controller) -> CrewClockController:
    ctrl = make_controller()
    ctrl.start()
    ctrl.select_technician("Bri")
    return ctrl
