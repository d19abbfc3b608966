"""Qt implementations of the controller's scheduler and task runner."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from PySide6.QtCore import QObject, QRunnable, QThreadPool, QTimer, Signal, Slot

from ..runtime import ErrorHandler

logger = logging.getLogger(__name__)


class QtTimerHandle:
    def __init__(self, timer: QTimer) -> None:
        self._timer: Optional[QTimer] = timer

    def cancel(self) -> None:
        if self._timer is None:
            return
        self._timer.stop()
        self._timer.deleteLater()
        self._timer = None

    def _fired(self) -> None:
        # Single-shot timers are cleaned up once they fire.
        if self._timer is not None and self._timer.isSingleShot():
            self._timer.deleteLater()
            self._timer = None


class QtScheduler(QObject):
    """Timers that run their callbacks on the UI thread."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> QtTimerHandle:
        return self._start(delay_ms, callback, single_shot=True)

    def call_every(self, interval_ms: int, callback: Callable[[], None]) -> QtTimerHandle:
        return self._start(interval_ms, callback, single_shot=False)

    def _start(self, interval_ms: int, callback: Callable[[], None], *, single_shot: bool) -> QtTimerHandle:
        timer = QTimer(self)
        timer.setSingleShot(single_shot)
        handle = QtTimerHandle(timer)

        def fire() -> None:
            handle._fired()
            callback()

        timer.timeout.connect(fire)
        timer.start(interval_ms)
        return handle


class _PendingTask(QObject):
    finished = Signal(object)
    failed = Signal(object)

    def __init__(self, on_done: Callable[[object], None], on_error: Optional[ErrorHandler],
                 release: Callable[["_PendingTask"], None]) -> None:
        super().__init__()
        self._on_done = on_done
        self._on_error = on_error
        self._release = release
        # The object lives on the UI thread, so emits from the pool are queued here.
        self.finished.connect(self._deliver)
        self.failed.connect(self._fail)

    @Slot(object)
    def _deliver(self, result: object) -> None:
        self._release(self)
        self._on_done(result)

    @Slot(object)
    def _fail(self, exc: object) -> None:
        self._release(self)
        if self._on_error is not None:
            self._on_error(exc)


class _Job(QRunnable):
    def __init__(self, task: Callable[[], object], pending: _PendingTask) -> None:
        super().__init__()
        self.task = task
        self.pending = pending

    def run(self) -> None:
        try:
            result = self.task()
        except Exception as exc:
            logger.exception("Background task failed")
            self.pending.failed.emit(exc)
            return
        self.pending.finished.emit(result)


class QtTaskRunner:
    """Runs webhook calls on the global thread pool and reports back on the UI thread."""

    def __init__(self, pool: Optional[QThreadPool] = None) -> None:
        self.pool = pool or QThreadPool.globalInstance()
        self._pending: set[_PendingTask] = set()

    def submit(self, task: Callable[[], object], on_done: Callable[[object], None],
               on_error: Optional[ErrorHandler] = None) -> None:
        pending = _PendingTask(on_done, on_error, self._pending.discard)
        self._pending.add(pending)
        self.pool.start(_Job(task, pending))


__all__ = ["QtScheduler", "QtTaskRunner", "QtTimerHandle"]
