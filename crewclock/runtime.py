"""Timer and task-running interfaces used by the controller.

The controller never sleeps or spawns threads itself. It asks a
``Scheduler`` for one-shot and repeating callbacks and hands remote calls to
a ``TaskRunner``; the Qt widgets provide implementations backed by
``QTimer`` and ``QThreadPool``.
"""

from __future__ import annotations

from typing import Callable, Optional, Protocol, TypeVar

T = TypeVar("T")

ErrorHandler = Callable[[BaseException], None]


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        ...

    def call_every(self, interval_ms: int, callback: Callable[[], None]) -> TimerHandle:
        ...


class TaskRunner(Protocol):
    def submit(self, task: Callable[[], T], on_done: Callable[[T], None],
               on_error: Optional[ErrorHandler] = None) -> None:
        """Run ``task``; exactly one of ``on_done`` or ``on_error`` is called once it ends."""


class ImmediateRunner:
    """Runs the task inline and hands its result straight to ``on_done``.

    Without an ``on_error`` handler an exception from the task propagates.
    """

    def submit(self, task: Callable[[], T], on_done: Callable[[T], None],
               on_error: Optional[ErrorHandler] = None) -> None:
        try:
            result = task()
        except Exception as exc:
            if on_error is None:
                raise
            on_error(exc)
            return
        on_done(result)


__all__ = ["ErrorHandler", "ImmediateRunner", "Scheduler", "TaskRunner", "TimerHandle"]
