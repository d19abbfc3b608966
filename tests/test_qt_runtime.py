from __future__ import annotations

from crewclock.widgets.runtime import QtTaskRunner, _Job, _PendingTask


def test_failed_job_releases_pending_task_and_reports_error() -> None:
    runner = QtTaskRunner()
    results: list = []
    errors: list = []
    pending = _PendingTask(results.append, errors.append, runner._pending.discard)
    runner._pending.add(pending)

    def broken():
        raise RuntimeError("socket closed")

    _Job(broken, pending).run()

    assert results == []
    assert [str(exc) for exc in errors] == ["socket closed"]
    assert pending not in runner._pending


def test_finished_job_delivers_result() -> None:
    runner = QtTaskRunner()
    results: list = []
    pending = _PendingTask(results.append, None, runner._pending.discard)
    runner._pending.add(pending)

    _Job(lambda: 42, pending).run()

    assert results == [42]
    assert pending not in runner._pending
