"""Tests for esrollup.operations: single-fire listener contract."""

from __future__ import annotations

import threading

import pytest

from esrollup.errors import JobNotFoundError, OperationCancelledError
from esrollup.operations import ActionListener, OperationRunner, PendingOperation


class _RecordingListener:
    def __init__(self) -> None:
        self.responses = []
        self.failures = []
        self.fired = threading.Event()

    def listener(self) -> ActionListener:
        return ActionListener(on_response=self._ok, on_failure=self._fail)

    def _ok(self, response) -> None:
        self.responses.append(response)
        self.fired.set()

    def _fail(self, exc) -> None:
        self.failures.append(exc)
        self.fired.set()

    @property
    def total(self) -> int:
        return len(self.responses) + len(self.failures)


@pytest.fixture
def runner():
    pool = OperationRunner(max_workers=2)
    yield pool
    pool.shutdown(wait=True)


def test_success_fires_on_response_once(runner):
    recorder = _RecordingListener()

    operation = runner.submit("op", lambda: "ok", recorder.listener())

    assert operation.result(timeout=5) == "ok"
    assert recorder.responses == ["ok"]
    assert recorder.failures == []
    assert operation.done()
    assert not operation.cancelled()


def test_failure_fires_on_failure_once(runner):
    recorder = _RecordingListener()

    def _boom():
        raise JobNotFoundError("job_1")

    operation = runner.submit("op", _boom, recorder.listener())

    with pytest.raises(JobNotFoundError):
        operation.result(timeout=5)
    assert recorder.responses == []
    assert len(recorder.failures) == 1
    assert isinstance(recorder.failures[0], JobNotFoundError)


def test_system_exit_in_call_still_fires_on_failure_once(runner):
    recorder = _RecordingListener()

    def _exit():
        raise SystemExit("worker exiting")

    operation = runner.submit("op", _exit, recorder.listener())

    with pytest.raises(SystemExit):
        operation.result(timeout=5)
    assert recorder.responses == []
    assert len(recorder.failures) == 1
    assert isinstance(recorder.failures[0], SystemExit)


def test_cancel_before_engine_responds_fires_failure_once(runner):
    recorder = _RecordingListener()
    release = threading.Event()
    started = threading.Event()
    finished = threading.Event()

    def _slow():
        started.set()
        release.wait(5)
        finished.set()
        return "late"

    operation = runner.submit("slow op", _slow, recorder.listener())
    assert started.wait(5)

    assert operation.cancel() is True
    release.set()
    assert finished.wait(5)

    with pytest.raises(OperationCancelledError):
        operation.result(timeout=5)
    assert operation.cancelled()
    assert recorder.responses == []
    assert len(recorder.failures) == 1
    assert isinstance(recorder.failures[0], OperationCancelledError)
    # The late engine answer does not produce a second callback.
    runner.shutdown(wait=True)
    assert recorder.total == 1


def test_cancel_before_start_skips_the_call():
    recorder = _RecordingListener()
    runner = OperationRunner(max_workers=1)
    gate = threading.Event()
    calls = []
    try:
        runner.submit("blocker", lambda: gate.wait(5))
        operation = runner.submit(
            "queued", lambda: calls.append("ran"), recorder.listener()
        )

        assert operation.cancel() is True
        gate.set()
    finally:
        runner.shutdown(wait=True)

    assert calls == []
    assert recorder.total == 1
    assert isinstance(recorder.failures[0], OperationCancelledError)


def test_cancel_after_completion_is_a_no_op(runner):
    recorder = _RecordingListener()
    operation = runner.submit("op", lambda: 1, recorder.listener())
    operation.result(timeout=5)

    assert operation.cancel() is False
    assert recorder.responses == [1]
    assert recorder.failures == []


def test_raising_response_callback_does_not_trigger_failure(runner):
    failures = []

    def _explode(_):
        raise RuntimeError("listener bug")

    operation = runner.submit(
        "op",
        lambda: "ok",
        ActionListener(on_response=_explode, on_failure=failures.append),
    )

    assert operation.result(timeout=5) == "ok"
    assert failures == []


def test_submit_after_shutdown_fails_through_listener():
    recorder = _RecordingListener()
    runner = OperationRunner(max_workers=1)
    runner.shutdown(wait=True)

    operation = runner.submit("op", lambda: "never", recorder.listener())

    assert recorder.total == 1
    assert isinstance(recorder.failures[0], RuntimeError)
    assert operation.done()


def test_result_times_out_while_pending():
    operation = PendingOperation("never settled")

    with pytest.raises(TimeoutError):
        operation.result(timeout=0.01)
    assert not operation.done()


def test_default_listener_ignores_outcome(runner):
    operation = runner.submit("op", lambda: "ok")

    assert operation.result(timeout=5) == "ok"
