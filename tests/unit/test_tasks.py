from __future__ import annotations

import signal
import threading

import pytest

from mieli.errors import ParseError, TaskFailed, TransportError
from mieli.tasks import (
    CancellationToken,
    DirectResult,
    FailureKind,
    PollFailure,
    PollInterrupted,
    PollSuccess,
    TaskPoller,
    TaskReference,
    TaskState,
    TaskStatus,
    classify_payload,
    classify_response,
    interrupt_handler,
    task_uid_of,
)


def _status(uid: int, state: str, **extra) -> TaskStatus:
    return TaskStatus.from_payload({"uid": uid, "status": state, **extra})


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class ScriptedFetch:
    """Return (or raise) one scripted item per call."""

    def __init__(self, script):
        self.script = list(script)
        self.calls: list[int] = []

    def __call__(self, uid: int) -> TaskStatus:
        self.calls.append(uid)
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class NoWaitToken(CancellationToken):
    """Token whose wait returns immediately so tests never sleep."""

    def __init__(self, cancel_after_waits: int | None = None) -> None:
        super().__init__()
        self.waits: list[float] = []
        self._cancel_after = cancel_after_waits

    def wait(self, seconds: float) -> bool:
        self.waits.append(seconds)
        if self._cancel_after is not None and len(self.waits) >= self._cancel_after:
            self.cancel()
        return self.cancelled


def test_task_state_terminal_flags():
    assert TaskState.SUCCEEDED.terminal
    assert TaskState.FAILED.terminal
    assert TaskState.CANCELED.terminal
    assert not TaskState.ENQUEUED.terminal
    assert not TaskState.PROCESSING.terminal


def test_task_uid_of_prefers_task_uid_and_ignores_non_integers():
    assert task_uid_of({"taskUid": 7, "uid": 3}) == 7
    assert task_uid_of({"uid": 3}) == 3
    assert task_uid_of({"uid": "movies"}) is None
    assert task_uid_of({"taskUid": True}) is None
    assert task_uid_of([1, 2]) is None


def test_classify_enqueued_body_is_task_reference():
    result = classify_response('{"taskUid": 12, "indexUid": "movies", "status": "enqueued"}')

    assert isinstance(result, TaskReference)
    assert result.uid == 12
    assert result.payload["indexUid"] == "movies"


def test_classify_plain_bodies_are_direct_results():
    assert classify_response('{"status": "available"}') == DirectResult({"status": "available"})
    assert classify_response("[1, 2, 3]") == DirectResult([1, 2, 3])
    assert classify_response("   ") == DirectResult(None)
    index = {"uid": "movies", "primaryKey": "id"}
    assert classify_payload(index) == DirectResult(index)


def test_classify_finished_task_body_is_direct_result():
    body = {"uid": 4, "status": "succeeded", "type": "indexCreation"}

    assert classify_payload(body) == DirectResult(body)


def test_classify_rejects_non_json_with_raw_text():
    with pytest.raises(ParseError) as excinfo:
        classify_response("<html>bad gateway</html>")

    assert excinfo.value.raw == "<html>bad gateway</html>"


def test_task_status_from_payload_validates_shape():
    status = _status(5, "failed", error={"code": "index_not_found"}, batchUid=2)

    assert status.state is TaskState.FAILED
    assert status.error == {"code": "index_not_found"}
    assert status.batch_uid == 2
    with pytest.raises(ParseError):
        TaskStatus.from_payload({"uid": 5, "status": "exploded"})
    with pytest.raises(ParseError):
        TaskStatus.from_payload({"status": "enqueued"})
    with pytest.raises(ParseError):
        TaskStatus.from_payload(["not", "a", "task"])


def test_task_status_result_prefers_result_over_details():
    assert _status(1, "succeeded", details={"a": 1}).result == {"a": 1}
    assert _status(1, "succeeded", result=[1], details={"a": 1}).result == [1]


def test_poll_enqueued_to_succeeded_fetches_three_times():
    fetch = ScriptedFetch(
        [
            _status(42, "enqueued"),
            _status(42, "processing"),
            _status(42, "succeeded", details={"indexedDocuments": 3}),
        ]
    )
    token = NoWaitToken()
    poller = TaskPoller(fetch, interval_ms=50, token=token)

    outcome = poller.poll(TaskReference(42))

    assert isinstance(outcome, PollSuccess)
    assert outcome.fetches == 3
    assert outcome.result == {"indexedDocuments": 3}
    assert fetch.calls == [42, 42, 42]
    assert token.waits == [0.05, 0.05]


def test_poll_failed_task_carries_server_error_verbatim():
    error = {"message": "Index `x` not found.", "code": "index_not_found", "type": "invalid_request"}
    fetch = ScriptedFetch([_status(7, "enqueued"), _status(7, "failed", error=error)])
    poller = TaskPoller(fetch, interval_ms=10, token=NoWaitToken())

    outcome = poller.poll(TaskReference(7))

    assert isinstance(outcome, PollFailure)
    assert outcome.kind is FailureKind.TASK_FAILED
    assert outcome.error == error
    assert isinstance(outcome.reason, TaskFailed)
    assert outcome.fetches == 2


def test_poll_canceled_task_is_reported_as_canceled():
    fetch = ScriptedFetch([_status(9, "canceled", canceledBy=10)])
    poller = TaskPoller(fetch, interval_ms=10, token=NoWaitToken())

    outcome = poller.poll(TaskReference(9))

    assert isinstance(outcome, PollFailure)
    assert outcome.kind is FailureKind.TASK_CANCELED
    assert outcome.payload["canceledBy"] == 10


def test_poll_transport_error_stops_on_that_tick():
    fetch = ScriptedFetch(
        [
            _status(3, "enqueued"),
            TransportError("http://localhost:7700/tasks/3", "connection refused"),
            _status(3, "succeeded"),
        ]
    )
    poller = TaskPoller(fetch, interval_ms=10, token=NoWaitToken())

    outcome = poller.poll(TaskReference(3))

    assert isinstance(outcome, PollFailure)
    assert outcome.kind is FailureKind.TRANSPORT_ERROR
    assert outcome.fetches == 2
    assert len(fetch.calls) == 2


def test_poll_parse_error_is_not_retried():
    fetch = ScriptedFetch([ParseError("bad", "oops")])
    poller = TaskPoller(fetch, interval_ms=10, token=NoWaitToken())

    outcome = poller.poll(TaskReference(3))

    assert isinstance(outcome, PollFailure)
    assert outcome.kind is FailureKind.PARSE_ERROR
    assert outcome.reason.raw == "oops"


def test_poll_stops_when_cancelled_during_wait():
    fetch = ScriptedFetch([_status(8, "processing")] * 5)
    token = NoWaitToken(cancel_after_waits=2)
    poller = TaskPoller(fetch, interval_ms=10, token=token)

    outcome = poller.poll(TaskReference(8))

    assert isinstance(outcome, PollInterrupted)
    assert outcome.fetches == 2
    assert outcome.reason.exit_code == 130


def test_poll_with_cancelled_token_never_fetches():
    fetch = ScriptedFetch([])
    token = CancellationToken()
    token.cancel()

    outcome = TaskPoller(fetch, interval_ms=10, token=token).poll(TaskReference(1))

    assert isinstance(outcome, PollInterrupted)
    assert outcome.fetches == 0
    assert fetch.calls == []


def test_poll_rejects_polling_the_same_task_twice():
    fetch = ScriptedFetch([_status(1, "succeeded")])
    poller = TaskPoller(fetch, interval_ms=10, token=NoWaitToken())
    poller.poll(TaskReference(1))

    with pytest.raises(RuntimeError):
        poller.poll(TaskReference(1))


def test_poll_reports_each_tick_with_elapsed_time_and_progress():
    clock = FakeClock()
    fetch = ScriptedFetch(
        [
            _status(2, "processing", batchUid=11),
            _status(2, "succeeded", batchUid=11),
        ]
    )
    ticks = []
    progress_calls = []

    def fetch_progress(batch_uid):
        progress_calls.append(batch_uid)
        return {"percentage": 50.0}

    def on_tick(status, elapsed, progress):
        ticks.append((status.state, elapsed, progress))
        clock.now += 0.5

    poller = TaskPoller(
        fetch,
        interval_ms=10,
        token=NoWaitToken(),
        on_tick=on_tick,
        fetch_progress=fetch_progress,
        clock=clock,
    )

    poller.poll(TaskReference(2))

    assert ticks == [
        (TaskState.PROCESSING, 0.0, {"percentage": 50.0}),
        (TaskState.SUCCEEDED, 0.5, None),
    ]
    assert progress_calls == [11]


def test_poll_survives_an_unavailable_batch_progress():
    fetch = ScriptedFetch(
        [
            _status(4, "processing", batchUid=9),
            _status(4, "succeeded", batchUid=9),
        ]
    )
    ticks = []

    def fetch_progress(batch_uid):
        raise ParseError("bad", "x")

    poller = TaskPoller(
        fetch,
        interval_ms=10,
        token=NoWaitToken(),
        on_tick=lambda status, elapsed, progress: ticks.append((status.state, progress)),
        fetch_progress=fetch_progress,
    )

    outcome = poller.poll(TaskReference(4))

    assert isinstance(outcome, PollSuccess)
    assert outcome.fetches == 2
    assert ticks == [(TaskState.PROCESSING, None), (TaskState.SUCCEEDED, None)]


def test_poller_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        TaskPoller(ScriptedFetch([]), interval_ms=0)


def test_cancellation_token_wait_returns_true_once_cancelled():
    token = CancellationToken()
    assert token.wait(0) is False
    token.cancel()
    assert token.cancelled
    assert token.wait(5) is True


def test_interrupt_handler_routes_sigint_to_token():
    token = CancellationToken()
    before = signal.getsignal(signal.SIGINT)

    with interrupt_handler(token):
        handler = signal.getsignal(signal.SIGINT)
        handler(signal.SIGINT, None)

    assert token.cancelled
    assert signal.getsignal(signal.SIGINT) is before


def test_interrupt_handler_is_a_no_op_off_the_main_thread():
    token = CancellationToken()
    seen = {}

    def worker():
        with interrupt_handler(token) as yielded:
            seen["token"] = yielded

    thread = threading.Thread(target=worker)
    thread.start()
    thread.join()

    assert seen["token"] is token
    assert not token.cancelled
