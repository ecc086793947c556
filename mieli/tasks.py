"""Asynchronous task model and the poller that waits for tasks to finish."""

from __future__ import annotations

import json
import logging
import signal
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from collections.abc import Mapping
from typing import Any, Callable, Iterator, Union

from .config import ensure_valid_interval
from .errors import Interrupted, MieliError, ParseError, TaskFailed, TransportError
from .text import Messages

logger = logging.getLogger(__name__)


class TaskState(str, Enum):
    ENQUEUED = "enqueued"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"

    @property
    def terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset({TaskState.SUCCEEDED, TaskState.FAILED, TaskState.CANCELED})
_TERMINAL_VALUES = frozenset(state.value for state in TERMINAL_STATES)


def _as_uid(value: object) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def task_uid_of(payload: object) -> int | None:
    """Return the task id of an accepted-task body, if it carries one."""

    if not isinstance(payload, Mapping):
        return None
    uid = _as_uid(payload.get("taskUid"))
    if uid is None:
        uid = _as_uid(payload.get("uid"))
    return uid


@dataclass(frozen=True, slots=True)
class TaskReference:
    """A task the server accepted but has not finished yet."""

    uid: int
    payload: Mapping[str, Any] = field(default_factory=dict)
    submitted_at: float = field(default_factory=time.monotonic, compare=False)


@dataclass(frozen=True, slots=True)
class DirectResult:
    """A body that needs no waiting: rendered as is."""

    payload: Any = None


@dataclass(frozen=True, slots=True)
class TaskStatus:
    uid: int
    state: TaskState
    payload: Mapping[str, Any]
    error: Mapping[str, Any] | None = None

    @property
    def terminal(self) -> bool:
        return self.state.terminal

    @property
    def result(self) -> Any:
        if "result" in self.payload:
            return self.payload["result"]
        return self.payload.get("details")

    @property
    def batch_uid(self) -> int | None:
        return _as_uid(self.payload.get("batchUid"))

    @classmethod
    def from_payload(cls, payload: object, *, raw: str = "") -> TaskStatus:
        if not isinstance(payload, Mapping):
            raw_text = raw or json.dumps(payload)
            raise ParseError(Messages.ERROR_PARSE.format(raw=raw_text), raw_text)
        uid = task_uid_of(payload)
        status = payload.get("status")
        try:
            state = TaskState(status)
        except ValueError as exc:
            raw_text = raw or json.dumps(payload)
            raise ParseError(
                Messages.ERROR_TASK_STATUS_INVALID.format(uid=uid, status=status),
                raw_text,
            ) from exc
        if uid is None:
            raw_text = raw or json.dumps(payload)
            raise ParseError(Messages.ERROR_PARSE.format(raw=raw_text), raw_text)
        error = payload.get("error")
        return cls(
            uid=uid,
            state=state,
            payload=dict(payload),
            error=dict(error) if isinstance(error, Mapping) else None,
        )


def classify_payload(payload: Any) -> TaskReference | DirectResult:
    """Tell an accepted task apart from a body that is already the answer."""

    uid = task_uid_of(payload)
    if uid is None:
        return DirectResult(payload)
    if payload.get("status") in _TERMINAL_VALUES:
        return DirectResult(payload)
    return TaskReference(uid=uid, payload=dict(payload))


def classify_response(body: str) -> TaskReference | DirectResult:
    if not body.strip():
        return DirectResult(None)
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as exc:
        raise ParseError(Messages.ERROR_PARSE.format(raw=body), body) from exc
    return classify_payload(payload)


class FailureKind(str, Enum):
    TASK_FAILED = "task_failed"
    TASK_CANCELED = "task_canceled"
    TRANSPORT_ERROR = "transport_error"
    PARSE_ERROR = "parse_error"


@dataclass(frozen=True, slots=True)
class PollSuccess:
    status: TaskStatus
    fetches: int

    @property
    def payload(self) -> Mapping[str, Any]:
        return self.status.payload

    @property
    def result(self) -> Any:
        return self.status.result


@dataclass(frozen=True, slots=True)
class PollFailure:
    kind: FailureKind
    reason: MieliError
    fetches: int
    status: TaskStatus | None = None

    @property
    def error(self) -> Mapping[str, Any] | None:
        """The error object exactly as the server reported it."""
        return self.status.error if self.status is not None else None

    @property
    def payload(self) -> Mapping[str, Any] | None:
        return self.status.payload if self.status is not None else None


@dataclass(frozen=True, slots=True)
class PollInterrupted:
    reference: TaskReference
    fetches: int
    reason: Interrupted = field(default_factory=Interrupted)


PollOutcome = Union[PollSuccess, PollFailure, PollInterrupted]

TickCallback = Callable[[TaskStatus, float, Mapping[str, Any] | None], None]


class CancellationToken:
    """Flag shared between the SIGINT handler and the poll loop."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; return True as soon as the token is cancelled."""
        return self._event.wait(seconds)


@contextmanager
def interrupt_handler(token: CancellationToken) -> Iterator[CancellationToken]:
    """Route SIGINT to ``token`` for the duration of the block."""

    if threading.current_thread() is not threading.main_thread():
        yield token
        return

    def _handle(signum, frame) -> None:
        logger.info("Interrupt received, stopping the poll loop")
        token.cancel()

    previous = signal.signal(signal.SIGINT, _handle)
    try:
        yield token
    finally:
        signal.signal(signal.SIGINT, previous)


class TaskPoller:
    """Drive a TaskReference to a terminal TaskStatus.

    Each tick fetches the status once. A terminal state ends the session,
    otherwise the poller waits the fixed interval on the cancellation token
    and ticks again. Transport and parse errors end the session on the tick
    they happen; nothing is retried.
    """

    def __init__(
        self,
        fetch_status: Callable[[int], TaskStatus],
        *,
        interval_ms: int,
        token: CancellationToken | None = None,
        on_tick: TickCallback | None = None,
        fetch_progress: Callable[[int], Mapping[str, Any] | None] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._fetch_status = fetch_status
        self._interval = ensure_valid_interval(interval_ms) / 1000.0
        self._token = token or CancellationToken()
        self._on_tick = on_tick
        self._fetch_progress = fetch_progress
        self._clock = clock
        self._consumed: set[int] = set()

    def poll(self, reference: TaskReference) -> PollOutcome:
        if reference.uid in self._consumed:
            raise RuntimeError(f"task {reference.uid} has already been polled")
        self._consumed.add(reference.uid)

        started = self._clock()
        fetches = 0
        last_state: TaskState | None = None
        while True:
            if self._token.cancelled:
                return PollInterrupted(reference=reference, fetches=fetches)
            fetches += 1
            try:
                status = self._fetch_status(reference.uid)
            except TransportError as exc:
                return PollFailure(FailureKind.TRANSPORT_ERROR, exc, fetches)
            except ParseError as exc:
                return PollFailure(FailureKind.PARSE_ERROR, exc, fetches)
            progress = self._progress_for(status)
            if self._token.cancelled:
                return PollInterrupted(reference=reference, fetches=fetches)

            if status.state is not last_state:
                logger.info("Task %s is %s", status.uid, status.state.value)
                last_state = status.state
            if self._on_tick is not None:
                self._on_tick(status, self._clock() - started, progress)
            if status.terminal:
                return self._finish(status, fetches)
            if self._token.wait(self._interval):
                return PollInterrupted(reference=reference, fetches=fetches)

    def _progress_for(self, status: TaskStatus) -> Mapping[str, Any] | None:
        if self._fetch_progress is None or status.terminal:
            return None
        batch_uid = status.batch_uid
        if batch_uid is None:
            return None
        try:
            return self._fetch_progress(batch_uid)
        except MieliError as exc:
            logger.info("Progress of batch %s is unavailable: %s", batch_uid, exc)
            return None

    @staticmethod
    def _finish(status: TaskStatus, fetches: int) -> PollOutcome:
        if status.state is TaskState.SUCCEEDED:
            return PollSuccess(status=status, fetches=fetches)
        kind = (
            FailureKind.TASK_CANCELED
            if status.state is TaskState.CANCELED
            else FailureKind.TASK_FAILED
        )
        reason = TaskFailed(status.uid, status.state.value, status.error)
        return PollFailure(kind, reason, fetches, status=status)
