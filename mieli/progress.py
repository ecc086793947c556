"""Terminal rendering of task polling progress."""

from __future__ import annotations

from contextlib import contextmanager
from collections.abc import Mapping
from typing import Any, Iterator

from rich.console import Console
from rich.status import Status

from .tasks import TaskReference, TaskState, TaskStatus
from .text import Messages, Styles


class ProgressPresenter:
    """Show a single updating status line while a task is polled.

    Whether the output is interactive is decided once, when the presenter is
    built. When it is not, nothing is rendered until the final payload.
    """

    def __init__(self, console: Console, *, interactive: bool | None = None) -> None:
        self.console = console
        self.interactive = console.is_terminal if interactive is None else interactive
        self._status: Status | None = None

    @contextmanager
    def session(self, reference: TaskReference) -> Iterator[ProgressPresenter]:
        if not self.interactive:
            yield self
            return
        initial = reference.payload.get("status") or TaskState.ENQUEUED.value
        self._status = self.console.status(
            describe_tick(reference.uid, str(initial), 0.0),
            spinner="dots",
        )
        try:
            with self._status:
                yield self
        finally:
            self._status = None

    def tick(
        self,
        status: TaskStatus,
        elapsed: float,
        progress: Mapping[str, Any] | None = None,
    ) -> None:
        if self._status is None:
            return
        self._status.update(describe_tick(status.uid, status.state.value, elapsed, progress))


def describe_tick(
    uid: int,
    state: str,
    elapsed: float,
    progress: Mapping[str, Any] | None = None,
) -> str:
    line = f"[{Styles.TITLE}]" + Messages.INFO_TASK_TICK.format(
        uid=uid, state=state, elapsed=elapsed
    ) + f"[/{Styles.TITLE}]"
    detail = format_progress(progress)
    if detail:
        line = f"{line} [{Styles.INFO}]{detail}[/{Styles.INFO}]"
    return line


def format_progress(progress: Mapping[str, Any] | None) -> str | None:
    if not progress:
        return None
    steps = progress.get("steps")
    step_name = None
    if isinstance(steps, list) and steps:
        last = steps[-1]
        if isinstance(last, Mapping):
            step_name = last.get("currentStep")
    percentage = progress.get("percentage")
    if not isinstance(percentage, (int, float)) or isinstance(percentage, bool):
        return str(step_name) if step_name else None
    return Messages.INFO_TASK_PROGRESS.format(
        step=step_name or "progress",
        percentage=float(percentage),
    )
