"""Logic helpers that submit a request and wait for the task it enqueues."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Union

from ..client import ApiRequest, HttpClient, HttpResponse
from ..errors import EXIT_FAILURE, EXIT_OK, Interrupted
from ..progress import ProgressPresenter
from ..tasks import (
    CancellationToken,
    DirectResult,
    PollFailure,
    PollInterrupted,
    PollOutcome,
    PollSuccess,
    TaskPoller,
    TaskReference,
    classify_response,
    interrupt_handler,
)
from ..text import Messages

logger = logging.getLogger(__name__)

FinalResult = Union[DirectResult, TaskReference, PollSuccess, PollFailure, PollInterrupted]


@dataclass(frozen=True, slots=True)
class DispatchResult:
    response: HttpResponse
    result: FinalResult

    @property
    def payload(self) -> Any:
        """The JSON to print on stdout, if any."""
        result = self.result
        if isinstance(result, DirectResult):
            return result.payload
        if isinstance(result, TaskReference):
            return result.payload
        if isinstance(result, PollSuccess):
            return result.payload
        if isinstance(result, PollFailure):
            return result.payload
        return None

    @property
    def exit_code(self) -> int:
        result = self.result
        if isinstance(result, DirectResult):
            return EXIT_OK if self.response.ok else EXIT_FAILURE
        if isinstance(result, (TaskReference, PollSuccess)):
            return EXIT_OK
        return result.reason.exit_code


def wait_for_task(
    client: HttpClient,
    reference: TaskReference,
    *,
    presenter: ProgressPresenter | None = None,
    token: CancellationToken | None = None,
) -> PollOutcome:
    """Poll ``reference`` to completion with SIGINT routed to ``token``."""

    token = token or CancellationToken()
    interactive = presenter is not None and presenter.interactive
    poller = TaskPoller(
        client.fetch_status,
        interval_ms=client.config.interval_ms,
        token=token,
        on_tick=presenter.tick if presenter is not None else None,
        fetch_progress=client.fetch_batch_progress if interactive else None,
    )
    with interrupt_handler(token):
        if presenter is None:
            return poller.poll(reference)
        with presenter.session(reference):
            return poller.poll(reference)


def submit_and_maybe_wait(
    client: HttpClient,
    api_request: ApiRequest,
    *,
    presenter: ProgressPresenter | None = None,
    token: CancellationToken | None = None,
) -> DispatchResult:
    """Send ``api_request`` and, unless in async mode, wait for its task.

    Transport and parse errors on submission propagate as exceptions; errors
    while waiting come back as a PollFailure or PollInterrupted result.
    Ctrl-C during submission raises KeyboardInterrupt as usual.
    """

    response = client.send(api_request)
    classified = (
        DirectResult(None) if response.no_content else classify_response(response.body)
    )
    if isinstance(classified, DirectResult):
        if token is not None and token.cancelled:
            raise Interrupted(Messages.ERROR_INTERRUPTED)
        return DispatchResult(response, classified)
    if client.config.async_mode:
        logger.info("Task %s enqueued, not waiting for it", classified.uid)
        return DispatchResult(response, classified)
    outcome = wait_for_task(client, classified, presenter=presenter, token=token)
    return DispatchResult(response, outcome)
