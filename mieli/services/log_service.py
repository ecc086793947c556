"""Logic helpers for the `mieli log` commands."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from ..client import HttpClient, HttpResponse
from ..errors import TransportError
from ..text import Messages
from .request_service import remove_log_stream

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LogStreamResult:
    response: HttpResponse
    interrupted: bool = False
    cleanup_response: HttpResponse | None = None


def stream_logs(
    client: HttpClient,
    *,
    mode: str,
    target: str,
    write: Callable[[bytes], None],
) -> LogStreamResult:
    """Copy the server log stream to ``write`` until EOF or Ctrl-C.

    The listener is always removed afterwards so the server stops buffering
    logs for a client that is gone.
    """

    head, chunks = client.stream(
        "POST",
        "/logs/stream",
        json_body={"mode": mode, "target": target},
    )
    if not head.ok:
        return LogStreamResult(response=head)

    interrupted = False
    try:
        for chunk in chunks:
            write(chunk)
    except KeyboardInterrupt:
        interrupted = True
    finally:
        try:
            cleanup = client.send(remove_log_stream())
        except TransportError as exc:
            logger.warning("Could not remove the log listener: %s", exc)
            cleanup = None
        else:
            if cleanup.ok:
                logger.info(Messages.INFO_LOG_LISTENER_REMOVED)
            else:
                logger.warning("Removing the log listener answered HTTP %s", cleanup.status)
    return LogStreamResult(response=head, interrupted=interrupted, cleanup_response=cleanup)
