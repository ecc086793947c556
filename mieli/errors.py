"""Exceptions raised by the mieli client and their CLI exit codes."""

from __future__ import annotations

from collections.abc import Mapping

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_TRANSPORT = 3
EXIT_PARSE = 4
EXIT_INTERRUPTED = 130


class MieliError(Exception):
    """Base class for every error surfaced by mieli."""

    exit_code = EXIT_FAILURE


class UsageError(MieliError, ValueError):
    """Raised when the local input of a command is unusable."""

    exit_code = EXIT_USAGE


class ParseError(MieliError):
    """The server answered with a body that is not the expected JSON.

    The raw text is kept so it can be shown verbatim.
    """

    exit_code = EXIT_PARSE

    def __init__(self, message: str, raw: str) -> None:
        super().__init__(message)
        self.raw = raw


class TransportError(MieliError):
    """The request never produced an HTTP response."""

    exit_code = EXIT_TRANSPORT

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class TaskFailed(MieliError):
    """A task reached the failed or canceled state."""

    def __init__(
        self,
        uid: int,
        state: str,
        error: Mapping[str, object] | None,
    ) -> None:
        super().__init__(f"task {uid} {state}")
        self.uid = uid
        self.state = state
        self.error = error


class Interrupted(MieliError):
    """The user interrupted the command before the server answered it."""

    exit_code = EXIT_INTERRUPTED
