"""Mieli package initialization."""

from __future__ import annotations

__version__ = "0.1.0"

from .client import ApiRequest, HttpClient, HttpResponse  # noqa: E402
from .config import ClientConfig, resolve_client_config  # noqa: E402
from .errors import MieliError  # noqa: E402
from .tasks import (  # noqa: E402
    CancellationToken,
    DirectResult,
    TaskPoller,
    TaskReference,
    TaskState,
    TaskStatus,
    classify_response,
)

__all__ = [
    "__version__",
    "ApiRequest",
    "CancellationToken",
    "ClientConfig",
    "DirectResult",
    "HttpClient",
    "HttpResponse",
    "MieliError",
    "TaskPoller",
    "TaskReference",
    "TaskState",
    "TaskStatus",
    "classify_response",
    "get_version",
    "resolve_client_config",
]


def get_version() -> str:
    """Return the current package version."""
    return __version__
