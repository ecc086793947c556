"""Logic helpers for reading documents and JSON bodies from files or stdin."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, BinaryIO

from ..client import JSON_CONTENT_TYPE
from ..errors import UsageError
from ..text import Messages

CSV_CONTENT_TYPE = "text/csv"
NDJSON_CONTENT_TYPE = "application/x-ndjson"
CONTENT_TYPES_BY_EXTENSION = {
    "csv": CSV_CONTENT_TYPE,
    "jsonl": NDJSON_CONTENT_TYPE,
    "ndjson": NDJSON_CONTENT_TYPE,
    "jsonlines": NDJSON_CONTENT_TYPE,
}


def infer_content_type(path: Path | None, explicit: str | None = None) -> str:
    if explicit:
        return explicit
    if path is None:
        return JSON_CONTENT_TYPE
    extension = path.suffix.lstrip(".").lower()
    return CONTENT_TYPES_BY_EXTENSION.get(extension, JSON_CONTENT_TYPE)


def _stdin() -> BinaryIO:
    return sys.stdin.buffer if hasattr(sys.stdin, "buffer") else sys.stdin  # type: ignore[return-value]


def stdin_is_piped() -> bool:
    try:
        return not sys.stdin.isatty()
    except (AttributeError, ValueError):
        return False


def read_piped_bytes() -> bytes | None:
    """Return what was piped in, or None when stdin is a terminal or empty."""
    if not stdin_is_piped():
        return None
    data = _stdin().read()
    if isinstance(data, str):
        data = data.encode("utf-8")
    return data if data.strip() else None


def read_document_payload(path: Path | None) -> bytes:
    if path is not None:
        try:
            return path.read_bytes()
        except OSError as exc:
            raise UsageError(
                Messages.ERROR_DOCUMENT_FILE.format(path=path, reason=exc.strerror or exc)
            ) from exc
    data = read_piped_bytes()
    if data is None:
        raise UsageError(Messages.ERROR_STDIN_REQUIRED)
    return data


def parse_json_object(data: bytes) -> dict[str, Any]:
    try:
        value = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise UsageError(Messages.ERROR_STDIN_JSON_INVALID.format(reason=exc)) from exc
    if not isinstance(value, dict):
        raise UsageError(Messages.ERROR_STDIN_JSON_OBJECT)
    return value


def read_piped_json_object(
    *,
    required: bool = False,
    missing_message: str | None = None,
) -> dict[str, Any] | None:
    data = read_piped_bytes()
    if data is None:
        if required:
            raise UsageError(missing_message or Messages.ERROR_STDIN_REQUIRED)
        return None
    return parse_json_object(data)


def build_search_query(piped: dict[str, Any] | None, terms: list[str] | None) -> dict[str, Any]:
    """Merge the terms given on the command line into the piped search request."""
    query = dict(piped or {})
    text = " ".join(terms or ()).strip()
    if text:
        query["q"] = text
    return query
