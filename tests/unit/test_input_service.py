from __future__ import annotations

import io
from pathlib import Path

import pytest

from mieli.errors import UsageError
from mieli.services import input_service


class FakeStdin(io.TextIOWrapper):
    def __init__(self, data: bytes, tty: bool = False) -> None:
        super().__init__(io.BytesIO(data), encoding="utf-8")
        self._tty = tty

    def isatty(self) -> bool:
        return self._tty


def _pipe(monkeypatch, data: bytes, tty: bool = False) -> None:
    monkeypatch.setattr("sys.stdin", FakeStdin(data, tty=tty))


def test_infer_content_type_from_extension():
    assert input_service.infer_content_type(Path("movies.csv")) == "text/csv"
    assert input_service.infer_content_type(Path("movies.NDJSON")) == "application/x-ndjson"
    assert input_service.infer_content_type(Path("movies.jsonl")) == "application/x-ndjson"
    assert input_service.infer_content_type(Path("movies.json")) == "application/json"
    assert input_service.infer_content_type(None) == "application/json"
    assert input_service.infer_content_type(Path("movies.csv"), "text/plain") == "text/plain"


def test_read_document_payload_prefers_file(tmp_path, monkeypatch):
    doc = tmp_path / "movies.json"
    doc.write_bytes(b'[{"id": 1}]')
    _pipe(monkeypatch, b"ignored")

    assert input_service.read_document_payload(doc) == b'[{"id": 1}]'


def test_read_document_payload_reads_stdin(monkeypatch):
    _pipe(monkeypatch, b'[{"id": 2}]')

    assert input_service.read_document_payload(None) == b'[{"id": 2}]'


def test_read_document_payload_requires_some_input(tmp_path, monkeypatch):
    _pipe(monkeypatch, b"", tty=True)

    with pytest.raises(UsageError):
        input_service.read_document_payload(None)
    with pytest.raises(UsageError) as excinfo:
        input_service.read_document_payload(tmp_path / "missing.json")
    assert excinfo.value.exit_code == 2


def test_read_piped_bytes_ignores_blank_input(monkeypatch):
    _pipe(monkeypatch, b"  \n")

    assert input_service.read_piped_bytes() is None


def test_read_piped_json_object_validates(monkeypatch):
    _pipe(monkeypatch, b'{"q": "alien"}')
    assert input_service.read_piped_json_object() == {"q": "alien"}

    _pipe(monkeypatch, b"[1, 2]")
    with pytest.raises(UsageError):
        input_service.read_piped_json_object()

    _pipe(monkeypatch, b"{nope")
    with pytest.raises(UsageError):
        input_service.read_piped_json_object()

    _pipe(monkeypatch, b"", tty=True)
    assert input_service.read_piped_json_object() is None
    with pytest.raises(UsageError, match="key body"):
        input_service.read_piped_json_object(required=True, missing_message="key body needed")


def test_build_search_query_terms_override_piped_q():
    query = input_service.build_search_query({"q": "old", "limit": 3}, ["alien", "covenant"])

    assert query == {"q": "alien covenant", "limit": 3}
    assert input_service.build_search_query(None, None) == {}
    assert input_service.build_search_query({"q": "kept"}, []) == {"q": "kept"}
