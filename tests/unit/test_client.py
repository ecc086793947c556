from __future__ import annotations

import io
import json
from urllib import error as urlerror

import pytest

from mieli.client import (
    ApiRequest,
    HttpClient,
    HttpResponse,
    build_query,
    encode_path,
)
from mieli.config import ClientConfig
from mieli.errors import ParseError, TransportError
from mieli.tasks import TaskState


class FakeHandle:
    def __init__(self, status=200, body=b"", reason="OK", headers=None, chunks=None):
        self.status = status
        self.reason = reason
        self.headers = headers or {"Content-Type": "application/json"}
        self._body = body
        self._chunks = list(chunks or [])
        self.closed = False

    def read(self):
        return self._body

    def read1(self, size):
        return self._chunks.pop(0) if self._chunks else b""

    def getcode(self):
        return self.status

    def close(self):
        self.closed = True


class FakeOpener:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, req):
        self.requests.append(req)
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def _http_error(url, status, body):
    return urlerror.HTTPError(url, status, "Error", {"Content-Type": "application/json"}, io.BytesIO(body))


def test_encode_path_quotes_each_segment():
    assert encode_path("indexes", "my index", "documents", "a/b") == (
        "/indexes/my%20index/documents/a%2Fb"
    )
    assert encode_path("tasks", 12) == "/tasks/12"


def test_build_query_skips_empty_values_and_joins_lists():
    query = build_query(
        {"limit": 10, "offset": None, "fields": ["title", "id"], "reverse": True, "empty": []}
    )

    assert query == "?limit=10&fields=title,id&reverse=true"
    assert build_query({}) == ""
    assert build_query({"offset": None}) == ""


def test_request_sends_auth_custom_headers_and_user_agent():
    opener = FakeOpener(FakeHandle(body=b'{"status": "available"}'))
    config = ClientConfig(
        addr="http://meili:7700",
        api_key="secret",
        custom_headers=(("X-Tenant", "acme"),),
        user_agent="mieli/test",
    )
    client = HttpClient(config, opener=opener)

    response = client.request("GET", "/health")

    req = opener.requests[0]
    assert req.full_url == "http://meili:7700/health"
    assert req.get_header("Authorization") == "Bearer secret"
    assert req.get_header("X-tenant") == "acme"
    assert req.get_header("User-agent") == "mieli/test"
    assert response.ok
    assert response.json() == {"status": "available"}


def test_request_without_key_sends_no_authorization():
    opener = FakeOpener(FakeHandle(body=b"{}"))
    HttpClient(ClientConfig(), opener=opener).request("GET", "/version")

    assert opener.requests[0].get_header("Authorization") is None


def test_request_encodes_json_body_with_content_type():
    opener = FakeOpener(FakeHandle(status=202, body=b'{"taskUid": 1}'))
    client = HttpClient(ClientConfig(), opener=opener)

    client.request("POST", "/indexes", json_body={"uid": "movies"})

    req = opener.requests[0]
    assert req.get_method() == "POST"
    assert json.loads(req.data) == {"uid": "movies"}
    assert req.get_header("Content-type") == "application/json"


def test_http_error_status_is_returned_as_response():
    body = b'{"message": "Index `x` not found.", "code": "index_not_found"}'
    opener = FakeOpener(_http_error("http://localhost:7700/indexes/x", 404, body))
    client = HttpClient(ClientConfig(), opener=opener)

    response = client.request("GET", "/indexes/x")

    assert response.status == 404
    assert not response.ok
    assert response.json()["code"] == "index_not_found"


def test_unreachable_server_raises_transport_error():
    opener = FakeOpener(urlerror.URLError("connection refused"))
    client = HttpClient(ClientConfig(), opener=opener)

    with pytest.raises(TransportError) as excinfo:
        client.request("GET", "/health")

    assert excinfo.value.url == "http://localhost:7700/health"
    assert "connection refused" in excinfo.value.reason
    assert excinfo.value.exit_code == 3


def test_send_retries_with_post_on_405_when_allowed():
    opener = FakeOpener(
        _http_error("http://localhost:7700/indexes/movies", 405, b""),
        FakeHandle(status=202, body=b'{"taskUid": 3}'),
    )
    client = HttpClient(ClientConfig(), opener=opener)
    api_request = ApiRequest(
        "PATCH",
        "/indexes/movies",
        json_body={"primaryKey": "id"},
        retry_as_post_on_405=True,
    )

    response = client.send(api_request)

    assert [req.get_method() for req in opener.requests] == ["PATCH", "POST"]
    assert response.status == 202


def test_send_does_not_retry_without_flag():
    opener = FakeOpener(_http_error("http://localhost:7700/x", 405, b""))
    response = HttpClient(ClientConfig(), opener=opener).send(ApiRequest("PATCH", "/x"))

    assert response.status == 405
    assert len(opener.requests) == 1


def test_fetch_status_parses_task_body():
    body = json.dumps({"uid": 5, "status": "processing", "batchUid": 1}).encode()
    opener = FakeOpener(FakeHandle(body=body))

    status = HttpClient(ClientConfig(), opener=opener).fetch_status(5)

    assert opener.requests[0].full_url.endswith("/tasks/5")
    assert status.state is TaskState.PROCESSING
    assert status.batch_uid == 1


def test_fetch_status_rejects_non_json():
    opener = FakeOpener(FakeHandle(body=b"not json"))

    with pytest.raises(ParseError):
        HttpClient(ClientConfig(), opener=opener).fetch_status(5)


def test_fetch_batch_progress_returns_progress_mapping():
    body = json.dumps({"uid": 1, "progress": {"percentage": 40.0}}).encode()
    opener = FakeOpener(FakeHandle(body=body), FakeHandle(body=b'{"uid": 2, "progress": null}'))
    client = HttpClient(ClientConfig(), opener=opener)

    assert client.fetch_batch_progress(1) == {"percentage": 40.0}
    assert client.fetch_batch_progress(2) is None


def test_stream_yields_chunks_and_closes_handle():
    handle = FakeHandle(chunks=[b"line 1\n", b"line 2\n"])
    opener = FakeOpener(handle)
    client = HttpClient(ClientConfig(), opener=opener)

    head, chunks = client.stream("POST", "/logs/stream", json_body={"mode": "human"})

    assert head.ok
    assert list(chunks) == [b"line 1\n", b"line 2\n"]
    assert handle.closed


def test_stream_error_status_returns_full_body_and_no_chunks():
    opener = FakeOpener(_http_error("http://localhost:7700/logs/stream", 400, b'{"code": "bad"}'))
    client = HttpClient(ClientConfig(), opener=opener)

    head, chunks = client.stream("POST", "/logs/stream", json_body={})

    assert head.status == 400
    assert head.json() == {"code": "bad"}
    assert list(chunks) == []


def test_http_response_json_handles_empty_and_invalid_bodies():
    assert HttpResponse(204, "No Content", "u").json() is None
    with pytest.raises(ParseError):
        HttpResponse(200, "OK", "u", body="{oops").json()
