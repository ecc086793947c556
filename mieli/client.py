"""Blocking HTTP client for the Meilisearch REST API."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from collections.abc import Iterator, Mapping
from typing import Any, Callable
from urllib import error as urlerror
from urllib import request as urlrequest
from urllib.parse import quote, urlencode

from .config import ClientConfig
from .errors import ParseError, TransportError
from .tasks import TaskStatus
from .text import Messages

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"
STREAM_CHUNK_SIZE = 8192

Opener = Callable[..., Any]


@dataclass(frozen=True, slots=True)
class HttpResponse:
    status: int
    reason: str
    url: str
    headers: tuple[tuple[str, str], ...] = ()
    body: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def no_content(self) -> bool:
        return self.status == 204

    def json(self) -> Any:
        if not self.body.strip():
            return None
        try:
            return json.loads(self.body)
        except json.JSONDecodeError as exc:
            raise ParseError(Messages.ERROR_PARSE.format(raw=self.body), self.body) from exc


@dataclass(frozen=True, slots=True)
class ApiRequest:
    """Description of one call against the API, built by the command layer."""

    method: str
    path: str
    json_body: Any = None
    body: bytes | None = None
    content_type: str | None = None
    query: Mapping[str, object] = field(default_factory=dict)
    retry_as_post_on_405: bool = False


def encode_path(*segments: str | int) -> str:
    return "/" + "/".join(quote(str(segment), safe="") for segment in segments)


def build_query(params: Mapping[str, object] | None) -> str:
    if not params:
        return ""
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            pairs.append((key, "true" if value else "false"))
        elif isinstance(value, (list, tuple)):
            if value:
                pairs.append((key, ",".join(str(item) for item in value)))
        else:
            pairs.append((key, str(value)))
    if not pairs:
        return ""
    return "?" + urlencode(pairs, safe=",*:")


class HttpClient:
    """Issue authenticated requests against the configured server.

    One instance serves a whole invocation. Requests are strictly sequential
    and never retried.
    """

    def __init__(self, config: ClientConfig, *, opener: Opener | None = None) -> None:
        self.config = config
        self._opener = opener or urlrequest.urlopen

    def url_for(self, path: str, query: Mapping[str, object] | None = None) -> str:
        return f"{self.config.addr}{path}{build_query(query)}"

    def _build(
        self,
        method: str,
        url: str,
        data: bytes | None,
        content_type: str | None,
    ) -> urlrequest.Request:
        req = urlrequest.Request(url, data=data, method=method)
        if self.config.api_key:
            req.add_header("Authorization", f"Bearer {self.config.api_key}")
        for name, value in self.config.custom_headers:
            req.add_header(name, value)
        req.add_header("User-Agent", self.config.user_agent)
        if content_type:
            req.add_header("Content-Type", content_type)
        return req

    def _open(self, req: urlrequest.Request):
        logger.debug("%s %s", req.get_method(), req.full_url)
        try:
            return self._opener(req)
        except urlerror.HTTPError as exc:
            return exc
        except urlerror.URLError as exc:
            raise TransportError(req.full_url, str(exc.reason)) from exc
        except (ConnectionError, TimeoutError) as exc:
            raise TransportError(req.full_url, str(exc)) from exc

    def request(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,
        body: bytes | None = None,
        content_type: str | None = None,
        query: Mapping[str, object] | None = None,
    ) -> HttpResponse:
        if json_body is not None:
            body = json.dumps(json_body).encode("utf-8")
            content_type = content_type or JSON_CONTENT_TYPE
        url = self.url_for(path, query)
        handle = self._open(self._build(method, url, body, content_type))
        try:
            raw = handle.read()
        except OSError as exc:
            raise TransportError(url, str(exc)) from exc
        finally:
            handle.close()
        return HttpResponse(
            status=int(getattr(handle, "status", None) or handle.getcode()),
            reason=str(getattr(handle, "reason", "") or ""),
            url=url,
            headers=tuple((handle.headers or {}).items()),
            body=raw.decode("utf-8", errors="replace"),
        )

    def send(self, api_request: ApiRequest) -> HttpResponse:
        response = self.request(
            api_request.method,
            api_request.path,
            json_body=api_request.json_body,
            body=api_request.body,
            content_type=api_request.content_type,
            query=api_request.query,
        )
        if response.status == 405 and api_request.retry_as_post_on_405:
            logger.info(
                "%s %s is not allowed, retrying with POST",
                api_request.method,
                api_request.path,
            )
            response = self.request(
                "POST",
                api_request.path,
                json_body=api_request.json_body,
                body=api_request.body,
                content_type=api_request.content_type,
                query=api_request.query,
            )
        return response

    def stream(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,
    ) -> tuple[HttpResponse, Iterator[bytes]]:
        """Open a streaming request.

        Returns the response head (with an empty body) and an iterator over the
        raw body chunks. Error statuses are read fully and returned with no
        chunks.
        """

        data = json.dumps(json_body).encode("utf-8") if json_body is not None else None
        content_type = JSON_CONTENT_TYPE if data is not None else None
        url = self.url_for(path)
        handle = self._open(self._build(method, url, data, content_type))
        status = int(getattr(handle, "status", None) or handle.getcode())
        head = HttpResponse(
            status=status,
            reason=str(getattr(handle, "reason", "") or ""),
            url=url,
            headers=tuple((handle.headers or {}).items()),
        )
        if not 200 <= status < 300:
            try:
                body = handle.read().decode("utf-8", errors="replace")
            finally:
                handle.close()
            return HttpResponse(
                status=head.status,
                reason=head.reason,
                url=url,
                headers=head.headers,
                body=body,
            ), iter(())

        def chunks() -> Iterator[bytes]:
            try:
                while True:
                    try:
                        chunk = handle.read1(STREAM_CHUNK_SIZE)
                    except OSError as exc:
                        raise TransportError(url, str(exc)) from exc
                    if not chunk:
                        return
                    yield chunk
            finally:
                handle.close()

        return head, chunks()

    def fetch_status(self, task_uid: int) -> TaskStatus:
        """Return the current TaskStatus of ``task_uid``."""
        response = self.request("GET", encode_path("tasks", task_uid))
        return TaskStatus.from_payload(response.json(), raw=response.body)

    def fetch_batch_progress(self, batch_uid: int) -> Mapping[str, object] | None:
        response = self.request("GET", encode_path("batches", batch_uid))
        payload = response.json()
        if not isinstance(payload, Mapping):
            return None
        progress = payload.get("progress")
        return progress if isinstance(progress, Mapping) else None
