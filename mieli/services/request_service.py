"""Map CLI commands to the API requests they issue."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Sequence

from ..client import ApiRequest, JSON_CONTENT_TYPE, encode_path

KEY_TEMPLATE: dict[str, Any] = {
    "description": "Add documents key",
    "actions": ["documents.add"],
    "indexes": ["mieli"],
    "expiresAt": "2021-11-13T00:00:00Z",
}


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


@dataclass(slots=True)
class TaskPagination:
    limit: int | None = None
    from_: int | None = None
    reverse: bool | None = None

    def to_query(self) -> dict[str, object]:
        query: dict[str, object] = {}
        if self.limit is not None:
            query["limit"] = self.limit
        if self.from_ is not None:
            query["from"] = self.from_
        if self.reverse is not None:
            query["reverse"] = self.reverse
        return query


@dataclass(slots=True)
class TaskFilter:
    uids: str | None = None
    batch_uids: str | None = None
    statuses: str | None = None
    types: str | None = None
    index_uids: str | None = None
    canceled_by: str | None = None
    before_enqueued_at: str | None = None
    after_enqueued_at: str | None = None
    before_started_at: str | None = None
    after_started_at: str | None = None
    before_finished_at: str | None = None
    after_finished_at: str | None = None

    def to_query(self) -> dict[str, object]:
        return {
            _camel(name): value
            for name, value in asdict(self).items()
            if value is not None
        }


@dataclass(slots=True)
class TaskListParameters:
    pagination: TaskPagination = field(default_factory=TaskPagination)
    filter: TaskFilter = field(default_factory=TaskFilter)

    def to_query(self) -> dict[str, object]:
        query = self.pagination.to_query()
        query.update(self.filter.to_query())
        return query

    @property
    def is_empty(self) -> bool:
        return not self.to_query()


def list_indexes(*, offset: int | None = None, limit: int | None = None) -> ApiRequest:
    return ApiRequest("GET", "/indexes", query={"offset": offset, "limit": limit})


def get_index(uid: str) -> ApiRequest:
    return ApiRequest("GET", encode_path("indexes", uid))


def create_index(uid: str, primary_key: str | None = None) -> ApiRequest:
    body: dict[str, Any] = {"uid": uid}
    if primary_key is not None:
        body["primaryKey"] = primary_key
    return ApiRequest("POST", "/indexes", json_body=body)


def update_index(uid: str, primary_key: str | None = None) -> ApiRequest:
    body: dict[str, Any] = {}
    if primary_key is not None:
        body["primaryKey"] = primary_key
    return ApiRequest(
        "PATCH",
        encode_path("indexes", uid),
        json_body=body,
        retry_as_post_on_405=True,
    )


def delete_index(uid: str) -> ApiRequest:
    return ApiRequest("DELETE", encode_path("indexes", uid))


def get_documents(
    index: str,
    *,
    limit: int | None = None,
    offset: int | None = None,
    fields: Sequence[str] | None = None,
) -> ApiRequest:
    return ApiRequest(
        "GET",
        encode_path("indexes", index, "documents"),
        query={"limit": limit, "offset": offset, "fields": list(fields or ())},
    )


def get_document(
    index: str,
    document_id: str,
    *,
    fields: Sequence[str] | None = None,
) -> ApiRequest:
    return ApiRequest(
        "GET",
        encode_path("indexes", index, "documents", document_id),
        query={"fields": list(fields or ())},
    )


def index_documents(
    index: str,
    payload: bytes,
    content_type: str,
    *,
    primary_key: str | None = None,
    update: bool = False,
) -> ApiRequest:
    """POST adds or replaces whole documents, PUT (``update``) merges fields."""
    return ApiRequest(
        "PUT" if update else "POST",
        encode_path("indexes", index, "documents"),
        body=payload,
        content_type=content_type,
        query={"primaryKey": primary_key},
    )


def delete_documents(
    index: str,
    document_ids: Sequence[str] = (),
    *,
    filter_expression: str | None = None,
) -> ApiRequest:
    base = encode_path("indexes", index, "documents")
    if filter_expression is not None:
        return ApiRequest("POST", f"{base}/delete", json_body={"filter": filter_expression})
    ids = list(document_ids)
    if not ids:
        return ApiRequest("DELETE", base)
    if len(ids) == 1:
        return ApiRequest("DELETE", encode_path("indexes", index, "documents", ids[0]))
    return ApiRequest("POST", f"{base}/delete-batch", json_body=ids)


def search(index: str, query: dict[str, Any]) -> ApiRequest:
    return ApiRequest("POST", encode_path("indexes", index, "search"), json_body=query)


def get_settings(index: str) -> ApiRequest:
    return ApiRequest("GET", encode_path("indexes", index, "settings"))


def update_settings(index: str, payload: bytes) -> ApiRequest:
    return ApiRequest(
        "PATCH",
        encode_path("indexes", index, "settings"),
        body=payload,
        content_type=JSON_CONTENT_TYPE,
        retry_as_post_on_405=True,
    )


def create_dump() -> ApiRequest:
    return ApiRequest("POST", "/dumps")


def create_snapshot() -> ApiRequest:
    return ApiRequest("POST", "/snapshots")


def health() -> ApiRequest:
    return ApiRequest("GET", "/health")


def version() -> ApiRequest:
    return ApiRequest("GET", "/version")


def stats() -> ApiRequest:
    return ApiRequest("GET", "/stats")


def list_tasks(params: TaskListParameters) -> ApiRequest:
    return ApiRequest("GET", "/tasks", query=params.to_query())


def get_task(uid: int) -> ApiRequest:
    return ApiRequest("GET", encode_path("tasks", uid))


def cancel_tasks(task_filter: TaskFilter) -> ApiRequest:
    return ApiRequest("POST", "/tasks/cancel", query=task_filter.to_query())


def delete_tasks(task_filter: TaskFilter) -> ApiRequest:
    return ApiRequest("DELETE", "/tasks", query=task_filter.to_query())


def list_batches(params: TaskListParameters) -> ApiRequest:
    return ApiRequest("GET", "/batches", query=params.to_query())


def get_batch(uid: int) -> ApiRequest:
    return ApiRequest("GET", encode_path("batches", uid))


def list_keys() -> ApiRequest:
    return ApiRequest("GET", "/keys")


def get_key(key: str) -> ApiRequest:
    return ApiRequest("GET", encode_path("keys", key))


def create_key(body: dict[str, Any]) -> ApiRequest:
    return ApiRequest("POST", "/keys", json_body=body)


def update_key(key: str, body: dict[str, Any]) -> ApiRequest:
    return ApiRequest("PATCH", encode_path("keys", key), json_body=body)


def delete_key(key: str) -> ApiRequest:
    return ApiRequest("DELETE", encode_path("keys", key))


def get_experimental_features() -> ApiRequest:
    return ApiRequest("GET", "/experimental-features")


def update_experimental_features(body: dict[str, Any]) -> ApiRequest:
    return ApiRequest("PATCH", "/experimental-features", json_body=body)


def remove_log_stream() -> ApiRequest:
    return ApiRequest("DELETE", "/logs/stream")


def update_log_stderr(target: str) -> ApiRequest:
    return ApiRequest("POST", "/logs/stderr", json_body={"target": target})
