"""Command line interface for mieli."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn

import click
import typer
from rich.console import Console
from typer.core import TyperGroup

from . import __version__
from .client import ApiRequest, HttpClient, build_query
from .config import (
    ENV_ADDR,
    ENV_API_KEY,
    ENV_INDEX,
    ClientConfig,
    resolve_client_config,
)
from .errors import (
    EXIT_FAILURE,
    Interrupted,
    MieliError,
    TransportError,
    UsageError,
)
from .output import print_error, print_info, print_warning, write_headers, write_json
from .progress import ProgressPresenter
from .services import request_service as requests
from .services.config_service import apply_config_updates, get_config_snapshot
from .services.dispatch_service import DispatchResult, submit_and_maybe_wait
from .services.input_service import (
    build_search_query,
    infer_content_type,
    read_document_payload,
    read_piped_bytes,
    read_piped_json_object,
)
from .services.log_service import stream_logs
from .tasks import (
    CancellationToken,
    DirectResult,
    FailureKind,
    PollFailure,
    PollInterrupted,
)
from .text import Messages, Styles

LOG_FORMAT = "%(levelname)s:%(name)s:%(message)s"

console = Console()
err_console = Console(stderr=True)


class AliasedGroup(TyperGroup):
    """Resolve short aliases (``d`` for ``documents``...) to their command."""

    aliases: dict[str, str] = {}

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        return super().get_command(ctx, self.aliases.get(cmd_name, cmd_name))

    def resolve_command(
        self,
        ctx: click.Context,
        args: list[str],
    ) -> tuple[str | None, click.Command | None, list[str]]:
        name, command, rest = super().resolve_command(ctx, args)
        if command is not None:
            name = command.name
        return name, command, rest


def _aliased(aliases: dict[str, str]) -> type[AliasedGroup]:
    return type("AliasedGroup", (AliasedGroup,), {"aliases": aliases})


app = typer.Typer(
    help=Messages.APP_HELP,
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
    cls=_aliased(
        {
            "indexes": "index",
            "i": "index",
            "document": "documents",
            "doc": "documents",
            "docs": "documents",
            "d": "documents",
            "task": "tasks",
            "t": "tasks",
            "batch": "batches",
            "b": "batches",
            "keys": "key",
            "k": "key",
            "logs": "log",
            "exp": "experimental",
            "experimental-features": "experimental",
            "set": "settings",
            "setting": "settings",
            "ver": "version",
            "v": "version",
            "stat": "stats",
        }
    ),
)
index_app = typer.Typer(
    help=Messages.HELP_INDEX_GROUP,
    no_args_is_help=True,
    cls=_aliased({"all": "list"}),
)
documents_app = typer.Typer(
    help=Messages.HELP_DOCUMENTS_GROUP,
    no_args_is_help=True,
    cls=_aliased({"g": "get", "a": "add", "u": "update", "d": "delete"}),
)
tasks_app = typer.Typer(
    help=Messages.HELP_TASKS_GROUP,
    no_args_is_help=True,
    cls=_aliased({"l": "list", "get": "list", "g": "list", "d": "delete", "rm": "delete"}),
)
batches_app = typer.Typer(
    help=Messages.HELP_BATCHES_GROUP,
    no_args_is_help=True,
    cls=_aliased({"l": "list", "get": "list", "g": "list"}),
)
key_app = typer.Typer(
    help=Messages.HELP_KEY_GROUP,
    no_args_is_help=True,
    cls=_aliased({"all": "list", "post": "create", "patch": "update"}),
)
log_app = typer.Typer(
    help=Messages.HELP_LOG_GROUP,
    no_args_is_help=True,
    cls=_aliased({"get": "stream", "retrieve": "stream", "stop": "remove", "interrupt": "remove"}),
)
experimental_app = typer.Typer(
    help=Messages.HELP_EXPERIMENTAL_GROUP,
    no_args_is_help=True,
    cls=_aliased({"list": "get", "all": "get", "post": "update", "create": "update"}),
)
app.add_typer(index_app, name="index")
app.add_typer(documents_app, name="documents")
app.add_typer(tasks_app, name="tasks")
app.add_typer(batches_app, name="batches")
app.add_typer(key_app, name="key")
app.add_typer(log_app, name="log")
app.add_typer(experimental_app, name="experimental")


@dataclass(frozen=True, slots=True)
class CliState:
    config: ClientConfig


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"mieli v{__version__}")
        raise typer.Exit()


def _configure_logging(verbose: int) -> None:
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("mieli").setLevel(level)


@app.callback()
def main(
    ctx: typer.Context,
    addr: str | None = typer.Option(
        None, "--addr", "-a", envvar=ENV_ADDR, help=Messages.HELP_ADDR
    ),
    index: str | None = typer.Option(
        None, "--index", "-i", envvar=ENV_INDEX, help=Messages.HELP_INDEX
    ),
    key: str | None = typer.Option(
        None, "--key", "-k", envvar=ENV_API_KEY, help=Messages.HELP_KEY
    ),
    user_agent: str | None = typer.Option(
        None, "--user-agent", help=Messages.HELP_USER_AGENT
    ),
    custom_headers: list[str] | None = typer.Option(
        None, "--custom-header", help=Messages.HELP_CUSTOM_HEADER
    ),
    interval: int | None = typer.Option(None, "--interval", help=Messages.HELP_INTERVAL),
    async_mode: bool = typer.Option(False, "--async", help=Messages.HELP_ASYNC),
    verbose: int = typer.Option(
        0, "--verbose", "-v", count=True, help=Messages.HELP_VERBOSE
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Global Typer callback for shared options."""
    _configure_logging(verbose)
    try:
        config = resolve_client_config(
            addr=addr,
            index=index,
            api_key=key,
            user_agent=user_agent,
            custom_headers=custom_headers,
            interval=interval,
            async_mode=async_mode,
            verbose=verbose,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    ctx.obj = CliState(config=config)


def _state(ctx: typer.Context) -> CliState:
    state = ctx.find_object(CliState)
    if state is None:  # pragma: no cover - the callback always runs first
        state = CliState(config=resolve_client_config())
        ctx.obj = state
    return state


def _fail(exc: MieliError) -> NoReturn:
    if isinstance(exc, TransportError):
        message = Messages.ERROR_TRANSPORT.format(url=exc.url, reason=exc.reason)
    else:
        message = str(exc)
    print_error(err_console, message)
    raise typer.Exit(code=exc.exit_code)


def _render(state: CliState, outcome: DispatchResult) -> None:
    if state.config.verbose:
        write_headers(err_console, outcome.response)
    write_json(console, outcome.payload)

    result = outcome.result
    if isinstance(result, DirectResult) and not outcome.response.ok:
        print_error(err_console, Messages.ERROR_HTTP_STATUS.format(status=outcome.response.status))
    elif isinstance(result, PollFailure):
        if result.kind in (FailureKind.TASK_FAILED, FailureKind.TASK_CANCELED):
            status = result.status
            print_error(
                err_console,
                Messages.ERROR_TASK_FAILED.format(uid=status.uid, state=status.state.value),
            )
        elif isinstance(result.reason, TransportError):
            print_error(
                err_console,
                Messages.ERROR_TRANSPORT.format(url=result.reason.url, reason=result.reason.reason),
            )
        else:
            print_error(err_console, str(result.reason))
    elif isinstance(result, PollInterrupted):
        print_warning(err_console, Messages.INFO_INTERRUPTED.format(uid=result.reference.uid))

    code = outcome.exit_code
    if code:
        raise typer.Exit(code=code)


def _execute(ctx: typer.Context, api_request: ApiRequest) -> None:
    state = _state(ctx)
    client = HttpClient(state.config)
    presenter = ProgressPresenter(console)
    try:
        outcome = submit_and_maybe_wait(
            client,
            api_request,
            presenter=presenter,
            token=CancellationToken(),
        )
    except KeyboardInterrupt:
        _fail(Interrupted(Messages.ERROR_INTERRUPTED))
    except MieliError as exc:
        _fail(exc)
    _render(state, outcome)


def _warn_ignored_filters(params: requests.TaskListParameters) -> None:
    if params.is_empty:
        return
    print_warning(
        err_console,
        Messages.INFO_FILTERS_IGNORED.format(params=build_query(params.to_query()).lstrip("?")),
    )


# ---------------------------------------------------------------------------
# indexes


@index_app.command("list", help=Messages.HELP_INDEX_LIST)
def index_list(
    ctx: typer.Context,
    offset: int | None = typer.Option(None, "--offset", help=Messages.HELP_OFFSET),
    limit: int | None = typer.Option(None, "--limit", help=Messages.HELP_LIMIT),
) -> None:
    _execute(ctx, requests.list_indexes(offset=offset, limit=limit))


@index_app.command("get", help=Messages.HELP_INDEX_GET)
def index_get(
    ctx: typer.Context,
    uid: str | None = typer.Argument(None, help=Messages.HELP_INDEX_UID),
) -> None:
    _execute(ctx, requests.get_index(uid or _state(ctx).config.index))


@index_app.command("create", help=Messages.HELP_INDEX_CREATE)
def index_create(
    ctx: typer.Context,
    uid: str | None = typer.Argument(None, help=Messages.HELP_INDEX_UID),
    primary: str | None = typer.Option(
        None, "--primary", "-p", "--primary-key", help=Messages.HELP_PRIMARY_KEY
    ),
) -> None:
    _execute(ctx, requests.create_index(uid or _state(ctx).config.index, primary))


@index_app.command("update", help=Messages.HELP_INDEX_UPDATE)
def index_update(
    ctx: typer.Context,
    uid: str | None = typer.Argument(None, help=Messages.HELP_INDEX_UID),
    primary: str | None = typer.Option(
        None, "--primary", "-p", "--primary-key", help=Messages.HELP_PRIMARY_KEY
    ),
) -> None:
    _execute(ctx, requests.update_index(uid or _state(ctx).config.index, primary))


@index_app.command("delete", help=Messages.HELP_INDEX_DELETE)
def index_delete(
    ctx: typer.Context,
    uid: str | None = typer.Argument(None, help=Messages.HELP_INDEX_UID),
) -> None:
    _execute(ctx, requests.delete_index(uid or _state(ctx).config.index))


# ---------------------------------------------------------------------------
# documents


@documents_app.command("get", help=Messages.HELP_DOCUMENTS_GET)
def documents_get(
    ctx: typer.Context,
    document_id: str | None = typer.Argument(None, help=Messages.HELP_DOCUMENT_ID),
    limit: int | None = typer.Option(None, "--limit", help=Messages.HELP_LIMIT),
    offset: int | None = typer.Option(None, "--offset", "--from", help=Messages.HELP_OFFSET),
    fields: list[str] | None = typer.Option(
        None, "--fields", "--field", help=Messages.HELP_FIELDS
    ),
) -> None:
    index = _state(ctx).config.index
    if document_id is None:
        api_request = requests.get_documents(index, limit=limit, offset=offset, fields=fields)
    else:
        api_request = requests.get_document(index, document_id, fields=fields)
    _execute(ctx, api_request)


def _index_documents(
    ctx: typer.Context,
    file: Path | None,
    content_type: str | None,
    primary: str | None,
    *,
    update: bool,
) -> None:
    try:
        payload = read_document_payload(file)
    except UsageError as exc:
        _fail(exc)
        return
    _execute(
        ctx,
        requests.index_documents(
            _state(ctx).config.index,
            payload,
            infer_content_type(file, content_type),
            primary_key=primary,
            update=update,
        ),
    )


@documents_app.command("add", help=Messages.HELP_DOCUMENTS_ADD)
def documents_add(
    ctx: typer.Context,
    file: Path | None = typer.Argument(None, help=Messages.HELP_DOCUMENT_FILE),
    content_type: str | None = typer.Option(
        None, "--content-type", "-c", help=Messages.HELP_CONTENT_TYPE
    ),
    primary: str | None = typer.Option(
        None, "--primary", "-p", "--primary-key", help=Messages.HELP_PRIMARY_KEY
    ),
) -> None:
    _index_documents(ctx, file, content_type, primary, update=False)


@documents_app.command("update", help=Messages.HELP_DOCUMENTS_UPDATE)
def documents_update(
    ctx: typer.Context,
    file: Path | None = typer.Argument(None, help=Messages.HELP_DOCUMENT_FILE),
    content_type: str | None = typer.Option(
        None, "--content-type", "-c", help=Messages.HELP_CONTENT_TYPE
    ),
    primary: str | None = typer.Option(
        None, "--primary", "-p", "--primary-key", help=Messages.HELP_PRIMARY_KEY
    ),
) -> None:
    _index_documents(ctx, file, content_type, primary, update=True)


@documents_app.command("delete", help=Messages.HELP_DOCUMENTS_DELETE)
def documents_delete(
    ctx: typer.Context,
    document_ids: list[str] | None = typer.Argument(None, help=Messages.HELP_DOCUMENT_IDS),
    filter_expression: str | None = typer.Option(
        None, "--filter", help=Messages.HELP_DELETE_FILTER
    ),
) -> None:
    if document_ids and filter_expression is not None:
        raise typer.BadParameter(Messages.ERROR_IDS_AND_FILTER)
    _execute(
        ctx,
        requests.delete_documents(
            _state(ctx).config.index,
            document_ids or (),
            filter_expression=filter_expression,
        ),
    )


app.command("da", help=Messages.HELP_DA)(documents_add)
app.command("dd", help=Messages.HELP_DD)(documents_delete)


# ---------------------------------------------------------------------------
# search, settings and instance-wide operations


@app.command(help=Messages.HELP_SEARCH)
def search(
    ctx: typer.Context,
    terms: list[str] | None = typer.Argument(None, help=Messages.HELP_SEARCH_TERMS),
) -> None:
    try:
        piped = read_piped_json_object()
    except UsageError as exc:
        _fail(exc)
        return
    query = build_search_query(piped, terms)
    _execute(ctx, requests.search(_state(ctx).config.index, query))


@app.command(help=Messages.HELP_SETTINGS)
def settings(ctx: typer.Context) -> None:
    index = _state(ctx).config.index
    payload = read_piped_bytes()
    if payload is None:
        _execute(ctx, requests.get_settings(index))
    else:
        _execute(ctx, requests.update_settings(index, payload))


@app.command(help=Messages.HELP_DUMP)
def dump(ctx: typer.Context) -> None:
    _execute(ctx, requests.create_dump())


@app.command(help=Messages.HELP_SNAPSHOT)
def snapshot(ctx: typer.Context) -> None:
    _execute(ctx, requests.create_snapshot())


@app.command(help=Messages.HELP_HEALTH)
def health(ctx: typer.Context) -> None:
    _execute(ctx, requests.health())


@app.command(help=Messages.HELP_VERSION)
def version(ctx: typer.Context) -> None:
    _execute(ctx, requests.version())


@app.command(help=Messages.HELP_STATS)
def stats(ctx: typer.Context) -> None:
    _execute(ctx, requests.stats())


# ---------------------------------------------------------------------------
# tasks and batches


def _task_filter(
    uids: str | None,
    batch_uids: str | None,
    statuses: str | None,
    types: str | None,
    index_uids: str | None,
    canceled_by: str | None,
    before_enqueued_at: str | None,
    after_enqueued_at: str | None,
    before_started_at: str | None,
    after_started_at: str | None,
    before_finished_at: str | None,
    after_finished_at: str | None,
) -> requests.TaskFilter:
    return requests.TaskFilter(
        uids=uids,
        batch_uids=batch_uids,
        statuses=statuses,
        types=types,
        index_uids=index_uids,
        canceled_by=canceled_by,
        before_enqueued_at=before_enqueued_at,
        after_enqueued_at=after_enqueued_at,
        before_started_at=before_started_at,
        after_started_at=after_started_at,
        before_finished_at=before_finished_at,
        after_finished_at=after_finished_at,
    )


_OPT_LIMIT = typer.Option(None, "--limit", help=Messages.HELP_LIMIT)
_OPT_FROM = typer.Option(None, "--from", "--offset", help=Messages.HELP_FILTER_FROM)
_OPT_REVERSE = typer.Option(None, "--reverse/--no-reverse", help=Messages.HELP_FILTER_REVERSE)
_OPT_UIDS = typer.Option(None, "--uids", "--uid", help=Messages.HELP_FILTER_UIDS)
_OPT_BATCH_UIDS = typer.Option(
    None, "--batch-uids", "--batch", help=Messages.HELP_FILTER_BATCH_UIDS
)
_OPT_STATUSES = typer.Option(None, "--statuses", "--status", help=Messages.HELP_FILTER_STATUSES)
_OPT_TYPES = typer.Option(None, "--types", "--type", help=Messages.HELP_FILTER_TYPES)
_OPT_INDEX_UIDS = typer.Option(
    None, "--index-uids", "--indexes", help=Messages.HELP_FILTER_INDEX_UIDS
)
_OPT_CANCELED_BY = typer.Option(None, "--canceled-by", help=Messages.HELP_FILTER_CANCELED_BY)
_OPT_BEFORE_ENQUEUED = typer.Option(
    None, "--before-enqueued-at", help=Messages.HELP_FILTER_DATE.format(field="enqueuedAt")
)
_OPT_AFTER_ENQUEUED = typer.Option(
    None, "--after-enqueued-at", help=Messages.HELP_FILTER_DATE.format(field="enqueuedAt")
)
_OPT_BEFORE_STARTED = typer.Option(
    None, "--before-started-at", help=Messages.HELP_FILTER_DATE.format(field="startedAt")
)
_OPT_AFTER_STARTED = typer.Option(
    None, "--after-started-at", help=Messages.HELP_FILTER_DATE.format(field="startedAt")
)
_OPT_BEFORE_FINISHED = typer.Option(
    None, "--before-finished-at", help=Messages.HELP_FILTER_DATE.format(field="finishedAt")
)
_OPT_AFTER_FINISHED = typer.Option(
    None, "--after-finished-at", help=Messages.HELP_FILTER_DATE.format(field="finishedAt")
)


@tasks_app.command("list", help=Messages.HELP_TASKS_LIST)
def tasks_list(
    ctx: typer.Context,
    task_id: int | None = typer.Argument(None, help=Messages.HELP_TASK_ID),
    limit: int | None = _OPT_LIMIT,
    from_: int | None = _OPT_FROM,
    reverse: bool | None = _OPT_REVERSE,
    uids: str | None = _OPT_UIDS,
    batch_uids: str | None = _OPT_BATCH_UIDS,
    statuses: str | None = _OPT_STATUSES,
    types: str | None = _OPT_TYPES,
    index_uids: str | None = _OPT_INDEX_UIDS,
    canceled_by: str | None = _OPT_CANCELED_BY,
    before_enqueued_at: str | None = _OPT_BEFORE_ENQUEUED,
    after_enqueued_at: str | None = _OPT_AFTER_ENQUEUED,
    before_started_at: str | None = _OPT_BEFORE_STARTED,
    after_started_at: str | None = _OPT_AFTER_STARTED,
    before_finished_at: str | None = _OPT_BEFORE_FINISHED,
    after_finished_at: str | None = _OPT_AFTER_FINISHED,
) -> None:
    params = requests.TaskListParameters(
        pagination=requests.TaskPagination(limit=limit, from_=from_, reverse=reverse),
        filter=_task_filter(
            uids, batch_uids, statuses, types, index_uids, canceled_by,
            before_enqueued_at, after_enqueued_at, before_started_at,
            after_started_at, before_finished_at, after_finished_at,
        ),
    )
    if task_id is None:
        _execute(ctx, requests.list_tasks(params))
        return
    _warn_ignored_filters(params)
    _execute(ctx, requests.get_task(task_id))


app.command("tl", help=Messages.HELP_TL)(tasks_list)


@tasks_app.command("cancel", help=Messages.HELP_TASKS_CANCEL)
def tasks_cancel(
    ctx: typer.Context,
    uids: str | None = _OPT_UIDS,
    batch_uids: str | None = _OPT_BATCH_UIDS,
    statuses: str | None = _OPT_STATUSES,
    types: str | None = _OPT_TYPES,
    index_uids: str | None = _OPT_INDEX_UIDS,
    canceled_by: str | None = _OPT_CANCELED_BY,
    before_enqueued_at: str | None = _OPT_BEFORE_ENQUEUED,
    after_enqueued_at: str | None = _OPT_AFTER_ENQUEUED,
    before_started_at: str | None = _OPT_BEFORE_STARTED,
    after_started_at: str | None = _OPT_AFTER_STARTED,
    before_finished_at: str | None = _OPT_BEFORE_FINISHED,
    after_finished_at: str | None = _OPT_AFTER_FINISHED,
) -> None:
    task_filter = _task_filter(
        uids, batch_uids, statuses, types, index_uids, canceled_by,
        before_enqueued_at, after_enqueued_at, before_started_at,
        after_started_at, before_finished_at, after_finished_at,
    )
    _execute(ctx, requests.cancel_tasks(task_filter))


@tasks_app.command("delete", help=Messages.HELP_TASKS_DELETE)
def tasks_delete(
    ctx: typer.Context,
    uids: str | None = _OPT_UIDS,
    batch_uids: str | None = _OPT_BATCH_UIDS,
    statuses: str | None = _OPT_STATUSES,
    types: str | None = _OPT_TYPES,
    index_uids: str | None = _OPT_INDEX_UIDS,
    canceled_by: str | None = _OPT_CANCELED_BY,
    before_enqueued_at: str | None = _OPT_BEFORE_ENQUEUED,
    after_enqueued_at: str | None = _OPT_AFTER_ENQUEUED,
    before_started_at: str | None = _OPT_BEFORE_STARTED,
    after_started_at: str | None = _OPT_AFTER_STARTED,
    before_finished_at: str | None = _OPT_BEFORE_FINISHED,
    after_finished_at: str | None = _OPT_AFTER_FINISHED,
) -> None:
    task_filter = _task_filter(
        uids, batch_uids, statuses, types, index_uids, canceled_by,
        before_enqueued_at, after_enqueued_at, before_started_at,
        after_started_at, before_finished_at, after_finished_at,
    )
    _execute(ctx, requests.delete_tasks(task_filter))


@batches_app.command("list", help=Messages.HELP_BATCHES_LIST)
def batches_list(
    ctx: typer.Context,
    batch_id: int | None = typer.Argument(None, help=Messages.HELP_BATCH_ID),
    limit: int | None = _OPT_LIMIT,
    from_: int | None = _OPT_FROM,
    reverse: bool | None = _OPT_REVERSE,
    uids: str | None = _OPT_UIDS,
    batch_uids: str | None = _OPT_BATCH_UIDS,
    statuses: str | None = _OPT_STATUSES,
    types: str | None = _OPT_TYPES,
    index_uids: str | None = _OPT_INDEX_UIDS,
    canceled_by: str | None = _OPT_CANCELED_BY,
    before_enqueued_at: str | None = _OPT_BEFORE_ENQUEUED,
    after_enqueued_at: str | None = _OPT_AFTER_ENQUEUED,
    before_started_at: str | None = _OPT_BEFORE_STARTED,
    after_started_at: str | None = _OPT_AFTER_STARTED,
    before_finished_at: str | None = _OPT_BEFORE_FINISHED,
    after_finished_at: str | None = _OPT_AFTER_FINISHED,
) -> None:
    params = requests.TaskListParameters(
        pagination=requests.TaskPagination(limit=limit, from_=from_, reverse=reverse),
        filter=_task_filter(
            uids, batch_uids, statuses, types, index_uids, canceled_by,
            before_enqueued_at, after_enqueued_at, before_started_at,
            after_started_at, before_finished_at, after_finished_at,
        ),
    )
    if batch_id is None:
        _execute(ctx, requests.list_batches(params))
        return
    _warn_ignored_filters(params)
    _execute(ctx, requests.get_batch(batch_id))


# ---------------------------------------------------------------------------
# keys


@key_app.command("list", help=Messages.HELP_KEY_LIST)
def key_list(ctx: typer.Context) -> None:
    _execute(ctx, requests.list_keys())


@key_app.command("get", help=Messages.HELP_KEY_GET)
def key_get(
    ctx: typer.Context,
    key: str | None = typer.Argument(None, help=Messages.HELP_KEY_ARG),
) -> None:
    target = key or _state(ctx).config.api_key
    if not target:
        _fail(UsageError(Messages.ERROR_KEY_MISSING))
        return
    _execute(ctx, requests.get_key(target))


@key_app.command("create", help=Messages.HELP_KEY_CREATE)
def key_create(ctx: typer.Context) -> None:
    try:
        body = read_piped_json_object(
            required=True, missing_message=Messages.ERROR_KEY_BODY_REQUIRED
        )
    except UsageError as exc:
        _fail(exc)
        return
    _execute(ctx, requests.create_key(body or {}))


@key_app.command("update", help=Messages.HELP_KEY_UPDATE)
def key_update(
    ctx: typer.Context,
    key: str | None = typer.Argument(None, help=Messages.HELP_KEY_ARG),
) -> None:
    try:
        body = read_piped_json_object(
            required=True, missing_message=Messages.ERROR_KEY_BODY_REQUIRED
        ) or {}
    except UsageError as exc:
        _fail(exc)
        return
    target = key or body.get("key") or body.get("uid")
    if not isinstance(target, str) or not target:
        _fail(UsageError(Messages.ERROR_KEY_UPDATE_MISSING))
        return
    _execute(ctx, requests.update_key(target, body))


@key_app.command("delete", help=Messages.HELP_KEY_DELETE)
def key_delete(
    ctx: typer.Context,
    key: str = typer.Argument(..., help=Messages.HELP_KEY_ARG),
) -> None:
    _execute(ctx, requests.delete_key(key))


@key_app.command("template", help=Messages.HELP_KEY_TEMPLATE)
def key_template() -> None:
    write_json(console, requests.KEY_TEMPLATE)


# ---------------------------------------------------------------------------
# logs


def _write_raw(chunk: bytes) -> None:
    sys.stdout.flush()
    buffer = getattr(sys.stdout, "buffer", None)
    if buffer is None:
        sys.stdout.write(chunk.decode("utf-8", errors="replace"))
        sys.stdout.flush()
        return
    buffer.write(chunk)
    buffer.flush()


@log_app.command("stream", help=Messages.HELP_LOG_STREAM)
def log_stream(
    ctx: typer.Context,
    mode: str = typer.Argument("human", help=Messages.HELP_LOG_MODE),
    target: str = typer.Argument("info", help=Messages.HELP_LOG_TARGET),
) -> None:
    state = _state(ctx)
    client = HttpClient(state.config)
    try:
        result = stream_logs(client, mode=mode, target=target, write=_write_raw)
        if not result.response.ok:
            rejected = DirectResult(result.response.json())
    except MieliError as exc:
        _fail(exc)
        return
    if not result.response.ok:
        _render(state, DispatchResult(result.response, rejected))
        return
    if state.config.verbose:
        write_headers(err_console, result.response)
    cleanup = result.cleanup_response
    if cleanup is None or not cleanup.ok:
        print_warning(err_console, Messages.ERROR_LOG_STREAM_CLEANUP)
        raise typer.Exit(code=EXIT_FAILURE)


@log_app.command("remove", help=Messages.HELP_LOG_REMOVE)
def log_remove(ctx: typer.Context) -> None:
    _execute(ctx, requests.remove_log_stream())


@log_app.command("stderr", help=Messages.HELP_LOG_STDERR)
def log_stderr(
    ctx: typer.Context,
    target: str = typer.Argument(..., help=Messages.HELP_LOG_TARGET),
) -> None:
    _execute(ctx, requests.update_log_stderr(target))


# ---------------------------------------------------------------------------
# experimental features


@experimental_app.command("get", help=Messages.HELP_EXPERIMENTAL_GET)
def experimental_get(ctx: typer.Context) -> None:
    _execute(ctx, requests.get_experimental_features())


@experimental_app.command("update", help=Messages.HELP_EXPERIMENTAL_UPDATE)
def experimental_update(ctx: typer.Context) -> None:
    try:
        body = read_piped_json_object(required=True)
    except UsageError as exc:
        _fail(exc)
        return
    _execute(ctx, requests.update_experimental_features(body or {}))


# ---------------------------------------------------------------------------
# local configuration


@app.command(help=Messages.HELP_CONFIG)
def config(
    set_addr_option: str | None = typer.Option(
        None, "--set-addr", help=Messages.HELP_SET_ADDR
    ),
    set_index_option: str | None = typer.Option(
        None, "--set-index", help=Messages.HELP_SET_INDEX
    ),
    set_api_key_option: str | None = typer.Option(
        None, "--set-api-key", help=Messages.HELP_SET_API_KEY
    ),
    clear_api_key: bool = typer.Option(
        False, "--clear-api-key", help=Messages.HELP_CLEAR_API_KEY
    ),
    set_user_agent_option: str | None = typer.Option(
        None, "--set-user-agent", help=Messages.HELP_SET_USER_AGENT
    ),
    set_interval_option: int | None = typer.Option(
        None, "--set-interval", help=Messages.HELP_SET_INTERVAL
    ),
    add_header_option: list[str] | None = typer.Option(
        None, "--add-header", help=Messages.HELP_ADD_HEADER
    ),
    clear_headers: bool = typer.Option(
        False, "--clear-headers", help=Messages.HELP_CLEAR_HEADERS
    ),
    reset: bool = typer.Option(False, "--reset", help=Messages.HELP_RESET_CONFIG),
    show: bool = typer.Option(False, "--show", help=Messages.HELP_SHOW_CONFIG),
) -> None:
    """Manage the persisted defaults."""
    try:
        updates = apply_config_updates(
            reset=reset,
            addr=set_addr_option,
            index=set_index_option,
            api_key=set_api_key_option,
            clear_api_key=clear_api_key,
            user_agent=set_user_agent_option,
            interval=set_interval_option,
            add_headers=add_header_option,
            clear_headers=clear_headers,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    messages: list[str] = []
    if updates.reset:
        messages.append(Messages.INFO_CONFIG_RESET)
    if updates.addr_set:
        messages.append(Messages.INFO_ADDR_SET.format(value=set_addr_option))
    if updates.index_set:
        messages.append(Messages.INFO_INDEX_SET.format(value=set_index_option))
    if updates.api_key_set:
        messages.append(Messages.INFO_API_SAVED)
    if updates.api_key_cleared:
        messages.append(Messages.INFO_API_CLEARED)
    if updates.user_agent_set:
        messages.append(Messages.INFO_USER_AGENT_SET.format(value=set_user_agent_option))
    if updates.interval_set:
        messages.append(Messages.INFO_INTERVAL_SET.format(value=set_interval_option))
    if updates.headers_cleared:
        messages.append(Messages.INFO_HEADERS_CLEARED)
    messages.extend(
        Messages.INFO_HEADER_ADDED.format(value=header) for header in add_header_option or ()
    )
    for message in messages:
        print_info(console, message, Styles.SUCCESS)

    if show or not updates.changed:
        snapshot = get_config_snapshot()
        console.print(
            Messages.INFO_CONFIG_SUMMARY.format(
                addr=snapshot.addr,
                index=snapshot.index,
                api="yes" if snapshot.api_key else "no",
                user_agent=snapshot.user_agent,
                interval=snapshot.interval,
                headers=", ".join(snapshot.custom_headers) or "none",
            ),
            highlight=False,
            markup=False,
        )


def run(argv: list[str] | None = None) -> None:
    """Entry point wrapper allowing optional argument override."""
    args = list(argv) if argv is not None else sys.argv[1:]
    if argv is None:
        app()
    else:
        app(args=args)
