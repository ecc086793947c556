"""Helpers for writing JSON and diagnostics to the terminal."""

from __future__ import annotations

import json
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape

from .client import HttpResponse
from .text import Styles


def _styled(text: str, style: str) -> str:
    return f"[{style}]{text}[/{style}]"


def dump_json(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


def write_json(console: Console, payload: Any) -> None:
    """Pretty, colored JSON on a terminal; plain JSON when redirected."""
    if payload is None:
        return
    if console.is_terminal:
        console.print_json(data=payload)
        return
    typer.echo(dump_json(payload))


def write_headers(err_console: Console, response: HttpResponse) -> None:
    lines = [f"{response.status} {response.reason}".rstrip()]
    lines.extend(f"{name}: {value}" for name, value in response.headers)
    err_console.print(_styled(escape("\n".join(lines)), Styles.HEADERS), highlight=False)


def print_error(err_console: Console, message: str) -> None:
    err_console.print(_styled(escape(message), Styles.ERROR), highlight=False)


def print_warning(err_console: Console, message: str) -> None:
    err_console.print(_styled(escape(message), Styles.WARNING), highlight=False)


def print_info(err_console: Console, message: str, style: str = Styles.INFO) -> None:
    err_console.print(_styled(escape(message), style), highlight=False)
