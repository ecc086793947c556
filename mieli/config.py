"""Global configuration management for mieli."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from contextlib import contextmanager
from contextvars import ContextVar
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Dict, Sequence

from . import __version__
from .text import Messages

DEFAULT_CONFIG_DIR = Path(os.path.expanduser("~")) / ".mieli"
CONFIG_DIR = DEFAULT_CONFIG_DIR
CONFIG_FILE = CONFIG_DIR / "config.json"
_CONFIG_DIR_OVERRIDE: ContextVar[Path | None] = ContextVar(
    "mieli_config_dir_override",
    default=None,
)
DEFAULT_ADDR = "http://localhost:7700"
DEFAULT_INDEX = "mieli"
DEFAULT_USER_AGENT = f"mieli/{__version__}"
DEFAULT_INTERVAL_MS = 200
ENV_ADDR = "MEILI_ADDR"
ENV_INDEX = "MIELI_INDEX"
ENV_API_KEY = "MEILI_MASTER_KEY"


@dataclass
class Config:
    addr: str = DEFAULT_ADDR
    index: str = DEFAULT_INDEX
    api_key: str | None = None
    user_agent: str = DEFAULT_USER_AGENT
    interval: int = DEFAULT_INTERVAL_MS
    custom_headers: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """Settings of a single invocation. Never mutated once built."""

    addr: str = DEFAULT_ADDR
    index: str = DEFAULT_INDEX
    api_key: str | None = None
    custom_headers: tuple[tuple[str, str], ...] = ()
    user_agent: str = DEFAULT_USER_AGENT
    interval_ms: int = DEFAULT_INTERVAL_MS
    async_mode: bool = False
    verbose: int = 0

    def __post_init__(self) -> None:
        ensure_valid_interval(self.interval_ms)


def ensure_valid_interval(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(Messages.ERROR_INTERVAL_INVALID.format(value=value))
    return value


def parse_header(raw: str) -> tuple[str, str]:
    """Split a `Name: value` header, rejecting anything else."""

    name, sep, value = raw.partition(":")
    name = name.strip()
    if not sep or not name or any(ch.isspace() for ch in name):
        raise ValueError(Messages.ERROR_HEADER_INVALID.format(value=raw))
    return name, value.strip()


def parse_headers(values: Sequence[str] | None) -> tuple[tuple[str, str], ...]:
    return tuple(parse_header(value) for value in values or ())


def _resolve_config_dir() -> Path:
    override = _CONFIG_DIR_OVERRIDE.get()
    return override if override is not None else CONFIG_DIR


def _resolve_config_file() -> Path:
    override = _CONFIG_DIR_OVERRIDE.get()
    if override is not None:
        return override / "config.json"
    return CONFIG_FILE


@contextmanager
def config_dir_context(path: Path | str | None):
    """Temporarily override the config directory for the current context."""

    if path is None:
        yield
        return
    dir_path = Path(path).expanduser().resolve()
    if dir_path.exists() and not dir_path.is_dir():
        raise NotADirectoryError(f"Path is not a directory: {dir_path}")
    token = _CONFIG_DIR_OVERRIDE.set(dir_path)
    try:
        yield
    finally:
        _CONFIG_DIR_OVERRIDE.reset(token)


def load_config() -> Config:
    config_file = _resolve_config_file()
    if not config_file.exists():
        return Config()
    raw = json.loads(config_file.read_text(encoding="utf-8"))
    return config_from_json(raw)


def save_config(config: Config) -> None:
    config_dir = _resolve_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)
    data: Dict[str, Any] = {}
    if config.addr:
        data["addr"] = config.addr
    if config.index:
        data["index"] = config.index
    if config.api_key:
        data["api_key"] = config.api_key
    if config.user_agent:
        data["user_agent"] = config.user_agent
    data["interval"] = config.interval
    if config.custom_headers:
        data["custom_headers"] = list(config.custom_headers)
    config_file = _resolve_config_file()
    config_file.write_text(
        json.dumps(data, ensure_ascii=False, indent=2),
        encoding="utf-8",
    )


def reset_config() -> None:
    save_config(Config())


def set_config_dir(path: Path | str | None) -> None:
    global CONFIG_DIR, CONFIG_FILE
    if path is None:
        CONFIG_DIR = DEFAULT_CONFIG_DIR
    else:
        dir_path = Path(path).expanduser().resolve()
        if dir_path.exists() and not dir_path.is_dir():
            raise NotADirectoryError(f"Path is not a directory: {dir_path}")
        CONFIG_DIR = dir_path
    CONFIG_FILE = CONFIG_DIR / "config.json"


def config_from_json(
    payload: str | Mapping[str, object], *, base: Config | None = None
) -> Config:
    """Return a Config from a JSON string or mapping without saving it."""
    data = _coerce_config_payload(payload)
    config = Config() if base is None else _clone_config(base)
    _apply_config_payload(config, data)
    return config


def update_config_from_json(
    payload: str | Mapping[str, object], *, replace: bool = False
) -> Config:
    """Update config from a JSON string or mapping and persist it."""
    base = None if replace else load_config()
    config = config_from_json(payload, base=base)
    save_config(config)
    return config


def set_addr(value: str) -> None:
    config = load_config()
    config.addr = _coerce_required_str(value, "addr", DEFAULT_ADDR)
    save_config(config)


def set_index(value: str) -> None:
    config = load_config()
    config.index = _coerce_required_str(value, "index", DEFAULT_INDEX)
    save_config(config)


def set_api_key(value: str | None) -> None:
    config = load_config()
    config.api_key = value
    save_config(config)


def set_user_agent(value: str) -> None:
    config = load_config()
    config.user_agent = _coerce_required_str(value, "user_agent", DEFAULT_USER_AGENT)
    save_config(config)


def set_interval(value: int) -> None:
    config = load_config()
    config.interval = ensure_valid_interval(value)
    save_config(config)


def add_custom_header(value: str) -> None:
    parse_header(value)
    config = load_config()
    config.custom_headers.append(value.strip())
    save_config(config)


def clear_custom_headers() -> None:
    config = load_config()
    config.custom_headers = []
    save_config(config)


def resolve_client_config(
    *,
    addr: str | None = None,
    index: str | None = None,
    api_key: str | None = None,
    user_agent: str | None = None,
    custom_headers: Sequence[str] | None = None,
    interval: int | None = None,
    async_mode: bool = False,
    verbose: int = 0,
    stored: Config | None = None,
) -> ClientConfig:
    """Merge explicit values over the persisted defaults.

    Explicit values come from the command line or the environment; anything
    left to ``None`` falls back to the config file, then to the built-ins.
    """

    base = stored if stored is not None else load_config()
    headers = list(base.custom_headers)
    headers.extend(custom_headers or ())
    return ClientConfig(
        addr=(addr or base.addr or DEFAULT_ADDR).rstrip("/"),
        index=index or base.index or DEFAULT_INDEX,
        api_key=api_key or base.api_key or None,
        custom_headers=parse_headers(headers),
        user_agent=user_agent or base.user_agent or DEFAULT_USER_AGENT,
        interval_ms=interval if interval is not None else base.interval,
        async_mode=bool(async_mode),
        verbose=verbose,
    )


def _coerce_config_payload(payload: str | Mapping[str, object]) -> Mapping[str, object]:
    if isinstance(payload, str):
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise ValueError(Messages.ERROR_CONFIG_JSON_INVALID) from exc
    elif isinstance(payload, Mapping):
        data = dict(payload)
    else:
        raise ValueError(Messages.ERROR_CONFIG_JSON_INVALID)
    if not isinstance(data, Mapping):
        raise ValueError(Messages.ERROR_CONFIG_JSON_INVALID)
    return data


def _clone_config(config: Config) -> Config:
    return Config(
        addr=config.addr,
        index=config.index,
        api_key=config.api_key,
        user_agent=config.user_agent,
        interval=config.interval,
        custom_headers=list(config.custom_headers),
    )


def _apply_config_payload(config: Config, payload: Mapping[str, object]) -> None:
    if "addr" in payload:
        config.addr = _coerce_required_str(payload["addr"], "addr", DEFAULT_ADDR)
    if "index" in payload:
        config.index = _coerce_required_str(payload["index"], "index", DEFAULT_INDEX)
    if "api_key" in payload:
        config.api_key = _coerce_optional_str(payload["api_key"], "api_key")
    if "user_agent" in payload:
        config.user_agent = _coerce_required_str(
            payload["user_agent"], "user_agent", DEFAULT_USER_AGENT
        )
    if "interval" in payload:
        config.interval = _coerce_interval(payload["interval"])
    if "custom_headers" in payload:
        config.custom_headers = _coerce_headers(payload["custom_headers"])


def _coerce_optional_str(value: object, field: str) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        cleaned = value.strip()
        return cleaned or None
    raise ValueError(Messages.ERROR_CONFIG_VALUE_INVALID.format(field=field))


def _coerce_required_str(value: object, field: str, default: str) -> str:
    if value is None:
        return default
    if isinstance(value, str):
        cleaned = value.strip()
        return cleaned or default
    raise ValueError(Messages.ERROR_CONFIG_VALUE_INVALID.format(field=field))


def _coerce_interval(value: object) -> int:
    if value is None:
        return DEFAULT_INTERVAL_MS
    if isinstance(value, bool):
        raise ValueError(Messages.ERROR_CONFIG_VALUE_INVALID.format(field="interval"))
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    elif isinstance(value, str):
        cleaned = value.strip()
        if not cleaned:
            return DEFAULT_INTERVAL_MS
        try:
            value = int(cleaned)
        except ValueError as exc:
            raise ValueError(
                Messages.ERROR_CONFIG_VALUE_INVALID.format(field="interval")
            ) from exc
    return ensure_valid_interval(value)


def _coerce_headers(value: object) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(Messages.ERROR_CONFIG_VALUE_INVALID.format(field="custom_headers"))
    headers: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(
                Messages.ERROR_CONFIG_VALUE_INVALID.format(field="custom_headers")
            )
        parse_header(item)
        headers.append(item.strip())
    return headers
