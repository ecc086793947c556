"""Logic helpers for the `mieli config` command."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ..config import (
    Config,
    add_custom_header,
    clear_custom_headers,
    load_config,
    reset_config,
    set_addr,
    set_api_key,
    set_index,
    set_interval,
    set_user_agent,
)


@dataclass(slots=True)
class ConfigUpdateResult:
    reset: bool = False
    addr_set: bool = False
    index_set: bool = False
    api_key_set: bool = False
    api_key_cleared: bool = False
    user_agent_set: bool = False
    interval_set: bool = False
    headers_added: int = 0
    headers_cleared: bool = False

    @property
    def changed(self) -> bool:
        return any(
            (
                self.reset,
                self.addr_set,
                self.index_set,
                self.api_key_set,
                self.api_key_cleared,
                self.user_agent_set,
                self.interval_set,
                self.headers_added,
                self.headers_cleared,
            )
        )


def apply_config_updates(
    *,
    reset: bool = False,
    addr: str | None = None,
    index: str | None = None,
    api_key: str | None = None,
    clear_api_key: bool = False,
    user_agent: str | None = None,
    interval: int | None = None,
    add_headers: Sequence[str] | None = None,
    clear_headers: bool = False,
) -> ConfigUpdateResult:
    """Apply config mutations and report which fields were updated."""

    result = ConfigUpdateResult()
    if reset:
        reset_config()
        result.reset = True
    if addr is not None:
        set_addr(addr)
        result.addr_set = True
    if index is not None:
        set_index(index)
        result.index_set = True
    if api_key is not None:
        set_api_key(api_key)
        result.api_key_set = True
    if clear_api_key:
        set_api_key(None)
        result.api_key_cleared = True
    if user_agent is not None:
        set_user_agent(user_agent)
        result.user_agent_set = True
    if interval is not None:
        set_interval(interval)
        result.interval_set = True
    if clear_headers:
        clear_custom_headers()
        result.headers_cleared = True
    for header in add_headers or ():
        add_custom_header(header)
        result.headers_added += 1
    return result


def get_config_snapshot() -> Config:
    """Return the current configuration dataclass."""

    return load_config()
