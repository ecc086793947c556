from __future__ import annotations

import runpy
import sys

import pytest
from typer.testing import CliRunner

import mieli
from mieli.cli import app


def test_get_version_matches_dunder():
    assert mieli.get_version() == mieli.__version__


def test_module_main_calls_run(monkeypatch):
    import mieli.__main__ as main_mod

    called = {"ok": False}

    def fake_run():
        called["ok"] = True

    monkeypatch.setattr(main_mod, "run", fake_run)
    main_mod.main()
    assert called["ok"] is True


def test_python_dash_m_mieli_exits_cleanly(monkeypatch):
    import mieli.cli

    calls = []
    monkeypatch.setattr(mieli.cli, "run", lambda: calls.append("run"))
    sys.modules.pop("mieli.__main__", None)

    with pytest.raises(SystemExit) as exc:
        runpy.run_module("mieli.__main__", run_name="__main__")

    assert calls == ["run"]
    assert exc.value.code is None


def test_run_accepts_explicit_argv(monkeypatch):
    import mieli.cli

    seen = {}

    def fake_app(*args, **kwargs):
        seen["kwargs"] = kwargs

    monkeypatch.setattr(mieli.cli, "app", fake_app)

    mieli.cli.run(["health"])

    assert seen["kwargs"] == {"args": ["health"]}


def test_cli_version_flag_prints_version():
    runner = CliRunner()
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert f"mieli v{mieli.__version__}" in result.stdout


def test_default_user_agent_carries_version():
    from mieli.config import DEFAULT_USER_AGENT

    assert DEFAULT_USER_AGENT == f"mieli/{mieli.__version__}"
