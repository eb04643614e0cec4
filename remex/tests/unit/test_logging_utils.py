from __future__ import annotations

import logging

import pytest

from remex.app import main as cli
from remex.utils.logging import configure_root, env_debug


@pytest.fixture(autouse=True)
def _restore_root_level():
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)


def test_env_level_wins_over_debug_flag() -> None:
    env = {"REMEX_LOG_LEVEL": "warning"}

    assert configure_root(debug=True, environ=env) == logging.WARNING
    assert logging.getLogger().level == logging.WARNING
    assert logging.getLogger("websocket").level == logging.WARNING
    assert env_debug(env) is False


def test_debug_flag_and_env_debug() -> None:
    assert env_debug({"REMEX_DEBUG": "yes"}) is True
    assert configure_root(debug=False, environ={"REMEX_DEBUG": "1"}) == logging.DEBUG
    assert configure_root(debug=True, environ={}) == logging.DEBUG
    assert logging.getLogger("websocket").level == logging.INFO
    assert configure_root(debug=False, environ={}) == logging.INFO
    assert configure_root(environ={"REMEX_LOG_LEVEL": "nonsense"}) == logging.INFO


def test_cli_debug_flag_sets_root_level(
    capsys: pytest.CaptureFixture, tmp_path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("REMEX_LOG_LEVEL", raising=False)
    monkeypatch.delenv("REMEX_DEBUG", raising=False)

    cli.main(["--settings-dir", str(tmp_path), "--offline", "--debug", "list"])
    capsys.readouterr()

    assert logging.getLogger().level == logging.DEBUG


def test_debug_logging_setting_sets_root_level(
    capsys: pytest.CaptureFixture, tmp_path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("REMEX_LOG_LEVEL", raising=False)
    monkeypatch.delenv("REMEX_DEBUG", raising=False)
    (tmp_path / "user_settings.json").write_text('{"debug_logging": true}', encoding="utf-8")

    cli.main(["--settings-dir", str(tmp_path), "--offline", "list"])
    capsys.readouterr()

    assert logging.getLogger().level == logging.DEBUG
