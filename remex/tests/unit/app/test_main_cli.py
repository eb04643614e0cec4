from __future__ import annotations

import json
from pathlib import Path

import pytest

from remex.app import main as cli


def _run(capsys: pytest.CaptureFixture, tmp_path: Path, *argv: str) -> tuple:
    code = cli.main(["--settings-dir", str(tmp_path), "--offline", *argv])
    captured = capsys.readouterr()
    return code, captured.out, captured.err


def test_register_lists_empty_session(capsys: pytest.CaptureFixture, tmp_path: Path) -> None:
    code, out, _ = _run(capsys, tmp_path, "--user", "alice", "--password", "pw", "register")

    assert code == 0
    assert "No executables deployed." in out


def test_deploy_prints_new_identifier(capsys: pytest.CaptureFixture, tmp_path: Path) -> None:
    binary = tmp_path / "tool.sh"
    binary.write_bytes(b"#!/bin/sh\n")

    code, out, _ = _run(capsys, tmp_path, "--user", "alice", "--password", "pw", "deploy", str(binary), "--name", "tool")

    assert code == 0
    exec_id, name = out.strip().split("\t")
    assert exec_id.startswith("exe-")
    assert name == "tool"


def test_execute_unknown_id_reports_precondition(capsys: pytest.CaptureFixture, tmp_path: Path) -> None:
    code, _, err = _run(capsys, tmp_path, "--user", "alice", "--password", "pw", "execute", "nope", "a")

    assert code == 1
    assert "PRECONDITION_NOT_MET" in err


def test_missing_credentials_fail_cleanly(capsys: pytest.CaptureFixture, tmp_path: Path) -> None:
    code, _, err = _run(capsys, tmp_path, "list")

    assert code == 1
    assert "AUTH_REQUIRED" in err


def test_empty_password_is_rejected_before_login(capsys: pytest.CaptureFixture, tmp_path: Path) -> None:
    code, _, err = _run(capsys, tmp_path, "--user", "alice", "--password", "", "list")

    assert code == 1
    assert "AUTH_REQUIRED" in err


def test_invalid_stored_settings_exit_two(capsys: pytest.CaptureFixture, tmp_path: Path) -> None:
    (tmp_path / "user_settings.json").write_text(json.dumps({"ws_url": "ftp://nope"}), encoding="utf-8")

    code, _, err = _run(capsys, tmp_path, "list")

    assert code == 2
    assert "Invalid settings" in err


def test_offline_mode_does_not_write_credentials(capsys: pytest.CaptureFixture, tmp_path: Path) -> None:
    _run(capsys, tmp_path, "--user", "alice", "--password", "pw", "list")

    assert not (tmp_path / "session_store.json").exists()
