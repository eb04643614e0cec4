from __future__ import annotations

import json
from pathlib import Path

from remex.adapters.storage_local import StorageLocal


def test_load_missing_settings_returns_none(tmp_path: Path) -> None:
    storage = StorageLocal(root_dir=str(tmp_path / "missing"))

    assert storage.load_user_settings() is None


def test_save_creates_directory_and_roundtrips(tmp_path: Path) -> None:
    root = tmp_path / "cfg"
    storage = StorageLocal(root_dir=str(root))
    payload = {"ws_url": "ws://box:8081/service/ws", "upload_retries": 2}

    storage.save_user_settings(payload)

    assert json.loads((root / "user_settings.json").read_text(encoding="utf-8")) == payload
    assert storage.load_user_settings() == payload
