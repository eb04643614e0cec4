from __future__ import annotations

from pathlib import Path

import pytest

from remex.adapters.storage_local import StorageLocal
from remex.viewmodels.settings_vm import ClientConfig, SettingsVM


def test_defaults_point_at_local_backend(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("REMEX_DEBUG", raising=False)
    monkeypatch.delenv("REMEX_LOG_LEVEL", raising=False)
    vm = SettingsVM()

    assert vm.to_dict() == {
        "ws_url": "ws://localhost:8081/service/ws",
        "deploy_url": "http://localhost:8081/service/deploy",
        "request_timeout_s": 10,
        "upload_retries": 0,
        "credentials_dir": "",
        "debug_logging": False,
    }


def test_apply_dict_coerces_values() -> None:
    vm = SettingsVM()
    vm.apply_dict(
        {
            "ws_url": " wss://box.example/service/ws ",
            "deploy_url": "https://box.example/service/deploy",
            "request_timeout_s": "15",
            "upload_retries": 2,
            "credentials_dir": None,
            "debug_logging": "yes",
        }
    )

    assert vm.ws_url == "wss://box.example/service/ws"
    assert vm.deploy_url == "https://box.example/service/deploy"
    assert vm.request_timeout_s == 15
    assert vm.upload_retries == 2
    assert vm.credentials_dir == ""
    assert vm.debug_logging is True


@pytest.mark.parametrize(
    "payload",
    [
        {"ws_url": "http://wrong-scheme"},
        {"deploy_url": ""},
        {"request_timeout_s": 0},
        {"upload_retries": -1},
        {"upload_retries": True},
        {"request_timeout_s": "soon"},
        {"unknown_key": 1},
    ],
)
def test_apply_dict_rejects_invalid_values(payload: dict) -> None:
    vm = SettingsVM()

    with pytest.raises(ValueError):
        vm.apply_dict(payload)
    assert vm.config == ClientConfig()


def test_apply_env_overrides_urls() -> None:
    vm = SettingsVM()

    vm.apply_env(
        {
            "REMEX_WS_URL": "ws://10.0.0.5:8081/service/ws",
            "REMEX_DEPLOY_URL": "",
            "REMEX_CREDENTIALS_DIR": "/tmp/remex",
        }
    )

    assert vm.ws_url == "ws://10.0.0.5:8081/service/ws"
    assert vm.deploy_url == "http://localhost:8081/service/deploy"
    assert vm.credentials_dir == "/tmp/remex"


def test_cmd_save_persists_through_storage(tmp_path: Path) -> None:
    storage = StorageLocal(root_dir=str(tmp_path))
    vm = SettingsVM(on_save=storage.save_user_settings)
    vm.upload_retries = 3

    vm.cmd_save()

    restored = SettingsVM()
    restored.apply_dict(storage.load_user_settings())
    assert restored.upload_retries == 3
    assert restored.to_dict()["ws_url"] == vm.ws_url
