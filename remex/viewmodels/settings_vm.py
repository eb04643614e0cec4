from __future__ import annotations

import os
from dataclasses import asdict, dataclass, replace
from typing import Any, Callable, Mapping, Optional

from ..adapters.upload_rest import DEFAULT_DEPLOY_URL
from ..adapters.ws_connection import DEFAULT_WS_URL
from ..utils.logging import env_debug

_ENV_OVERRIDES = {
    "REMEX_WS_URL": "ws_url",
    "REMEX_DEPLOY_URL": "deploy_url",
    "REMEX_CREDENTIALS_DIR": "credentials_dir",
}


@dataclass
class ClientConfig:
    """Typed runtime settings that persist via StorageLocal."""

    ws_url: str = DEFAULT_WS_URL
    deploy_url: str = DEFAULT_DEPLOY_URL
    request_timeout_s: int = 10
    upload_retries: int = 0
    credentials_dir: str = ""


class SettingsVM:
    """Keeps client settings state and validation, no I/O here."""

    def __init__(
        self,
        *,
        config: Optional[ClientConfig] = None,
        on_save: Optional[Callable[[dict], None]] = None,
    ) -> None:
        self.config = config or ClientConfig()
        self.on_save = on_save
        self.debug_logging: bool = env_debug()

    # ------------------------------------------------------------------
    # Properties bridging to the typed config
    # ------------------------------------------------------------------
    @property
    def ws_url(self) -> str:
        return self.config.ws_url

    @ws_url.setter
    def ws_url(self, value: str) -> None:
        self.config = replace(self.config, ws_url=self._coerce_url("ws_url", value, ("ws://", "wss://")))

    @property
    def deploy_url(self) -> str:
        return self.config.deploy_url

    @deploy_url.setter
    def deploy_url(self, value: str) -> None:
        coerced = self._coerce_url("deploy_url", value, ("http://", "https://"))
        self.config = replace(self.config, deploy_url=coerced)

    @property
    def request_timeout_s(self) -> int:
        return self.config.request_timeout_s

    @request_timeout_s.setter
    def request_timeout_s(self, value: int) -> None:
        coerced = self._coerce_int("request_timeout_s", value, minimum=1)
        self.config = replace(self.config, request_timeout_s=coerced)

    @property
    def upload_retries(self) -> int:
        return self.config.upload_retries

    @upload_retries.setter
    def upload_retries(self, value: int) -> None:
        self.config = replace(self.config, upload_retries=self._coerce_int("upload_retries", value, minimum=0))

    @property
    def credentials_dir(self) -> str:
        return self.config.credentials_dir

    @credentials_dir.setter
    def credentials_dir(self, value: str) -> None:
        self.config = replace(self.config, credentials_dir=self._coerce_optional_str(value))

    # ------------------------------------------------------------------
    def apply_dict(self, payload: Mapping[str, Any]) -> None:
        """Apply persisted settings to the view-model."""
        if not isinstance(payload, Mapping):
            raise ValueError("Settings payload must be a mapping of flat keys.")

        allowed = {*ClientConfig.__annotations__.keys(), "debug_logging"}
        unknown = set(payload.keys()) - allowed
        if unknown:
            raise ValueError(f"Unsupported settings keys: {', '.join(sorted(str(key) for key in unknown))}")

        for key in ClientConfig.__annotations__.keys():
            if key in payload:
                setattr(self, key, payload[key])

        if "debug_logging" in payload:
            self.debug_logging = self._coerce_bool(payload["debug_logging"])

    def apply_env(self, environ: Optional[Mapping[str, str]] = None) -> None:
        """Let ``REMEX_*`` environment variables override stored values."""
        env = os.environ if environ is None else environ
        for var, key in _ENV_OVERRIDES.items():
            value = env.get(var)
            if value:
                setattr(self, key, value)

    def to_dict(self) -> dict:
        snapshot = asdict(self.config)
        snapshot["debug_logging"] = bool(self.debug_logging)
        return snapshot

    def cmd_save(self) -> None:
        if self.on_save:
            self.on_save(self.to_dict())

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _coerce_url(name: str, value: Any, schemes: tuple) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"{name} must be a non-empty URL.")
        text = value.strip()
        if not text.lower().startswith(schemes):
            raise ValueError(f"{name} must start with {' or '.join(schemes)}")
        return text

    @staticmethod
    def _coerce_optional_str(value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()

    @staticmethod
    def _coerce_bool(value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "on"}
        return bool(value)

    @staticmethod
    def _coerce_int(name: str, value: Any, *, minimum: int = 0) -> int:
        if isinstance(value, bool):
            raise ValueError(f"{name} must be an integer.")
        try:
            coerced = int(value.strip()) if isinstance(value, str) else int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"{name} must be an integer.") from exc
        if coerced < minimum:
            raise ValueError(f"{name} must be >= {minimum}.")
        return coerced


__all__ = ["ClientConfig", "SettingsVM"]
