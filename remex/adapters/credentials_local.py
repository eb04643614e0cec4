from __future__ import annotations
import json
import logging
import os
from typing import Any, Dict, List, Optional, Tuple

from remex.domain.ports import CredentialPort

# NOTE: passwords are kept in cleartext, matching browser session storage.
_USERNAME = "username"
_PASSWORD = "password"
_USER_STATE = "userState"

_log = logging.getLogger(__name__)


class CredentialCacheMemory(CredentialPort):
    """Process-lifetime credential cache (the default)."""

    def __init__(self) -> None:
        self._items: Dict[str, Any] = {}

    def save(self, username: str, password: str) -> None:
        self._items[_USERNAME] = username
        self._items[_PASSWORD] = password

    def load(self) -> Optional[Tuple[str, str]]:
        return _pair(self._items)

    def clear(self) -> None:
        self._items.clear()

    def save_executables(self, executables: List[Dict[str, str]]) -> None:
        self._items[_USER_STATE] = json.dumps({"executables": list(executables)})

    def load_executables(self) -> Optional[List[Dict[str, str]]]:
        return _executables(self._items.get(_USER_STATE))


class CredentialCacheLocal(CredentialPort):
    """JSON-file credential cache surviving client restarts."""

    def __init__(self, root_dir: str = ".", filename: str = "session_store.json") -> None:
        self.root = root_dir
        self.path = os.path.join(root_dir, filename)

    def save(self, username: str, password: str) -> None:
        items = self._read()
        items[_USERNAME] = username
        items[_PASSWORD] = password
        self._write(items)

    def load(self) -> Optional[Tuple[str, str]]:
        return _pair(self._read())

    def clear(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)

    def save_executables(self, executables: List[Dict[str, str]]) -> None:
        items = self._read()
        items[_USER_STATE] = json.dumps({"executables": list(executables)})
        self._write(items)

    def load_executables(self) -> Optional[List[Dict[str, str]]]:
        return _executables(self._read().get(_USER_STATE))

    def _read(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            # Unreadable store counts as empty; the next save rewrites it.
            _log.warning("Ignoring unreadable credential store %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, items: Dict[str, Any]) -> None:
        os.makedirs(self.root, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(items, f, ensure_ascii=False, indent=2)


def _pair(items: Dict[str, Any]) -> Optional[Tuple[str, str]]:
    username = items.get(_USERNAME)
    password = items.get(_PASSWORD)
    # Both values must be present and non-empty to count as cached.
    if not username or not password:
        return None
    return str(username), str(password)


def _executables(raw: Any) -> Optional[List[Dict[str, str]]]:
    if not raw:
        return None
    try:
        state = json.loads(raw)
    except (TypeError, ValueError):
        _log.warning("Ignoring malformed cached executable list")
        return None
    items = state.get("executables") if isinstance(state, dict) else None
    if not isinstance(items, list):
        return None
    return [dict(item) for item in items if isinstance(item, dict)]


__all__ = ["CredentialCacheLocal", "CredentialCacheMemory"]
