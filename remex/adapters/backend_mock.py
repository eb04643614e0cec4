from __future__ import annotations

import threading
from typing import Dict, List, Optional, Tuple
from uuid import uuid4

from remex.adapters.api_errors import ConnectionClosedError
from remex.domain.entities import ConnectionIdentity
from remex.domain.ports import CloseHandler, ConnectionPort, Message, MessageHandler, UploadPort


class BackendMock:
    """Offline substitute for the execution backend with deterministic replies.

    ``connection`` and ``uploads`` expose the two ports the coordinator needs.
    Replies are delivered synchronously on the caller's thread, guarded by a
    lock so frames never interleave.
    """

    def __init__(self, users: Optional[Dict[str, str]] = None) -> None:
        self.users: Dict[str, str] = dict(users or {})
        self.executables: Dict[str, List[Dict[str, str]]] = {}
        self.connection = _MockConnection(self)
        self.uploads = _MockUpload(self)
        self._current_user: Optional[str] = None
        self._lock = threading.RLock()

    # ---------- backend behaviour ----------

    def handle(self, message: Message) -> None:
        kind = message.get("type")
        if kind == "login":
            self._login(message)
        elif kind == "register":
            self._register(message)
        elif kind == "logout":
            self._current_user = None
        elif kind == "execute":
            self._execute(message)

    def handle_upload(self, name: str, payload: bytes, identity: ConnectionIdentity) -> None:
        if identity.id != self.connection.identity:
            raise ValueError("upload correlated with an unknown connection")
        if self._current_user is None:
            self.connection.deliver({"type": "deployOutput", "error": "Not logged in"})
            return
        if not payload:
            self.connection.deliver({"type": "deployOutput", "error": "Empty executable"})
            return
        exec_id = f"exe-{uuid4().hex[:8]}"
        self.executables.setdefault(self._current_user, []).append({"id": exec_id, "name": name})
        self.connection.deliver({"type": "deployOutput", "id": exec_id})

    def _login(self, message: Message) -> None:
        username = str(message.get("username") or "")
        if self.users.get(username) != message.get("password"):
            self.connection.deliver({"type": "loginOutput", "error": "Wrong username or password"})
            return
        self._current_user = username
        self.connection.deliver(
            {"type": "loginOutput", "exec": list(self.executables.get(username, []))}
        )

    def _register(self, message: Message) -> None:
        username = str(message.get("username") or "")
        if username in self.users:
            self.connection.deliver({"type": "loginOutput", "error": "User already exists"})
            return
        self.users[username] = str(message.get("password") or "")
        self._current_user = username
        self.connection.deliver({"type": "loginOutput", "exec": []})

    def _execute(self, message: Message) -> None:
        owned = {item["id"] for item in self.executables.get(self._current_user or "", [])}
        exec_id = message.get("id")
        if exec_id not in owned:
            self.connection.deliver({"type": "executeOutput", "error": f"Unknown executable {exec_id}"})
            return
        args = str(message.get("args") or "")
        stdout = " ".join(args.split(";")) if args else ""
        self.connection.deliver(
            {"type": "executeOutput", "output": {"exitCode": 0, "stdout": stdout, "stderr": ""}}
        )


class _MockConnection(ConnectionPort):
    def __init__(self, backend: BackendMock) -> None:
        self._backend = backend
        self._on_message: Optional[MessageHandler] = None
        self._on_close: Optional[CloseHandler] = None
        self._open = False
        self.identity: Optional[str] = None
        self.sent: List[Message] = []

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self, on_message: MessageHandler, on_close: CloseHandler) -> None:
        self._on_message = on_message
        self._on_close = on_close
        self._open = True
        self.identity = uuid4().hex
        self.deliver({"type": "sendId", "id": self.identity})

    def send(self, message: Message) -> None:
        if not self._open:
            raise ConnectionClosedError("Connection is not open", context="send mock")
        self.sent.append(dict(message))
        self._backend.handle(message)

    def close(self) -> None:
        if not self._open:
            return
        self._open = False
        self.identity = None
        if self._on_close is not None:
            self._on_close("closed by client")

    def deliver(self, frame: Message) -> None:
        if self._open and self._on_message is not None:
            with self._backend._lock:
                self._on_message(frame)


class _MockUpload(UploadPort):
    def __init__(self, backend: BackendMock) -> None:
        self._backend = backend
        self.calls: List[Tuple[str, bytes, str]] = []

    def upload(self, name: str, payload: bytes, identity: ConnectionIdentity) -> None:
        self.calls.append((name, bytes(payload), identity.id))
        self._backend.handle_upload(name, payload, identity)


__all__ = ["BackendMock"]
