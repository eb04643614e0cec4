from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from remex.adapters.api_errors import ConnectionClosedError
from remex.adapters.credentials_local import CredentialCacheMemory
from remex.domain.entities import ConnectionIdentity
from remex.usecases.session_coordinator import SessionCoordinator


class FakeConnection:
    """Records outbound frames; tests push inbound frames by hand."""

    def __init__(self) -> None:
        self.sent: List[Dict[str, Any]] = []
        self.on_message = None
        self.on_close = None
        self.opened = False
        self.closed = False
        self.fail_send: Optional[Exception] = None

    @property
    def is_open(self) -> bool:
        return self.opened and not self.closed

    def open(self, on_message, on_close) -> None:
        self.on_message = on_message
        self.on_close = on_close
        self.opened = True

    def send(self, message: Dict[str, Any]) -> None:
        if self.fail_send is not None:
            raise self.fail_send
        if self.closed:
            raise ConnectionClosedError("Connection is not open", context="fake")
        self.sent.append(dict(message))

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self.on_close is not None:
            self.on_close("closed by client")

    def push(self, frame: Dict[str, Any]) -> None:
        self.on_message(frame)

    def drop(self, reason: str = "server went away") -> None:
        self.closed = True
        self.on_close(reason)


class FakeUploads:
    def __init__(self) -> None:
        self.calls: List[Tuple[str, bytes, ConnectionIdentity]] = []
        self.error: Optional[Exception] = None

    def upload(self, name: str, payload: bytes, identity: ConnectionIdentity) -> None:
        if self.error is not None:
            raise self.error
        self.calls.append((name, payload, identity))


def make_coordinator(
    credentials: Optional[CredentialCacheMemory] = None,
) -> Tuple[SessionCoordinator, FakeConnection, FakeUploads, CredentialCacheMemory]:
    connection = FakeConnection()
    uploads = FakeUploads()
    cache = credentials if credentials is not None else CredentialCacheMemory()
    coordinator = SessionCoordinator(connection, uploads, cache)
    coordinator.start()
    return coordinator, connection, uploads, cache


def make_logged_in(
    executables: Optional[List[Dict[str, str]]] = None,
) -> Tuple[SessionCoordinator, FakeConnection, FakeUploads, CredentialCacheMemory]:
    coordinator, connection, uploads, cache = make_coordinator()
    connection.push({"type": "sendId", "id": "conn-1"})
    coordinator.login("alice", "pw")
    connection.push({"type": "loginOutput", "exec": list(executables or [])})
    connection.sent.clear()
    return coordinator, connection, uploads, cache
