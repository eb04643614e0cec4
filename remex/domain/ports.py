from __future__ import annotations
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from .entities import ConnectionIdentity

Message = Dict[str, Any]
MessageHandler = Callable[[Message], None]
CloseHandler = Callable[[Optional[str]], None]


# ---- Error model ----
class UseCaseError(Exception):
    """Base class for use case level errors (user-presentable)."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


# ---- Ports (Hexagonal boundaries) ----
class ConnectionPort(Protocol):
    """One duplex message connection to the backend.

    Inbound frames are delivered to ``on_message`` one at a time in arrival
    order. ``on_close`` fires once when the transport goes away.
    """

    def open(self, on_message: MessageHandler, on_close: CloseHandler) -> None: ...
    def send(self, message: Message) -> None: ...
    def close(self) -> None: ...

    @property
    def is_open(self) -> bool: ...


class UploadPort(Protocol):
    """Out-of-band artifact submission correlated by connection identity.

    Only acknowledges the submission; the deployment result arrives later on
    the connection identified by ``identity``.
    """

    def upload(self, name: str, payload: bytes, identity: ConnectionIdentity) -> None: ...


class CredentialPort(Protocol):
    """Session-scoped key/value storage for cached credentials."""

    def save(self, username: str, password: str) -> None: ...
    def load(self) -> Optional[Tuple[str, str]]: ...
    def clear(self) -> None: ...
    def save_executables(self, executables: List[Dict[str, str]]) -> None: ...
    def load_executables(self) -> Optional[List[Dict[str, str]]]: ...


class StoragePort(Protocol):
    """Persistence for client settings."""

    def save_user_settings(self, payload: Dict) -> None: ...
    def load_user_settings(self) -> Optional[Dict]: ...
