from __future__ import annotations

"""Domain value objects shared across adapters, use-cases, and view models."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional, Tuple


@dataclass(frozen=True)
class ExecutableId:
    """Identifier assigned by the backend to a deployed executable."""

    value: str
    """Backend-provided identifier string, preserved verbatim."""

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value.strip():
            raise ValueError("ExecutableId must be a non-empty string.")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ConnectionIdentity:
    """Opaque token the backend assigns once per live connection."""

    id: str
    """Correlation token sent back with out-of-band uploads."""

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id.strip():
            raise ValueError("ConnectionIdentity must be a non-empty string.")

    def __str__(self) -> str:
        return self.id


@dataclass(frozen=True)
class Executable:
    """Deployed artifact that can be executed remotely."""

    id: ExecutableId
    name: str

    def to_payload(self) -> dict:
        return {"id": str(self.id), "name": self.name}

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Executable":
        """Build an executable from a backend ``{id, name}`` mapping."""
        if not isinstance(payload, Mapping):
            raise ValueError("Executable payload must be a mapping.")
        raw_id = payload.get("id")
        if raw_id is None:
            raise ValueError("Executable payload requires 'id'.")
        name = payload.get("name")
        return cls(id=ExecutableId(str(raw_id)), name="" if name is None else str(name))


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one remote execution."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ExecutionResult":
        """Build a result from the backend ``{exitCode, stdout, stderr}`` mapping."""
        if not isinstance(payload, Mapping):
            raise ValueError("Execution output must be a mapping.")
        raw_code = payload.get("exitCode")
        if isinstance(raw_code, bool) or raw_code is None:
            raise ValueError("Execution output requires an integer 'exitCode'.")
        try:
            exit_code = int(raw_code)
        except (TypeError, ValueError) as exc:
            raise ValueError("Execution output requires an integer 'exitCode'.") from exc
        return cls(
            exit_code=exit_code,
            stdout=str(payload.get("stdout") or ""),
            stderr=str(payload.get("stderr") or ""),
        )


@dataclass(frozen=True)
class Session:
    """Authenticated user's view of their deployed executables."""

    executables: Tuple[Executable, ...] = ()

    @classmethod
    def from_executables(cls, items: Iterable[Executable]) -> "Session":
        """Create a session, keeping the first occurrence of each identifier."""
        seen = set()
        unique: List[Executable] = []
        for item in items:
            if item.id in seen:
                continue
            seen.add(item.id)
            unique.append(item)
        return cls(executables=tuple(unique))

    def has(self, executable_id: ExecutableId) -> bool:
        return any(item.id == executable_id for item in self.executables)

    def find(self, executable_id: ExecutableId) -> Optional[Executable]:
        for item in self.executables:
            if item.id == executable_id:
                return item
        return None

    def with_executable(self, executable: Executable) -> "Session":
        """Return a new session with ``executable`` appended to the list."""
        if self.has(executable.id):
            raise ValueError(f"Executable '{executable.id}' already exists in session.")
        return Session(executables=self.executables + (executable,))


@dataclass(frozen=True)
class PendingDeployment:
    """Human-readable name of the deployment currently in flight."""

    name: str


@dataclass(frozen=True)
class PendingExecution:
    """Executable whose execution reply has not arrived yet."""

    executable_id: ExecutableId


@dataclass(frozen=True)
class ErrorInfo:
    """Last user-presentable error, typed by code."""

    code: str
    message: str


class SessionPhase(str, Enum):
    """Coarse coordinator phase exposed to the presentation layer."""

    CONNECTING = "connecting"
    UNAUTHENTICATED = "unauthenticated"
    AUTO_LOGIN_PENDING = "auto_login_pending"
    AUTHENTICATED = "authenticated"
    DISCONNECTED = "disconnected"


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable read-only view of the coordinator state."""

    phase: SessionPhase = SessionPhase.CONNECTING
    ready: bool = False
    identity: Optional[ConnectionIdentity] = None
    session: Optional[Session] = None
    pending_deployment: Optional[PendingDeployment] = None
    pending_execution: Optional[PendingExecution] = None
    last_execution: Optional[ExecutionResult] = None
    last_error: Optional[ErrorInfo] = None
    auth_pending: bool = False
    connection_lost: bool = False
    cached_executables: Tuple[Executable, ...] = ()
    """Executables remembered from the previous session, shown until auto-login answers."""

    @property
    def authenticated(self) -> bool:
        return self.session is not None

    @property
    def last_error_message(self) -> Optional[str]:
        return self.last_error.message if self.last_error else None

    @property
    def executables(self) -> Tuple[Executable, ...]:
        return self.session.executables if self.session else ()


@dataclass
class SessionState:
    """Mutable state owned by exactly one ``SessionCoordinator``."""

    identity: Optional[ConnectionIdentity] = None
    session: Optional[Session] = None
    pending_deployment: Optional[PendingDeployment] = None
    pending_execution: Optional[PendingExecution] = None
    last_execution: Optional[ExecutionResult] = None
    last_error: Optional[ErrorInfo] = None
    auth_pending: bool = False
    auto_login: bool = False
    discard_login_reply: bool = False
    ready: bool = False
    cached_executables: Tuple[Executable, ...] = ()
    connection_lost: bool = False

    @property
    def phase(self) -> SessionPhase:
        if self.connection_lost:
            return SessionPhase.DISCONNECTED
        if self.identity is None:
            return SessionPhase.CONNECTING
        if self.session is not None:
            return SessionPhase.AUTHENTICATED
        if self.auth_pending and self.auto_login:
            return SessionPhase.AUTO_LOGIN_PENDING
        return SessionPhase.UNAUTHENTICATED

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            phase=self.phase,
            ready=self.ready,
            identity=self.identity,
            session=self.session,
            pending_deployment=self.pending_deployment,
            pending_execution=self.pending_execution,
            last_execution=self.last_execution,
            last_error=self.last_error,
            auth_pending=self.auth_pending,
            connection_lost=self.connection_lost,
            cached_executables=self.cached_executables,
        )


__all__ = [
    "ConnectionIdentity",
    "ErrorInfo",
    "Executable",
    "ExecutableId",
    "ExecutionResult",
    "PendingDeployment",
    "PendingExecution",
    "Session",
    "SessionPhase",
    "SessionSnapshot",
    "SessionState",
]
