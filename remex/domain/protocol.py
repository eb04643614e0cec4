"""Wire protocol carried over the backend connection.

Outbound builders return plain JSON-ready dictionaries. ``parse_inbound``
turns decoded frames into typed messages; unknown ``type`` values map to
:class:`UnknownMessage` so the coordinator can ignore them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Tuple, Union

from .entities import ConnectionIdentity, Executable, ExecutableId, ExecutionResult

ARGS_DELIMITER = ";"

# Outbound types
LOGIN = "login"
LOGOUT = "logout"
REGISTER = "register"
EXECUTE = "execute"

# Inbound types
SEND_ID = "sendId"
LOGIN_OUTPUT = "loginOutput"
DEPLOY_OUTPUT = "deployOutput"
EXECUTE_OUTPUT = "executeOutput"


class ProtocolError(ValueError):
    """Inbound frame has a known type but an unusable shape."""


# ---- Outbound ----
def login_message(username: str, password: str) -> dict:
    return {"type": LOGIN, "username": username, "password": password}


def register_message(username: str, password: str) -> dict:
    return {"type": REGISTER, "username": username, "password": password}


def logout_message() -> dict:
    return {"type": LOGOUT}


def encode_args(args: Sequence[str]) -> str:
    """Join arguments with the ``;`` delimiter expected by the backend.

    Raises:
        ValueError: If an argument contains the delimiter, since the joined
            string could not be split back into the same arguments.
    """
    items = [str(arg) for arg in args]
    for item in items:
        if ARGS_DELIMITER in item:
            raise ValueError(f"Argument {item!r} contains reserved delimiter '{ARGS_DELIMITER}'.")
    return ARGS_DELIMITER.join(items)


def execute_message(executable_id: ExecutableId, args: Sequence[str]) -> dict:
    return {"type": EXECUTE, "id": str(executable_id), "args": encode_args(args)}


# ---- Inbound ----
@dataclass(frozen=True)
class SendId:
    identity: ConnectionIdentity


@dataclass(frozen=True)
class LoginOutput:
    error: Optional[str] = None
    executables: Optional[Tuple[Executable, ...]] = None


@dataclass(frozen=True)
class DeployOutput:
    error: Optional[str] = None
    executable_id: Optional[ExecutableId] = None


@dataclass(frozen=True)
class ExecuteOutput:
    error: Optional[str] = None
    result: Optional[ExecutionResult] = None


@dataclass(frozen=True)
class UnknownMessage:
    type: Optional[str]


InboundMessage = Union[SendId, LoginOutput, DeployOutput, ExecuteOutput, UnknownMessage]


def parse_inbound(raw: Any) -> InboundMessage:
    """Convert one decoded frame into a typed inbound message.

    Raises:
        ProtocolError: If the frame is not an object or a known message type
            is missing required fields.
    """
    if not isinstance(raw, Mapping):
        raise ProtocolError("Inbound frame must be a JSON object.")
    kind = raw.get("type")
    if kind == SEND_ID:
        raw_id = raw.get("id")
        if raw_id is None or not str(raw_id).strip():
            raise ProtocolError("sendId frame requires 'id'.")
        return SendId(identity=ConnectionIdentity(str(raw_id)))
    if kind == LOGIN_OUTPUT:
        return LoginOutput(error=_error_text(raw), executables=_parse_exec(raw.get("exec")))
    if kind == DEPLOY_OUTPUT:
        raw_id = raw.get("id")
        executable_id = ExecutableId(str(raw_id)) if raw_id not in (None, "") else None
        return DeployOutput(error=_error_text(raw), executable_id=executable_id)
    if kind == EXECUTE_OUTPUT:
        output = raw.get("output")
        result = None
        if output is not None:
            try:
                result = ExecutionResult.from_payload(output)
            except ValueError as exc:
                raise ProtocolError(str(exc)) from exc
        return ExecuteOutput(error=_error_text(raw), result=result)
    return UnknownMessage(type=None if kind is None else str(kind))


def _error_text(raw: Mapping[str, Any]) -> Optional[str]:
    value = raw.get("error")
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_exec(value: Any) -> Optional[Tuple[Executable, ...]]:
    if value is None:
        return None
    if not isinstance(value, (list, tuple)):
        raise ProtocolError("loginOutput 'exec' must be a list.")
    try:
        return tuple(Executable.from_payload(item) for item in value)
    except ValueError as exc:
        raise ProtocolError(str(exc)) from exc


__all__ = [
    "ARGS_DELIMITER",
    "DeployOutput",
    "ExecuteOutput",
    "InboundMessage",
    "LoginOutput",
    "ProtocolError",
    "SendId",
    "UnknownMessage",
    "encode_args",
    "execute_message",
    "login_message",
    "logout_message",
    "parse_inbound",
    "register_message",
]
