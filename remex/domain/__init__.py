"""Domain package exports for value objects, errors, and protocol messages."""

from .entities import (
    ConnectionIdentity,
    ErrorInfo,
    Executable,
    ExecutableId,
    ExecutionResult,
    PendingDeployment,
    PendingExecution,
    Session,
    SessionPhase,
    SessionSnapshot,
    SessionState,
)
from .errors import (
    AuthenticationError,
    ConnectionLost,
    DeploymentError,
    ExecutionError,
    PreconditionNotMet,
)
from .protocol import encode_args, parse_inbound

__all__ = [
    "AuthenticationError",
    "ConnectionIdentity",
    "ConnectionLost",
    "DeploymentError",
    "ErrorInfo",
    "Executable",
    "ExecutableId",
    "ExecutionError",
    "ExecutionResult",
    "PendingDeployment",
    "PendingExecution",
    "PreconditionNotMet",
    "Session",
    "SessionPhase",
    "SessionSnapshot",
    "SessionState",
    "encode_args",
    "parse_inbound",
]
