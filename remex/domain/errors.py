"""Domain-level error types raised by the session coordinator.

Every error here is a :class:`~remex.domain.ports.UseCaseError` so callers can
present ``code`` and ``message`` without knowing the transport involved.
"""

from __future__ import annotations

from .ports import UseCaseError


class AuthenticationError(UseCaseError):
    """Login or registration rejected by the backend."""

    def __init__(self, message: str, code: str = "AUTH_FAILED") -> None:
        super().__init__(code, message)


class DeploymentError(UseCaseError):
    """Upload rejected or execution environment setup failed."""

    def __init__(self, message: str, code: str = "DEPLOY_FAILED") -> None:
        super().__init__(code, message)


class ExecutionError(UseCaseError):
    """Requested run failed on the backend."""

    def __init__(self, message: str, code: str = "EXECUTE_FAILED") -> None:
        super().__init__(code, message)


class PreconditionNotMet(UseCaseError):
    """Command invoked while the coordinator state forbids it."""

    def __init__(self, message: str, code: str = "PRECONDITION_NOT_MET") -> None:
        super().__init__(code, message)


class ConnectionLost(UseCaseError):
    """The backend connection closed; no further replies will arrive."""

    def __init__(self, message: str = "Connection lost.", code: str = "CONNECTION_LOST") -> None:
        super().__init__(code, message)


__all__ = [
    "AuthenticationError",
    "ConnectionLost",
    "DeploymentError",
    "ExecutionError",
    "PreconditionNotMet",
]
