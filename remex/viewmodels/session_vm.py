"""Presentation projection of ``SessionCoordinator`` snapshots.

Call context:
    Front ends bind one ``SessionVM`` to the coordinator and re-render from
    its rows and dialog DTOs whenever ``on_change`` fires.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Optional

from remex.domain.entities import SessionSnapshot
from remex.usecases.session_coordinator import SessionCoordinator

_LINE_SPLIT = re.compile(r"\r?\n")


@dataclass
class ExecutableRow:
    """Display row for one deployed executable."""
    id: str
    name: str


@dataclass
class ExecutionDialog:
    """Fields shown in the execution results dialog."""
    exit_code: str
    stdout: str
    stderr: str


def parse_args_text(text: str) -> List[str]:
    """Split text holding one argument per row (``\\n`` or ``\\r\\n``)."""
    if not text:
        return []
    return _LINE_SPLIT.split(text)


class SessionVM:
    """Read-only projection plus command intents for the session screens."""

    def __init__(
        self,
        coordinator: SessionCoordinator,
        *,
        on_change: Optional[Callable[["SessionVM"], None]] = None,
    ) -> None:
        self._coordinator = coordinator
        self.on_change = on_change
        self.snapshot: SessionSnapshot = coordinator.snapshot()
        self._unsubscribe: Optional[Callable[[], None]] = None

    def bind(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self._coordinator.subscribe(self._apply_snapshot)
        self._apply_snapshot(self._coordinator.snapshot())

    def unbind(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    # ------------------------------------------------------------------
    # Projections
    # ------------------------------------------------------------------
    @property
    def ready(self) -> bool:
        return self.snapshot.ready

    @property
    def authenticated(self) -> bool:
        return self.snapshot.authenticated

    @property
    def error_message(self) -> Optional[str]:
        return self.snapshot.last_error_message

    @property
    def deploying_name(self) -> Optional[str]:
        pending = self.snapshot.pending_deployment
        return pending.name if pending else None

    @property
    def can_deploy(self) -> bool:
        snap = self.snapshot
        return snap.authenticated and not snap.connection_lost and snap.pending_deployment is None

    @property
    def executing(self) -> bool:
        return self.snapshot.pending_execution is not None

    def rows(self) -> List[ExecutableRow]:
        snap = self.snapshot
        # While auto-login is in flight the list from the last session stands in.
        items = snap.executables if snap.authenticated else snap.cached_executables
        return [ExecutableRow(id=str(item.id), name=item.name) for item in items]

    def execution_dialog(self) -> Optional[ExecutionDialog]:
        result = self.snapshot.last_execution
        if result is None:
            return None
        return ExecutionDialog(exit_code=str(result.exit_code), stdout=result.stdout, stderr=result.stderr)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def cmd_login(self, username: str, password: str) -> None:
        self._coordinator.login(username, password)

    def cmd_register(self, username: str, password: str) -> None:
        self._coordinator.register(username, password)

    def cmd_logout(self) -> None:
        self._coordinator.logout()

    def cmd_deploy(self, name: str, payload: bytes) -> None:
        self._coordinator.deploy(name, payload)

    def cmd_execute(self, executable_id: str, args_text: str) -> None:
        self._coordinator.execute(executable_id, parse_args_text(args_text))

    def dismiss_error(self) -> None:
        self._coordinator.dismiss_error()

    def close_execution_dialog(self) -> None:
        self._coordinator.clear_execution()

    # ------------------------------------------------------------------
    def _apply_snapshot(self, snapshot: SessionSnapshot) -> None:
        self.snapshot = snapshot
        if self.on_change:
            self.on_change(self)


__all__ = ["ExecutableRow", "ExecutionDialog", "SessionVM", "parse_args_text"]
