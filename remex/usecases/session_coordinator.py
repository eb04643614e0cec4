"""Coordinator owning the backend connection and the client session state.

Inbound frames arrive on the connection thread, commands on the caller's
thread. Every transition runs under one re-entrant lock so it is atomic with
respect to message order; listeners receive immutable ``SessionSnapshot``
values outside the lock, in transition order, from a single dispatcher.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Any, Callable, Deque, List, Optional, Sequence, Tuple

from remex.domain.entities import (
    ErrorInfo,
    Executable,
    ExecutableId,
    PendingDeployment,
    PendingExecution,
    Session,
    SessionSnapshot,
    SessionState,
)
from remex.domain.errors import ConnectionLost, DeploymentError, PreconditionNotMet
from remex.domain.ports import ConnectionPort, CredentialPort, Message, UploadPort
from remex.domain.protocol import (
    DeployOutput,
    ExecuteOutput,
    InboundMessage,
    LoginOutput,
    ProtocolError,
    SendId,
    execute_message,
    login_message,
    logout_message,
    parse_inbound,
    register_message,
)
from remex.usecases.error_mapping import map_api_error

SessionListener = Callable[[SessionSnapshot], None]

USERNAME_MAX_LEN = 40


class SessionCoordinator:
    """State machine multiplexing auth, deploy and execute flows.

    Call chain:
        ``remex.app.controller.AppController`` builds one instance per
        connection and calls :meth:`start`. View models subscribe with
        :meth:`subscribe` and invoke the command methods.
    """

    def __init__(
        self,
        connection: ConnectionPort,
        uploads: UploadPort,
        credentials: CredentialPort,
        *,
        username_max_len: int = USERNAME_MAX_LEN,
    ) -> None:
        self._connection = connection
        self._uploads = uploads
        self._credentials = credentials
        self._username_max_len = username_max_len
        self._state = SessionState()
        self._lock = threading.RLock()
        self._changed = threading.Condition(self._lock)
        self._listeners: List[SessionListener] = []
        self._outbox: Deque[SessionSnapshot] = deque()
        self._dispatching = False
        self._started = False
        self._log = logging.getLogger(__name__)

    # ------------------------------------------------------------------
    # Lifecycle and observation
    # ------------------------------------------------------------------
    def start(self) -> None:
        """Open the connection; the backend answers with ``sendId``."""
        with self._lock:
            if self._started:
                raise PreconditionNotMet("Coordinator already started.")
            self._started = True
        self._connection.open(self.handle_message, self.handle_close)

    def close(self) -> None:
        self._connection.close()

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return self._state.snapshot()

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register ``listener`` for snapshots; returns an unsubscribe callable."""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def wait_for(
        self, predicate: Callable[[SessionSnapshot], bool], timeout: Optional[float] = None
    ) -> Optional[SessionSnapshot]:
        """Block until ``predicate`` holds for the current snapshot.

        Returns:
            The matching snapshot, or ``None`` when ``timeout`` elapsed first.
        """
        with self._changed:
            matched = self._changed.wait_for(lambda: predicate(self._state.snapshot()), timeout)
            return self._state.snapshot() if matched else None

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------
    def handle_message(self, raw: Any) -> None:
        """Apply one decoded inbound frame."""
        try:
            message = parse_inbound(raw)
        except ProtocolError as exc:
            self._log.warning("Ignoring malformed frame: %s", exc)
            return
        with self._lock:
            if self._state.connection_lost:
                self._log.debug("Frame after connection loss ignored: %s", type(message).__name__)
                return
            outbound = self._apply(message)
        self._notify()
        if outbound is not None:
            self._send_auto_login(outbound)

    def handle_close(self, reason: Optional[str] = None) -> None:
        """Move to the disconnected state; pending replies will never arrive."""
        with self._lock:
            if self._state.connection_lost:
                return
            state = self._state
            state.connection_lost = True
            state.identity = None
            state.pending_deployment = None
            state.pending_execution = None
            state.auth_pending = False
            state.auto_login = False
            state.cached_executables = ()
            state.ready = True
            lost = ConnectionLost()
            state.last_error = ErrorInfo(lost.code, lost.message)
        self._log.warning("Connection lost (%s)", reason or "no reason given")
        self._notify()

    def _apply(self, message: InboundMessage) -> Optional[Message]:
        """Mutate state for one message; returns an outbound frame to send."""
        if isinstance(message, SendId):
            return self._on_send_id(message)
        if isinstance(message, LoginOutput):
            self._on_login_output(message)
        elif isinstance(message, DeployOutput):
            self._on_deploy_output(message)
        elif isinstance(message, ExecuteOutput):
            self._on_execute_output(message)
        else:
            self._log.debug("Ignoring unknown message type %r", message.type)
        return None

    def _on_send_id(self, message: SendId) -> Optional[Message]:
        state = self._state
        if state.identity is not None:
            self._log.warning("Connection identity replaced: %s -> %s", state.identity, message.identity)
        state.identity = message.identity
        state.session = None
        state.pending_deployment = None
        state.pending_execution = None
        state.discard_login_reply = False
        cached = self._credentials.load()
        if cached is None:
            state.auth_pending = False
            state.auto_login = False
            state.cached_executables = ()
            state.ready = True
            return None
        username, password = cached
        self._log.info("Identity %s assigned, logging in with cached credentials", message.identity)
        state.auth_pending = True
        state.auto_login = True
        state.cached_executables = self._load_cached_executables()
        state.ready = False
        return login_message(username, password)

    def _on_login_output(self, message: LoginOutput) -> None:
        state = self._state
        was_pending = state.auth_pending
        if state.auto_login:
            state.ready = True
        state.auth_pending = False
        state.auto_login = False
        state.cached_executables = ()
        if message.error:
            state.last_error = ErrorInfo("AUTH_FAILED", message.error)
            self._log.info("Authentication rejected: %s", message.error)
            if was_pending:
                self._credentials.clear()
            return
        if message.executables is None:
            return
        if state.discard_login_reply:
            # Answer to a login issued before the last logout.
            self._log.warning("loginOutput after logout ignored")
            return
        session = Session.from_executables(message.executables)
        dropped = len(message.executables) - len(session.executables)
        if dropped:
            self._log.warning("Dropped %d duplicate executable id(s) from login reply", dropped)
        if state.session is not None:
            self._log.info("Executable list replaced by loginOutput")
        state.session = session
        self._log.info("Authenticated with %d executable(s)", len(session.executables))

    def _on_deploy_output(self, message: DeployOutput) -> None:
        state = self._state
        pending = state.pending_deployment
        if message.error:
            state.last_error = ErrorInfo("DEPLOY_FAILED", message.error)
            state.pending_deployment = None
            self._log.info("Deployment rejected: %s", message.error)
        if message.executable_id is None:
            return
        if pending is None or state.session is None:
            self._log.warning("deployOutput %s without pending deployment ignored", message.executable_id)
            return
        state.pending_deployment = None
        if state.session.has(message.executable_id):
            self._log.warning("Duplicate executable id %s ignored", message.executable_id)
            return
        executable = Executable(id=message.executable_id, name=pending.name)
        state.session = state.session.with_executable(executable)
        self._credentials.save_executables([item.to_payload() for item in state.session.executables])
        self._log.info("Deployed %s as %s", pending.name, message.executable_id)

    def _on_execute_output(self, message: ExecuteOutput) -> None:
        state = self._state
        if message.error:
            state.last_error = ErrorInfo("EXECUTE_FAILED", message.error)
            state.pending_execution = None
            self._log.info("Execution failed: %s", message.error)
        if message.result is not None:
            state.last_execution = message.result
            state.pending_execution = None
            self._log.info("Execution finished with exit code %d", message.result.exit_code)

    def _send_auto_login(self, message: Message) -> None:
        try:
            self._connection.send(message)
        except Exception as exc:
            self._log.error("Automatic login could not be sent: %s", exc)
            with self._lock:
                self._state.auth_pending = False
                self._state.auto_login = False
                self._state.cached_executables = ()
                self._state.ready = True
            self._notify()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def login(self, username: str, password: str) -> None:
        """Send credentials and cache them for automatic login."""
        with self._lock:
            self._require_unauthenticated("login")
            username = self._check_credentials(username, password)
            self._state.auth_pending = True
            self._state.auto_login = False
            self._state.discard_login_reply = False
            self._credentials.save(username, password)
        self._notify()
        self._send(login_message(username, password), rollback=self._rollback_login)

    def register(self, username: str, password: str) -> None:
        """Create an account; the reply is a ``loginOutput``."""
        with self._lock:
            self._require_unauthenticated("register")
            username = self._check_credentials(username, password)
            self._state.auth_pending = True
            self._state.auto_login = False
            self._state.discard_login_reply = False
        self._notify()
        self._send(register_message(username, password), rollback=self._rollback_auth)

    def logout(self) -> None:
        """Drop the session locally without waiting for the backend.

        After connection loss only the local state and cached credentials are
        cleared.
        """
        with self._lock:
            state = self._state
            if state.session is None:
                raise PreconditionNotMet("Not logged in.")
            state.session = None
            state.pending_deployment = None
            state.pending_execution = None
            state.last_execution = None
            state.discard_login_reply = True
            self._credentials.clear()
            connected = not state.connection_lost
        self._notify()
        if not connected:
            return
        try:
            self._connection.send(logout_message())
        except Exception as exc:
            self._log.warning("Logout could not be sent: %s", exc)

    def execute(self, executable_id: ExecutableId | str, args: Sequence[str] = ()) -> None:
        """Request a run of ``executable_id``; the result arrives later."""
        with self._lock:
            state = self._require_session("execute")
            try:
                exec_id = (
                    executable_id
                    if isinstance(executable_id, ExecutableId)
                    else ExecutableId(str(executable_id))
                )
                message = execute_message(exec_id, list(args))
            except ValueError as exc:
                raise PreconditionNotMet(str(exc), code="INVALID_ARGUMENTS") from exc
            if state.pending_execution is not None:
                raise PreconditionNotMet(
                    f"Execution of {state.pending_execution.executable_id} still pending."
                )
            if not state.session.has(exec_id):
                raise PreconditionNotMet(f"Unknown executable {exec_id}.")
            state.pending_execution = PendingExecution(exec_id)
        self._notify()
        self._send(message, rollback=self._rollback_execution)

    def deploy(self, name: str, payload: bytes) -> None:
        """Upload ``payload`` under ``name``; ``deployOutput`` completes it.

        Raises:
            PreconditionNotMet: Not logged in, a deployment is already pending,
                or the input is empty.
            DeploymentError: The upload submission itself failed.
            ConnectionLost: The connection is gone.
        """
        with self._lock:
            state = self._require_session("deploy")
            label = str(name or "").strip()
            if not label:
                raise PreconditionNotMet("Deployment name is required.")
            if not isinstance(payload, (bytes, bytearray, memoryview)):
                raise TypeError("deploy payload must be bytes")
            data = bytes(payload)
            if not data:
                raise PreconditionNotMet("Executable payload is empty.")
            if state.pending_deployment is not None:
                raise PreconditionNotMet(f"Deployment of {state.pending_deployment.name} still pending.")
            identity = state.identity
            if identity is None:
                raise PreconditionNotMet("No connection identity assigned.")
            pending = PendingDeployment(label)
            state.pending_deployment = pending
        self._notify()
        try:
            self._uploads.upload(label, data, identity)
        except Exception as exc:
            mapped = map_api_error(exc, default_code="DEPLOY_FAILED", default_message="Deployment upload failed.")
            with self._lock:
                if self._state.pending_deployment is pending:
                    self._state.pending_deployment = None
                self._state.last_error = ErrorInfo(mapped.code, mapped.message)
            self._log.error("Upload of %s failed: %s", label, mapped.message)
            self._notify()
            if isinstance(mapped, ConnectionLost):
                raise mapped from exc
            raise DeploymentError(mapped.message, code=mapped.code) from exc

    def dismiss_error(self) -> None:
        with self._lock:
            if self._state.last_error is None:
                return
            self._state.last_error = None
        self._notify()

    def clear_execution(self) -> None:
        with self._lock:
            if self._state.last_execution is None:
                return
            self._state.last_execution = None
        self._notify()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _check_credentials(self, username: str, password: str) -> str:
        name = str(username or "").strip()
        if not name:
            raise PreconditionNotMet("Username is required.")
        if len(name) > self._username_max_len:
            raise PreconditionNotMet(f"Username exceeds {self._username_max_len} characters.")
        if not password:
            raise PreconditionNotMet("Password is required.")
        return name

    def _load_cached_executables(self) -> Tuple[Executable, ...]:
        items: List[Executable] = []
        for payload in self._credentials.load_executables() or []:
            try:
                items.append(Executable.from_payload(payload))
            except ValueError:
                self._log.warning("Ignoring malformed cached executable %r", payload)
        return Session.from_executables(items).executables

    def _require_connected(self) -> SessionState:
        state = self._state
        if state.connection_lost:
            raise ConnectionLost()
        return state

    def _require_unauthenticated(self, command: str) -> SessionState:
        state = self._require_connected()
        if not state.ready or state.identity is None:
            raise PreconditionNotMet(f"Cannot {command}: session is not ready.")
        if state.session is not None:
            raise PreconditionNotMet(f"Cannot {command}: already logged in.")
        if state.auth_pending:
            raise PreconditionNotMet(f"Cannot {command}: authentication in progress.")
        return state

    def _require_session(self, command: str) -> SessionState:
        state = self._require_connected()
        if state.session is None:
            raise PreconditionNotMet(f"Cannot {command}: not logged in.")
        return state

    def _rollback_auth(self) -> None:
        self._state.auth_pending = False

    def _rollback_login(self) -> None:
        self._state.auth_pending = False
        # Never auto-submit credentials the backend did not receive.
        self._credentials.clear()

    def _rollback_execution(self) -> None:
        self._state.pending_execution = None

    def _send(self, message: Message, *, rollback: Callable[[], None]) -> None:
        try:
            self._connection.send(message)
        except Exception as exc:
            mapped = map_api_error(exc, default_code="SEND_FAILED", default_message="Message could not be sent.")
            with self._lock:
                rollback()
            self._notify()
            raise mapped from exc

    def _notify(self) -> None:
        """Queue the current snapshot and deliver queued snapshots in order.

        Only one thread drains the queue at a time. A listener that issues a
        command re-enters here, queues the newer snapshot and returns; every
        listener therefore sees snapshots in transition order and ends on the
        latest one.
        """
        with self._changed:
            self._outbox.append(self._state.snapshot())
            self._changed.notify_all()
            if self._dispatching:
                return
            self._dispatching = True
        try:
            while True:
                with self._lock:
                    if not self._outbox:
                        self._dispatching = False
                        return
                    snap = self._outbox.popleft()
                    listeners = list(self._listeners)
                for listener in listeners:
                    try:
                        listener(snap)
                    except Exception:
                        self._log.exception("Session listener failed")
        except BaseException:
            with self._lock:
                self._dispatching = False
            raise


__all__ = ["SessionCoordinator", "SessionListener", "USERNAME_MAX_LEN"]
