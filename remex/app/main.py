"""Console entrypoint for the remote execution client."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Callable, List, Optional, Sequence

from remex.adapters.backend_mock import BackendMock
from remex.adapters.storage_local import StorageLocal
from remex.app.controller import AppController
from remex.domain.entities import SessionSnapshot
from remex.domain.errors import AuthenticationError, ConnectionLost, DeploymentError, ExecutionError
from remex.domain.ports import UseCaseError
from remex.usecases.session_coordinator import SessionCoordinator
from remex.utils.logging import configure_root
from remex.viewmodels.session_vm import parse_args_text
from remex.viewmodels.settings_vm import SettingsVM

_log = logging.getLogger(__name__)


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse CLI args for one client invocation."""
    parser = argparse.ArgumentParser(prog="remex", description="Deploy and run executables on a remote backend.")
    parser.add_argument("--ws-url", help="WebSocket endpoint (ws:// or wss://).")
    parser.add_argument("--deploy-url", help="HTTP deployment endpoint.")
    parser.add_argument("--settings-dir", default=".", help="Directory holding user_settings.json.")
    parser.add_argument("--user", help="Username; cached credentials are used when omitted.")
    parser.add_argument("--password", help="Password for --user.")
    parser.add_argument("--timeout", type=float, default=15.0, help="Seconds to wait for each reply.")
    parser.add_argument("--offline", action="store_true", help="Use the in-process backend mock.")
    parser.add_argument("--debug", action="store_true", help="Enable DEBUG logging.")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("list", help="List deployed executables.")
    deploy = sub.add_parser("deploy", help="Upload an executable file.")
    deploy.add_argument("file")
    deploy.add_argument("--name", help="Display name; defaults to the file name.")
    execute = sub.add_parser("execute", help="Run a deployed executable.")
    execute.add_argument("id")
    execute.add_argument("args", nargs="*")
    execute.add_argument("--args-file", help="File holding one argument per line.")
    sub.add_parser("register", help="Create an account with --user/--password.")
    sub.add_parser("logout", help="End the session and forget cached credentials.")
    return parser.parse_args(argv)


def _load_settings(args: argparse.Namespace) -> SettingsVM:
    storage = StorageLocal(root_dir=args.settings_dir)
    settings = SettingsVM(on_save=storage.save_user_settings)
    payload = storage.load_user_settings()
    if payload:
        settings.apply_dict(payload)
    settings.apply_env()
    if args.ws_url:
        settings.ws_url = args.ws_url
    if args.deploy_url:
        settings.deploy_url = args.deploy_url
    if args.offline:
        settings.credentials_dir = ""
    elif not settings.credentials_dir:
        settings.credentials_dir = args.settings_dir
    return settings


def _await(
    coordinator: SessionCoordinator,
    predicate: Callable[[SessionSnapshot], bool],
    timeout: float,
    what: str,
) -> SessionSnapshot:
    """Wait until ``predicate`` holds or the connection drops."""
    snap = coordinator.wait_for(lambda s: s.connection_lost or predicate(s), timeout)
    if snap is None:
        raise UseCaseError("TIMEOUT", f"Timed out waiting for {what}.")
    if snap.connection_lost:
        raise ConnectionLost()
    return snap


def _authenticate(coordinator: SessionCoordinator, args: argparse.Namespace) -> SessionSnapshot:
    snap = _await(coordinator, lambda s: s.ready, args.timeout, "the backend handshake")
    if snap.authenticated:
        return snap
    if not args.user or not args.password:
        raise AuthenticationError("Not logged in; pass --user and --password.", code="AUTH_REQUIRED")
    if args.command == "register":
        coordinator.register(args.user, args.password)
    else:
        coordinator.login(args.user, args.password)
    snap = _await(coordinator, lambda s: not s.auth_pending, args.timeout, "the login reply")
    if not snap.authenticated:
        raise AuthenticationError(snap.last_error_message or "Authentication failed.")
    return snap


def _print_executables(snap: SessionSnapshot) -> None:
    if not snap.executables:
        print("No executables deployed.")
        return
    for item in snap.executables:
        print(f"{item.id}\t{item.name}")


def _run_command(controller: AppController, args: argparse.Namespace) -> int:
    coordinator = controller.ensure_ready()
    coordinator.start()
    snap = _authenticate(coordinator, args)

    if args.command in ("list", "register"):
        _print_executables(snap)
    elif args.command == "logout":
        coordinator.logout()
        print("Logged out.")
    elif args.command == "deploy":
        coordinator.dismiss_error()
        name = controller.uc_deploy(args.file, name=args.name)
        snap = _await(coordinator, lambda s: s.pending_deployment is None, args.timeout, "the deployment reply")
        if snap.last_error is not None:
            raise DeploymentError(snap.last_error.message, code=snap.last_error.code)
        deployed = [item for item in snap.executables if item.name == name]
        print(f"{deployed[-1].id}\t{name}" if deployed else name)
    elif args.command == "execute":
        exec_args: List[str] = list(args.args)
        if args.args_file:
            with open(args.args_file, "r", encoding="utf-8") as fh:
                exec_args.extend(parse_args_text(fh.read().rstrip("\r\n")))
        coordinator.dismiss_error()
        coordinator.clear_execution()
        coordinator.execute(args.id, exec_args)
        snap = _await(coordinator, lambda s: s.pending_execution is None, args.timeout, "the execution reply")
        if snap.last_execution is None:
            message = snap.last_error.message if snap.last_error else "Execution failed."
            raise ExecutionError(message)
        result = snap.last_execution
        if result.stdout:
            sys.stdout.write(result.stdout if result.stdout.endswith("\n") else result.stdout + "\n")
        if result.stderr:
            sys.stderr.write(result.stderr if result.stderr.endswith("\n") else result.stderr + "\n")
        return result.exit_code
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entrypoint; returns the process exit code."""
    args = _parse_args(argv)
    try:
        settings = _load_settings(args)
    except ValueError as exc:
        configure_root(debug=args.debug)
        print(f"Invalid settings: {exc}", file=sys.stderr)
        return 2
    configure_root(debug=args.debug or settings.debug_logging)
    _log.debug("Settings loaded from %s", args.settings_dir)

    backend = None
    if args.offline:
        known = args.user and args.password and args.command != "register"
        backend = BackendMock(users={args.user: args.password} if known else None)
    controller = AppController(settings, backend=backend)
    try:
        return _run_command(controller, args)
    except UseCaseError as exc:
        _log.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error [{exc.code}]: {exc.message}", file=sys.stderr)
        return 1
    finally:
        controller.reset()


if __name__ == "__main__":
    sys.exit(main())
