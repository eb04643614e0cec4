"""Use case for deploying one local executable file."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from remex.domain.errors import PreconditionNotMet
from remex.domain.ports import UseCaseError
from remex.usecases.error_mapping import map_api_error
from remex.usecases.session_coordinator import SessionCoordinator


@dataclass
class DeployFromPath:
    """Read a file from disk and hand it to ``SessionCoordinator.deploy``."""

    coordinator: SessionCoordinator

    def __call__(self, path: str | Path, *, name: Optional[str] = None) -> str:
        """Validate ``path`` and start the deployment.

        Returns:
            The deployment name used, which defaults to the file name.
        """
        file_path = Path(path).expanduser()
        if not file_path.exists():
            raise PreconditionNotMet(f"Executable not found: {file_path}", code="DEPLOY_FILE_NOT_FOUND")
        if file_path.is_dir():
            raise PreconditionNotMet(f"Executable path is a directory: {file_path}", code="DEPLOY_FILE_INVALID")

        label = (name or "").strip() or file_path.name
        try:
            payload = file_path.read_bytes()
        except OSError as exc:
            raise map_api_error(
                exc,
                default_code="DEPLOY_FILE_UNREADABLE",
                default_message=f"Executable could not be read: {file_path}",
            ) from exc
        if not payload:
            raise PreconditionNotMet(f"Executable is empty: {file_path}", code="DEPLOY_FILE_INVALID")

        try:
            self.coordinator.deploy(label, payload)
        except UseCaseError:
            raise
        except Exception as exc:
            raise map_api_error(
                exc,
                default_code="DEPLOY_FAILED",
                default_message="Deployment failed.",
            ) from exc
        return label


__all__ = ["DeployFromPath"]
