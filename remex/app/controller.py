"""Adapter and coordinator wiring for the client runtime.

This module owns lazy construction of the concrete transport adapters and the
``SessionCoordinator`` from values in :class:`remex.viewmodels.settings_vm.SettingsVM`.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..adapters.backend_mock import BackendMock
from ..adapters.credentials_local import CredentialCacheLocal, CredentialCacheMemory
from ..adapters.upload_rest import UploadRestAdapter
from ..adapters.ws_connection import WebSocketConnection
from ..domain.ports import ConnectionPort, CredentialPort, UploadPort
from ..usecases.deploy_from_path import DeployFromPath
from ..usecases.session_coordinator import SessionCoordinator
from ..viewmodels.session_vm import SessionVM
from ..viewmodels.settings_vm import SettingsVM


class AppController:
    """Create and cache runtime adapters and the coordinator from settings.

    Call chain:
        ``remex.app.main`` creates one instance, calls ``ensure_ready`` and
        then ``coordinator.start()``. A coordinator serves exactly one
        connection; ``reset`` closes it so the next ``ensure_ready`` builds a
        fresh one.
    """

    def __init__(self, settings_vm: SettingsVM, *, backend: Optional[BackendMock] = None) -> None:
        """Initialize controller with settings-backed lazy dependencies.

        Args:
            settings_vm: Settings holding URLs, timeouts and credential storage.
            backend: Optional offline backend replacing both network adapters.
        """
        self.settings_vm = settings_vm
        self.backend = backend
        self._connection: Optional[ConnectionPort] = None
        self._uploads: Optional[UploadPort] = None
        self._credentials: Optional[CredentialPort] = None
        self.coordinator: Optional[SessionCoordinator] = None
        self.session_vm: Optional[SessionVM] = None
        self.uc_deploy: Optional[DeployFromPath] = None
        self._log = logging.getLogger(__name__)

    @property
    def credentials(self) -> Optional[CredentialPort]:
        return self._credentials

    def reset(self) -> None:
        """Close the current connection and drop cached runtime objects."""
        if self.session_vm is not None:
            self.session_vm.unbind()
        if self.coordinator is not None:
            self.coordinator.close()
        self._connection = None
        self._uploads = None
        self.coordinator = None
        self.session_vm = None
        self.uc_deploy = None

    def ensure_ready(self) -> SessionCoordinator:
        """Build adapters and the coordinator if they do not exist yet."""
        if self.coordinator is not None:
            return self.coordinator

        if self._credentials is None:
            self._credentials = self._build_credentials()

        if self.backend is not None:
            self._connection = self.backend.connection
            self._uploads = self.backend.uploads
        else:
            self._connection = WebSocketConnection(self.settings_vm.ws_url)
            self._uploads = UploadRestAdapter(
                self.settings_vm.deploy_url,
                request_timeout_s=self.settings_vm.request_timeout_s,
                retries=self.settings_vm.upload_retries,
            )

        self.coordinator = SessionCoordinator(self._connection, self._uploads, self._credentials)
        self.session_vm = SessionVM(self.coordinator)
        self.session_vm.bind()
        self.uc_deploy = DeployFromPath(self.coordinator)
        self._log.debug("Runtime wired (offline=%s)", self.backend is not None)
        return self.coordinator

    def _build_credentials(self) -> CredentialPort:
        root = self.settings_vm.credentials_dir
        if root:
            return CredentialCacheLocal(root_dir=root)
        return CredentialCacheMemory()


__all__ = ["AppController"]
