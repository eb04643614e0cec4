"""REST adapter implementing the out-of-band deployment upload."""

from __future__ import annotations

import io
import logging

import requests

from remex.domain.entities import ConnectionIdentity
from remex.domain.ports import UploadPort

from remex.adapters.api_errors import error_from_response
from remex.adapters.http_client import HttpConfig, RetryingSession

DEFAULT_DEPLOY_URL = "http://localhost:8081/service/deploy"


class UploadRestAdapter(UploadPort):
    """Multipart ``name``/``file``/``id`` submission to the deploy endpoint.

    The response body carries no deployment outcome. Only transport failures
    and non-2xx statuses are reported, as typed adapter errors.
    """

    def __init__(
        self,
        deploy_url: str = DEFAULT_DEPLOY_URL,
        *,
        request_timeout_s: int = 10,
        retries: int = 0,
    ) -> None:
        if not deploy_url or not str(deploy_url).strip():
            raise ValueError("UploadRestAdapter requires a deploy URL")
        self.deploy_url = str(deploy_url).strip()
        self.cfg = HttpConfig(request_timeout_s=request_timeout_s, retries=retries)
        self.session = RetryingSession(self.cfg)
        self._log = logging.getLogger(__name__)

    def upload(self, name: str, payload: bytes, identity: ConnectionIdentity) -> None:
        """Submit one artifact; the result arrives later on the connection."""
        if not isinstance(identity, ConnectionIdentity):
            raise ValueError("upload requires a ConnectionIdentity")
        files = {"file": (name, io.BytesIO(bytes(payload)), "application/octet-stream")}
        data = {"name": name, "id": identity.id}
        self._log.info("Uploading %s (%d bytes) for connection %s", name, len(payload), identity)
        resp = self.session.post_multipart(
            self.deploy_url,
            files=files,
            data=data,
            timeout=self.cfg.request_timeout_s,
        )
        self._ensure_ok(resp, f"upload[{name}]")

    @staticmethod
    def _ensure_ok(resp: requests.Response, ctx: str) -> None:
        """Raise typed adapter errors for non-2xx responses."""
        if not 200 <= resp.status_code < 300:
            raise error_from_response(resp, ctx)


__all__ = ["DEFAULT_DEPLOY_URL", "UploadRestAdapter"]
