from __future__ import annotations

import io
from typing import Any, Dict, List

import pytest
from requests import exceptions as req_exc

from remex.adapters.api_errors import ApiClientError, ApiError, ApiServerError, ApiTimeoutError
from remex.adapters.http_client import HttpConfig, RetryingSession
from remex.adapters.upload_rest import DEFAULT_DEPLOY_URL, UploadRestAdapter
from remex.domain.entities import ConnectionIdentity


class _Response:
    def __init__(self, status_code: int, payload: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class _RecordingSession:
    def __init__(self, response: _Response) -> None:
        self.response = response
        self.calls: List[Dict[str, Any]] = []

    def post_multipart(self, url: str, *, files, data=None, timeout=None) -> _Response:
        file_name, handle, content_type = files["file"]
        self.calls.append(
            {
                "url": url,
                "file_name": file_name,
                "body": handle.read(),
                "content_type": content_type,
                "data": dict(data or {}),
                "timeout": timeout,
            }
        )
        return self.response


def test_upload_posts_name_file_and_identity() -> None:
    adapter = UploadRestAdapter("http://backend.test/service/deploy", request_timeout_s=7)
    fake = _RecordingSession(_Response(200, {"ok": True}))
    adapter.session = fake

    adapter.upload("job1", b"\x00\x01", ConnectionIdentity("c1"))

    assert fake.calls == [
        {
            "url": "http://backend.test/service/deploy",
            "file_name": "job1",
            "body": b"\x00\x01",
            "content_type": "application/octet-stream",
            "data": {"name": "job1", "id": "c1"},
            "timeout": 7,
        }
    ]


def test_upload_maps_client_and_server_errors() -> None:
    adapter = UploadRestAdapter()
    assert adapter.deploy_url == DEFAULT_DEPLOY_URL

    adapter.session = _RecordingSession(_Response(413, {"detail": "too big", "code": "E413"}))
    with pytest.raises(ApiClientError) as client_err:
        adapter.upload("job1", b"a", ConnectionIdentity("c1"))
    assert client_err.value.status == 413
    assert client_err.value.code == "E413"
    assert str(client_err.value) == "upload[job1]: too big (HTTP 413)"

    adapter.session = _RecordingSession(_Response(503, text="maintenance"))
    with pytest.raises(ApiServerError) as server_err:
        adapter.upload("job1", b"a", ConnectionIdentity("c1"))
    assert server_err.value.payload == "maintenance"


def test_upload_requires_connection_identity() -> None:
    adapter = UploadRestAdapter()
    with pytest.raises(ValueError):
        adapter.upload("job1", b"a", "c1")  # type: ignore[arg-type]


def test_retrying_session_rewinds_file_between_attempts() -> None:
    session = RetryingSession(HttpConfig(request_timeout_s=3, retries=1))
    bodies: List[bytes] = []

    def _post(url: str, **kwargs: Any) -> _Response:
        bodies.append(kwargs["files"]["file"][1].read())
        if len(bodies) == 1:
            raise req_exc.ConnectionError("reset")
        return _Response(204)

    session.session.post = _post  # type: ignore[assignment]
    resp = session.post_multipart("http://x/deploy", files={"file": ("a", io.BytesIO(b"abc"), "bin")})

    assert resp.status_code == 204
    assert bodies == [b"abc", b"abc"]


def test_retrying_session_raises_timeout_after_last_attempt() -> None:
    session = RetryingSession(HttpConfig(retries=0))

    def _post(url: str, **kwargs: Any) -> _Response:
        raise req_exc.Timeout("slow")

    session.session.post = _post  # type: ignore[assignment]

    with pytest.raises(ApiTimeoutError) as excinfo:
        session.post_multipart("http://x/deploy", files={})
    assert excinfo.value.context == "POST http://x/deploy"


def test_upload_error_joins_hint_list_and_falls_back_to_status() -> None:
    adapter = UploadRestAdapter()
    adapter.session = _RecordingSession(_Response(422, {"detail": "bad", "hint": ["a", "b"], "error_code": 7}))
    with pytest.raises(ApiClientError) as excinfo:
        adapter.upload("job1", b"a", ConnectionIdentity("c1"))
    assert excinfo.value.hint == "a; b"
    assert excinfo.value.code == "7"

    adapter.session = _RecordingSession(_Response(302))
    with pytest.raises(ApiError) as redirect:
        adapter.upload("job1", b"a", ConnectionIdentity("c1"))
    assert type(redirect.value) is ApiError
    assert str(redirect.value) == "upload[job1]: HTTP 302"
