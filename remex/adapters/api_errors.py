from __future__ import annotations

from typing import Any, Optional


class ApiError(RuntimeError):
    """Base class for transport adapter failures."""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        code: Optional[str] = None,
        hint: Optional[str] = None,
        payload: Any = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.code = code
        self.hint = hint
        self.payload = payload
        self.context = context


class ApiClientError(ApiError):
    """HTTP 4xx from the deployment endpoint."""


class ApiServerError(ApiError):
    """HTTP 5xx from the deployment endpoint."""


class ApiTimeoutError(ApiError):
    """Transport level timeout or connectivity failure."""

    def __init__(self, message: str, *, context: Optional[str] = None) -> None:
        super().__init__(message, context=context)


class ConnectionClosedError(ApiError):
    """Message send attempted on a connection that is not open."""

    def __init__(self, message: str, *, context: Optional[str] = None) -> None:
        super().__init__(message, context=context)


def error_from_response(resp: Any, ctx: str) -> ApiError:
    """Build the typed error for a non-2xx deploy response."""
    status = resp.status_code
    payload = _decode_body(resp)
    detail = _detail(payload)
    message = f"{ctx}: {detail} (HTTP {status})" if detail else f"{ctx}: HTTP {status}"
    if 400 <= status < 500:
        cls = ApiClientError
    elif 500 <= status < 600:
        cls = ApiServerError
    else:
        cls = ApiError
    return cls(
        message,
        status=status,
        code=_code(payload),
        hint=_hint(payload),
        payload=payload,
        context=ctx,
    )


def _decode_body(resp: Any) -> Any:
    try:
        return resp.json()
    except ValueError:
        text = getattr(resp, "text", "") or ""
        return text[:400] or None


def _detail(payload: Any) -> Optional[str]:
    if isinstance(payload, str):
        return payload.strip() or None
    if isinstance(payload, dict):
        for key in ("detail", "message", "error"):
            text = _detail(payload.get(key))
            if text:
                return text
    if isinstance(payload, list):
        for item in payload:
            text = _detail(item)
            if text:
                return text
    return None


def _code(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    value = payload.get("code", payload.get("error_code"))
    return None if value is None else str(value)


def _hint(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    value = payload.get("hint", payload.get("details"))
    if isinstance(value, list):
        value = "; ".join(str(item).strip() for item in value if str(item).strip())
    text = str(value).strip() if value is not None else ""
    return text or None
