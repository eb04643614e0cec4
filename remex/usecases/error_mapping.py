"""Translate adapter errors into user-facing UseCaseError instances."""

from __future__ import annotations

from typing import Optional

from remex.adapters.api_errors import (
    ApiClientError,
    ApiError,
    ApiServerError,
    ApiTimeoutError,
    ConnectionClosedError,
)
from remex.domain.errors import ConnectionLost
from remex.domain.ports import UseCaseError


def map_api_error(
    exc: Exception,
    *,
    default_code: str,
    default_message: Optional[str] = None,
) -> UseCaseError:
    """Map adapter exceptions to stable UseCaseError codes.

    ``UseCaseError`` instances pass through unchanged. A closed connection
    always becomes :class:`ConnectionLost`.
    """
    if isinstance(exc, UseCaseError):
        return exc
    if isinstance(exc, ConnectionClosedError):
        return ConnectionLost()
    if isinstance(exc, ApiTimeoutError):
        return UseCaseError("REQUEST_TIMEOUT", "Request timed out. Check connection.")
    if isinstance(exc, ApiClientError):
        status = exc.status or 0
        hint = exc.hint
        if status in (401, 403):
            return UseCaseError("AUTH_FAILED", "Not authorized to deploy.")
        if status == 413:
            return UseCaseError("PAYLOAD_TOO_LARGE", "Executable is too large to upload.")
        label = f"Request failed (HTTP {status})" if status else "Request failed"
        return UseCaseError(default_code, _compose_error_message(label, hint))
    if isinstance(exc, ApiServerError):
        return UseCaseError("SERVER_ERROR", "Server error, try again.")
    if isinstance(exc, ApiError):
        return UseCaseError("API_ERROR", str(exc))

    message = default_message or str(exc) or "Unexpected error."
    return UseCaseError(default_code, message)


def _compose_error_message(base: str, hint: Optional[str]) -> str:
    hint_text = (hint or "").strip()
    if hint_text:
        return f"{base}: {hint_text}"
    return base if base.endswith(".") else f"{base}."


__all__ = ["map_api_error"]
