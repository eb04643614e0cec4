"""Shared HTTP transport utilities for the upload adapter.

Thin wrapper around ``requests.Session`` holding timeout policy and the
submission retry count.

Dependencies:
    - ``requests`` for network I/O.
    - ``remex.adapters.api_errors.ApiTimeoutError`` for typed transport failures.

Call context:
    Constructed by ``remex/adapters/upload_rest.py``; use cases interact
    through ``UploadPort`` only.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
from requests import exceptions as req_exc

from remex.adapters.api_errors import ApiTimeoutError


@dataclass
class HttpConfig:
    """Timeout and retry configuration for adapter HTTP calls.

    Attributes:
        request_timeout_s: Timeout in seconds for one submission attempt.
        retries: Number of retry attempts after the initial request.
    """
    request_timeout_s: int = 10
    retries: int = 0


class RetryingSession:
    """Shared requests wrapper retrying on timeouts and connection errors.

    Callers decide how to map non-2xx responses into adapter errors.
    """

    def __init__(self, cfg: HttpConfig) -> None:
        self.session = requests.Session()
        self.cfg = cfg

    def post_multipart(
        self,
        url: str,
        *,
        files: Dict[str, Any],
        data: Optional[Dict[str, str]] = None,
        timeout: Optional[int] = None,
    ) -> requests.Response:
        """Send a multipart POST request with retry-safe file handle rewinds.

        Args:
            url: Absolute endpoint URL.
            files: Multipart file mapping consumed by ``requests``.
            data: Plain form fields sent alongside the files.
            timeout: Optional timeout override in seconds.

        Returns:
            ``requests.Response`` from the first attempt that reached the server.

        Raises:
            ApiTimeoutError: If all attempts fail with timeout/connection errors.
        """
        context = f"POST {url}"
        last_err: ApiTimeoutError | None = None
        for _ in range(self.cfg.retries + 1):
            # Each attempt must send the full file payload from the beginning.
            for value in files.values():
                handle = value[1] if isinstance(value, tuple) and len(value) >= 2 else value
                if hasattr(handle, "seek"):
                    handle.seek(0)
            try:
                return self.session.post(
                    url,
                    files=files,
                    data=data,
                    headers={"Accept": "application/json"},
                    timeout=timeout or self.cfg.request_timeout_s,
                )
            except (req_exc.Timeout, req_exc.ConnectionError):
                last_err = ApiTimeoutError(f"Timeout contacting {url}", context=context)
        raise last_err


__all__ = ["HttpConfig", "RetryingSession"]
