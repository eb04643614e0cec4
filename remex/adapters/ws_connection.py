"""WebSocket adapter implementing :class:`remex.domain.ports.ConnectionPort`.

The connection runs ``websocket.WebSocketApp.run_forever`` on a daemon thread.
Inbound text frames are JSON-decoded and handed to the registered message
handler on that thread, one frame at a time. There is no reconnection: once
the socket closes the close handler fires exactly once and the adapter stays
closed.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Any, Callable, Optional

import websocket

from remex.adapters.api_errors import ConnectionClosedError
from remex.domain.ports import CloseHandler, ConnectionPort, Message, MessageHandler

DEFAULT_WS_URL = "ws://localhost:8081/service/ws"

AppFactory = Callable[..., Any]


class WebSocketConnection(ConnectionPort):
    """Single-use duplex JSON message connection."""

    def __init__(
        self,
        url: str = DEFAULT_WS_URL,
        *,
        app_factory: AppFactory = websocket.WebSocketApp,
        join_timeout_s: float = 2.0,
    ) -> None:
        if not url or not str(url).strip():
            raise ValueError("WebSocketConnection requires a URL")
        self.url = str(url).strip()
        self._app_factory = app_factory
        self._join_timeout_s = join_timeout_s
        self._ws: Any = None
        self._thread: Optional[threading.Thread] = None
        self._on_message: Optional[MessageHandler] = None
        self._on_close: Optional[CloseHandler] = None
        self._lock = threading.Lock()
        self._connected = False
        self._closed = False
        self._last_error: Optional[str] = None
        self._log = logging.getLogger(__name__)

    @property
    def is_open(self) -> bool:
        with self._lock:
            return self._connected and not self._closed

    def open(self, on_message: MessageHandler, on_close: CloseHandler) -> None:
        """Start the socket thread; ``sendId`` is expected as the first frame."""
        if self._ws is not None:
            raise RuntimeError("WebSocketConnection can only be opened once")
        self._on_message = on_message
        self._on_close = on_close
        self._log.info("Connecting to %s", self.url)
        self._ws = self._app_factory(
            self.url,
            on_open=self._handle_open,
            on_message=self._handle_message,
            on_error=self._handle_error,
            on_close=self._handle_close,
        )
        self._thread = threading.Thread(target=self._run, daemon=True, name="RemexWSThread")
        self._thread.start()

    def send(self, message: Message) -> None:
        if not self.is_open:
            raise ConnectionClosedError("Connection is not open", context=f"send {self.url}")
        try:
            self._ws.send(json.dumps(message))
        except websocket.WebSocketConnectionClosedException as exc:
            self._mark_closed(str(exc) or "closed during send")
            raise ConnectionClosedError("Connection closed during send", context=f"send {self.url}") from exc
        self._log.debug("Sent %s frame", message.get("type"))

    def close(self) -> None:
        ws = self._ws
        if ws is None:
            return
        self._log.info("Closing connection to %s", self.url)
        ws.close()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self._join_timeout_s)
        self._mark_closed("closed by client")

    # ------------------------------------------------------------------
    def _run(self) -> None:
        try:
            self._ws.run_forever()
        except Exception as exc:
            self._last_error = str(exc)
            self._log.error("WebSocket loop failed: %s", exc)
        finally:
            # run_forever can return without on_close when the handshake fails.
            self._mark_closed(self._last_error)

    def _handle_open(self, _ws: Any) -> None:
        with self._lock:
            self._connected = True
        self._log.info("Connected to %s", self.url)

    def _handle_message(self, _ws: Any, text: Any) -> None:
        try:
            decoded = json.loads(text)
        except (TypeError, ValueError):
            self._log.warning("Dropping undecodable frame: %.80r", text)
            return
        if self._on_message is not None:
            self._on_message(decoded)

    def _handle_error(self, _ws: Any, error: Any) -> None:
        self._last_error = str(error)
        self._log.error("WebSocket error: %s", error)

    def _handle_close(self, _ws: Any, status_code: Any = None, reason: Any = None) -> None:
        detail = reason or self._last_error
        if status_code is not None:
            detail = f"{status_code}: {detail}" if detail else str(status_code)
        self._mark_closed(detail)

    def _mark_closed(self, reason: Optional[str]) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._connected = False
        self._log.warning("Connection to %s closed (%s)", self.url, reason or "no reason")
        if self._on_close is not None:
            self._on_close(reason)


__all__ = ["DEFAULT_WS_URL", "WebSocketConnection"]
