"""
Server-sent-events transport.

Connects to an event stream with QNetworkAccessManager and hands every
``data:`` block to the protocol adapter as one inbound message. Lost
connections are retried on a timer according to the connection settings.
"""

import logging
from typing import Optional

from PySide6.QtCore import QObject, QTimer, QUrl, Signal
from PySide6.QtNetwork import QNetworkAccessManager, QNetworkReply, QNetworkRequest

from ..settings.connection import ConnectionSettings


class SseParser:
    """Incremental parser for ``text/event-stream`` bodies.

    Only the ``data`` field is used. Multiple ``data:`` lines of one event
    are joined with a newline, a blank line ends the event and lines
    starting with ``:`` are comments.
    """

    def __init__(self):
        self._buffer = b""
        self._data: list[bytes] = []

    def feed(self, chunk: bytes) -> list[bytes]:
        """Consume a chunk and return the payloads of completed events."""
        self._buffer += chunk
        events: list[bytes] = []

        while b"\n" in self._buffer:
            line, self._buffer = self._buffer.split(b"\n", 1)
            line = line.rstrip(b"\r")

            if not line:
                if self._data:
                    events.append(b"\n".join(self._data))
                    self._data = []
                continue
            if line.startswith(b":"):
                continue

            name, _, value = line.partition(b":")
            if name != b"data":
                continue
            if value.startswith(b" "):
                value = value[1:]
            self._data.append(value)

        return events

    def reset(self) -> None:
        self._buffer = b""
        self._data = []


class SseClient(QObject):
    """Event stream client with automatic reconnect.

    Signals:
        message_received: Payload of one event (bytes)
        connected: Server URL once the stream is open
        disconnected: Reason the stream ended
        error: Network error description
    """

    message_received = Signal(bytes)
    connected = Signal(str)
    disconnected = Signal(str)
    error = Signal(str)

    def __init__(
        self,
        settings: ConnectionSettings,
        manager: Optional[QNetworkAccessManager] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.settings = settings
        self.manager = manager or QNetworkAccessManager(self)
        self.parser = SseParser()

        self._url = ""
        self._reply: Optional[QNetworkReply] = None
        self._is_connected = False
        self._closing = False
        self.reconnect_attempts = 0

        self.reconnect_timer = QTimer(self)
        self.reconnect_timer.setSingleShot(True)
        self.reconnect_timer.timeout.connect(self._open)

    @property
    def url(self) -> str:
        return self._url

    def is_connected(self) -> bool:
        return self._is_connected

    # === CONNECTION ===

    def connect_to(self, url: str) -> None:
        """Open the stream at ``url``, resetting the retry counter."""
        if not url:
            raise ValueError("Server URL is empty")
        if self._reply is not None and self._url == url:
            self.logger.debug(f"Already streaming from {url}")
            return

        self.close()
        self._url = url
        self.reconnect_attempts = 0
        self._open()

    def _open(self) -> None:
        self._closing = False
        self.parser.reset()

        request = QNetworkRequest(QUrl(self._url))
        request.setRawHeader(b"Accept", b"text/event-stream")
        request.setRawHeader(b"Cache-Control", b"no-cache")

        self.logger.info(f"Connecting to {self._url}")
        reply = self.manager.get(request)
        reply.metaDataChanged.connect(self._on_meta_data)
        reply.readyRead.connect(self._on_ready_read)
        reply.finished.connect(self._on_finished)
        self._reply = reply

    def close(self) -> None:
        """Close the stream and cancel pending reconnects."""
        self.reconnect_timer.stop()
        reply, self._reply = self._reply, None
        if reply is not None:
            self._closing = True
            reply.abort()
            reply.deleteLater()

        if self._is_connected:
            self._is_connected = False
            self.logger.info("Disconnected from server")
            self.disconnected.emit("Client disconnected")

    # === REPLY HANDLING ===

    def _on_meta_data(self) -> None:
        if self._reply is None or self._is_connected:
            return
        status = self._reply.attribute(QNetworkRequest.Attribute.HttpStatusCodeAttribute)
        if status is not None and int(status) == 200:
            self.stream_opened()

    def _on_ready_read(self) -> None:
        if self._reply is None:
            return
        if not self._is_connected:
            self.stream_opened()
        self.feed(bytes(self._reply.readAll().data()))

    def _on_finished(self) -> None:
        if self._closing:
            return
        reply, self._reply = self._reply, None
        if reply is None:
            return

        if reply.error() != QNetworkReply.NetworkError.NoError:
            self.connection_lost(reply.errorString(), is_error=True)
        else:
            self.connection_lost("Stream closed by server", is_error=False)
        reply.deleteLater()

    # === STREAM EVENTS ===

    def stream_opened(self) -> None:
        self._is_connected = True
        self.reconnect_attempts = 0
        self.logger.info(f"Connected to {self._url}")
        self.connected.emit(self._url)

    def feed(self, chunk: bytes) -> int:
        """Parse a chunk of the stream body and emit complete messages.

        Returns:
            Number of messages emitted
        """
        payloads = self.parser.feed(chunk)
        for payload in payloads:
            self.message_received.emit(payload)
        return len(payloads)

    def connection_lost(self, reason: str, is_error: bool = True) -> None:
        """Report a lost stream and schedule a reconnect if allowed."""
        was_connected = self._is_connected
        self._is_connected = False

        if is_error:
            self.logger.error(f"Connection error: {reason}")
            self.error.emit(reason)
        if was_connected:
            self.disconnected.emit(reason)

        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        if not self.settings.auto_reconnect or not self._url:
            return
        if self.reconnect_attempts >= self.settings.max_reconnect_attempts:
            self.logger.warning(f"Giving up after {self.reconnect_attempts} reconnect attempts")
            return

        self.reconnect_attempts += 1
        interval = self.settings.reconnect_interval_ms
        self.logger.info(
            f"Reconnecting in {interval}ms "
            f"(attempt {self.reconnect_attempts}/{self.settings.max_reconnect_attempts})"
        )
        self.reconnect_timer.start(interval)
