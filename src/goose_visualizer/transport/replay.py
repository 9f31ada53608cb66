"""
Replay of recorded protocol traffic.

A replay file holds one inbound message per line as JSON. A record may
carry a ``delay`` in milliseconds that is waited before it is played.
"""

import logging
from pathlib import Path
from typing import Any, Iterable, Optional

import orjson
from PySide6.QtCore import QObject, QTimer, Signal


class ReplaySource(QObject):
    """Plays recorded messages in order on a single-shot timer.

    Signals:
        message_received: One inbound message (dict)
        finished: All records were played
    """

    message_received = Signal(object)
    finished = Signal()

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.records: list[tuple[int, dict[str, Any]]] = []
        self.position = 0
        self._playing = False

        self.timer = QTimer(self)
        self.timer.setSingleShot(True)
        self.timer.timeout.connect(self.step)

    # === LOADING ===

    def load(self, path: Path) -> int:
        """Load a JSON-lines file, skipping lines that are not JSON objects.

        Returns:
            Number of records loaded

        Raises:
            OSError: If the file cannot be read
        """
        raw = Path(path).read_bytes()
        records = []
        for line_no, line in enumerate(raw.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                record = orjson.loads(line)
            except orjson.JSONDecodeError as e:
                self.logger.warning(f"{path}:{line_no}: invalid JSON skipped ({e})")
                continue
            if not isinstance(record, dict):
                self.logger.warning(f"{path}:{line_no}: record is not an object, skipped")
                continue
            records.append(record)

        count = self.load_records(records)
        self.logger.info(f"Loaded {count} replay records from {path}")
        return count

    def load_records(self, records: Iterable[dict[str, Any]]) -> int:
        self.stop()
        self.records = []
        for record in records:
            message = dict(record)
            delay = message.pop("delay", 0)
            try:
                delay_ms = max(0, int(delay))
            except (TypeError, ValueError):
                self.logger.warning(f"Invalid delay {delay!r}, playing immediately")
                delay_ms = 0
            self.records.append((delay_ms, message))
        self.position = 0
        return len(self.records)

    # === PLAYBACK ===

    def is_playing(self) -> bool:
        return self._playing

    def start(self) -> None:
        """Play from the current position."""
        if self._playing or self.position >= len(self.records):
            return
        self._playing = True
        self._schedule_next()

    def stop(self) -> None:
        self._playing = False
        self.timer.stop()

    def rewind(self) -> None:
        self.stop()
        self.position = 0

    def step(self) -> bool:
        """Play the next record now.

        Returns:
            False if there was nothing left to play
        """
        if self.position >= len(self.records):
            return False

        _, message = self.records[self.position]
        self.position += 1
        self.message_received.emit(message)

        if self.position >= len(self.records):
            self.stop()
            self.logger.debug("Replay finished")
            self.finished.emit()
        elif self._playing:
            self._schedule_next()
        return True

    def _schedule_next(self) -> None:
        delay, _ = self.records[self.position]
        self.timer.start(delay)
