"""Per-frame tick driver.

The loop runs on a repeating QTimer in the GUI thread. Every tick measures
the time since the previous one and hands it to the frame callback, which
advances animations and redraws. Ticks never overlap: a tick that fires
while the previous frame is still being processed is skipped and counted.
"""

import logging
import time
from typing import Callable, Optional

from PySide6.QtCore import QTimer


def _perf_clock_ms() -> float:
    return time.perf_counter() * 1000


class FrameLoop:
    """Drives a frame callback at a fixed interval with overload protection."""

    # Smoothing factor for the displayed frame delta
    SMOOTHING_ALPHA = 0.2

    def __init__(
        self,
        on_frame: Callable[[float], None],
        interval_ms: int = 16,
        clock: Optional[Callable[[], float]] = None,
    ):
        """Initialize the frame loop.

        Args:
            on_frame: Called with the elapsed milliseconds since the last frame
            interval_ms: Timer interval in milliseconds
            clock: Monotonic millisecond clock (defaults to perf_counter)
        """
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._on_frame = on_frame
        self._clock = clock or _perf_clock_ms
        self._interval = max(1, interval_ms)

        self.timer = QTimer()
        self.timer.setSingleShot(False)
        self.timer.timeout.connect(self.tick)

        self._is_active = False
        self._in_frame = False
        self._skipped_ticks = 0
        self._frame_count = 0

        self._last_frame_time: float = 0
        self._frame_delta_ms: float = 0

    # === CONTROL ===

    def start(self) -> None:
        """Start ticking. Does nothing if already running."""
        if self._is_active:
            return
        self._is_active = True
        self._last_frame_time = self._clock()
        self.timer.start(self._interval)
        self.logger.debug(f"Frame loop started with interval: {self._interval}ms")

    def stop(self) -> None:
        """Stop ticking. Running animations stay where they are."""
        if not self._is_active:
            return
        self._is_active = False
        self.timer.stop()
        self.logger.debug(f"Frame loop stopped after {self._frame_count} frames")

    def is_active(self) -> bool:
        """Check if the loop is running."""
        return self._is_active

    def set_interval(self, interval_ms: int) -> None:
        """Change the timer interval, applied immediately if running."""
        self._interval = max(1, interval_ms)
        if self.timer.isActive():
            self.timer.setInterval(self._interval)

    # === STATISTICS ===

    def get_skipped_ticks(self) -> int:
        """Get the count of consecutive skipped ticks."""
        return self._skipped_ticks

    def get_frame_delta_ms(self) -> int:
        """Get the smoothed time between frames in milliseconds."""
        return int(self._frame_delta_ms)

    @property
    def frame_count(self) -> int:
        return self._frame_count

    # === TICK ===

    def tick(self) -> None:
        """Process one frame.

        Skipped if a frame is already being processed.
        """
        if self._in_frame:
            self._skipped_ticks += 1

            if self._skipped_ticks == 10:
                self.logger.warning(
                    f"Frame overload: {self._skipped_ticks} consecutive ticks skipped. "
                    f"Consider increasing the frame interval."
                )
            elif self._skipped_ticks > 10 and self._skipped_ticks % 100 == 0:
                self.logger.warning(f"Frame loop still overloaded: {self._skipped_ticks} skips")
            return

        if self._skipped_ticks > 0:
            if self._skipped_ticks > 5:
                self.logger.info(f"Frame loop recovered after {self._skipped_ticks} skipped ticks")
            self._skipped_ticks = 0

        now = self._clock()
        # Inverted timestamps never produce a negative delta
        delta = max(0.0, now - self._last_frame_time)
        self._last_frame_time = now

        self._in_frame = True
        try:
            self._on_frame(delta)
            self._frame_count += 1
            self._update_frame_delta(delta)
        except Exception as e:
            self.logger.error(f"Error during frame: {e}", exc_info=True)
        finally:
            self._in_frame = False

    def _update_frame_delta(self, delta: float) -> None:
        """EWMA of the frame delta for display."""
        if self._frame_delta_ms > 0:
            alpha = self.SMOOTHING_ALPHA
            self._frame_delta_ms = alpha * delta + (1 - alpha) * self._frame_delta_ms
        else:
            self._frame_delta_ms = delta
