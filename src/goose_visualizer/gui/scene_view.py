"""Scene view widget.

This module provides the SceneView widget that shows the renderer's
graphics scene with a play/pause overlay and frame statistics.
"""

import logging
from typing import Optional

import qtawesome as qta  # type: ignore
from PySide6.QtCore import Qt, QTimer, Signal
from PySide6.QtGui import QPainter
from PySide6.QtWidgets import QGraphicsScene, QGraphicsView, QHBoxLayout, QLabel, QPushButton, QWidget

from ..core.frame_loop import FrameLoop
from .events import SceneViewEventHandlers


class SceneView(SceneViewEventHandlers, QGraphicsView):
    """Graphics view hosting the live scene.

    Signals:
        resized: New viewport width and height
    """

    resized = Signal(float, float)

    def __init__(self, scene: QGraphicsScene, parent: Optional[QWidget] = None):
        """Initialize the scene view.

        Args:
            scene: Scene the renderer draws into
            parent: Parent widget
        """
        super().__init__(parent)

        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.setScene(scene)

        self.setDragMode(QGraphicsView.DragMode.NoDrag)
        self.setRenderHint(QPainter.RenderHint.Antialiasing)
        self.setWindowTitle("Goose Visualizer")

        # Panning state
        self._is_panning = False
        self._pan_start_x = 0
        self._pan_start_y = 0
        self._space_pressed = False

        self.frame_loop: Optional[FrameLoop] = None

        self._setup_overlay_ui()

        self._stats_update_timer = QTimer(self)
        self._stats_update_timer.timeout.connect(self._update_frame_stats)
        self._stats_update_timer.start(100)

        self.logger.debug("Scene view initialized")

    def _setup_overlay_ui(self) -> None:
        """Setup overlay UI for playback control."""
        self.overlay_container = QWidget(self)
        layout = QHBoxLayout(self.overlay_container)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setAlignment(Qt.AlignmentFlag.AlignTop | Qt.AlignmentFlag.AlignLeft)
        layout.setSizeConstraint(QHBoxLayout.SizeConstraint.SetFixedSize)
        layout.setSpacing(1)

        self.play_button = QPushButton("", self)
        self.play_button.setFixedSize(32, 32)
        self.play_button.setIcon(qta.icon("mdi.play"))  # type: ignore[arg-type]
        self.play_button.setFlat(True)
        self.play_button.clicked.connect(self.toggle_playback)
        self.play_button.setToolTip("Start [ P ]")
        layout.addWidget(self.play_button)

        self.frame_stats_label = QLabel("0ms / 0fps", self)
        self.frame_stats_label.setFixedSize(100, 32)
        self.frame_stats_label.hide()
        self.frame_stats_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.frame_stats_label.setProperty("class", "frame-stats")
        layout.addWidget(self.frame_stats_label)

        self.overlay_container.raise_()

    def set_frame_loop(self, frame_loop: Optional[FrameLoop]) -> None:
        """Attach the loop the play/pause button controls."""
        self.frame_loop = frame_loop
        self.refresh_playback_ui()

    def refresh_playback_ui(self) -> None:
        """Show the button and label matching the loop state."""
        running = self.frame_loop is not None and self.frame_loop.is_active()
        if running:
            self.play_button.setIcon(qta.icon("mdi.pause"))  # type: ignore[arg-type]
            self.play_button.setToolTip("Pause [ P ]")
            self.frame_stats_label.show()
        else:
            self.play_button.setIcon(qta.icon("mdi.play"))  # type: ignore[arg-type]
            self.play_button.setToolTip("Start [ P ]")
            self.frame_stats_label.hide()

    def toggle_playback(self) -> None:
        """Toggle the frame loop."""
        if self.frame_loop is None:
            return
        if self.frame_loop.is_active():
            self.frame_loop.stop()
            self.logger.debug("Playback paused by user")
        else:
            self.frame_loop.start()
            self.logger.debug("Playback started by user")
        self.refresh_playback_ui()

    def _update_frame_stats(self) -> None:
        """Update frame statistics display."""
        if self.frame_loop is None:
            return
        frame_delta_ms = self.frame_loop.get_frame_delta_ms()

        fps = int(1000 / frame_delta_ms) if frame_delta_ms > 0 else 0
        self.frame_stats_label.setText(f"{frame_delta_ms}ms / {fps}fps")

        if frame_delta_ms > 100:
            self.frame_stats_label.setProperty("class", "frame-stats-red")
        elif frame_delta_ms > 50:
            self.frame_stats_label.setProperty("class", "frame-stats-yellow")
        else:
            self.frame_stats_label.setProperty("class", "frame-stats")

        # Force style refresh
        self.frame_stats_label.style().unpolish(self.frame_stats_label)
        self.frame_stats_label.style().polish(self.frame_stats_label)
