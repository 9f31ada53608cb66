"""Event handlers for SceneView.

This module provides event handling for SceneView: mouse panning,
the Space modifier for panning and overlay placement on resize.
"""

from typing import cast

from PySide6.QtCore import Qt
from PySide6.QtGui import QKeyEvent, QMouseEvent, QResizeEvent
from PySide6.QtWidgets import QScrollBar


class SceneViewEventHandlers:
    """Mixin class for SceneView event handling.

    Handles:
    - Mouse panning (middle button or Space+Left button)
    - Space key for the panning cursor
    - Resize (overlay placement and the ``resized`` notification)
    """

    def resizeEvent(self, event: QResizeEvent) -> None:
        """Reposition overlay UI and report the new viewport size."""
        super().resizeEvent(event)  # type: ignore

        self.overlay_container.move(0, 0)  # type: ignore
        size = event.size()
        self.resized.emit(float(size.width()), float(size.height()))  # type: ignore

    def mousePressEvent(self, event: QMouseEvent) -> None:
        """Start panning on middle button or Space+Left button."""
        if event.button() == Qt.MouseButton.MiddleButton or \
           (event.button() == Qt.MouseButton.LeftButton and self._space_pressed):  # type: ignore
            self._is_panning = True  # type: ignore
            self._pan_start_x = event.position().x()  # type: ignore
            self._pan_start_y = event.position().y()  # type: ignore
            self.setCursor(Qt.CursorShape.ClosedHandCursor)  # type: ignore
            event.accept()
        else:
            super().mousePressEvent(event)  # type: ignore

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        """Scroll the view while panning."""
        if self._is_panning:  # type: ignore
            delta_x = event.position().x() - self._pan_start_x  # type: ignore
            delta_y = event.position().y() - self._pan_start_y  # type: ignore

            self._pan_start_x = event.position().x()  # type: ignore
            self._pan_start_y = event.position().y()  # type: ignore

            h_bar = cast(QScrollBar, self.horizontalScrollBar())  # type: ignore
            v_bar = cast(QScrollBar, self.verticalScrollBar())  # type: ignore
            h_bar.setValue(h_bar.value() - int(delta_x))
            v_bar.setValue(v_bar.value() - int(delta_y))

            event.accept()
        else:
            super().mouseMoveEvent(event)  # type: ignore

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        """Stop panning."""
        if event.button() == Qt.MouseButton.MiddleButton or \
           (event.button() == Qt.MouseButton.LeftButton and self._is_panning):  # type: ignore
            self._is_panning = False  # type: ignore
            self.setCursor(Qt.CursorShape.ArrowCursor)  # type: ignore
            event.accept()
        else:
            super().mouseReleaseEvent(event)  # type: ignore

    def keyPressEvent(self, event: QKeyEvent) -> None:
        """Space shows the panning cursor, P toggles playback."""
        if event.key() == Qt.Key.Key_Space:
            self._space_pressed = True  # type: ignore
            if not self._is_panning:  # type: ignore
                self.setCursor(Qt.CursorShape.OpenHandCursor)  # type: ignore
            event.accept()
        elif event.key() == Qt.Key.Key_P:
            self.toggle_playback()  # type: ignore
            event.accept()
        else:
            super().keyPressEvent(event)  # type: ignore

    def keyReleaseEvent(self, event: QKeyEvent) -> None:
        if event.key() == Qt.Key.Key_Space:
            self._space_pressed = False  # type: ignore
            if not self._is_panning:  # type: ignore
                self.setCursor(Qt.CursorShape.ArrowCursor)  # type: ignore
            event.accept()
        else:
            super().keyReleaseEvent(event)  # type: ignore
