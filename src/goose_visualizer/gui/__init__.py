"""GUI widgets for goose_visualizer."""

from .scene_view import SceneView

__all__ = ["SceneView"]
