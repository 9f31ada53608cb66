"""
Settings validation for goose_visualizer.
"""

import logging
from typing import List, TYPE_CHECKING

from ..core.isometric import LAYER_DEPTH_MULTIPLIER
from .types import ValidationResult

if TYPE_CHECKING:
    from .core import AppSettings

logger = logging.getLogger(__name__)


class SettingsValidator:
    """Validates configuration settings."""

    def __init__(self, settings: "AppSettings"):
        self.settings = settings

    def validate(self) -> ValidationResult:
        """Validate current configuration."""
        errors: List[str] = []
        warnings: List[str] = []

        scene = self.settings.scene

        # Grid geometry must describe at least one cell
        if scene.grid_width <= 0 or scene.grid_height <= 0:
            errors.append(
                f"Grid size must be positive: {scene.grid_width}x{scene.grid_height}"
            )
        elif scene.grid_width + scene.grid_height - 2 >= LAYER_DEPTH_MULTIPLIER:
            errors.append(
                f"Grid too large for layered depth sorting: {scene.grid_width}x{scene.grid_height}"
            )
        if scene.tile_width <= 0 or scene.tile_height <= 0:
            errors.append(
                f"Tile size must be positive: {scene.tile_width}x{scene.tile_height}"
            )

        if not self.settings.connection.server_url:
            warnings.append("Server URL not set")

        sprites_path = scene.sprites_path
        if sprites_path is not None and not sprites_path.is_dir():
            warnings.append(f"Sprites directory does not exist: {sprites_path}")

        if errors:
            logger.debug(f"Settings validation failed: {errors}")

        return ValidationResult(
            is_valid=len(errors) == 0, errors=errors, warnings=warnings
        )
