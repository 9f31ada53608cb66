"""
Scene-related settings for goose_visualizer.

Covers the grid geometry, animation timing and the active theme.
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional, cast

if TYPE_CHECKING:
    from PySide6.QtCore import QSettings

logger = logging.getLogger(__name__)

DEFAULT_THEME = "isometric-office"


class SceneSettings:
    """Manages scene geometry and timing settings."""

    def __init__(self, settings: "QSettings"):
        self.settings = settings

    def _get_str(self, key: str, default: str = "") -> str:
        """Type-safe string retrieval from settings."""
        value = self.settings.value(key, default)
        return str(value) if value is not None else default

    def _get_bool(self, key: str, default: bool = False) -> bool:
        """Type-safe boolean retrieval from settings."""
        value = self.settings.value(key, default)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.lower() in ("true", "1", "yes")
        return bool(value) if value is not None else default

    def _get_int(self, key: str, default: int = 0) -> int:
        """Type-safe integer retrieval from settings."""
        value = self.settings.value(key, default)
        try:
            if value is None:
                return default
            return int(cast(str | int, value))
        except (ValueError, TypeError):
            return default

    def _set(self, key: str, value: object) -> None:
        self.settings.setValue(key, value)
        self.settings.sync()

    # === THEME ===

    @property
    def theme(self) -> str:
        """Get the name of the theme loaded at startup."""
        return self._get_str("scene/theme", DEFAULT_THEME) or DEFAULT_THEME

    @theme.setter
    def theme(self, value: str) -> None:
        """Set the startup theme name."""
        self._set("scene/theme", value)

    # === GRID GEOMETRY ===

    @property
    def grid_width(self) -> int:
        """Get grid width in cells."""
        return self._get_int("scene/grid_width", 15)

    @grid_width.setter
    def grid_width(self, value: int) -> None:
        """Set grid width in cells."""
        self._set("scene/grid_width", value)

    @property
    def grid_height(self) -> int:
        """Get grid height in cells."""
        return self._get_int("scene/grid_height", 15)

    @grid_height.setter
    def grid_height(self, value: int) -> None:
        """Set grid height in cells."""
        self._set("scene/grid_height", value)

    @property
    def tile_width(self) -> int:
        """Get tile width in pixels."""
        return self._get_int("scene/tile_width", 64)

    @tile_width.setter
    def tile_width(self, value: int) -> None:
        """Set tile width in pixels."""
        self._set("scene/tile_width", value)

    @property
    def tile_height(self) -> int:
        """Get tile height in pixels."""
        return self._get_int("scene/tile_height", 32)

    @tile_height.setter
    def tile_height(self, value: int) -> None:
        """Set tile height in pixels."""
        self._set("scene/tile_height", value)

    @property
    def show_grid(self) -> bool:
        """Check if floor tiles should be outlined."""
        return self._get_bool("scene/show_grid", True)

    @show_grid.setter
    def show_grid(self, value: bool) -> None:
        """Set floor outline visibility."""
        self._set("scene/show_grid", value)

    # === TIMING ===

    @property
    def move_speed_ms(self) -> int:
        """Get movement duration per tile in milliseconds."""
        return max(0, self._get_int("scene/move_speed_ms", 300))

    @move_speed_ms.setter
    def move_speed_ms(self, value: int) -> None:
        """Set movement duration per tile in milliseconds."""
        self._set("scene/move_speed_ms", max(0, value))

    @property
    def message_duration_ms(self) -> int:
        """Get how long a message bubble travels, in milliseconds."""
        return max(0, self._get_int("scene/message_duration_ms", 2000))

    @message_duration_ms.setter
    def message_duration_ms(self, value: int) -> None:
        """Set message travel duration in milliseconds."""
        self._set("scene/message_duration_ms", max(0, value))

    @property
    def message_grace_ms(self) -> int:
        """Get delay between hiding and forgetting a finished message."""
        return max(0, self._get_int("scene/message_grace_ms", 500))

    @message_grace_ms.setter
    def message_grace_ms(self, value: int) -> None:
        """Set message removal delay in milliseconds."""
        self._set("scene/message_grace_ms", max(0, value))

    @property
    def frame_interval_ms(self) -> int:
        """Get frame loop interval in milliseconds (1-1000 ms)."""
        value = self._get_int("scene/frame_interval_ms", 16)
        return max(1, min(1000, value))

    @frame_interval_ms.setter
    def frame_interval_ms(self, value: int) -> None:
        """Set frame loop interval in milliseconds (1-1000 ms)."""
        validated = max(1, min(1000, value))
        self._set("scene/frame_interval_ms", validated)

    # === ASSETS ===

    @property
    def sprites_path(self) -> Optional[Path]:
        """Get directory with sprite images, if configured."""
        value = self._get_str("scene/sprites_path", "")
        return Path(value) if value else None

    @sprites_path.setter
    def sprites_path(self, value: Optional[Path]) -> None:
        """Set sprite directory (None clears it)."""
        if value is None:
            self.settings.remove("scene/sprites_path")
            self.settings.sync()
        else:
            self._set("scene/sprites_path", str(value))
