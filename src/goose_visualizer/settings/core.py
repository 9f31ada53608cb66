"""
Core settings management for goose_visualizer.
"""

import logging
from typing import TYPE_CHECKING, Optional

from PySide6.QtCore import QSettings

from .types import ConfigError, ConfigVersion, ValidationResult
from .validation import SettingsValidator
from .scene import SceneSettings
from .connection import ConnectionSettings
from .logging import LoggingSettings

if TYPE_CHECKING:
    from ..core.grid import GridConfig

logger = logging.getLogger(__name__)


class AppSettings:
    """
    Configuration management using QSettings.

    Provides type-safe access to application settings with automatic
    cross-platform storage and validation.
    """

    def __init__(self, profile: str = "default", backend: Optional[QSettings] = None):
        """Initialize settings with organization, application name, and profile.

        Args:
            profile: Settings profile name (default: "default")
            backend: Explicit QSettings store (tests pass an INI file)
        """
        self.settings = backend if backend is not None else QSettings("goose", "goose_visualizer")
        self.profile = profile

        # Use profile as a group: goose/goose_visualizer/default/...
        self.settings.beginGroup(profile)

        # Initialize subsystems
        self._validator = SettingsValidator(self)
        self._scene = SceneSettings(self.settings)
        self._connection = ConnectionSettings(self.settings)
        self._logging = LoggingSettings(self.settings)

        self.ensure_version()

        logger.debug(
            f"Settings initialized for profile '{profile}', stored at: {self.settings.fileName()}"
        )

    # === SUBSYSTEM ACCESS ===

    @property
    def scene(self) -> SceneSettings:
        """Access scene settings subsystem."""
        return self._scene

    @property
    def connection(self) -> ConnectionSettings:
        """Access connection settings subsystem."""
        return self._connection

    @property
    def logging(self) -> LoggingSettings:
        """Access logging settings subsystem."""
        return self._logging

    # === VERSION AND FIRST RUN ===

    def ensure_version(self) -> None:
        """Stamp the configuration version on first run."""
        current_version = str(self.settings.value("app/version", ""))
        if not current_version:
            self.settings.setValue("app/version", ConfigVersion.CURRENT.value)
            self.settings.setValue("app/first_run", True)
            self.settings.sync()
            logger.info("First run detected, initializing configuration")
        elif current_version != ConfigVersion.CURRENT.value:
            logger.warning(
                f"Unknown configuration version {current_version}, "
                f"expected {ConfigVersion.CURRENT.value}"
            )

    @property
    def is_first_run(self) -> bool:
        """Check if this is the first run of the application."""
        return self._get_bool("app/first_run", True)

    def set_first_run_complete(self) -> None:
        """Mark first run as complete."""
        self.settings.setValue("app/first_run", False)
        self.settings.sync()

    @property
    def version(self) -> str:
        """Get configuration version."""
        return self._get_str("app/version", ConfigVersion.CURRENT.value)

    # === HELPER METHODS ===

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

    # === SCENE ===

    def grid_config(self, viewport_width: float = 0) -> "GridConfig":
        """Build the grid configuration from stored scene settings.

        The origin is centred horizontally in the viewport and lowered by
        two tile heights so the back corner of the floor stays visible.

        Args:
            viewport_width: Width of the drawing surface in pixels

        Raises:
            ConfigError: If the stored grid geometry is invalid
        """
        # Deferred: the grid module imports ConfigError from this package
        from ..core.grid import GridConfig

        result = self.validate()
        if not result.is_valid:
            raise ConfigError("; ".join(result.errors))

        scene = self._scene
        config = GridConfig(
            width=scene.grid_width,
            height=scene.grid_height,
            tile_width=scene.tile_width,
            tile_height=scene.tile_height,
            origin_x=viewport_width / 2,
            origin_y=scene.tile_height * 2,
        )
        config.validate()
        return config

    # === VALIDATION ===

    def validate(self) -> ValidationResult:
        """Validate current configuration."""
        return self._validator.validate()

    # === UTILITY METHODS ===

    def get_settings_file_path(self) -> str:
        """Get the file path where settings are stored."""
        return self.settings.fileName()

    def sync(self) -> None:
        """Force synchronization of settings to storage."""
        self.settings.sync()
