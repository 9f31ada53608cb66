"""
Theme registry.

Themes are registered by name with a factory and an optional option schema.
Loading a theme validates the requested options against the schema, builds
a fresh instance and makes it the active theme. Every registry change is
announced through the ``theme_event`` signal as a ``ThemeEvent``.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from PySide6.QtCore import QObject, Signal

from .events.domain import DomainEventType, ThemeEvent
from .themes import coder_cafe, isometric_office, simple2d
from .themes.contract import SceneTheme, ThemeError

ThemeFactory = Callable[[dict[str, Any]], SceneTheme]

OPTION_TYPES = ("string", "number", "boolean", "color", "select", "object")


@dataclass
class ThemeInfo:
    """Registration record of a theme."""

    name: str
    description: str
    factory: ThemeFactory
    version: str = "1.0.0"
    author: Optional[str] = None
    config_schema: dict[str, dict[str, Any]] = field(default_factory=lambda: {})

    @property
    def default_options(self) -> dict[str, Any]:
        return {
            key: definition["default"]
            for key, definition in self.config_schema.items()
            if "default" in definition
        }


@dataclass
class ThemePlugin:
    """Externally supplied theme, converted to a ``ThemeInfo`` on registration."""

    name: str
    description: str
    version: str
    create_theme: ThemeFactory
    author: Optional[str] = None
    config_schema: dict[str, dict[str, Any]] = field(default_factory=lambda: {})

    def to_info(self) -> ThemeInfo:
        return ThemeInfo(
            name=self.name,
            description=self.description,
            factory=self.create_theme,
            version=self.version,
            author=self.author,
            config_schema=dict(self.config_schema),
        )


def validate_options(options: dict[str, Any], schema: dict[str, dict[str, Any]]) -> None:
    """Check theme options against a schema.

    Unknown keys are allowed and passed through to the theme.

    Raises:
        ThemeError: On a missing required option or a value of the wrong type
    """
    for key, definition in schema.items():
        if key not in options:
            if definition.get("required"):
                raise ThemeError(f"Missing required theme configuration option: {key}")
            continue

        value = options[key]
        kind = definition.get("type", "string")

        if kind == "string" and not isinstance(value, str):
            raise ThemeError(f"Theme configuration option {key} must be a string")
        if kind == "number":
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ThemeError(f"Theme configuration option {key} must be a number")
            if "min" in definition and value < definition["min"]:
                raise ThemeError(f"Theme configuration option {key} must be >= {definition['min']}")
            if "max" in definition and value > definition["max"]:
                raise ThemeError(f"Theme configuration option {key} must be <= {definition['max']}")
        if kind == "boolean" and not isinstance(value, bool):
            raise ThemeError(f"Theme configuration option {key} must be a boolean")
        if kind == "select" and value not in definition.get("options", []):
            choices = ", ".join(str(choice) for choice in definition.get("options", []))
            raise ThemeError(f"Theme configuration option {key} must be one of: {choices}")
        if kind == "color" and (not isinstance(value, str) or not value.startswith("#")):
            raise ThemeError(f"Theme configuration option {key} must be a valid color (hex format)")
        if kind == "object" and not isinstance(value, dict):
            raise ThemeError(f"Theme configuration option {key} must be an object")


class ThemeManager(QObject):
    """Registry of available themes and holder of the active one."""

    theme_event = Signal(object)

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._themes: dict[str, ThemeInfo] = {}
        self._active: Optional[SceneTheme] = None

    def _emit(self, event_type: DomainEventType, theme_name: str, **details: Any) -> None:
        self.theme_event.emit(ThemeEvent(event_type=event_type, theme_name=theme_name, details=details))

    # === REGISTRATION ===

    def register_theme(self, info: ThemeInfo) -> None:
        """Register a theme.

        Raises:
            ThemeError: If a theme with the same name exists
        """
        if info.name in self._themes:
            raise ThemeError(f"Theme {info.name} is already registered")
        for key, definition in info.config_schema.items():
            if definition.get("type", "string") not in OPTION_TYPES:
                raise ThemeError(f"Theme {info.name} option {key} has unknown type {definition.get('type')}")

        self._themes[info.name] = info
        self.logger.debug(f"Registered theme '{info.name}'")
        self._emit(DomainEventType.THEME_REGISTERED, info.name, description=info.description)

    def register_plugin(self, plugin: ThemePlugin) -> None:
        self.register_theme(plugin.to_info())

    def unregister_theme(self, name: str) -> bool:
        """Remove a theme from the registry.

        Returns:
            False if no such theme is registered

        Raises:
            ThemeError: If the theme is currently active
        """
        if name not in self._themes:
            return False
        if self._active is not None and self._active.name == name:
            raise ThemeError(f"Cannot unregister active theme {name}")

        del self._themes[name]
        self.logger.debug(f"Unregistered theme '{name}'")
        self._emit(DomainEventType.THEME_UNREGISTERED, name)
        return True

    def get_themes(self) -> list[ThemeInfo]:
        return list(self._themes.values())

    def get_theme_info(self, name: str) -> Optional[ThemeInfo]:
        return self._themes.get(name)

    # === ACTIVE THEME ===

    def get_active_theme(self) -> Optional[SceneTheme]:
        return self._active

    def load_theme(self, name: str, options: Optional[dict[str, Any]] = None) -> SceneTheme:
        """Build a theme and make it the active one.

        The previous theme is not cleaned up here; whoever composes it (the
        scene synchronizer) releases it when switching.

        Raises:
            ThemeError: If the theme is unknown, the options are invalid or
                the factory fails
        """
        info = self._themes.get(name)
        if info is None:
            error = ThemeError(f"Theme {name} is not registered")
            self._emit(DomainEventType.THEME_ERROR, name, error=str(error))
            raise error

        requested = dict(options or {})
        try:
            validate_options(requested, info.config_schema)
            theme = info.factory({**info.default_options, **requested})
        except Exception as e:
            self.logger.error(f"Failed to load theme '{name}': {e}")
            self._emit(DomainEventType.THEME_ERROR, name, error=str(e))
            if isinstance(e, ThemeError):
                raise
            raise ThemeError(f"Theme {name} failed to load: {e}") from e

        previous = self._active
        self._active = theme
        self.logger.info(f"Loaded theme '{name}'")
        self._emit(DomainEventType.THEME_LOADED, name, options=requested)
        if previous is not None:
            self._emit(DomainEventType.THEME_CHANGED, name, previous=previous.name)
        return theme

    def update_config(self, options: dict[str, Any]) -> None:
        """Merge new options into the active theme.

        Raises:
            ThemeError: If no theme is active or the options are invalid
        """
        if self._active is None:
            raise ThemeError("No active theme to configure")
        info = self._themes.get(self._active.name)
        if info is not None:
            validate_options(options, info.config_schema)

        self._active.options.update(options)
        self._emit(DomainEventType.THEME_CONFIG_CHANGED, self._active.name, options=dict(options))


def register_builtin_themes(manager: ThemeManager) -> None:
    """Register the themes shipped with the package."""
    manager.register_theme(
        ThemeInfo(
            name=isometric_office.IsometricOfficeTheme.name,
            description="Isometric office floor with desks and walls",
            factory=isometric_office.IsometricOfficeTheme,
            config_schema=isometric_office.OPTIONS_SCHEMA,
        )
    )
    manager.register_theme(
        ThemeInfo(
            name=simple2d.Simple2DTheme.name,
            description="Flat top-down layout with pulse effects",
            factory=simple2d.Simple2DTheme,
            config_schema=simple2d.OPTIONS_SCHEMA,
        )
    )
    manager.register_plugin(
        ThemePlugin(
            name=coder_cafe.CoderCafeTheme.name,
            description="Isometric café environment for coders and AI collaboration",
            version="1.0.0",
            create_theme=coder_cafe.CoderCafeTheme,
            author="GooseVisualizer Team",
            config_schema=coder_cafe.OPTIONS_SCHEMA,
        )
    )
