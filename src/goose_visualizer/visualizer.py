"""
Visualizer facade.

Wires the protocol adapter, theme manager, scene synchronizer, renderer,
transports and the optional view into one object.
"""

import logging
from pathlib import Path
from typing import Any, Optional

from PySide6.QtWidgets import QGraphicsScene, QWidget

from .core.adapter import EventHandler, ProtocolAdapter
from .events.domain import (
    DomainEventType,
    McpConnectedEvent,
    McpDisconnectedEvent,
    McpErrorEvent,
)
from .gui.scene_view import SceneView
from .rendering.renderer import QtSceneRenderer
from .settings import AppSettings
from .settings.scene import DEFAULT_THEME
from .theme_manager import ThemeInfo, ThemeManager, ThemePlugin, register_builtin_themes
from .themes.contract import SceneTheme, ThemeError
from .themes.scene_sync import SceneSynchronizer
from .transport.replay import ReplaySource
from .transport.sse import SseClient


class GooseVisualizer:
    """Live visualization of agents, tasks and messages."""

    def __init__(self, settings: AppSettings, theme_name: Optional[str] = None):
        """Initialize all components.

        Args:
            settings: Application settings
            theme_name: Theme to start with (defaults to the stored theme)

        Raises:
            ConfigError: If the stored grid configuration is invalid
        """
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.settings = settings

        # Fail fast on an unusable grid before any component is built
        grid_config = settings.grid_config()

        self.adapter = ProtocolAdapter()
        self.theme_manager = ThemeManager()
        register_builtin_themes(self.theme_manager)
        self.theme_manager.theme_event.connect(self.adapter.publish)

        theme = self._load_initial_theme(theme_name or settings.scene.theme)

        self.scene = QGraphicsScene()
        self.renderer = QtSceneRenderer(self.scene)
        self.synchronizer = SceneSynchronizer(
            self.adapter, theme, self.renderer, settings.scene, grid_config=grid_config
        )
        self.renderer.set_sprites(self.synchronizer.sprites)

        self.transport = SseClient(settings.connection)
        self.transport.message_received.connect(self.adapter.handle_message)
        self.transport.connected.connect(self._on_connected)
        self.transport.disconnected.connect(self._on_disconnected)
        self.transport.error.connect(self._on_transport_error)

        self.replay = ReplaySource()
        self.replay.message_received.connect(self.adapter.handle_message)

        self.view: Optional[SceneView] = None

        self.logger.debug(f"Visualizer initialized with theme '{theme.name}'")

    def _load_initial_theme(self, name: str) -> SceneTheme:
        try:
            return self.theme_manager.load_theme(name)
        except ThemeError as e:
            if name == DEFAULT_THEME:
                raise
            self.logger.warning(f"{e}; falling back to '{DEFAULT_THEME}'")
            return self.theme_manager.load_theme(DEFAULT_THEME)

    # === VIEW ===

    def create_view(self, parent: Optional[QWidget] = None) -> SceneView:
        """Create the widget showing the scene."""
        if self.view is None:
            self.view = SceneView(self.scene, parent)
            self.view.set_frame_loop(self.synchronizer.frame_loop)
            self.view.resized.connect(self.resize)
        return self.view

    def resize(self, width: float, height: float) -> None:
        self.synchronizer.resize(width, height)

    # === LIFECYCLE ===

    def start(self) -> None:
        """Start the frame loop and connect if configured to."""
        self.synchronizer.start()
        connection = self.settings.connection
        if connection.auto_connect and connection.server_url and not self.transport.is_connected():
            self.connect()
        if self.view is not None:
            self.view.refresh_playback_ui()
        self.logger.info("Visualizer started")

    def stop(self) -> None:
        """Stop the frame loop and all data sources."""
        self.synchronizer.stop()
        self.replay.stop()
        self.transport.close()
        if self.view is not None:
            self.view.refresh_playback_ui()
        self.logger.info("Visualizer stopped")

    def shutdown(self) -> None:
        """Stop everything and release the scene."""
        self.stop()
        self.synchronizer.cleanup()
        self.renderer.begin_frame()

    # === DATA SOURCES ===

    def connect(self, url: Optional[str] = None) -> None:
        """Open the event stream at ``url`` or the configured server URL."""
        target = url or self.settings.connection.server_url
        if not target:
            self.logger.warning("No server URL configured")
            return
        self.transport.connect_to(target)

    def disconnect(self) -> None:
        self.transport.close()

    def load_replay(self, path: Path, autoplay: bool = True) -> int:
        """Load a recorded session and optionally start playing it.

        Returns:
            Number of records loaded
        """
        count = self.replay.load(path)
        if autoplay and count:
            self.replay.start()
        return count

    def _on_connected(self, url: str) -> None:
        self.adapter.publish(McpConnectedEvent(url=url))

    def _on_disconnected(self, reason: str) -> None:
        self.adapter.publish(McpDisconnectedEvent(reason=reason))

    def _on_transport_error(self, error: str) -> None:
        self.adapter.publish(McpErrorEvent(error=error))

    # === THEMES ===

    def set_theme(self, name: str, options: Optional[dict[str, Any]] = None) -> None:
        """Switch the active theme, keeping the current state on screen.

        Raises:
            ThemeError: If the theme is unknown or the options are invalid
        """
        theme = self.theme_manager.load_theme(name, options)
        self.synchronizer.set_theme(theme)
        self.settings.scene.theme = name

    def get_theme(self) -> str:
        return self.synchronizer.theme.name

    def get_available_themes(self) -> list[str]:
        return [info.name for info in self.theme_manager.get_themes()]

    def register_theme(self, info: ThemeInfo) -> None:
        self.theme_manager.register_theme(info)

    def register_theme_plugin(self, plugin: ThemePlugin) -> None:
        self.theme_manager.register_plugin(plugin)

    def unregister_theme(self, name: str) -> bool:
        return self.theme_manager.unregister_theme(name)

    # === EVENTS ===

    def subscribe(self, event_type: str | DomainEventType, handler: EventHandler) -> None:
        self.adapter.subscribe(event_type, handler)

    def unsubscribe(self, event_type: str | DomainEventType, handler: EventHandler) -> bool:
        return self.adapter.unsubscribe(event_type, handler)
