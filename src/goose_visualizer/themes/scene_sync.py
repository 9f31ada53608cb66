"""Scene synchronizer.

Keeps the visual scene in step with the canonical state: it reacts to
domain events by creating, moving and removing visual entities in the
grid, and drives the per-frame advance and redraw cycle.

The synchronizer owns the grid, the sprite manager and every visual
entity. The active theme only decides looks and placement.
"""

import logging
from dataclasses import replace
from typing import Any, Callable, Optional

from PySide6.QtCore import QTimer

from ..core.adapter import ProtocolAdapter
from ..core.animation import advance, start_animation
from ..core.entities import VisualEntity
from ..core.frame_loop import FrameLoop
from ..core.grid import GridConfig, IsometricGrid
from ..core.isometric import round_half_up
from ..core.types import Agent, Position, Task, TaskState
from ..events.domain import (
    AgentLeftEvent,
    AgentMovedEvent,
    AgentRegisteredEvent,
    AgentStateChangedEvent,
    AgentUpdatedEvent,
    DomainEvent,
    DomainEventType,
    MessageAddedEvent,
    TaskAddedEvent,
    TaskAssignedEvent,
    TaskMovedEvent,
    TaskUpdatedEvent,
)
from ..rendering.renderer import Renderer
from ..rendering.sprites import SpriteManager
from ..settings.scene import SceneSettings
from .contract import Cell, SceneTheme, ThemeContext

Scheduler = Callable[[int, Callable[[], None]], None]


def _qt_single_shot(delay_ms: int, callback: Callable[[], None]) -> None:
    QTimer.singleShot(delay_ms, callback)  # type: ignore[arg-type]


# Values effects settle back to when a move interrupts them
RESTING_VALUES: dict[str, float] = {"scale": 1.0, "rotation": 0.0, "opacity": 1.0, "highlight": 0.0}


def _position_to_cell(position: Position) -> Cell:
    return (
        round_half_up(position.x),
        round_half_up(position.y),
        round_half_up(position.z or 0),
    )


class SceneSynchronizer:
    """Maps domain events onto visual entities and runs the frame cycle."""

    def __init__(
        self,
        adapter: ProtocolAdapter,
        theme: SceneTheme,
        renderer: Renderer,
        settings: SceneSettings,
        clock: Optional[Callable[[], float]] = None,
        scheduler: Optional[Scheduler] = None,
        viewport: tuple[float, float] = (800, 600),
        grid_config: Optional[GridConfig] = None,
    ):
        """Initialize the synchronizer and build the initial scene.

        Args:
            adapter: Source of domain events and canonical state
            theme: Theme deciding looks and placement
            renderer: Drawing surface
            settings: Scene geometry and timing
            clock: Millisecond clock for the frame loop
            scheduler: Delayed-call function (defaults to QTimer.singleShot)
            viewport: Initial drawing surface size
            grid_config: Validated grid geometry; built from ``settings`` when omitted

        Raises:
            ConfigError: If the configured grid is invalid
        """
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.adapter = adapter
        self.theme = theme
        self.renderer = renderer
        self.settings = settings
        self._schedule = scheduler or _qt_single_shot
        self.viewport_width, self.viewport_height = viewport
        self.grid_config = grid_config

        self.sprites = SpriteManager()
        if settings.sprites_path is not None:
            self.sprites.load_directory(settings.sprites_path)

        # Entity books, keyed by domain id
        self.agent_views: dict[str, VisualEntity] = {}
        self.task_views: dict[str, VisualEntity] = {}
        self.message_views: dict[str, VisualEntity] = {}
        self.furniture: list[VisualEntity] = []

        self.grid = self._build_grid()
        self._build_layout()

        self.frame_loop = FrameLoop(self.tick, settings.frame_interval_ms, clock)

        self._subscriptions: list[tuple[DomainEventType, Callable[[Any], None]]] = [
            (DomainEventType.AGENT_REGISTERED, self._on_agent_registered),
            (DomainEventType.AGENT_UPDATED, self._on_agent_updated),
            (DomainEventType.AGENT_STATE_CHANGED, self._on_agent_state_changed),
            (DomainEventType.AGENT_MOVED, self._on_agent_moved),
            (DomainEventType.AGENT_LEFT, self._on_agent_left),
            (DomainEventType.TASK_ADDED, self._on_task_added),
            (DomainEventType.TASK_ASSIGNED, self._on_task_assigned),
            (DomainEventType.TASK_UPDATED, self._on_task_updated),
            (DomainEventType.TASK_MOVED, self._on_task_moved),
            (DomainEventType.MESSAGE_ADDED, self._on_message_added),
            (DomainEventType.MESSAGE_CLEARED, self._on_messages_cleared),
            (DomainEventType.SYSTEM_RESET, self._on_system_reset),
        ]
        for event_type, handler in self._subscriptions:
            adapter.subscribe(event_type, handler)

    # === SCENE CONSTRUCTION ===

    def _build_grid(self) -> IsometricGrid:
        if self.grid_config is not None:
            return IsometricGrid(replace(self.grid_config, is_isometric=self.theme.is_isometric))
        config = GridConfig(
            width=self.settings.grid_width,
            height=self.settings.grid_height,
            tile_width=self.settings.tile_width,
            tile_height=self.settings.tile_height,
            is_isometric=self.theme.is_isometric,
        )
        return IsometricGrid(config)

    def _build_layout(self) -> None:
        """Let the theme lay out the grid and place its furniture."""
        context = ThemeContext(
            grid=self.grid,
            sprites=self.sprites,
            scene=self.settings,
            viewport_width=self.viewport_width,
            viewport_height=self.viewport_height,
        )
        self.furniture = []
        for entity, cell in self.theme.initialize(context):
            if self.grid.place_entity(entity, *cell):
                self.furniture.append(entity)
            else:
                self.logger.warning(f"Furniture {entity.id} outside the grid at {cell}")

        origin_x, origin_y = self.theme.resize(self.viewport_width, self.viewport_height)
        self.grid.set_origin(origin_x, origin_y)

    def _drop_views(self) -> None:
        self.agent_views.clear()
        self.task_views.clear()
        self.message_views.clear()
        self.furniture = []
        self.grid.clear_entities()

    def rebuild(self) -> None:
        """Recreate grid, layout and views from the canonical state."""
        self._drop_views()
        self.grid = self._build_grid()
        self._build_layout()

        for agent in self.adapter.get_agents():
            self._add_agent_view(agent)
        for task in self.adapter.get_tasks():
            self._add_task_view(task)
            if task.assigned_to and task.state in (TaskState.ASSIGNED, TaskState.IN_PROGRESS):
                self._send_agent_to_task(task.assigned_to, task.id, animate=False)

        self.logger.debug(
            f"Scene rebuilt: {len(self.agent_views)} agents, {len(self.task_views)} tasks"
        )

    def set_theme(self, theme: SceneTheme) -> None:
        """Switch to another theme, keeping the canonical state on screen."""
        self.theme.cleanup()
        self.theme = theme
        self.rebuild()
        self.logger.info(f"Theme switched to '{theme.name}'")

    # === PLACEMENT ===

    def _place(self, view: VisualEntity, cell: Optional[Cell]) -> bool:
        if cell is None or not self.grid.place_entity(view, *cell):
            self.logger.warning(f"No cell for {view.id} at {cell}, skipping")
            return False
        return True

    def _relocate(self, view: VisualEntity, cell: Cell) -> bool:
        self.grid.remove_entity(view.id)
        return self.grid.place_entity(view, *cell)

    def move_view(
        self,
        view: VisualEntity,
        cell: Cell,
        on_arrival: Optional[Callable[[], None]] = None,
    ) -> bool:
        """Walk a view to a cell.

        The move takes ``move_speed_ms`` (the theme's, else the scene's) per
        tile of Chebyshev distance, measured from where the view currently
        stands on screen. The grid placement changes when the move
        completes. Properties of an interrupted effect are eased back to
        their resting values.

        Returns:
            False if the target is out of bounds or not walkable
        """
        x, y, z = cell
        if not self.grid.is_in_bounds(x, y, z) or not self.grid.is_walkable(x, y, z):
            self.logger.warning(f"Cannot move {view.id} to non-walkable position: {x},{y},{z}")
            return False

        properties: dict[str, tuple[Any, Any]] = {}
        current = view.grid_position
        from_x, from_y = current.x, current.y
        if view.animation is not None and view.animation.active:
            if "position" in view.animation.properties:
                # Mid-walk: the grid cell is still the one being left
                from_x, from_y = self.grid.locate(view.position, current.z or 0)
            for name, prop in view.animation.properties.items():
                if name != "position":
                    properties[name] = (None, RESTING_VALUES.get(name, prop.end))

        distance = max(abs(x - from_x), abs(y - from_y))
        speed = self.theme.move_speed_ms
        if speed is None:
            speed = self.settings.move_speed_ms
        duration = speed * distance
        target = self.grid.grid_to_screen(x, y, z)
        properties["position"] = (view.position.copy(), target)

        def arrive() -> None:
            if view.id in self._live_ids():
                self._relocate(view, cell)
            if on_arrival is not None:
                on_arrival()

        start_animation(view, properties, duration, arrive)
        return True

    def _live_ids(self) -> set[str]:
        return {view.id for view in self.agent_views.values()} | {
            view.id for view in self.task_views.values()
        }

    # === AGENTS ===

    def _add_agent_view(self, agent: Agent) -> Optional[VisualEntity]:
        previous = self.agent_views.pop(agent.id, None)
        if previous is not None:
            self.grid.remove_entity(previous.id)

        try:
            view = self.theme.create_agent_view(agent)
        except Exception as e:
            self.logger.error(f"Theme failed to create view for agent {agent.id}: {e}", exc_info=True)
            return None

        cell = self.theme.find_available_cell(self.grid, len(self.agent_views))
        if agent.position is not None:
            requested = _position_to_cell(agent.position)
            if self.grid.is_in_bounds(*requested):
                cell = requested

        if not self._place(view, cell):
            return None
        self.agent_views[agent.id] = view
        return view

    def _on_agent_registered(self, event: AgentRegisteredEvent) -> None:
        self._add_agent_view(event.agent)

    def _on_agent_updated(self, event: AgentUpdatedEvent) -> None:
        view = self.agent_views.get(event.agent.id)
        if view is None:
            return
        view.data["agent"] = event.agent
        view.data["color"] = event.agent.color

    def _on_agent_state_changed(self, event: AgentStateChangedEvent) -> None:
        view = self.agent_views.get(event.agent_id)
        if view is None:
            return
        self.theme.on_agent_state_changed(view, event.old_state, event.new_state)

    def _on_agent_moved(self, event: AgentMovedEvent) -> None:
        view = self.agent_views.get(event.agent_id)
        if view is None:
            self.logger.debug(f"Move for agent without a view: {event.agent_id}")
            return
        self.move_view(view, _position_to_cell(event.position))

    def _on_agent_left(self, event: AgentLeftEvent) -> None:
        view = self.agent_views.pop(event.agent_id, None)
        if view is not None:
            self.grid.remove_entity(view.id)

    # === TASKS ===

    def _add_task_view(self, task: Task) -> Optional[VisualEntity]:
        previous = self.task_views.pop(task.id, None)
        if previous is not None:
            self.grid.remove_entity(previous.id)

        try:
            view = self.theme.create_task_view(task)
        except Exception as e:
            self.logger.error(f"Theme failed to create view for task {task.id}: {e}", exc_info=True)
            return None

        cell = self.theme.task_cell(self.grid, len(self.task_views))
        if task.position is not None:
            requested = _position_to_cell(task.position)
            if self.grid.is_in_bounds(*requested):
                cell = requested

        if not self._place(view, cell):
            return None
        self.task_views[task.id] = view
        return view

    def _send_agent_to_task(self, agent_id: str, task_id: str, animate: bool = True) -> None:
        agent_view = self.agent_views.get(agent_id)
        task_view = self.task_views.get(task_id)
        if agent_view is None or task_view is None:
            return

        target = task_view.grid_position
        cell = self.theme.approach_cell(
            self.grid, (int(target.x), int(target.y), int(target.z or 0))
        )
        if cell is None:
            self.logger.warning(f"No free cell next to task {task_id} for agent {agent_id}")
            return

        if animate:
            self.move_view(agent_view, cell)
        else:
            self._relocate(agent_view, cell)

    def _on_task_added(self, event: TaskAddedEvent) -> None:
        self._add_task_view(event.task)

    def _on_task_assigned(self, event: TaskAssignedEvent) -> None:
        self._send_agent_to_task(event.agent_id, event.task_id)

    def _on_task_updated(self, event: TaskUpdatedEvent) -> None:
        view = self.task_views.get(event.task.id)
        if view is not None:
            view.data["task"] = event.task

    def _on_task_moved(self, event: TaskMovedEvent) -> None:
        view = self.task_views.get(event.task_id)
        if view is None:
            return
        cell = _position_to_cell(event.position)
        if not self.grid.is_in_bounds(*cell):
            self.logger.warning(f"Ignoring move of task {event.task_id} outside the grid: {cell}")
            return
        self._relocate(view, cell)

    # === MESSAGES ===

    def _on_message_added(self, event: MessageAddedEvent) -> None:
        message = event.message
        try:
            view = self.theme.create_message_view(message)
        except Exception as e:
            self.logger.error(f"Theme failed to create view for message {message.id}: {e}", exc_info=True)
            return

        sender = self.agent_views.get(message.sender_id)
        if sender is not None:
            origin = sender.grid_position
            cell = (int(origin.x), int(origin.y), int(origin.z or 0) + 1)
        else:
            cell = (0, 0, 1)
        if not self._place(view, cell):
            return
        self.message_views[message.id] = view

        start = view.position.copy()
        receiver = self.agent_views.get(message.receiver_id) if message.receiver_id else None
        if receiver is not None:
            target = receiver.grid_position
            end = self.grid.grid_to_screen(target.x, target.y, (target.z or 0) + 1)
            view.data["link_start"] = start.copy()
            view.data["link_end"] = end.copy()
        else:
            # Without a receiver the bubble rises above the sender
            end = Position(start.x, start.y - self.grid.get_config().tile_height, start.z)

        def finished() -> None:
            view.visible = False
            self._schedule(self.settings.message_grace_ms, lambda: self._forget_message(message.id, view))

        start_animation(view, {"position": (start, end)}, self.settings.message_duration_ms, finished)

    def _forget_message(self, message_id: str, view: VisualEntity) -> None:
        # A reset or clear may have dropped the view already
        if self.message_views.get(message_id) is view:
            del self.message_views[message_id]
            self.grid.remove_entity(view.id)

    def _on_messages_cleared(self, event: DomainEvent) -> None:
        for view in self.message_views.values():
            self.grid.remove_entity(view.id)
        self.message_views.clear()

    # === SYSTEM ===

    def _on_system_reset(self, event: DomainEvent) -> None:
        self._drop_views()
        self.grid = self._build_grid()
        self._build_layout()
        self.logger.info("Scene reset")

    # === FRAME CYCLE ===

    def tick(self, delta_ms: float) -> None:
        """Advance animations in depth order, update the theme, redraw."""
        entities = self.grid.get_all_entities()
        for entity in entities:
            advance(entity, delta_ms)

        self.theme.update(entities, delta_ms)
        self.render()

    def render(self) -> None:
        """Full redraw of the current scene."""
        entities = self.grid.get_all_entities()
        self.renderer.begin_frame()
        try:
            self.theme.render(self.renderer, entities)
        except Exception as e:
            self.logger.error(f"Theme render failed: {e}", exc_info=True)
        finally:
            self.renderer.end_frame()

    def start(self) -> None:
        self.frame_loop.start()

    def stop(self) -> None:
        self.frame_loop.stop()

    def resize(self, width: float, height: float) -> None:
        """Re-centre the grid for a new viewport size."""
        self.viewport_width, self.viewport_height = width, height
        origin_x, origin_y = self.theme.resize(width, height)
        self.grid.set_origin(origin_x, origin_y)
        self.logger.debug(f"Viewport resized to {width}x{height}")

    def cleanup(self) -> None:
        """Stop the loop, detach from the adapter and drop all views."""
        self.stop()
        for event_type, handler in self._subscriptions:
            self.adapter.unsubscribe(event_type, handler)
        self._drop_views()
        self.theme.cleanup()
        self.sprites.clear()
