"""Isometric office theme.

Agents walk a walled office floor with rows of desks. Tasks sit on desks,
messages float between agents as small bubbles.
"""

import logging
from typing import TYPE_CHECKING, Any, Optional

from ..core.entities import EntityKind, VisualEntity
from ..core.grid import CellType, IsometricGrid
from ..core.types import Agent, AgentState, Message, Task, TaskState
from .contract import (
    Cell,
    EntityStyle,
    ThemeContext,
    agent_entity_id,
    draw_entities,
    message_entity_id,
    task_entity_id,
)

if TYPE_CHECKING:
    from ..rendering.renderer import Renderer

# Floor tiles are drawn beneath every entity
FLOOR_Z_OFFSET = -10000

AGENT_STATE_COLORS = {
    AgentState.IDLE: "#aaaaaa",
    AgentState.ACTIVE: "#44ff44",
    AgentState.THINKING: "#ffcc44",
    AgentState.WORKING: "#4444ff",
    AgentState.WAITING: "#ff4444",
    AgentState.DISCONNECTED: "#999999",
}

TASK_STATE_COLORS = {
    TaskState.PENDING: "#ffcc44",
    TaskState.ASSIGNED: "#4444ff",
    TaskState.IN_PROGRESS: "#44ff44",
    TaskState.COMPLETED: "#44cc44",
    TaskState.CANCELLED: "#ff4444",
}

# Neighbour order used when looking for a free cell next to a desk
NEIGHBOUR_OFFSETS = [(-1, 0), (1, 0), (0, 1), (0, -1), (1, 1), (-1, -1), (1, -1), (-1, 1)]

DEFAULT_OPTIONS: dict[str, Any] = {
    "floorColor": "#e0e0ff",
    "wallColor": "#8090c0",
    "deskColor": "#b08050",
    "deskSpacing": 3,
    "agentScale": 1.0,
    "showNames": True,
}

OPTIONS_SCHEMA: dict[str, dict[str, Any]] = {
    "floorColor": {"type": "color", "default": DEFAULT_OPTIONS["floorColor"]},
    "wallColor": {"type": "color", "default": DEFAULT_OPTIONS["wallColor"]},
    "deskColor": {"type": "color", "default": DEFAULT_OPTIONS["deskColor"]},
    "deskSpacing": {"type": "number", "default": 3, "min": 2, "max": 8},
    "agentScale": {"type": "number", "default": 1.0, "min": 0.25, "max": 4},
    "showNames": {"type": "boolean", "default": True},
}


def shorten(text: str, limit: int = 10) -> str:
    """Shorten a label to ``limit`` characters with an ellipsis."""
    return text if len(text) <= limit else f"{text[:limit]}..."


class IsometricOfficeTheme:
    """Walled isometric office with desks."""

    name = "isometric-office"
    is_isometric = True
    move_speed_ms: Optional[int] = None

    def __init__(self, options: Optional[dict[str, Any]] = None):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.options = {**DEFAULT_OPTIONS, **(options or {})}
        self.context: Optional[ThemeContext] = None
        self.desks: list[Cell] = []

    # === LAYOUT ===

    def initialize(self, context: ThemeContext) -> list[tuple[VisualEntity, Cell]]:
        """Build floor, perimeter walls and desks.

        Returns:
            Desk entities with the cells they occupy
        """
        self.context = context
        grid = context.grid
        grid.create_basic_office_floor()

        spacing = max(2, int(self.options["deskSpacing"]))
        self.desks = [
            (x, y, 0)
            for y in range(spacing, grid.height - 2, spacing)
            for x in range(spacing, grid.width - 2, spacing)
        ]

        furniture: list[tuple[VisualEntity, Cell]] = []
        for index, cell in enumerate(self.desks):
            grid.set_cell_type(cell[0], cell[1], cell[2], CellType.OBJECT)
            desk = VisualEntity(
                id=f"desk-{index}",
                kind=EntityKind.FURNITURE,
                data={"furniture": "desk"},
            )
            furniture.append((desk, cell))

        self.logger.debug(f"Office layout ready: {len(self.desks)} desks")
        return furniture

    # === VIEWS ===

    def create_agent_view(self, agent: Agent) -> VisualEntity:
        return VisualEntity(
            id=agent_entity_id(agent.id),
            kind=EntityKind.AGENT,
            scale=float(self.options["agentScale"]),
            data={"agent": agent, "color": agent.color, "elapsed_ms": 0.0},
        )

    def create_task_view(self, task: Task) -> VisualEntity:
        return VisualEntity(id=task_entity_id(task.id), kind=EntityKind.TASK, data={"task": task})

    def create_message_view(self, message: Message) -> VisualEntity:
        return VisualEntity(
            id=message_entity_id(message.id),
            kind=EntityKind.MESSAGE,
            data={"message": message, "elapsed_ms": 0.0},
        )

    # === CELLS ===

    def find_available_cell(self, grid: IsometricGrid, index: int) -> Optional[Cell]:
        """Free walkable cell next to a desk, else the nearest one to the centre."""
        for desk in self.desks:
            for dx, dy in NEIGHBOUR_OFFSETS:
                x, y = desk[0] + dx, desk[1] + dy
                if grid.is_walkable(x, y, 0) and not grid.is_occupied(x, y, 0):
                    return (x, y, 0)

        center_x, center_y = grid.width // 2, grid.height // 2
        for radius in range(max(grid.width, grid.height)):
            for y in range(center_y - radius, center_y + radius + 1):
                for x in range(center_x - radius, center_x + radius + 1):
                    if max(abs(x - center_x), abs(y - center_y)) != radius:
                        continue
                    if grid.is_walkable(x, y, 0) and not grid.is_occupied(x, y, 0):
                        return (x, y, 0)
        return None

    def task_cell(self, grid: IsometricGrid, index: int) -> Optional[Cell]:
        """Top of the first desk without a task."""
        for x, y, _ in self.desks:
            if not grid.is_occupied(x, y, 1):
                return (x, y, 1)
        if self.desks:
            x, y, _ = self.desks[index % len(self.desks)]
            return (x, y, 1)
        return (min(5, grid.width - 1), min(5, grid.height - 1), 1)

    def approach_cell(self, grid: IsometricGrid, target: Cell) -> Optional[Cell]:
        """Walkable floor cell beside ``target``, preferring unoccupied ones."""
        candidates = [
            (target[0] + dx, target[1] + dy, 0)
            for dx, dy in NEIGHBOUR_OFFSETS
            if grid.is_walkable(target[0] + dx, target[1] + dy, 0)
        ]
        for cell in candidates:
            if not grid.is_occupied(*cell):
                return cell
        return candidates[0] if candidates else None

    # === EFFECTS AND UPDATE ===

    def on_agent_state_changed(
        self, entity: VisualEntity, old_state: AgentState, new_state: AgentState
    ) -> None:
        """State is shown by the outline colour; no extra effect."""

    def update(self, entities: list[VisualEntity], delta_ms: float) -> None:
        """Advance sprite clocks of agents and messages."""
        for entity in entities:
            if entity.kind in (EntityKind.AGENT, EntityKind.MESSAGE):
                entity.data["elapsed_ms"] = entity.data.get("elapsed_ms", 0.0) + delta_ms

    # === DRAWING ===

    def style_for(self, entity: VisualEntity) -> EntityStyle:
        context = self.context
        tile_w = context.grid.get_config().tile_width if context else 64
        tile_h = context.grid.get_config().tile_height if context else 32

        if entity.kind == EntityKind.AGENT:
            agent: Agent = entity.data["agent"]
            return EntityStyle(
                shape="circle",
                fill=entity.data.get("color", agent.color),
                outline=AGENT_STATE_COLORS.get(agent.state, "#aaaaaa"),
                width=tile_w * 0.4,
                height=tile_h * 1.2,
                label=agent.name if self.options["showNames"] else None,
                sprite_id=f"agent-{agent.state.value}",
            )

        if entity.kind == EntityKind.TASK:
            task: Task = entity.data["task"]
            return EntityStyle(
                shape="rect",
                fill="#ffffff",
                outline=TASK_STATE_COLORS.get(task.state, "#aaaaaa"),
                width=tile_w / 2,
                height=tile_h / 2,
                label=shorten(task.description),
                sprite_id=f"task-{task.state.value}",
            )

        if entity.kind == EntityKind.MESSAGE:
            return EntityStyle(shape="bubble", fill="#ffffff", outline="#4488ff", width=20, height=14)

        return EntityStyle(
            shape="block",
            fill=self.options["deskColor"],
            outline="#333333",
            width=tile_w,
            height=tile_h,
            elevation=tile_h / 2,
        )

    def floor_style(self) -> EntityStyle:
        assert self.context is not None
        config = self.context.grid.get_config()
        return EntityStyle(
            shape="diamond",
            fill=self.options["floorColor"],
            outline="#cccccc" if self.context.scene.show_grid else None,
            width=config.tile_width,
            height=config.tile_height,
        )

    def wall_style(self) -> EntityStyle:
        assert self.context is not None
        config = self.context.grid.get_config()
        return EntityStyle(
            shape="diamond",
            fill=self.options["wallColor"],
            outline="#333333",
            width=config.tile_width,
            height=config.tile_height,
            elevation=config.tile_height,
        )

    def draw_overlays(self, renderer: "Renderer", entities: list[VisualEntity]) -> None:
        """Message links between sender and receiver."""
        for entity in entities:
            start = entity.data.get("link_start")
            end = entity.data.get("link_end")
            if entity.kind == EntityKind.MESSAGE and entity.visible and start and end:
                renderer.draw_link(start, end, "#4488ff", entity.z_index - 0.1)

    def render(self, renderer: "Renderer", entities: list[VisualEntity]) -> None:
        """Draw floor, walls, overlays and entities."""
        if self.context is None:
            return
        grid = self.context.grid
        floor = self.floor_style()
        wall = self.wall_style()

        for cell in grid.iter_cells():
            base_z = grid.transformer.get_sort_key(cell.x, cell.y)
            if cell.z == 0 and cell.type != CellType.EMPTY:
                renderer.draw_tile(grid.grid_to_screen(cell.x, cell.y), floor, FLOOR_Z_OFFSET + base_z)
            elif cell.z == 1 and cell.type == CellType.WALL:
                # Walls sort with floor-level entities at the same depth
                renderer.draw_block(grid.grid_to_screen(cell.x, cell.y), wall, base_z + 0.5)

        self.draw_overlays(renderer, entities)
        draw_entities(renderer, entities, self.style_for)

    def resize(self, width: float, height: float) -> tuple[float, float]:
        """Centre the floor horizontally, two tiles below the top edge."""
        tile_h = self.context.grid.get_config().tile_height if self.context else 32
        return (width / 2, tile_h * 2)

    def cleanup(self) -> None:
        self.desks = []
        self.context = None
