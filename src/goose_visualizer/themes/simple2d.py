"""Flat top-down theme.

Agents are laid out five per row, tasks stack in the right-hand column.
State changes are shown with short pulse and highlight effects.
"""

import logging
from typing import TYPE_CHECKING, Any, Optional

from PySide6.QtGui import QColor

from ..core.animation import start_animation
from ..core.entities import EntityKind, VisualEntity
from ..core.grid import IsometricGrid
from ..core.types import Agent, AgentState, Message, Task
from .contract import (
    Cell,
    EntityStyle,
    ThemeContext,
    agent_entity_id,
    draw_entities,
    message_entity_id,
    task_entity_id,
)
from .isometric_office import TASK_STATE_COLORS, shorten

if TYPE_CHECKING:
    from ..rendering.renderer import Renderer

AGENTS_PER_ROW = 5
AGENT_SPACING = 3
TASK_SPACING = 2

DEFAULT_OPTIONS: dict[str, Any] = {
    "backgroundColor": "#f5f5f5",
    "gridColor": "#dddddd",
    "pulseScale": 1.2,
    "pulseDuration": 1000,
    "highlightColor": "#ffff00",
}

OPTIONS_SCHEMA: dict[str, dict[str, Any]] = {
    "backgroundColor": {"type": "color", "default": DEFAULT_OPTIONS["backgroundColor"]},
    "gridColor": {"type": "color", "default": DEFAULT_OPTIONS["gridColor"]},
    "pulseScale": {"type": "number", "default": 1.2, "min": 1.0, "max": 3.0},
    "pulseDuration": {"type": "number", "default": 1000, "min": 0, "max": 10000},
    "highlightColor": {"type": "color", "default": DEFAULT_OPTIONS["highlightColor"]},
}


def blend(base: str, overlay: str, amount: float) -> str:
    """Mix two colours; ``amount`` 0 gives ``base``, 1 gives ``overlay``."""
    amount = max(0.0, min(1.0, amount))
    a, b = QColor(base), QColor(overlay)
    mixed = QColor(
        round(a.red() + (b.red() - a.red()) * amount),
        round(a.green() + (b.green() - a.green()) * amount),
        round(a.blue() + (b.blue() - a.blue()) * amount),
    )
    return mixed.name()


class Simple2DTheme:
    """Orthogonal layout with pulse and highlight effects."""

    name = "simple-2d"
    is_isometric = False
    move_speed_ms: Optional[int] = None

    def __init__(self, options: Optional[dict[str, Any]] = None):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.options = {**DEFAULT_OPTIONS, **(options or {})}
        self.context: Optional[ThemeContext] = None

    def initialize(self, context: ThemeContext) -> list[tuple[VisualEntity, Cell]]:
        """Open floor without walls or furniture."""
        self.context = context
        grid = context.grid
        for x in range(grid.width):
            for y in range(grid.height):
                grid.get_cell(x, y, 0)
        return []

    # === VIEWS ===

    def create_agent_view(self, agent: Agent) -> VisualEntity:
        return VisualEntity(
            id=agent_entity_id(agent.id),
            kind=EntityKind.AGENT,
            data={"agent": agent, "color": agent.color, "highlight": 0.0},
        )

    def create_task_view(self, task: Task) -> VisualEntity:
        return VisualEntity(id=task_entity_id(task.id), kind=EntityKind.TASK, data={"task": task})

    def create_message_view(self, message: Message) -> VisualEntity:
        return VisualEntity(
            id=message_entity_id(message.id), kind=EntityKind.MESSAGE, data={"message": message}
        )

    # === CELLS ===

    def find_available_cell(self, grid: IsometricGrid, index: int) -> Optional[Cell]:
        """Row-major slots, five agents per row."""
        x = 1 + (index % AGENTS_PER_ROW) * AGENT_SPACING
        y = 1 + (index // AGENTS_PER_ROW) * AGENT_SPACING
        if not grid.is_in_bounds(x, y, 0):
            return None
        return (x, y, 0)

    def task_cell(self, grid: IsometricGrid, index: int) -> Optional[Cell]:
        """Right-hand column, one task every other row."""
        x = grid.width - 2
        y = 1 + index * TASK_SPACING
        if not grid.is_in_bounds(x, y, 0):
            return None
        return (x, y, 0)

    def approach_cell(self, grid: IsometricGrid, target: Cell) -> Optional[Cell]:
        """Cell directly left of the target."""
        x, y = target[0] - 1, target[1]
        if grid.is_walkable(x, y, 0):
            return (x, y, 0)
        return None

    # === EFFECTS ===

    def pulse_entity(self, entity: VisualEntity, duration: float, scale: float) -> None:
        """Grow to ``scale`` and back over ``duration`` milliseconds."""
        half = duration / 2
        start_animation(
            entity,
            {"scale": (1.0, scale)},
            half,
            on_complete=lambda: start_animation(entity, {"scale": (scale, 1.0)}, half),
        )

    def highlight_entity(self, entity: VisualEntity, color: str, duration: float) -> None:
        """Fade the fill towards ``color`` and back over ``duration`` milliseconds."""
        half = duration / 2
        entity.data["highlight_color"] = color
        start_animation(
            entity,
            {"highlight": (0.0, 1.0)},
            half,
            on_complete=lambda: start_animation(entity, {"highlight": (1.0, 0.0)}, half),
        )

    def on_agent_state_changed(
        self, entity: VisualEntity, old_state: AgentState, new_state: AgentState
    ) -> None:
        """Pulse on every change, highlight agents that start waiting.

        Agents that are moving are left alone so the move can finish.
        """
        if entity.is_animating or old_state == new_state:
            return
        duration = float(self.options["pulseDuration"])
        if new_state == AgentState.WAITING:
            self.highlight_entity(entity, self.options["highlightColor"], duration)
        else:
            self.pulse_entity(entity, duration, float(self.options["pulseScale"]))

    def update(self, entities: list[VisualEntity], delta_ms: float) -> None:
        """Nothing moves on its own in this theme."""

    # === DRAWING ===

    def _tile_size(self) -> tuple[float, float]:
        if self.context is None:
            return (64, 32)
        config = self.context.grid.get_config()
        return (config.tile_width, config.tile_height)

    def style_for(self, entity: VisualEntity) -> EntityStyle:
        tile_w, tile_h = self._tile_size()

        if entity.kind == EntityKind.AGENT:
            agent: Agent = entity.data["agent"]
            fill = entity.data.get("color", agent.color)
            highlight = float(entity.data.get("highlight", 0.0))
            if highlight > 0:
                fill = blend(fill, entity.data.get("highlight_color", "#ffff00"), highlight)
            size = min(tile_w, tile_h) * 1.5
            return EntityStyle(
                shape="circle",
                fill=fill,
                outline="#000000",
                width=size,
                height=size,
                label=f"{agent.name} ({agent.state.value})",
            )

        if entity.kind == EntityKind.TASK:
            task: Task = entity.data["task"]
            return EntityStyle(
                shape="rect",
                fill="#ffffff",
                outline=TASK_STATE_COLORS.get(task.state, "#000000"),
                width=tile_w * 1.5,
                height=tile_h,
                label=shorten(task.description, 20),
            )

        return EntityStyle(shape="bubble", fill="#e8f0ff", outline="#4488ff", width=24, height=16)

    def render(self, renderer: "Renderer", entities: list[VisualEntity]) -> None:
        """Draw the background grid and entities."""
        if self.context is None:
            return
        grid = self.context.grid
        tile_w, tile_h = self._tile_size()
        background = EntityStyle(
            shape="rect",
            fill=self.options["backgroundColor"],
            outline=self.options["gridColor"] if self.context.scene.show_grid else None,
            width=tile_w,
            height=tile_h,
        )
        for cell in grid.iter_cells():
            if cell.z == 0:
                renderer.draw_tile(grid.grid_to_screen(cell.x, cell.y), background, -1)

        draw_entities(renderer, entities, self.style_for)

    def resize(self, width: float, height: float) -> tuple[float, float]:
        """Centre the grid in the viewport, positions being cell centres."""
        if self.context is None:
            return (32, 16)
        config = self.context.grid.get_config()
        content_w = config.width * config.tile_width
        content_h = config.height * config.tile_height
        origin_x = max(0.0, (width - content_w) / 2) + config.tile_width / 2
        origin_y = max(0.0, (height - content_h) / 2) + config.tile_height / 2
        return (origin_x, origin_y)

    def cleanup(self) -> None:
        self.context = None
