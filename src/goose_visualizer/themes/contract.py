"""
Theme contract.

A theme decides how domain objects look and where they go: it builds the
static layout, creates views for agents, tasks and messages, picks their
cells and styles every entity for drawing. Themes never own entities; the
scene synchronizer does, and composes one theme at a time.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, Optional, Protocol, runtime_checkable

from ..core.entities import VisualEntity
from ..core.grid import IsometricGrid
from ..core.types import Agent, AgentState, Message, Task

if TYPE_CHECKING:
    from ..rendering.renderer import Renderer
    from ..rendering.sprites import SpriteManager
    from ..settings.scene import SceneSettings

logger = logging.getLogger(__name__)

Cell = tuple[int, int, int]


class ThemeError(Exception):
    """Raised for unknown themes, invalid theme options or registry misuse."""
    pass


@dataclass
class EntityStyle:
    """How the renderer should paint one entity or tile.

    Attributes:
        shape: "diamond", "rect", "circle", "bubble" or "block"
        fill: Fill colour (#rrggbb)
        outline: Outline colour (#rrggbb), None for no outline
        width: Shape width in screen units
        height: Shape height in screen units
        label: Optional text drawn next to the shape
        sprite_id: Sprite to draw instead of the shape, if loaded
        elevation: Extrusion height for blocks
    """

    shape: str = "rect"
    fill: str = "#cccccc"
    outline: Optional[str] = "#333333"
    width: float = 20
    height: float = 20
    label: Optional[str] = None
    sprite_id: Optional[str] = None
    elevation: float = 0


@dataclass
class ThemeContext:
    """Collaborators a theme may use while it is active."""

    grid: IsometricGrid
    sprites: "SpriteManager"
    scene: "SceneSettings"
    viewport_width: float = 800
    viewport_height: float = 600
    options: dict[str, Any] = field(default_factory=lambda: {})


@runtime_checkable
class SceneTheme(Protocol):
    """Capabilities every scene theme provides."""

    name: str
    is_isometric: bool
    options: dict[str, Any]
    # Per-tile walk duration overriding the scene setting, if set
    move_speed_ms: Optional[int]

    def initialize(self, context: ThemeContext) -> list[tuple[VisualEntity, Cell]]:
        """Prepare the grid and return static furniture with target cells."""
        ...

    def create_agent_view(self, agent: Agent) -> VisualEntity: ...

    def create_task_view(self, task: Task) -> VisualEntity: ...

    def create_message_view(self, message: Message) -> VisualEntity: ...

    def find_available_cell(self, grid: IsometricGrid, index: int) -> Optional[Cell]:
        """Spawn cell for the index-th live agent."""
        ...

    def task_cell(self, grid: IsometricGrid, index: int) -> Optional[Cell]:
        """Cell for the index-th live task."""
        ...

    def approach_cell(self, grid: IsometricGrid, target: Cell) -> Optional[Cell]:
        """Walkable floor cell from which an agent works on ``target``."""
        ...

    def on_agent_state_changed(
        self, entity: VisualEntity, old_state: AgentState, new_state: AgentState
    ) -> None: ...

    def style_for(self, entity: VisualEntity) -> EntityStyle: ...

    def update(self, entities: list[VisualEntity], delta_ms: float) -> None: ...

    def render(self, renderer: "Renderer", entities: list[VisualEntity]) -> None: ...

    def resize(self, width: float, height: float) -> tuple[float, float]:
        """Return the grid origin for a new viewport size."""
        ...

    def cleanup(self) -> None: ...


def draw_entities(
    renderer: "Renderer",
    entities: Iterable[VisualEntity],
    style_for: "StyleResolver",
) -> int:
    """Draw visible entities in the given order.

    Entities styled as blocks are extruded. A failure on one entity is
    logged and the frame continues.

    Returns:
        Number of entities drawn
    """
    drawn = 0
    for entity in entities:
        if not entity.visible:
            continue
        try:
            style = style_for(entity)
            if style.shape == "block":
                renderer.draw_block(entity.position, style, entity.z_index)
            else:
                renderer.draw_entity(entity, style)
            drawn += 1
        except Exception as e:
            logger.error(f"Failed to draw entity {entity.id}: {e}", exc_info=True)
    return drawn


class StyleResolver(Protocol):
    def __call__(self, entity: VisualEntity) -> EntityStyle: ...


def agent_entity_id(agent_id: str) -> str:
    return f"agent-{agent_id}"


def task_entity_id(task_id: str) -> str:
    return f"task-{task_id}"


def message_entity_id(message_id: str) -> str:
    return f"message-{message_id}"
