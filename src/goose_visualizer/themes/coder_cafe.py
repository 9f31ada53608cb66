"""Isometric café theme.

A walled café with a counter, tables with chairs, a lounge corner,
bookshelves and plants. Agents sit on free chairs, tasks are put on
tables. Lighting follows the configured time of day.
"""

from typing import TYPE_CHECKING, Any, Optional

from ..core.entities import EntityKind, VisualEntity
from ..core.grid import CellType, IsometricGrid
from .contract import Cell, EntityStyle, ThemeContext
from .isometric_office import NEIGHBOUR_OFFSETS, IsometricOfficeTheme
from .simple2d import blend

if TYPE_CHECKING:
    from ..rendering.renderer import Renderer

DEFAULT_OPTIONS: dict[str, Any] = {
    "showGrid": False,
    "floorColor": "#e8d4b9",
    "wallColor": "#a67c52",
    "agentScale": 1.0,
    "moveSpeed": 300,
    "enableShadows": True,
    "timeOfDay": "afternoon",
}

OPTIONS_SCHEMA: dict[str, dict[str, Any]] = {
    "showGrid": {"type": "boolean", "default": False, "description": "Show grid lines on the floor"},
    "floorColor": {"type": "color", "default": "#e8d4b9", "description": "Floor color"},
    "wallColor": {"type": "color", "default": "#a67c52", "description": "Wall color"},
    "agentScale": {
        "type": "number",
        "default": 1.0,
        "min": 0.25,
        "max": 4,
        "description": "Agent scale factor",
    },
    "moveSpeed": {
        "type": "number",
        "default": 300,
        "min": 0,
        "max": 5000,
        "description": "Movement speed (ms per tile)",
    },
    "enableShadows": {"type": "boolean", "default": True, "description": "Enable entity shadows"},
    "timeOfDay": {
        "type": "select",
        "options": ["morning", "afternoon", "evening"],
        "default": "afternoon",
        "description": "Time of day for lighting effects",
    },
}

# Colour mixed into the floor and walls, with its strength
LIGHTING: dict[str, tuple[str, float]] = {
    "morning": ("#fff4d6", 0.25),
    "afternoon": ("#ffffff", 0.0),
    "evening": ("#1a1a40", 0.35),
}

# (kind, x, y); cells outside the walls of a smaller grid are skipped
CAFE_LAYOUT: list[tuple[str, int, int]] = [
    ("counter", 3, 1),
    ("coffee-machine", 2, 1),
    ("table-small", 3, 5),
    ("chair", 2, 5),
    ("chair", 4, 5),
    ("table-small", 7, 3),
    ("chair", 6, 3),
    ("chair", 8, 3),
    ("table-large", 10, 8),
    ("chair", 9, 7),
    ("chair", 11, 7),
    ("chair", 9, 9),
    ("chair", 11, 9),
    ("couch", 5, 10),
    ("table-small", 7, 10),
    ("bookshelf", 13, 3),
    ("bookshelf", 13, 5),
    ("bookshelf", 13, 7),
    ("plant", 1, 13),
    ("plant", 13, 1),
    ("plant", 7, 7),
]

SHADOW_COLOR = "#40000000"

FURNITURE_COLORS = {
    "counter": "#7a5230",
    "coffee-machine": "#444444",
    "couch": "#b5651d",
    "bookshelf": "#6b4226",
    "plant": "#3c8d40",
}


class CoderCafeTheme(IsometricOfficeTheme):
    """Café layout on the isometric office floor."""

    name = "coder-cafe"

    def __init__(self, options: Optional[dict[str, Any]] = None):
        super().__init__({**DEFAULT_OPTIONS, **(options or {})})
        self.chairs: list[Cell] = []

    @property
    def move_speed_ms(self) -> Optional[int]:  # type: ignore[override]
        return int(self.options["moveSpeed"])

    # === LAYOUT ===

    def initialize(self, context: ThemeContext) -> list[tuple[VisualEntity, Cell]]:
        """Build floor, walls and the café furniture.

        Chairs stay walkable so agents can sit on them. Every other piece
        blocks its cell. Tables take the role of the office desks.
        """
        self.context = context
        grid = context.grid
        grid.create_basic_office_floor()

        self.desks = []
        self.chairs = []
        furniture: list[tuple[VisualEntity, Cell]] = []
        for kind, x, y in CAFE_LAYOUT:
            if not (0 < x < grid.width - 1 and 0 < y < grid.height - 1):
                continue
            cell = (x, y, 0)
            if kind == "chair":
                self.chairs.append(cell)
            else:
                grid.set_cell_type(x, y, 0, CellType.OBJECT)
                if kind.startswith("table"):
                    self.desks.append(cell)

            entity = VisualEntity(
                id=f"furniture-{kind}-{x}-{y}",
                kind=EntityKind.FURNITURE,
                data={"furniture": kind},
            )
            furniture.append((entity, cell))

        self.logger.debug(
            f"Café layout ready: {len(self.desks)} tables, {len(self.chairs)} chairs"
        )
        return furniture

    # === CELLS ===

    def _has_visitor(self, grid: IsometricGrid, cell: Cell) -> bool:
        """Whether anything but furniture stands on the cell."""
        found = grid.get_cell(*cell)
        if found is None:
            return False
        return any(entity.kind != EntityKind.FURNITURE for entity in found.entities)

    def find_available_cell(self, grid: IsometricGrid, index: int) -> Optional[Cell]:
        """First free chair, else the office rules around tables."""
        for chair in self.chairs:
            if not self._has_visitor(grid, chair):
                return chair
        return super().find_available_cell(grid, index)

    def approach_cell(self, grid: IsometricGrid, target: Cell) -> Optional[Cell]:
        """Free chair beside the table, else any walkable neighbour."""
        for dx, dy in NEIGHBOUR_OFFSETS:
            cell = (target[0] + dx, target[1] + dy, 0)
            if cell in self.chairs and not self._has_visitor(grid, cell):
                return cell
        return super().approach_cell(grid, target)

    # === DRAWING ===

    def _lit(self, color: str) -> str:
        tint, amount = LIGHTING.get(self.options["timeOfDay"], LIGHTING["afternoon"])
        return blend(color, tint, amount)

    def floor_style(self) -> EntityStyle:
        style = super().floor_style()
        style.fill = self._lit(self.options["floorColor"])
        style.outline = "#cccccc" if self.options["showGrid"] else None
        return style

    def wall_style(self) -> EntityStyle:
        style = super().wall_style()
        style.fill = self._lit(self.options["wallColor"])
        return style

    def style_for(self, entity: VisualEntity) -> EntityStyle:
        if entity.kind != EntityKind.FURNITURE:
            return super().style_for(entity)

        config = self.context.grid.get_config() if self.context else None
        tile_w = config.tile_width if config else 64
        tile_h = config.tile_height if config else 32
        kind = entity.data.get("furniture", "")

        if kind == "plant":
            return EntityStyle(
                shape="circle",
                fill=FURNITURE_COLORS["plant"],
                outline="#1e4620",
                width=tile_w * 0.4,
                height=tile_h * 1.4,
                sprite_id=kind,
            )
        if kind == "chair":
            elevation = tile_h / 4
            width, height = tile_w * 0.4, tile_h * 0.4
        elif kind.startswith("table"):
            elevation = tile_h / 3
            width, height = tile_w * 0.8, tile_h * 0.8
        elif kind in ("counter", "bookshelf"):
            elevation = tile_h
            width, height = tile_w, tile_h
        else:
            elevation = tile_h / 2
            width, height = tile_w * 0.8, tile_h * 0.8

        return EntityStyle(
            shape="block",
            fill=self._lit(FURNITURE_COLORS.get(kind, self.options["wallColor"])),
            outline="#333333",
            width=width,
            height=height,
            elevation=elevation,
            sprite_id=kind,
        )

    def draw_overlays(self, renderer: "Renderer", entities: list[VisualEntity]) -> None:
        """Message links plus a flat shadow under every visible agent."""
        super().draw_overlays(renderer, entities)
        if not self.options["enableShadows"] or self.context is None:
            return

        config = self.context.grid.get_config()
        shadow = EntityStyle(
            shape="diamond",
            fill=SHADOW_COLOR,
            outline=None,
            width=config.tile_width * 0.5 * float(self.options["agentScale"]),
            height=config.tile_height * 0.5 * float(self.options["agentScale"]),
        )
        for entity in entities:
            if entity.kind == EntityKind.AGENT and entity.visible:
                renderer.draw_tile(entity.position, shadow, entity.z_index - 0.2)

    def cleanup(self) -> None:
        super().cleanup()
        self.chairs = []
