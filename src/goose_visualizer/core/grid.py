"""
Spatial grid for scene placement.

The grid is a bounded (x, y) area with lazily allocated elevation layers.
Each cell stores a type tag, a walkability flag and the visual entities
currently standing on it. The grid only references entities; their
lifetime belongs to the scene synchronizer.

**Important:** cells do not store their entities' lifetime and the grid
does not move entities between cells on its own. Callers relocating an
entity must call `remove_entity` before `place_entity`.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterator, Optional

from ..settings.types import ConfigError
from .entities import VisualEntity
from .isometric import LAYER_DEPTH_MULTIPLIER, CoordinateTransformer
from .types import Position


class CellType(str, Enum):
    """Type tag of a grid cell."""

    FLOOR = "floor"
    WALL = "wall"
    OBJECT = "object"
    EMPTY = "empty"

    @property
    def blocks_movement(self) -> bool:
        """Walls and objects are never walkable."""
        return self in (CellType.WALL, CellType.OBJECT)


@dataclass
class GridCell:
    """A single cell of the grid at (x, y, z)."""

    x: int
    y: int
    z: int
    type: CellType
    walkable: bool
    entities: list[VisualEntity] = field(default_factory=lambda: [])


@dataclass(frozen=True)
class GridConfig:
    """Grid dimensions and projection settings.

    Attributes:
        width: Number of cells along X
        height: Number of cells along Y
        tile_width: Tile width in screen units
        tile_height: Tile height in screen units
        origin_x: Screen X of cell (0, 0)
        origin_y: Screen Y of cell (0, 0)
        is_isometric: Isometric (True) or orthogonal (False) projection
    """

    width: int
    height: int
    tile_width: float
    tile_height: float
    origin_x: float = 0
    origin_y: float = 0
    is_isometric: bool = True

    def validate(self) -> None:
        """Raise ConfigError if the configuration cannot describe a grid."""
        if not isinstance(self.width, int) or self.width <= 0:
            raise ConfigError(f"Grid width must be a positive integer, got {self.width!r}")
        if not isinstance(self.height, int) or self.height <= 0:
            raise ConfigError(f"Grid height must be a positive integer, got {self.height!r}")
        # Floor depth keys must stay below those of the first elevated layer
        if self.width + self.height - 2 >= LAYER_DEPTH_MULTIPLIER:
            raise ConfigError(
                f"Grid {self.width}x{self.height} is too large: width + height must not exceed "
                f"{LAYER_DEPTH_MULTIPLIER + 1}"
            )
        if self.tile_width <= 0 or self.tile_height <= 0:
            raise ConfigError(
                f"Tile size must be positive, got {self.tile_width}x{self.tile_height}"
            )


class IsometricGrid:
    """Bounded 3D cell store with entity placement and depth ordering."""

    def __init__(self, config: GridConfig):
        """Initialize the grid.

        Args:
            config: Grid dimensions and projection

        Raises:
            ConfigError: If the configuration is invalid
        """
        config.validate()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._config = config
        self.transformer = CoordinateTransformer(
            config.tile_width,
            config.tile_height,
            config.origin_x,
            config.origin_y,
            config.is_isometric,
        )
        # (x, y, z) -> cell, allocated on first access
        self._cells: dict[tuple[int, int, int], GridCell] = {}

    # === BOUNDS AND CELLS ===

    def is_in_bounds(self, x: int, y: int, z: int = 0) -> bool:
        """Check coordinates against the grid bounds. Layers are unbounded upward."""
        return 0 <= x < self._config.width and 0 <= y < self._config.height and z >= 0

    def get_cell(self, x: int, y: int, z: int = 0) -> Optional[GridCell]:
        """Get a cell, creating it with layer defaults on first access.

        Returns:
            The cell, or None if out of bounds
        """
        if not self.is_in_bounds(x, y, z):
            return None

        key = (x, y, z)
        cell = self._cells.get(key)
        if cell is None:
            cell = GridCell(
                x=x,
                y=y,
                z=z,
                type=CellType.FLOOR if z == 0 else CellType.EMPTY,
                walkable=z == 0,
            )
            self._cells[key] = cell
        return cell

    def iter_cells(self) -> Iterator[GridCell]:
        """Iterate over allocated cells in (x, y, z) order."""
        for key in sorted(self._cells):
            yield self._cells[key]

    # === COORDINATES ===

    def grid_to_screen(self, x: float, y: float, z: float = 0) -> Position:
        """Screen position of a cell including origin and elevation."""
        screen_x, screen_y = self.transformer.to_screen(x, y, z)
        return Position(screen_x, screen_y, z)

    def screen_to_grid(self, screen_x: float, screen_y: float) -> Position:
        """Nearest grid cell (layer 0) for a screen position."""
        grid_x, grid_y = self.transformer.to_grid(screen_x, screen_y)
        return Position(grid_x, grid_y)

    def locate(self, position: Position, z: float = 0) -> tuple[float, float]:
        """Fractional grid coordinates of a screen position standing on layer ``z``."""
        return self.transformer.to_grid_fraction(position.x, position.y, z)

    # === ENTITY PLACEMENT ===

    def place_entity(self, entity: VisualEntity, x: int, y: int, z: int = 0) -> bool:
        """Place an entity on a cell.

        Sets the entity's screen position, grid position and depth key.
        Walkability is not checked.

        Returns:
            False if the cell is out of bounds
        """
        cell = self.get_cell(x, y, z)
        if cell is None:
            return False

        entity.position = self.grid_to_screen(x, y, z)
        entity.grid_position = Position(x, y, z)
        entity.z_index = self.transformer.get_sort_key(x, y, z)
        cell.entities.append(entity)
        return True

    def remove_entity(self, entity_id: str) -> bool:
        """Remove the first placement of an entity.

        Scans every allocated cell.

        Returns:
            True if the entity was found and removed
        """
        for cell in self._cells.values():
            for index, entity in enumerate(cell.entities):
                if entity.id == entity_id:
                    del cell.entities[index]
                    return True
        return False

    def find_entity_cell(self, entity_id: str) -> Optional[GridCell]:
        """Cell currently holding the entity, if placed."""
        for cell in self._cells.values():
            if any(entity.id == entity_id for entity in cell.entities):
                return cell
        return None

    def get_all_entities(self) -> list[VisualEntity]:
        """All placed entities sorted ascending by depth key."""
        entities: list[VisualEntity] = []
        for cell in self.iter_cells():
            entities.extend(cell.entities)
        return sorted(entities, key=lambda entity: entity.z_index)

    def clear_entities(self) -> None:
        """Drop every entity placement, keeping cell types."""
        for cell in self._cells.values():
            cell.entities.clear()

    # === WALKABILITY ===

    def set_walkable(self, x: int, y: int, z: int, walkable: bool) -> None:
        """Set a cell's walkable flag."""
        cell = self.get_cell(x, y, z)
        if cell is not None:
            cell.walkable = walkable

    def set_cell_type(self, x: int, y: int, z: int, cell_type: CellType) -> None:
        """Set a cell's type.

        Walls and objects force the cell unwalkable. Other types leave the
        flag untouched; reopening a path requires `set_walkable`.
        """
        cell = self.get_cell(x, y, z)
        if cell is None:
            return

        cell.type = cell_type
        if cell_type.blocks_movement:
            cell.walkable = False

    def is_walkable(self, x: int, y: int, z: int = 0) -> bool:
        """False for out-of-bounds cells and blocking cells."""
        cell = self.get_cell(x, y, z)
        if cell is None:
            return False
        return cell.walkable and not cell.type.blocks_movement

    def is_occupied(self, x: int, y: int, z: int = 0) -> bool:
        """Whether any entity stands on the cell."""
        cell = self._cells.get((x, y, z))
        return bool(cell and cell.entities)

    # === CONFIGURATION AND LAYOUT ===

    def get_config(self) -> GridConfig:
        """Get the grid configuration."""
        return self._config

    def set_origin(self, origin_x: float, origin_y: float) -> None:
        """Move the screen origin and recompute placed entities' positions."""
        self._config = replace(self._config, origin_x=origin_x, origin_y=origin_y)
        self.transformer.origin_x = origin_x
        self.transformer.origin_y = origin_y

        for cell in self._cells.values():
            for entity in cell.entities:
                entity.position = self.grid_to_screen(cell.x, cell.y, cell.z)

    @property
    def width(self) -> int:
        return self._config.width

    @property
    def height(self) -> int:
        return self._config.height

    def create_basic_office_floor(self) -> None:
        """Floor on every cell with walls at layer 1 around the perimeter."""
        width, height = self._config.width, self._config.height
        for x in range(width):
            for y in range(height):
                cell = self.get_cell(x, y, 0)
                if cell is None:
                    continue
                cell.type = CellType.FLOOR
                cell.walkable = True

                if x == 0 or y == 0 or x == width - 1 or y == height - 1:
                    self.set_cell_type(x, y, 1, CellType.WALL)

        self.logger.debug(f"Office floor created ({width}x{height})")
