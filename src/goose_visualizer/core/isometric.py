"""Coordinate transformations for scene rendering.

This module handles conversions between logical grid coordinates and
screen coordinates, including the isometric projection, its inverse,
elevation offsets and depth sorting keys.
"""

import math

# Depth added per elevation layer so taller stacks sort above shorter ones
LAYER_DEPTH_MULTIPLIER = 100


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves towards positive infinity."""
    return int(math.floor(value + 0.5))


def grid_to_screen(
    grid_x: float, grid_y: float, tile_width: float, tile_height: float
) -> tuple[float, float]:
    """Convert grid coordinates to isometric screen coordinates.

    The X axis runs diagonally down-right on screen, the Y axis diagonally
    down-left.

    Args:
        grid_x: Column in the grid (can be fractional)
        grid_y: Row in the grid (can be fractional)
        tile_width: Width of one tile in screen units
        tile_height: Height of one tile in screen units

    Returns:
        (screen_x, screen_y) relative to the grid origin
    """
    screen_x = (grid_x - grid_y) * (tile_width / 2)
    screen_y = (grid_x + grid_y) * (tile_height / 2)
    return (screen_x, screen_y)


def screen_to_grid(
    screen_x: float, screen_y: float, tile_width: float, tile_height: float
) -> tuple[int, int]:
    """Convert isometric screen coordinates back to the nearest grid cell.

    Args:
        screen_x: X position relative to the grid origin
        screen_y: Y position relative to the grid origin
        tile_width: Width of one tile in screen units
        tile_height: Height of one tile in screen units

    Returns:
        (grid_x, grid_y) rounded to the nearest integer cell
    """
    half_w = tile_width / 2
    half_h = tile_height / 2
    grid_x = (screen_x / half_w + screen_y / half_h) / 2
    grid_y = (screen_y / half_h - screen_x / half_w) / 2
    return (round_half_up(grid_x), round_half_up(grid_y))


def calculate_depth(grid_x: float, grid_y: float) -> float:
    """Depth key for a grid position.

    Higher values are nearer to the viewer and must be drawn later.
    """
    return grid_x + grid_y


def grid_to_screen_with_height(
    grid_x: float,
    grid_y: float,
    layer: float,
    tile_width: float,
    tile_height: float,
) -> tuple[float, float]:
    """Convert grid coordinates with elevation to screen coordinates.

    Each layer lifts the screen Y coordinate by half a tile height.
    """
    screen_x, screen_y = grid_to_screen(grid_x, grid_y, tile_width, tile_height)
    return (screen_x, screen_y - layer * (tile_height / 2))


def layered_depth(grid_x: float, grid_y: float, layer: float) -> float:
    """Depth key combining grid depth with the elevation layer."""
    return calculate_depth(grid_x, grid_y) + layer * LAYER_DEPTH_MULTIPLIER


class CoordinateTransformer:
    """Handles transformations between grid and screen space.

    Wraps the projection functions with a screen origin. Supports the
    isometric projection and a plain orthogonal one for flat layouts.
    """

    def __init__(
        self,
        tile_width: float,
        tile_height: float,
        origin_x: float = 0,
        origin_y: float = 0,
        is_isometric: bool = True,
    ):
        """Initialize the coordinate transformer.

        Args:
            tile_width: Width of a single tile in screen units
            tile_height: Height of a single tile in screen units
            origin_x: Screen X of grid cell (0, 0)
            origin_y: Screen Y of grid cell (0, 0)
            is_isometric: Whether to use isometric projection
        """
        self.tile_width = tile_width
        self.tile_height = tile_height
        self.origin_x = origin_x
        self.origin_y = origin_y
        self.is_isometric = is_isometric

    def tiles_to_pixels(self, tile_x: float, tile_y: float) -> tuple[float, float]:
        """Convert grid coordinates to screen coordinates without origin.

        For orthogonal projection: simple multiplication by tile dimensions.
        For isometric projection: apply isometric transformation formula.
        """
        if not self.is_isometric:
            return (float(tile_x * self.tile_width), float(tile_y * self.tile_height))

        return grid_to_screen(tile_x, tile_y, self.tile_width, self.tile_height)

    def to_screen(self, tile_x: float, tile_y: float, layer: float = 0) -> tuple[float, float]:
        """Screen position of a grid cell with origin and elevation applied.

        Args:
            tile_x: Grid X coordinate
            tile_y: Grid Y coordinate
            layer: Elevation layer (0 is the floor)

        Returns:
            (screen_x, screen_y) in scene coordinates
        """
        pixel_x, pixel_y = self.tiles_to_pixels(tile_x, tile_y)
        lift = layer * (self.tile_height / 2)
        return (pixel_x + self.origin_x, pixel_y + self.origin_y - lift)

    def to_grid_fraction(
        self, screen_x: float, screen_y: float, layer: float = 0
    ) -> tuple[float, float]:
        """Unrounded grid coordinates of a screen position on a layer."""
        local_x = screen_x - self.origin_x
        local_y = screen_y - self.origin_y + layer * (self.tile_height / 2)

        if not self.is_isometric:
            return (local_x / self.tile_width, local_y / self.tile_height)

        half_w = self.tile_width / 2
        half_h = self.tile_height / 2
        return ((local_x / half_w + local_y / half_h) / 2, (local_y / half_h - local_x / half_w) / 2)

    def to_grid(self, screen_x: float, screen_y: float) -> tuple[int, int]:
        """Nearest grid cell for a screen position (layer 0)."""
        local_x = screen_x - self.origin_x
        local_y = screen_y - self.origin_y

        if not self.is_isometric:
            return (
                round_half_up(local_x / self.tile_width),
                round_half_up(local_y / self.tile_height),
            )

        return screen_to_grid(local_x, local_y, self.tile_width, self.tile_height)

    def get_sort_key(self, tile_x: float, tile_y: float, layer: float = 0) -> float:
        """Get sort key for rendering order (far to near, low layers first)."""
        return layered_depth(tile_x, tile_y, layer)
