"""Tests for the spatial grid."""

import pytest

from goose_visualizer.core.entities import EntityKind, VisualEntity
from goose_visualizer.core.grid import CellType, GridConfig, IsometricGrid
from goose_visualizer.settings import ConfigError


def make_grid(width: int = 10, height: int = 10, **kwargs) -> IsometricGrid:
    return IsometricGrid(GridConfig(width=width, height=height, tile_width=64, tile_height=32, **kwargs))


def make_entity(entity_id: str) -> VisualEntity:
    return VisualEntity(id=entity_id, kind=EntityKind.AGENT)


class TestGridConfig:
    """Test configuration validation."""

    @pytest.mark.parametrize(
        "width,height,tile_w,tile_h",
        [(0, 10, 64, 32), (10, -1, 64, 32), (10, 10, 0, 32), (10, 10, 64, -5), (60, 60, 64, 32)],
    )
    def test_invalid_config_fails_fast(self, width: int, height: int, tile_w: int, tile_h: int) -> None:
        """Test the grid refuses geometry that cannot describe cells."""
        with pytest.raises(ConfigError):
            IsometricGrid(GridConfig(width=width, height=height, tile_width=tile_w, tile_height=tile_h))

    def test_largest_grid_keeps_layers_apart(self) -> None:
        """Test the far floor corner still sorts below the first elevated layer."""
        grid = make_grid(50, 51)
        assert grid.transformer.get_sort_key(49, 50) < grid.transformer.get_sort_key(0, 0, 1)


class TestCells:
    """Test bounds and lazy cell allocation."""

    def test_bounds(self) -> None:
        grid = make_grid(5, 4)
        assert grid.is_in_bounds(0, 0)
        assert grid.is_in_bounds(4, 3)
        assert not grid.is_in_bounds(5, 0)
        assert not grid.is_in_bounds(0, 4)
        assert not grid.is_in_bounds(-1, 0)

    def test_layers_are_unbounded_upward(self) -> None:
        grid = make_grid(5, 5)
        assert grid.is_in_bounds(2, 2, 50)
        assert not grid.is_in_bounds(2, 2, -1)

    def test_lazy_cell_defaults(self) -> None:
        """Test floor cells are walkable floor, higher cells empty and blocked."""
        grid = make_grid()
        floor = grid.get_cell(1, 1, 0)
        upper = grid.get_cell(1, 1, 2)

        assert floor is not None and upper is not None
        assert floor.type == CellType.FLOOR and floor.walkable
        assert upper.type == CellType.EMPTY and not upper.walkable

    def test_out_of_bounds_cell_is_none(self) -> None:
        assert make_grid().get_cell(10, 0) is None

    def test_get_cell_returns_same_instance(self) -> None:
        grid = make_grid()
        assert grid.get_cell(2, 3) is grid.get_cell(2, 3)


class TestPlacement:
    """Test entity placement, removal and ordering."""

    def test_place_sets_position_and_depth(self) -> None:
        grid = make_grid(origin_x=100, origin_y=50)
        entity = make_entity("a")

        assert grid.place_entity(entity, 2, 1)
        assert (entity.position.x, entity.position.y) == (132, 98)
        assert (entity.grid_position.x, entity.grid_position.y, entity.grid_position.z) == (2, 1, 0)
        assert entity.z_index == 3

    def test_place_out_of_bounds_fails(self) -> None:
        grid = make_grid(3, 3)
        assert not grid.place_entity(make_entity("a"), 3, 0)
        assert grid.get_all_entities() == []

    def test_place_ignores_walkability(self) -> None:
        """Test furniture can stand on blocked cells."""
        grid = make_grid()
        grid.set_cell_type(4, 4, 0, CellType.OBJECT)
        assert grid.place_entity(make_entity("desk"), 4, 4)

    def test_removed_entity_is_gone(self) -> None:
        grid = make_grid()
        grid.place_entity(make_entity("a"), 1, 1)
        grid.place_entity(make_entity("b"), 2, 2)

        assert grid.remove_entity("a")
        assert [entity.id for entity in grid.get_all_entities()] == ["b"]
        assert not grid.remove_entity("a")

    def test_entities_sorted_by_depth(self) -> None:
        """Test lower x+y sorts before higher x+y."""
        grid = make_grid()
        grid.place_entity(make_entity("near"), 5, 4)
        grid.place_entity(make_entity("far"), 0, 1)
        grid.place_entity(make_entity("middle"), 2, 2)

        assert [entity.id for entity in grid.get_all_entities()] == ["far", "middle", "near"]

    def test_upper_layer_sorts_after_floor(self) -> None:
        grid = make_grid()
        grid.place_entity(make_entity("bubble"), 0, 0, 1)
        grid.place_entity(make_entity("agent"), 9, 9, 0)

        assert [entity.id for entity in grid.get_all_entities()] == ["agent", "bubble"]

    def test_occupancy_and_lookup(self) -> None:
        grid = make_grid()
        grid.place_entity(make_entity("a"), 3, 2)

        assert grid.is_occupied(3, 2)
        assert not grid.is_occupied(2, 3)
        cell = grid.find_entity_cell("a")
        assert cell is not None and (cell.x, cell.y) == (3, 2)

    def test_clear_entities_keeps_cell_types(self) -> None:
        grid = make_grid()
        grid.set_cell_type(1, 1, 0, CellType.WALL)
        grid.place_entity(make_entity("a"), 1, 1)

        grid.clear_entities()

        assert grid.get_all_entities() == []
        assert not grid.is_walkable(1, 1)

    def test_set_origin_moves_placed_entities(self) -> None:
        grid = make_grid()
        entity = make_entity("a")
        grid.place_entity(entity, 1, 0)

        grid.set_origin(200, 40)

        assert (entity.position.x, entity.position.y) == (232, 56)
        assert grid.get_config().origin_x == 200


class TestWalkability:
    """Test walkability rules."""

    @pytest.mark.parametrize("cell_type", [CellType.WALL, CellType.OBJECT])
    def test_blocking_types_force_unwalkable(self, cell_type: CellType) -> None:
        grid = make_grid()
        grid.set_walkable(2, 2, 0, True)
        grid.set_cell_type(2, 2, 0, cell_type)
        assert not grid.is_walkable(2, 2)

    def test_other_types_keep_flag(self) -> None:
        """Test reopening a path needs an explicit set_walkable."""
        grid = make_grid()
        grid.set_cell_type(2, 2, 0, CellType.WALL)
        grid.set_cell_type(2, 2, 0, CellType.FLOOR)
        assert not grid.is_walkable(2, 2)

        grid.set_walkable(2, 2, 0, True)
        assert grid.is_walkable(2, 2)

    def test_out_of_bounds_is_not_walkable(self) -> None:
        assert not make_grid(4, 4).is_walkable(4, 0)

    def test_office_floor_has_perimeter_walls(self) -> None:
        grid = make_grid(6, 5)
        grid.create_basic_office_floor()

        wall = grid.get_cell(0, 2, 1)
        inner = grid.get_cell(2, 2, 1)
        assert wall is not None and wall.type == CellType.WALL
        assert inner is not None and inner.type == CellType.EMPTY
        assert grid.is_walkable(0, 2, 0)
