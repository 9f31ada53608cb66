"""Tests for the built-in themes."""

from typing import Any

import pytest

from goose_visualizer.core.animation import advance, start_animation
from goose_visualizer.core.entities import EntityKind, VisualEntity
from goose_visualizer.core.grid import CellType, GridConfig, IsometricGrid
from goose_visualizer.core.types import Agent, AgentState, Task, TaskState
from goose_visualizer.rendering.sprites import SpriteManager
from goose_visualizer.settings import AppSettings
from goose_visualizer.themes.coder_cafe import SHADOW_COLOR, CoderCafeTheme
from goose_visualizer.themes.contract import SceneTheme, ThemeContext
from goose_visualizer.themes.isometric_office import (
    AGENT_STATE_COLORS,
    FLOOR_Z_OFFSET,
    IsometricOfficeTheme,
    shorten,
)
from goose_visualizer.themes.simple2d import Simple2DTheme, blend


def make_context(app_settings: AppSettings, width: int = 15, height: int = 15, isometric: bool = True) -> ThemeContext:
    grid = IsometricGrid(
        GridConfig(width=width, height=height, tile_width=64, tile_height=32, is_isometric=isometric)
    )
    return ThemeContext(grid=grid, sprites=SpriteManager(), scene=app_settings.scene)


class TestContract:
    """Test the built-in themes satisfy the theme protocol."""

    @pytest.mark.parametrize("theme_class", [IsometricOfficeTheme, Simple2DTheme, CoderCafeTheme])
    def test_protocol(self, theme_class: Any) -> None:
        assert isinstance(theme_class(), SceneTheme)

    def test_options_override_defaults(self) -> None:
        theme = IsometricOfficeTheme({"deskSpacing": 4})
        assert theme.options["deskSpacing"] == 4
        assert theme.options["showNames"] is True


class TestIsometricOffice:
    """Test the office layout and placement rules."""

    def test_desks_are_laid_out_and_blocked(self, app_settings: AppSettings) -> None:
        theme = IsometricOfficeTheme()
        context = make_context(app_settings)

        furniture = theme.initialize(context)

        assert len(furniture) == 16
        assert furniture[0][1] == (3, 3, 0)
        assert all(entity.kind == EntityKind.FURNITURE for entity, _ in furniture)
        assert not context.grid.is_walkable(3, 3)
        assert context.grid.get_cell(3, 3).type == CellType.OBJECT  # type: ignore[union-attr]

    def test_spawn_cells_hug_desks(self, app_settings: AppSettings) -> None:
        theme = IsometricOfficeTheme()
        context = make_context(app_settings)
        theme.initialize(context)
        grid = context.grid

        first = theme.find_available_cell(grid, 0)
        assert first == (2, 3, 0)

        grid.place_entity(VisualEntity(id="x", kind=EntityKind.AGENT), *first)  # type: ignore[misc]
        assert theme.find_available_cell(grid, 1) == (4, 3, 0)

    def test_spawn_without_desks_spirals_from_centre(self, app_settings: AppSettings) -> None:
        theme = IsometricOfficeTheme()
        context = make_context(app_settings, 5, 5)
        theme.initialize(context)

        assert theme.desks == []
        assert theme.find_available_cell(context.grid, 0) == (2, 2, 0)

    def test_task_cells_sit_on_free_desks(self, app_settings: AppSettings) -> None:
        theme = IsometricOfficeTheme()
        context = make_context(app_settings)
        theme.initialize(context)
        grid = context.grid

        assert theme.task_cell(grid, 0) == (3, 3, 1)
        grid.place_entity(VisualEntity(id="t", kind=EntityKind.TASK), 3, 3, 1)
        assert theme.task_cell(grid, 1) == (6, 3, 1)

    def test_approach_prefers_free_neighbour(self, app_settings: AppSettings) -> None:
        theme = IsometricOfficeTheme()
        context = make_context(app_settings)
        theme.initialize(context)
        grid = context.grid

        assert theme.approach_cell(grid, (3, 3, 1)) == (2, 3, 0)
        grid.place_entity(VisualEntity(id="a", kind=EntityKind.AGENT), 2, 3)
        assert theme.approach_cell(grid, (3, 3, 1)) == (4, 3, 0)

    def test_agent_style_reflects_state(self, app_settings: AppSettings) -> None:
        theme = IsometricOfficeTheme()
        theme.initialize(make_context(app_settings))
        agent = Agent(id="a", name="Alpha", color="#123456", state=AgentState.WORKING)

        style = theme.style_for(theme.create_agent_view(agent))

        assert style.fill == "#123456"
        assert style.outline == AGENT_STATE_COLORS[AgentState.WORKING]
        assert style.label == "Alpha"
        assert style.sprite_id == "agent-working"

    def test_task_label_is_shortened(self, app_settings: AppSettings) -> None:
        theme = IsometricOfficeTheme()
        theme.initialize(make_context(app_settings))
        task = Task(id="t", description="summarize the quarterly report", state=TaskState.PENDING)

        style = theme.style_for(theme.create_task_view(task))

        assert style.label == "summarize ..."

    def test_floor_is_drawn_below_entities(self, app_settings: AppSettings, renderer: Any) -> None:
        theme = IsometricOfficeTheme()
        context = make_context(app_settings, 6, 6)
        theme.initialize(context)

        theme.render(renderer, [])

        tiles = renderer.drawn("tile")
        walls = renderer.drawn("block")
        assert len(tiles) == 36
        assert all(z_index < FLOOR_Z_OFFSET + 100 for _, _, z_index in tiles)
        assert len(walls) == 20

    def test_update_advances_sprite_clock(self) -> None:
        theme = IsometricOfficeTheme()
        view = theme.create_agent_view(Agent(id="a", name="A", color="#fff"))

        theme.update([view], 40)
        theme.update([view], 10)

        assert view.data["elapsed_ms"] == 50

    def test_resize_centres_horizontally(self, app_settings: AppSettings) -> None:
        theme = IsometricOfficeTheme()
        theme.initialize(make_context(app_settings))
        assert theme.resize(1000, 700) == (500, 64)


class TestSimple2D:
    """Test the flat layout and its effects."""

    def test_agent_slots(self, app_settings: AppSettings) -> None:
        theme = Simple2DTheme()
        context = make_context(app_settings, isometric=False)
        theme.initialize(context)
        grid = context.grid

        assert theme.find_available_cell(grid, 0) == (1, 1, 0)
        assert theme.find_available_cell(grid, 4) == (13, 1, 0)
        assert theme.find_available_cell(grid, 5) == (1, 4, 0)
        assert theme.find_available_cell(grid, 25) is None

    def test_task_column(self, app_settings: AppSettings) -> None:
        theme = Simple2DTheme()
        context = make_context(app_settings, isometric=False)
        theme.initialize(context)

        assert theme.task_cell(context.grid, 0) == (13, 1, 0)
        assert theme.task_cell(context.grid, 3) == (13, 7, 0)
        assert theme.task_cell(context.grid, 7) is None

    def test_approach_from_the_left(self, app_settings: AppSettings) -> None:
        theme = Simple2DTheme()
        context = make_context(app_settings, isometric=False)
        theme.initialize(context)

        assert theme.approach_cell(context.grid, (13, 1, 0)) == (12, 1, 0)
        assert theme.approach_cell(context.grid, (0, 1, 0)) is None

    def test_pulse_grows_and_shrinks(self) -> None:
        theme = Simple2DTheme({"pulseDuration": 200, "pulseScale": 1.5})
        view = theme.create_agent_view(Agent(id="a", name="A", color="#fff"))

        theme.on_agent_state_changed(view, AgentState.IDLE, AgentState.ACTIVE)
        advance(view, 100)
        assert view.scale == pytest.approx(1.5)
        assert view.is_animating

        advance(view, 100)
        assert view.scale == pytest.approx(1.0)
        assert not view.is_animating

    def test_waiting_highlights(self) -> None:
        theme = Simple2DTheme({"pulseDuration": 200})
        view = theme.create_agent_view(Agent(id="a", name="A", color="#000000"))

        theme.on_agent_state_changed(view, AgentState.IDLE, AgentState.WAITING)
        advance(view, 100)

        assert view.data["highlight"] == pytest.approx(1.0)
        assert theme.style_for(view).fill == "#ffff00"
        assert view.scale == 1.0

    def test_moving_agent_is_left_alone(self) -> None:
        theme = Simple2DTheme()
        view = theme.create_agent_view(Agent(id="a", name="A", color="#fff"))

        move = start_animation(view, {"opacity": (1.0, 1.0)}, 500)
        theme.on_agent_state_changed(view, AgentState.IDLE, AgentState.ACTIVE)

        assert view.animation is move

    def test_agent_label_shows_state(self) -> None:
        theme = Simple2DTheme()
        agent = Agent(id="a", name="Alpha", color="#fff", state=AgentState.THINKING)
        assert theme.style_for(theme.create_agent_view(agent)).label == "Alpha (thinking)"

    @pytest.mark.parametrize(
        "amount,expected",
        [(0.0, "#000000"), (1.0, "#ffffff"), (0.5, "#808080"), (2.0, "#ffffff")],
    )
    def test_blend(self, amount: float, expected: str) -> None:
        assert blend("#000000", "#ffffff", amount) == expected

    def test_resize_centres_content(self, app_settings: AppSettings) -> None:
        theme = Simple2DTheme()
        theme.initialize(make_context(app_settings, 10, 10, isometric=False))
        # Content is 640x320
        assert theme.resize(800, 600) == (80 + 32, 140 + 16)


class TestCoderCafe:
    """Test the café layout, seating and lighting."""

    def furnished(self, app_settings: AppSettings, **options: Any) -> tuple[CoderCafeTheme, IsometricGrid]:
        theme = CoderCafeTheme(options)
        context = make_context(app_settings)
        for entity, cell in theme.initialize(context):
            context.grid.place_entity(entity, *cell)
        return theme, context.grid

    def test_chairs_stay_walkable(self, app_settings: AppSettings) -> None:
        theme, grid = self.furnished(app_settings)

        assert len(theme.desks) == 4
        assert len(theme.chairs) == 8
        assert grid.is_walkable(2, 5)
        assert grid.get_cell(3, 5).type == CellType.OBJECT  # type: ignore[union-attr]
        assert not grid.is_walkable(13, 3)

    def test_layout_is_clipped_to_small_rooms(self, app_settings: AppSettings) -> None:
        theme = CoderCafeTheme()
        context = make_context(app_settings, 6, 6)

        furniture = theme.initialize(context)

        assert {cell for _, cell in furniture} == {(3, 1, 0), (2, 1, 0)}
        assert theme.desks == []

    def test_agents_take_free_chairs(self, app_settings: AppSettings) -> None:
        theme, grid = self.furnished(app_settings)

        first = theme.find_available_cell(grid, 0)
        assert first == (2, 5, 0)

        grid.place_entity(VisualEntity(id="a", kind=EntityKind.AGENT), *first)  # type: ignore[misc]
        assert theme.find_available_cell(grid, 1) == (4, 5, 0)

    def test_approach_prefers_chair_at_table(self, app_settings: AppSettings) -> None:
        theme, grid = self.furnished(app_settings)

        assert theme.approach_cell(grid, (7, 3, 1)) == (6, 3, 0)
        grid.place_entity(VisualEntity(id="a", kind=EntityKind.AGENT), 6, 3)
        assert theme.approach_cell(grid, (7, 3, 1)) == (8, 3, 0)

    def test_evening_darkens_the_floor(self, app_settings: AppSettings) -> None:
        afternoon, _ = self.furnished(app_settings)
        evening, _ = self.furnished(app_settings, timeOfDay="evening")

        assert afternoon.floor_style().fill == "#e8d4b9"
        assert evening.floor_style().fill == blend("#e8d4b9", "#1a1a40", 0.35)
        assert evening.wall_style().fill != afternoon.wall_style().fill

    @pytest.mark.parametrize("enabled,expected", [(True, 1), (False, 0)])
    def test_shadows_under_agents(
        self, app_settings: AppSettings, renderer: Any, enabled: bool, expected: int
    ) -> None:
        theme, grid = self.furnished(app_settings, enableShadows=enabled)
        view = theme.create_agent_view(Agent(id="a", name="A", color="#ffffff"))
        grid.place_entity(view, 2, 5)

        theme.render(renderer, grid.get_all_entities())

        shadows = [args for args in renderer.drawn("tile") if args[1].fill == SHADOW_COLOR]
        assert len(shadows) == expected
        for _, _, z_index in shadows:
            assert z_index < view.z_index


def test_shorten() -> None:
    assert shorten("short") == "short"
    assert shorten("exactly 10") == "exactly 10"
    assert shorten("longer than ten", 6) == "longer..."
