"""Tests for the animation engine."""

import pytest

from goose_visualizer.core.animation import Animation, advance, start_animation
from goose_visualizer.core.entities import EntityKind, VisualEntity
from goose_visualizer.core.types import Position


def make_entity() -> VisualEntity:
    return VisualEntity(id="e", kind=EntityKind.AGENT, position=Position(0, 0))


class TestAnimationProgress:
    """Test progress computation."""

    def test_progress_is_clamped(self) -> None:
        animation = Animation(duration=100, elapsed=250)
        assert animation.progress == 1.0

    @pytest.mark.parametrize("duration", [0, -10])
    def test_non_positive_duration_is_complete(self, duration: float) -> None:
        assert Animation(duration=duration).progress == 1.0


class TestAdvance:
    """Test interpolation and completion."""

    def test_no_animation_is_noop(self) -> None:
        entity = make_entity()
        assert not advance(entity, 16)
        assert entity.position == Position(0, 0)

    def test_position_interpolates_linearly(self) -> None:
        entity = make_entity()
        start_animation(entity, {"position": (Position(0, 0), Position(100, 50))}, 200)

        advance(entity, 50)
        assert (entity.position.x, entity.position.y) == (25, 12.5)

        advance(entity, 50)
        assert (entity.position.x, entity.position.y) == (50, 25)

    def test_scalar_property_interpolates(self) -> None:
        entity = make_entity()
        start_animation(entity, {"opacity": (1.0, 0.0)}, 100)

        advance(entity, 25)
        assert entity.opacity == pytest.approx(0.75)

    def test_unknown_property_goes_to_data(self) -> None:
        entity = make_entity()
        start_animation(entity, {"highlight": (0.0, 1.0)}, 100)

        advance(entity, 50)
        assert entity.data["highlight"] == pytest.approx(0.5)

    def test_none_start_reads_current_value(self) -> None:
        entity = make_entity()
        entity.scale = 2.0
        start_animation(entity, {"scale": (None, 4.0)}, 100)

        advance(entity, 50)
        assert entity.scale == pytest.approx(3.0)

    def test_zero_duration_completes_on_first_advance(self) -> None:
        entity = make_entity()
        done: list[bool] = []
        start_animation(entity, {"position": (Position(0, 0), Position(10, 10))}, 0, lambda: done.append(True))

        assert advance(entity, 0)
        assert entity.position == Position(10, 10)
        assert done == [True]

    def test_negative_delta_counts_as_zero(self) -> None:
        entity = make_entity()
        animation = start_animation(entity, {"scale": (1.0, 2.0)}, 100)

        advance(entity, 40)
        advance(entity, -1000)
        assert animation.elapsed == 40
        assert entity.scale == pytest.approx(1.4)

    def test_z_is_interpolated_when_both_ends_have_it(self) -> None:
        entity = make_entity()
        start_animation(entity, {"position": (Position(0, 0, 0), Position(0, 0, 2))}, 100)

        advance(entity, 50)
        assert entity.position.z == pytest.approx(1.0)

    def test_missing_z_takes_end_value_on_completion(self) -> None:
        entity = make_entity()
        start_animation(entity, {"position": (Position(0, 0), Position(0, 0, 1))}, 100)

        advance(entity, 50)
        assert entity.position.z is None
        advance(entity, 50)
        assert entity.position.z == 1


class TestCompletion:
    """Test completion semantics."""

    def test_callback_fires_once_and_state_is_stable(self) -> None:
        """Test further advances after completion change nothing."""
        entity = make_entity()
        calls: list[int] = []
        start_animation(entity, {"position": (Position(0, 0), Position(30, 40))}, 100, lambda: calls.append(1))

        assert advance(entity, 150)
        for _ in range(5):
            assert not advance(entity, 100)

        assert calls == [1]
        assert entity.position == Position(30, 40)
        assert not entity.is_animating

    def test_callback_runs_after_deactivation(self) -> None:
        """Test a callback can start a follow-up animation on the same entity."""
        entity = make_entity()
        observed: list[bool] = []

        def chain() -> None:
            observed.append(entity.is_animating)
            start_animation(entity, {"scale": (2.0, 1.0)}, 100)

        start_animation(entity, {"scale": (1.0, 2.0)}, 100, chain)
        advance(entity, 100)

        assert observed == [False]
        assert entity.is_animating
        assert entity.scale == 2.0

        advance(entity, 100)
        assert entity.scale == 1.0

    def test_replacing_animation_drops_old_callback(self) -> None:
        entity = make_entity()
        calls: list[str] = []
        start_animation(entity, {"scale": (1.0, 2.0)}, 100, lambda: calls.append("first"))
        start_animation(entity, {"scale": (1.0, 3.0)}, 100, lambda: calls.append("second"))

        advance(entity, 100)

        assert calls == ["second"]
        assert entity.scale == 3.0

    def test_failing_callback_is_contained(self) -> None:
        entity = make_entity()

        def boom() -> None:
            raise RuntimeError("callback failed")

        start_animation(entity, {"scale": (1.0, 2.0)}, 10, boom)
        assert advance(entity, 10)
        assert not entity.is_animating
