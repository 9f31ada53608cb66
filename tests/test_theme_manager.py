"""Tests for the theme registry."""

from typing import Any

import pytest

from goose_visualizer.events.domain import ThemeEvent
from goose_visualizer.theme_manager import (
    ThemeInfo,
    ThemeManager,
    ThemePlugin,
    register_builtin_themes,
    validate_options,
)
from goose_visualizer.themes.contract import ThemeError
from goose_visualizer.themes.simple2d import Simple2DTheme


@pytest.fixture
def manager() -> ThemeManager:
    return ThemeManager()


@pytest.fixture
def events(manager: ThemeManager) -> list[ThemeEvent]:
    received: list[ThemeEvent] = []
    manager.theme_event.connect(received.append)
    return received


def make_info(name: str = "flat", schema: Any = None, factory: Any = None) -> ThemeInfo:
    return ThemeInfo(
        name=name,
        description="test theme",
        factory=factory or Simple2DTheme,
        config_schema=schema or {},
    )


class TestValidateOptions:
    """Test option validation against a schema."""

    SCHEMA = {
        "title": {"type": "string"},
        "speed": {"type": "number", "min": 0, "max": 10},
        "enabled": {"type": "boolean"},
        "mode": {"type": "select", "options": ["fast", "slow"]},
        "tint": {"type": "color"},
        "extra": {"type": "object"},
        "key": {"type": "string", "required": True},
    }

    def test_valid_options_pass(self) -> None:
        validate_options(
            {
                "title": "x",
                "speed": 2.5,
                "enabled": False,
                "mode": "slow",
                "tint": "#00ff00",
                "extra": {},
                "key": "k",
                "unknown": 1,
            },
            self.SCHEMA,
        )

    @pytest.mark.parametrize(
        "options,message",
        [
            ({}, "Missing required theme configuration option: key"),
            ({"key": 1}, "key must be a string"),
            ({"key": "k", "speed": "fast"}, "speed must be a number"),
            ({"key": "k", "speed": True}, "speed must be a number"),
            ({"key": "k", "speed": -1}, "speed must be >= 0"),
            ({"key": "k", "speed": 11}, "speed must be <= 10"),
            ({"key": "k", "enabled": "yes"}, "enabled must be a boolean"),
            ({"key": "k", "mode": "medium"}, "mode must be one of: fast, slow"),
            ({"key": "k", "tint": "red"}, "tint must be a valid color"),
            ({"key": "k", "extra": []}, "extra must be an object"),
        ],
    )
    def test_invalid_options_fail(self, options: dict[str, Any], message: str) -> None:
        with pytest.raises(ThemeError, match=message):
            validate_options(options, self.SCHEMA)


class TestRegistration:
    """Test registering and unregistering themes."""

    def test_register_emits_event(self, manager: ThemeManager, events: list[ThemeEvent]) -> None:
        manager.register_theme(make_info())

        assert [info.name for info in manager.get_themes()] == ["flat"]
        assert [event.type for event in events] == ["theme:registered"]
        assert events[0].theme_name == "flat"

    def test_duplicate_name_is_rejected(self, manager: ThemeManager) -> None:
        manager.register_theme(make_info())
        with pytest.raises(ThemeError, match="Theme flat is already registered"):
            manager.register_theme(make_info())

    def test_unknown_option_type_is_rejected(self, manager: ThemeManager) -> None:
        with pytest.raises(ThemeError, match="unknown type"):
            manager.register_theme(make_info(schema={"size": {"type": "vector"}}))

    def test_plugin_registration(self, manager: ThemeManager) -> None:
        plugin = ThemePlugin(
            name="plugin", description="from outside", version="2.0.0", create_theme=Simple2DTheme, author="someone"
        )
        manager.register_plugin(plugin)

        info = manager.get_theme_info("plugin")
        assert info is not None
        assert (info.version, info.author) == ("2.0.0", "someone")

    def test_unregister(self, manager: ThemeManager, events: list[ThemeEvent]) -> None:
        manager.register_theme(make_info())

        assert manager.unregister_theme("flat")
        assert not manager.unregister_theme("flat")
        assert manager.get_theme_info("flat") is None
        assert events[-1].type == "theme:unregistered"

    def test_active_theme_cannot_be_unregistered(self, manager: ThemeManager) -> None:
        manager.register_theme(make_info(name="simple-2d"))
        manager.load_theme("simple-2d")

        with pytest.raises(ThemeError, match="Cannot unregister active theme simple-2d"):
            manager.unregister_theme("simple-2d")

    def test_builtin_themes(self, manager: ThemeManager) -> None:
        register_builtin_themes(manager)
        names = {info.name for info in manager.get_themes()}
        assert names == {"isometric-office", "simple-2d", "coder-cafe"}

    def test_cafe_time_of_day_is_checked(self, manager: ThemeManager) -> None:
        register_builtin_themes(manager)
        with pytest.raises(ThemeError, match="timeOfDay must be one of"):
            manager.load_theme("coder-cafe", {"timeOfDay": "midnight"})

    def test_cafe_walk_speed_follows_config(self, manager: ThemeManager) -> None:
        register_builtin_themes(manager)
        theme = manager.load_theme("coder-cafe")
        assert theme.move_speed_ms == 300

        manager.update_config({"moveSpeed": 120})

        assert theme.move_speed_ms == 120


class TestLoading:
    """Test loading and configuring the active theme."""

    def test_load_merges_defaults(self, manager: ThemeManager, events: list[ThemeEvent]) -> None:
        register_builtin_themes(manager)
        events.clear()

        theme = manager.load_theme("simple-2d", {"pulseScale": 2.0})

        assert manager.get_active_theme() is theme
        assert theme.options["pulseScale"] == 2.0
        assert theme.options["pulseDuration"] == 1000
        assert [event.type for event in events] == ["theme:loaded"]

    def test_switch_emits_changed(self, manager: ThemeManager, events: list[ThemeEvent]) -> None:
        register_builtin_themes(manager)
        manager.load_theme("isometric-office")
        events.clear()

        manager.load_theme("simple-2d")

        assert [event.type for event in events] == ["theme:loaded", "theme:changed"]
        assert events[1].details == {"previous": "isometric-office"}

    def test_unknown_theme(self, manager: ThemeManager, events: list[ThemeEvent]) -> None:
        with pytest.raises(ThemeError, match="Theme missing is not registered"):
            manager.load_theme("missing")

        assert [event.type for event in events] == ["theme:error"]
        assert manager.get_active_theme() is None

    def test_invalid_options_keep_previous_theme(self, manager: ThemeManager) -> None:
        register_builtin_themes(manager)
        previous = manager.load_theme("simple-2d")

        with pytest.raises(ThemeError):
            manager.load_theme("isometric-office", {"deskSpacing": 100})

        assert manager.get_active_theme() is previous

    def test_factory_failure_is_wrapped(self, manager: ThemeManager, events: list[ThemeEvent]) -> None:
        def broken(options: dict[str, Any]) -> Any:
            raise RuntimeError("no assets")

        manager.register_theme(make_info(name="broken", factory=broken))

        with pytest.raises(ThemeError, match="no assets"):
            manager.load_theme("broken")
        assert events[-1].type == "theme:error"

    def test_update_config(self, manager: ThemeManager, events: list[ThemeEvent]) -> None:
        register_builtin_themes(manager)
        theme = manager.load_theme("simple-2d")

        manager.update_config({"highlightColor": "#ff00ff"})

        assert theme.options["highlightColor"] == "#ff00ff"
        assert events[-1].type == "theme:config-changed"
        with pytest.raises(ThemeError):
            manager.update_config({"highlightColor": "magenta"})

    def test_update_config_without_active_theme(self, manager: ThemeManager) -> None:
        with pytest.raises(ThemeError, match="No active theme"):
            manager.update_config({})
