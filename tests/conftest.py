"""Shared fixtures for the goose-visualizer test suite."""

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from typing import Any, Callable, Iterator

import pytest
from PySide6.QtCore import QSettings
from PySide6.QtWidgets import QApplication

from goose_visualizer.core.adapter import ProtocolAdapter
from goose_visualizer.core.entities import VisualEntity
from goose_visualizer.core.types import Position
from goose_visualizer.settings import AppSettings
from goose_visualizer.themes.contract import EntityStyle


@pytest.fixture(scope="session", autouse=True)
def qapp() -> Iterator[QApplication]:
    """One QApplication for the whole session."""
    app = QApplication.instance() or QApplication([])
    yield app  # type: ignore[misc]


@pytest.fixture
def qsettings(tmp_path: Any) -> QSettings:
    """INI-backed settings store isolated per test."""
    return QSettings(str(tmp_path / "settings.ini"), QSettings.Format.IniFormat)


@pytest.fixture
def app_settings(qsettings: QSettings) -> AppSettings:
    return AppSettings(backend=qsettings)


@pytest.fixture
def adapter() -> ProtocolAdapter:
    return ProtocolAdapter()


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class RecordingRenderer:
    """Renderer that records draw calls instead of painting."""

    def __init__(self):
        self.calls: list[tuple[str, Any]] = []
        self.frames = 0

    def begin_frame(self) -> None:
        self.calls = []

    def draw_tile(self, position: Position, style: EntityStyle, z_index: float) -> None:
        self.calls.append(("tile", (position, style, z_index)))

    def draw_block(self, position: Position, style: EntityStyle, z_index: float) -> None:
        self.calls.append(("block", (position, style, z_index)))

    def draw_entity(self, entity: VisualEntity, style: EntityStyle) -> None:
        self.calls.append(("entity", (entity, style)))

    def draw_link(self, start: Position, end: Position, color: str, z_index: float) -> None:
        self.calls.append(("link", (start, end, color, z_index)))

    def end_frame(self) -> None:
        self.frames += 1

    def drawn(self, kind: str) -> list[Any]:
        return [args for name, args in self.calls if name == kind]

    def drawn_entity_ids(self) -> list[str]:
        return [entity.id for entity, _ in self.drawn("entity")]


@pytest.fixture
def renderer() -> RecordingRenderer:
    return RecordingRenderer()


class ManualScheduler:
    """Collects delayed callbacks so tests can run them explicitly."""

    def __init__(self):
        self.pending: list[tuple[int, Callable[[], None]]] = []

    def __call__(self, delay_ms: int, callback: Callable[[], None]) -> None:
        self.pending.append((delay_ms, callback))

    def run_all(self) -> None:
        pending, self.pending = self.pending, []
        for _, callback in pending:
            callback()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()
