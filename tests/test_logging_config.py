"""Tests for logging setup."""

import logging
from pathlib import Path
from typing import Iterator

import pytest

from goose_visualizer.settings import AppSettings
from goose_visualizer.utils.logging_config import CSVFormatter, ColoredFormatter, setup_logging


@pytest.fixture
def restore_root_logger() -> Iterator[logging.Logger]:
    """Put the root logger back the way pytest configured it."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def make_record(message: str, level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord("goose_visualizer.test", level, __file__, 42, message, None, None)


class TestFormatters:
    """Test the console and file formatters."""

    def test_colored_formatter_wraps_level_once(self) -> None:
        formatter = ColoredFormatter(fmt="%(levelname)s %(message)s")
        output = formatter.format(make_record("INFO level reached"))

        assert output.startswith("\033[32mINFO\033[0m")
        assert output.endswith("INFO level reached")

    def test_csv_formatter_escapes_quotes(self) -> None:
        output = CSVFormatter().format(make_record('said "hi"', logging.WARNING))

        fields = output.split(";")
        assert fields[1] == "WARNING "
        assert fields[3] == '"goose_visualizer.test"'
        assert fields[4] == '"42"'
        assert fields[5] == '"said ""hi"""'


class TestSetupLogging:
    """Test handler installation from settings."""

    def test_console_only_by_default(self, app_settings: AppSettings, restore_root_logger: logging.Logger) -> None:
        setup_logging(app_settings)

        handlers = restore_root_logger.handlers
        assert len(handlers) == 1
        assert handlers[0].level == logging.INFO
        assert isinstance(handlers[0].formatter, ColoredFormatter)
        assert logging.getLogger("goose_visualizer").level == logging.DEBUG
        assert logging.getLogger("PIL").level == logging.INFO

    def test_plain_console_at_configured_level(
        self, app_settings: AppSettings, restore_root_logger: logging.Logger
    ) -> None:
        app_settings.logging.console_use_colors = False
        app_settings.logging.console_log_level = "WARNING"

        setup_logging(app_settings)

        handler = restore_root_logger.handlers[0]
        assert handler.level == logging.WARNING
        assert not isinstance(handler.formatter, ColoredFormatter)

    def test_file_logging_writes_csv(
        self,
        app_settings: AppSettings,
        restore_root_logger: logging.Logger,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.chdir(tmp_path)
        app_settings.logging.console_logging = False
        app_settings.logging.file_logging = True

        setup_logging(app_settings)
        logging.getLogger("goose_visualizer.test").info("hello file")
        for handler in restore_root_logger.handlers:
            handler.flush()

        log_file = tmp_path / "logs" / "goose_visualizer.csv"
        assert log_file.exists()
        content = log_file.read_text(encoding="utf-8")
        assert '"hello file"' in content
        assert "Logging initialized" in content
