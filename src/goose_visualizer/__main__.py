"""
Main entry point for goose-visualizer.
Usage: python -m goose_visualizer [--server URL] [--replay FILE] [--theme NAME]
"""

import sys
import logging
from pathlib import Path
from typing import Optional

from PySide6.QtCore import QCommandLineOption, QCommandLineParser
from PySide6.QtWidgets import QApplication, QMessageBox

from . import __version__
from .settings import AppSettings, ConfigError
from .themes.contract import ThemeError
from .utils.logging_config import setup_logging
from .visualizer import GooseVisualizer


def show_error_dialog(title: str, message: str, details: Optional[str] = None) -> None:
    """Show error dialog to user."""
    app = QApplication.instance()
    if not app:
        app = QApplication(sys.argv)

    msg_box = QMessageBox()
    msg_box.setIcon(QMessageBox.Icon.Critical)
    msg_box.setWindowTitle(title)
    msg_box.setText(message)

    if details:
        msg_box.setDetailedText(details)

    msg_box.exec()


def build_parser() -> tuple[QCommandLineParser, dict[str, QCommandLineOption]]:
    """Command line options of the viewer."""
    parser = QCommandLineParser()
    parser.setApplicationDescription("Live visualization of agents, tasks and messages")
    parser.addHelpOption()
    parser.addVersionOption()

    options = {
        "server": QCommandLineOption(["s", "server"], "Event stream URL.", "url"),
        "replay": QCommandLineOption(["r", "replay"], "JSON-lines file to replay.", "file"),
        "theme": QCommandLineOption(["t", "theme"], "Theme to start with.", "name"),
    }
    for option in options.values():
        parser.addOption(option)
    return parser, options


def main() -> int:
    """Main application entry point."""
    logger = logging.getLogger(f"{__name__}.main")
    try:
        settings = AppSettings()

        app = QApplication(sys.argv)
        app.setApplicationName("goose_visualizer")
        app.setApplicationVersion(__version__)
        app.setOrganizationName("goose")

        parser, options = build_parser()
        parser.process(app)

        setup_logging(settings)

        logger.info("Starting goose-visualizer")
        logger.info(f"Configuration loaded from {settings.get_settings_file_path()}")

        if parser.isSet(options["server"]):
            settings.connection.server_url = parser.value(options["server"])

        validation = settings.validate()
        for warning in validation.warnings:
            logger.warning(f"  {warning}")

        if not validation.is_valid:
            logger.error("Configuration validation failed:")
            for error in validation.errors:
                logger.error(f"  {error}")
            show_error_dialog(
                "Configuration Error",
                "Configuration validation failed. Please check your settings.",
                "\n".join(validation.errors),
            )
            return 1

        theme_name = parser.value(options["theme"]) if parser.isSet(options["theme"]) else None
        visualizer = GooseVisualizer(settings, theme_name)

        app.setStyle("Fusion")

        view = visualizer.create_view()
        view.resize(1024, 768)
        view.show()

        if parser.isSet(options["replay"]):
            replay_path = Path(parser.value(options["replay"]))
            count = visualizer.load_replay(replay_path)
            logger.info(f"Replaying {count} records from {replay_path}")

        visualizer.start()
        settings.set_first_run_complete()

        logger.info("Application started successfully")
        exit_code = app.exec()
        visualizer.shutdown()
        return exit_code

    except (ConfigError, ThemeError) as e:
        logger.error(f"Startup failed: {e}")
        show_error_dialog("Configuration Error", "The visualizer could not start.", str(e))
        return 1
    except Exception as e:
        logger.exception("Unhandled exception in main")
        show_error_dialog("Application Error", "An unexpected error occurred.", str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
