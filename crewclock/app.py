"""Entry point for the desktop client."""

from __future__ import annotations

import logging
import sys

from PySide6.QtWidgets import QApplication, QSystemTrayIcon

from .api_client import ApiClient
from .config import load_config
from .controller import CrewClockController
from .logging_utils import setup_logger
from .storage import LocalStore
from .widgets.runtime import QtScheduler, QtTaskRunner
from .widgets.tray import create_tray_icon
from .widgets.window import CrewClockWindow

logger = logging.getLogger(__name__)


def main() -> None:
    """Start the Qt application."""

    config = load_config()
    setup_logger(level=config.log_level, log_file=config.log_file)

    app = QApplication(sys.argv)
    app.setApplicationName("CrewClock")
    app.setOrganizationName("CrewClock")

    api_client = ApiClient(config.webhooks, timeout=config.request_timeout)
    store = LocalStore.at_path(config.state_db_path)
    scheduler = QtScheduler(app)
    controller = CrewClockController(api_client, store, scheduler, QtTaskRunner(), config)

    window = CrewClockWindow(controller)
    if QSystemTrayIcon.isSystemTrayAvailable():
        create_tray_icon(app, window=window, controller=controller).show()
    window.show()

    logger.info("Using state database %s", config.state_db_path)
    controller.start()

    sys.exit(app.exec())


__all__ = ["main"]
