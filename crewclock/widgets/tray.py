"""System tray integration."""

from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QIcon, QPixmap
from PySide6.QtWidgets import QApplication, QMenu, QSystemTrayIcon

from ..controller import CrewClockController
from ..models import AppState


def _load_icon() -> QIcon:
    icon = QIcon.fromTheme("clock")
    if not icon.isNull():
        return icon
    pixmap = QPixmap(32, 32)
    pixmap.fill(Qt.darkGreen)
    return QIcon(pixmap)


def create_tray_icon(app: QApplication, *, window, controller: CrewClockController) -> QSystemTrayIcon:
    """Tray icon whose menu mirrors the clock button."""

    tray_icon = QSystemTrayIcon(_load_icon(), parent=window)
    tray_icon.setToolTip("CrewClock")

    menu = QMenu()
    clock_in_action = QAction("Clock in", menu)
    clock_out_action = QAction("Clock out", menu)
    open_action = QAction("Open window", menu)
    quit_action = QAction("Quit", menu)

    clock_in_action.triggered.connect(controller.clock_in)
    clock_out_action.triggered.connect(controller.clock_out)
    open_action.triggered.connect(window.show)
    quit_action.triggered.connect(app.quit)

    def render(state: AppState) -> None:
        selected = state.current_technician is not None
        enabled = selected and not state.clock_button_disabled
        clock_in_action.setEnabled(enabled and not state.session.is_clocked_in)
        clock_out_action.setEnabled(enabled and state.session.is_clocked_in)
        tooltip = "CrewClock"
        if state.session.is_clocked_in and state.elapsed:
            tooltip = f"CrewClock - {state.current_technician} clocked in ({state.elapsed})"
        tray_icon.setToolTip(tooltip)

    menu.addAction(clock_in_action)
    menu.addAction(clock_out_action)
    menu.addSeparator()
    menu.addAction(open_action)
    menu.addAction(quit_action)

    tray_icon.setContextMenu(menu)
    controller.subscribe(render)
    return tray_icon


__all__ = ["create_tray_icon"]
