"""Main window switching between the picker, home, mileage and history screens."""

from __future__ import annotations

from typing import Optional

from PySide6.QtWidgets import QLabel, QMainWindow, QStackedWidget, QVBoxLayout, QWidget

from ..controller import CrewClockController
from ..models import AppState
from .history import HistoryView
from .mileage import MileageForm
from .picker import TechnicianPicker
from .status import StatusPanel

CONFIRMATION_STYLE = "background-color: #16a34a; color: white; padding: 6px; border-radius: 12px;"
ERROR_STYLE = "background-color: #dc2626; color: white; padding: 6px; border-radius: 12px;"


class CrewClockWindow(QMainWindow):
    """Renders every ``AppState`` the controller publishes."""

    def __init__(self, controller: CrewClockController, *, title: str = "CrewClock",
                 parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.controller = controller
        self.setWindowTitle(title)
        self.resize(420, 720)

        self.confirmation_label = QLabel()
        self.confirmation_label.setStyleSheet(CONFIRMATION_STYLE)
        self.error_label = QLabel()
        self.error_label.setStyleSheet(ERROR_STYLE)

        self.picker = TechnicianPicker()
        self.status_panel = StatusPanel(controller)
        self.mileage_form = MileageForm(controller)
        self.history_view = HistoryView(controller)

        self.picker.technician_selected.connect(controller.select_technician)
        self.status_panel.mileage_requested.connect(lambda: self.stack.setCurrentWidget(self.mileage_form))
        self.status_panel.history_requested.connect(lambda: self.stack.setCurrentWidget(self.history_view))
        self.mileage_form.back_requested.connect(self.show_home)
        self.history_view.back_requested.connect(self.show_home)

        self.stack = QStackedWidget()
        for screen in (self.picker, self.status_panel, self.mileage_form, self.history_view):
            self.stack.addWidget(screen)

        central_widget = QWidget()
        layout = QVBoxLayout(central_widget)
        layout.addWidget(self.confirmation_label)
        layout.addWidget(self.error_label)
        layout.addWidget(self.stack)
        self.setCentralWidget(central_widget)

        controller.subscribe(self.render)

    def show_home(self) -> None:
        self.stack.setCurrentWidget(self.status_panel)

    def render(self, state: AppState) -> None:
        self.confirmation_label.setText(state.confirmation or "")
        self.confirmation_label.setVisible(state.confirmation is not None)
        self.error_label.setText(state.error or "")
        self.error_label.setVisible(state.error is not None)

        self.picker.set_technicians(state.technicians)
        if state.current_technician is None:
            self.stack.setCurrentWidget(self.picker)
            return
        if self.stack.currentWidget() is self.picker:
            self.show_home()
        self.status_panel.render(state)
        self.mileage_form.render(state)
        self.history_view.render(state)


__all__ = ["CrewClockWindow"]
