"""Mileage entry form."""

from __future__ import annotations

from datetime import date
from typing import Optional

from PySide6.QtCore import Signal
from PySide6.QtWidgets import (QDateEdit, QFormLayout, QHBoxLayout, QLineEdit,
                               QPushButton, QVBoxLayout, QWidget)

from ..controller import CrewClockController
from ..models import AppState


class MileageForm(QWidget):
    """Date, miles and description, sent through the controller."""

    back_requested = Signal()

    def __init__(self, controller: CrewClockController, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.controller = controller
        self._awaiting_result = False
        self._entry_count = 0

        self.date_edit = QDateEdit(self)
        self.date_edit.setCalendarPopup(True)
        self.date_edit.setDate(date.today())
        self.miles_input = QLineEdit()
        self.miles_input.setPlaceholderText("0.0")
        self.description_input = QLineEdit()
        self.description_input.setPlaceholderText("e.g., Plant doctor - Acme Corp")

        self.back_button = QPushButton("Back")
        self.back_button.clicked.connect(self.back_requested.emit)
        self.save_button = QPushButton("Save Mileage")
        self.save_button.setMinimumHeight(48)
        self.save_button.clicked.connect(self._handle_submit)

        form = QFormLayout()
        form.addRow("Date", self.date_edit)
        form.addRow("Miles", self.miles_input)
        form.addRow("Description", self.description_input)

        header = QHBoxLayout()
        header.addWidget(self.back_button)
        header.addStretch(1)

        layout = QVBoxLayout(self)
        layout.addLayout(header)
        layout.addLayout(form)
        layout.addStretch(1)
        layout.addWidget(self.save_button)

    def render(self, state: AppState) -> None:
        self.save_button.setEnabled(not state.mileage_submitting)
        self.save_button.setText("Saving..." if state.mileage_submitting else "Save Mileage")
        if self._awaiting_result and not state.mileage_submitting:
            self._awaiting_result = False
            if len(state.mileage_entries) > self._entry_count:
                self.reset()
                self.back_requested.emit()

    def reset(self) -> None:
        self.date_edit.setDate(date.today())
        self.miles_input.clear()
        self.description_input.clear()

    def _handle_submit(self) -> None:
        self._entry_count = len(self.controller.state.mileage_entries)
        self._awaiting_result = True
        accepted = self.controller.submit_mileage(
            self.date_edit.date().toPython(),
            self.miles_input.text().strip(),
            self.description_input.text(),
        )
        if not accepted:
            self._awaiting_result = False


__all__ = ["MileageForm"]
