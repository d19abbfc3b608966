"""History of shifts and mileage entries."""

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (QHBoxLayout, QInputDialog, QLabel, QPushButton,
                               QTableWidget, QTableWidgetItem, QVBoxLayout,
                               QWidget)

from ..controller import CrewClockController
from ..ledger import history_view
from ..models import AppState, MileageEntry, TimeEntry
from ..utils import day_name, format_clock_time, format_hours


class HistoryView(QWidget):
    """Newest-first tables of time and mileage entries."""

    back_requested = Signal()

    def __init__(self, controller: CrewClockController, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.controller = controller
        self._time_entries: list[TimeEntry] = []

        self.back_button = QPushButton("Back")
        self.refresh_button = QPushButton("Refresh")
        self.edit_button = QPushButton("Correct hours")
        self.back_button.clicked.connect(self.back_requested.emit)
        self.refresh_button.clicked.connect(lambda: self.controller.load_history())
        self.edit_button.clicked.connect(self._handle_edit_hours)

        header_layout = QHBoxLayout()
        header_layout.addWidget(self.back_button)
        header_layout.addWidget(QLabel("My History"))
        header_layout.addStretch(1)
        header_layout.addWidget(self.edit_button)
        header_layout.addWidget(self.refresh_button)

        self.time_table = self._make_table(["Day", "Time", "Hours"])
        self.mileage_table = self._make_table(["Description", "Date", "Miles"])

        layout = QVBoxLayout(self)
        layout.addLayout(header_layout)
        layout.addWidget(QLabel("Time Entries"))
        layout.addWidget(self.time_table)
        layout.addWidget(QLabel("Mileage Entries"))
        layout.addWidget(self.mileage_table)

    @staticmethod
    def _make_table(headers: list[str]) -> QTableWidget:
        table = QTableWidget(0, len(headers))
        table.setHorizontalHeaderLabels(headers)
        table.setEditTriggers(QTableWidget.NoEditTriggers)
        table.horizontalHeader().setStretchLastSection(True)
        table.verticalHeader().setVisible(False)
        table.setSelectionBehavior(QTableWidget.SelectRows)
        table.setSelectionMode(QTableWidget.SingleSelection)
        return table

    # ------------------------------------------------------------------
    def render(self, state: AppState) -> None:
        self._time_entries = history_view(state.time_entries)
        self.time_table.setRowCount(len(self._time_entries))
        for row, entry in enumerate(self._time_entries):
            self._populate_time_row(row, entry)

        mileage_entries = history_view(state.mileage_entries)
        self.mileage_table.setRowCount(len(mileage_entries))
        for row, entry in enumerate(mileage_entries):
            self._populate_mileage_row(row, entry)

    def _populate_time_row(self, row: int, entry: TimeEntry) -> None:
        end_text = format_clock_time(entry.clock_out) if entry.clock_out else "In progress"
        hours_text = format_hours(entry.hours_worked) + "h" if entry.hours_worked is not None else "--"
        if entry.edited:
            hours_text += " (edited)"
        self.time_table.setItem(row, 0, self._item(f"{day_name(entry.date)}, {entry.date.isoformat()}"))
        self.time_table.setItem(row, 1, self._item(f"{format_clock_time(entry.clock_in)} - {end_text}"))
        self.time_table.setItem(row, 2, self._item(hours_text))

    def _populate_mileage_row(self, row: int, entry: MileageEntry) -> None:
        self.mileage_table.setItem(row, 0, self._item(entry.description))
        self.mileage_table.setItem(row, 1, self._item(entry.date.isoformat()))
        self.mileage_table.setItem(row, 2, self._item(f"{format_hours(entry.miles)} mi"))

    @staticmethod
    def _item(text: str) -> QTableWidgetItem:
        item = QTableWidgetItem(text)
        item.setFlags(Qt.ItemIsSelectable | Qt.ItemIsEnabled)
        return item

    # ------------------------------------------------------------------
    def _handle_edit_hours(self) -> None:
        row = self.time_table.currentRow()
        if row < 0 or row >= len(self._time_entries):
            return
        entry = self._time_entries[row]
        hours, ok = QInputDialog.getDouble(
            self, "Correct hours", f"Hours for {entry.date.isoformat()}",
            entry.hours_worked or 0.0, 0.0, 24.0, 2,
        )
        if not ok:
            return
        reason, ok = QInputDialog.getText(self, "Correct hours", "Reason for the change")
        if not ok or not reason.strip():
            return
        self.controller.edit_time_entry(entry, "hours_worked", hours, reason.strip())


__all__ = ["HistoryView"]
