"""Home screen: clock status, clock button and the week summary."""

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import Signal
from PySide6.QtGui import QFont
from PySide6.QtWidgets import (QGroupBox, QHBoxLayout, QLabel, QPushButton,
                               QVBoxLayout, QWidget)

from ..controller import CrewClockController
from ..models import AppState
from ..utils import day_name, format_clock_time, format_hours

CLOCK_IN_STYLE = "background-color: #16a34a; color: white; font-weight: bold;"
CLOCK_OUT_STYLE = "background-color: #ef4444; color: white; font-weight: bold;"


class StatusPanel(QWidget):
    """Main screen for the selected technician."""

    mileage_requested = Signal()
    history_requested = Signal()

    def __init__(self, controller: CrewClockController, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.controller = controller
        self._clocked_in = False

        self.greeting_label = QLabel("-")
        font = QFont()
        font.setPointSize(16)
        font.setBold(True)
        self.greeting_label.setFont(font)

        self.pending_label = QLabel()
        self.pending_label.setStyleSheet("color: #b45309;")
        self.since_label = QLabel()
        self.since_label.setStyleSheet("color: #166534;")

        self.clock_button = QPushButton("CLOCK IN")
        self.clock_button.setMinimumHeight(64)
        self.clock_button.clicked.connect(self._handle_clock)

        self.mileage_button = QPushButton("Add Mileage")
        self.mileage_button.setMinimumHeight(44)
        self.mileage_button.clicked.connect(self.mileage_requested.emit)

        self.week_total_label = QLabel("0h")
        self.week_entries_label = QLabel("No entries this week")
        self.history_button = QPushButton("View full history")
        self.history_button.clicked.connect(self.history_requested.emit)

        self.switch_button = QPushButton()
        self.switch_button.setFlat(True)
        self.switch_button.clicked.connect(self.controller.switch_technician)

        layout = QVBoxLayout(self)
        layout.addWidget(self.greeting_label)
        layout.addWidget(self.pending_label)
        layout.addWidget(self.since_label)
        layout.addWidget(self.clock_button)
        layout.addWidget(self.mileage_button)
        layout.addWidget(self._build_week_group())
        layout.addStretch(1)
        layout.addWidget(self.switch_button)

    def _build_week_group(self) -> QGroupBox:
        group = QGroupBox("This Week")
        layout = QVBoxLayout(group)
        header = QHBoxLayout()
        header.addWidget(QLabel("Total"))
        header.addStretch(1)
        header.addWidget(self.week_total_label)
        layout.addLayout(header)
        layout.addWidget(self.week_entries_label)
        layout.addWidget(self.history_button)
        return group

    # ------------------------------------------------------------------
    def render(self, state: AppState) -> None:
        name = state.current_technician or ""
        self.greeting_label.setText(f"Hey {name}")
        self.switch_button.setText(f"Not {name}? Tap to switch")

        pending = state.pending_actions
        self.pending_label.setText(f"{pending} action{'s' if pending > 1 else ''} pending sync")
        self.pending_label.setVisible(pending > 0)

        clock = state.session
        self._clocked_in = clock.is_clocked_in
        if clock.is_clocked_in and clock.clock_in_time is not None:
            self.since_label.setText(
                f"Clocked in since {format_clock_time(clock.clock_in_time)} ({state.elapsed})"
            )
            self.since_label.show()
            self.clock_button.setText("CLOCK OUT")
            self.clock_button.setStyleSheet(CLOCK_OUT_STYLE)
        else:
            self.since_label.hide()
            self.clock_button.setText("CLOCK IN")
            self.clock_button.setStyleSheet(CLOCK_IN_STYLE)
        self.clock_button.setEnabled(not state.clock_button_disabled)

        self.week_total_label.setText(f"{format_hours(self.controller.week_total())}h")
        entries = self.controller.this_week_entries()
        if entries:
            self.week_entries_label.setText("   ".join(
                f"{day_name(entry.date)}: "
                f"{format_hours(entry.hours_worked) if entry.hours_worked is not None else '--'}"
                for entry in entries
            ))
        else:
            self.week_entries_label.setText("No entries this week")

    def _handle_clock(self) -> None:
        if self._clocked_in:
            self.controller.clock_out()
        else:
            self.controller.clock_in()


__all__ = ["StatusPanel"]
