"""Technician selection screen."""

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QFont
from PySide6.QtWidgets import QLabel, QPushButton, QVBoxLayout, QWidget

from ..models import Technician


class TechnicianPicker(QWidget):
    """One large button per technician on the roster."""

    technician_selected = Signal(str)

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._names: tuple[str, ...] = ()

        title = QLabel("Who are you?")
        font = QFont()
        font.setPointSize(16)
        title.setFont(font)
        title.setAlignment(Qt.AlignCenter)

        self.loading_label = QLabel("Loading technicians...")
        self.loading_label.setAlignment(Qt.AlignCenter)

        self.button_layout = QVBoxLayout()

        layout = QVBoxLayout(self)
        layout.addStretch(1)
        layout.addWidget(title)
        layout.addWidget(self.loading_label)
        layout.addLayout(self.button_layout)
        layout.addStretch(1)

    def set_technicians(self, technicians: tuple[Technician, ...]) -> None:
        names = tuple(tech.name for tech in technicians)
        if names == self._names:
            return
        self._names = names
        while self.button_layout.count():
            item = self.button_layout.takeAt(0)
            if item.widget() is not None:
                item.widget().deleteLater()
        for name in names:
            button = QPushButton(name)
            button.setMinimumHeight(48)
            button.clicked.connect(lambda _checked=False, selected=name: self.technician_selected.emit(selected))
            self.button_layout.addWidget(button)
        self.loading_label.setVisible(not names)


__all__ = ["TechnicianPicker"]
