"""Read-only table of the measurements."""
from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtGui import QBrush
from PySide6.QtWidgets import QAbstractItemView, QHeaderView, QTableWidget, QTableWidgetItem, QWidget

from spectrolab.config import KNOWN_SLOPE
from spectrolab.controller.view_state import ViewState
from spectrolab.model.analysis import MISSING, format_row

HEADERS = ["Solution", "Dilution (stock/H₂O)", "Conc. (µM)", "%T", "T", "Abs (-log T)"]


class DataTableWidget(QTableWidget):
    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(0, len(HEADERS), parent)
        self.setHorizontalHeaderLabels(HEADERS)
        self.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self.setSelectionMode(QAbstractItemView.NoSelection)
        self.verticalHeader().setVisible(False)
        self.horizontalHeader().setSectionResizeMode(QHeaderView.Stretch)

    def update_view(self, view: ViewState) -> None:
        self.setRowCount(len(view.data_table))
        for r, row in enumerate(view.data_table):
            cells = format_row(row, KNOWN_SLOPE)
            values = [cells.solution, cells.dilution, cells.conc, cells.percent_t, cells.t, cells.absorbance]
            for c, value in enumerate(values):
                item = QTableWidgetItem(value)
                item.setTextAlignment(Qt.AlignCenter)
                if value == MISSING:
                    item.setForeground(QBrush(Qt.gray))
                self.setItem(r, c, item)
