"""
Main Application Window
=======================
The primary GUI container: the bench, the instrument controls, the data
table and the calibration plot.

Why is this file needed?
------------------------
1. Layout: It organizes the high-level visual structure of the application.
2. Routing: It connects buttons and menu actions to the store's slots and
   redraws everything from the ViewState the store emits.
"""
import logging

from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QSplitter, QGroupBox,
    QLabel, QPushButton, QComboBox, QListWidget, QListWidgetItem, QFileDialog,
    QFormLayout
)
from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QBrush, QColor

from spectrolab.app.store import SimulationStore
from spectrolab.config import KNOWN_SLOPE, VISIBLE_APP_NAME
from spectrolab.controller.view_state import ViewState
from spectrolab.model.analysis import CalibrationCurve
from spectrolab.model.errors import Severity
from spectrolab.model.instructions import CUVETTE, PIPETTE, SPEC, WASTE
from spectrolab.model.labware import Cuvette, LabObject, Pipette, Vessel
from spectrolab.view.widgets.calibration_plot import CalibrationPlotWidget
from spectrolab.view.widgets.data_table import DataTableWidget

logger = logging.getLogger(__name__)

FEEDBACK_COLORS = {
    Severity.SUCCESS: "#2ca02c",
    Severity.ERROR: "#d62728",
    Severity.INFO: "#1f77b4",
}
HIGHLIGHT_COLOR = QColor("#fff3b0")


def describe(obj: LabObject) -> str:
    """One line of bench text for an object."""
    if isinstance(obj, Pipette):
        return f"{obj.label}: {obj.current_volume:.1f} / {obj.max_volume:g} mL @ {obj.contents_concentration:.3f} µM"
    if isinstance(obj, Vessel):
        if obj.concentration is None:
            conc = "--"
        elif obj.concentration < 0:
            conc = "unknown"
        else:
            conc = f"{obj.concentration:.3f} µM"
        text = f"{obj.label}: {obj.current_volume:.1f} / {obj.max_volume:g} mL, {conc}"
        if isinstance(obj, Cuvette):
            text += ", clean" if obj.is_clean else ", dirty"
            if obj.is_in_spec:
                text += ", in Spec 20"
        return text
    return obj.label


class MainWindow(QMainWindow):
    def __init__(self, store: SimulationStore) -> None:
        super().__init__()
        self.store = store

        self.setWindowTitle(VISIBLE_APP_NAME)
        self.resize(1400, 900)

        # --- MAIN CONTAINER ---
        main_widget = QWidget()
        self.setCentralWidget(main_widget)
        main_layout = QVBoxLayout(main_widget)

        # --- 1. INSTRUCTION + FEEDBACK ---
        self.instruction_label = QLabel()
        self.instruction_label.setWordWrap(True)
        self.instruction_label.setStyleSheet("font-size: 15px; font-weight: bold;")
        main_layout.addWidget(self.instruction_label)

        self.feedback_label = QLabel()
        self.feedback_label.setWordWrap(True)
        main_layout.addWidget(self.feedback_label)

        # --- 2. SPLITTER (CONTENT AREA) ---
        splitter = QSplitter(Qt.Horizontal)
        main_layout.addWidget(splitter)

        splitter.addWidget(self._build_bench_panel())

        right_panel = QWidget()
        right_layout = QVBoxLayout(right_panel)
        self.table = DataTableWidget()
        right_layout.addWidget(self.table)
        self.plot = CalibrationPlotWidget()
        right_layout.addWidget(self.plot)
        self.slope_label = QLabel()
        right_layout.addWidget(self.slope_label)
        splitter.addWidget(right_panel)

        splitter.setSizes([500, 900])

        # --- ACTIONS & MENUS ---
        self._create_actions()
        self._create_menus()

        # --- SIGNAL CONNECTIONS ---
        self.store.state_changed.connect(self.on_state_changed)
        self.store.feedback_changed.connect(self.on_feedback_changed)

        # Initial Render
        self.store.refresh()

    def _build_bench_panel(self) -> QWidget:
        panel = QWidget()
        layout = QVBoxLayout(panel)

        # Bench contents
        bench_group = QGroupBox("Bench")
        bench_layout = QVBoxLayout(bench_group)
        self.bench_list = QListWidget()
        bench_layout.addWidget(self.bench_list)
        layout.addWidget(bench_group)

        # Pipette
        pipette_group = QGroupBox("Pipette")
        pipette_layout = QFormLayout(pipette_group)

        self.source_combo = QComboBox()
        fill_btn = QPushButton("Fill")
        fill_btn.clicked.connect(self.on_fill_clicked)
        row = QHBoxLayout()
        row.addWidget(self.source_combo, 1)
        row.addWidget(fill_btn)
        pipette_layout.addRow("From:", row)

        self.dest_combo = QComboBox()
        dispense_btn = QPushButton("Dispense")
        dispense_btn.clicked.connect(self.on_dispense_clicked)
        row = QHBoxLayout()
        row.addWidget(self.dest_combo, 1)
        row.addWidget(dispense_btn)
        pipette_layout.addRow("Into:", row)
        layout.addWidget(pipette_group)

        # Cuvette
        cuvette_group = QGroupBox("Cuvette")
        cuvette_layout = QHBoxLayout(cuvette_group)
        for text, slot in (
            ("Insert", lambda: self.store.insert_cuvette(CUVETTE, SPEC)),
            ("Remove", lambda: self.store.remove_cuvette(CUVETTE)),
            ("Empty to Waste", lambda: self.store.empty_cuvette(CUVETTE, WASTE)),
        ):
            btn = QPushButton(text)
            btn.clicked.connect(slot)
            cuvette_layout.addWidget(btn)
        layout.addWidget(cuvette_group)

        # Spectrophotometer
        spec_group = QGroupBox("Spec 20")
        spec_layout = QVBoxLayout(spec_group)
        self.reading_label = QLabel()
        self.reading_label.setAlignment(Qt.AlignCenter)
        self.reading_label.setStyleSheet(
            "font-family: monospace; font-size: 22px; background: #111; color: #7CFC00; padding: 6px;"
        )
        spec_layout.addWidget(self.reading_label)
        self.wavelength_label = QLabel()
        self.wavelength_label.setAlignment(Qt.AlignCenter)
        spec_layout.addWidget(self.wavelength_label)

        buttons = QHBoxLayout()
        for text, slot in (
            ("Zero", self.store.zero_spec),
            ("Measure", self.store.measure),
            ("%T / Abs", self.store.toggle_mode),
        ):
            btn = QPushButton(text)
            btn.clicked.connect(slot)
            buttons.addWidget(btn)
        spec_layout.addLayout(buttons)
        layout.addWidget(spec_group)

        # Session
        session = QHBoxLayout()
        self.undo_btn = QPushButton("Undo")
        self.undo_btn.clicked.connect(self.store.undo)
        session.addWidget(self.undo_btn)
        restart_btn = QPushButton("Restart")
        restart_btn.clicked.connect(self.store.restart)
        session.addWidget(restart_btn)
        layout.addLayout(session)

        layout.addStretch()
        return panel

    def _create_actions(self) -> None:
        self.act_undo = QAction("Undo", self)
        self.act_undo.setShortcut("Ctrl+Z")
        self.act_undo.triggered.connect(self.store.undo)

        self.act_restart = QAction("Restart", self)
        self.act_restart.triggered.connect(self.store.restart)

        self.act_export_plot = QAction("Export Plot Image...", self)
        self.act_export_plot.triggered.connect(self.plot.export_image)

        self.act_export_figure = QAction("Export Calibration Figure...", self)
        self.act_export_figure.triggered.connect(self.on_export_figure)

        self.act_exit = QAction("Exit", self)
        self.act_exit.triggered.connect(self.close)

    def _create_menus(self) -> None:
        menu_bar = self.menuBar()

        file_menu = menu_bar.addMenu("&File")
        file_menu.addAction(self.act_export_plot)
        file_menu.addAction(self.act_export_figure)
        file_menu.addSeparator()
        file_menu.addAction(self.act_exit)

        lab_menu = menu_bar.addMenu("&Lab")
        lab_menu.addAction(self.act_undo)
        lab_menu.addAction(self.act_restart)

    # --- SLOTS ---
    def on_fill_clicked(self) -> None:
        source_id = self.source_combo.currentData()
        if source_id:
            self.store.fill_pipette(PIPETTE, source_id)

    def on_dispense_clicked(self) -> None:
        dest_id = self.dest_combo.currentData()
        if dest_id:
            self.store.dispense_pipette(PIPETTE, dest_id)

    def on_export_figure(self) -> None:
        file_path, _ = QFileDialog.getSaveFileName(
            self, "Save calibration figure", "calibration.png", "PNG image (*.png);;PDF (*.pdf)"
        )
        if not file_path:
            return
        table = list(self.store.view().data_table)
        CalibrationCurve(table, KNOWN_SLOPE).plot(filepath=file_path)
        logger.info(f"Calibration figure saved to {file_path}")

    def on_feedback_changed(self, message: str, severity: str) -> None:
        color = FEEDBACK_COLORS.get(Severity(severity), "black")
        self.feedback_label.setText(message)
        self.feedback_label.setStyleSheet(f"color: {color};")

    def on_state_changed(self, view: ViewState) -> None:
        self.instruction_label.setText(view.instruction_label)
        if view.step_hint and not view.is_complete:
            self.instruction_label.setToolTip(view.step_hint)

        self.reading_label.setText(view.reading)
        self.wavelength_label.setText(f"λ = {view.wavelength} nm")
        self.undo_btn.setEnabled(view.can_undo)
        self.act_undo.setEnabled(view.can_undo)

        self._update_bench(view)
        self._update_combos(view)
        self.table.update_view(view)
        self.plot.update_view(view)

        if view.slope_visible:
            self.slope_label.setText(f"Known slope: {KNOWN_SLOPE} Abs/µM")
        else:
            self.slope_label.setText("")

    def _update_bench(self, view: ViewState) -> None:
        self.bench_list.clear()
        for obj in view.lab_objects:
            item = QListWidgetItem(describe(obj))
            if obj.id in view.highlights:
                item.setBackground(QBrush(HIGHLIGHT_COLOR))
            self.bench_list.addItem(item)

    def _update_combos(self, view: ViewState) -> None:
        """Refill the combos, keeping the current choice where it still exists."""
        vessels = [obj for obj in view.lab_objects if isinstance(obj, Vessel)]
        for combo, candidates in (
            (self.source_combo, [v for v in vessels if v.concentration is not None and not isinstance(v, Cuvette)]),
            (self.dest_combo, vessels),
        ):
            selected = combo.currentData()
            combo.blockSignals(True)
            combo.clear()
            for obj in candidates:
                combo.addItem(obj.label, obj.id)
            index = combo.findData(selected)
            if index >= 0:
                combo.setCurrentIndex(index)
            combo.blockSignals(False)
