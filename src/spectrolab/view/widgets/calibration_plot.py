"""Live Beer's law plot of the measured standards."""
from __future__ import annotations

import logging
import math

import pyqtgraph as pg
from pyqtgraph.exporters import ImageExporter
from PySide6.QtWidgets import QFileDialog, QVBoxLayout, QWidget

from spectrolab.config import KNOWN_SLOPE
from spectrolab.controller.view_state import ViewState
from spectrolab.model.analysis import CalibrationCurve, calibration_points

logger = logging.getLogger(__name__)


class CalibrationPlotWidget(QWidget):
    STANDARD_COLOR = '#1f77b4'
    UNKNOWN_COLOR = '#9467bd'

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self.plot_widget = pg.PlotWidget()
        self.plot_widget.setBackground('w')
        self.plot_widget.showGrid(x=True, y=True, alpha=0.3)
        self.plot_widget.setLabel('bottom', 'Concentration [µM]', color='black')
        self.plot_widget.setLabel('left', 'Absorbance', color='black')
        self.plot_widget.setTitle(CalibrationCurve.NAME, color='black', size='12pt')
        for axis in ('bottom', 'left'):
            self.plot_widget.getAxis(axis).setPen('k')
            self.plot_widget.getAxis(axis).setTextPen('k')
        self.plot_widget.addLegend(offset=(10, 10))

        layout.addWidget(self.plot_widget)

    def update_view(self, view: ViewState) -> None:
        """Redraw from a fresh snapshot."""
        table = list(view.data_table)
        curve = CalibrationCurve(table, KNOWN_SLOPE)
        conc, absorbance = calibration_points(table)

        self.plot_widget.clear()
        self.plot_widget.addLegend(offset=(10, 10))

        self.plot_widget.plot(
            conc, absorbance,
            pen=None,
            name="Standards",
            symbol='o',
            symbolSize=8,
            symbolBrush=self.STANDARD_COLOR,
            symbolPen=None,
        )

        # The known line is only revealed once the analysis step is reached
        if view.slope_visible:
            line_conc, line_abs = curve.line()
            self.plot_widget.plot(
                line_conc, line_abs,
                pen=pg.mkPen(color='gray', width=1, style=pg.QtCore.Qt.DashLine),
                name=f"Slope = {KNOWN_SLOPE} Abs/µM",
            )

        unknown = view.unknown_concentration
        if unknown is not None and math.isfinite(unknown):
            self.plot_widget.plot(
                [unknown], [unknown * KNOWN_SLOPE],
                pen=None,
                name="Unknown",
                symbol='s',
                symbolSize=9,
                symbolBrush=self.UNKNOWN_COLOR,
                symbolPen=None,
            )

        self.plot_widget.autoRange()

    def export_image(self) -> None:
        file_path, _ = QFileDialog.getSaveFileName(
            self, "Save plot as image", "calibration_plot.png", "PNG image (*.png);;JPEG image (*.jpg)"
        )
        if not file_path:
            return

        exporter = ImageExporter(self.plot_widget.plotItem)
        exporter.parameters()['width'] = 1920
        exporter.export(file_path)
        logger.info(f"Plot exported to {file_path}")
