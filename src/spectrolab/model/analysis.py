"""
Calibration Analysis
====================
Turns the data table into a Beer-Lambert calibration: the standards'
absorbance against concentration, the slope of that line, and the
concentration of the unknown read off the known slope.
"""
from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Optional, TYPE_CHECKING

import numpy as np

from spectrolab.config import KNOWN_SLOPE, MAX_ABS, STOCK_CONCENTRATION, DISPLAY_ABS_CEILING
from spectrolab.model.data_table import DataRow, UNKNOWN_ROW_ID
from spectrolab.model.instructions import GRAPH_ANALYSIS_ID, INSTRUCTIONS, InstructionStep, step_index

if TYPE_CHECKING:
    import numpy.typing as npt
    from matplotlib.figure import Figure

MISSING = "--"


def calibration_points(table: list[DataRow]) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """(concentration, absorbance) of every standard with a finite reading."""
    rows = [
        row for row in table
        if not row.is_unknown and row.conc is not None
        and row.neg_log_t is not None and math.isfinite(row.neg_log_t)
    ]
    conc = np.array([row.conc for row in rows], dtype=np.float64)
    absorbance = np.array([row.neg_log_t for row in rows], dtype=np.float64)
    return conc, absorbance


def fitted_slope(table: list[DataRow]) -> Optional[float]:
    """Least-squares slope of Abs vs. concentration, forced through the origin."""
    conc, absorbance = calibration_points(table)
    denominator = float(np.dot(conc, conc))
    if denominator == 0.0:
        return None
    return float(np.dot(conc, absorbance)) / denominator


def unknown_concentration(table: list[DataRow], slope: float = KNOWN_SLOPE) -> Optional[float]:
    """
    Concentration of the unknown from its measured absorbance.

    Returns:
        µM value, ``math.inf`` if the reading was off-scale, or None while the
        unknown has not been measured (or the slope is unusable).
    """
    row = next((r for r in table if r.id == UNKNOWN_ROW_ID), None)
    if row is None or row.neg_log_t is None or slope <= 0:
        return None
    if not math.isfinite(row.neg_log_t):
        return math.inf
    return row.neg_log_t / slope


def slope_visible(current_step: int, script: tuple[InstructionStep, ...] = INSTRUCTIONS) -> bool:
    """The slope is revealed once the student reaches the graph analysis step."""
    index = step_index(GRAPH_ANALYSIS_ID, script)
    return index > -1 and current_step >= index


@dataclass(frozen=True)
class FormattedRow:
    solution: str
    dilution: str
    conc: str
    percent_t: str
    t: str
    absorbance: str


def format_row(row: DataRow, slope: float = KNOWN_SLOPE) -> FormattedRow:
    """Display strings for one table row."""
    off_scale = f">{MAX_ABS:.1f}"

    if row.is_unknown:
        if row.neg_log_t is not None and math.isfinite(row.neg_log_t) and slope > 0:
            conc = f"{row.neg_log_t / slope:.3f}"
            absorbance = f"{row.neg_log_t:.4f}"
        elif row.neg_log_t is not None and math.isinf(row.neg_log_t):
            conc = "Too High"
            absorbance = off_scale
        else:
            conc = "N/A"
            absorbance = MISSING
    else:
        conc = f"{row.conc:.3f}" if row.conc is not None else MISSING
        if row.neg_log_t is None:
            absorbance = MISSING
        elif math.isinf(row.neg_log_t) or row.neg_log_t > DISPLAY_ABS_CEILING:
            absorbance = off_scale
        else:
            absorbance = f"{row.neg_log_t:.4f}"

    return FormattedRow(
        solution=row.solution,
        dilution=row.dilution,
        conc=conc,
        percent_t=f"{row.measured_percent_t:.1f}" if row.measured_percent_t is not None else MISSING,
        t=f"{row.t:.3f}" if row.t is not None else MISSING,
        absorbance=absorbance,
    )


class CalibrationCurve:
    """
    Standards plotted as Abs vs. concentration with the known calibration line.
    """
    NAME: str = "Blue #1 Calibration"

    def __init__(self, table: list[DataRow], slope: float = KNOWN_SLOPE) -> None:
        self.table = table
        self.slope = slope

    def line(self, steps: int = 50) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
        """Points on the calibration line across the concentration range."""
        conc_max = max(STOCK_CONCENTRATION, self._unknown_conc() or 0.0) * 1.1
        conc = np.linspace(0.0, conc_max, steps)
        return conc, self.slope * conc

    def _unknown_conc(self) -> Optional[float]:
        value = unknown_concentration(self.table, self.slope)
        if value is None or math.isinf(value):
            return None
        return value

    def plot(self, filepath: Optional[str] = None, show: bool = False) -> Figure:
        """
        Plot the calibration curve.

        Args:
            filepath: Save the figure here when given.
            show: Open an interactive window.

        A saved figure that is not shown is closed again, so repeated exports
        do not pile up in pyplot.
        """
        import matplotlib.pyplot as plt

        conc, absorbance = calibration_points(self.table)
        line_conc, line_abs = self.line()

        fig, ax = plt.subplots(figsize=(7, 5), constrained_layout=True)

        ax.plot(line_conc, line_abs, '--', color='gray', lw=1, label=f"Slope = {self.slope} Abs/µM")
        ax.plot(conc, absorbance, 'o', color='#1f77b4', label="Standards")

        unknown = self._unknown_conc()
        if unknown is not None:
            ax.plot([unknown], [unknown * self.slope], 's', color='#9467bd', label="Unknown")

        ax.grid(visible=True, which='major', axis='both', linestyle='-', color='gray', lw=0.5)
        ax.minorticks_on()
        ax.grid(visible=True, which='minor', axis='both', linestyle=':', color='gray', lw=0.5)

        ax.set_title(self.NAME)
        ax.set_xlabel("Concentration (µM)")
        ax.set_ylabel("Absorbance")
        ax.set_xlim(left=0)
        ax.set_ylim(bottom=0)
        ax.legend()

        if filepath:
            fig.savefig(filepath)
        if show:
            plt.show()
        elif filepath:
            plt.close(fig)
        return fig
