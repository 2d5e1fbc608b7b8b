import math
import os
import subprocess
import sys
from pathlib import Path

import pytest

from conftest import run_until

from spectrolab.model.analysis import (
    CalibrationCurve,
    calibration_points,
    fitted_slope,
    format_row,
    slope_visible,
    unknown_concentration,
)
from spectrolab.model.data_table import create_data_table
from spectrolab.model.instructions import GRAPH_ANALYSIS_ID, step_index


@pytest.fixture
def finished_table(simulator):
    run_until(simulator, lambda s: s.is_complete)
    return simulator.state.data_table


def test_unmeasured_table_has_no_points():
    conc, absorbance = calibration_points(create_data_table())
    assert len(conc) == 0 and len(absorbance) == 0
    assert fitted_slope(create_data_table()) is None
    assert unknown_concentration(create_data_table()) is None


def test_fitted_slope_of_standards(finished_table):
    conc, _ = calibration_points(finished_table)
    assert len(conc) == 6
    assert fitted_slope(finished_table) == pytest.approx(0.1315, abs=0.005)


def test_off_scale_unknown_is_infinite():
    table = create_data_table()
    table[-1].neg_log_t = math.inf
    assert math.isinf(unknown_concentration(table))
    assert format_row(table[-1]).conc == "Too High"
    assert format_row(table[-1]).absorbance == ">1.5"


def test_format_unmeasured_rows():
    table = create_data_table()
    stock = format_row(table[0])
    assert stock.conc == "2.310"
    assert stock.percent_t == "--"
    assert stock.absorbance == "--"
    assert format_row(table[-1]).conc == "N/A"


def test_format_measured_unknown(finished_table):
    row = format_row(finished_table[-1])
    assert row.conc == "3.011"
    assert row.percent_t == "39.0"
    assert row.t == "0.390"
    assert row.absorbance == "0.4089"


def test_slope_visibility_threshold():
    index = step_index(GRAPH_ANALYSIS_ID)
    assert index > 0
    assert not slope_visible(index - 1)
    assert slope_visible(index)


def test_calibration_line_spans_stock():
    conc, absorbance = CalibrationCurve(create_data_table()).line(steps=11)
    assert conc[0] == 0.0
    assert conc[-1] == pytest.approx(2.31 * 1.1)
    assert absorbance[-1] == pytest.approx(conc[-1] * 0.1358)


def test_plot_saves_figure(finished_table, tmp_path):
    path = tmp_path / "calibration.png"
    fig = CalibrationCurve(finished_table).plot(filepath=str(path))
    assert path.exists()
    assert fig.axes[0].get_xlabel() == "Concentration (µM)"


def test_saved_figures_are_closed(finished_table, tmp_path):
    import matplotlib.pyplot as plt

    open_before = len(plt.get_fignums())
    for i in range(3):
        CalibrationCurve(finished_table).plot(filepath=str(tmp_path / f"export_{i}.png"))
    assert len(plt.get_fignums()) == open_before


def test_engine_import_does_not_load_pyplot():
    code = (
        "import sys\n"
        "import spectrolab.controller.engine\n"
        "assert 'matplotlib.pyplot' not in sys.modules\n"
    )
    src = str(Path(__file__).resolve().parents[1] / "src")
    env = {**os.environ, "PYTHONPATH": os.pathsep.join(filter(None, [src, os.environ.get("PYTHONPATH")]))}
    result = subprocess.run([sys.executable, "-c", code], env=env, capture_output=True, text=True)
    assert result.returncode == 0, result.stderr
