import math

import pytest

from conftest import perform_step, run_until, total_liquid

from spectrolab.model.instructions import GRAPH_ANALYSIS_ID, PIPETTE, step_index
from spectrolab.model.labware import Bottle, Cuvette, Pipette, TestTube


def test_first_dilution(simulator):
    feedback = simulator.fill_pipette(PIPETTE, "stockBottle")
    assert feedback.ok
    pipette = simulator.state.require(PIPETTE, Pipette)
    assert pipette.current_volume == pytest.approx(10)
    assert pipette.contents_concentration == pytest.approx(2.31)
    assert simulator.state.require("stockBottle", Bottle).current_volume == pytest.approx(990)

    feedback = simulator.dispense_pipette(PIPETTE, "tube_10_0")
    assert feedback.message == "Dispensed 10.0mL into 10/0."
    tube = simulator.state.require("tube_10_0", TestTube)
    assert tube.current_volume == pytest.approx(10)
    assert tube.concentration == pytest.approx(2.31)
    assert pipette.current_volume == 0
    assert pipette.contents_concentration == 0
    assert simulator.current_step == 2


def test_dilution_series_concentrations(simulator):
    run_until(simulator, lambda s: s.current_instruction.source == "tube_0_10")

    expected = {
        "tube_10_0": 2.31,
        "tube_8_2": 1.848,
        "tube_6_4": 1.386,
        "tube_4_6": 0.924,
        "tube_2_8": 0.462,
        "tube_0_10": 0.0,
    }
    for tube_id, conc in expected.items():
        tube = simulator.state.require(tube_id, TestTube)
        assert tube.current_volume == pytest.approx(10)
        assert tube.concentration == pytest.approx(conc)


def test_full_run_reaches_completion(simulator):
    start = total_liquid(simulator)

    run_until(simulator, lambda s: s.is_complete)

    view = simulator.view()
    assert view.is_complete
    assert view.instruction_label == "Experiment Complete! Analysis finished."
    assert view.slope_visible
    assert view.unknown_concentration == pytest.approx(3.011, abs=1e-3)
    assert total_liquid(simulator) == pytest.approx(start)

    for row in simulator.state.data_table:
        assert row.is_measured
        assert math.isfinite(row.neg_log_t)

    unknown = simulator.state.data_row("unknown")
    assert unknown.measured_percent_t == pytest.approx(39.0)
    assert unknown.neg_log_t == pytest.approx(0.4089)
    assert simulator.state.data_row("tube_0_10").neg_log_t == pytest.approx(0.0)


def test_slope_is_revealed_at_graph_analysis(simulator):
    graph_step = step_index(GRAPH_ANALYSIS_ID)
    run_until(simulator, lambda s: s.current_step >= graph_step - 1)
    assert not simulator.view().slope_visible

    # The blank check measure auto-advances over the info step
    perform_step(simulator)
    assert simulator.current_step == graph_step + 1
    assert simulator.view().slope_visible


def test_cuvette_ends_inserted_with_unknown(simulator):
    run_until(simulator, lambda s: s.is_complete)
    cuvette = simulator.state.require("cuvette", Cuvette)
    assert cuvette.is_in_spec
    assert cuvette.concentration == -1
    assert simulator.state.instrument.reading == "39.0 %T"
