"""
Pytest configuration for spectrolab tests.
"""
import matplotlib

# Headless plotting; must happen before pyplot is imported anywhere
matplotlib.use("Agg")

import pytest

from spectrolab.controller.engine import Simulator
from spectrolab.model.instructions import ActionKind
from spectrolab.model.labware import Cuvette, LiquidContainer


# ==============================================================================
# Fixtures
# ==============================================================================

@pytest.fixture
def simulator():
    """Fresh simulator at the first instruction step."""
    return Simulator()


@pytest.fixture(scope="session")
def qapp():
    """Qt core application for signal tests (no widgets are created)."""
    from PySide6.QtCore import QCoreApplication
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    return app


# ==============================================================================
# Helpers
# ==============================================================================

def perform_step(sim: Simulator):
    """Do exactly what the current instruction asks, like a careful student."""
    step = sim.current_instruction
    match step.action:
        case ActionKind.FILL_PIPETTE:
            return sim.fill_pipette(step.pipette, step.source)
        case ActionKind.DISPENSE_PIPETTE:
            return sim.dispense_pipette(step.pipette, step.destination)
        case ActionKind.INSERT_CUVETTE:
            return sim.insert_cuvette(step.cuvette, step.destination)
        case ActionKind.EMPTY_CUVETTE:
            cuvette = sim.state.require(step.cuvette, Cuvette)
            if cuvette.is_in_spec:
                sim.remove_cuvette(step.cuvette)
            return sim.empty_cuvette(step.cuvette, step.destination)
        case ActionKind.ZERO_SPEC:
            return sim.zero_spec()
        case ActionKind.MEASURE:
            return sim.measure()
        case _:
            raise AssertionError(f"Unexpected step {step.action} at {sim.current_step}")


def run_until(sim: Simulator, predicate, max_steps: int = 500) -> None:
    """Perform steps until ``predicate(sim)`` holds."""
    for _ in range(max_steps):
        if predicate(sim):
            return
        feedback = perform_step(sim)
        assert feedback.ok, f"Step {sim.current_step} failed: {feedback.message}"
    raise AssertionError("Scripted run did not reach the expected state")


def run_to_action(sim: Simulator, action: ActionKind, occurrence: int = 1) -> None:
    """Advance until the cursor sits on the n-th step of ``action``."""
    seen = 0

    def reached(s: Simulator) -> bool:
        nonlocal seen
        if s.current_instruction.action == action:
            seen += 1
            if seen == occurrence:
                return True
        return False

    run_until(sim, reached)


def total_liquid(sim: Simulator) -> float:
    return sum(obj.current_volume for obj in sim.state.objects_of(LiquidContainer))
