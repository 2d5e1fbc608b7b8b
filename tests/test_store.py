from spectrolab.app.store import SimulationStore
from spectrolab.controller.view_state import ViewState
from spectrolab.model.instructions import PIPETTE


def test_store_emits_state_and_feedback(qapp):
    store = SimulationStore()
    states, feedback = [], []
    store.state_changed.connect(states.append)
    store.feedback_changed.connect(lambda message, severity: feedback.append((message, severity)))

    store.fill_pipette(PIPETTE, "stockBottle")

    assert len(states) == 1
    assert isinstance(states[0], ViewState)
    assert states[0].step_index == 1
    assert states[0].can_undo
    assert feedback == [("Pipette filled with 10mL from Stock Blue#1.", "success")]


def test_store_reports_rejections(qapp):
    store = SimulationStore()
    feedback = []
    store.feedback_changed.connect(lambda message, severity: feedback.append(severity))

    store.measure()
    store.toggle_mode()

    assert feedback == ["error", "info"]
    assert store.view().absorbance_mode


def test_refresh_emits_current_state(qapp):
    store = SimulationStore()
    states = []
    store.state_changed.connect(states.append)
    store.refresh()
    assert states[0].instruction_label.startswith("Step 1 / ")
    assert states[0].feedback.message == "Welcome! Follow the instructions."
