from spectrolab.model.history import HistoryManager
from spectrolab.model.labware import Pipette
from spectrolab.model.state import LabState


def test_restore_brings_back_previous_values():
    state = LabState()
    history = HistoryManager()
    history.save(state)

    state.current_step = 5
    state.require("pipette", Pipette).current_volume = 7
    state.data_row("tube_10_0").measured_percent_t = 49.0

    history.pop().restore_into(state)
    assert state.current_step == 0
    assert state.require("pipette", Pipette).current_volume == 0
    assert state.data_row("tube_10_0").measured_percent_t is None


def test_snapshot_does_not_alias_live_state():
    state = LabState()
    history = HistoryManager()
    history.save(state)
    state.require("pipette", Pipette).current_volume = 3

    snapshot = history.pop()
    assert snapshot.lab_objects["pipette"].current_volume == 0

    snapshot.restore_into(state)
    state.require("pipette", Pipette).current_volume = 5
    assert snapshot.lab_objects["pipette"].current_volume == 0


def test_oldest_snapshot_is_dropped_at_limit():
    state = LabState()
    history = HistoryManager(limit=3)
    for step in range(5):
        state.current_step = step
        history.save(state)

    assert len(history) == 3
    steps = [history.pop().current_step for _ in range(3)]
    assert steps == [4, 3, 2]
    assert history.pop() is None
    assert not history.can_undo


def test_clear():
    history = HistoryManager()
    history.save(LabState())
    history.clear()
    assert len(history) == 0
