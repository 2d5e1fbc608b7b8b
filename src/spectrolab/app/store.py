from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import QObject, Signal, Slot

from spectrolab.controller.engine import Simulator
from spectrolab.controller.view_state import Feedback, ViewState

logger = logging.getLogger(__name__)


class SimulationStore(QObject):
    """Qt-facing wrapper around the Simulator; re-emits every change as signals."""
    state_changed = Signal(object)
    feedback_changed = Signal(str, str)

    def __init__(self, simulator: Optional[Simulator] = None) -> None:
        super().__init__()
        self.simulator = simulator if simulator is not None else Simulator()
        self.simulator.subscribe(self._on_simulator_changed)

    def view(self) -> ViewState:
        return self.simulator.view()

    def refresh(self) -> None:
        """Emit the current state without performing an action."""
        self._on_simulator_changed(self.simulator.view())

    def _on_simulator_changed(self, view: ViewState) -> None:
        self.state_changed.emit(view)
        self.feedback_changed.emit(view.feedback.message, str(view.feedback.severity))

    # --- ACTIONS ---
    @Slot(str, str)
    def fill_pipette(self, pipette_id: str, source_id: str) -> Feedback:
        return self.simulator.fill_pipette(pipette_id, source_id)

    @Slot(str, str)
    def dispense_pipette(self, pipette_id: str, dest_id: str) -> Feedback:
        return self.simulator.dispense_pipette(pipette_id, dest_id)

    @Slot(str, str)
    def insert_cuvette(self, cuvette_id: str, spec_id: str) -> Feedback:
        return self.simulator.insert_cuvette(cuvette_id, spec_id)

    @Slot(str)
    def remove_cuvette(self, cuvette_id: str) -> Feedback:
        return self.simulator.remove_cuvette(cuvette_id)

    @Slot(str, str)
    def empty_cuvette(self, cuvette_id: str, waste_id: str) -> Feedback:
        return self.simulator.empty_cuvette(cuvette_id, waste_id)

    @Slot()
    def zero_spec(self) -> Feedback:
        return self.simulator.zero_spec()

    @Slot()
    def measure(self) -> Feedback:
        return self.simulator.measure()

    @Slot()
    def toggle_mode(self) -> Feedback:
        return self.simulator.toggle_mode()

    @Slot()
    def undo(self) -> Feedback:
        return self.simulator.undo()

    @Slot()
    def restart(self) -> Feedback:
        logger.info("Restarting simulation.")
        return self.simulator.restart()
