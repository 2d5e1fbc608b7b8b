"""
Step Engine
===========
The instruction-gated state machine that drives the virtual lab.

Why is this file needed?
------------------------
1. Gating: Every student action is checked against the current instruction
   step before anything on the bench changes.
2. Rules: Each action kind has one validator that checks the lab
   preconditions, applies the change and advances the step cursor.
3. Auto-advance: Informational and internal steps are processed without a
   user gesture.
4. Undo: A snapshot is pushed before every change.

The ``Simulator`` is the only writer of the ``LabState``. Views read a
``ViewState`` and are notified through ``subscribe`` after every action.

Classes:
    InteractionState: Drag/highlight state that undo does not restore.
    Simulator: Public action API.
"""
from __future__ import annotations

import copy
import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Optional

from spectrolab.config import (
    DISPLAY_ABS_CEILING,
    HISTORY_LIMIT,
    KNOWN_SLOPE,
    MAX_ABS,
    UNKNOWN_CONCENTRATION,
    VOLUME_EPSILON,
    VOLUME_MATCH_TOLERANCE,
    ZERO_CONCENTRATION_TOLERANCE,
)
from spectrolab.controller.view_state import Feedback, ViewState
from spectrolab.model.analysis import slope_visible, unknown_concentration
from spectrolab.model.data_table import UNKNOWN_ROW_ID
from spectrolab.model.errors import (
    InternalSimulationError,
    NoOpNotice,
    OffScaleError,
    PreconditionError,
    SequenceMismatchError,
    Severity,
    SimulationError,
)
from spectrolab.model.history import HistoryManager
from spectrolab.model.instructions import INSTRUCTIONS, ActionKind, InstructionStep
from spectrolab.model.labware import Beaker, Cuvette, Pipette, Spectrophotometer, Vessel
from spectrolab.model.optics import absorbance, simulated_percent_transmittance
from spectrolab.model.state import LabState

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = "Welcome! Follow the instructions."

Listener = Callable[[ViewState], None]


@dataclass
class InteractionState:
    dragged_object_id: Optional[str] = None
    highlights: list[str] = field(default_factory=list)

    def clear(self) -> None:
        self.dragged_object_id = None
        self.highlights = []


class Simulator:
    """
    Owns one run of the virtual lab.

    Every public action returns the resulting ``Feedback``; none of them
    raise for student mistakes.
    """

    def __init__(
        self,
        script: tuple[InstructionStep, ...] = INSTRUCTIONS,
        state: Optional[LabState] = None,
        history_limit: int = HISTORY_LIMIT,
    ) -> None:
        self.script = script
        self.state = state if state is not None else LabState()
        self.history = HistoryManager(history_limit)
        self.interaction = InteractionState()
        self.feedback = Feedback(WELCOME_MESSAGE)
        self._listeners: list[Listener] = []

        self.process_internal_steps()
        logger.info(f"Simulator ready at step {self.current_step} of {len(self.script)}.")

    # ------------------------------------------------------------------
    # Cursor
    # ------------------------------------------------------------------
    @property
    def current_step(self) -> int:
        return self.state.current_step

    @property
    def current_instruction(self) -> Optional[InstructionStep]:
        if 0 <= self.state.current_step < len(self.script):
            return self.script[self.state.current_step]
        return None

    @property
    def is_complete(self) -> bool:
        step = self.current_instruction
        return step is None or step.action == ActionKind.COMPLETE

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------
    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        if not self._listeners:
            return
        view = self.view()
        for listener in list(self._listeners):
            listener(view)

    def view(self) -> ViewState:
        step = self.current_instruction
        if step is not None:
            text, hint = step.text, step.hint
        else:
            text, hint = self.script[-1].text if self.script else "Experiment Complete!", None

        highlights = set(step.highlight if step is not None else ())
        highlights.update(self.interaction.highlights)

        table = self.state.data_table
        return ViewState(
            step_index=self.state.current_step,
            total_steps=max(len(self.script) - 1, 0),
            step_text=text,
            step_hint=hint,
            is_complete=self.is_complete,
            feedback=self.feedback,
            lab_objects=tuple(copy.deepcopy(list(self.state.lab_objects.values()))),
            data_table=tuple(copy.deepcopy(table)),
            reading=self.state.instrument.reading,
            absorbance_mode=self.state.instrument.absorbance_mode,
            wavelength=self.state.instrument.wavelength,
            can_undo=self.history.can_undo,
            highlights=frozenset(highlights),
            slope_visible=slope_visible(self.state.current_step, self.script),
            unknown_concentration=unknown_concentration(table, KNOWN_SLOPE),
        )

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------
    def _run(self, name: str, validator: Callable[..., str], *args) -> Feedback:
        """Run one validator; convert its outcome into feedback and notify."""
        step_before = self.state.current_step
        try:
            message = validator(*args)
        except InternalSimulationError as e:
            logger.error(f"{name} failed at step {step_before}: {e.message}")
            self.feedback = Feedback(e.message, e.severity)
        except SimulationError as e:
            logger.warning(f"{name} rejected at step {step_before}: {e.message}")
            self.feedback = Feedback(e.message, e.severity)
        else:
            logger.info(f"{name} accepted at step {step_before}: {message}")
            self.feedback = Feedback(message, Severity.SUCCESS)
            if self.state.current_step != step_before:
                self.process_internal_steps()

        self._notify()
        return self.feedback

    def _expect(self, action: ActionKind, **params: object) -> InstructionStep:
        """Return the current step if it asks for ``action`` with ``params``."""
        step = self.current_instruction
        if step is None or step.action == ActionKind.COMPLETE:
            raise SequenceMismatchError("The experiment is complete. Nothing left to do.")

        mismatched = [key for key, value in params.items() if getattr(step, key) != value]
        if step.action != action or mismatched:
            logger.debug(f"Expected {step.action} {params}, mismatched: {mismatched or 'action'}")
            raise SequenceMismatchError(f"Incorrect action. {step.hint or 'Follow instructions.'}")
        return step

    def _advance(self) -> None:
        self.state.current_step += 1

    # ------------------------------------------------------------------
    # Gated actions
    # ------------------------------------------------------------------
    def fill_pipette(self, pipette_id: str, source_id: str) -> Feedback:
        return self._run("fillPipette", self._fill_pipette, pipette_id, source_id)

    def _fill_pipette(self, pipette_id: str, source_id: str) -> str:
        step = self._expect(ActionKind.FILL_PIPETTE, pipette=pipette_id, source=source_id)
        pipette = self.state.require(pipette_id, Pipette)
        source = self.state.require(source_id, Vessel)
        volume = step.volume
        if volume is None:
            raise InternalSimulationError("Internal error: fill step has no volume.")

        if pipette.current_volume > 0:
            raise PreconditionError("Pipette must be empty before filling.")
        if source.concentration is None:
            raise PreconditionError(f"{source.label} holds no usable solution.")
        if source.current_volume < volume:
            raise PreconditionError(f"Not enough liquid in {source.label}. Need {volume:g}mL.")
        if not pipette.can_accept(volume):
            raise PreconditionError(f"{pipette.label} holds at most {pipette.max_volume:g}mL.")

        self.history.save(self.state)
        pipette.current_volume = volume
        pipette.contents_concentration = source.concentration
        source.current_volume -= volume
        self._advance()
        return f"Pipette filled with {volume:g}mL from {source.label}."

    def dispense_pipette(self, pipette_id: str, dest_id: str, volume: Optional[float] = None) -> Feedback:
        """Dispense ``volume`` mL (default: the whole charge) into ``dest_id``."""
        return self._run("dispensePipette", self._dispense_pipette, pipette_id, dest_id, volume)

    def _dispense_pipette(self, pipette_id: str, dest_id: str, volume: Optional[float]) -> str:
        step = self._expect(ActionKind.DISPENSE_PIPETTE, pipette=pipette_id, destination=dest_id)
        pipette = self.state.require(pipette_id, Pipette)
        if volume is None:
            volume = pipette.current_volume

        if step.volume and abs(volume - step.volume) > VOLUME_MATCH_TOLERANCE:
            raise SequenceMismatchError(f"Incorrect volume dispensed. Expected {step.volume:g}mL.")

        dest = self.state.require(dest_id, Vessel)
        if volume <= 0 or pipette.current_volume < volume - VOLUME_EPSILON:
            raise PreconditionError("Not enough liquid in pipette.")
        if not dest.can_accept(volume):
            raise PreconditionError(f"{dest.label} will overflow.")

        self.history.save(self.state)
        dest.receive(volume, pipette.contents_concentration)
        # Cleanliness only changes when the cuvette is emptied
        pipette.drain(volume)
        self._advance()
        return f"Dispensed {volume:.1f}mL into {dest.label}."

    def insert_cuvette(self, cuvette_id: str, spec_id: str) -> Feedback:
        return self._run("insertCuvette", self._insert_cuvette, cuvette_id, spec_id)

    def _insert_cuvette(self, cuvette_id: str, spec_id: str) -> str:
        step = self._expect(ActionKind.INSERT_CUVETTE, cuvette=cuvette_id, destination=spec_id)
        cuvette = self.state.require(cuvette_id, Cuvette)
        self.state.require(spec_id, Spectrophotometer)
        instrument = self.state.instrument

        if instrument.is_occupied:
            raise PreconditionError("Spectrophotometer already contains a cuvette.")
        if cuvette.is_in_spec:
            raise PreconditionError("Cuvette is already in the Spectrophotometer.")
        if cuvette.current_volume <= 0 and not step.allow_empty:
            raise PreconditionError("Cannot insert an empty cuvette at this step.")
        if not cuvette.is_clean and not step.allow_dirty_insert:
            raise PreconditionError("Cuvette must be rinsed before adding a new sample.")

        self.history.save(self.state)
        cuvette.is_in_spec = True
        instrument.cuvette_inside_id = cuvette_id
        instrument.show_placeholder()
        self._advance()
        return "Cuvette inserted into Spectrophotometer."

    def zero_spec(self) -> Feedback:
        return self._run("zeroSpec", self._zero_spec)

    def _zero_spec(self) -> str:
        self._expect(ActionKind.ZERO_SPEC)
        cuvette = self.state.inserted_cuvette()
        if (
            cuvette is None
            or cuvette.concentration is None
            or abs(cuvette.concentration) > ZERO_CONCENTRATION_TOLERANCE
        ):
            raise PreconditionError("Cannot zero. Insert Blank (0 µM) cuvette first.")

        self.history.save(self.state)
        self.state.instrument.is_zeroed = True
        self.state.instrument.show_zero()
        self._advance()
        return "Spectrophotometer zeroed."

    def measure(self) -> Feedback:
        return self._run("measure", self._measure)

    def _measure(self) -> str:
        step = self._expect(ActionKind.MEASURE)
        instrument = self.state.instrument
        if not instrument.is_occupied:
            raise PreconditionError("Cannot measure. No cuvette in Spectrophotometer.")
        if not instrument.is_zeroed:
            raise PreconditionError("Cannot measure. Spectrophotometer must be zeroed first.")

        cuvette = self.state.require(instrument.cuvette_inside_id, Cuvette)
        concentration = cuvette.concentration
        if concentration is None:
            raise InternalSimulationError("Internal error: cuvette has no solution.")
        if abs(concentration) < ZERO_CONCENTRATION_TOLERANCE and not step.allow_blank_measure:
            raise PreconditionError("Cannot measure the blank again at this step.")

        row = self.state.data_row(step.target_data_row_id or UNKNOWN_ROW_ID)
        percent_t = simulated_percent_transmittance(concentration)
        absorbance_value = absorbance(percent_t)

        if absorbance_value > MAX_ABS and not step.allow_high_abs:
            # Shown, but not recorded; the student may dilute and retry
            instrument.show_out_of_range()
            raise OffScaleError(f"Absorbance too high (> {MAX_ABS:.1f}) to measure accurately.")

        self.history.save(self.state)
        instrument.show_value(percent_t)
        row.measured_percent_t = round(percent_t, 1)
        row.t = round(percent_t / 100.0, 3)
        if math.isinf(absorbance_value) or absorbance_value > DISPLAY_ABS_CEILING:
            row.neg_log_t = math.inf
        else:
            row.neg_log_t = round(absorbance_value, 4)
        if row.is_unknown and math.isfinite(row.neg_log_t):
            row.conc = row.neg_log_t / KNOWN_SLOPE
        self._advance()
        return f"Measurement complete: {instrument.reading}."

    # ------------------------------------------------------------------
    # Partially gated actions
    # ------------------------------------------------------------------
    def empty_cuvette(self, cuvette_id: str, waste_id: str) -> Feedback:
        """
        Pour the cuvette into the waste beaker.

        Always physically allowed (outside the spectrophotometer). Only an
        empty that matches the current step advances it, and only such a step
        can declare the cuvette clean.
        """
        return self._run("emptyCuvette", self._empty_cuvette, cuvette_id, waste_id)

    def _empty_cuvette(self, cuvette_id: str, waste_id: str) -> str:
        waste = self.state.find(waste_id)
        if not isinstance(waste, Beaker):
            raise PreconditionError("Can only empty into Waste.")
        cuvette = self.state.require(cuvette_id, Cuvette)
        if cuvette.is_in_spec:
            raise PreconditionError(
                "Cannot empty cuvette while inside the Spectrophotometer. Drag it out first."
            )
        if cuvette.current_volume <= 0:
            raise NoOpNotice("Cuvette is already empty.")

        step = self.current_instruction
        step_completed = (
            step is not None
            and step.action == ActionKind.EMPTY_CUVETTE
            and step.cuvette == cuvette_id
            and step.destination == waste_id
        )

        self.history.save(self.state)
        waste.current_volume = min(waste.max_volume, waste.current_volume + cuvette.current_volume)
        cuvette.current_volume = 0.0
        cuvette.concentration = 0.0
        cuvette.is_clean = step_completed and step.mark_clean

        clean_note = " It is now clean." if cuvette.is_clean else ""
        if step_completed:
            self._advance()
            return f"Cuvette emptied into Waste.{clean_note} Step complete."
        return f"Cuvette emptied into Waste.{clean_note}"

    # ------------------------------------------------------------------
    # Ungated actions
    # ------------------------------------------------------------------
    def remove_cuvette(self, cuvette_id: str) -> Feedback:
        """Take the cuvette out of the spectrophotometer. Never consumes a step."""
        return self._run("removeCuvette", self._remove_cuvette, cuvette_id)

    def _remove_cuvette(self, cuvette_id: str) -> str:
        cuvette = self.state.require(cuvette_id, Cuvette)
        instrument = self.state.instrument
        if not cuvette.is_in_spec or instrument.cuvette_inside_id != cuvette_id:
            raise NoOpNotice("Cuvette is not in the Spectrophotometer.")

        self.history.save(self.state)
        cuvette.is_in_spec = False
        instrument.cuvette_inside_id = None
        instrument.show_placeholder()
        return "Cuvette removed from the Spectrophotometer."

    def toggle_mode(self) -> Feedback:
        """Switch the display between %T and Abs. Not part of the script."""
        instrument = self.state.instrument
        instrument.absorbance_mode = not instrument.absorbance_mode
        mode = "Absorbance" if instrument.absorbance_mode else "%Transmittance"
        logger.debug(f"Display mode -> {mode}, reading {instrument.reading}")
        self.feedback = Feedback(f"Display mode changed to: {mode}.", Severity.INFO)
        self._notify()
        return self.feedback

    def undo(self) -> Feedback:
        """
        Step back one student action.

        Snapshots pushed by auto-advanced steps are unwound together with the
        action that triggered them, so the cursor lands on an interactive step.
        """
        snapshot = self.history.pop()
        if snapshot is None:
            self.feedback = Feedback("Nothing to undo.", Severity.INFO)
            self._notify()
            return self.feedback

        snapshot.restore_into(self.state)
        while self._on_internal_step() and self.history.can_undo:
            self.history.pop().restore_into(self.state)

        self.interaction.clear()
        self.feedback = Feedback("Undo successful.", Severity.INFO)
        # A failing internal step replaces the feedback
        if self._on_internal_step():
            self.process_internal_steps()
        logger.info(f"Undo -> step {self.state.current_step} ({len(self.history)} left in history).")
        self._notify()
        return self.feedback

    def restart(self) -> Feedback:
        self.state.reset()
        self.history.clear()
        self.interaction.clear()
        self.feedback = Feedback(WELCOME_MESSAGE)
        self.process_internal_steps()
        self._notify()
        return self.feedback

    # ------------------------------------------------------------------
    # Internal steps
    # ------------------------------------------------------------------
    def _on_internal_step(self) -> bool:
        step = self.current_instruction
        return step is not None and step.action.is_internal

    def set_unknown_flag(self, cuvette_id: Optional[str]) -> bool:
        """Mark the cuvette's contents as the unknown. Internal step only."""
        cuvette = self.state.find(cuvette_id)
        if not isinstance(cuvette, Cuvette):
            logger.error(f"Internal error: cuvette '{cuvette_id}' not found for unknown flag step.")
            self.feedback = Feedback("Internal simulation error setting unknown flag.", Severity.ERROR)
            return False
        cuvette.concentration = UNKNOWN_CONCENTRATION
        return True

    def process_internal_steps(self) -> int:
        """
        Auto-advance over 'info' and 'setUnknownFlag' steps.

        Returns:
            Number of steps processed. Stops at the first interactive step or
            at an internal step that fails (the cursor stays on it).
        """
        processed = 0
        while self._on_internal_step():
            step = self.script[self.state.current_step]
            self.history.save(self.state)
            match step.action:
                case ActionKind.SET_UNKNOWN_FLAG:
                    if not self.set_unknown_flag(step.cuvette):
                        self.history.pop()
                        logger.error(
                            f"Internal action {step.action} failed at step {self.state.current_step}. "
                            f"Halting auto-advance."
                        )
                        return processed
                case ActionKind.INFO:
                    logger.info(f"Info step {self.state.current_step}: {step.text}")
            self._advance()
            processed += 1
        return processed

    # ------------------------------------------------------------------
    # Interaction (presentation-only state)
    # ------------------------------------------------------------------
    def begin_drag(self, object_id: str) -> bool:
        obj = self.state.find(object_id)
        if obj is None or not obj.is_draggable:
            return False
        self.interaction.dragged_object_id = object_id
        self.interaction.highlights = [object_id]
        self._notify()
        return True

    def hover(self, target_id: Optional[str]) -> None:
        dragged = self.interaction.dragged_object_id
        if dragged is None:
            return
        highlights = [dragged]
        target = self.state.find(target_id)
        if target is not None and target.is_drop_target and target.id != dragged:
            highlights.append(target.id)
        self.interaction.highlights = highlights
        self._notify()

    def end_drag(self) -> None:
        self.interaction.clear()
        self._notify()
