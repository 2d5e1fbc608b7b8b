"""
Read-only snapshot of the simulation for the presentation layer.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from spectrolab.model.data_table import DataRow
from spectrolab.model.errors import Severity
from spectrolab.model.labware import LabObject


@dataclass(frozen=True)
class Feedback:
    message: str = ""
    severity: Severity = Severity.INFO

    @property
    def ok(self) -> bool:
        return self.severity != Severity.ERROR


@dataclass(frozen=True)
class ViewState:
    step_index: int
    total_steps: int
    step_text: str
    step_hint: Optional[str]
    is_complete: bool
    feedback: Feedback
    lab_objects: tuple[LabObject, ...]
    data_table: tuple[DataRow, ...]
    reading: str
    absorbance_mode: bool
    wavelength: int
    can_undo: bool
    highlights: frozenset[str]
    slope_visible: bool
    unknown_concentration: Optional[float]

    @property
    def instruction_label(self) -> str:
        if self.is_complete:
            return self.step_text
        return f"Step {self.step_index + 1} / {self.total_steps}: {self.step_text}"
