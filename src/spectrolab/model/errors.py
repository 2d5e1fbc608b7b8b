"""
Simulation Errors
=================
Exceptions raised by the action validators.

All of them are recoverable: the step engine catches ``SimulationError`` at
the boundary of every public action and turns it into user feedback, so the
simulation always stays interactive.
"""
from __future__ import annotations

from enum import StrEnum


class Severity(StrEnum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


class SimulationError(Exception):
    """Base class. ``message`` is shown to the student as-is."""
    severity: Severity = Severity.ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class SequenceMismatchError(SimulationError):
    """The attempted action is not the one the current step asks for."""


class PreconditionError(SimulationError):
    """The action matches the step but the lab is not in a state to do it."""


class OffScaleError(SimulationError):
    """The sample absorbs more light than the instrument can read."""


class InternalSimulationError(SimulationError):
    """A referenced object or data row does not exist."""


class NoOpNotice(SimulationError):
    """Nothing to do; reported to the student without being an error."""
    severity = Severity.INFO
