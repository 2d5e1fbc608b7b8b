"""
Undo History
============
Bounded stack of full snapshots of the lab state.

Snapshots are deep copies; nothing in the stack aliases live objects, so a
restored snapshot can be mutated freely.
"""
from __future__ import annotations

import copy
import logging
from collections import deque
from dataclasses import dataclass
from typing import Optional

from spectrolab.config import HISTORY_LIMIT
from spectrolab.model.data_table import DataRow
from spectrolab.model.instrument import InstrumentState
from spectrolab.model.labware import LabObject
from spectrolab.model.state import LabState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    current_step: int
    lab_objects: dict[str, LabObject]
    data_table: list[DataRow]
    instrument: InstrumentState

    @classmethod
    def capture(cls, state: LabState) -> Snapshot:
        return cls(
            current_step=state.current_step,
            lab_objects=copy.deepcopy(state.lab_objects),
            data_table=copy.deepcopy(state.data_table),
            instrument=copy.deepcopy(state.instrument),
        )

    def restore_into(self, state: LabState) -> None:
        """Overwrite ``state`` wholesale. The snapshot stays reusable."""
        state.current_step = self.current_step
        state.lab_objects = copy.deepcopy(self.lab_objects)
        state.data_table = copy.deepcopy(self.data_table)
        state.instrument = copy.deepcopy(self.instrument)


class HistoryManager:
    """Undo stack; the oldest snapshot is dropped once ``limit`` is reached."""

    def __init__(self, limit: int = HISTORY_LIMIT) -> None:
        self._stack: deque[Snapshot] = deque(maxlen=limit)

    def __len__(self) -> int:
        return len(self._stack)

    @property
    def can_undo(self) -> bool:
        return len(self._stack) > 0

    def save(self, state: LabState) -> None:
        self._stack.append(Snapshot.capture(state))
        logger.debug(f"Saved snapshot at step {state.current_step} ({len(self._stack)} in history).")

    def pop(self) -> Optional[Snapshot]:
        if not self._stack:
            return None
        return self._stack.pop()

    def clear(self) -> None:
        self._stack.clear()
