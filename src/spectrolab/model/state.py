"""
Lab State (Data Model)
======================
This module defines the central data structure for a running simulation.

Why is this file needed?
------------------------
1. State Management: It holds the bench objects, the data table, the
   instrument and the step cursor in one place.
2. Undo: This object is what the history manager copies and restores.
3. Decoupling: Views read from this object; only the step engine writes it.

Classes:
    LabState: The main container class.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Optional, TypeVar

from spectrolab.config import STOCK_CONCENTRATION, UNKNOWN_CONCENTRATION
from spectrolab.model.data_table import DataRow, create_data_table
from spectrolab.model.errors import InternalSimulationError
from spectrolab.model.instrument import InstrumentState
from spectrolab.model.labware import (
    Beaker, Bottle, Cuvette, LabObject, Pipette, Placement, Spectrophotometer, TestTube
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=LabObject)

# (id, label) of the dilution tubes, left to right on the bench
TUBES: list[tuple[str, str]] = [
    ("tube_10_0", "10/0"),
    ("tube_8_2", "8/2"),
    ("tube_6_4", "6/4"),
    ("tube_4_6", "4/6"),
    ("tube_2_8", "2/8"),
    ("tube_0_10", "0/10 (Blank)"),
]


def create_lab_objects() -> dict[str, LabObject]:
    """Fixed starting layout of the bench."""
    objects: list[LabObject] = [
        Bottle(
            id="stockBottle", label="Stock Blue#1", placement=Placement(50, 50, 50, 100),
            max_volume=1000, current_volume=1000, concentration=STOCK_CONCENTRATION
        ),
        Bottle(
            id="waterBottle", label="Distilled H₂O", placement=Placement(120, 50, 50, 100),
            max_volume=1000, current_volume=1000, concentration=0.0
        ),
        Bottle(
            id="unknownBottle", label="Unknown Drink", placement=Placement(50, 195, 50, 80),
            max_volume=500, current_volume=500, concentration=UNKNOWN_CONCENTRATION
        ),
        Pipette(
            id="pipette", label="Pipette", placement=Placement(115, 195, 7, 105),
            max_volume=10, current_volume=0, contents_concentration=0.0
        ),
    ]
    for i, (tube_id, label) in enumerate(TUBES):
        objects.append(
            TestTube(
                id=tube_id, label=label, placement=Placement(250 + 35 * i, 50, 25, 100),
                max_volume=10, current_volume=0, concentration=0.0
            )
        )
    objects += [
        Cuvette(
            id="cuvette", label="Cuvette", placement=Placement(342.5, 192.5, 15, 50),
            max_volume=4, current_volume=0, concentration=0.0, is_clean=True, is_in_spec=False
        ),
        Beaker(
            id="wasteBeaker", label="Waste", placement=Placement(680, 300, 80, 100),
            max_volume=250, current_volume=0, concentration=None
        ),
        Spectrophotometer(id="spec20", label="Spec 20", placement=Placement(500, 50, 250, 150)),
    ]
    return {obj.id: obj for obj in objects}


@dataclass
class LabState:
    """
    Everything that undo restores. Pass this instance to the step engine.
    """
    current_step: int = 0
    lab_objects: dict[str, LabObject] = field(default_factory=create_lab_objects)
    data_table: list[DataRow] = field(default_factory=create_data_table)
    instrument: InstrumentState = field(default_factory=InstrumentState)

    def reset(self) -> None:
        """Back to the starting bench for a new run."""
        self.current_step = 0
        self.lab_objects = create_lab_objects()
        self.data_table = create_data_table()
        self.instrument = InstrumentState()
        logger.info("Lab state has been reset.")

    def find(self, object_id: Optional[str]) -> Optional[LabObject]:
        if object_id is None:
            return None
        return self.lab_objects.get(object_id)

    def require(self, object_id: Optional[str], expected: type[T]) -> T:
        """Lookup that treats a missing or mistyped object as an internal fault."""
        obj = self.find(object_id)
        if not isinstance(obj, expected):
            raise InternalSimulationError(
                f"Internal error: {expected.__name__} '{object_id}' not found."
            )
        return obj

    def objects_of(self, expected: type[T]) -> list[T]:
        return [obj for obj in self.lab_objects.values() if isinstance(obj, expected)]

    def data_row(self, row_id: str) -> DataRow:
        for row in self.data_table:
            if row.id == row_id:
                return row
        raise InternalSimulationError(f"Internal error: data row '{row_id}' not found.")

    def inserted_cuvette(self) -> Optional[Cuvette]:
        obj = self.find(self.instrument.cuvette_inside_id)
        return obj if isinstance(obj, Cuvette) else None
