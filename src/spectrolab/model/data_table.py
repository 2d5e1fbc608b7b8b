"""Calibration data table: one row per standard plus one for the unknown."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from spectrolab.model.optics import concentration_from_dilution

UNKNOWN_ROW_ID = "unknown"


@dataclass
class DataRow:
    id: str
    solution: str
    dilution: str
    conc: Optional[float] = None

    # Measurement outputs, filled in by the 'measure' action
    measured_percent_t: Optional[float] = None
    t: Optional[float] = None
    neg_log_t: Optional[float] = None  # math.inf when off-scale

    @property
    def is_measured(self) -> bool:
        return self.neg_log_t is not None

    @property
    def is_unknown(self) -> bool:
        return self.id == UNKNOWN_ROW_ID


# (row id, solution label, stock mL, water mL)
STANDARDS: list[tuple[str, str, float, float]] = [
    ("tube_10_0", "1 (Stock)", 10, 0),
    ("tube_8_2", "2", 8, 2),
    ("tube_6_4", "3", 6, 4),
    ("tube_4_6", "4", 4, 6),
    ("tube_2_8", "5", 2, 8),
    ("tube_0_10", "6 (Blank)", 0, 10),
]


def create_data_table() -> list[DataRow]:
    rows = [
        DataRow(
            id=row_id,
            solution=solution,
            dilution=f"{stock:g} / {water:g}",
            conc=concentration_from_dilution(stock, water),
        )
        for row_id, solution, stock, water in STANDARDS
    ]
    rows.append(DataRow(id=UNKNOWN_ROW_ID, solution="Unknown Drink", dilution="N/A"))
    return rows
