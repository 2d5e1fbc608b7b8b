"""
Spectrophotometer State
=======================
Holds what the instrument "knows": which cuvette is loaded, whether it has
been zeroed, which unit it displays and the last value it read.

The display string is never stored. It is rendered from ``display`` and
``percent_t`` on demand, which keeps %T <-> Abs toggling loss-free.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Optional

from spectrolab.config import DISPLAY_ABS_CEILING, MAX_ABS, TARGET_WAVELENGTH
from spectrolab.model.optics import absorbance


class Display(StrEnum):
    EMPTY = "empty"
    ZERO = "zero"
    VALUE = "value"
    OUT_OF_RANGE = "out_of_range"


@dataclass
class InstrumentState:
    cuvette_inside_id: Optional[str] = None
    is_zeroed: bool = False
    absorbance_mode: bool = False
    wavelength: int = TARGET_WAVELENGTH
    display: Display = Display.EMPTY
    percent_t: Optional[float] = None

    @property
    def unit(self) -> str:
        return "Abs" if self.absorbance_mode else "%T"

    @property
    def is_occupied(self) -> bool:
        return self.cuvette_inside_id is not None

    @property
    def reading(self) -> str:
        """Text currently shown on the instrument display."""
        match self.display:
            case Display.ZERO:
                return "0.000 Abs" if self.absorbance_mode else "100.0 %T"
            case Display.OUT_OF_RANGE:
                return f">{MAX_ABS:.1f} Abs" if self.absorbance_mode else "0.0 %T"
            case Display.VALUE if self.percent_t is not None:
                if not self.absorbance_mode:
                    return f"{self.percent_t:.1f} %T"
                value = absorbance(self.percent_t)
                if value > DISPLAY_ABS_CEILING:
                    return f">{DISPLAY_ABS_CEILING:.0f} Abs"
                return f"{value:.3f} Abs"
            case _:
                return f"-- {self.unit}"

    def show_placeholder(self) -> None:
        self.display = Display.EMPTY
        self.percent_t = None

    def show_zero(self) -> None:
        self.display = Display.ZERO
        self.percent_t = 100.0

    def show_value(self, percent_t: float) -> None:
        self.display = Display.VALUE
        self.percent_t = percent_t

    def show_out_of_range(self) -> None:
        self.display = Display.OUT_OF_RANGE
        self.percent_t = None
