"""
Labware (Data Model)
====================
Typed records for every object on the lab bench.

The capability flags (holds liquid, draggable, drop target) are class-level
so that a snapshot of the bench only carries the values that can change.

Classes:
    LabObject: Common base (identity, label, placement).
    LiquidContainer: Anything with a volume.
    Vessel: A container whose contents have a concentration.
    Bottle, TestTube, Beaker, Cuvette, Pipette, Spectrophotometer.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import ClassVar, Optional

from spectrolab.config import VOLUME_EPSILON


class ObjectKind(StrEnum):
    BOTTLE = "bottle"
    TEST_TUBE = "testTube"
    PIPETTE = "pipette"
    CUVETTE = "cuvette"
    BEAKER = "beaker"
    SPECTROPHOTOMETER = "spectrophotometer"


@dataclass
class Placement:
    """Position and size on the bench. Only the presentation layer reads it."""
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0


@dataclass(kw_only=True)
class LabObject:
    id: str
    label: str
    placement: Placement = field(default_factory=Placement)

    kind: ClassVar[ObjectKind]
    holds_liquid: ClassVar[bool] = False
    is_draggable: ClassVar[bool] = False
    is_drop_target: ClassVar[bool] = False


@dataclass(kw_only=True)
class LiquidContainer(LabObject):
    max_volume: float
    current_volume: float = 0.0

    holds_liquid: ClassVar[bool] = True

    @property
    def free_volume(self) -> float:
        return self.max_volume - self.current_volume

    def can_accept(self, volume: float) -> bool:
        return self.current_volume + volume <= self.max_volume + VOLUME_EPSILON


@dataclass(kw_only=True)
class Vessel(LiquidContainer):
    """
    Container with a single, well-mixed solution.

    ``concentration`` is in µM. ``-1`` marks an unlabelled (unknown) solution,
    ``None`` a container that has never held liquid (e.g. the waste beaker).
    """
    concentration: Optional[float] = 0.0

    is_drop_target: ClassVar[bool] = True

    def receive(self, volume: float, concentration: Optional[float]) -> None:
        """Add ``volume`` mL at ``concentration`` and mix (volume-weighted mean)."""
        initial_volume = self.current_volume
        final_volume = initial_volume + volume

        if final_volume <= VOLUME_EPSILON:
            final_concentration = 0.0
        elif self.concentration is None or initial_volume < VOLUME_EPSILON:
            final_concentration = concentration
        elif concentration is None:
            final_concentration = self.concentration
        elif self.concentration == 0 and concentration == 0:
            # Keep blanks exactly zero; the instrument zero check depends on it
            final_concentration = 0.0
        else:
            final_concentration = (
                self.concentration * initial_volume + concentration * volume
            ) / final_volume

        self.current_volume = final_volume
        self.concentration = final_concentration


@dataclass(kw_only=True)
class Bottle(Vessel):
    kind: ClassVar[ObjectKind] = ObjectKind.BOTTLE


@dataclass(kw_only=True)
class TestTube(Vessel):
    kind: ClassVar[ObjectKind] = ObjectKind.TEST_TUBE

    # Not a pytest test class, despite the name.
    __test__: ClassVar[bool] = False


@dataclass(kw_only=True)
class Beaker(Vessel):
    concentration: Optional[float] = None

    kind: ClassVar[ObjectKind] = ObjectKind.BEAKER


@dataclass(kw_only=True)
class Cuvette(Vessel):
    is_clean: bool = True
    is_in_spec: bool = False

    kind: ClassVar[ObjectKind] = ObjectKind.CUVETTE
    is_draggable: ClassVar[bool] = True


@dataclass(kw_only=True)
class Pipette(LiquidContainer):
    """The pipette keeps the concentration of its charge, not of its source."""
    contents_concentration: float = 0.0

    kind: ClassVar[ObjectKind] = ObjectKind.PIPETTE
    is_draggable: ClassVar[bool] = True

    def drain(self, volume: float) -> None:
        self.current_volume -= volume
        # Floating residue counts as empty
        if self.current_volume < VOLUME_EPSILON:
            self.current_volume = 0.0
            self.contents_concentration = 0.0


@dataclass(kw_only=True)
class Spectrophotometer(LabObject):
    kind: ClassVar[ObjectKind] = ObjectKind.SPECTROPHOTOMETER
    is_drop_target: ClassVar[bool] = True
