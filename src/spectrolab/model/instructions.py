"""
Instruction Script
==================
The fixed, ordered list of steps the student works through.

Each step is a declarative contract: the action it expects, the objects and
volume the action must use, policy flags that relax or tighten the default
rules, and the text shown to the student.

The script is rinse-aware: emptying a sample leaves the cuvette dirty, and a
water rinse (or a step that explicitly tolerates residue) is needed before
the next sample can go into the spectrophotometer.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Optional

from spectrolab.config import SAMPLE_VOLUME
from spectrolab.model.data_table import UNKNOWN_ROW_ID


class ActionKind(StrEnum):
    FILL_PIPETTE = "fillPipette"
    DISPENSE_PIPETTE = "dispensePipette"
    INSERT_CUVETTE = "insertCuvette"
    EMPTY_CUVETTE = "emptyCuvette"
    ZERO_SPEC = "zeroSpec"
    MEASURE = "measure"
    INFO = "info"
    SET_UNKNOWN_FLAG = "setUnknownFlag"
    COMPLETE = "complete"

    @property
    def is_internal(self) -> bool:
        """Steps the engine performs on its own, without a user gesture."""
        return self in (ActionKind.INFO, ActionKind.SET_UNKNOWN_FLAG)


@dataclass(frozen=True, kw_only=True)
class InstructionStep:
    action: ActionKind
    text: str
    hint: Optional[str] = None
    id: Optional[str] = None

    # Required parameters
    pipette: Optional[str] = None
    source: Optional[str] = None
    destination: Optional[str] = None
    cuvette: Optional[str] = None
    volume: Optional[float] = None
    target_data_row_id: Optional[str] = None

    # Policy flags
    allow_empty: bool = False
    allow_dirty_insert: bool = False
    allow_blank_measure: bool = False
    mark_clean: bool = False
    allow_high_abs: bool = False

    highlight: tuple[str, ...] = ()


PIPETTE = "pipette"
CUVETTE = "cuvette"
SPEC = "spec20"
WASTE = "wasteBeaker"
STOCK = "stockBottle"
WATER = "waterBottle"
UNKNOWN_BOTTLE = "unknownBottle"

GRAPH_ANALYSIS_ID = "graph_analysis"
COMPLETE_ID = "complete"


# ------------------------------------------------------------------------------
# Step builders
# ------------------------------------------------------------------------------
def fill(source: str, volume: float, text: str) -> InstructionStep:
    return InstructionStep(
        action=ActionKind.FILL_PIPETTE, text=text, pipette=PIPETTE, source=source, volume=volume,
        hint=f"Drag the empty Pipette to '{source}'.", highlight=(PIPETTE, source)
    )


def dispense(destination: str, volume: float, text: str) -> InstructionStep:
    return InstructionStep(
        action=ActionKind.DISPENSE_PIPETTE, text=text, pipette=PIPETTE, destination=destination,
        volume=volume, hint=f"Drag the full Pipette to '{destination}'.",
        highlight=(PIPETTE, destination)
    )


def insert(text: str, allow_dirty_insert: bool = False) -> InstructionStep:
    return InstructionStep(
        action=ActionKind.INSERT_CUVETTE, text=text, cuvette=CUVETTE, destination=SPEC,
        allow_dirty_insert=allow_dirty_insert, hint="Drag the Cuvette into the Spectrophotometer.",
        highlight=(CUVETTE, SPEC)
    )


def empty(text: str, mark_clean: bool = False) -> InstructionStep:
    return InstructionStep(
        action=ActionKind.EMPTY_CUVETTE, text=text, cuvette=CUVETTE, destination=WASTE,
        mark_clean=mark_clean, hint="Drag the Cuvette out of the Spec first, then drag it to Waste.",
        highlight=(CUVETTE, WASTE)
    )


def measure(row_id: str, text: str, allow_blank_measure: bool = False) -> InstructionStep:
    return InstructionStep(
        action=ActionKind.MEASURE, text=text, target_data_row_id=row_id,
        allow_blank_measure=allow_blank_measure, hint="Click the 'Measure' button.",
        highlight=(SPEC,)
    )


def rinse(label: str) -> list[InstructionStep]:
    """Water rinse that takes the cuvette from dirty to clean."""
    return [
        fill(WATER, SAMPLE_VOLUME, f"Rinse the Cuvette after {label}: Fill the Pipette with 3mL Water."),
        dispense(CUVETTE, SAMPLE_VOLUME, "Dispense the rinse Water into the Cuvette."),
        empty("Empty the rinse Water into Waste. The Cuvette is now clean.", mark_clean=True),
    ]


def prepare_dilution(number: int, tube: str, label: str, stock: float, water: float) -> list[InstructionStep]:
    steps = []
    if stock > 0:
        steps += [
            fill(STOCK, stock, f"Prepare Sample {number} ({label}): Fill the Pipette with {stock:g}mL Stock."),
            dispense(tube, stock, f"Dispense {stock:g}mL Stock into Tube '{label}'."),
        ]
    if water > 0:
        steps += [
            fill(WATER, water, f"Fill the Pipette with {water:g}mL Water from 'Distilled H₂O'."),
            dispense(tube, water, f"Dispense {water:g}mL Water into Tube '{label}'."),
        ]
    return steps


def measure_sample(number: int, tube: str, label: str) -> list[InstructionStep]:
    return [
        fill(tube, SAMPLE_VOLUME, f"Measure Sample {number} ({label}): Fill the Pipette with 3mL from Tube '{label}'."),
        dispense(CUVETTE, SAMPLE_VOLUME, f"Dispense Sample {number} into the Cuvette."),
        insert(f"Place the Cuvette (Sample {number}) into the Spec."),
        measure(tube, "Click 'Measure'."),
        empty(f"Empty Sample {number}: Drag the Cuvette out of the Spec and into Waste."),
    ]


# ------------------------------------------------------------------------------
# The script
# ------------------------------------------------------------------------------
DILUTIONS: list[tuple[str, str, float, float]] = [
    ("tube_10_0", "10/0", 10, 0),
    ("tube_8_2", "8/2", 8, 2),
    ("tube_6_4", "6/4", 6, 4),
    ("tube_4_6", "4/6", 4, 6),
    ("tube_2_8", "2/8", 2, 8),
    ("tube_0_10", "0/10", 0, 10),
]


def build_instructions() -> tuple[InstructionStep, ...]:
    steps: list[InstructionStep] = []

    # 1. Dilution series
    for number, (tube, label, stock, water) in enumerate(DILUTIONS, start=1):
        steps += prepare_dilution(number, tube, label, stock, water)

    # 2. Zero the instrument on the blank
    steps += [
        fill("tube_0_10", SAMPLE_VOLUME, "Zero the Spectrophotometer: Fill the Pipette with 3mL from the Blank Tube '0/10'."),
        dispense(CUVETTE, SAMPLE_VOLUME, "Dispense the Blank into the Cuvette."),
        insert("Place the Cuvette (with Blank) into the Spectrophotometer."),
        InstructionStep(
            action=ActionKind.ZERO_SPEC, text="Click the 'Zero' button on the Spectrophotometer.",
            hint="Click the 'Zero' button.", highlight=(SPEC,)
        ),
        empty("Empty the Blank: Drag the Cuvette out of the Spec and into Waste.", mark_clean=True),
    ]

    # 3. Standards, each followed by a rinse
    samples = DILUTIONS[:-1]
    for number, (tube, label, _, _) in enumerate(samples, start=1):
        steps += measure_sample(number, tube, label)
        if number < len(samples):
            steps += rinse(f"Sample {number}")

    # 4. Blank check, straight into the unrinsed cuvette
    steps += [
        fill("tube_0_10", SAMPLE_VOLUME, "Measure the Blank (0/10) again: Fill the Pipette with 3mL from Tube '0/10'."),
        dispense(CUVETTE, SAMPLE_VOLUME, "Dispense the Blank into the Cuvette (no rinse needed for the blank check)."),
        insert("Place the Cuvette (Blank) into the Spec.", allow_dirty_insert=True),
        measure("tube_0_10", "Click 'Measure' (should read ~100%T / ~0 Abs).", allow_blank_measure=True),
        InstructionStep(
            action=ActionKind.INFO, id=GRAPH_ANALYSIS_ID,
            text="Calibration complete. Observe the Data Table & Graph. Note the slope.",
            highlight=("data-panel", "graph-panel")
        ),
        empty("Empty the Blank: Drag the Cuvette out of the Spec and into Waste.", mark_clean=True),
    ]

    # 5. Unknown
    steps += [
        fill(UNKNOWN_BOTTLE, SAMPLE_VOLUME, "Measure the Unknown: Fill the Pipette with 3mL from the 'Unknown Drink' bottle."),
        dispense(CUVETTE, SAMPLE_VOLUME, "Dispense the Unknown into the Cuvette."),
        InstructionStep(
            action=ActionKind.SET_UNKNOWN_FLAG, cuvette=CUVETTE,
            text="Set the Cuvette as Unknown (automatic)."
        ),
        insert("Place the Cuvette (Unknown) into the Spec."),
        measure(UNKNOWN_ROW_ID, "Click 'Measure' to find the absorbance of the Unknown."),
        InstructionStep(
            action=ActionKind.INFO,
            text="Result recorded. Use the Absorbance and the Calibration Slope to find the concentration.",
            highlight=("data-panel", "unknown-result", "graph-panel")
        ),
        InstructionStep(action=ActionKind.COMPLETE, id=COMPLETE_ID, text="Experiment Complete! Analysis finished."),
    ]
    return tuple(steps)


INSTRUCTIONS: tuple[InstructionStep, ...] = build_instructions()


def step_index(step_id: str, script: tuple[InstructionStep, ...] = INSTRUCTIONS) -> int:
    """Position of the step with a stable ``id``, or -1."""
    for i, step in enumerate(script):
        if step.id == step_id:
            return i
    return -1
