"""
Configuration & Simulation Constants
====================================
This module serves as the central registry for the fixed parameters of the
virtual laboratory.

Why is this file needed?
------------------------
1. Abstraction: It prevents magic numbers (stock concentration, tolerances,
   the absorbance ceiling, ...) from being scattered throughout the code.
2. Consistency: The optics functions, the step engine and the views all read
   the same values, so a displayed slope always matches the computed one.

None of these are runtime settings. A different experiment means a different
build of the simulation.

Exports:
    STOCK_CONCENTRATION (float): Concentration of the stock dye in µM.
    TRANSMITTANCE_LOOKUP (dict): Calibration points (µM -> %T).
    KNOWN_SLOPE (float): Calibration slope in Abs/µM.
    MAX_ABS (float): Highest absorbance the instrument reads reliably.
"""
from typing import Dict

# --- Experiment ---
STOCK_CONCENTRATION: float = 2.31  # µM, Blue #1 stock
TARGET_WAVELENGTH: int = 630  # nm
KNOWN_SLOPE: float = 0.1358  # Abs / µM
SAMPLE_VOLUME: float = 3.0  # mL transferred into the cuvette

# --- Optics ---
MAX_ABS: float = 1.5
DISPLAY_ABS_CEILING: float = 10.0
UNKNOWN_PERCENT_T: float = 39.0
UNKNOWN_CONCENTRATION: float = -1.0  # sentinel for "unlabelled solution"

# Concentration (µM) -> %T, must stay sorted by concentration
TRANSMITTANCE_LOOKUP: Dict[float, float] = {
    0.0: 100.0,
    0.231: 95.0,
    0.462: 87.0,
    0.693: 81.0,
    0.924: 77.0,
    1.39: 65.0,
    1.85: 58.0,
    2.31: 49.0,
}

# --- Tolerances ---
VOLUME_EPSILON: float = 0.001  # mL
VOLUME_MATCH_TOLERANCE: float = 0.01  # mL
ZERO_CONCENTRATION_TOLERANCE: float = 0.0001  # µM

# --- Undo ---
HISTORY_LIMIT: int = 20

# --- Application ---
VISIBLE_APP_NAME: str = "Spectrophotometry Lab"
