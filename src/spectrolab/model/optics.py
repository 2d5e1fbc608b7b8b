"""Concentration and light-transmission functions (Beer-Lambert)."""
from __future__ import annotations

import math

import numpy as np

from spectrolab.config import (
    STOCK_CONCENTRATION,
    TRANSMITTANCE_LOOKUP,
    UNKNOWN_CONCENTRATION,
    UNKNOWN_PERCENT_T,
)

_LOOKUP_CONCENTRATIONS: list[float] = sorted(TRANSMITTANCE_LOOKUP)
_LOOKUP_PERCENT_T: list[float] = [TRANSMITTANCE_LOOKUP[c] for c in _LOOKUP_CONCENTRATIONS]


def concentration_from_dilution(stock_volume: float, water_volume: float) -> float:
    """Concentration (µM) of ``stock_volume`` stock made up with ``water_volume`` water."""
    total_volume = stock_volume + water_volume
    if total_volume <= 0:
        return 0.0
    return STOCK_CONCENTRATION * stock_volume / total_volume


def simulated_percent_transmittance(concentration: float) -> float:
    """
    Simulated %T reading for a solution.

    Linear interpolation over the calibration lookup table, clamped to the
    first/last table value outside of its range. The unknown drink has its
    own fixed reading.

    Args:
        concentration: Concentration in µM, or -1 for the unknown.

    Returns:
        Percent transmittance (0-100).
    """
    if concentration == UNKNOWN_CONCENTRATION:
        return UNKNOWN_PERCENT_T

    return float(
        np.interp(
            concentration,
            _LOOKUP_CONCENTRATIONS,
            _LOOKUP_PERCENT_T,
            left=_LOOKUP_PERCENT_T[0],
            right=_LOOKUP_PERCENT_T[-1]
        )
    )


def absorbance(percent_t: float) -> float:
    """Abs = -log10(%T / 100). Unreadable values (%T <= 0) are +inf."""
    if percent_t <= 0:
        return math.inf
    value = -math.log10(percent_t / 100.0)
    if math.isnan(value) or not math.isfinite(value):
        return math.inf
    return value
