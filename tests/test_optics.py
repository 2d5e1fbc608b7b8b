import math

import pytest

from spectrolab.config import STOCK_CONCENTRATION, UNKNOWN_CONCENTRATION
from spectrolab.model.optics import (
    absorbance,
    concentration_from_dilution,
    simulated_percent_transmittance,
)


@pytest.mark.parametrize("concentration, expected", [
    (0.0, 100.0),
    (0.231, 95.0),
    (0.924, 77.0),
    (2.31, 49.0),
])
def test_lookup_table_points_are_exact(concentration, expected):
    assert simulated_percent_transmittance(concentration) == pytest.approx(expected)


def test_interpolates_between_table_points():
    # Halfway between 0.0 -> 100 and 0.231 -> 95
    assert simulated_percent_transmittance(0.1155) == pytest.approx(97.5)


def test_clamps_outside_the_table():
    assert simulated_percent_transmittance(5.0) == pytest.approx(49.0)
    assert simulated_percent_transmittance(-0.5) == pytest.approx(100.0)


def test_unknown_has_fixed_reading():
    assert simulated_percent_transmittance(UNKNOWN_CONCENTRATION) == pytest.approx(39.0)


def test_absorbance_of_known_values():
    assert absorbance(100.0) == pytest.approx(0.0)
    assert absorbance(10.0) == pytest.approx(1.0)
    assert absorbance(39.0) == pytest.approx(0.40894, abs=1e-5)


@pytest.mark.parametrize("percent_t", [0.0, -5.0, float("nan")])
def test_unreadable_transmittance_is_infinite_absorbance(percent_t):
    assert math.isinf(absorbance(percent_t))


def test_concentration_from_dilution():
    assert concentration_from_dilution(10, 0) == pytest.approx(STOCK_CONCENTRATION)
    assert concentration_from_dilution(8, 2) == pytest.approx(1.848)
    assert concentration_from_dilution(0, 10) == 0.0
    assert concentration_from_dilution(0, 0) == 0.0
