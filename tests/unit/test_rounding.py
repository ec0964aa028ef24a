"""
Unit tests for half-up rounding of reported figures.
"""

import pytest

from miraat.engine.impact.statistics import residents
from miraat.utils import round_half_up


@pytest.mark.parametrize(
    "value,expected",
    [
        (0.5, 1),
        (2.5, 3),
        (26.5, 27),
        (26.49, 26),
        (3.0, 3),
        (0.0, 0),
    ],
)
def test_halves_round_up_to_integers(value, expected):
    result = round_half_up(value)
    assert result == expected
    assert isinstance(result, int)


def test_decimal_places():
    assert round_half_up(21.333333, 2) == pytest.approx(21.33)
    assert round_half_up(0.125, 2) == pytest.approx(0.13)
    assert round_half_up(12.25, 1) == pytest.approx(12.3)


def test_odd_apartment_counts_round_residents_up():
    # 7 * 3.5 = 24.5
    assert residents(7) == 25
    assert residents(1) == 4
    assert residents(24) == 84
