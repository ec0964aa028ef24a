"""
Half-up rounding for reported figures.

Python's built-in ``round`` rounds halves to the nearest even number, so a
projected 26.5 fatalities would be reported as 26. Published counts, costs,
ratios and distances all round halves up instead.
"""

from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float, ndigits: int = 0):
    """
    Round ``value`` to ``ndigits`` decimal places, halves away from zero.

    Returns an int when ``ndigits`` is 0, a float otherwise.
    """
    quantum = Decimal("1").scaleb(-ndigits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    if ndigits == 0:
        return int(rounded)
    return float(rounded)
