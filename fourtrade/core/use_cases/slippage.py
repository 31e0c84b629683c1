"""
Slippage bounds in exact integer arithmetic.

The percentage is turned into a rational through its decimal string form, so
1.1 means exactly 11/10 percent. Minimums round down, maximums round up.
"""
from decimal import Decimal
from typing import Tuple, Union

from fourtrade.core.errors import ConfigurationError
from fourtrade.core.validation import is_real_number

Number = Union[int, float, Decimal]

MAX_SLIPPAGE_PERCENT = 100


def slippage_ratio(slippage_pct: Number) -> Tuple[int, int]:
    """Validate `slippage_pct` and return it as (numerator, denominator)."""
    if not is_real_number(slippage_pct):
        raise ConfigurationError(f"Slippage must be a number, got: {slippage_pct!r}")

    value = Decimal(str(slippage_pct))
    if not value.is_finite():
        raise ConfigurationError(f"Slippage must be finite, got: {slippage_pct}")
    if value < 0 or value > MAX_SLIPPAGE_PERCENT:
        raise ConfigurationError(
            f"Slippage must be between 0 and {MAX_SLIPPAGE_PERCENT}, got: {slippage_pct}",
            {"slippage_pct": str(slippage_pct)},
        )
    return value.as_integer_ratio()


def min_acceptable_amount(quoted: int, slippage_pct: Number) -> int:
    """floor(quoted * (100 - s) / 100)"""
    num, den = slippage_ratio(slippage_pct)
    return quoted * (100 * den - num) // (100 * den)


def max_acceptable_cost(quoted: int, slippage_pct: Number) -> int:
    """ceil(quoted * (100 + s) / 100)"""
    num, den = slippage_ratio(slippage_pct)
    return -(-quoted * (100 * den + num) // (100 * den))
