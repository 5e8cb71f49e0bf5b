"""Allocation math: current weights, deviations and their summaries.

All functions are pure. Weights are percentages (0-100) as Decimals.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping, Optional

from models.portfolio import Portfolio
from models.utils import to_decimal
from utils.ticker import normalize_symbol

ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Ratio precision before scaling to percent, so weights carry 2 decimals
WEIGHT_RATIO_SCALE = Decimal("0.0001")

# Sum of target weights may be off by this many points
ALLOCATION_TOLERANCE = Decimal("1")


def normalize_allocation(allocation: Mapping[str, object]) -> dict[str, Decimal]:
    """Uppercase the symbols and convert the weights to Decimal."""
    return {normalize_symbol(symbol): to_decimal(weight) for symbol, weight in allocation.items()}


def calculate_weight(market_value: Decimal, total_value: Optional[Decimal]) -> Decimal:
    """Percent weight of one holding.

    The ratio is rounded half-up to 4 places before it is scaled by 100.
    A zero or missing total yields 0 without dividing.
    """
    if total_value is None or total_value <= 0:
        return ZERO
    return (market_value / total_value).quantize(WEIGHT_RATIO_SCALE, ROUND_HALF_UP) * HUNDRED


def calculate_current_allocation(portfolio: Portfolio) -> dict[str, Decimal]:
    """Current percent weight of every holding, keyed by symbol."""
    total_value = portfolio.total_value
    return {
        holding.symbol: calculate_weight(holding.market_value, total_value)
        for holding in portfolio.holdings
    }


def calculate_deviations(
    current_allocation: Mapping[str, Decimal],
    target_allocation: Mapping[str, Decimal],
) -> dict[str, Decimal]:
    """current - target for every symbol on either side (missing side is 0).

    Keys are sorted so results are deterministic.
    """
    symbols = sorted(set(current_allocation) | set(target_allocation))
    return {
        symbol: current_allocation.get(symbol, ZERO) - target_allocation.get(symbol, ZERO)
        for symbol in symbols
    }


def total_deviation(deviations: Mapping[str, Decimal]) -> Decimal:
    """Half the sum of absolute deviations.

    Every overweight point is matched by an underweight point elsewhere,
    so the raw sum double counts the drift.
    """
    return sum((abs(d) for d in deviations.values()), ZERO) / 2


def max_deviation(deviations: Mapping[str, Decimal]) -> tuple[Optional[str], Decimal]:
    """Return (symbol, |deviation|) for the largest drift.

    Ties go to the alphabetically first symbol. With no non-zero deviation
    the result is (None, 0).
    """
    best_symbol: Optional[str] = None
    best = ZERO
    for symbol in sorted(deviations):
        magnitude = abs(deviations[symbol])
        if magnitude > best:
            best_symbol, best = symbol, magnitude
    return best_symbol, best
