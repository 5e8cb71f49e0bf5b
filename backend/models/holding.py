"""Holding model - one security position within a portfolio."""

from dataclasses import dataclass, replace
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from models.utils import to_decimal
from utils.ticker import normalize_symbol

ZERO = Decimal("0")
_PERCENT_SCALE = Decimal("0.0001")


@dataclass(frozen=True)
class Holding:
    """A position in one security.

    Derived values (market value, total cost, gain/loss) are computed from
    the stored fields on every access, so they always reflect the current
    quantity, cost and price. Updates return a new Holding.
    """

    symbol: str
    quantity: Decimal
    average_cost: Decimal
    current_price: Optional[Decimal] = None  # None until the first quote

    def __post_init__(self):
        object.__setattr__(self, "symbol", normalize_symbol(self.symbol))
        object.__setattr__(self, "quantity", to_decimal(self.quantity))
        object.__setattr__(self, "average_cost", to_decimal(self.average_cost))
        if self.current_price is not None:
            object.__setattr__(self, "current_price", to_decimal(self.current_price))
        if self.quantity < 0:
            raise ValueError(f"Quantity for {self.symbol} must not be negative")
        if self.average_cost <= 0:
            raise ValueError(f"Average cost for {self.symbol} must be positive")

    @property
    def is_priced(self) -> bool:
        return self.current_price is not None

    @property
    def market_value(self) -> Decimal:
        if self.current_price is None:
            return ZERO
        return self.quantity * self.current_price

    @property
    def total_cost(self) -> Decimal:
        return self.quantity * self.average_cost

    @property
    def gain_loss(self) -> Decimal:
        if self.current_price is None:
            return ZERO
        return self.market_value - self.total_cost

    @property
    def gain_loss_percent(self) -> Decimal:
        """Gain/loss as a percent of total cost (0 when unpriced or cost is 0)."""
        total_cost = self.total_cost
        if self.current_price is None or total_cost <= 0:
            return ZERO
        return (self.gain_loss / total_cost).quantize(_PERCENT_SCALE, ROUND_HALF_UP) * 100

    def with_price(self, current_price: Optional[Decimal]) -> "Holding":
        return replace(self, current_price=current_price)

    def with_position(
        self, quantity: Decimal, average_cost: Optional[Decimal] = None
    ) -> "Holding":
        """Return a copy with a new quantity and, optionally, a new average cost."""
        if average_cost is None:
            average_cost = self.average_cost
        return replace(self, quantity=quantity, average_cost=average_cost)
