"""Portfolio model - an owned set of holdings with derived aggregates."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping, Optional

from models.holding import Holding
from models.utils import generate_uuid
from utils.ticker import normalize_symbol

ZERO = Decimal("0")
_PERCENT_SCALE = Decimal("0.0001")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Portfolio:
    """A portfolio aggregate.

    Holdings are unique by symbol. Aggregates are properties over the
    current holding tuple, so they can never go stale; every mutation
    returns a new Portfolio.

    Holding mutations (add/update/remove) advance ``updated_at``, which
    drives time-based rebalancing. Price refreshes do not: a new quote
    is not a change the owner made to the portfolio.
    """

    id: str = field(default_factory=generate_uuid)
    name: str = ""
    holdings: tuple[Holding, ...] = ()
    description: str = ""
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        holdings = tuple(self.holdings)
        symbols = [h.symbol for h in holdings]
        duplicates = sorted({s for s in symbols if symbols.count(s) > 1})
        if duplicates:
            raise ValueError(f"Duplicate holdings in portfolio: {', '.join(duplicates)}")
        object.__setattr__(self, "holdings", holdings)

    # Aggregates

    @property
    def total_value(self) -> Decimal:
        return sum((h.market_value for h in self.holdings), ZERO)

    @property
    def total_cost(self) -> Decimal:
        return sum((h.total_cost for h in self.holdings), ZERO)

    @property
    def total_gain_loss(self) -> Decimal:
        if self.total_cost <= 0:
            return ZERO
        return self.total_value - self.total_cost

    @property
    def total_gain_loss_percent(self) -> Decimal:
        total_cost = self.total_cost
        if total_cost <= 0:
            return ZERO
        return (self.total_gain_loss / total_cost).quantize(_PERCENT_SCALE, ROUND_HALF_UP) * 100

    @property
    def symbols(self) -> list[str]:
        return [h.symbol for h in self.holdings]

    def get_holding(self, symbol: str) -> Optional[Holding]:
        symbol = normalize_symbol(symbol)
        for holding in self.holdings:
            if holding.symbol == symbol:
                return holding
        return None

    # Mutations

    def add_holding(self, holding: Holding, now: Optional[datetime] = None) -> "Portfolio":
        """Return a copy with the holding added.

        Raises:
            ValueError: If the portfolio already holds this symbol.
        """
        if self.get_holding(holding.symbol) is not None:
            raise ValueError(f"Portfolio already holds {holding.symbol}")
        return replace(
            self, holdings=self.holdings + (holding,), updated_at=now or _utcnow()
        )

    def update_holding(
        self,
        symbol: str,
        quantity: Decimal,
        average_cost: Optional[Decimal] = None,
        now: Optional[datetime] = None,
    ) -> "Portfolio":
        """Return a copy with the holding's quantity (and optionally cost) replaced.

        Raises:
            ValueError: If the portfolio does not hold this symbol.
        """
        existing = self._require_holding(symbol)
        updated = existing.with_position(quantity, average_cost)
        return replace(
            self,
            holdings=tuple(updated if h is existing else h for h in self.holdings),
            updated_at=now or _utcnow(),
        )

    def remove_holding(self, symbol: str, now: Optional[datetime] = None) -> "Portfolio":
        existing = self._require_holding(symbol)
        return replace(
            self,
            holdings=tuple(h for h in self.holdings if h is not existing),
            updated_at=now or _utcnow(),
        )

    def with_prices(self, prices: Mapping[str, Decimal]) -> "Portfolio":
        """Return a copy with current prices applied to the matching holdings.

        Symbols in ``prices`` that the portfolio does not hold are ignored.
        """
        normalized = {normalize_symbol(s): p for s, p in prices.items()}
        return replace(
            self,
            holdings=tuple(
                h.with_price(normalized[h.symbol]) if h.symbol in normalized else h
                for h in self.holdings
            ),
        )

    def _require_holding(self, symbol: str) -> Holding:
        holding = self.get_holding(symbol)
        if holding is None:
            raise ValueError(f"Portfolio does not hold {normalize_symbol(symbol)}")
        return holding
