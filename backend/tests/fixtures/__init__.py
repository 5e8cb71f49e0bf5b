"""Test fixtures and sample data."""
import pytest
from datetime import datetime, timezone
from decimal import Decimal

from models import Holding, Portfolio

# Fixed "now" for every clock-dependent test
FIXED_NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return FIXED_NOW


def make_portfolio(
    values: dict[str, int | str | Decimal],
    price: int | str | Decimal = 100,
    updated_at: datetime = FIXED_NOW,
    average_cost: int | str | Decimal | None = None,
    portfolio_id: str = "pf-1",
) -> Portfolio:
    """Create a portfolio from symbol -> market value, all at one price.

    Args:
        values: Symbol to market value; quantity is value / price.
        price: Current price of every holding.
        updated_at: Last holding change, for time-based strategies.
        average_cost: Cost basis per unit (defaults to the price).
        portfolio_id: Portfolio id.

    Returns:
        The Portfolio
    """
    price = Decimal(str(price))
    cost = price if average_cost is None else Decimal(str(average_cost))
    holdings = tuple(
        Holding(
            symbol=symbol,
            quantity=Decimal(str(value)) / price,
            average_cost=cost,
            current_price=price,
        )
        for symbol, value in values.items()
    )
    return Portfolio(
        id=portfolio_id,
        name="Test portfolio",
        holdings=holdings,
        created_at=datetime(2023, 1, 1, tzinfo=timezone.utc),
        updated_at=updated_at,
    )


def months_ago(months: int) -> datetime:
    """FIXED_NOW shifted back by whole months (day 15, so no clamping)."""
    total = FIXED_NOW.year * 12 + (FIXED_NOW.month - 1) - months
    year, month = divmod(total, 12)
    return FIXED_NOW.replace(year=year, month=month + 1)


@pytest.fixture
def holding():
    """Create a priced sample holding."""
    return Holding(
        symbol="AAPL",
        quantity=Decimal("10"),
        average_cost=Decimal("150.00"),
        current_price=Decimal("175.50"),
    )


@pytest.fixture
def drifted_portfolio():
    """A 60/40 portfolio worth 1,000,000, updated today."""
    return make_portfolio({"AAPL": 600_000, "MSFT": 400_000})


@pytest.fixture
def even_target():
    """A 50/50 target for AAPL and MSFT."""
    return {"AAPL": Decimal("50"), "MSFT": Decimal("50")}
