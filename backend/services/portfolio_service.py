"""Portfolio service - holding maintenance and price refresh."""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Protocol

from models.holding import Holding
from models.portfolio import Portfolio
from services.exceptions import PortfolioNotFoundError
from services.market_data_service import MarketDataService

logger = logging.getLogger(__name__)


class PortfolioRepository(Protocol):
    """Storage boundary for portfolios."""

    def get(self, portfolio_id: str) -> Optional[Portfolio]:
        """Return the portfolio, or None if it does not exist."""
        ...

    def save(self, portfolio: Portfolio) -> None:
        """Insert or replace the portfolio."""
        ...


class InMemoryPortfolioRepository:
    """Dict-backed repository for development and tests."""

    def __init__(self, portfolios: Optional[list[Portfolio]] = None):
        self._portfolios: dict[str, Portfolio] = {p.id: p for p in portfolios or []}

    def get(self, portfolio_id: str) -> Optional[Portfolio]:
        return self._portfolios.get(portfolio_id)

    def save(self, portfolio: Portfolio) -> None:
        self._portfolios[portfolio.id] = portfolio


@dataclass
class PriceRefreshResult:
    """Outcome of refreshing a portfolio's prices."""

    portfolio: Portfolio
    updated: dict[str, Decimal] = field(default_factory=dict)
    failed: dict[str, str] = field(default_factory=dict)


class PortfolioService:
    """Keeps portfolios and their current prices up to date.

    Quote failures never block a holding change: a holding whose price
    cannot be resolved keeps its previous price (or stays unpriced).
    """

    def __init__(
        self,
        repository: PortfolioRepository,
        market_data_service: Optional[MarketDataService] = None,
    ):
        self._repository = repository
        self._market_data_service = market_data_service

    @property
    def market_data_service(self) -> MarketDataService:
        if self._market_data_service is None:
            self._market_data_service = MarketDataService()
        return self._market_data_service

    def get_portfolio(self, portfolio_id: str) -> Portfolio:
        """Load a portfolio.

        Raises:
            PortfolioNotFoundError: If no portfolio has this id.
        """
        portfolio = self._repository.get(portfolio_id)
        if portfolio is None:
            raise PortfolioNotFoundError(portfolio_id)
        return portfolio

    def refresh_prices(self, portfolio: Portfolio) -> PriceRefreshResult:
        """Resolve a quote for every holding and apply the successful prices.

        Symbols are resolved one at a time; one failure does not stop the
        others. Does not persist anything.
        """
        if not portfolio.holdings:
            return PriceRefreshResult(portfolio=portfolio)

        results = self.market_data_service.resolve_quotes(portfolio.symbols)
        updated = {s: r.quote.price for s, r in results.items() if r.ok}
        failed = {s: str(r.error) for s, r in results.items() if not r.ok}

        for symbol, error in failed.items():
            logger.warning("Price refresh failed for %s: %s", symbol, error)

        refreshed = portfolio.with_prices(updated)
        logger.info(
            "Refreshed portfolio %s: %d prices updated, %d failed, total value %s",
            portfolio.id, len(updated), len(failed), refreshed.total_value,
        )
        return PriceRefreshResult(portfolio=refreshed, updated=updated, failed=failed)

    def recalculate_portfolio(self, portfolio_id: str) -> PriceRefreshResult:
        """Refresh a stored portfolio's prices and save it."""
        result = self.refresh_prices(self.get_portfolio(portfolio_id))
        self._repository.save(result.portfolio)
        return result

    def add_holding(
        self, portfolio_id: str, symbol: str, quantity: Decimal, average_cost: Decimal
    ) -> Portfolio:
        """Add a holding, pricing it if a quote is available.

        Raises:
            PortfolioNotFoundError: If no portfolio has this id.
            ValueError: If the portfolio already holds the symbol.
        """
        portfolio = self.get_portfolio(portfolio_id)
        holding = Holding(symbol=symbol, quantity=quantity, average_cost=average_cost)

        result = self.market_data_service.resolve_quotes([holding.symbol])[holding.symbol]
        if result.ok:
            holding = holding.with_price(result.quote.price)
        else:
            logger.warning(
                "Adding %s without a price: %s", holding.symbol, result.error
            )

        portfolio = portfolio.add_holding(holding)
        self._repository.save(portfolio)
        logger.info("Added %s to portfolio %s", holding.symbol, portfolio.id)
        return portfolio

    def update_holding(
        self,
        portfolio_id: str,
        symbol: str,
        quantity: Decimal,
        average_cost: Optional[Decimal] = None,
    ) -> Portfolio:
        portfolio = self.get_portfolio(portfolio_id).update_holding(symbol, quantity, average_cost)
        self._repository.save(portfolio)
        logger.info("Updated %s in portfolio %s", symbol, portfolio.id)
        return portfolio

    def remove_holding(self, portfolio_id: str, symbol: str) -> Portfolio:
        portfolio = self.get_portfolio(portfolio_id).remove_holding(symbol)
        self._repository.save(portfolio)
        logger.info("Removed %s from portfolio %s", symbol, portfolio.id)
        return portfolio
