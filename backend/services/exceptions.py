"""Errors raised by the portfolio and rebalancing services."""


class InvalidAllocationError(ValueError):
    """Target allocation is empty, does not sum to 100 (+/- 1), or has an out-of-range weight."""

    pass


class PortfolioNotFoundError(LookupError):
    """No portfolio exists with the requested id."""

    def __init__(self, portfolio_id: str):
        self.portfolio_id = portfolio_id
        super().__init__(f"Portfolio not found: {portfolio_id}")
