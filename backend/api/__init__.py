"""API route handlers."""
from . import market_data, rebalancing

__all__ = ["market_data", "rebalancing"]
