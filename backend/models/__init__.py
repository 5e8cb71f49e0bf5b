"""Domain models: portfolios and rebalancing recommendations."""

from .holding import Holding
from .portfolio import Portfolio
from .recommendation import ActionType, RebalancingAction, RebalancingRecommendation, TaxImpact
from .utils import generate_uuid, to_decimal

__all__ = [
    "ActionType",
    "Holding",
    "Portfolio",
    "RebalancingAction",
    "RebalancingRecommendation",
    "TaxImpact",
    "generate_uuid",
    "to_decimal",
]
