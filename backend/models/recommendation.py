"""Rebalancing recommendation value objects."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

from models.utils import generate_uuid


class ActionType(str, Enum):
    """Kind of trade a rebalancing action calls for."""

    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"

    @property
    def description(self) -> str:
        return {"BUY": "Buy", "SELL": "Sell", "HOLD": "Hold"}[self.value]


@dataclass(frozen=True)
class RebalancingAction:
    """One trade moving a symbol back toward its target weight."""

    symbol: str
    action_type: ActionType
    current_quantity: Decimal
    target_quantity: Decimal
    quantity_change: Decimal  # target - current; negative for sells
    current_price: Decimal
    estimated_amount: Decimal  # |quantity_change| * current_price
    current_weight: Decimal
    target_weight: Decimal
    deviation: Decimal
    priority: int = 0  # 1 = most urgent; assigned from the position in the ordered list


@dataclass(frozen=True)
class TaxImpact:
    """Coarse capital-gains estimate for the SELL side of a recommendation.

    Not tax-lot accounting: gains are measured against each holding's
    average cost and taxed at a single flat rate.
    """

    estimated_capital_gains_tax: Decimal
    realized_gain: Decimal
    tax_rate: Decimal
    tax_efficient_sell_candidates: tuple[str, ...] = ()
    tax_loss_harvesting_opportunities: tuple[str, ...] = ()


def _frozen_mapping(value: Mapping) -> Mapping:
    return MappingProxyType(dict(value))


@dataclass(frozen=True)
class RebalancingRecommendation:
    """The output of one strategy run. Immutable after construction.

    Mapping fields are exposed as read-only views and ``actions`` is a
    tuple, so no caller can edit a recommendation in place.
    """

    portfolio_id: str
    strategy_name: str
    rebalancing_needed: bool
    total_deviation_percent: Decimal
    current_allocation: Mapping[str, Decimal]
    target_allocation: Mapping[str, Decimal]
    deviations: Mapping[str, Decimal]
    actions: tuple[RebalancingAction, ...]
    estimated_transaction_cost: Decimal
    created_at: datetime
    next_review_date: datetime
    priority: int
    notes: str = ""
    tax_impact: Optional[TaxImpact] = None
    strategy_details: Mapping[str, Any] = field(default_factory=dict)
    recommendation_id: str = field(default_factory=generate_uuid)

    def __post_init__(self):
        object.__setattr__(self, "current_allocation", _frozen_mapping(self.current_allocation))
        object.__setattr__(self, "target_allocation", _frozen_mapping(self.target_allocation))
        object.__setattr__(self, "deviations", _frozen_mapping(self.deviations))
        object.__setattr__(self, "strategy_details", _frozen_mapping(self.strategy_details))
        object.__setattr__(self, "actions", tuple(self.actions))

    @property
    def total_trade_amount(self) -> Decimal:
        return sum((a.estimated_amount for a in self.actions), Decimal("0"))
