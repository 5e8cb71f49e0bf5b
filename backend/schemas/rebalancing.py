"""Pydantic schemas for rebalancing endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field


class HoldingPayload(BaseModel):
    """A holding as sent by the client."""

    symbol: str = Field(min_length=1)
    quantity: Decimal = Field(ge=0)
    average_cost: Decimal = Field(gt=0)
    current_price: Optional[Decimal] = Field(default=None, ge=0)


class PortfolioPayload(BaseModel):
    """A portfolio with current prices applied."""

    id: str = Field(min_length=1)
    name: str = ""
    holdings: list[HoldingPayload] = []
    updated_at: Optional[datetime] = None


class RebalancingRequest(BaseModel):
    """Request body for recommendation and needs-rebalancing checks."""

    portfolio: PortfolioPayload
    target_allocation: dict[str, Decimal]
    strategy_name: Optional[str] = None


class QuickAnalysisRequest(BaseModel):
    portfolio: PortfolioPayload
    target_allocation: dict[str, Decimal]


class StrategyRecommendationRequest(BaseModel):
    """Investor profile for a strategy recommendation.

    Risk tolerance runs from 1 (conservative) to 5 (aggressive). Missing
    values default to 3 and 36 months.
    """

    portfolio: PortfolioPayload
    risk_tolerance: Optional[int] = Field(default=None, ge=1, le=5)
    investment_horizon: Optional[int] = Field(default=None, ge=1)


class RebalancingActionResponse(BaseModel):
    symbol: str
    action_type: str
    current_quantity: Decimal
    target_quantity: Decimal
    quantity_change: Decimal
    current_price: Decimal
    estimated_amount: Decimal
    current_weight: Decimal
    target_weight: Decimal
    deviation: Decimal
    priority: int


class TaxImpactResponse(BaseModel):
    estimated_capital_gains_tax: Decimal
    realized_gain: Decimal
    tax_rate: Decimal
    tax_efficient_sell_candidates: list[str]
    tax_loss_harvesting_opportunities: list[str]


class RebalancingRecommendationResponse(BaseModel):
    """A rebalancing recommendation."""

    recommendation_id: str
    portfolio_id: str
    strategy_name: str
    rebalancing_needed: bool
    total_deviation_percent: Decimal
    current_allocation: dict[str, Decimal]
    target_allocation: dict[str, Decimal]
    deviations: dict[str, Decimal]
    actions: list[RebalancingActionResponse]
    total_trade_amount: Decimal
    estimated_transaction_cost: Decimal
    tax_impact: Optional[TaxImpactResponse] = None
    created_at: datetime
    next_review_date: datetime
    priority: int
    notes: str
    strategy_details: dict[str, Any]


class NeedsRebalancingResponse(BaseModel):
    portfolio_id: str
    strategy_name: str
    rebalancing_needed: bool


class QuickAnalysisResponse(BaseModel):
    current_allocation: dict[str, Decimal]
    target_allocation: dict[str, Decimal]
    deviations: dict[str, Decimal]
    max_deviation: Decimal
    max_deviation_symbol: Optional[str] = None
    needs_attention: bool


class StrategyInfoResponse(BaseModel):
    name: str
    description: str
    pros: list[str]
    cons: list[str]
    suitable_for: list[str]
    complexity: str


class StrategyRecommendationResponse(BaseModel):
    recommended_strategy: str
    strategy_description: str
    portfolio_value: Decimal
    risk_tolerance: int
    investment_horizon: int
    all_strategies: dict[str, StrategyInfoResponse]
