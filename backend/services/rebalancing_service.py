"""Rebalancing service - entry point for rebalancing recommendations."""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from models.portfolio import Portfolio
from models.recommendation import RebalancingRecommendation
from models.utils import to_decimal
from services.allocation_calculator import (
    ALLOCATION_TOLERANCE,
    HUNDRED,
    ZERO,
    calculate_current_allocation,
    max_deviation,
)
from services.exceptions import InvalidAllocationError
from services.rebalancing_strategies import StrategyInfo, StrategyName, TradePolicy
from services.strategy_selector import SelectionPolicy, StrategySelector
from utils.ticker import normalize_symbol

logger = logging.getLogger(__name__)

DEFAULT_RISK_TOLERANCE = 3
DEFAULT_INVESTMENT_HORIZON_MONTHS = 36


@dataclass
class QuickAnalysis:
    """Deviation summary without building any actions."""

    current_allocation: dict[str, Decimal]
    target_allocation: dict[str, Decimal]
    deviations: dict[str, Decimal]
    max_deviation: Decimal
    max_deviation_symbol: Optional[str]
    needs_attention: bool


@dataclass
class StrategyRecommendation:
    """Recommended strategy for a portfolio and investor profile."""

    recommended_strategy: StrategyName
    strategy_description: str
    portfolio_value: Decimal
    risk_tolerance: int
    investment_horizon: int
    all_strategies: dict[str, StrategyInfo] = field(default_factory=dict)


def validate_target_allocation(target_allocation: Optional[Mapping[str, Any]]) -> dict[str, Decimal]:
    """Validate a target allocation and return it normalized.

    Valid iff it is non-empty, every weight is within [0, 100], and the
    weights sum to 100 within one percentage point.

    Returns:
        The allocation with uppercase symbols and Decimal weights.

    Raises:
        InvalidAllocationError: If any rule is broken.
    """
    if not target_allocation:
        raise InvalidAllocationError("Target allocation is empty")

    normalized: dict[str, Decimal] = {}
    for symbol, weight in target_allocation.items():
        try:
            key = normalize_symbol(symbol)
            value = to_decimal(weight)
        except (InvalidOperation, TypeError, ValueError) as exc:
            raise InvalidAllocationError(f"Invalid allocation entry {symbol!r}: {weight!r}") from exc
        if not value.is_finite():
            raise InvalidAllocationError(f"Invalid allocation weight for {key}: {weight!r}")
        if key in normalized:
            raise InvalidAllocationError(f"Duplicate symbol in target allocation: {key}")
        if value < 0 or value > HUNDRED:
            raise InvalidAllocationError(
                f"Allocation weight for {key} must be between 0 and 100, got {value}"
            )
        normalized[key] = value

    total = sum(normalized.values(), ZERO)
    if abs(total - HUNDRED) > ALLOCATION_TOLERANCE:
        raise InvalidAllocationError(
            f"Target allocation must sum to 100%, got {total:.2f}%"
        )
    return normalized


class RebalancingService:
    """Validates input, picks a strategy and runs it.

    One recommendation per call; nothing is retried or cached.
    """

    def __init__(
        self,
        selector: Optional[StrategySelector] = None,
        attention_threshold: Decimal = Decimal("5.0"),
    ):
        self.selector = selector or StrategySelector()
        self.attention_threshold = attention_threshold

    @classmethod
    def from_settings(cls, settings) -> "RebalancingService":
        selector = StrategySelector(
            policy=SelectionPolicy.from_settings(settings),
            trade_policy=TradePolicy.from_settings(settings),
        )
        return cls(selector, attention_threshold=settings.QUICK_ANALYSIS_ATTENTION_THRESHOLD)

    def recommend(
        self,
        portfolio: Portfolio,
        target_allocation: Mapping[str, Any],
        strategy_name: Optional[str] = None,
    ) -> RebalancingRecommendation:
        """Generate a rebalancing recommendation.

        Args:
            portfolio: Portfolio with current prices applied.
            target_allocation: Symbol -> target percent.
            strategy_name: THRESHOLD_BASED, TIME_BASED or HYBRID
                (case-insensitive). Defaults to THRESHOLD_BASED.

        Raises:
            InvalidAllocationError: Before any strategy runs.
        """
        target = validate_target_allocation(target_allocation)
        strategy = self.selector.select(strategy_name)

        logger.info(
            "Generating %s recommendation for portfolio %s",
            strategy.name.value, portfolio.id,
        )
        recommendation = strategy.generate_recommendation(portfolio, target)
        logger.info(
            "Recommendation %s: rebalancing needed=%s, %d actions",
            recommendation.recommendation_id,
            recommendation.rebalancing_needed,
            len(recommendation.actions),
        )
        return recommendation

    def needs_rebalancing(
        self,
        portfolio: Portfolio,
        target_allocation: Mapping[str, Any],
        strategy_name: Optional[str] = None,
    ) -> bool:
        target = validate_target_allocation(target_allocation)
        needed = self.selector.select(strategy_name).needs_rebalancing(portfolio, target)
        logger.info("Portfolio %s needs rebalancing: %s", portfolio.id, needed)
        return needed

    def quick_analysis(
        self, portfolio: Portfolio, target_allocation: Mapping[str, Any]
    ) -> QuickAnalysis:
        """Summarize drift for the symbols in the target allocation.

        Needs attention when the largest drift exceeds the attention
        threshold (5 points by default).
        """
        target = validate_target_allocation(target_allocation)
        current = calculate_current_allocation(portfolio)
        deviations = {
            symbol: current.get(symbol, ZERO) - weight for symbol, weight in target.items()
        }
        symbol, worst = max_deviation(deviations)
        return QuickAnalysis(
            current_allocation=current,
            target_allocation=target,
            deviations=deviations,
            max_deviation=worst,
            max_deviation_symbol=symbol,
            needs_attention=worst > self.attention_threshold,
        )

    def recommend_strategy(
        self,
        portfolio_value: Decimal,
        risk_tolerance: int = DEFAULT_RISK_TOLERANCE,
        investment_horizon: int = DEFAULT_INVESTMENT_HORIZON_MONTHS,
    ) -> StrategyName:
        return self.selector.recommend(portfolio_value, risk_tolerance, investment_horizon)

    def strategy_recommendation(
        self,
        portfolio: Portfolio,
        risk_tolerance: Optional[int] = None,
        investment_horizon: Optional[int] = None,
    ) -> StrategyRecommendation:
        """Recommend a strategy for a portfolio, with the full strategy catalogue.

        Missing profile values default to moderate risk (3) and a
        36-month horizon.
        """
        if risk_tolerance is None:
            risk_tolerance = DEFAULT_RISK_TOLERANCE
        if investment_horizon is None:
            investment_horizon = DEFAULT_INVESTMENT_HORIZON_MONTHS

        value = portfolio.total_value
        name = self.recommend_strategy(value, risk_tolerance, investment_horizon)
        return StrategyRecommendation(
            recommended_strategy=name,
            strategy_description=self.selector.get(name).description,
            portfolio_value=value,
            risk_tolerance=risk_tolerance,
            investment_horizon=investment_horizon,
            all_strategies=self.strategy_infos(),
        )

    def strategy_infos(self) -> dict[str, StrategyInfo]:
        return {
            name.value: strategy.info
            for name, strategy in self.selector.all_strategies().items()
        }

    def validate_strategy_configuration(
        self, strategy_name: str, configuration: Mapping[str, Any]
    ) -> bool:
        """Validate a configuration for a named strategy.

        Raises:
            ValueError: If the strategy name is unknown.
        """
        name = StrategyName.parse(strategy_name)
        if name is None:
            raise ValueError(f"Unknown rebalancing strategy: {strategy_name}")
        return self.selector.get(name).validate_configuration(configuration)
