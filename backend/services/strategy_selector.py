"""Strategy selection by explicit name or by investor profile."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from services.rebalancing_strategies import (
    Clock,
    HybridStrategy,
    RebalancingStrategy,
    StrategyName,
    ThresholdBasedStrategy,
    TimeBasedStrategy,
    TradePolicy,
)

logger = logging.getLogger(__name__)

DEFAULT_STRATEGY = StrategyName.THRESHOLD_BASED


@dataclass(frozen=True)
class SelectionPolicy:
    """Breakpoints for recommending a strategy from an investor profile.

    Risk tolerance runs from 1 (conservative) to 5 (aggressive); the
    investment horizon is in months.
    """

    small_portfolio_cutoff: Decimal = Decimal("100000000")
    conservative_risk_max: int = 2
    long_horizon_months: int = 60
    moderate_risk_max: int = 3
    aggressive_risk_min: int = 4

    @classmethod
    def from_settings(cls, settings) -> "SelectionPolicy":
        return cls(
            small_portfolio_cutoff=settings.STRATEGY_SMALL_PORTFOLIO_CUTOFF,
            conservative_risk_max=settings.STRATEGY_CONSERVATIVE_RISK_MAX,
            long_horizon_months=settings.STRATEGY_LONG_HORIZON_MONTHS,
            moderate_risk_max=settings.STRATEGY_MODERATE_RISK_MAX,
            aggressive_risk_min=settings.STRATEGY_AGGRESSIVE_RISK_MIN,
        )


class StrategySelector:
    """Resolves strategy names to strategy instances.

    Strategies hold no per-call state, so one instance of each is built
    up front and reused. The hybrid strategy shares the threshold and
    time-based instances it delegates to.
    """

    def __init__(
        self,
        policy: Optional[SelectionPolicy] = None,
        trade_policy: Optional[TradePolicy] = None,
        clock: Optional[Clock] = None,
    ):
        self.policy = policy or SelectionPolicy()
        threshold = ThresholdBasedStrategy(policy=trade_policy, clock=clock)
        time_based = TimeBasedStrategy(policy=trade_policy, clock=clock)
        hybrid = HybridStrategy(
            policy=trade_policy,
            clock=clock,
            threshold_strategy=threshold,
            time_strategy=time_based,
        )
        self._strategies: dict[StrategyName, RebalancingStrategy] = {
            StrategyName.THRESHOLD_BASED: threshold,
            StrategyName.TIME_BASED: time_based,
            StrategyName.HYBRID: hybrid,
        }

    def get(self, name: StrategyName) -> RebalancingStrategy:
        return self._strategies[name]

    def all_strategies(self) -> dict[StrategyName, RebalancingStrategy]:
        return dict(self._strategies)

    def select(self, name: Optional[str] = None) -> RebalancingStrategy:
        """Pick a strategy by name (case-insensitive).

        A blank or unknown name falls back to the threshold-based strategy.
        """
        if name is None or not name.strip():
            logger.info("No strategy given, using %s", DEFAULT_STRATEGY.value)
            return self.get(DEFAULT_STRATEGY)

        parsed = StrategyName.parse(name)
        if parsed is None:
            logger.warning(
                "Unknown rebalancing strategy %r, using %s", name, DEFAULT_STRATEGY.value
            )
            return self.get(DEFAULT_STRATEGY)

        logger.debug("Selected rebalancing strategy %s", parsed.value)
        return self.get(parsed)

    def recommend(
        self, portfolio_value: Decimal, risk_tolerance: int, investment_horizon: int
    ) -> StrategyName:
        """Recommend a strategy for an investor profile.

        Rules are checked in order:
        - Small portfolio and conservative investor: time based
        - Long horizon and no more than moderate risk: hybrid
        - Aggressive investor: threshold based
        - Anything else: hybrid
        """
        p = self.policy
        logger.info(
            "Recommending strategy for value=%s risk=%d horizon=%d months",
            portfolio_value, risk_tolerance, investment_horizon,
        )

        if portfolio_value < p.small_portfolio_cutoff and risk_tolerance <= p.conservative_risk_max:
            return StrategyName.TIME_BASED
        if investment_horizon >= p.long_horizon_months and risk_tolerance <= p.moderate_risk_max:
            return StrategyName.HYBRID
        if risk_tolerance >= p.aggressive_risk_min:
            return StrategyName.THRESHOLD_BASED
        return StrategyName.HYBRID
