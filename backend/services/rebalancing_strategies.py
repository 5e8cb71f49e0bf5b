"""Rebalancing strategies.

Three interchangeable algorithms share one skeleton:

1. Compute the current allocation and the deviations from target
2. Apply the strategy's "needs rebalancing" predicate
3. Build one action per symbol whose |deviation| exceeds the strategy's
   inclusion threshold, dropping trades below the minimum trade amount
4. Estimate commission and a coarse tax impact
5. Rank the recommendation's urgency from the total deviation

The variant set is closed (see StrategyName); StrategySelector dispatches
over it.
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any, Callable, Mapping, Optional

from models.portfolio import Portfolio
from models.recommendation import (
    ActionType,
    RebalancingAction,
    RebalancingRecommendation,
    TaxImpact,
)
from services.allocation_calculator import (
    HUNDRED,
    ZERO,
    calculate_current_allocation,
    calculate_deviations,
    max_deviation,
    total_deviation,
)
from utils.dates import add_months, months_between

logger = logging.getLogger(__name__)

AMOUNT_SCALE = Decimal("0.01")
QUANTITY_SCALE = Decimal("0.000001")

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StrategyName(str, Enum):
    """The closed set of rebalancing strategies."""

    THRESHOLD_BASED = "THRESHOLD_BASED"
    TIME_BASED = "TIME_BASED"
    HYBRID = "HYBRID"

    @classmethod
    def parse(cls, name: Optional[str]) -> Optional["StrategyName"]:
        """Case-insensitive lookup; None for a blank or unknown name."""
        if name is None or not name.strip():
            return None
        try:
            return cls(name.strip().upper())
        except ValueError:
            return None


@dataclass(frozen=True)
class TradePolicy:
    """Cost assumptions shared by every strategy."""

    min_trade_amount: Decimal = Decimal("10000")
    commission_rate: Decimal = Decimal("0.0025")
    capital_gains_tax_rate: Decimal = Decimal("0.22")

    @classmethod
    def from_settings(cls, settings) -> "TradePolicy":
        return cls(
            min_trade_amount=settings.MIN_TRADE_AMOUNT,
            commission_rate=settings.COMMISSION_RATE,
            capital_gains_tax_rate=settings.CAPITAL_GAINS_TAX_RATE,
        )


@dataclass(frozen=True)
class StrategyInfo:
    """Human-facing summary of a strategy for the strategy picker."""

    name: str
    description: str
    pros: tuple[str, ...]
    cons: tuple[str, ...]
    suitable_for: tuple[str, ...]
    complexity: str


def calculate_priority(total_deviation_percent: Decimal) -> int:
    """Urgency from 1 (urgent) to 5 (low) for a total deviation."""
    if total_deviation_percent > 20:
        return 1
    if total_deviation_percent > 15:
        return 2
    if total_deviation_percent > 10:
        return 3
    if total_deviation_percent > 5:
        return 4
    return 5


def _parse_decimal_option(configuration: Mapping[str, Any], key: str) -> Optional[Decimal]:
    if key not in configuration:
        return None
    value = Decimal(str(configuration[key]))
    if not value.is_finite():
        raise ValueError(f"{key} must be a finite number")
    return value


def _parse_int_option(configuration: Mapping[str, Any], key: str) -> Optional[int]:
    if key not in configuration:
        return None
    value = configuration[key]
    if isinstance(value, bool):
        raise ValueError(f"{key} must be a whole number")
    return int(str(value))


class RebalancingStrategy:
    """Shared skeleton for the rebalancing strategies.

    Subclasses supply the needs-rebalancing predicate, the action inclusion
    threshold, the action ordering, the next review date, and their
    details and notes. The clock is injectable so time-based behavior is
    testable.
    """

    name: StrategyName
    description: str = ""
    info: StrategyInfo

    def __init__(self, policy: Optional[TradePolicy] = None, clock: Optional[Clock] = None):
        self.policy = policy or TradePolicy()
        self._clock = clock or _utcnow

    def now(self) -> datetime:
        return self._clock()

    # Public operations

    def needs_rebalancing(self, portfolio: Portfolio, target_allocation: Mapping[str, Decimal]) -> bool:
        """Whether the portfolio has drifted enough to rebalance now.

        A portfolio with no value never needs rebalancing.
        """
        if portfolio.total_value <= 0:
            return False
        deviations = calculate_deviations(
            calculate_current_allocation(portfolio), target_allocation
        )
        return self._needs_rebalancing(portfolio, deviations, self.now())

    def generate_recommendation(
        self, portfolio: Portfolio, target_allocation: Mapping[str, Decimal]
    ) -> RebalancingRecommendation:
        now = self.now()
        current = calculate_current_allocation(portfolio)
        deviations = calculate_deviations(current, target_allocation)
        total = total_deviation(deviations)

        needed = portfolio.total_value > 0 and self._needs_rebalancing(portfolio, deviations, now)
        actions = (
            self._build_actions(portfolio, current, target_allocation, deviations)
            if needed
            else []
        )

        logger.info(
            "%s: portfolio %s total deviation %.2f%%, %d actions, needed=%s",
            self.name.value, portfolio.id, total, len(actions), needed,
        )
        return RebalancingRecommendation(
            portfolio_id=portfolio.id,
            strategy_name=self.name.value,
            rebalancing_needed=needed,
            total_deviation_percent=total,
            current_allocation=current,
            target_allocation=target_allocation,
            deviations=deviations,
            actions=tuple(actions),
            estimated_transaction_cost=self.estimate_transaction_cost(actions),
            tax_impact=self.estimate_tax_impact(portfolio, actions),
            created_at=now,
            next_review_date=self._next_review_date(now),
            priority=calculate_priority(total),
            notes=self._notes(portfolio, total, actions, now),
            strategy_details=self._details(portfolio, now),
        )

    def validate_configuration(self, configuration: Mapping[str, Any]) -> bool:
        """Check a strategy configuration against the allowed ranges.

        Keys that are absent are not checked. Unparseable values fail
        validation instead of raising.
        """
        try:
            return self._validate_configuration(configuration)
        except (ArithmeticError, TypeError, ValueError) as exc:
            logger.warning(
                "%s: configuration validation failed: %s", self.name.value, exc
            )
            return False

    def configuration(self) -> dict[str, Any]:
        """The strategy's current tuning knobs."""
        return {}

    # Shared skeleton

    def _build_actions(
        self,
        portfolio: Portfolio,
        current_allocation: Mapping[str, Decimal],
        target_allocation: Mapping[str, Decimal],
        deviations: Mapping[str, Decimal],
    ) -> list[RebalancingAction]:
        """Build the ordered, ranked action list.

        Symbols held but absent from the target have a target of 0.
        """
        threshold = self._inclusion_threshold()
        total_value = portfolio.total_value
        actions: list[RebalancingAction] = []

        for symbol, deviation in deviations.items():
            if abs(deviation) <= threshold:
                continue

            holding = portfolio.get_holding(symbol)
            current_quantity = holding.quantity if holding else ZERO
            current_price = holding.current_price if holding and holding.current_price else ZERO
            target_weight = target_allocation.get(symbol, ZERO)

            target_amount = (total_value * target_weight / HUNDRED).quantize(
                AMOUNT_SCALE, ROUND_HALF_UP
            )
            if current_price > 0:
                target_quantity = (target_amount / current_price).quantize(
                    QUANTITY_SCALE, ROUND_HALF_UP
                )
            else:
                target_quantity = ZERO

            quantity_change = target_quantity - current_quantity
            estimated_amount = abs(quantity_change) * current_price
            if estimated_amount < self.policy.min_trade_amount:
                logger.debug(
                    "%s: skipping %s, trade of %s is below the minimum %s",
                    self.name.value, symbol, estimated_amount, self.policy.min_trade_amount,
                )
                continue

            if quantity_change > 0:
                action_type = ActionType.BUY
            elif quantity_change < 0:
                action_type = ActionType.SELL
            else:
                action_type = ActionType.HOLD

            actions.append(
                RebalancingAction(
                    symbol=symbol,
                    action_type=action_type,
                    current_quantity=current_quantity,
                    target_quantity=target_quantity,
                    quantity_change=quantity_change,
                    current_price=current_price,
                    estimated_amount=estimated_amount,
                    current_weight=current_allocation.get(symbol, ZERO),
                    target_weight=target_weight,
                    deviation=deviation,
                )
            )

        actions.sort(key=self._action_sort_key)
        return [replace(action, priority=rank) for rank, action in enumerate(actions, start=1)]

    def estimate_transaction_cost(self, actions: list[RebalancingAction]) -> Decimal:
        """Flat commission on the summed trade amounts."""
        traded = sum((a.estimated_amount for a in actions), ZERO)
        return (traded * self.policy.commission_rate).quantize(AMOUNT_SCALE, ROUND_HALF_UP)

    def estimate_tax_impact(
        self, portfolio: Portfolio, actions: list[RebalancingAction]
    ) -> Optional[TaxImpact]:
        """Coarse capital-gains estimate for the SELL actions.

        Gains are measured against average cost and netted across sells;
        a net loss owes no tax. Returns None when there is nothing to trade.
        """
        if not actions:
            return None

        realized = ZERO
        efficient_sells: list[str] = []
        for action in actions:
            if action.action_type is not ActionType.SELL:
                continue
            holding = portfolio.get_holding(action.symbol)
            if holding is None:
                continue
            realized += (action.current_price - holding.average_cost) * abs(action.quantity_change)
            if action.current_price <= holding.average_cost:
                efficient_sells.append(action.symbol)

        rate = self.policy.capital_gains_tax_rate
        tax = (max(realized, ZERO) * rate).quantize(AMOUNT_SCALE, ROUND_HALF_UP)
        harvesting = sorted(
            h.symbol for h in portfolio.holdings if h.is_priced and h.gain_loss < 0
        )
        return TaxImpact(
            estimated_capital_gains_tax=tax,
            realized_gain=realized.quantize(AMOUNT_SCALE, ROUND_HALF_UP),
            tax_rate=rate,
            tax_efficient_sell_candidates=tuple(efficient_sells),
            tax_loss_harvesting_opportunities=tuple(harvesting),
        )

    # Variant hooks

    def _needs_rebalancing(
        self, portfolio: Portfolio, deviations: Mapping[str, Decimal], now: datetime
    ) -> bool:
        raise NotImplementedError

    def _inclusion_threshold(self) -> Decimal:
        raise NotImplementedError

    def _action_sort_key(self, action: RebalancingAction):
        raise NotImplementedError

    def _next_review_date(self, now: datetime) -> datetime:
        raise NotImplementedError

    def _details(self, portfolio: Portfolio, now: datetime) -> dict[str, Any]:
        return dict(self.configuration())

    def _notes(
        self,
        portfolio: Portfolio,
        total_deviation_percent: Decimal,
        actions: list[RebalancingAction],
        now: datetime,
    ) -> str:
        return ""

    def _validate_configuration(self, configuration: Mapping[str, Any]) -> bool:
        return True


class ThresholdBasedStrategy(RebalancingStrategy):
    """Rebalance as soon as any symbol drifts past a fixed band.

    The default strategy: reacts to market moves immediately and only
    trades the symbols that are out of band.
    """

    name = StrategyName.THRESHOLD_BASED
    description = (
        "Recommends rebalancing when any asset drifts from its target weight "
        "by more than a set threshold (default 5 percentage points). Reacts "
        "to market moves immediately while keeping trading costs low."
    )
    info = StrategyInfo(
        name="Threshold based",
        description=description,
        pros=("Reacts to market moves immediately", "Efficient risk control", "Minimizes trading costs"),
        cons=("Needs frequent monitoring", "More trades in volatile markets"),
        suitable_for=("Active investors", "Investors who value responsiveness", "Large portfolios"),
        complexity="Medium",
    )

    DEFAULT_THRESHOLD = Decimal("5.0")
    REVIEW_INTERVAL = timedelta(weeks=2)

    def __init__(
        self,
        threshold: Decimal = DEFAULT_THRESHOLD,
        policy: Optional[TradePolicy] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(policy, clock)
        self.threshold = Decimal(threshold)

    def configuration(self) -> dict[str, Any]:
        return {
            "threshold": self.threshold,
            "min_trade_amount": self.policy.min_trade_amount,
        }

    def _needs_rebalancing(self, portfolio, deviations, now) -> bool:
        for symbol, deviation in deviations.items():
            if abs(deviation) > self.threshold:
                logger.info(
                    "Rebalancing needed: %s deviates %.2f%% (threshold %s%%)",
                    symbol, deviation, self.threshold,
                )
                return True
        return False

    def _inclusion_threshold(self) -> Decimal:
        return self.threshold

    def _action_sort_key(self, action):
        return (-abs(action.deviation), action.symbol)

    def _next_review_date(self, now):
        return now + self.REVIEW_INTERVAL

    def _details(self, portfolio, now):
        details = super()._details(portfolio, now)
        details["strategy"] = "threshold_based"
        return details

    def _notes(self, portfolio, total_deviation_percent, actions, now):
        if total_deviation_percent > 15:
            advice = "rebalance now"
        elif total_deviation_percent > 10:
            advice = "review rebalancing"
        else:
            advice = "rebalancing optional"
        return (
            f"Total deviation: {total_deviation_percent:.2f}%, "
            f"symbols to adjust: {len(actions)} - {advice}"
        )

    def _validate_configuration(self, configuration):
        threshold = _parse_decimal_option(configuration, "threshold")
        if threshold is not None and not (1 <= threshold <= 50):
            return False
        min_trade = _parse_decimal_option(configuration, "min_trade_amount")
        if min_trade is not None and min_trade <= 0:
            return False
        return True


class TimeBasedStrategy(RebalancingStrategy):
    """Rebalance on a fixed calendar schedule.

    The period is measured from the portfolio's last holding change. On a
    due date, every symbol drifted past the small floor is brought back
    to target, unless the portfolio barely moved at all.
    """

    name = StrategyName.TIME_BASED
    description = (
        "Rebalances on a fixed schedule (default every 3 months). A "
        "predictable calendar keeps emotion out of trading decisions; "
        "suited to long-term investors."
    )
    info = StrategyInfo(
        name="Time based",
        description=description,
        pros=("Predictable schedule", "Avoids emotional decisions", "Simple to manage"),
        cons=("Can miss market timing", "Slow to react to sharp moves"),
        suitable_for=("Long-term investors", "Hands-off management", "Conservative investors"),
        complexity="Low",
    )

    DEFAULT_PERIOD_MONTHS = 3
    DEFAULT_MIN_DEVIATION = Decimal("2.0")

    def __init__(
        self,
        period_months: int = DEFAULT_PERIOD_MONTHS,
        min_deviation: Decimal = DEFAULT_MIN_DEVIATION,
        policy: Optional[TradePolicy] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(policy, clock)
        self.period_months = period_months
        self.min_deviation = Decimal(min_deviation)

    def configuration(self) -> dict[str, Any]:
        return {
            "rebalancing_period_months": self.period_months,
            "min_deviation_threshold": self.min_deviation,
        }

    def months_since_update(self, portfolio: Portfolio, now: datetime) -> int:
        return months_between(portfolio.updated_at, now)

    def _needs_rebalancing(self, portfolio, deviations, now) -> bool:
        months = self.months_since_update(portfolio, now)
        if months < self.period_months:
            return False

        _, worst = max_deviation(deviations)
        if worst > self.min_deviation:
            logger.info(
                "Scheduled rebalancing needed: %d months since last update, max deviation %.2f%%",
                months, worst,
            )
            return True
        logger.info(
            "Review period elapsed but drift is negligible: max deviation %.2f%%", worst
        )
        return False

    def _inclusion_threshold(self) -> Decimal:
        return self.min_deviation

    def _action_sort_key(self, action):
        return (-action.estimated_amount, action.symbol)

    def _next_review_date(self, now):
        return add_months(now, self.period_months)

    def _details(self, portfolio, now):
        details = super()._details(portfolio, now)
        details["months_since_last_update"] = self.months_since_update(portfolio, now)
        details["strategy"] = "time_based"
        return details

    def _notes(self, portfolio, total_deviation_percent, actions, now):
        months = self.months_since_update(portfolio, now)
        if months < self.period_months:
            status = f"next scheduled rebalance in {self.period_months - months} months"
        elif months >= self.period_months * 2:
            status = "scheduled rebalance is well overdue"
        else:
            status = "scheduled rebalance is due"
        return (
            f"{months} months since last rebalance, "
            f"total deviation: {total_deviation_percent:.2f}%, "
            f"symbols to adjust: {len(actions)} - {status}"
        )

    def _validate_configuration(self, configuration):
        period = _parse_int_option(configuration, "rebalancing_period_months")
        if period is not None and not (1 <= period <= 60):
            return False
        floor = _parse_decimal_option(configuration, "min_deviation_threshold")
        if floor is not None and not (0 <= floor <= 10):
            return False
        return True


class HybridStrategy(RebalancingStrategy):
    """Scheduled reviews plus an emergency trigger for large drift.

    Composes the other two strategies instead of duplicating their math:
    an emergency runs the threshold strategy, a due review runs the
    time-based strategy, and the result is relabelled as hybrid.
    """

    name = StrategyName.HYBRID
    description = (
        "Combines the time-based and threshold-based strategies: a regular "
        "review every 3 months plus an emergency rebalance whenever drift "
        "exceeds 10 points, balancing stability and responsiveness."
    )
    info = StrategyInfo(
        name="Hybrid",
        description=description,
        pros=("Balanced approach", "Flexible response", "Well-timed trades"),
        cons=("More complex logic", "Needs tuning"),
        suitable_for=("Balanced investors", "Tailored management", "Mid-sized portfolios"),
        complexity="High",
    )

    DEFAULT_EMERGENCY_THRESHOLD = Decimal("10.0")
    DEFAULT_REGULAR_THRESHOLD = Decimal("3.0")
    DEFAULT_REVIEW_PERIOD_MONTHS = 3

    TRIGGER_EMERGENCY = "EMERGENCY"
    TRIGGER_REGULAR = "REGULAR"
    TRIGGER_NONE = "NONE"

    def __init__(
        self,
        emergency_threshold: Decimal = DEFAULT_EMERGENCY_THRESHOLD,
        regular_threshold: Decimal = DEFAULT_REGULAR_THRESHOLD,
        review_period_months: int = DEFAULT_REVIEW_PERIOD_MONTHS,
        policy: Optional[TradePolicy] = None,
        clock: Optional[Clock] = None,
        threshold_strategy: Optional[ThresholdBasedStrategy] = None,
        time_strategy: Optional[TimeBasedStrategy] = None,
    ):
        super().__init__(policy, clock)
        self.emergency_threshold = Decimal(emergency_threshold)
        self.regular_threshold = Decimal(regular_threshold)
        self.review_period_months = review_period_months
        self.threshold_strategy = threshold_strategy or ThresholdBasedStrategy(
            policy=self.policy, clock=self._clock
        )
        self.time_strategy = time_strategy or TimeBasedStrategy(
            period_months=review_period_months, policy=self.policy, clock=self._clock
        )

    def configuration(self) -> dict[str, Any]:
        return {
            "review_period_months": self.review_period_months,
            "regular_threshold": self.regular_threshold,
            "emergency_threshold": self.emergency_threshold,
        }

    def is_emergency(self, deviations: Mapping[str, Decimal]) -> bool:
        return any(abs(d) > self.emergency_threshold for d in deviations.values())

    def is_regular_review_due(
        self, portfolio: Portfolio, deviations: Mapping[str, Decimal], now: datetime
    ) -> bool:
        if months_between(portfolio.updated_at, now) < self.review_period_months:
            return False
        return any(abs(d) > self.regular_threshold for d in deviations.values())

    def _needs_rebalancing(self, portfolio, deviations, now) -> bool:
        if self.is_emergency(deviations):
            logger.info(
                "Hybrid: emergency rebalancing needed (drift above %s%%)",
                self.emergency_threshold,
            )
            return True
        if self.is_regular_review_due(portfolio, deviations, now):
            logger.info(
                "Hybrid: regular rebalancing needed (review due, drift above %s%%)",
                self.regular_threshold,
            )
            return True
        return False

    def generate_recommendation(
        self, portfolio: Portfolio, target_allocation: Mapping[str, Decimal]
    ) -> RebalancingRecommendation:
        now = self.now()
        current = calculate_current_allocation(portfolio)
        deviations = calculate_deviations(current, target_allocation)
        has_value = portfolio.total_value > 0

        if has_value and self.is_emergency(deviations):
            delegate = self.threshold_strategy.generate_recommendation(portfolio, target_allocation)
            return self._relabel(
                delegate, self.TRIGGER_EMERGENCY, "Emergency rebalance for large drift"
            )
        if has_value and self.is_regular_review_due(portfolio, deviations, now):
            delegate = self.time_strategy.generate_recommendation(portfolio, target_allocation)
            return self._relabel(delegate, self.TRIGGER_REGULAR, "Scheduled review rebalance")

        logger.info("Hybrid: no rebalancing needed for portfolio %s", portfolio.id)
        details = self.configuration()
        details.update(
            strategy="hybrid",
            trigger_type=self.TRIGGER_NONE,
            reason="No rebalancing needed",
        )
        return RebalancingRecommendation(
            portfolio_id=portfolio.id,
            strategy_name=self.name.value,
            rebalancing_needed=False,
            total_deviation_percent=total_deviation(deviations),
            current_allocation=current,
            target_allocation=target_allocation,
            deviations=deviations,
            actions=(),
            estimated_transaction_cost=ZERO,
            created_at=now,
            next_review_date=add_months(now, self.review_period_months),
            priority=5,
            notes="Portfolio is within its target ranges; no rebalancing needed.",
            strategy_details=details,
        )

    def _relabel(
        self, recommendation: RebalancingRecommendation, trigger_type: str, reason: str
    ) -> RebalancingRecommendation:
        details = dict(recommendation.strategy_details)
        details.update(self.configuration())
        details.update(strategy="hybrid", trigger_type=trigger_type, reason=reason)
        return replace(
            recommendation,
            strategy_name=self.name.value,
            strategy_details=details,
            notes=f"{reason} - {recommendation.notes}",
        )

    def _validate_configuration(self, configuration):
        period = _parse_int_option(configuration, "review_period_months")
        if period is not None and not (1 <= period <= 12):
            return False
        regular = _parse_decimal_option(configuration, "regular_threshold")
        if regular is not None and not (1 <= regular <= 10):
            return False
        emergency = _parse_decimal_option(configuration, "emergency_threshold")
        if emergency is not None and not (5 <= emergency <= 30):
            return False
        return True
