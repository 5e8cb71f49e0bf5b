"""Unit tests for allocation math."""

from decimal import Decimal

from models import Holding, Portfolio
from services.allocation_calculator import (
    calculate_current_allocation,
    calculate_deviations,
    calculate_weight,
    max_deviation,
    normalize_allocation,
    total_deviation,
)
from tests.fixtures import make_portfolio


class TestCalculateWeight:
    def test_rounds_ratio_before_scaling(self):
        # 1/3 = 0.33333 -> 0.3333 -> 33.33
        assert calculate_weight(Decimal("1"), Decimal("3")) == Decimal("33.33")

    def test_rounds_half_up(self):
        # 0.00005 -> 0.0001
        assert calculate_weight(Decimal("5"), Decimal("100000")) == Decimal("0.01")

    def test_zero_total(self):
        assert calculate_weight(Decimal("10"), Decimal("0")) == Decimal("0")

    def test_missing_total(self):
        assert calculate_weight(Decimal("10"), None) == Decimal("0")


class TestCurrentAllocation:
    def test_weights(self):
        portfolio = make_portfolio({"AAPL": 600, "MSFT": 400})
        assert calculate_current_allocation(portfolio) == {
            "AAPL": Decimal("60"),
            "MSFT": Decimal("40"),
        }

    def test_unpriced_holding_has_zero_weight(self):
        portfolio = Portfolio(
            id="pf",
            holdings=(
                Holding(symbol="AAPL", quantity=Decimal("1"), average_cost=Decimal("1"), current_price=Decimal("100")),
                Holding(symbol="MSFT", quantity=Decimal("1"), average_cost=Decimal("1")),
            ),
        )
        assert calculate_current_allocation(portfolio) == {
            "AAPL": Decimal("100"),
            "MSFT": Decimal("0"),
        }

    def test_empty_portfolio(self):
        assert calculate_current_allocation(Portfolio(id="pf")) == {}

    def test_zero_value_portfolio(self):
        portfolio = Portfolio(
            id="pf",
            holdings=(Holding(symbol="AAPL", quantity=Decimal("0"), average_cost=Decimal("1"), current_price=Decimal("5")),),
        )
        assert calculate_current_allocation(portfolio) == {"AAPL": Decimal("0")}


class TestDeviations:
    def test_union_of_symbols(self):
        deviations = calculate_deviations(
            {"AAPL": Decimal("60"), "TSLA": Decimal("40")},
            {"AAPL": Decimal("50"), "MSFT": Decimal("50")},
        )
        assert deviations == {
            "AAPL": Decimal("10"),
            "MSFT": Decimal("-50"),
            "TSLA": Decimal("40"),
        }
        assert list(deviations) == ["AAPL", "MSFT", "TSLA"]

    def test_total_deviation_is_half_the_absolute_sum(self):
        assert total_deviation({"AAPL": Decimal("10"), "MSFT": Decimal("-10")}) == Decimal("10")

    def test_total_deviation_empty(self):
        assert total_deviation({}) == Decimal("0")


class TestMaxDeviation:
    def test_largest_magnitude(self):
        assert max_deviation({"AAPL": Decimal("3"), "MSFT": Decimal("-7")}) == ("MSFT", Decimal("7"))

    def test_tie_goes_to_first_symbol(self):
        assert max_deviation({"MSFT": Decimal("5"), "AAPL": Decimal("-5")}) == ("AAPL", Decimal("5"))

    def test_no_drift(self):
        assert max_deviation({"AAPL": Decimal("0")}) == (None, Decimal("0"))
        assert max_deviation({}) == (None, Decimal("0"))


def test_normalize_allocation():
    assert normalize_allocation({"aapl": 50, " msft": "50.5"}) == {
        "AAPL": Decimal("50"),
        "MSFT": Decimal("50.5"),
    }
