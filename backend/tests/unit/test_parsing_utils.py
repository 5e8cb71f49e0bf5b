"""Tests for shared vendor value parsing utilities."""

from datetime import datetime, timezone
from decimal import Decimal

from integrations.parsing_utils import (
    compute_change,
    parse_decimal,
    parse_unix_timestamp,
)


class TestParseDecimal:
    """Tests for parse_decimal."""

    def test_none_returns_zero(self):
        assert parse_decimal(None) == Decimal("0")

    def test_numbers(self):
        assert parse_decimal(150.25) == Decimal("150.25")
        assert parse_decimal(42) == Decimal("42")
        assert parse_decimal(Decimal("1.5")) == Decimal("1.5")

    def test_numeric_string(self):
        assert parse_decimal("150.2500") == Decimal("150.2500")

    def test_percent_suffix(self):
        """Alpha Vantage format: "0.9232%"."""
        assert parse_decimal("0.9232%") == Decimal("0.9232")
        assert parse_decimal("-1.25%") == Decimal("-1.25")

    def test_thousands_separator(self):
        assert parse_decimal("1,234.50") == Decimal("1234.50")

    def test_unparseable_returns_zero(self):
        for value in ("", "   ", "N/A", "n/a", "abc", "-"):
            assert parse_decimal(value) == Decimal("0"), value

    def test_non_finite_returns_zero(self):
        assert parse_decimal(float("nan")) == Decimal("0")
        assert parse_decimal(float("inf")) == Decimal("0")
        assert parse_decimal(Decimal("NaN")) == Decimal("0")

    def test_bool_returns_zero(self):
        assert parse_decimal(True) == Decimal("0")


class TestComputeChange:
    def test_change_and_percent(self):
        assert compute_change(Decimal("110"), Decimal("100")) == (Decimal("10"), Decimal("10"))

    def test_negative_change(self):
        change, percent = compute_change(Decimal("90"), Decimal("100"))
        assert change == Decimal("-10")
        assert percent == Decimal("-10")

    def test_zero_previous_close(self):
        """No division by zero: percent is 0."""
        assert compute_change(Decimal("50"), Decimal("0")) == (Decimal("50"), Decimal("0"))


class TestParseUnixTimestamp:
    def test_int(self):
        assert parse_unix_timestamp(1705352400) == datetime(2024, 1, 15, 21, 0, tzinfo=timezone.utc)

    def test_string(self):
        assert parse_unix_timestamp("1705352400") == datetime(2024, 1, 15, 21, 0, tzinfo=timezone.utc)

    def test_float_truncates(self):
        assert parse_unix_timestamp(1705352400.9) == datetime(2024, 1, 15, 21, 0, tzinfo=timezone.utc)

    def test_invalid_returns_none(self):
        assert parse_unix_timestamp(None) is None
        assert parse_unix_timestamp("soon") is None
        assert parse_unix_timestamp(False) is None
