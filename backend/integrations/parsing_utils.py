"""Shared value parsing utilities for quote provider clients.

Centralises the normalisation every vendor payload needs: locale-formatted
numeric strings, Unix timestamps and derived change figures.
"""

import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

ZERO = Decimal("0")

# Leading numeric portion of a string such as "1.25%" or "-0.53 USD"
_NUMERIC_PREFIX = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def parse_decimal(value) -> Decimal:
    """Parse a vendor field into a Decimal, never raising.

    Handles the shapes providers send:
    - Numbers (Finnhub, Yahoo: 150.25) pass through
    - Numeric strings (Alpha Vantage: "150.2500")
    - Suffixed or locale-formatted strings ("1.25%", "1,234.50")
    - None, "", "N/A" or anything unparseable become 0

    Args:
        value: An int, float, Decimal, string, or None.

    Returns:
        The parsed Decimal, or Decimal("0") if the value is missing or invalid.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, (int, float)):
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            return ZERO
        return result if result.is_finite() else ZERO

    value_str = str(value).strip().replace(",", "")
    if not value_str or value_str.upper() == "N/A":
        return ZERO

    match = _NUMERIC_PREFIX.match(value_str)
    if match is None:
        return ZERO
    try:
        return Decimal(match.group(0))
    except InvalidOperation:
        return ZERO


def compute_change(price: Decimal, previous_close: Decimal) -> tuple[Decimal, Decimal]:
    """Compute absolute and percent change against the previous close.

    Args:
        price: Current price.
        previous_close: Previous session close.

    Returns:
        (change, change_percent). change_percent is 0 when previous_close is 0.
    """
    change = price - previous_close
    if previous_close == 0:
        return change, ZERO
    return change, change / previous_close * 100


def parse_unix_timestamp(value) -> datetime | None:
    """Parse a Unix epoch timestamp to a UTC-aware datetime.

    Args:
        value: An int, float, string-encoded number, or None.

    Returns:
        A timezone-aware UTC datetime, or None if the value cannot be parsed.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (ValueError, TypeError, OSError, OverflowError):
        return None
