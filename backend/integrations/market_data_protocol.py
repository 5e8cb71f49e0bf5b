"""Market data provider protocol definitions.

Defines the interface for quote providers (live price feeds) and the
normalized Quote every provider maps its vendor payload to.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Protocol


@dataclass(frozen=True)
class Quote:
    """A normalized quote snapshot from one provider.

    Transient: produced fresh per call and never persisted by the core.
    """

    symbol: str  # Caller's symbol, never the vendor-suffixed one
    price: Decimal
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    change: Decimal
    change_percent: Decimal
    last_trading_day: str  # ISO date, e.g. "2024-01-15"
    timestamp: datetime
    source: str  # Provider name, e.g. "Finnhub"
    previous_close: Decimal = Decimal("0")


class QuoteProvider(Protocol):
    """Protocol for quote providers.

    Implementations fetch a current quote from an external source.
    """

    @property
    def provider_name(self) -> str:
        """Return the provider name (e.g., 'Yahoo Finance')."""
        ...

    def is_available(self) -> bool:
        """Check whether the provider can currently serve requests.

        Must be cheap: typically "enabled and an API key is configured".
        """
        ...

    def get_quote(self, symbol: str) -> Quote:
        """Fetch the current quote for a symbol.

        Raises:
            ProviderUnavailableError: Provider disabled or not configured.
            ProviderCallError: Network failure or non-2xx response.
            ProviderParseError: Payload could not be normalized, or the
                normalized price is not positive.
        """
        ...
