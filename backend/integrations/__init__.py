"""External API integrations.

This package contains:
- Quote provider protocol: Common interface and normalized Quote
- Provider registry: Ordered fallback chain with availability filtering
- Yahoo Finance, Finnhub and Alpha Vantage quote clients
"""

from integrations.market_data_protocol import Quote, QuoteProvider
from integrations.provider_registry import ProviderRegistry, get_provider_registry

__all__ = [
    "ProviderRegistry",
    "Quote",
    "QuoteProvider",
    "get_provider_registry",
]
