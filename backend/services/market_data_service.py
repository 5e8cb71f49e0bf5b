"""Market data service: quote resolution across the provider fallback chain."""

import logging
from dataclasses import dataclass
from typing import Optional

from integrations.exceptions import (
    AllProvidersExhaustedError,
    NoProviderAvailableError,
    ProviderParseError,
    QuoteResolutionError,
)
from integrations.market_data_protocol import Quote
from integrations.provider_registry import ProviderRegistry

logger = logging.getLogger(__name__)


@dataclass
class QuoteResult:
    """Outcome of resolving one symbol in a batch."""

    symbol: str
    quote: Optional[Quote] = None
    error: Optional[QuoteResolutionError] = None

    @property
    def ok(self) -> bool:
        return self.quote is not None


class MarketDataService:
    """Resolves quotes by trying the registry's available providers in order.

    Fallback is sequential and short-circuiting: the first provider that
    returns a positive price wins and the remaining providers are not
    called. A failed provider is never retried within one resolution, so
    worst-case latency is bounded by the sum of the provider timeouts.
    """

    def __init__(self, registry: Optional[ProviderRegistry] = None):
        """Initialize with an optional registry for dependency injection.

        Args:
            registry: Provider registry. If None, the default registry is
                     built from settings on first use.
        """
        self._registry = registry

    @property
    def registry(self) -> ProviderRegistry:
        """Get the provider registry, creating it if not provided."""
        if self._registry is None:
            from integrations.provider_registry import get_provider_registry

            self._registry = get_provider_registry()
        return self._registry

    def resolve_quote(self, symbol: str) -> Quote:
        """Resolve a quote from the first provider that can serve it.

        Args:
            symbol: Ticker symbol, passed to providers unchanged.

        Returns:
            The first usable Quote.

        Raises:
            NoProviderAvailableError: No provider is currently available.
            AllProvidersExhaustedError: Every available provider failed.
                The final provider's error is chained as ``__cause__``.
        """
        providers = self.registry.available_providers()
        if not providers:
            logger.error("No quote provider available for %s", symbol)
            raise NoProviderAvailableError(
                f"No quote provider is available for {symbol}", symbol=symbol
            )

        failures: dict[str, str] = {}
        last_error: Exception | None = None

        for provider in providers:
            name = provider.provider_name
            try:
                quote = provider.get_quote(symbol)
            except ProviderParseError as exc:
                logger.warning(
                    "Quote provider %s could not parse the response for %s "
                    "(vendor contract may have changed): %s",
                    name, symbol, exc,
                )
                failures[name] = str(exc)
                last_error = exc
                continue
            except Exception as exc:
                logger.warning(
                    "Quote provider %s failed for %s: %s", name, symbol, exc
                )
                failures[name] = str(exc)
                last_error = exc
                continue

            if quote is None or quote.price <= 0:
                price = None if quote is None else quote.price
                logger.warning(
                    "Quote provider %s returned an unusable price for %s: %s",
                    name, symbol, price,
                )
                last_error = ProviderParseError(
                    f"{name} returned an unusable price for {symbol}: {price}",
                    provider_name=name,
                )
                failures[name] = str(last_error)
                continue

            logger.info("Resolved %s at %s from %s", symbol, quote.price, name)
            return quote

        logger.error(
            "All %d quote providers failed for %s", len(providers), symbol
        )
        raise AllProvidersExhaustedError(
            f"All quote providers failed for {symbol}",
            symbol=symbol,
            last_error=last_error,
            failures=failures,
        ) from last_error

    def resolve_quotes(self, symbols: list[str]) -> dict[str, QuoteResult]:
        """Resolve each symbol independently.

        A failure for one symbol never aborts the others; the caller
        decides how to aggregate partial failures. Duplicate symbols are
        resolved once.

        Returns:
            Dict mapping each symbol to its QuoteResult, in input order.
        """
        results: dict[str, QuoteResult] = {}
        for symbol in symbols:
            if symbol in results:
                continue
            try:
                results[symbol] = QuoteResult(symbol=symbol, quote=self.resolve_quote(symbol))
            except QuoteResolutionError as exc:
                results[symbol] = QuoteResult(symbol=symbol, error=exc)

        failed = sum(1 for r in results.values() if not r.ok)
        if failed:
            logger.warning("Batch quote: %d of %d symbols failed", failed, len(results))
        return results

    def provider_status(self) -> dict[str, bool]:
        """Map each registered provider to its current availability."""
        return self.registry.provider_status()

    def log_provider_status(self) -> None:
        for name, available in self.provider_status().items():
            logger.info(
                "Quote provider %s: %s", name, "available" if available else "unavailable"
            )

    def is_service_available(self) -> bool:
        """True if at least one provider can currently serve quotes."""
        return self.registry.has_available_provider()
