"""Provider registry for quote providers.

The registry is responsible for:
- Holding providers in a fixed priority order
- Filtering to the providers that are available right now
- Looking up an available provider by name
- Reporting per-provider availability for diagnostics

It never caches or touches Quote data; it is purely a selection layer.
"""

import importlib
import logging

from integrations.exceptions import ProviderUnavailableError
from integrations.market_data_protocol import QuoteProvider

logger = logging.getLogger(__name__)

# Each tuple is (provider_name, module_path, class_name), in priority order:
# keyless and permissive first, tightest rate limit last.
PROVIDER_DEFINITIONS: list[tuple[str, str, str]] = [
    ("Yahoo Finance", "integrations.yahoo_finance_client", "YahooFinanceClient"),
    ("Finnhub", "integrations.finnhub_client", "FinnhubClient"),
    ("AlphaVantage", "integrations.alpha_vantage_client", "AlphaVantageClient"),
]


class ProviderRegistry:
    """Ordered registry of quote providers.

    Availability is re-evaluated on every call, because it depends on
    runtime configuration (API keys, enable flags) and, for some
    providers, a live probe.

    Example:
        registry = get_provider_registry()
        for provider in registry.available_providers():
            quote = provider.get_quote("AAPL")
    """

    def __init__(self):
        """Initialize the registry with no providers.

        Call register_provider() to add providers, or use
        initialize_default_providers() to build the default chain.
        """
        self._providers: list[QuoteProvider] = []

    def register_provider(self, provider: QuoteProvider) -> None:
        """Append a provider at the lowest priority.

        A provider with the same name replaces the existing one in place,
        keeping its priority slot.
        """
        for index, existing in enumerate(self._providers):
            if existing.provider_name == provider.provider_name:
                self._providers[index] = provider
                return
        self._providers.append(provider)

    def list_providers(self) -> list[str]:
        """List all registered provider names in priority order."""
        return [p.provider_name for p in self._providers]

    def available_providers(self) -> list[QuoteProvider]:
        """Return the currently available providers in priority order."""
        available = [p for p in self._providers if self._check_available(p)]
        logger.debug(
            "Available providers: %d of %d", len(available), len(self._providers)
        )
        return available

    def get_provider(self, name: str) -> QuoteProvider:
        """Get an available provider by name (case-insensitive).

        Args:
            name: The provider name (e.g., 'Finnhub').

        Returns:
            The provider.

        Raises:
            ProviderUnavailableError: If the provider is not registered or
                not currently available.
        """
        for provider in self._providers:
            if provider.provider_name.lower() == name.lower():
                if self._check_available(provider):
                    return provider
                raise ProviderUnavailableError(
                    f"Provider '{name}' is not available",
                    provider_name=provider.provider_name,
                )
        raise ProviderUnavailableError(f"Provider '{name}' is not configured", provider_name=name)

    def provider_status(self) -> dict[str, bool]:
        """Map each registered provider name to its current availability."""
        return {p.provider_name: self._check_available(p) for p in self._providers}

    def has_available_provider(self) -> bool:
        return any(self._check_available(p) for p in self._providers)

    def initialize_default_providers(self, settings) -> None:
        """Build and register every known provider from settings.

        Providers are registered even when unavailable so the status
        report can show them; the per-call availability filter decides
        whether they are tried.
        """
        for name, module_path, class_name in PROVIDER_DEFINITIONS:
            try:
                module = importlib.import_module(module_path)
                cls = getattr(module, class_name)
                self.register_provider(cls.from_settings(settings))
                logger.debug("Provider registered: %s", name)
            except Exception:
                logger.warning(
                    "Provider failed to initialize: %s", name, exc_info=True
                )

        names = self.list_providers()
        if names:
            logger.info("Quote providers (priority order): %s", ", ".join(names))
        else:
            logger.warning("No quote providers registered")

    @staticmethod
    def _check_available(provider: QuoteProvider) -> bool:
        try:
            return bool(provider.is_available())
        except Exception:
            logger.warning(
                "Availability check failed for %s", provider.provider_name, exc_info=True
            )
            return False


def get_provider_registry(settings=None) -> ProviderRegistry:
    """Create and return a provider registry with the default providers.

    Args:
        settings: Settings to build providers from. Defaults to the
            application settings.

    Returns:
        A ProviderRegistry holding the default fallback chain.
    """
    if settings is None:
        from config import settings

    registry = ProviderRegistry()
    registry.initialize_default_providers(settings)
    return registry
