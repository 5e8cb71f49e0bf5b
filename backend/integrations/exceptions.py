"""Typed exception hierarchy for quote provider errors.

Provides structured exceptions for differentiated error handling
(disabled providers vs transient network errors vs vendor payload changes),
plus the terminal errors raised once the whole fallback chain has been tried.
"""


class ProviderError(Exception):
    """Base exception for all provider-related errors.

    Carries the provider name so callers can identify which provider failed.
    """

    def __init__(self, message: str, provider_name: str = ""):
        self.provider_name = provider_name
        super().__init__(message)


class ProviderUnavailableError(ProviderError):
    """Provider is disabled or has no credentials configured."""

    pass


class ProviderCallError(ProviderError):
    """Network failures or non-2xx responses from the provider API.

    ``status_code`` is None for transport-level failures (timeouts, DNS,
    connection refused).
    """

    def __init__(
        self,
        message: str,
        provider_name: str = "",
        status_code: int | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, provider_name)

    @property
    def retriable(self) -> bool:
        """Transport failures, 429 (rate limit) and 5xx errors are retriable."""
        if self.status_code is None:
            return True
        return self.status_code == 429 or self.status_code >= 500


class ProviderParseError(ProviderError):
    """Malformed or unexpected response from the provider.

    Usually means the vendor changed its payload shape, or returned a
    quote with no usable price.
    """

    pass


class QuoteResolutionError(Exception):
    """A quote could not be resolved from any provider."""

    def __init__(self, message: str, symbol: str = ""):
        self.symbol = symbol
        super().__init__(message)


class NoProviderAvailableError(QuoteResolutionError):
    """No provider is currently available to serve the request."""

    pass


class AllProvidersExhaustedError(QuoteResolutionError):
    """Every available provider was tried and none returned a usable quote.

    ``last_error`` is the failure observed on the final provider;
    ``failures`` maps each attempted provider name to its error message.
    """

    def __init__(
        self,
        message: str,
        symbol: str = "",
        last_error: Exception | None = None,
        failures: dict[str, str] | None = None,
    ):
        self.last_error = last_error
        self.failures = failures or {}
        super().__init__(message, symbol)
