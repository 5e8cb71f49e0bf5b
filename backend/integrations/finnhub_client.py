"""Finnhub quote provider ("/quote" endpoint)."""

import logging
from datetime import datetime, timezone
from typing import Optional

from integrations.exceptions import ProviderParseError, ProviderUnavailableError
from integrations.http_utils import build_http_client, get_json
from integrations.market_data_protocol import Quote
from integrations.parsing_utils import compute_change, parse_decimal, parse_unix_timestamp

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://finnhub.io/api/v1"


class FinnhubClient:
    """Quote provider backed by the Finnhub /quote endpoint.

    Finnhub sends short numeric keys (c, o, h, l, pc, t) and no change
    figures, so change and change percent are derived from the previous close.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        enabled: bool = True,
        connect_timeout: float = 2.5,
        read_timeout: float = 5.0,
    ):
        self._api_key = api_key
        self._enabled = enabled
        self._client = build_http_client(base_url, connect_timeout, read_timeout)

    @classmethod
    def from_settings(cls, settings) -> "FinnhubClient":
        return cls(
            api_key=settings.FINNHUB_API_KEY,
            base_url=settings.FINNHUB_BASE_URL,
            enabled=settings.FINNHUB_ENABLED,
            connect_timeout=settings.PROVIDER_CONNECT_TIMEOUT,
            read_timeout=settings.PROVIDER_READ_TIMEOUT,
        )

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    @property
    def provider_name(self) -> str:
        return "Finnhub"

    def is_available(self) -> bool:
        return self._enabled and bool(self._api_key and self._api_key.strip())

    def get_quote(self, symbol: str) -> Quote:
        """Fetch the latest quote from Finnhub.

        Raises:
            ProviderUnavailableError: No API key or provider disabled.
            ProviderCallError: Network failure or non-2xx status.
            ProviderParseError: Missing current price or a non-positive price
                (Finnhub answers unknown symbols with c=0).
        """
        if not self.is_available():
            raise ProviderUnavailableError(
                "Finnhub is not configured", provider_name=self.provider_name
            )

        logger.info("Finnhub: fetching quote for %s", symbol)
        data = get_json(
            self._client,
            self.provider_name,
            "/quote",
            params={"symbol": symbol, "token": self._api_key},
        )
        return self._parse_quote(symbol, data)

    def _parse_quote(self, symbol: str, data) -> Quote:
        if not isinstance(data, dict) or data.get("c") is None:
            raise ProviderParseError(
                f"Finnhub response has no current price for {symbol}",
                provider_name=self.provider_name,
            )

        price = parse_decimal(data.get("c"))
        if price <= 0:
            raise ProviderParseError(
                f"Finnhub returned a non-positive price for {symbol}: {price}",
                provider_name=self.provider_name,
            )

        previous_close = parse_decimal(data.get("pc"))
        change, change_percent = compute_change(price, previous_close)
        # t=0 means Finnhub has no trade time for the symbol
        timestamp = parse_unix_timestamp(data.get("t") or None) or datetime.now(timezone.utc)

        logger.debug("Finnhub: parsed %s at %s", symbol, price)
        return Quote(
            symbol=symbol,
            price=price,
            open=parse_decimal(data.get("o")),
            high=parse_decimal(data.get("h")),
            low=parse_decimal(data.get("l")),
            close=previous_close,
            change=change,
            change_percent=change_percent,
            last_trading_day=timestamp.date().isoformat(),
            timestamp=timestamp,
            source=self.provider_name,
            previous_close=previous_close,
        )
