"""Alpha Vantage quote provider ("GLOBAL_QUOTE" endpoint)."""

import logging
from datetime import datetime, timezone
from typing import Optional

from integrations.exceptions import ProviderParseError, ProviderUnavailableError
from integrations.http_utils import build_http_client, get_json
from integrations.market_data_protocol import Quote
from integrations.parsing_utils import compute_change, parse_decimal

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.alphavantage.co"
QUOTE_PATH = "/query"

# Numbered labels used inside the "Global Quote" object
_FIELD_OPEN = "02. open"
_FIELD_HIGH = "03. high"
_FIELD_LOW = "04. low"
_FIELD_PRICE = "05. price"
_FIELD_LATEST_TRADING_DAY = "07. latest trading day"
_FIELD_PREVIOUS_CLOSE = "08. previous close"
_FIELD_CHANGE = "09. change"
_FIELD_CHANGE_PERCENT = "10. change percent"


class AlphaVantageClient:
    """Quote provider backed by the Alpha Vantage GLOBAL_QUOTE function.

    The free tier allows only a handful of requests per day, so this
    provider sits last in the fallback chain.
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
    def from_settings(cls, settings) -> "AlphaVantageClient":
        return cls(
            api_key=settings.ALPHA_VANTAGE_API_KEY,
            base_url=settings.ALPHA_VANTAGE_BASE_URL,
            enabled=settings.ALPHA_VANTAGE_ENABLED,
            connect_timeout=settings.PROVIDER_CONNECT_TIMEOUT,
            read_timeout=settings.PROVIDER_READ_TIMEOUT,
        )

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    @property
    def provider_name(self) -> str:
        return "AlphaVantage"

    def is_available(self) -> bool:
        return self._enabled and bool(self._api_key and self._api_key.strip())

    def get_quote(self, symbol: str) -> Quote:
        """Fetch the latest quote from Alpha Vantage.

        Args:
            symbol: Ticker symbol.

        Returns:
            The normalized Quote.

        Raises:
            ProviderUnavailableError: No API key or provider disabled.
            ProviderCallError: Network failure or non-2xx status.
            ProviderParseError: No "Global Quote" payload or no usable price.
        """
        if not self.is_available():
            raise ProviderUnavailableError(
                "Alpha Vantage is not configured", provider_name=self.provider_name
            )

        logger.info("Alpha Vantage: fetching quote for %s", symbol)
        data = get_json(
            self._client,
            self.provider_name,
            QUOTE_PATH,
            params={"function": "GLOBAL_QUOTE", "symbol": symbol, "apikey": self._api_key},
        )
        return self._parse_quote(symbol, data)

    def _parse_quote(self, symbol: str, data) -> Quote:
        global_quote = data.get("Global Quote") if isinstance(data, dict) else None
        if not isinstance(global_quote, dict) or not global_quote:
            # Rate-limit and bad-key responses arrive as 200 with a "Note"
            # or "Information" message instead of the quote.
            detail = ""
            if isinstance(data, dict):
                detail = data.get("Note") or data.get("Information") or data.get("Error Message") or ""
            raise ProviderParseError(
                f"Alpha Vantage response has no Global Quote for {symbol}"
                + (f": {detail}" if detail else ""),
                provider_name=self.provider_name,
            )

        price = parse_decimal(global_quote.get(_FIELD_PRICE))
        if price <= 0:
            raise ProviderParseError(
                f"Alpha Vantage returned a non-positive price for {symbol}: {price}",
                provider_name=self.provider_name,
            )

        previous_close = parse_decimal(global_quote.get(_FIELD_PREVIOUS_CLOSE))
        if _FIELD_CHANGE in global_quote or _FIELD_CHANGE_PERCENT in global_quote:
            change = parse_decimal(global_quote.get(_FIELD_CHANGE))
            change_percent = parse_decimal(global_quote.get(_FIELD_CHANGE_PERCENT))
        else:
            change, change_percent = compute_change(price, previous_close)

        now = datetime.now(timezone.utc)
        last_trading_day = global_quote.get(_FIELD_LATEST_TRADING_DAY) or now.date().isoformat()

        logger.debug("Alpha Vantage: parsed %s at %s", symbol, price)
        return Quote(
            symbol=symbol,
            price=price,
            open=parse_decimal(global_quote.get(_FIELD_OPEN)),
            high=parse_decimal(global_quote.get(_FIELD_HIGH)),
            low=parse_decimal(global_quote.get(_FIELD_LOW)),
            close=previous_close,
            change=change,
            change_percent=change_percent,
            last_trading_day=str(last_trading_day),
            timestamp=now,
            source=self.provider_name,
            previous_close=previous_close,
        )
