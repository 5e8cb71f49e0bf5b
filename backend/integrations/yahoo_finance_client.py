"""Yahoo Finance quote provider (v8 chart API)."""

import logging
import re
from datetime import datetime, timezone

import httpx

from integrations.exceptions import ProviderParseError, ProviderUnavailableError
from integrations.http_utils import build_http_client, get_json
from integrations.market_data_protocol import Quote
from integrations.parsing_utils import compute_change, parse_decimal, parse_unix_timestamp

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://query1.finance.yahoo.com/v8/finance/chart"

# Symbol used by the availability probe
HEALTH_CHECK_SYMBOL = "AAPL"

# Yahoo throttles clients that do not look like a browser
_BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36"
    ),
    "Accept": "application/json,text/plain,*/*",
    "Accept-Language": "en-US,en;q=0.9",
}

_KOREA_SYMBOL = re.compile(r"^\d{6}$")
_JAPAN_SYMBOL = re.compile(r"^\d{4}$")


def to_yahoo_symbol(symbol: str) -> str:
    """Map a plain ticker to Yahoo's exchange-suffixed form.

    - 6-digit numeric symbols are Korea Exchange listings (005930 -> 005930.KS)
    - 4-digit numeric symbols are Tokyo listings (7203 -> 7203.T)
    - Everything else is passed through unchanged
    """
    if _KOREA_SYMBOL.match(symbol):
        return f"{symbol}.KS"
    if _JAPAN_SYMBOL.match(symbol):
        return f"{symbol}.T"
    return symbol


def _value_at(series, index: int):
    if isinstance(series, list) and 0 <= index < len(series):
        return series[index]
    return None


class YahooFinanceClient:
    """Quote provider using the keyless Yahoo Finance chart endpoint.

    Quotes are delayed 15-20 minutes but the endpoint has no API key and
    generous limits, so it is tried first. Availability is checked with a
    live probe rather than a configuration flag alone.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        enabled: bool = True,
        connect_timeout: float = 10.0,
        read_timeout: float = 15.0,
    ):
        self._enabled = enabled
        self._client = build_http_client(
            base_url, connect_timeout, read_timeout, headers=_BROWSER_HEADERS
        )

    @classmethod
    def from_settings(cls, settings) -> "YahooFinanceClient":
        return cls(
            base_url=settings.YAHOO_FINANCE_BASE_URL,
            enabled=settings.YAHOO_FINANCE_ENABLED,
            connect_timeout=settings.YAHOO_CONNECT_TIMEOUT,
            read_timeout=settings.YAHOO_READ_TIMEOUT,
        )

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    @property
    def provider_name(self) -> str:
        return "Yahoo Finance"

    def is_available(self) -> bool:
        """Probe the chart endpoint with a benchmark symbol.

        Available iff the probe answers 2xx with a body carrying the
        "chart" and "result" markers.
        """
        if not self._enabled:
            return False
        try:
            response = self._client.get(
                f"/{HEALTH_CHECK_SYMBOL}", params={"interval": "1d", "range": "1d"}
            )
            if not response.is_success:
                logger.warning(
                    "Yahoo Finance: health probe returned HTTP %d", response.status_code
                )
                return False
            body = response.text
            return '"chart"' in body and '"result"' in body
        except httpx.HTTPError as exc:
            logger.warning("Yahoo Finance: health probe failed: %s", exc)
            return False

    def get_quote(self, symbol: str) -> Quote:
        """Fetch the latest quote from the chart API.

        The vendor symbol carries an exchange suffix where needed, but the
        returned Quote always uses the caller's symbol.

        Raises:
            ProviderUnavailableError: Provider disabled.
            ProviderCallError: Network failure or non-2xx status.
            ProviderParseError: Missing chart/result/meta nodes or no usable price.
        """
        if not self._enabled:
            raise ProviderUnavailableError(
                "Yahoo Finance is disabled", provider_name=self.provider_name
            )

        yahoo_symbol = to_yahoo_symbol(symbol)
        logger.info("Yahoo Finance: fetching quote for %s (%s)", symbol, yahoo_symbol)
        data = get_json(
            self._client,
            self.provider_name,
            f"/{yahoo_symbol}",
            params={"interval": "1d", "range": "1d"},
        )
        return self._parse_chart(symbol, data)

    def _parse_chart(self, symbol: str, data) -> Quote:
        chart = data.get("chart") if isinstance(data, dict) else None
        if not isinstance(chart, dict):
            raise ProviderParseError(
                f"Yahoo Finance response has no chart node for {symbol}",
                provider_name=self.provider_name,
            )

        results = chart.get("result")
        if not isinstance(results, list) or not results or not isinstance(results[0], dict):
            raise ProviderParseError(
                f"Yahoo Finance response has no chart result for {symbol}",
                provider_name=self.provider_name,
            )
        result = results[0]

        meta = result.get("meta")
        if not isinstance(meta, dict):
            raise ProviderParseError(
                f"Yahoo Finance response has no meta block for {symbol}",
                provider_name=self.provider_name,
            )

        price = parse_decimal(meta.get("regularMarketPrice"))
        if price <= 0:
            raise ProviderParseError(
                f"Yahoo Finance returned a non-positive price for {symbol}: {price}",
                provider_name=self.provider_name,
            )
        previous_close = parse_decimal(
            meta.get("previousClose", meta.get("chartPreviousClose"))
        )

        open_ = high = low = close = parse_decimal(None)
        timestamp = datetime.now(timezone.utc)

        timestamps = result.get("timestamp")
        if isinstance(timestamps, list) and timestamps:
            last = len(timestamps) - 1
            timestamp = parse_unix_timestamp(timestamps[last]) or timestamp

            indicators = result.get("indicators")
            quotes = indicators.get("quote") if isinstance(indicators, dict) else None
            ohlc = quotes[0] if isinstance(quotes, list) and quotes and isinstance(quotes[0], dict) else {}
            open_ = parse_decimal(_value_at(ohlc.get("open"), last))
            high = parse_decimal(_value_at(ohlc.get("high"), last))
            low = parse_decimal(_value_at(ohlc.get("low"), last))
            close = parse_decimal(_value_at(ohlc.get("close"), last))

        change, change_percent = compute_change(price, previous_close)

        logger.debug(
            "Yahoo Finance: parsed %s at %s (%.2f%%)", symbol, price, change_percent
        )
        return Quote(
            symbol=symbol,
            price=price,
            open=open_,
            high=high,
            low=low,
            close=close,
            change=change,
            change_percent=change_percent,
            last_trading_day=timestamp.date().isoformat(),
            timestamp=timestamp,
            source=self.provider_name,
            previous_close=previous_close,
        )
