"""Unit tests for AlphaVantageClient (mocked httpx)."""

from decimal import Decimal
from unittest.mock import MagicMock, patch

import httpx
import pytest

from integrations.alpha_vantage_client import AlphaVantageClient
from integrations.exceptions import (
    ProviderCallError,
    ProviderParseError,
    ProviderUnavailableError,
)

SAMPLE_GLOBAL_QUOTE = {
    "Global Quote": {
        "01. symbol": "IBM",
        "02. open": "168.2000",
        "03. high": "170.1500",
        "04. low": "167.8000",
        "05. price": "169.4500",
        "06. volume": "3456789",
        "07. latest trading day": "2024-01-15",
        "08. previous close": "167.9000",
        "09. change": "1.5500",
        "10. change percent": "0.9232%",
    }
}


def _json_response(payload) -> MagicMock:
    response = MagicMock()
    response.status_code = 200
    response.json.return_value = payload
    response.raise_for_status = MagicMock()
    return response


@pytest.fixture
def client():
    return AlphaVantageClient(api_key="demo-key")


class TestAvailability:
    def test_provider_name(self, client):
        assert client.provider_name == "AlphaVantage"

    def test_available_with_key(self, client):
        assert client.is_available() is True

    def test_unavailable_without_key(self):
        assert AlphaVantageClient(api_key="").is_available() is False
        assert AlphaVantageClient(api_key=None).is_available() is False
        assert AlphaVantageClient(api_key="   ").is_available() is False

    def test_unavailable_when_disabled(self):
        assert AlphaVantageClient(api_key="key", enabled=False).is_available() is False

    def test_get_quote_raises_when_unavailable(self):
        client = AlphaVantageClient(api_key="")
        with patch.object(client._client, "get") as mock_get:
            with pytest.raises(ProviderUnavailableError) as exc_info:
                client.get_quote("IBM")
        mock_get.assert_not_called()
        assert exc_info.value.provider_name == "AlphaVantage"

    def test_from_settings(self):
        settings = MagicMock(
            ALPHA_VANTAGE_API_KEY="abc",
            ALPHA_VANTAGE_BASE_URL="https://example.test",
            ALPHA_VANTAGE_ENABLED=True,
            PROVIDER_CONNECT_TIMEOUT=1.0,
            PROVIDER_READ_TIMEOUT=2.0,
        )
        client = AlphaVantageClient.from_settings(settings)
        assert client.is_available() is True
        assert client._client.timeout.connect == 1.0
        assert client._client.timeout.read == 2.0


class TestGetQuote:
    def test_parses_global_quote(self, client):
        with patch.object(client._client, "get", return_value=_json_response(SAMPLE_GLOBAL_QUOTE)):
            quote = client.get_quote("IBM")

        assert quote.symbol == "IBM"
        assert quote.price == Decimal("169.4500")
        assert quote.open == Decimal("168.2000")
        assert quote.high == Decimal("170.1500")
        assert quote.low == Decimal("167.8000")
        assert quote.previous_close == Decimal("167.9000")
        assert quote.change == Decimal("1.5500")
        assert quote.change_percent == Decimal("0.9232")
        assert quote.last_trading_day == "2024-01-15"
        assert quote.source == "AlphaVantage"

    def test_sends_function_symbol_and_key(self, client):
        with patch.object(
            client._client, "get", return_value=_json_response(SAMPLE_GLOBAL_QUOTE)
        ) as mock_get:
            client.get_quote("IBM")

        _, kwargs = mock_get.call_args
        assert kwargs["params"] == {"function": "GLOBAL_QUOTE", "symbol": "IBM", "apikey": "demo-key"}

    def test_computes_change_when_missing(self, client):
        payload = {"Global Quote": {"05. price": "110", "08. previous close": "100"}}
        with patch.object(client._client, "get", return_value=_json_response(payload)):
            quote = client.get_quote("IBM")

        assert quote.change == Decimal("10")
        assert quote.change_percent == Decimal("10")

    def test_unparseable_fields_become_zero(self, client):
        payload = {
            "Global Quote": {
                "02. open": "N/A",
                "05. price": "12.5",
                "08. previous close": "",
            }
        }
        with patch.object(client._client, "get", return_value=_json_response(payload)):
            quote = client.get_quote("IBM")

        assert quote.open == Decimal("0")
        assert quote.previous_close == Decimal("0")
        assert quote.change_percent == Decimal("0")

    def test_missing_global_quote_raises_parse_error(self, client):
        payload = {"Note": "Thank you for using Alpha Vantage! Our standard API rate limit is 25 requests per day."}
        with patch.object(client._client, "get", return_value=_json_response(payload)):
            with pytest.raises(ProviderParseError, match="rate limit"):
                client.get_quote("IBM")

    def test_empty_global_quote_raises_parse_error(self, client):
        with patch.object(client._client, "get", return_value=_json_response({"Global Quote": {}})):
            with pytest.raises(ProviderParseError):
                client.get_quote("NOPE")

    def test_zero_price_raises_parse_error(self, client):
        payload = {"Global Quote": {"05. price": "0.0000"}}
        with patch.object(client._client, "get", return_value=_json_response(payload)):
            with pytest.raises(ProviderParseError):
                client.get_quote("IBM")

    def test_http_error_raises_call_error(self, client):
        response = MagicMock()
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "Server error", request=MagicMock(), response=MagicMock(status_code=503)
        )
        with patch.object(client._client, "get", return_value=response):
            with pytest.raises(ProviderCallError) as exc_info:
                client.get_quote("IBM")

        assert exc_info.value.status_code == 503
        assert exc_info.value.retriable is True

    def test_timeout_raises_call_error(self, client):
        with patch.object(client._client, "get", side_effect=httpx.ReadTimeout("timed out")):
            with pytest.raises(ProviderCallError) as exc_info:
                client.get_quote("IBM")

        assert exc_info.value.status_code is None
