"""Tests for services.credential_manager."""

import sys
from unittest.mock import MagicMock, patch

import pytest

from services.credential_manager import (
    CREDENTIAL_KEYS,
    PROVIDER_CREDENTIALS,
    SERVICE_NAME,
    delete_credential,
    get_credential,
    list_credentials,
    providers_with_stored_keys,
    set_credential,
)


@pytest.fixture
def keyring_mock():
    """Install a fake keyring module for the duration of a test."""
    fake = MagicMock()
    with patch.dict(sys.modules, {"keyring": fake}):
        yield fake


@pytest.fixture
def no_keyring():
    with patch.dict(sys.modules, {"keyring": None}):
        yield


def _store(keyring_mock, values: dict[str, str]) -> None:
    keyring_mock.get_password.side_effect = lambda service, key: values.get(key)


class TestGetCredential:
    def test_reads_from_service(self, keyring_mock):
        keyring_mock.get_password.return_value = "fh-secret"

        assert get_credential("FINNHUB_API_KEY") == "fh-secret"
        keyring_mock.get_password.assert_called_once_with(SERVICE_NAME, "FINNHUB_API_KEY")

    def test_missing_keyring_is_a_miss(self, no_keyring):
        assert get_credential("FINNHUB_API_KEY") is None

    def test_backend_failure_is_a_miss(self, keyring_mock):
        keyring_mock.get_password.side_effect = RuntimeError("keychain locked")
        assert get_credential("ALPHA_VANTAGE_API_KEY") is None


class TestSetCredential:
    def test_whitespace_is_stripped(self, keyring_mock):
        assert set_credential("ALPHA_VANTAGE_API_KEY", "  av-key\n") is True
        keyring_mock.set_password.assert_called_once_with(
            SERVICE_NAME, "ALPHA_VANTAGE_API_KEY", "av-key"
        )

    @pytest.mark.parametrize("key", ["LOG_LEVEL", "YAHOO_FINANCE_BASE_URL", "finnhub_api_key"])
    def test_only_provider_keys_are_accepted(self, keyring_mock, key):
        assert set_credential(key, "value") is False
        keyring_mock.set_password.assert_not_called()

    @pytest.mark.parametrize("value", ["", "   ", None])
    def test_blank_value_is_rejected(self, keyring_mock, value):
        assert set_credential("FINNHUB_API_KEY", value) is False
        keyring_mock.set_password.assert_not_called()

    def test_fails_without_keyring(self, no_keyring):
        assert set_credential("FINNHUB_API_KEY", "fh-secret") is False

    def test_fails_when_backend_refuses(self, keyring_mock):
        keyring_mock.set_password.side_effect = RuntimeError("denied")
        assert set_credential("FINNHUB_API_KEY", "fh-secret") is False


class TestDeleteCredential:
    def test_removes_from_service(self, keyring_mock):
        assert delete_credential("FINNHUB_API_KEY") is True
        keyring_mock.delete_password.assert_called_once_with(SERVICE_NAME, "FINNHUB_API_KEY")

    def test_non_provider_key_is_left_alone(self, keyring_mock):
        assert delete_credential("MIN_TRADE_AMOUNT") is False
        keyring_mock.delete_password.assert_not_called()

    def test_fails_when_nothing_stored(self, keyring_mock):
        keyring_mock.delete_password.side_effect = RuntimeError("not found")
        assert delete_credential("FINNHUB_API_KEY") is False

    def test_fails_without_keyring(self, no_keyring):
        assert delete_credential("ALPHA_VANTAGE_API_KEY") is False


class TestStoredKeys:
    def test_list_skips_missing_keys(self, keyring_mock):
        _store(keyring_mock, {"FINNHUB_API_KEY": "fh"})
        assert list_credentials() == {"FINNHUB_API_KEY": "fh"}

    def test_list_is_empty_without_keyring(self, no_keyring):
        assert list_credentials() == {}

    def test_providers_in_registry_order(self, keyring_mock):
        _store(keyring_mock, {"ALPHA_VANTAGE_API_KEY": "av", "FINNHUB_API_KEY": "fh"})
        assert providers_with_stored_keys() == ["Finnhub", "AlphaVantage"]

    def test_provider_without_key_is_omitted(self, keyring_mock):
        _store(keyring_mock, {"ALPHA_VANTAGE_API_KEY": "av"})
        assert providers_with_stored_keys() == ["AlphaVantage"]


def test_credential_keys_match_keyed_providers():
    assert CREDENTIAL_KEYS == frozenset(PROVIDER_CREDENTIALS.values())
    assert CREDENTIAL_KEYS == {"FINNHUB_API_KEY", "ALPHA_VANTAGE_API_KEY"}
