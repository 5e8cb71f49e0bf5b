#!/usr/bin/env python3
"""Quote provider setup script.

Validates Finnhub and Alpha Vantage API keys with a test quote and offers
to store them in the macOS Keychain. Yahoo Finance needs no key.

Usage:
    python -m scripts.setup_quote_providers            # enter and validate keys
    python -m scripts.setup_quote_providers --status   # show provider availability
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from integrations.alpha_vantage_client import AlphaVantageClient
from integrations.exceptions import ProviderError
from integrations.finnhub_client import FinnhubClient
from integrations.market_data_protocol import Quote

# (settings key, display name, client class, test symbol)
KEYED_PROVIDERS = [
    ("FINNHUB_API_KEY", "Finnhub", FinnhubClient, "AAPL"),
    ("ALPHA_VANTAGE_API_KEY", "Alpha Vantage", AlphaVantageClient, "IBM"),
]


def _offer_keychain_store(credentials: dict[str, str]) -> None:
    """Prompt the user to store credentials in macOS Keychain."""
    try:
        from services.credential_manager import set_credential
    except ImportError:
        return

    answer = input("\nStore these keys in macOS Keychain? [Y/n] ").strip().lower()
    if answer in ("", "y", "yes"):
        for key, value in credentials.items():
            if set_credential(key, value):
                print(f"  Stored {key} in keychain")
            else:
                print(f"  Failed to store {key}")
    else:
        print("  Skipped keychain storage.")


def validate_api_key(client_cls, api_key: str, symbol: str) -> Quote:
    """Fetch one quote with the given key.

    Raises:
        ProviderError: If the key is rejected or the response is unusable.
    """
    client = client_cls(api_key=api_key)
    try:
        return client.get_quote(symbol)
    finally:
        client.close()


def print_status() -> None:
    """Print every quote provider in fallback order with its availability."""
    from integrations.provider_registry import get_provider_registry
    from services.credential_manager import providers_with_stored_keys

    registry = get_provider_registry()
    in_keychain = set(providers_with_stored_keys())
    print("Quote providers (fallback order):")
    for name, available in registry.provider_status().items():
        note = " (key in keychain)" if name in in_keychain else ""
        print(f"  {name:<15} {'available' if available else 'unavailable'}{note}")


def main():
    parser = argparse.ArgumentParser(description="Set up quote provider API keys")
    parser.add_argument(
        "--status",
        action="store_true",
        help="Show which quote providers are available and exit",
    )
    args = parser.parse_args()

    if args.status:
        print_status()
        return

    print("Quote Provider Setup")
    print("=" * 50)
    print()
    print("Yahoo Finance is used first and needs no key. Finnhub and")
    print("Alpha Vantage are fallbacks and need free API keys:")
    print("  Finnhub:       https://finnhub.io/register")
    print("  Alpha Vantage: https://www.alphavantage.co/support/#api-key")
    print()
    print("Press Enter to skip a provider.")
    print()

    validated: dict[str, str] = {}
    for key, name, client_cls, symbol in KEYED_PROVIDERS:
        api_key = input(f"Enter your {name} API key: ").strip()
        if not api_key:
            print(f"  Skipped {name}")
            continue

        print(f"  Validating with a {symbol} quote...")
        try:
            quote = validate_api_key(client_cls, api_key, symbol)
        except ProviderError as e:
            print(f"  Error: {e}")
            print("  Check the key for typos, or wait if the rate limit was hit.")
            continue

        print(f"  OK: {quote.symbol} at {quote.price}")
        validated[key] = api_key

    if not validated:
        print()
        print("No keys validated.")
        sys.exit(1)

    print()
    print("Success! Add the following to your .env file:")
    print()
    for key, value in validated.items():
        print(f"{key}={value}")
    _offer_keychain_store(validated)


if __name__ == "__main__":
    main()
