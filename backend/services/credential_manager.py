"""Keyring-backed storage for quote provider API keys.

Keys live in the macOS Keychain (or any other ``keyring`` backend) under
the ``portfolio-sentinel`` service. ``keyring`` is imported lazily so the
app still runs where it is not installed; lookups then simply miss and
settings fall back to the environment.
"""

import logging

logger = logging.getLogger(__name__)

SERVICE_NAME = "portfolio-sentinel"

# Provider display name -> settings field holding its API key
PROVIDER_CREDENTIALS: dict[str, str] = {
    "Finnhub": "FINNHUB_API_KEY",
    "AlphaVantage": "ALPHA_VANTAGE_API_KEY",
}

CREDENTIAL_KEYS: frozenset[str] = frozenset(PROVIDER_CREDENTIALS.values())


def _keyring():
    try:
        import keyring
    except ImportError:
        return None
    return keyring


def get_credential(key: str) -> str | None:
    """Look up an API key, or None if it is not stored or keyring is missing."""
    keyring = _keyring()
    if keyring is None:
        return None
    try:
        return keyring.get_password(SERVICE_NAME, key)
    except Exception:
        logger.debug("keyring lookup failed for %s", key, exc_info=True)
        return None


def set_credential(key: str, value: str) -> bool:
    """Store an API key, stripped of surrounding whitespace.

    Only keys in :data:`CREDENTIAL_KEYS` are accepted and blank values are
    rejected.

    Returns:
        ``True`` if the key was stored.
    """
    if key not in CREDENTIAL_KEYS:
        logger.warning("Refusing to store non-credential key: %s", key)
        return False
    value = (value or "").strip()
    if not value:
        logger.warning("Refusing to store an empty value for %s", key)
        return False

    keyring = _keyring()
    if keyring is None:
        logger.warning("keyring is not installed, cannot store %s", key)
        return False
    try:
        keyring.set_password(SERVICE_NAME, key, value)
    except Exception:
        logger.warning("Failed to store %s in keychain", key, exc_info=True)
        return False
    logger.info("Stored %s in keychain", key)
    return True


def delete_credential(key: str) -> bool:
    if key not in CREDENTIAL_KEYS:
        logger.warning("Refusing to delete non-credential key: %s", key)
        return False

    keyring = _keyring()
    if keyring is None:
        return False
    try:
        keyring.delete_password(SERVICE_NAME, key)
    except Exception:
        logger.debug("Failed to delete %s from keychain", key, exc_info=True)
        return False
    logger.info("Deleted %s from keychain", key)
    return True


def list_credentials() -> dict[str, str]:
    """Return the stored API keys, keyed by settings field name."""
    stored = {key: get_credential(key) for key in sorted(CREDENTIAL_KEYS)}
    return {key: value for key, value in stored.items() if value is not None}


def providers_with_stored_keys() -> list[str]:
    """Names of the keyed providers whose API key is in the keychain."""
    stored = list_credentials()
    return [name for name, key in PROVIDER_CREDENTIALS.items() if key in stored]
