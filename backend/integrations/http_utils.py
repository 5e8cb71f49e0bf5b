"""HTTP helpers shared by the quote provider clients."""

import logging

import httpx

from integrations.exceptions import ProviderCallError, ProviderParseError

logger = logging.getLogger(__name__)


def build_http_client(
    base_url: str,
    connect_timeout: float,
    read_timeout: float,
    headers: dict[str, str] | None = None,
) -> httpx.Client:
    """Create an httpx client with a short connect and a longer read timeout."""
    return httpx.Client(
        base_url=base_url,
        headers=headers or {},
        timeout=httpx.Timeout(read_timeout, connect=connect_timeout),
    )


def get_json(
    client: httpx.Client,
    provider_name: str,
    url: str,
    params: dict[str, str] | None = None,
):
    """GET a JSON document, translating httpx failures into provider errors.

    Args:
        client: The provider's httpx client.
        provider_name: Name attached to any raised error.
        url: Path (relative to the client's base_url) or absolute URL.
        params: Optional query parameters.

    Returns:
        The decoded JSON body.

    Raises:
        ProviderCallError: Transport failure or non-2xx status.
        ProviderParseError: Body is not valid JSON.
    """
    try:
        response = client.get(url, params=params)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        raise ProviderCallError(
            f"{provider_name} API error (HTTP {status})",
            provider_name=provider_name,
            status_code=status,
        ) from exc
    except httpx.HTTPError as exc:
        raise ProviderCallError(
            f"{provider_name} connection failed: {exc}",
            provider_name=provider_name,
        ) from exc

    try:
        return response.json()
    except ValueError as exc:
        raise ProviderParseError(
            f"{provider_name} returned a non-JSON response",
            provider_name=provider_name,
        ) from exc
