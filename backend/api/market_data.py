"""Market data API endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from integrations.exceptions import AllProvidersExhaustedError, NoProviderAvailableError
from schemas.market_data import (
    BatchQuoteResponse,
    ProviderStatusResponse,
    ProvidersResponse,
    QuoteResponse,
)
from services.market_data_service import MarketDataService
from utils.ticker import normalize_symbol, normalize_symbols

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/market-data", tags=["market-data"])

# Built on first use so the provider clients and their connection pools
# are shared across requests.
_market_data_service: Optional[MarketDataService] = None


def get_market_data_service() -> MarketDataService:
    """Get the MarketDataService (dependency for injection in tests)."""
    global _market_data_service
    if _market_data_service is None:
        _market_data_service = MarketDataService()
    return _market_data_service


@router.get("/quote/{symbol}", response_model=QuoteResponse)
def get_quote(
    symbol: str,
    service: MarketDataService = Depends(get_market_data_service),
):
    """Resolve the current quote for a symbol through the provider fallback chain."""
    try:
        quote = service.resolve_quote(normalize_symbol(symbol))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except NoProviderAvailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    except AllProvidersExhaustedError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    return QuoteResponse.model_validate(quote)


@router.post("/quotes", response_model=BatchQuoteResponse)
def get_quotes(
    symbols: list[str],
    service: MarketDataService = Depends(get_market_data_service),
):
    """Resolve quotes for several symbols.

    Symbols are passed in the request body as a JSON array. Each symbol is
    resolved independently; failures are reported per symbol.
    """
    results = service.resolve_quotes(normalize_symbols(symbols))
    return BatchQuoteResponse(
        quotes={s: QuoteResponse.model_validate(r.quote) for s, r in results.items() if r.ok},
        errors={s: str(r.error) for s, r in results.items() if not r.ok},
    )


@router.get("/providers", response_model=ProvidersResponse)
def list_providers(service: MarketDataService = Depends(get_market_data_service)):
    """List quote providers in fallback order with their current availability."""
    status = service.provider_status()
    return ProvidersResponse(
        providers=[
            ProviderStatusResponse(name=name, available=available)
            for name, available in status.items()
        ],
        service_available=any(status.values()),
    )
