"""Pydantic schemas for market data endpoints."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel


class QuoteResponse(BaseModel):
    """A normalized quote from one provider."""

    symbol: str
    price: Decimal
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    previous_close: Decimal
    change: Decimal
    change_percent: Decimal
    last_trading_day: str
    timestamp: datetime
    source: str

    model_config = {"from_attributes": True}


class BatchQuoteResponse(BaseModel):
    """Per-symbol outcome of a batch quote request."""

    quotes: dict[str, QuoteResponse]
    errors: dict[str, str]


class ProviderStatusResponse(BaseModel):
    """Availability of one quote provider."""

    name: str
    available: bool


class ProvidersResponse(BaseModel):
    """Providers in fallback order."""

    providers: list[ProviderStatusResponse]
    service_available: bool
