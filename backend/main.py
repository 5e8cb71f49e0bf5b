"""Portfolio Sentinel API."""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import market_data, rebalancing
from config import settings
from logging_config import setup_logging
from services.market_data_service import MarketDataService

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup probe only; a dead provider must not stop the server
    try:
        service = market_data.get_market_data_service()
        service.log_provider_status()
        if not service.is_service_available():
            logger.warning("No quote provider is available; quote requests will fail")
    except Exception:
        logger.warning("Provider status check failed on startup", exc_info=True)
    yield


app = FastAPI(
    title="Portfolio Sentinel",
    description="Quote resolution and portfolio rebalancing recommendations",
    version="0.1.0",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

for router in (market_data.router, rebalancing.router):
    app.include_router(router)


@app.get("/health")
def health_check(
    service: MarketDataService = Depends(market_data.get_market_data_service),
):
    """Liveness plus whether any quote provider can currently serve quotes."""
    return {"status": "ok", "quotes_available": service.is_service_available()}
