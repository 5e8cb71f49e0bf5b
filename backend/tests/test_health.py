"""Health endpoint and app wiring tests."""

from fastapi.testclient import TestClient

from api.market_data import get_market_data_service
from main import app
from services.market_data_service import MarketDataService
from tests.fixtures.mocks import MockProviderRegistry, MockQuoteProvider


def test_health_reports_quotes_available(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "quotes_available": True}


def test_health_with_every_provider_down():
    registry = MockProviderRegistry([MockQuoteProvider(name="Primary", available=False)])
    app.dependency_overrides[get_market_data_service] = lambda: MarketDataService(registry=registry)
    try:
        response = TestClient(app).get("/health")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    assert response.json()["quotes_available"] is False


def test_cors_allows_frontend_origin(client):
    response = client.options(
        "/health",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"


def test_unknown_route_is_404(client):
    assert client.get("/api/does-not-exist").status_code == 404
