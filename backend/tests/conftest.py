"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient

from api.market_data import get_market_data_service
from api.rebalancing import get_rebalancing_service
from main import app
from services.market_data_service import MarketDataService
from services.rebalancing_service import RebalancingService
from services.strategy_selector import StrategySelector
# Pytest fixtures - imported to make them available to tests
from tests.fixtures import (  # noqa: F401
    drifted_portfolio,
    even_target,
    fixed_clock,
    holding,
)
from tests.fixtures.mocks import MockProviderRegistry, MockQuoteProvider


@pytest.fixture(name="mock_quote_provider")
def mock_quote_provider_fixture():
    """Create a mock quote provider with a few known prices."""
    return MockQuoteProvider(
        name="Primary",
        prices={"AAPL": "150.25", "MSFT": "380.50"},
    )


@pytest.fixture(name="mock_registry")
def mock_registry_fixture(mock_quote_provider):
    """Create a mock registry holding the mock quote provider."""
    return MockProviderRegistry([mock_quote_provider])


@pytest.fixture(name="client")
def client_fixture(mock_registry):
    """Create a test client with mocked quote providers and a fixed clock."""

    def override_get_market_data_service():
        return MarketDataService(registry=mock_registry)

    def override_get_rebalancing_service():
        return RebalancingService(StrategySelector(clock=fixed_clock))

    app.dependency_overrides[get_market_data_service] = override_get_market_data_service
    app.dependency_overrides[get_rebalancing_service] = override_get_rebalancing_service
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
