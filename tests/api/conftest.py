"""Shared fixtures for API tests."""

import asyncio

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from backoffice.application.container import ServiceContainer
from backoffice.infrastructure.config import Settings
from backoffice.main import create_app

API_KEY = "test-key"


@pytest.fixture
def settings() -> Settings:
    return Settings(api_key=API_KEY, storage_backend="memory")


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    return create_app(settings)


@pytest.fixture
def container(app: FastAPI) -> ServiceContainer:
    return app.state.container


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create test client without authentication."""
    return TestClient(app)


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {API_KEY}"}


@pytest.fixture
def admin_client(app: FastAPI, auth_headers) -> TestClient:
    return TestClient(app, headers={**auth_headers, "X-Actor-Role": "admin"})


@pytest.fixture
def seller_client(app: FastAPI, auth_headers) -> TestClient:
    return TestClient(app, headers={**auth_headers, "X-Actor-Role": "seller", "X-Seller-ID": "seller-a"})


@pytest.fixture
def other_seller_client(app: FastAPI, auth_headers) -> TestClient:
    return TestClient(app, headers={**auth_headers, "X-Actor-Role": "seller", "X-Seller-ID": "seller-b"})


@pytest.fixture
def seed(container: ServiceContainer):
    """Insert orders directly into the app's order store."""

    def _seed(*orders):
        for order in orders:
            asyncio.run(container.order_store.add(order))
        return orders[0] if len(orders) == 1 else orders

    return _seed


@pytest.fixture
def bank_payload() -> dict:
    return {
        "account_number": "123456789012",
        "ifsc_code": "hdfc0001234",
        "account_holder_name": "Seller A Traders",
        "bank_name": "HDFC Bank",
    }
