"""Tests for API middleware and error handling."""

from fastapi.testclient import TestClient

from backoffice.infrastructure.repositories import StoreUnavailableError


class TestRequestIdMiddleware:
    """Tests for request ID correlation middleware."""

    def test_generates_request_id_if_not_provided(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        # UUID format
        assert len(response.headers["X-Request-ID"]) == 36

    def test_uses_provided_request_id(self, client: TestClient) -> None:
        response = client.get("/health", headers={"X-Request-ID": "custom-request-id-12345"})
        assert response.headers["X-Request-ID"] == "custom-request-id-12345"


class TestApiKeyMiddleware:
    """Tests for API key authentication middleware."""

    def test_public_endpoints_dont_require_auth(self, client: TestClient) -> None:
        assert client.get("/health").status_code == 200
        assert client.get("/ready").status_code == 200

    def test_protected_endpoints_require_auth(self, client: TestClient) -> None:
        response = client.get("/payouts/balance", headers={"X-Actor-Role": "seller", "X-Seller-ID": "seller-a"})

        assert response.status_code == 401
        data = response.json()
        assert data["error_code"] == "UNAUTHORIZED"
        assert data["request_id"] == response.headers["X-Request-ID"]

    def test_invalid_auth_format(self, client: TestClient) -> None:
        response = client.get("/finance/overview", headers={"Authorization": "Basic abc"})
        assert response.status_code == 401
        assert "Bearer" in response.json()["message"]

    def test_invalid_api_key(self, client: TestClient) -> None:
        response = client.get("/finance/overview", headers={"Authorization": "Bearer wrong-key"})
        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_API_KEY"

    def test_valid_api_key(self, admin_client: TestClient) -> None:
        assert admin_client.get("/finance/overview").status_code == 200


class TestErrorHandling:
    def test_store_outage_is_503(self, admin_client: TestClient, container, monkeypatch) -> None:
        async def unavailable(*args, **kwargs):
            raise StoreUnavailableError("connection refused")

        monkeypatch.setattr(container.orders, "get_order", unavailable)

        response = admin_client.get("/orders/any")

        assert response.status_code == 503
        assert response.json()["error_code"] == "STORE_UNAVAILABLE"

    def test_unexpected_error_is_500(self, admin_client: TestClient, container, monkeypatch) -> None:
        async def broken(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(container.finance, "top_sellers", broken)

        response = admin_client.get("/finance/top-sellers")

        assert response.status_code == 500
        data = response.json()
        assert data["error_code"] == "INTERNAL_ERROR"
        assert "boom" not in data["message"]
