"""Integration tests for API endpoints"""

import pytest
from datetime import datetime, timezone
from fastapi.testclient import TestClient
from loan_ledger.api.dependencies import get_store
from loan_ledger.api.main import create_app
from loan_ledger.config import settings
from loan_ledger.domain.exceptions import StoreError
from loan_ledger.infrastructure.store.memory import InMemoryLoanStore

AUTH = ("owner", "s3cret")


class UnavailableStore(InMemoryLoanStore):
    """Store whose backend is down"""

    def read(self):
        raise StoreError("database unreachable")

    def commit(self, state, transaction, expected_version):
        raise StoreError("database unreachable")


class FaultyStore(InMemoryLoanStore):
    """Store that fails with an error outside the store taxonomy"""

    def commit(self, state, transaction, expected_version):
        raise RuntimeError("driver crashed")


@pytest.fixture
def broken_client(client: TestClient) -> TestClient:
    def override_get_store():
        yield UnavailableStore()

    client.app.dependency_overrides[get_store] = override_get_store
    return client


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "loan_ledger_transactions_total" in response.text


def test_request_id_is_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "trace-123"})
    assert response.headers["X-Request-ID"] == "trace-123"
    assert client.get("/health").headers["X-Request-ID"]


def test_balance_seeds_initial_debt(client: TestClient):
    """Test GET /balance-and-history on a fresh store"""
    response = client.get("/balance-and-history")

    assert response.status_code == 200
    data = response.json()
    assert data["state"]["totalDebt"] == 1000.0
    assert data["state"]["lastInterestMonth"] is None
    assert data["transactions"] == []


def test_post_payment(client: TestClient):
    """Test POST /transactions with a payment"""
    response = client.post("/transactions", json={"type": "payment", "amount": 200}, auth=AUTH)

    assert response.status_code == 201
    data = response.json()
    assert data["state"]["totalDebt"] == 800.0
    tx = data["transaction"]
    assert tx["type"] == "payment"
    assert tx["amount"] == 200.0
    assert tx["balanceAfter"] == 800.0
    assert tx["id"]
    assert tx["date"].startswith("2024-05-28T09:00:00")


def test_post_accepts_numeric_strings(client: TestClient):
    response = client.post("/transactions", json={"type": "interest", "amount": "12.50"}, auth=AUTH)
    assert response.status_code == 201
    assert response.json()["transaction"]["balanceAfter"] == 1012.5


@pytest.mark.parametrize("amount", [0, -5, "abc", "NaN", None, True])
def test_post_rejects_bad_amounts(client: TestClient, amount):
    response = client.post("/transactions", json={"type": "payment", "amount": amount}, auth=AUTH)

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid amount"}
    history = client.get("/balance-and-history").json()
    assert history["state"]["totalDebt"] == 1000.0
    assert history["transactions"] == []


def test_post_rejects_nan_literal(client: TestClient):
    response = client.post(
        "/transactions",
        content=b'{"type": "payment", "amount": NaN}',
        headers={"Content-Type": "application/json"},
        auth=AUTH,
    )
    assert response.status_code == 400
    assert "error" in response.json()


@pytest.mark.parametrize("amount", [1e13, 1e30])
def test_post_rejects_amounts_too_large_to_store(client: TestClient, amount):
    response = client.post("/transactions", json={"type": "payment", "amount": amount}, auth=AUTH)

    assert response.status_code == 400
    assert response.json() == {"error": "Amount exceeds maximum"}
    history = client.get("/balance-and-history").json()
    assert history["state"]["totalDebt"] == 1000.0
    assert history["transactions"] == []


def test_post_rejects_unknown_type(client: TestClient):
    response = client.post("/transactions", json={"type": "refund", "amount": 10}, auth=AUTH)
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid transaction type"}


def test_post_rejects_non_object_body(client: TestClient):
    response = client.post("/transactions", json=[1, 2, 3], auth=AUTH)
    assert response.status_code == 400
    assert "error" in response.json()


def test_post_requires_basic_auth(client: TestClient):
    response = client.post("/transactions", json={"type": "payment", "amount": 10})

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == 'Basic realm="Payments"'
    assert client.get("/balance-and-history").json()["transactions"] == []


def test_post_rejects_wrong_password(client: TestClient):
    response = client.post("/transactions", json={"type": "payment", "amount": 10}, auth=("owner", "guess"))
    assert response.status_code == 401


def test_post_refuses_when_credentials_unconfigured(client: TestClient, monkeypatch):
    monkeypatch.setattr(settings, "payment_basic_auth_password", None)
    response = client.post("/transactions", json={"type": "payment", "amount": 10}, auth=AUTH)
    assert response.status_code == 401


def test_store_failure_returns_500(broken_client: TestClient):
    response = broken_client.post("/transactions", json={"type": "payment", "amount": 10}, auth=AUTH)
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to add transaction"}

    assert broken_client.get("/balance-and-history").status_code == 500
    assert broken_client.get("/accrue-interest").status_code == 500


def test_validation_precedes_store_access(broken_client: TestClient):
    response = broken_client.post("/transactions", json={"type": "payment", "amount": -1}, auth=AUTH)
    assert response.status_code == 400


def test_accrual_on_other_day(client: TestClient, clock):
    clock.set(datetime(2024, 5, 27, 9, 0, tzinfo=timezone.utc))
    response = client.get("/accrue-interest")

    assert response.status_code == 200
    assert response.json() == {"applied": False, "reason": "not-the-accrual-day"}


def test_accrual_on_the_28th(client: TestClient):
    response = client.get("/accrue-interest")

    assert response.status_code == 200
    data = response.json()
    assert data["applied"] is True
    assert "reason" not in data
    assert data["state"] == {"totalDebt": 1050.0, "lastInterestMonth": "2024-05"}
    assert data["transaction"]["type"] == "interest"
    assert data["transaction"]["amount"] == 50.0


def test_accrual_requires_configured_secret(client: TestClient, monkeypatch):
    monkeypatch.setattr(settings, "cron_secret", "tick")

    assert client.get("/accrue-interest").status_code == 401
    assert client.get("/accrue-interest", headers={"Authorization": "Bearer nope"}).status_code == 401

    response = client.get("/accrue-interest", headers={"Authorization": "Bearer tick"})
    assert response.status_code == 200
    assert response.json()["applied"] is True

    response = client.get("/accrue-interest", headers={"X-Cron-Secret": "tick"})
    assert response.status_code == 200
    assert response.json() == {"applied": False, "reason": "already-applied-this-month"}


def test_unknown_route_uses_error_envelope(client: TestClient):
    response = client.get("/nope")
    assert response.status_code == 404
    assert "error" in response.json()


def test_unexpected_error_returns_500_envelope(client: TestClient):
    def override_get_store():
        yield FaultyStore()

    client.app.dependency_overrides[get_store] = override_get_store

    response = client.post("/transactions", json={"type": "payment", "amount": 10}, auth=AUTH)
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to add transaction"}


def test_shutdown_collects_accrual_task(monkeypatch):
    monkeypatch.setattr(settings, "store_backend", "memory")
    monkeypatch.setattr(settings, "accrual_scheduler_enabled", True)
    app = create_app()

    with TestClient(app):
        task = app.state.accrual_task
        assert not task.done()

    assert task.cancelled()
