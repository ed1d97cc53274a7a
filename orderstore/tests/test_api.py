"""API tests for the order store HTTP surface.

The app is built around the per-test SQLite engine; entering the
``TestClient`` context runs the startup hook, which waits for the database and
bootstraps the schema.
"""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from orderstore.errors import ErrorKind, StoreError
from orderstore.main import create_app

PAYLOAD = {
    "order_id": "ord-api-1",
    "user_id": "user-7",
    "email": "buyer@example.com",
    "address": {
        "street_address": "1 Main St",
        "city": "Springfield",
        "state": "IL",
        "country": "US",
        "zip_code": "62701",
    },
    "credit_card": {
        "number": "4111111111111111",
        "cvv": "123",
        "expiration_month": 12,
        "expiration_year": 2031,
    },
    "total": {"currency_code": "usd", "units": 10, "nanos": 500000000},
    "items": [{"product_id": "P-1", "quantity": 2}, {"product_id": "P-2", "quantity": 1}],
    "shipping_tracking_id": "TRK-1",
}


@pytest.fixture
def client(engine):
    with TestClient(create_app(engine=engine)) as c:
        yield c


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_create_then_get_order(client):
    r = client.post("/orders", json=PAYLOAD)
    assert r.status_code == 201
    assert r.json() == {"order_id": "ord-api-1"}

    r = client.get("/orders/ord-api-1")
    assert r.status_code == 200
    body = r.json()
    assert body["credit_card_number"] == "****-****-****-1111"
    assert "credit_card_cvv" not in body
    assert Decimal(body["order_total"]) == Decimal("10.5")
    assert body["currency_code"] == "USD"
    assert body["address"]["zip_code"] == "62701"
    assert body["items"] == [{"product_id": "P-1", "quantity": 2}, {"product_id": "P-2", "quantity": 1}]


def test_duplicate_order_returns_409(client):
    assert client.post("/orders", json=PAYLOAD).status_code == 201
    r = client.post("/orders", json=PAYLOAD)
    assert r.status_code == 409
    assert r.json()["detail"] == "WRITE"


def test_unknown_order_returns_404(client):
    r = client.get("/orders/does-not-exist")
    assert r.status_code == 404
    assert r.json()["detail"] == "NOT_FOUND"


def test_user_orders_listing(client):
    for oid in ["a-1", "a-2"]:
        assert client.post("/orders", json={**PAYLOAD, "order_id": oid}).status_code == 201
    r = client.get("/users/user-7/orders")
    assert r.status_code == 200
    results = r.json()["results"]
    assert [o["order_id"] for o in results] == ["a-2", "a-1"]
    assert all("credit_card_cvv" not in o and "items" not in o for o in results)


def test_user_without_orders_gets_empty_results(client):
    r = client.get("/users/nobody/orders")
    assert r.status_code == 200
    assert r.json() == {"results": []}


def test_invalid_payload_is_rejected(client):
    bad = {**PAYLOAD, "credit_card": {**PAYLOAD["credit_card"], "number": "not-digits"}}
    r = client.post("/orders", json=bad)
    assert r.status_code == 422


def test_request_id_is_echoed(client):
    r = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert r.headers["X-Request-ID"] == "req-123"
    assert client.get("/health").headers["X-Request-ID"]


class FailingStore:
    """Store stub whose every operation raises the given kind."""

    def __init__(self, kind):
        self.kind = kind

    def _fail(self, *args, **kwargs):
        raise StoreError(self.kind, "stub")

    save_order = get_order = get_order_items = get_user_orders = _fail


@pytest.mark.parametrize(
    "kind, status_code",
    [
        (ErrorKind.CONNECTION, 503),
        (ErrorKind.CANCELLED, 504),
        (ErrorKind.TRANSACTION, 500),
        (ErrorKind.DECODE, 500),
        (ErrorKind.READ, 500),
    ],
)
def test_store_failures_map_to_status_codes(client, kind, status_code):
    client.app.state.store = FailingStore(kind)

    r = client.get("/orders/ord-api-1")
    assert r.status_code == status_code
    assert r.json()["detail"] == kind.value

    r = client.get("/users/user-7/orders")
    assert r.status_code == status_code

    r = client.post("/orders", json=PAYLOAD)
    assert r.status_code == status_code
    assert r.json()["detail"] == kind.value


def test_shutdown_without_completed_startup_does_not_raise():
    """Shutdown still runs when startup never stored an engine."""
    app = create_app()
    assert not hasattr(app.state, "engine")
    for handler in app.router.on_shutdown:
        handler()
