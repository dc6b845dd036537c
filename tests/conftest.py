from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import httpx
import pytest
from fastapi.testclient import TestClient

import foodshop.persistence.pg as pg
from foodshop.catalog.models import CatalogItem
from foodshop.core.config import DEFAULT_STATIC_SNAPSHOT_BASE, get_settings
from foodshop.core.errors import RemoteStoreError
from foodshop.gateway.snapshot import StaticSnapshot
from foodshop.payments.paypal import PayPalClient
from foodshop.persistence.models import Base
from foodshop.persistence.repository import ShopRepository


@pytest.fixture(scope="session")
def test_db_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    return tmp_path_factory.mktemp("db") / "test.sqlite"


@pytest.fixture(scope="session", autouse=True)
def configure_test_engine(test_db_path: Path):
    settings = get_settings()
    settings.paypal_enabled = True
    settings.paypal_client_id = "test-client-id"
    settings.paypal_client_secret = "test-client-secret"
    settings.auth_enabled = True
    settings.bootstrap_menu_on_startup = False
    settings.local_cache_path = test_db_path.parent / "local-orders.json"

    engine = pg.configure_database(f"sqlite+pysqlite:///{test_db_path}")

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_tables(configure_test_engine):
    Base.metadata.drop_all(bind=pg.engine)
    Base.metadata.create_all(bind=pg.engine)
    yield


@pytest.fixture()
def client(configure_test_engine):
    from foodshop.main import app

    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def session(configure_test_engine):
    with pg.session_scope() as s:
        yield s


@pytest.fixture()
def admin_headers():
    return {"X-API-Key": get_settings().admin_api_key}


@pytest.fixture()
def catalog() -> list[CatalogItem]:
    return StaticSnapshot(DEFAULT_STATIC_SNAPSHOT_BASE).load_catalog()


@pytest.fixture()
def seeded_menu(catalog):
    with pg.session_scope() as s:
        ShopRepository(s).seed_menu_items(catalog)
    return catalog


@pytest.fixture()
def order_payload() -> Callable[..., dict[str, Any]]:
    def build(provider: str = "cash", status: str = "pending") -> dict[str, Any]:
        return {
            "customer": {"name": "Mia", "email": "mia@example.com", "fulfillment": "pickup", "notes": "no onions"},
            "cart": [
                {"id": "brezel", "name": "Brezel", "quantity": 2, "price": "3.20"},
                {"id": "riceball", "name": "Riceball", "quantity": 1, "price": "4.50"},
            ],
            "totals": {"subtotal": "10.90", "serviceFee": "1.50", "deliveryFee": "0.00", "total": "12.40"},
            "payment": {"provider": provider, "status": status},
        }

    return build


class FakePayPal:
    """PayPal REST API stand-in mounted on an httpx.MockTransport."""

    def __init__(
        self,
        capture_status: str = "COMPLETED",
        token_status: int = 200,
        capture_http_status: int = 201,
        token_body: str | None = None,
        capture_body: str | None = None,
    ):
        self.capture_status = capture_status
        self.token_status = token_status
        self.capture_http_status = capture_http_status
        # raw bodies replace the JSON answers, e.g. an HTML page from a gateway
        self.token_body = token_body
        self.capture_body = capture_body
        self.calls: list[tuple[str, str]] = []
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append((request.method, request.url.path))
        self.requests.append(request)
        path = request.url.path
        if path == "/v1/oauth2/token":
            if self.token_status != 200:
                return httpx.Response(
                    self.token_status,
                    json={"error": "invalid_client", "error_description": "Client Authentication failed"},
                )
            if self.token_body is not None:
                return httpx.Response(200, text=self.token_body)
            return httpx.Response(200, json={"access_token": "access-token-123", "token_type": "Bearer"})
        if path.endswith("/capture"):
            provider_order_id = path.split("/")[-2]
            if self.capture_http_status >= 400:
                return httpx.Response(self.capture_http_status, json={"message": "UNPROCESSABLE_ENTITY"})
            if self.capture_body is not None:
                return httpx.Response(self.capture_http_status, text=self.capture_body)
            return httpx.Response(self.capture_http_status, json={"id": provider_order_id, "status": self.capture_status})
        if path == "/v2/checkout/orders":
            return httpx.Response(201, json={"id": "PAYPAL-ORDER-NEW", "status": "CREATED"})
        return httpx.Response(404, json={"message": "not found"})

    @property
    def capture_calls(self) -> int:
        return sum(1 for _, path in self.calls if path.endswith("/capture"))

    def client(self) -> PayPalClient:
        return PayPalClient(get_settings(), transport=httpx.MockTransport(self.handler))


@pytest.fixture()
def fake_paypal() -> Callable[..., FakePayPal]:
    return FakePayPal


class FakeRemote:
    """In-memory remote store; methods listed in ``failing`` raise RemoteStoreError."""

    backend_name = "fake"

    def __init__(self):
        self.calls: list[tuple[Any, ...]] = []
        self.failing: set[str] = set()
        self.menu_rows: list[dict[str, Any]] = []
        self.order_rows: list[dict[str, Any]] = []
        self.create_response: dict[str, Any] = {"orderId": "remote-order-1"}
        self.capture_response: dict[str, Any] = {}
        self.capture_error: Exception | None = None

    def _call(self, name: str, *args: Any) -> None:
        self.calls.append((name, *args))
        if name in self.failing:
            raise RemoteStoreError(f"{name} unavailable", status_code=503)

    def fetch_menu_rows(self) -> list[dict[str, Any]]:
        self._call("fetch_menu_rows")
        return self.menu_rows

    def fetch_order_rows(self, limit: int) -> list[dict[str, Any]]:
        self._call("fetch_order_rows", limit)
        return self.order_rows

    def create_order(self, payload: dict[str, Any]) -> dict[str, Any]:
        self._call("create_order", payload)
        return self.create_response

    def capture_paypal_order(self, payload: dict[str, Any]) -> dict[str, Any]:
        self._call("capture_paypal_order", payload)
        if self.capture_error is not None:
            raise self.capture_error
        return self.capture_response or {
            "orderId": "remote-paypal-order",
            "providerOrderId": payload["providerOrderId"],
            "captureDetails": {"status": "COMPLETED"},
        }

    def upsert_menu_item(self, item_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        self._call("upsert_menu_item", item_id, payload)
        return {"id": item_id, **payload}

    def delete_menu_item(self, item_id: str) -> None:
        self._call("delete_menu_item", item_id)

    def update_order_status(self, order_id: str, status: str) -> dict[str, Any]:
        self._call("update_order_status", order_id, status)
        return {
            "id": order_id,
            "created_at": "2025-01-15T11:42:00Z",
            "payment_provider": "cash",
            "payment_status": status,
            "subtotal": "4.50",
            "service_fee": "1.50",
            "delivery_fee": "0.00",
            "total": "6.00",
            "customer": {"name": "Mia", "email": "mia@example.com", "fulfillment": "pickup"},
            "order_items": [{"quantity": 1, "unit_price": "4.50", "menu_item_id": "riceball", "menu_item": None}],
        }

    def delete_order(self, order_id: str) -> None:
        self._call("delete_order", order_id)


@pytest.fixture()
def fake_remote() -> FakeRemote:
    return FakeRemote()
