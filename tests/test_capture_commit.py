from __future__ import annotations

import logging

import pytest

import foodshop.persistence.pg as pg
from foodshop.core.errors import PostCapturePersistenceError, ProviderError, ProviderRejectedError
from foodshop.orders.models import CaptureCommitRequest
from foodshop.payments.capture import CaptureCommitService
from foodshop.persistence.repository import PaymentRecord, ShopRepository


def _capture_request(order_payload, provider_order_id: str = "PAYPAL-ORDER-1") -> CaptureCommitRequest:
    payload = order_payload()
    return CaptureCommitRequest.model_validate(
        {
            "providerOrderId": provider_order_id,
            "customer": payload["customer"],
            "cart": payload["cart"],
            "totals": payload["totals"],
        }
    )


def _order_count() -> int:
    with pg.session_scope() as s:
        return ShopRepository(s).count_orders()


def test_completed_capture_records_paid_order(fake_paypal, order_payload, seeded_menu):
    paypal = fake_paypal()
    service = CaptureCommitService(paypal.client(), pg.session_scope)

    result = service.commit(_capture_request(order_payload))

    assert result.provider_order_id == "PAYPAL-ORDER-1"
    assert result.capture_details["status"] == "COMPLETED"
    assert paypal.calls == [
        ("POST", "/v1/oauth2/token"),
        ("POST", "/v2/checkout/orders/PAYPAL-ORDER-1/capture"),
    ]
    capture_request = paypal.requests[1]
    assert capture_request.headers["Authorization"] == "Bearer access-token-123"
    assert capture_request.headers["PayPal-Request-Id"]

    with pg.session_scope() as s:
        order = ShopRepository(s).get_order(result.order_id)
        assert order is not None
        assert order.payment_provider == "paypal"
        assert order.payment_status == "paid"
        assert order.payment_reference == "PAYPAL-ORDER-1"
        assert order.total_cents == 1240
        assert order.notes == "no onions"
        assert order.customer.email == "mia@example.com"
        assert sorted((item.menu_item_id, item.quantity, item.unit_price_cents) for item in order.items) == [
            ("brezel", 2, 320),
            ("riceball", 1, 450),
        ]


@pytest.mark.parametrize("status", ["PENDING", "DECLINED", "VOIDED", ""])
def test_non_completed_capture_writes_nothing(fake_paypal, order_payload, status, caplog):
    paypal = fake_paypal(capture_status=status)
    service = CaptureCommitService(paypal.client(), pg.session_scope)
    before = _order_count()

    with pytest.raises(ProviderRejectedError) as excinfo:
        service.commit(_capture_request(order_payload))

    assert excinfo.value.provider_status == (status or "unknown")
    assert _order_count() == before
    assert "capture not completed" in caplog.text


def test_auth_failure_never_reaches_capture(fake_paypal, order_payload):
    paypal = fake_paypal(token_status=401)
    service = CaptureCommitService(paypal.client(), pg.session_scope)

    with pytest.raises(ProviderError) as excinfo:
        service.commit(_capture_request(order_payload))

    assert "Client Authentication failed" in str(excinfo.value)
    assert paypal.capture_calls == 0
    assert _order_count() == 0


def test_capture_http_error_is_provider_error(fake_paypal, order_payload):
    paypal = fake_paypal(capture_http_status=422)
    service = CaptureCommitService(paypal.client(), pg.session_scope)

    with pytest.raises(ProviderError) as excinfo:
        service.commit(_capture_request(order_payload))

    assert not isinstance(excinfo.value, ProviderRejectedError)
    assert _order_count() == 0


def test_persistence_failure_after_capture_is_flagged(fake_paypal, order_payload, monkeypatch, caplog):
    def broken_commit(self, **kwargs):
        raise RuntimeError("database is locked")

    monkeypatch.setattr(ShopRepository, "commit_order", broken_commit)
    paypal = fake_paypal()
    service = CaptureCommitService(paypal.client(), pg.session_scope)

    with caplog.at_level(logging.CRITICAL, logger="foodshop.payments.capture"):
        with pytest.raises(PostCapturePersistenceError) as excinfo:
            service.commit(_capture_request(order_payload, "PAYPAL-ORDER-9"))

    assert excinfo.value.provider_order_id == "PAYPAL-ORDER-9"
    assert "PAYPAL-ORDER-9" in str(excinfo.value)
    assert paypal.capture_calls == 1
    critical = [record for record in caplog.records if record.levelno == logging.CRITICAL]
    assert critical and "manual reconciliation required" in critical[0].getMessage()


def test_unconfigured_credentials_fail_before_any_request(fake_paypal, order_payload, monkeypatch):
    paypal = fake_paypal()
    client = paypal.client()
    monkeypatch.setattr(client.settings, "paypal_client_secret", None)

    with pytest.raises(ProviderError):
        CaptureCommitService(client, pg.session_scope).commit(_capture_request(order_payload))
    assert paypal.calls == []


def test_session_scope_rolls_back_failed_unit_of_work(order_payload, seeded_menu, test_db_path):
    assert pg.engine.url.database == str(test_db_path)
    request = _capture_request(order_payload)

    with pytest.raises(RuntimeError):
        with pg.session_scope() as s:
            ShopRepository(s).commit_order(
                customer=request.customer,
                cart=request.cart,
                totals=request.totals,
                payment=PaymentRecord(provider="paypal", status="paid", reference="PAYPAL-ORDER-1"),
            )
            raise RuntimeError("abort")

    assert _order_count() == 0
