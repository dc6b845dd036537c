from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from foodshop.orders.normalize import normalize_remote_order, normalize_remote_orders, parse_stored_orders


def _remote_row(**overrides):
    row = {
        "id": "8f3c",
        "created_at": "2025-03-02T18:05:00+01:00",
        "subtotal": "10.90",
        "service_fee": "1.50",
        "delivery_fee": "3.00",
        "total": "15.40",
        "payment_provider": "paypal",
        "payment_status": "paid",
        "payment_reference": "PAYPAL-123",
        "notes": "leave at the door",
        "customer": {"name": "Mia", "email": "mia@example.com", "fulfillment": "delivery"},
        "order_items": [
            {
                "quantity": 2,
                "unit_price": "3.20",
                "menu_item_id": "brezel",
                "menu_item": {"id": "brezel", "name": "Brezel", "price": "3.50"},
            },
            {"quantity": 1, "unit_price": "4.5", "menu_item_id": None, "menu_item": None},
        ],
    }
    row.update(overrides)
    return row


def test_remote_row_maps_onto_order_record():
    order = normalize_remote_order(_remote_row())
    assert order.id == "8f3c"
    assert order.created_at == datetime(2025, 3, 2, 17, 5, tzinfo=timezone.utc)
    assert order.customer.name == "Mia"
    assert order.customer.fulfillment == "delivery"
    assert order.customer.notes == "leave at the door"
    assert order.payment.provider == "paypal"
    assert order.payment.status == "paid"
    assert order.payment.reference == "PAYPAL-123"
    assert order.totals.total == Decimal("15.40")

    brezel, unknown = order.cart
    # the stored unit price wins over the current menu price
    assert brezel.unit_price == Decimal("3.20")
    assert brezel.line_total == Decimal("6.40")
    assert unknown.id == "8f3c-line-1"
    assert unknown.name == "Menu item"
    assert unknown.line_total == Decimal("4.50")


def test_missing_fields_get_defaults():
    order = normalize_remote_order(
        {"id": 42, "customer": None, "order_items": None, "payment_provider": "bitcoin", "payment_status": "weird"}
    )
    assert order.id == "42"
    assert order.customer.name == "Guest"
    assert order.customer.fulfillment == "pickup"
    assert order.payment.provider == "cash"
    assert order.payment.status == "pending"
    assert order.cart == []
    assert order.totals.total == Decimal("0.00")


def test_unit_price_falls_back_to_menu_price():
    row = _remote_row(order_items=[{"quantity": 3, "menu_item": {"id": "tea", "name": "Tea", "price": "0.335"}}])
    (line,) = normalize_remote_order(row).cart
    assert line.unit_price == Decimal("0.34")
    assert line.line_total == Decimal("1.02")


def test_normalization_is_deterministic():
    rows = [_remote_row(), _remote_row(id="9a1b", payment_provider=None)]
    first = [order.to_json() for order in normalize_remote_orders(rows)]
    second = [order.to_json() for order in normalize_remote_orders(rows)]
    assert first == second
    assert first[1]["payment"]["provider"] == "cash"


def test_normalized_orders_survive_a_json_round_trip():
    order = normalize_remote_order(_remote_row())
    (reparsed,) = parse_stored_orders([order.to_json()], source="local")
    assert reparsed == order


def test_stored_orders_skip_malformed_entries(caplog):
    raw = [
        {"id": "ok", "createdAt": "2025-01-15T11:42:00Z"},
        {"id": "broken"},
        "not-an-order",
    ]
    orders = parse_stored_orders(raw, source="static")
    assert [order.id for order in orders] == ["ok"]
    assert "skipping malformed static order id=broken" in caplog.text
