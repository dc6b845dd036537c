from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable

from pydantic import ValidationError

from foodshop.core.money import to_money
from foodshop.orders.models import PAYMENT_STATUSES, Order

logger = logging.getLogger(__name__)

_PROVIDERS = {"cash", "paypal", "maestro", "credit-card"}
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _normalize_line(order_id: str, index: int, item: dict[str, Any]) -> dict[str, Any]:
    menu = _as_dict(item.get("menu_item"))
    unit_price = to_money(item.get("unit_price") if item.get("unit_price") is not None else menu.get("price"))
    quantity = int(item.get("quantity") or 0)
    item_id = menu.get("id") or item.get("menu_item_id") or f"{order_id}-line-{index}"
    return {
        "id": str(item_id),
        "name": menu.get("name") or "Menu item",
        "quantity": quantity,
        "unitPrice": unit_price,
        "lineTotal": to_money(unit_price * quantity),
    }


def normalize_remote_order(row: dict[str, Any]) -> Order:
    """Map one joined remote order row onto the Order record.

    Remote line items only carry quantity and unit price; the line total is
    always recomputed here. The mapping is a pure function of ``row``.
    """
    order_id = str(row["id"])
    customer = _as_dict(row.get("customer"))
    items = row.get("order_items") if isinstance(row.get("order_items"), list) else []

    provider = row.get("payment_provider") or "cash"
    status = row.get("payment_status") or "pending"
    fulfillment = customer.get("fulfillment") or "pickup"

    payload = {
        "id": order_id,
        "createdAt": row.get("created_at") or _EPOCH,
        "customer": {
            "name": customer.get("name") or "Guest",
            "email": customer.get("email") or "",
            "fulfillment": fulfillment if fulfillment in {"pickup", "delivery"} else "pickup",
            "notes": row.get("notes") or customer.get("notes"),
        },
        "cart": [_normalize_line(order_id, index, item) for index, item in enumerate(items) if isinstance(item, dict)],
        "payment": {
            "provider": provider if provider in _PROVIDERS else "cash",
            "status": status if status in PAYMENT_STATUSES else "pending",
            "reference": row.get("payment_reference"),
        },
        "totals": {
            "subtotal": row.get("subtotal"),
            "serviceFee": row.get("service_fee"),
            "deliveryFee": row.get("delivery_fee"),
            "total": row.get("total"),
        },
    }
    return Order.model_validate(payload)


def normalize_remote_orders(rows: Iterable[Any]) -> list[Order]:
    return [normalize_remote_order(row) for row in rows if isinstance(row, dict)]


def parse_stored_orders(raw: Iterable[Any], source: str) -> list[Order]:
    """Parse already-shaped orders (static snapshot, local cache); bad entries are skipped."""
    orders: list[Order] = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        try:
            orders.append(Order.model_validate(entry))
        except ValidationError as exc:
            logger.warning("skipping malformed %s order id=%s: %s", source, entry.get("id"), exc)
    return orders
