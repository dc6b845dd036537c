from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session, selectinload

from foodshop.catalog.models import CatalogItem
from foodshop.core.money import format_amount, from_cents, to_cents
from foodshop.orders.models import CartItemPayload, CustomerPayload, OrderTotals
from foodshop.persistence.models import CustomerModel, MenuItemModel, OrderItemModel, OrderModel


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class PaymentRecord:
    provider: str
    status: str
    reference: str | None = None


def menu_item_row(row: MenuItemModel) -> dict[str, Any]:
    return {
        "id": row.id,
        "name": row.name,
        "description": row.description,
        "description_i18n": row.description_i18n,
        "price": format_amount(from_cents(row.price_cents)),
        "emoji": row.emoji,
        "tags": list(row.tags or []),
        "is_active": row.is_active,
    }


def order_row(row: OrderModel) -> dict[str, Any]:
    customer = row.customer
    return {
        "id": row.id,
        "created_at": _iso(row.created_at),
        "subtotal": format_amount(from_cents(row.subtotal_cents)),
        "service_fee": format_amount(from_cents(row.service_fee_cents)),
        "delivery_fee": format_amount(from_cents(row.delivery_fee_cents)),
        "total": format_amount(from_cents(row.total_cents)),
        "payment_provider": row.payment_provider,
        "payment_status": row.payment_status,
        "payment_reference": row.payment_reference,
        "notes": row.notes,
        "customer": {
            "name": customer.name,
            "email": customer.email,
            "fulfillment": customer.fulfillment,
        }
        if customer is not None
        else None,
        "order_items": [
            {
                "quantity": item.quantity,
                "unit_price": format_amount(from_cents(item.unit_price_cents)),
                "menu_item_id": item.menu_item_id,
                "menu_item": {
                    "id": item.menu_item.id,
                    "name": item.menu_item.name,
                    "price": format_amount(from_cents(item.menu_item.price_cents)),
                }
                if item.menu_item is not None
                else None,
            }
            for item in row.items
        ],
    }


class ShopRepository:
    def __init__(self, session: Session):
        self.session = session

    def list_active_menu_items(self) -> list[MenuItemModel]:
        stmt = select(MenuItemModel).where(MenuItemModel.is_active.is_(True)).order_by(MenuItemModel.name.asc())
        return list(self.session.scalars(stmt).all())

    def list_orders(self, limit: int = 25) -> list[OrderModel]:
        stmt = (
            select(OrderModel)
            .options(
                selectinload(OrderModel.items).selectinload(OrderItemModel.menu_item),
            )
            .order_by(desc(OrderModel.created_at))
            .limit(limit)
        )
        return list(self.session.scalars(stmt).unique().all())

    def get_order(self, order_id: str) -> OrderModel | None:
        return self.session.get(OrderModel, order_id)

    def commit_order(
        self,
        customer: CustomerPayload,
        cart: Iterable[CartItemPayload],
        totals: OrderTotals,
        payment: PaymentRecord,
    ) -> OrderModel:
        """Insert customer, then order, then line items.

        Runs inside the caller's transaction: nothing is visible until the
        surrounding ``session_scope`` commits, and any failure rolls back all
        three inserts together.
        """
        now = _now()
        customer_row = CustomerModel(
            name=customer.name,
            email=customer.email,
            fulfillment=customer.fulfillment,
            created_at=now,
        )
        self.session.add(customer_row)
        self.session.flush()

        order = OrderModel(
            customer_id=customer_row.id,
            created_at=now,
            subtotal_cents=to_cents(totals.subtotal),
            service_fee_cents=to_cents(totals.service_fee),
            delivery_fee_cents=to_cents(totals.delivery_fee),
            total_cents=to_cents(totals.total),
            payment_provider=payment.provider,
            payment_status=payment.status,
            payment_reference=payment.reference,
            notes=customer.notes,
        )
        self.session.add(order)
        self.session.flush()

        known_ids = set(self.session.scalars(select(MenuItemModel.id)).all())
        for line in cart:
            self.session.add(
                OrderItemModel(
                    order_id=order.id,
                    menu_item_id=line.id if line.id in known_ids else None,
                    quantity=line.quantity,
                    unit_price_cents=to_cents(line.price),
                )
            )
        self.session.flush()
        return order

    def upsert_menu_item(self, item: CatalogItem) -> MenuItemModel:
        row = self.session.get(MenuItemModel, item.id)
        if row is None:
            row = MenuItemModel(id=item.id, updated_at=_now())
            self.session.add(row)
        description = item.description
        row.name = item.name
        row.description = description if isinstance(description, str) else None
        if isinstance(description, dict):
            row.description_i18n = {**(item.description_i18n or {}), **description}
        else:
            row.description_i18n = dict(item.description_i18n) if item.description_i18n else None
        row.price_cents = to_cents(item.price)
        row.emoji = item.emoji
        row.tags = list(item.tags) or None
        row.is_active = item.is_active
        row.updated_at = _now()
        self.session.flush()
        return row

    def delete_menu_item(self, item_id: str) -> bool:
        row = self.session.get(MenuItemModel, item_id)
        if row is None:
            return False
        self.session.delete(row)
        self.session.flush()
        return True

    def set_order_payment_status(self, order_id: str, status: str) -> OrderModel | None:
        order = self.get_order(order_id)
        if order is None:
            return None
        order.payment_status = status
        self.session.flush()
        return order

    def delete_order(self, order_id: str) -> bool:
        order = self.get_order(order_id)
        if order is None:
            return False
        self.session.delete(order)
        self.session.flush()
        return True

    def count_orders(self) -> int:
        return int(self.session.scalar(select(func.count()).select_from(OrderModel)) or 0)

    def seed_menu_items(self, items: Iterable[CatalogItem]) -> int:
        existing = self.session.scalar(select(func.count()).select_from(MenuItemModel)) or 0
        if existing:
            return 0
        count = 0
        for item in items:
            self.upsert_menu_item(item)
            count += 1
        return count
