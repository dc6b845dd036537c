from __future__ import annotations

import logging
from dataclasses import fields
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterable

from foodshop.cart.state import CartLine, CartState
from foodshop.catalog.models import CatalogItem, index_catalog
from foodshop.checkout.status import ActionStatus
from foodshop.checkout.totals import CheckoutForm, Totals, can_submit, compute_totals, missing_checkout_fields
from foodshop.core.config import get_settings
from foodshop.core.errors import InputValidationError, SubmissionInProgressError
from foodshop.gateway.data_gateway import OrderDataGateway
from foodshop.orders.models import (
    CartItemPayload,
    Customer,
    CustomerPayload,
    Order,
    OrderCreateRequest,
    OrderLine,
    OrderTotals,
    Payment,
    PaymentPayload,
)

logger = logging.getLogger(__name__)

_FORM_FIELDS = {f.name for f in fields(CheckoutForm)}


def order_totals(totals: Totals) -> OrderTotals:
    return OrderTotals(
        subtotal=totals.subtotal,
        service_fee=totals.service_fee,
        delivery_fee=totals.delivery_fee,
        total=totals.total,
    )


class CheckoutSession:
    """State owned by one customer session: cart, form, loaded data, action status.

    Catalog load, orders load and submission each track their own status.
    Only one order creation may be outstanding at a time.
    """

    def __init__(
        self,
        gateway: OrderDataGateway,
        catalog: Iterable[CatalogItem] = (),
        locale: str | None = None,
    ):
        self.gateway = gateway
        self.locale = locale
        self.cart = CartState()
        self.form = CheckoutForm()
        self.catalog: list[CatalogItem] = list(catalog)
        self.orders: list[Order] = []
        self.catalog_status = ActionStatus()
        self.orders_status = ActionStatus()
        self.submit_status = ActionStatus()
        self.last_order: Order | None = None

    # data loading

    def load_catalog(self) -> None:
        self.catalog_status.start()
        try:
            items = self.gateway.fetch_catalog()
        except Exception as exc:
            logger.warning("menu load failed: %s", exc)
            self.catalog_status.fail(str(exc) or "Failed to load menu")
            return
        if not items:
            self.catalog_status.fail("Menu source responded without items. Showing the current menu.")
            return
        self.catalog = items
        self.catalog_status.succeed()

    def load_orders(self) -> None:
        self.orders_status.start()
        try:
            self.orders = self.gateway.fetch_orders()
        except Exception as exc:
            logger.warning("orders load failed: %s", exc)
            self.orders_status.fail(str(exc) or "Failed to load orders")
            return
        self.orders_status.succeed()

    def refresh(self) -> None:
        self.load_catalog()
        self.load_orders()

    # derived state

    def describe(self, item: CatalogItem) -> str:
        return item.display_description(self.locale, get_settings().default_locale)

    @property
    def lines(self) -> list[CartLine]:
        return self.cart.derive_lines(index_catalog(self.catalog))

    @property
    def subtotal(self) -> Decimal:
        return self.cart.subtotal(index_catalog(self.catalog))

    @property
    def totals(self) -> Totals:
        return compute_totals(self.subtotal, self.form.fulfillment)

    @property
    def can_submit(self) -> bool:
        return can_submit(self.subtotal, self.form)

    def update_form(self, **changes: Any) -> None:
        unknown = set(changes) - _FORM_FIELDS
        if unknown:
            raise InputValidationError(f"unknown checkout fields: {', '.join(sorted(unknown))}")
        for key, value in changes.items():
            setattr(self.form, key, value)

    # submission

    def ensure_submittable(self) -> None:
        """Re-check the submit gate right before a network call."""
        if self.submit_status.in_progress:
            raise SubmissionInProgressError("An order is already being submitted for this cart.")
        missing = missing_checkout_fields(self.subtotal, self.form)
        if missing:
            message = "Please add your " + ", ".join(missing) + " before placing the order."
            self.submit_status.fail(message)
            raise InputValidationError(message)

    def customer_payload(self) -> CustomerPayload:
        return CustomerPayload.model_validate(self.form.customer_payload())

    def cart_payload(self, lines: list[CartLine] | None = None) -> list[CartItemPayload]:
        return [
            CartItemPayload(id=line.item_id, quantity=line.quantity, price=line.unit_price, name=line.name)
            for line in (lines if lines is not None else self.lines)
        ]

    def submit_order(self) -> str:
        """Cash / card path."""
        if self.form.payment_method == "paypal":
            raise InputValidationError("Use the PayPal checkout to pay with PayPal.")
        self.ensure_submittable()

        lines = self.lines
        totals = self.totals
        customer = self.customer_payload()
        request = OrderCreateRequest(
            customer=customer,
            cart=self.cart_payload(lines),
            totals=order_totals(totals),
            payment=PaymentPayload(provider=self.form.payment_method, status="pending"),
        )

        self.submit_status.start()
        try:
            order_id = self.gateway.save_order(request)
        except Exception as exc:
            logger.error("order save failed: %s", exc)
            self.submit_status.fail(str(exc) or "Failed to save order")
            raise

        self.complete_order(
            order_id,
            customer=customer,
            lines=lines,
            totals=totals,
            payment=Payment(provider=self.form.payment_method, status="pending"),
        )
        self.submit_status.succeed(f"Order {order_id} saved.")
        return order_id

    def complete_order(
        self,
        order_id: str,
        customer: CustomerPayload,
        lines: list[CartLine],
        totals: Totals,
        payment: Payment,
    ) -> Order:
        """Clear cart and form, remember the receipt, refresh the order list."""
        receipt = Order(
            id=order_id,
            created_at=datetime.now(timezone.utc),
            customer=Customer(**customer.model_dump(exclude_none=True)),
            cart=[
                OrderLine(id=line.item_id, name=line.name, quantity=line.quantity, unit_price=line.unit_price)
                for line in lines
            ],
            payment=payment,
            totals=order_totals(totals),
        )
        self.cart.clear()
        self.form.reset()
        self.last_order = receipt
        # load_orders records its own failure; the order is already placed
        self.load_orders()
        return receipt
