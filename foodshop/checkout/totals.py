from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Literal

from foodshop.core.money import ZERO, to_money

Fulfillment = Literal["pickup", "delivery"]
PaymentMethod = Literal["cash", "paypal", "maestro", "credit-card"]

SERVICE_FEE = Decimal("1.50")
DELIVERY_FEE = Decimal("3.00")


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    service_fee: Decimal
    delivery_fee: Decimal
    total: Decimal

    def as_payload(self) -> dict[str, str]:
        return {
            "subtotal": format(self.subtotal, "f"),
            "serviceFee": format(self.service_fee, "f"),
            "deliveryFee": format(self.delivery_fee, "f"),
            "total": format(self.total, "f"),
        }


def compute_totals(subtotal: Decimal | int | str, fulfillment: str) -> Totals:
    amount = to_money(subtotal)
    service_fee = SERVICE_FEE if amount > 0 else ZERO
    delivery_fee = DELIVERY_FEE if fulfillment == "delivery" else ZERO
    return Totals(
        subtotal=amount,
        service_fee=service_fee,
        delivery_fee=delivery_fee,
        total=to_money(amount + service_fee + delivery_fee),
    )


@dataclass
class CheckoutForm:
    name: str = ""
    email: str = ""
    fulfillment: Fulfillment = "pickup"
    notes: str = ""
    payment_method: PaymentMethod = "paypal"

    def reset(self) -> None:
        fresh = CheckoutForm()
        self.name = fresh.name
        self.email = fresh.email
        self.fulfillment = fresh.fulfillment
        self.notes = fresh.notes
        self.payment_method = fresh.payment_method

    def customer_payload(self) -> dict[str, str]:
        payload = {
            "name": self.name.strip(),
            "email": self.email.strip(),
            "fulfillment": self.fulfillment,
        }
        if self.notes.strip():
            payload["notes"] = self.notes.strip()
        return payload


def can_submit(subtotal: Decimal, form: CheckoutForm) -> bool:
    return subtotal > 0 and bool(form.name.strip()) and bool(form.email.strip())


def missing_checkout_fields(subtotal: Decimal, form: CheckoutForm) -> list[str]:
    missing: list[str] = []
    if not subtotal > 0:
        missing.append("at least one dish")
    if not form.name.strip():
        missing.append("name")
    if not form.email.strip():
        missing.append("email")
    return missing
