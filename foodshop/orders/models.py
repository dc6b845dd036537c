from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from foodshop.core.money import ZERO, to_money

PaymentProvider = Literal["cash", "paypal", "maestro", "credit-card"]
PaymentStatus = Literal["pending", "paid", "refunded", "cancelled"]
FulfillmentChoice = Literal["pickup", "delivery"]

PAYMENT_STATUSES: tuple[str, ...] = ("pending", "paid", "refunded", "cancelled")


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Customer(_CamelModel):
    name: str = "Guest"
    email: str = ""
    fulfillment: FulfillmentChoice = "pickup"
    notes: str | None = None


class OrderLine(_CamelModel):
    id: str
    name: str = "Menu item"
    quantity: int = Field(ge=0)
    unit_price: Decimal = ZERO
    line_total: Decimal = ZERO

    @model_validator(mode="before")
    @classmethod
    def _fill_prices(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        row = dict(data)
        if "unitPrice" not in row and "unit_price" not in row and "price" in row:
            row["unitPrice"] = row["price"]
        unit_price = to_money(row.get("unitPrice", row.get("unit_price")))
        quantity = int(row.get("quantity") or 0)
        row["unitPrice"] = unit_price
        row.pop("unit_price", None)
        row["quantity"] = quantity
        if row.get("lineTotal") is None and row.get("line_total") is None:
            row["lineTotal"] = to_money(unit_price * quantity)
        return row

    @field_validator("unit_price", "line_total", mode="before")
    @classmethod
    def _coerce_money(cls, value: Any) -> Decimal:
        return to_money(value)


class Payment(_CamelModel):
    provider: PaymentProvider = "cash"
    status: PaymentStatus = "pending"
    reference: str | None = None


class OrderTotals(_CamelModel):
    subtotal: Decimal = ZERO
    service_fee: Decimal = ZERO
    delivery_fee: Decimal = ZERO
    total: Decimal = ZERO

    @field_validator("subtotal", "service_fee", "delivery_fee", "total", mode="before")
    @classmethod
    def _coerce_money(cls, value: Any) -> Decimal:
        return to_money(value)


class Order(_CamelModel):
    id: str
    created_at: datetime
    customer: Customer = Field(default_factory=Customer)
    cart: list[OrderLine] = Field(default_factory=list)
    payment: Payment = Field(default_factory=Payment)
    totals: OrderTotals = Field(default_factory=OrderTotals)

    @field_validator("created_at", mode="after")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class CartItemPayload(_CamelModel):
    id: str = Field(min_length=1)
    quantity: int = Field(gt=0)
    price: Decimal = Field(ge=0)
    name: str | None = None

    @field_validator("price", mode="before")
    @classmethod
    def _coerce_price(cls, value: Any) -> Decimal:
        return to_money(value)


class CustomerPayload(_CamelModel):
    name: str
    email: str | None = None
    fulfillment: FulfillmentChoice = "pickup"
    notes: str | None = None

    @field_validator("name")
    @classmethod
    def _name_required(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("customer name is required")
        return value.strip()


class PaymentPayload(_CamelModel):
    provider: PaymentProvider
    status: PaymentStatus = "pending"


class OrderCreateRequest(_CamelModel):
    customer: CustomerPayload
    cart: list[CartItemPayload] = Field(min_length=1)
    totals: OrderTotals
    payment: PaymentPayload

    @model_validator(mode="after")
    def _pending_non_paypal(self) -> "OrderCreateRequest":
        if self.payment.provider == "paypal":
            raise ValueError("paypal orders are only recorded by the capture commit")
        if self.payment.status != "pending":
            raise ValueError("new orders start with payment status pending")
        return self


class CaptureCommitRequest(_CamelModel):
    provider_order_id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("providerOrderId", "orderId", "provider_order_id"),
        serialization_alias="providerOrderId",
    )
    customer: CustomerPayload
    cart: list[CartItemPayload] = Field(min_length=1)
    totals: OrderTotals


class CaptureCommitResult(_CamelModel):
    order_id: str
    provider_order_id: str
    capture_details: dict[str, Any] = Field(default_factory=dict)
