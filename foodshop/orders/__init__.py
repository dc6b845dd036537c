from foodshop.orders.models import (
    PAYMENT_STATUSES,
    CaptureCommitRequest,
    CaptureCommitResult,
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

__all__ = [
    "PAYMENT_STATUSES",
    "CaptureCommitRequest",
    "CaptureCommitResult",
    "CartItemPayload",
    "Customer",
    "CustomerPayload",
    "Order",
    "OrderCreateRequest",
    "OrderLine",
    "OrderTotals",
    "Payment",
    "PaymentPayload",
]
