from foodshop.checkout.paypal_flow import (
    PayPalAvailability,
    PayPalCheckoutFlow,
    PayPalState,
    PaymentProviderButtons,
)
from foodshop.checkout.session import CheckoutSession
from foodshop.checkout.status import ActionStatus
from foodshop.checkout.totals import (
    DELIVERY_FEE,
    SERVICE_FEE,
    CheckoutForm,
    Totals,
    can_submit,
    compute_totals,
    missing_checkout_fields,
)

__all__ = [
    "ActionStatus",
    "CheckoutForm",
    "CheckoutSession",
    "DELIVERY_FEE",
    "PayPalAvailability",
    "PayPalCheckoutFlow",
    "PayPalState",
    "PaymentProviderButtons",
    "SERVICE_FEE",
    "Totals",
    "can_submit",
    "compute_totals",
    "missing_checkout_fields",
]
