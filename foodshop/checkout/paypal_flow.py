from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from foodshop.cart.state import CartLine
from foodshop.checkout.session import CheckoutSession, order_totals
from foodshop.checkout.totals import Totals
from foodshop.core.config import Settings, get_settings
from foodshop.core.errors import (
    InputValidationError,
    PaymentFlowStateError,
    PaymentUnavailableError,
    PostCapturePersistenceError,
    ProviderRejectedError,
    ShopError,
)
from foodshop.core.money import format_amount
from foodshop.orders.models import CaptureCommitRequest, CaptureCommitResult, CustomerPayload, Payment

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "PayPal checkout failed. Please try again or choose another payment method."
CART_CHANGED = (
    "Your cart changed after the PayPal order was opened. "
    "Please review it and start the PayPal checkout again. You have not been charged."
)


@dataclass(frozen=True)
class PendingPayPalOrder:
    """Cart and amount exactly as sent to PayPal when the provider order was opened."""

    lines: tuple[CartLine, ...]
    totals: Totals
    amount: str
    customer: CustomerPayload


class PayPalState(str, Enum):
    IDLE = "idle"
    BUTTON_RENDERED = "button_rendered"
    ORDER_CREATED = "order_created"
    APPROVED = "approved"
    CAPTURING = "capturing"
    CAPTURED = "captured"
    FAILED = "failed"


class PaymentProviderButtons(Protocol):
    """Provider-side checkout widget. Creates the provider order from the popup."""

    def create_order(self, amount: str, currency: str, description: str) -> str: ...


@dataclass(frozen=True)
class PayPalAvailability:
    sdk_reachable: bool
    client_id_configured: bool
    remote_reachable: bool

    def failed_preconditions(self) -> list[str]:
        reasons: list[str] = []
        if not self.client_id_configured:
            reasons.append("PayPal client id is not configured")
        if not self.sdk_reachable:
            reasons.append("PayPal checkout could not be loaded")
        if not self.remote_reachable:
            reasons.append("order service is not configured")
        return reasons

    @property
    def ok(self) -> bool:
        return not self.failed_preconditions()

    @classmethod
    def detect(
        cls,
        session: CheckoutSession,
        buttons: PaymentProviderButtons | None,
        settings: Settings | None = None,
    ) -> "PayPalAvailability":
        cfg = settings or get_settings()
        return cls(
            sdk_reachable=buttons is not None,
            client_id_configured=cfg.paypal_enabled and bool(cfg.paypal_client_id),
            remote_reachable=session.gateway.remote_enabled,
        )


class PayPalCheckoutFlow:
    """Client side of the two-phase PayPal checkout.

    idle -> button_rendered -> order_created -> approved -> capturing -> captured,
    with failed reachable from any state before capture is confirmed. The cart is
    only cleared once the capture commit reports success, and a failed capture is
    never retried automatically.
    """

    def __init__(
        self,
        session: CheckoutSession,
        buttons: PaymentProviderButtons | None,
        availability: PayPalAvailability,
        app_name: str = "Tulamia Mini Food Shop",
        currency: str = "EUR",
    ):
        self.session = session
        self.buttons = buttons
        self.availability = availability
        self.app_name = app_name
        self.currency = currency
        self.state = PayPalState.IDLE
        self.provider_order_id: str | None = None
        self.error: str | None = None
        self.pending: PendingPayPalOrder | None = None

    @classmethod
    def from_settings(
        cls,
        session: CheckoutSession,
        buttons: PaymentProviderButtons | None,
        settings: Settings | None = None,
    ) -> "PayPalCheckoutFlow":
        cfg = settings or get_settings()
        return cls(
            session,
            buttons,
            PayPalAvailability.detect(session, buttons, cfg),
            app_name=cfg.app_name,
            currency=cfg.currency,
        )

    def _expect(self, *states: PayPalState) -> None:
        if self.state not in states:
            expected = ", ".join(state.value for state in states)
            raise PaymentFlowStateError(f"PayPal checkout is {self.state.value}, expected {expected}")

    def _fail(self, message: str) -> None:
        self.state = PayPalState.FAILED
        self.error = message
        self.session.submit_status.fail(message)

    def render(self) -> None:
        """Entry guard: every precondition must hold before the button is shown."""
        self._expect(PayPalState.IDLE, PayPalState.FAILED, PayPalState.CAPTURED)
        reasons = self.availability.failed_preconditions()
        if reasons:
            self.state = PayPalState.IDLE
            exc = PaymentUnavailableError(reasons)
            self.error = str(exc)
            raise exc
        self.state = PayPalState.BUTTON_RENDERED
        self.provider_order_id = None
        self.pending = None
        self.error = None

    restart = render

    def description(self) -> str:
        name = self.session.form.name.strip() or "Guest"
        return f"{self.app_name} order for {name}"

    def create_order(self) -> str:
        self._expect(PayPalState.BUTTON_RENDERED)
        if self.buttons is None:
            raise PaymentUnavailableError(["PayPal checkout could not be loaded"])
        # state stays button_rendered so the customer can fix the form and retry
        self.session.ensure_submittable()

        totals = self.session.totals
        pending = PendingPayPalOrder(
            lines=tuple(self.session.lines),
            totals=totals,
            amount=format_amount(totals.total),
            customer=self.session.customer_payload(),
        )
        amount = pending.amount
        try:
            provider_order_id = self.buttons.create_order(amount, self.currency, self.description())
        except Exception as exc:
            logger.warning("paypal order creation failed: %s", exc)
            self._fail(GENERIC_FAILURE)
            raise
        self.provider_order_id = provider_order_id
        self.state = PayPalState.ORDER_CREATED
        self.pending = pending
        logger.info("paypal order created: provider_order_id=%s amount=%s", provider_order_id, amount)
        return provider_order_id

    def approve(self, provider_order_id: str | None = None) -> CaptureCommitResult:
        self._expect(PayPalState.ORDER_CREATED)
        order_ref = provider_order_id or self.provider_order_id
        if not order_ref:
            self._fail(GENERIC_FAILURE)
            raise PaymentFlowStateError("approval arrived without a provider order id")
        self.provider_order_id = order_ref
        self.state = PayPalState.APPROVED

        pending = self.pending
        if pending is None:
            self._fail(GENERIC_FAILURE)
            raise PaymentFlowStateError("approval arrived before a PayPal order was opened")
        # the capture must record exactly what PayPal was asked to charge
        current_amount = format_amount(self.session.totals.total)
        if current_amount != pending.amount or tuple(self.session.lines) != pending.lines:
            logger.warning(
                "cart changed during paypal checkout: provider_order_id=%s opened=%s now=%s",
                order_ref,
                pending.amount,
                current_amount,
            )
            self._fail(CART_CHANGED)
            raise InputValidationError(CART_CHANGED)

        lines = list(pending.lines)
        totals = pending.totals
        customer = pending.customer
        request = CaptureCommitRequest(
            provider_order_id=order_ref,
            customer=customer,
            cart=self.session.cart_payload(lines),
            totals=order_totals(totals),
        )

        self.state = PayPalState.CAPTURING
        self.session.submit_status.start()
        try:
            result = self.session.gateway.capture_paypal_order(request)
        except PostCapturePersistenceError as exc:
            logger.critical(
                "paypal captured but order not recorded: provider_order_id=%s", exc.provider_order_id
            )
            self._fail(str(exc))
            raise
        except ProviderRejectedError as exc:
            self._fail(f"PayPal did not complete the payment (status: {exc.provider_status}). You have not been charged.")
            raise
        except ShopError as exc:
            self._fail(str(exc) or GENERIC_FAILURE)
            raise
        except Exception:
            self._fail(GENERIC_FAILURE)
            raise

        self.state = PayPalState.CAPTURED
        self.session.complete_order(
            result.order_id,
            customer=customer,
            lines=lines,
            totals=totals,
            payment=Payment(provider="paypal", status="paid", reference=result.provider_order_id),
        )
        self.session.submit_status.succeed(f"PayPal payment received. Order {result.order_id} saved.")
        return result

    def cancel(self) -> None:
        if self.state in (PayPalState.CAPTURING, PayPalState.CAPTURED):
            raise PaymentFlowStateError("PayPal capture already started and can no longer be cancelled")
        self._fail("PayPal checkout was cancelled. Your cart is unchanged.")

    def on_error(self, exc: BaseException) -> None:
        """Error reported by the provider widget."""
        if self.state in (PayPalState.CAPTURING, PayPalState.CAPTURED):
            raise PaymentFlowStateError("PayPal capture already started") from exc
        logger.warning("paypal widget error: %s", exc)
        self._fail(GENERIC_FAILURE)
