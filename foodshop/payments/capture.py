from __future__ import annotations

import logging
from contextlib import AbstractContextManager
from typing import Callable

from sqlalchemy.orm import Session

from foodshop.core.errors import PostCapturePersistenceError, ProviderRejectedError
from foodshop.orders.models import CaptureCommitRequest, CaptureCommitResult
from foodshop.payments.paypal import PayPalClient
from foodshop.persistence.repository import PaymentRecord, ShopRepository

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractContextManager[Session]]


class CaptureCommitService:
    """Capture a PayPal order and record it, in that order, exactly once.

    Steps: access token, capture, status gate, then customer/order/items in
    one transaction. Nothing is written unless the provider reports
    ``COMPLETED``. The capture is never retried here.
    """

    def __init__(self, paypal: PayPalClient, session_factory: SessionFactory):
        self.paypal = paypal
        self.session_factory = session_factory

    def commit(self, request: CaptureCommitRequest) -> CaptureCommitResult:
        provider_order_id = request.provider_order_id
        log_prefix = f"[PayPal: {provider_order_id}]"

        access_token = self.paypal.get_access_token()
        capture = self.paypal.capture_order(provider_order_id, access_token)
        capture_status = str(capture.get("status") or "unknown")

        if capture_status != "COMPLETED":
            logger.error("%s capture not completed (status=%s); no order recorded", log_prefix, capture_status)
            raise ProviderRejectedError(capture_status)

        logger.info("%s capture completed, recording order", log_prefix)
        try:
            with self.session_factory() as session:
                order = ShopRepository(session).commit_order(
                    customer=request.customer,
                    cart=request.cart,
                    totals=request.totals,
                    payment=PaymentRecord(provider="paypal", status="paid", reference=provider_order_id),
                )
                order_id = order.id
        except Exception as exc:
            logger.critical(
                "%s payment CAPTURED but order NOT recorded, manual reconciliation required: %s",
                log_prefix,
                exc,
                exc_info=True,
            )
            raise PostCapturePersistenceError(provider_order_id) from exc

        logger.info("%s order recorded: order_id=%s", log_prefix, order_id)
        return CaptureCommitResult(
            order_id=order_id,
            provider_order_id=provider_order_id,
            capture_details=capture,
        )
