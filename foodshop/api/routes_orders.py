from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from foodshop.api.utils import error_response, json_response, preflight_response, read_json_object
from foodshop.core.errors import PostCapturePersistenceError, ProviderError, ProviderRejectedError
from foodshop.orders.models import CaptureCommitRequest, OrderCreateRequest
from foodshop.payments.capture import CaptureCommitService
from foodshop.payments.paypal import PayPalClient, build_paypal_client
from foodshop.persistence.pg import session_scope
from foodshop.persistence.repository import PaymentRecord, ShopRepository

logger = logging.getLogger(__name__)

router = APIRouter(tags=["orders"])

CREATE_ORDER_PATH = "/functions/create-order"
CAPTURE_PAYPAL_PATH = "/functions/capture-paypal-order"
OTHER_METHODS = ["GET", "PUT", "PATCH", "DELETE"]


def get_paypal_client() -> PayPalClient:
    return build_paypal_client()


def _create_order(request: OrderCreateRequest) -> str:
    with session_scope() as session:
        order = ShopRepository(session).commit_order(
            customer=request.customer,
            cart=request.cart,
            totals=request.totals,
            payment=PaymentRecord(provider=request.payment.provider, status=request.payment.status),
        )
        order_id = order.id
    logger.info("order created: order_id=%s provider=%s", order_id, request.payment.provider)
    return order_id


@router.options(CREATE_ORDER_PATH)
@router.options(CAPTURE_PAYPAL_PATH)
def function_preflight():
    return preflight_response()


@router.api_route(CREATE_ORDER_PATH, methods=OTHER_METHODS, include_in_schema=False)
@router.api_route(CAPTURE_PAYPAL_PATH, methods=OTHER_METHODS, include_in_schema=False)
def function_method_not_allowed():
    return error_response("Method not allowed", 405)


@router.post(CREATE_ORDER_PATH)
async def create_order(request: Request):
    payload = await read_json_object(request)
    if payload is None:
        return error_response("Invalid payload", 400)
    try:
        order_request = OrderCreateRequest.model_validate(payload)
    except ValidationError as exc:
        return error_response("Invalid payload", 400, details=exc.errors(include_url=False, include_context=False))

    try:
        order_id = await run_in_threadpool(_create_order, order_request)
    except Exception as exc:
        logger.error("create-order failed: %s", exc, exc_info=True)
        return error_response(str(exc) or "Server error", 500)
    return json_response({"orderId": order_id})


@router.post(CAPTURE_PAYPAL_PATH)
async def capture_paypal_order(request: Request, paypal: PayPalClient = Depends(get_paypal_client)):
    payload = await read_json_object(request)
    if payload is None:
        return error_response("Invalid payload", 400)
    try:
        capture_request = CaptureCommitRequest.model_validate(payload)
    except ValidationError as exc:
        return error_response("Invalid payload", 400, details=exc.errors(include_url=False, include_context=False))

    service = CaptureCommitService(paypal=paypal, session_factory=session_scope)
    try:
        result = await run_in_threadpool(service.commit, capture_request)
    except ProviderRejectedError as exc:
        return error_response("PayPal order not completed", 400, status=exc.provider_status)
    except ProviderError as exc:
        logger.error("capture-paypal-order provider failure: %s", exc)
        return error_response(str(exc), 502)
    except PostCapturePersistenceError as exc:
        return error_response(
            str(exc),
            500,
            code="post_capture_persistence_failed",
            providerOrderId=exc.provider_order_id,
        )
    except Exception as exc:
        logger.error("capture-paypal-order failed: %s", exc, exc_info=True)
        return error_response(str(exc) or "Server error", 500)
    return json_response(result.model_dump(mode="json", by_alias=True))
