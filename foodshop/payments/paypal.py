from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote
from uuid import uuid4

import httpx

from foodshop.core.config import Settings, get_settings
from foodshop.core.errors import ProviderError

logger = logging.getLogger(__name__)


class PayPalClient:
    """Server-side PayPal REST calls (OAuth token, order create, capture)."""

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.settings = settings or get_settings()
        self.base_url = self.settings.paypal_api_base.rstrip("/")
        self.timeout = max(1, self.settings.paypal_timeout_seconds)
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.settings.paypal_client_id and self.settings.paypal_client_secret)

    def _client(self) -> httpx.Client:
        return httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    @staticmethod
    def _error_text(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text
        if isinstance(body, dict):
            return str(body.get("message") or body.get("error_description") or body.get("error") or body)
        return str(body)

    @staticmethod
    def _json_object(response: httpx.Response, action: str) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError as exc:
            raise ProviderError(f"PayPal {action} returned a non-JSON body ({response.status_code})") from exc
        if not isinstance(payload, dict):
            raise ProviderError(f"PayPal {action} returned an unexpected body: {type(payload).__name__}")
        return payload

    def get_access_token(self) -> str:
        if not self.configured:
            raise ProviderError("PayPal client credentials are not configured")
        try:
            with self._client() as client:
                response = client.post(
                    "/v1/oauth2/token",
                    auth=(self.settings.paypal_client_id or "", self.settings.paypal_client_secret or ""),
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                    data={"grant_type": "client_credentials"},
                )
        except httpx.HTTPError as exc:
            raise ProviderError(f"PayPal auth failed: {exc}") from exc
        if response.is_error:
            raise ProviderError(f"PayPal auth failed: {response.status_code} {self._error_text(response)}")
        token = self._json_object(response, "auth").get("access_token")
        if not token:
            raise ProviderError("PayPal auth response missing access_token")
        return str(token)

    def capture_order(self, provider_order_id: str, access_token: str) -> dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
            "PayPal-Request-Id": str(uuid4()),
            "Prefer": "return=representation",
        }
        try:
            with self._client() as client:
                response = client.post(f"/v2/checkout/orders/{quote(provider_order_id, safe='')}/capture", headers=headers)
        except httpx.HTTPError as exc:
            raise ProviderError(f"PayPal capture failed: {exc}") from exc
        if response.is_error:
            raise ProviderError(f"PayPal capture failed: {response.status_code} {self._error_text(response)}")
        return self._json_object(response, "capture")

    def create_order(self, amount: str, currency: str, description: str) -> str:
        """Open a CAPTURE-intent order; used when the buttons run against the REST API directly."""
        access_token = self.get_access_token()
        body = {
            "intent": "CAPTURE",
            "purchase_units": [
                {
                    "description": description,
                    "amount": {"currency_code": currency, "value": amount},
                }
            ],
        }
        try:
            with self._client() as client:
                response = client.post(
                    "/v2/checkout/orders",
                    headers={"Authorization": f"Bearer {access_token}", "Content-Type": "application/json"},
                    json=body,
                )
        except httpx.HTTPError as exc:
            raise ProviderError(f"PayPal order create failed: {exc}") from exc
        if response.is_error:
            raise ProviderError(f"PayPal order create failed: {response.status_code} {self._error_text(response)}")
        order_id = self._json_object(response, "order create").get("id")
        if not order_id:
            raise ProviderError("PayPal order create response missing id")
        logger.info("paypal order opened: provider_order_id=%s amount=%s %s", order_id, amount, currency)
        return str(order_id)


def build_paypal_client() -> PayPalClient:
    return PayPalClient(get_settings())
