from __future__ import annotations

import logging
from typing import Any, Protocol
from urllib.parse import quote

import httpx

from foodshop.core.config import Settings, get_settings
from foodshop.core.errors import PostCapturePersistenceError, ProviderRejectedError, RemoteStoreError

logger = logging.getLogger(__name__)


class RemoteStore(Protocol):
    backend_name: str

    def fetch_menu_rows(self) -> list[dict[str, Any]]:
        ...

    def fetch_order_rows(self, limit: int) -> list[dict[str, Any]]:
        ...

    def create_order(self, payload: dict[str, Any]) -> dict[str, Any]:
        ...

    def capture_paypal_order(self, payload: dict[str, Any]) -> dict[str, Any]:
        ...

    def upsert_menu_item(self, item_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        ...

    def delete_menu_item(self, item_id: str) -> None:
        ...

    def update_order_status(self, order_id: str, status: str) -> dict[str, Any]:
        ...

    def delete_order(self, order_id: str) -> None:
        ...


class HttpRemoteStore:
    """Remote tier backed by the shop HTTP API."""

    backend_name = "http"

    def __init__(
        self,
        base_url: str = "",
        api_key: str | None = None,
        timeout_seconds: int = 10,
        client: httpx.Client | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = max(1, timeout_seconds)
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "HttpRemoteStore":
        cfg = settings or get_settings()
        return cls(cfg.remote_base_url, api_key=cfg.remote_api_key, timeout_seconds=cfg.remote_timeout_seconds)

    def _headers(self, admin: bool) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if admin and self.api_key:
            headers["X-API-Key"] = self.api_key
        return headers

    def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        admin: bool = False,
    ) -> Any:
        kwargs: dict[str, Any] = {"headers": self._headers(admin), "params": params}
        if json_body is not None:
            kwargs["json"] = json_body
        try:
            if self._client is not None:
                response = self._client.request(method, path, **kwargs)
            else:
                with httpx.Client(base_url=self.base_url, timeout=self.timeout) as client:
                    response = client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise RemoteStoreError(f"{method} {path} failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.is_error:
            body = payload if isinstance(payload, dict) else {}
            message = body.get("error") or body.get("detail") or f"Request failed with status {response.status_code}"
            raise RemoteStoreError(str(message), status_code=response.status_code, payload=body)
        if isinstance(payload, dict) and payload.get("error"):
            raise RemoteStoreError(str(payload["error"]), status_code=response.status_code, payload=payload)
        return payload

    def fetch_menu_rows(self) -> list[dict[str, Any]]:
        payload = self._request("GET", "/menu-items")
        if not isinstance(payload, list):
            raise RemoteStoreError(f"unexpected menu payload: {type(payload).__name__}")
        return payload

    def fetch_order_rows(self, limit: int) -> list[dict[str, Any]]:
        payload = self._request("GET", "/orders", params={"limit": limit})
        if not isinstance(payload, list):
            raise RemoteStoreError(f"unexpected orders payload: {type(payload).__name__}")
        return payload

    def create_order(self, payload: dict[str, Any]) -> dict[str, Any]:
        result = self._request("POST", "/functions/create-order", json_body=payload)
        return result if isinstance(result, dict) else {}

    def capture_paypal_order(self, payload: dict[str, Any]) -> dict[str, Any]:
        provider_order_id = str(payload.get("providerOrderId") or "")
        try:
            result = self._request("POST", "/functions/capture-paypal-order", json_body=payload)
        except RemoteStoreError as exc:
            body = exc.payload
            if body.get("code") == "post_capture_persistence_failed":
                raise PostCapturePersistenceError(
                    str(body.get("providerOrderId") or provider_order_id),
                    message=body.get("error"),
                ) from exc
            if exc.status_code == 400 and body.get("status"):
                raise ProviderRejectedError(
                    str(body["status"]),
                    message=f"{body.get('error') or 'PayPal order not completed'} (status: {body['status']})",
                ) from exc
            raise
        return result if isinstance(result, dict) else {}

    def upsert_menu_item(self, item_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        return self._request("PUT", f"/admin/menu-items/{quote(item_id, safe='')}", json_body=payload, admin=True)

    def delete_menu_item(self, item_id: str) -> None:
        self._request("DELETE", f"/admin/menu-items/{quote(item_id, safe='')}", admin=True)

    def update_order_status(self, order_id: str, status: str) -> dict[str, Any]:
        path = f"/admin/orders/{quote(order_id, safe='')}/status"
        return self._request("PATCH", path, json_body={"status": status}, admin=True)

    def delete_order(self, order_id: str) -> None:
        self._request("DELETE", f"/admin/orders/{quote(order_id, safe='')}", admin=True)
