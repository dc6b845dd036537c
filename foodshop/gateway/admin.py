from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from foodshop.catalog.models import CatalogItem, normalize_catalog_item
from foodshop.core.errors import AdminAuthorizationError, DataSourceError, InputValidationError
from foodshop.gateway.remote import RemoteStore
from foodshop.orders.models import PAYMENT_STATUSES, Order
from foodshop.orders.normalize import normalize_remote_order

logger = logging.getLogger(__name__)


class AdminMutationGateway:
    """Catalog and order mutations for staff.

    The admin capability is checked before anything else, so a non-admin
    caller never reaches the backing store. A successful mutation fires
    ``on_refresh``; a failing refresh is logged and does not change the
    mutation's own outcome.
    """

    def __init__(
        self,
        remote: RemoteStore | None,
        is_admin: bool | Callable[[], bool],
        on_refresh: Callable[[], Any] | None = None,
    ):
        self.remote = remote
        self._is_admin = is_admin
        self.on_refresh = on_refresh

    @property
    def is_admin(self) -> bool:
        capability = self._is_admin
        return bool(capability() if callable(capability) else capability)

    def _require(self, action: str) -> RemoteStore:
        if not self.is_admin:
            raise AdminAuthorizationError(f"Admin session required to {action}.")
        if self.remote is None:
            raise DataSourceError("remote store is not configured")
        return self.remote

    def _signal_refresh(self) -> None:
        if self.on_refresh is None:
            return
        try:
            self.on_refresh()
        except Exception as exc:
            logger.warning("refresh after admin mutation failed: %s", exc)

    def upsert_catalog_item(self, values: Mapping[str, Any]) -> CatalogItem:
        remote = self._require("save menu items")
        try:
            item = normalize_catalog_item(values)
        except ValueError as exc:
            raise InputValidationError(str(exc)) from exc
        payload = item.model_dump(mode="json", exclude={"id"})
        row = remote.upsert_menu_item(item.id, payload)
        logger.info("[Admin] menu item saved: id=%s", item.id)
        self._signal_refresh()
        return CatalogItem.model_validate(row) if isinstance(row, dict) and row.get("id") else item

    def delete_catalog_item(self, item_id: str) -> None:
        remote = self._require("delete menu items")
        remote.delete_menu_item(item_id)
        logger.info("[Admin] menu item deleted: id=%s", item_id)
        self._signal_refresh()

    def set_order_payment_status(self, order_id: str, status: str) -> Order:
        remote = self._require("update orders")
        if status not in PAYMENT_STATUSES:
            raise InputValidationError(f"unknown payment status: {status}")
        row = remote.update_order_status(order_id, status)
        logger.info("[Admin] order status updated: order_id=%s status=%s", order_id, status)
        self._signal_refresh()
        return normalize_remote_order(row)

    def delete_order(self, order_id: str) -> None:
        remote = self._require("delete orders")
        remote.delete_order(order_id)
        logger.info("[Admin] order deleted: order_id=%s", order_id)
        self._signal_refresh()
