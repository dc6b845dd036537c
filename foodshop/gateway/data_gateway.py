from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import uuid4

from foodshop.catalog.models import CatalogItem, parse_catalog_rows
from foodshop.core.config import Settings, get_settings
from foodshop.core.errors import (
    DataSourceError,
    InputValidationError,
    PaymentUnavailableError,
    PostCapturePersistenceError,
)
from foodshop.gateway.local_cache import LocalOrderCache
from foodshop.gateway.remote import HttpRemoteStore, RemoteStore
from foodshop.gateway.snapshot import StaticSnapshot
from foodshop.orders.models import (
    CaptureCommitRequest,
    CaptureCommitResult,
    Customer,
    Order,
    OrderCreateRequest,
    OrderLine,
    Payment,
)
from foodshop.orders.normalize import normalize_remote_orders

logger = logging.getLogger(__name__)


class OrderDataGateway:
    """Fallback ladder over remote store, static snapshot and local cache.

    Any tier may be left out; each operation walks the configured tiers top
    to bottom and stops at the first that yields usable data.
    """

    def __init__(
        self,
        remote: RemoteStore | None = None,
        snapshot: StaticSnapshot | None = None,
        local_cache: LocalOrderCache | None = None,
        orders_limit: int = 25,
    ):
        self.remote = remote
        self.snapshot = snapshot
        self.local_cache = local_cache
        self.orders_limit = orders_limit
        self.last_sources: dict[str, str] = {}

    @property
    def remote_enabled(self) -> bool:
        return self.remote is not None

    def fetch_catalog(self) -> list[CatalogItem]:
        if self.remote is not None:
            try:
                items = [item for item in parse_catalog_rows(self.remote.fetch_menu_rows()) if item.is_active]
            except Exception as exc:
                logger.warning("remote menu fetch failed, falling back to static snapshot: %s", exc)
            else:
                if items:
                    logger.info("menu served by remote store: rows=%s", len(items))
                    self.last_sources["catalog"] = "remote"
                    return items
                logger.warning("remote menu fetch returned no rows, falling back to static snapshot")

        if self.snapshot is None:
            raise DataSourceError("no menu source available")
        items = [item for item in self.snapshot.load_catalog() if item.is_active]
        self.last_sources["catalog"] = "static"
        return items

    def fetch_orders(self, limit: int | None = None) -> list[Order]:
        if limit is None:
            limit = self.orders_limit
        if limit < 1:
            raise InputValidationError(f"orders limit must be at least 1, got {limit}")
        if self.remote is not None:
            try:
                orders = normalize_remote_orders(self.remote.fetch_order_rows(limit))[:limit]
            except Exception as exc:
                logger.warning("remote orders fetch failed, falling back to static snapshot: %s", exc)
            else:
                logger.info("orders served by remote store: rows=%s", len(orders))
                self.last_sources["orders"] = "remote"
                return orders

        static_orders: list[Order] = []
        if self.snapshot is not None:
            try:
                static_orders = self.snapshot.load_orders()
            except Exception as exc:
                logger.warning("failed to load static orders: %s", exc)

        stored_orders = self.local_cache.read_orders() if self.local_cache is not None else []
        self.last_sources["orders"] = "static+local"
        return [*static_orders, *stored_orders]

    def save_order(self, request: OrderCreateRequest) -> str:
        if request.payment.provider == "paypal":
            raise InputValidationError("PayPal orders are recorded by the capture commit")

        if self.remote is not None:
            try:
                response = self.remote.create_order(request.model_dump(mode="json", by_alias=True))
            except Exception as exc:
                logger.warning("remote order save failed, falling back to local cache: %s", exc)
            else:
                order_id = response.get("orderId")
                if order_id:
                    logger.info("order saved by remote store: order_id=%s", order_id)
                    return str(order_id)
                logger.warning("remote order save responded without orderId, falling back: %s", response)

        if self.local_cache is None:
            raise DataSourceError("order could not be saved: remote store failed and no local cache is configured")

        order = Order(
            id=str(uuid4()),
            created_at=datetime.now(timezone.utc),
            customer=Customer(**request.customer.model_dump(exclude_none=True)),
            cart=[
                OrderLine(id=line.id, name=line.name or "Menu item", quantity=line.quantity, unit_price=line.price)
                for line in request.cart
            ],
            payment=Payment(provider=request.payment.provider, status="pending"),
            totals=request.totals,
        )
        self.local_cache.append(order)
        logger.info("order saved to local cache: order_id=%s", order.id)
        return order.id

    def capture_paypal_order(self, request: CaptureCommitRequest) -> CaptureCommitResult:
        if self.remote is None:
            raise PaymentUnavailableError(["remote store is not configured"])
        data = self.remote.capture_paypal_order(request.model_dump(mode="json", by_alias=True))
        provider_order_id = str(data.get("providerOrderId") or request.provider_order_id)
        order_id = data.get("orderId")
        if not order_id:
            # a 2xx from the capture function means PayPal may already hold the funds
            logger.critical(
                "capture response without orderId, manual reconciliation required: provider_order_id=%s response=%s",
                provider_order_id,
                data,
            )
            raise PostCapturePersistenceError(provider_order_id)
        return CaptureCommitResult(
            order_id=str(order_id),
            provider_order_id=provider_order_id,
            capture_details=data.get("captureDetails") or {},
        )


def build_data_gateway(settings: Settings | None = None) -> OrderDataGateway:
    cfg = settings or get_settings()
    remote = HttpRemoteStore.from_settings(cfg) if cfg.remote_base_url else None
    snapshot = StaticSnapshot(cfg.static_snapshot_base) if cfg.static_snapshot_base else None
    local_cache = LocalOrderCache(cfg.local_cache_path, slot=cfg.local_cache_slot)
    return OrderDataGateway(
        remote=remote,
        snapshot=snapshot,
        local_cache=local_cache,
        orders_limit=cfg.orders_default_limit,
    )
