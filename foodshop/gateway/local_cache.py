from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from foodshop.orders.models import Order
from foodshop.orders.normalize import parse_stored_orders

logger = logging.getLogger(__name__)


class LocalOrderCache:
    """Durable client-side order list kept in one named slot of a JSON file.

    Every access reads or rewrites the whole slot (read-modify-write). There
    is no cross-process coordination.
    """

    def __init__(self, path: Path | str, slot: str = "foodshop-orders"):
        self.path = Path(path)
        self.slot = slot

    def _read_store(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("failed to parse stored orders at %s: %s", self.path, exc)
            return {}
        return payload if isinstance(payload, dict) else {}

    def read_orders(self) -> list[Order]:
        raw = self._read_store().get(self.slot)
        if not isinstance(raw, list):
            return []
        return parse_stored_orders(raw, source="local")

    def write_orders(self, orders: list[Order]) -> None:
        store = self._read_store()
        store[self.slot] = [order.to_json() for order in orders]
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_file = self.path.with_suffix(".tmp")
        tmp_file.write_text(json.dumps(store, ensure_ascii=False, separators=(",", ":")), encoding="utf-8")
        tmp_file.replace(self.path)

    def append(self, order: Order) -> None:
        orders = self.read_orders()
        orders.append(order)
        self.write_orders(orders)
