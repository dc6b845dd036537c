from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import httpx

from foodshop.catalog.models import CatalogItem, parse_catalog_rows
from foodshop.core.errors import DataSourceError
from foodshop.orders.models import Order
from foodshop.orders.normalize import parse_stored_orders

MENU_FILE = "json/dishes.json"
ORDERS_FILE = "json/orders.json"


class StaticSnapshot:
    """Read-only JSON snapshot from a directory or an http(s) base URL."""

    def __init__(self, base: str | Path, timeout_seconds: int = 10, client: httpx.Client | None = None):
        self.base = str(base).rstrip("/")
        self.timeout = max(1, timeout_seconds)
        self._client = client

    @property
    def is_remote(self) -> bool:
        return self.base.startswith(("http://", "https://"))

    def _load(self, name: str) -> Any:
        if self.is_remote:
            url = f"{self.base}/{name}"
            try:
                if self._client is not None:
                    response = self._client.get(url)
                else:
                    with httpx.Client(timeout=self.timeout) as client:
                        response = client.get(url)
            except httpx.HTTPError as exc:
                raise DataSourceError(f"Failed to load {name}: {exc}") from exc
            if response.is_error:
                raise DataSourceError(f"Failed to load {name} ({response.status_code})")
            return response.json()

        path = Path(self.base) / name
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise DataSourceError(f"Failed to load {name}: {exc}") from exc

    def load_catalog(self) -> list[CatalogItem]:
        data = self._load(MENU_FILE)
        return parse_catalog_rows(data if isinstance(data, list) else [])

    def load_orders(self) -> list[Order]:
        data = self._load(ORDERS_FILE)
        return parse_stored_orders(data if isinstance(data, list) else [], source="static")
