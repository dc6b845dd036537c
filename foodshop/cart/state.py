from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Mapping

from foodshop.catalog.models import CatalogItem
from foodshop.core.money import ZERO, to_money


@dataclass(frozen=True)
class CartLine:
    item_id: str
    name: str
    quantity: int
    unit_price: Decimal
    emoji: str | None = None

    @property
    def line_total(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)


@dataclass
class CartState:
    """Item id -> quantity for one client session.

    Quantities are always > 0; a line that would drop to zero is removed.
    Prices are not stored here and are read from the catalog on every
    derivation.
    """

    items: dict[str, int] = field(default_factory=dict)

    def add_item(self, item_id: str) -> None:
        self.items[item_id] = self.items.get(item_id, 0) + 1

    def update_item(self, item_id: str, quantity: int) -> None:
        if quantity <= 0:
            self.items.pop(item_id, None)
            return
        self.items[item_id] = int(quantity)

    def remove_item(self, item_id: str) -> None:
        self.items.pop(item_id, None)

    def clear(self) -> None:
        self.items = {}

    def is_empty(self) -> bool:
        return not self.items

    def derive_lines(self, catalog: Mapping[str, CatalogItem] | Iterable[CatalogItem]) -> list[CartLine]:
        by_id = catalog if isinstance(catalog, Mapping) else {item.id: item for item in catalog}
        lines: list[CartLine] = []
        for item_id, quantity in self.items.items():
            item = by_id.get(item_id)
            if item is None:
                # deleted from the catalog since it was added
                continue
            lines.append(
                CartLine(
                    item_id=item_id,
                    name=item.name,
                    quantity=quantity,
                    unit_price=item.price,
                    emoji=item.emoji,
                )
            )
        return lines

    def subtotal(self, catalog: Mapping[str, CatalogItem] | Iterable[CatalogItem]) -> Decimal:
        return sum((line.line_total for line in self.derive_lines(catalog)), ZERO)
