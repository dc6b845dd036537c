from __future__ import annotations

import random
from decimal import Decimal

from foodshop.cart.state import CartState
from foodshop.catalog.models import CatalogItem, index_catalog


def test_add_update_remove_and_clear(catalog):
    cart = CartState()
    cart.add_item("brezel")
    cart.add_item("brezel")
    cart.add_item("riceball")
    assert cart.items == {"brezel": 2, "riceball": 1}
    assert cart.subtotal(catalog) == Decimal("10.90")

    cart.update_item("riceball", 3)
    assert cart.items["riceball"] == 3
    cart.update_item("riceball", 0)
    assert "riceball" not in cart.items
    cart.update_item("hotpot", -2)
    assert "hotpot" not in cart.items

    cart.remove_item("brezel")
    cart.remove_item("unknown")
    assert cart.is_empty()

    cart.add_item("hotpot")
    cart.clear()
    assert cart.items == {}


def test_lines_follow_current_catalog_prices_and_skip_deleted_items(catalog):
    cart = CartState()
    cart.add_item("brezel")
    cart.add_item("bao-duo")

    repriced = [
        item.model_copy(update={"price": Decimal("3.90")}) if item.id == "brezel" else item
        for item in catalog
        if item.id != "bao-duo"
    ]
    lines = cart.derive_lines(index_catalog(repriced))
    assert [(line.item_id, line.unit_price) for line in lines] == [("brezel", Decimal("3.90"))]
    assert cart.subtotal(repriced) == Decimal("3.90")
    # the quantity stays in the cart until removed
    assert cart.items["bao-duo"] == 1


def test_random_operation_sequences_keep_quantities_positive(catalog):
    rng = random.Random(20240611)
    ids = [item.id for item in catalog] + ["not-on-menu"]
    by_id = index_catalog(catalog)

    for _ in range(200):
        cart = CartState()
        for _ in range(rng.randint(1, 25)):
            item_id = rng.choice(ids)
            op = rng.choice(["add", "update", "remove"])
            if op == "add":
                cart.add_item(item_id)
            elif op == "update":
                cart.update_item(item_id, rng.randint(-3, 6))
            else:
                cart.remove_item(item_id)

            assert all(quantity > 0 for quantity in cart.items.values())
            lines = cart.derive_lines(by_id)
            assert {line.item_id for line in lines} == {i for i in cart.items if i in by_id}
            expected = sum((by_id[i].price * q for i, q in cart.items.items() if i in by_id), Decimal("0"))
            assert cart.subtotal(by_id) == expected.quantize(Decimal("0.01"))


def test_line_total_is_rounded_to_cents():
    item = CatalogItem(id="tea", name="Tea", price="0.33")
    cart = CartState(items={"tea": 3})
    (line,) = cart.derive_lines([item])
    assert line.line_total == Decimal("0.99")
