from __future__ import annotations

import json

import pytest

from foodshop.cli import main


def test_init_db_and_seed_menu(capsys):
    assert main(["init-db"]) == 0
    assert "database initialized" in capsys.readouterr().out

    assert main(["seed-menu"]) == 0
    assert json.loads(capsys.readouterr().out) == {"seeded": 5}

    # the menu table is no longer empty, so nothing is seeded twice
    assert main(["seed-menu"]) == 0
    assert json.loads(capsys.readouterr().out) == {"seeded": 0}


def test_orders_prints_recent_orders(client, order_payload, capsys):
    first = client.post("/functions/create-order", json=order_payload()).json()["orderId"]
    second = client.post("/functions/create-order", json=order_payload(provider="maestro")).json()["orderId"]
    capsys.readouterr()

    assert main(["orders", "--limit", "1"]) == 0
    rows = json.loads(capsys.readouterr().out)
    assert len(rows) == 1
    assert rows[0]["id"] in {first, second}

    assert main(["orders"]) == 0
    assert {row["id"] for row in json.loads(capsys.readouterr().out)} == {first, second}


def test_orders_rejects_non_positive_limit(capsys):
    assert main(["orders", "--limit", "-1"]) == 2


def test_unknown_command_exits():
    with pytest.raises(SystemExit):
        main(["bake-bread"])
