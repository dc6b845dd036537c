from __future__ import annotations

import argparse
import json

from foodshop.core.config import get_settings
from foodshop.core.logging import configure_logging
from foodshop.gateway.snapshot import StaticSnapshot
from foodshop.persistence.pg import init_db, session_scope
from foodshop.persistence.repository import ShopRepository, order_row


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Food shop order service CLI")
    top = parser.add_subparsers(dest="command", required=True)

    top.add_parser("init-db", help="Create database tables")

    seed = top.add_parser("seed-menu", help="Load the static menu snapshot into an empty menu table")
    seed.add_argument("--snapshot", default=None, help="Snapshot directory or URL (default: settings.static_snapshot_base)")

    orders = top.add_parser("orders", help="Print the most recent orders as JSON")
    orders.add_argument("--limit", type=int, default=None)

    serve = top.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    serve.add_argument("--reload", action="store_true")

    return parser


def _seed_menu(args: argparse.Namespace) -> int:
    settings = get_settings()
    init_db()
    items = StaticSnapshot(args.snapshot or settings.static_snapshot_base).load_catalog()
    with session_scope() as session:
        seeded = ShopRepository(session).seed_menu_items(items)
    print(json.dumps({"seeded": seeded}))
    return 0


def _print_orders(args: argparse.Namespace) -> int:
    settings = get_settings()
    limit = args.limit or settings.orders_default_limit
    if limit < 1:
        print("--limit must be positive")
        return 2
    init_db()
    with session_scope() as session:
        rows = [order_row(row) for row in ShopRepository(session).list_orders(limit=limit)]
    print(json.dumps(rows, ensure_ascii=False, indent=2))
    return 0


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "foodshop.main:app",
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        reload=bool(args.reload),
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging()

    if args.command == "init-db":
        init_db()
        print("database initialized")
        return 0
    if args.command == "seed-menu":
        return _seed_menu(args)
    if args.command == "orders":
        return _print_orders(args)
    if args.command == "serve":
        return _serve(args)

    parser.error("unsupported command")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
