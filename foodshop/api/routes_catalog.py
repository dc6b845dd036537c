from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from foodshop.persistence.pg import get_session
from foodshop.persistence.repository import ShopRepository, menu_item_row, order_row

router = APIRouter(tags=["catalog"])


@router.get("/menu-items")
def list_menu_items(session: Session = Depends(get_session)):
    rows = ShopRepository(session).list_active_menu_items()
    return [menu_item_row(row) for row in rows]


@router.get("/orders")
def list_orders(
    limit: int = Query(default=25, ge=1, le=100),
    session: Session = Depends(get_session),
):
    rows = ShopRepository(session).list_orders(limit=limit)
    return [order_row(row) for row in rows]
