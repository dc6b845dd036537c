from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from foodshop.catalog.models import normalize_catalog_item
from foodshop.core.security import AdminIdentity, get_admin_identity, require_admin
from foodshop.orders.models import PaymentStatus
from foodshop.persistence.pg import get_session
from foodshop.persistence.repository import ShopRepository, menu_item_row, order_row

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


class OrderStatusUpdate(BaseModel):
    status: PaymentStatus


class MenuItemUpsert(BaseModel):
    name: str
    description: str | dict[str, str] | None = None
    description_i18n: dict[str, str] | None = None
    price: Any = 0
    emoji: str | None = None
    tags: list[str] | None = None
    is_active: bool = True


@router.put("/menu-items/{item_id}")
def upsert_menu_item(
    item_id: str,
    payload: MenuItemUpsert,
    identity: AdminIdentity = Depends(get_admin_identity),
    session: Session = Depends(get_session),
):
    require_admin(identity)
    try:
        item = normalize_catalog_item({**payload.model_dump(), "id": item_id})
    except (ValueError, ValidationError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    row = ShopRepository(session).upsert_menu_item(item)
    logger.info("menu item upserted: id=%s", row.id)
    return menu_item_row(row)


@router.delete("/menu-items/{item_id}")
def delete_menu_item(
    item_id: str,
    identity: AdminIdentity = Depends(get_admin_identity),
    session: Session = Depends(get_session),
):
    require_admin(identity)
    if not ShopRepository(session).delete_menu_item(item_id):
        raise HTTPException(status_code=404, detail="menu item not found")
    logger.info("menu item deleted: id=%s", item_id)
    return {"deleted": item_id}


@router.patch("/orders/{order_id}/status")
def set_order_status(
    order_id: str,
    payload: OrderStatusUpdate,
    identity: AdminIdentity = Depends(get_admin_identity),
    session: Session = Depends(get_session),
):
    require_admin(identity)
    order = ShopRepository(session).set_order_payment_status(order_id, payload.status)
    if order is None:
        raise HTTPException(status_code=404, detail="order not found")
    logger.info("order payment status set: order_id=%s status=%s", order_id, payload.status)
    return order_row(order)


@router.delete("/orders/{order_id}")
def delete_order(
    order_id: str,
    identity: AdminIdentity = Depends(get_admin_identity),
    session: Session = Depends(get_session),
):
    require_admin(identity)
    if not ShopRepository(session).delete_order(order_id):
        raise HTTPException(status_code=404, detail="order not found")
    logger.info("order deleted: order_id=%s", order_id)
    return {"deleted": order_id}
