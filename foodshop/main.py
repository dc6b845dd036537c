from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from foodshop.api.routes_admin import router as admin_router
from foodshop.api.routes_catalog import router as catalog_router
from foodshop.api.routes_orders import router as orders_router
from foodshop.core.config import get_settings
from foodshop.core.logging import configure_logging
from foodshop.gateway.snapshot import StaticSnapshot
from foodshop.persistence.pg import init_db, session_scope
from foodshop.persistence.repository import ShopRepository

configure_logging()
logger = logging.getLogger(__name__)
settings = get_settings()

app = FastAPI(title=settings.app_name)


@app.on_event("startup")
def on_startup() -> None:
    init_db()
    if settings.bootstrap_menu_on_startup:
        items = StaticSnapshot(settings.static_snapshot_base).load_catalog()
        with session_scope() as session:
            seeded = ShopRepository(session).seed_menu_items(items)
        logger.info("menu bootstrap: seeded_now=%s", seeded)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(_: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid payload", "details": jsonable_encoder([{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()])},
    )


@app.get("/healthz")
def healthz() -> dict:
    return {"status": "ok"}


app.include_router(catalog_router)
app.include_router(orders_router)
app.include_router(admin_router)
