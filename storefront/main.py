from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from storefront.api.routes_orders import router as orders_router
from storefront.core.config import get_settings
from storefront.core.logging import configure_logging
from storefront.domain.errors import FulfillmentError
from storefront.persistence.database import init_db
from storefront.reconciliation.scheduler import DeliverySweepScheduler

configure_logging()
logger = logging.getLogger(__name__)
settings = get_settings()

app = FastAPI(title=settings.app_name)
app.state.delivery_scheduler = None


@app.on_event("startup")
def on_startup() -> None:
    init_db()
    if settings.delivery_sweep_enabled:
        scheduler = DeliverySweepScheduler(
            interval_seconds=settings.delivery_sweep_interval_seconds,
            run_immediately=settings.delivery_sweep_on_startup,
        )
        scheduler.start()
        app.state.delivery_scheduler = scheduler


@app.on_event("shutdown")
def on_shutdown() -> None:
    scheduler = app.state.delivery_scheduler
    if scheduler is not None:
        scheduler.stop()
        app.state.delivery_scheduler = None


@app.exception_handler(FulfillmentError)
async def fulfillment_error_handler(_: Request, exc: FulfillmentError):
    if exc.status_code >= 500:
        logger.error("fulfillment error: %s", exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": str(exc),
            "error": exc.code,
        },
    )


@app.get("/healthz")
def healthz() -> dict:
    return {"status": "ok"}


app.include_router(orders_router)
