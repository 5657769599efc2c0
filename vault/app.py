from __future__ import annotations

import logging
import time

import uvicorn
from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from vault.api.routes import price_service, router
from vault.config import settings
from vault.models.db import init_db
from vault.services.price_refresh_scheduler import PriceRefreshScheduler

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = FastAPI(
    title="vault",
    description="Portfolio tracker with live prices, allocation breakdowns and heuristic risk scoring",
    version="0.1.0",
    debug=settings.app_debug,
)
price_refresh_scheduler = PriceRefreshScheduler(price_service=price_service)


@app.on_event("startup")
def startup_event() -> None:
    max_attempts = 8
    delay_seconds = 3
    last_error: Exception | None = None

    for attempt in range(1, max_attempts + 1):
        try:
            init_db()
            logging.info("Database initialization completed", extra={"attempt": attempt, "schema": settings.db_schema})
            price_refresh_scheduler.start()
            return
        except SQLAlchemyError as exc:
            last_error = exc
            logging.exception(
                "Database initialization failed",
                extra={"attempt": attempt, "max_attempts": max_attempts},
            )
            if attempt < max_attempts:
                time.sleep(delay_seconds)
            continue

    raise RuntimeError("Database initialization failed after retries") from last_error


@app.on_event("shutdown")
def shutdown_event() -> None:
    price_refresh_scheduler.stop()


app.include_router(router)


def run() -> None:
    uvicorn.run(app, host=settings.app_host, port=settings.app_port)
