from __future__ import annotations

import logging
import threading

from vault.config import get_settings
from vault.models import db as db_module
from vault.services.portfolio_service import PortfolioService
from vault.services.price_service import PriceLookupService
from vault.storage.repository import HoldingsRepository

logger = logging.getLogger(__name__)


class PriceRefreshScheduler:
    def __init__(self, price_service: PriceLookupService | None = None) -> None:
        self.settings = get_settings()
        self.price_service = price_service or PriceLookupService()
        self.interval_seconds = max(5, self.settings.price_refresh_interval_seconds)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if not self.settings.price_refresh_scheduler_enabled:
            return
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="portfolio-price-refresh",
            daemon=True,
        )
        self._thread.start()
        logger.info("Price refresh scheduler started", extra={"interval_seconds": self.interval_seconds})

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5)

    def _run_loop(self) -> None:
        while not self._stop_event.wait(self.interval_seconds):
            try:
                self.run_once()
            except Exception as exc:
                logger.exception("Scheduled price refresh run failed", extra={"error": str(exc)})

    def run_once(self) -> int:
        db = db_module.SessionLocal()
        refreshed = 0
        try:
            service = PortfolioService(db=db, price_service=self.price_service)
            try:
                user_ids = HoldingsRepository(db).user_ids_with_holdings()
            except Exception as exc:
                db.rollback()
                logger.exception("Scheduled price refresh could not list users", extra={"error": str(exc)})
                return refreshed
            for user_id in user_ids:
                if self._stop_event.is_set():
                    break
                try:
                    service.refresh_prices(user_id)
                    refreshed += 1
                except Exception as exc:
                    db.rollback()
                    logger.exception("Scheduled price refresh failed", extra={"user_id": user_id, "error": str(exc)})
        finally:
            db.close()
        return refreshed
