from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy.orm import Session

from vault.analytics.aggregation import compute_allocations, compute_metrics, enrich
from vault.analytics.risk import assess_risk
from vault.models.holding import Holding
from vault.models.quote import PriceError, PriceQuote, PriceRequest
from vault.models.schemas import PortfolioView, PriceRefreshResult
from vault.services.price_service import PriceLookupService
from vault.storage.repository import HoldingsRepository
from vault.utils.time import utc_now

logger = logging.getLogger(__name__)


class PortfolioService:
    def __init__(self, db: Session, price_service: PriceLookupService | None = None) -> None:
        self.db = db
        self.repo = HoldingsRepository(db=db)
        self.price_service = price_service or PriceLookupService()

    def snapshot(self, user_id: str) -> list[Holding]:
        return self.repo.list(user_id)

    @staticmethod
    def build_view(holdings: Sequence[Holding]) -> PortfolioView:
        items = list(holdings)
        metrics = compute_metrics(items)
        return PortfolioView(
            holdings=items,
            metrics=metrics,
            allocations=compute_allocations(items, metrics),
            risk=assess_risk(items, metrics),
        )

    def view(self, user_id: str) -> PortfolioView:
        return self.build_view(self.snapshot(user_id))

    def refresh_prices(self, user_id: str) -> PriceRefreshResult:
        holdings = self.snapshot(user_id)
        refreshed_at = utc_now()
        if not holdings:
            return PriceRefreshResult(portfolio=self.build_view([]), refreshed_at=refreshed_at)

        requests = [PriceRequest(symbol=h.symbol, asset_class=h.asset_class) for h in holdings]
        prices = self.price_service.fetch_prices(requests)
        enriched = enrich(holdings, prices)
        saved = self.repo.save_prices(user_id, enriched)

        resolved = sorted(symbol for symbol, value in prices.items() if isinstance(value, PriceQuote))
        failed = {symbol: value.error for symbol, value in prices.items() if isinstance(value, PriceError)}
        logger.info(
            "Portfolio prices refreshed",
            extra={"user_id": user_id, "saved": saved, "resolved": len(resolved), "failed": len(failed)},
        )
        return PriceRefreshResult(
            portfolio=self.build_view(enriched),
            resolved=resolved,
            failed=failed,
            refreshed_at=refreshed_at,
        )
