from __future__ import annotations

import threading

from conftest import StubPriceService, make_quote

from vault.models.holding import HoldingCreate
from vault.models.portfolio import RiskLevel
from vault.models.quote import PriceError
from vault.services.portfolio_service import PortfolioService
from vault.services.price_refresh_scheduler import PriceRefreshScheduler
from vault.storage.repository import HoldingsRepository


def _seed(db, user_id: str = "u1") -> None:
    repo = HoldingsRepository(db)
    repo.create(user_id, HoldingCreate(symbol="AAPL", asset_class="stock", quantity=2, purchase_price=100))
    repo.create(user_id, HoldingCreate(symbol="BTC", asset_class="crypto", quantity=1, purchase_price=200))


def test_view_of_empty_portfolio(db) -> None:
    view = PortfolioService(db=db, price_service=StubPriceService()).view("nobody")

    assert view.holdings == []
    assert view.metrics.total_value == 0
    assert len(view.allocations) == 4
    assert view.risk.risk_level == RiskLevel.NO_DATA


def test_view_uses_stored_prices(db) -> None:
    _seed(db)

    view = PortfolioService(db=db, price_service=StubPriceService()).view("u1")

    assert view.metrics.total_value == 400
    assert view.metrics.total_gain == 0
    assert {a.name: a.percent for a in view.allocations}["Crypto"] == 50
    assert view.risk.overall_risk > 0


def test_refresh_prices_enriches_and_persists(db) -> None:
    _seed(db)
    stub = StubPriceService(
        {
            "AAPL": make_quote("AAPL", 150.0, change_percent=50.0, name="Apple Inc."),
            "BTC": PriceError(symbol="BTC", error="rate limited"),
        }
    )
    service = PortfolioService(db=db, price_service=stub)

    result = service.refresh_prices("u1")

    assert result.resolved == ["AAPL"]
    assert result.failed == {"BTC": "rate limited"}
    assert result.portfolio.metrics.total_value == 500
    assert result.portfolio.metrics.total_gain == 100
    assert result.portfolio.metrics.day_change == 100

    stored = {h.symbol: h for h in HoldingsRepository(db).list("u1")}
    assert stored["AAPL"].current_price == 150.0
    assert stored["AAPL"].name == "Apple Inc."
    assert stored["BTC"].current_price == 200.0
    assert len(stub.calls) == 1
    assert {r.symbol for r in stub.calls[0]} == {"AAPL", "BTC"}


def test_refresh_prices_with_no_holdings_skips_lookup(db) -> None:
    stub = StubPriceService()

    result = PortfolioService(db=db, price_service=stub).refresh_prices("u1")

    assert result.portfolio.holdings == []
    assert stub.calls == []


def test_scheduler_refreshes_every_user(session_local, monkeypatch) -> None:
    from vault.models import db as db_module

    monkeypatch.setattr(db_module, "SessionLocal", session_local)
    with session_local() as db:
        _seed(db, "u1")
        _seed(db, "u2")

    stub = StubPriceService({"AAPL": make_quote("AAPL", 120.0)})
    refreshed = PriceRefreshScheduler(price_service=stub).run_once()

    assert refreshed == 2
    with session_local() as db:
        prices = {h.current_price for h in HoldingsRepository(db).list("u2") if h.symbol == "AAPL"}
    assert prices == {120.0}


def test_scheduler_continues_after_a_failing_user(session_local, monkeypatch) -> None:
    from vault.models import db as db_module

    monkeypatch.setattr(db_module, "SessionLocal", session_local)
    with session_local() as db:
        _seed(db, "u1")
        _seed(db, "u2")

    class FlakyPrices(StubPriceService):
        def fetch_prices(self, requests):
            self.calls.append(list(requests))
            if len(self.calls) == 1:
                raise RuntimeError("provider outage")
            return {}

    stub = FlakyPrices()
    refreshed = PriceRefreshScheduler(price_service=stub).run_once()

    assert refreshed == 1
    assert len(stub.calls) == 2


def test_scheduler_run_survives_user_listing_failure(session_local, monkeypatch) -> None:
    from vault.models import db as db_module

    monkeypatch.setattr(db_module, "SessionLocal", session_local)

    def db_down(self):
        raise RuntimeError("db down")

    monkeypatch.setattr(HoldingsRepository, "user_ids_with_holdings", db_down)
    stub = StubPriceService()

    assert PriceRefreshScheduler(price_service=stub).run_once() == 0
    assert stub.calls == []


def test_scheduler_loop_keeps_polling_after_failed_run(session_local, monkeypatch) -> None:
    from vault.models import db as db_module

    attempts: list[int] = []
    recovered = threading.Event()

    def flaky_sessions():
        attempts.append(1)
        if len(attempts) == 1:
            raise RuntimeError("db down")
        recovered.set()
        return session_local()

    monkeypatch.setattr(db_module, "SessionLocal", flaky_sessions)
    scheduler = PriceRefreshScheduler(price_service=StubPriceService())
    scheduler.interval_seconds = 0.01
    thread = threading.Thread(target=scheduler._run_loop, daemon=True)
    thread.start()
    try:
        assert recovered.wait(timeout=5)
        assert thread.is_alive()
    finally:
        scheduler._stop_event.set()
        thread.join(timeout=5)
