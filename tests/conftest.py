from __future__ import annotations

import os
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault("PRICE_REFRESH_SCHEDULER_ENABLED", "false")

from vault.models.holding import AssetClass, Holding  # noqa: E402
from vault.models.quote import PriceQuote  # noqa: E402


class StubPriceService:
    """Price lookup double that serves a fixed snapshot."""

    def __init__(self, snapshot: dict | None = None) -> None:
        self.snapshot = snapshot or {}
        self.calls: list[list] = []

    def fetch_prices(self, requests) -> dict:
        requests = list(requests)
        self.calls.append(requests)
        symbols = {r.symbol.upper() for r in requests}
        return {symbol: value for symbol, value in self.snapshot.items() if symbol in symbols}


def make_holding(
    symbol: str = "AAPL",
    asset_class: AssetClass = AssetClass.STOCK,
    quantity: float = 1.0,
    purchase_price: float = 100.0,
    current_price: float | None = None,
    day_change_percent: float = 0.0,
    holding_id: str | None = None,
) -> Holding:
    return Holding(
        id=holding_id or f"h-{symbol.lower()}",
        symbol=symbol,
        name=symbol,
        asset_class=asset_class,
        quantity=quantity,
        purchase_price=purchase_price,
        current_price=purchase_price if current_price is None else current_price,
        day_change_percent=day_change_percent,
    )


def make_quote(symbol: str, price: float, change_percent: float = 0.0, name: str | None = None) -> PriceQuote:
    return PriceQuote(symbol=symbol, name=name, price=price, change_percent=change_percent)


@pytest.fixture
def session_local(tmp_path):
    from vault.models.db import Base
    from vault.models import tables  # noqa: F401

    engine = create_engine(f"sqlite:///{tmp_path / 'unit.db'}", connect_args={"check_same_thread": False}, future=True)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    Base.metadata.create_all(bind=engine)
    yield TestingSessionLocal
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_local):
    session = session_local()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def test_ctx(tmp_path, monkeypatch) -> Generator[dict, None, None]:
    import vault.models.db as db_module
    from vault.models.db import Base
    from vault.models import tables  # noqa: F401

    db_file = tmp_path / "test.db"
    test_url = f"sqlite:///{db_file}"
    engine = create_engine(test_url, connect_args={"check_same_thread": False}, future=True)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

    monkeypatch.setattr(db_module, "engine", engine, raising=False)
    monkeypatch.setattr(db_module, "SessionLocal", TestingSessionLocal, raising=False)

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    from vault.api.routes import get_price_service
    from vault.app import app

    stub = StubPriceService()
    app.dependency_overrides[get_price_service] = lambda: stub

    with TestClient(app) as client:
        yield {
            "client": client,
            "session_local": TestingSessionLocal,
            "engine": engine,
            "prices": stub,
        }

    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=engine)
