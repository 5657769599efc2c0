from __future__ import annotations

import pytest

from vault.models.holding import AssetClass, HoldingCreate, HoldingUpdate
from vault.storage.repository import AssetClassConflictError, HoldingNotFoundError, HoldingsRepository


def _create(repo: HoldingsRepository, user_id: str, symbol: str, asset_class: str = "stock", price: float = 100.0):
    return repo.create(
        user_id,
        HoldingCreate(symbol=symbol, name=f"{symbol} name", asset_class=asset_class, quantity=2, purchase_price=price),
    )


def test_create_and_list_are_scoped_by_user(db) -> None:
    repo = HoldingsRepository(db)
    aapl = _create(repo, "u1", "aapl")
    _create(repo, "u1", "btc", asset_class="crypto", price=30000)
    _create(repo, "u2", "msft")

    holdings = repo.list("u1")

    assert {h.symbol for h in holdings} == {"AAPL", "BTC"}
    assert aapl.id
    assert aapl.current_price == aapl.purchase_price == 100
    assert aapl.asset_class == AssetClass.STOCK
    assert [h.symbol for h in repo.list("u2")] == ["MSFT"]


def test_update_changes_fields_and_keeps_asset_class(db) -> None:
    repo = HoldingsRepository(db)
    created = _create(repo, "u1", "AAPL")

    updated = repo.update("u1", created.id, HoldingUpdate(quantity=5, current_price=120))

    assert updated.quantity == 5
    assert updated.current_price == 120
    assert updated.asset_class == AssetClass.STOCK
    assert updated.current_value == 600


def test_update_with_blank_name_falls_back_to_symbol(db) -> None:
    repo = HoldingsRepository(db)
    created = _create(repo, "u1", "AAPL")

    renamed = repo.update("u1", created.id, HoldingUpdate(name="  Apple  "))
    assert renamed.name == "Apple"

    blanked = repo.update("u1", created.id, HoldingUpdate(name="   "))
    assert blanked.name == "AAPL"


def test_create_rejects_symbol_held_under_another_asset_class(db) -> None:
    repo = HoldingsRepository(db)
    _create(repo, "u1", "GOLD", asset_class="commodity", price=2000)

    with pytest.raises(AssetClassConflictError) as exc_info:
        _create(repo, "u1", "GOLD", asset_class="stock", price=18)

    assert exc_info.value.existing == "commodity"
    # Another lot in the same class, or the same symbol for another user, is fine.
    _create(repo, "u1", "GOLD", asset_class="commodity", price=2100)
    _create(repo, "u2", "GOLD", asset_class="stock", price=18)
    assert len(repo.list("u1")) == 2


def test_update_and_delete_unknown_ids_raise(db) -> None:
    repo = HoldingsRepository(db)
    created = _create(repo, "u1", "AAPL")

    with pytest.raises(HoldingNotFoundError):
        repo.update("u1", "missing", HoldingUpdate(quantity=1))
    with pytest.raises(HoldingNotFoundError):
        repo.delete("u2", created.id)


def test_delete_removes_holding(db) -> None:
    repo = HoldingsRepository(db)
    created = _create(repo, "u1", "AAPL")

    repo.delete("u1", created.id)

    assert repo.get("u1", created.id) is None
    assert repo.list("u1") == []


def test_save_prices_persists_refreshed_values(db) -> None:
    repo = HoldingsRepository(db)
    created = _create(repo, "u1", "AAPL")
    refreshed = created.model_copy(update={"current_price": 111.0, "day_change_percent": 1.5, "name": "Apple Inc."})

    saved = repo.save_prices("u1", [refreshed])

    stored = repo.get("u1", created.id)
    assert saved == 1
    assert stored.current_price == 111.0
    assert stored.day_change_percent == 1.5
    assert stored.name == "Apple Inc."


def test_save_prices_skips_deleted_holdings(db) -> None:
    repo = HoldingsRepository(db)
    created = _create(repo, "u1", "AAPL")
    repo.delete("u1", created.id)

    assert repo.save_prices("u1", [created]) == 0


def test_user_ids_with_holdings(db) -> None:
    repo = HoldingsRepository(db)
    _create(repo, "u2", "AAPL")
    _create(repo, "u1", "MSFT")
    _create(repo, "u1", "VOO", asset_class="etf")

    assert repo.user_ids_with_holdings() == ["u1", "u2"]
