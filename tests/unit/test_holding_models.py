from __future__ import annotations

import pytest
from pydantic import ValidationError

from vault.models.holding import AssetClass, HoldingCreate, HoldingUpdate


def test_create_normalizes_symbol_and_defaults_price() -> None:
    payload = HoldingCreate(symbol=" aapl ", name="", asset_class="stock", quantity=3, purchase_price=150)

    assert payload.symbol == "AAPL"
    assert payload.name == "AAPL"
    assert payload.asset_class == AssetClass.STOCK
    assert payload.current_price == 150
    assert payload.day_change_percent == 0


@pytest.mark.parametrize("field", ["quantity", "purchase_price"])
@pytest.mark.parametrize("value", [0, -1])
def test_create_rejects_non_positive_amounts(field: str, value: float) -> None:
    data = {"symbol": "AAPL", "asset_class": "stock", "quantity": 1, "purchase_price": 10}
    data[field] = value

    with pytest.raises(ValidationError):
        HoldingCreate(**data)


def test_create_rejects_unknown_asset_class() -> None:
    with pytest.raises(ValidationError):
        HoldingCreate(symbol="AAPL", asset_class="bond", quantity=1, purchase_price=10)


def test_create_rejects_bad_symbol() -> None:
    with pytest.raises(ValidationError):
        HoldingCreate(symbol="AA PL!", asset_class="stock", quantity=1, purchase_price=10)


def test_create_accepts_exchange_suffixes() -> None:
    payload = HoldingCreate(symbol="vusa.l", asset_class="etf", quantity=1, purchase_price=10)

    assert payload.symbol == "VUSA.L"


def test_update_forbids_asset_class_changes() -> None:
    with pytest.raises(ValidationError):
        HoldingUpdate(asset_class="crypto")


def test_update_reports_only_set_fields() -> None:
    update = HoldingUpdate(quantity=4)

    assert update.changes() == {"quantity": 4}


def test_update_rejects_non_positive_quantity() -> None:
    with pytest.raises(ValidationError):
        HoldingUpdate(quantity=0)
