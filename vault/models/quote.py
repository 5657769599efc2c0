from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from vault.models.holding import AssetClass
from vault.utils.time import utc_now


class PriceRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str
    asset_class: AssetClass


class PriceQuote(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str
    asset_class: AssetClass | None = None
    name: str | None = None
    price: float = Field(gt=0)
    change: float = 0.0
    change_percent: float = 0.0
    source: str = "yfinance"
    last_updated: datetime = Field(default_factory=utc_now)


class PriceError(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str
    asset_class: AssetClass | None = None
    error: str


PriceSnapshot = dict[str, PriceQuote | PriceError]
