from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

from vault.utils.rounding import safe_ratio
from vault.utils.validation import validate_symbol


class AssetClass(str, Enum):
    STOCK = "stock"
    ETF = "etf"
    CRYPTO = "crypto"
    COMMODITY = "commodity"


class Holding(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    symbol: str
    name: str
    asset_class: AssetClass
    quantity: float
    purchase_price: float
    current_price: float
    day_change_percent: float = 0.0

    @computed_field
    @property
    def current_value(self) -> float:
        return self.quantity * self.current_price

    @computed_field
    @property
    def total_cost(self) -> float:
        return self.quantity * self.purchase_price

    @computed_field
    @property
    def gain(self) -> float:
        return self.current_value - self.total_cost

    @computed_field
    @property
    def gain_percent(self) -> float:
        return safe_ratio(self.gain, self.total_cost) * 100


class HoldingCreate(BaseModel):
    symbol: str
    name: str = ""
    asset_class: AssetClass
    quantity: float = Field(gt=0)
    purchase_price: float = Field(gt=0)
    current_price: float | None = Field(default=None, gt=0)
    day_change_percent: float = 0.0

    @field_validator("symbol")
    @classmethod
    def _normalize_symbol(cls, value: str) -> str:
        return validate_symbol(value)

    @model_validator(mode="after")
    def _fill_defaults(self) -> "HoldingCreate":
        # A new holding is valued at cost until the first live quote arrives.
        if self.current_price is None:
            self.current_price = self.purchase_price
        self.name = self.name.strip() or self.symbol
        return self


class HoldingUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    quantity: float | None = Field(default=None, gt=0)
    purchase_price: float | None = Field(default=None, gt=0)
    current_price: float | None = Field(default=None, gt=0)
    day_change_percent: float | None = None

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude_none=True)
