from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from vault.models.holding import AssetClass, Holding
from vault.models.portfolio import Allocation, PortfolioMetrics, RiskAssessment


class PortfolioView(BaseModel):
    model_config = ConfigDict(frozen=True)

    holdings: list[Holding] = Field(default_factory=list)
    metrics: PortfolioMetrics
    allocations: list[Allocation]
    risk: RiskAssessment


class PriceRefreshResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    portfolio: PortfolioView
    resolved: list[str] = Field(default_factory=list)
    failed: dict[str, str] = Field(default_factory=dict)
    refreshed_at: datetime


class AssetClassDetection(BaseModel):
    symbol: str
    asset_class: AssetClass
