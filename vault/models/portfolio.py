from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from vault.models.holding import AssetClass


class PortfolioMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_value: float = 0.0
    total_cost: float = 0.0
    total_gain: float = 0.0
    total_gain_percent: float = 0.0
    day_change: float = 0.0
    day_change_percent: float = 0.0


class Allocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    asset_class: AssetClass
    name: str
    value: float
    percent: int
    color: str


class RiskLevel(str, Enum):
    NO_DATA = "N/A"
    CONSERVATIVE = "Conservative"
    MODERATE_LOW = "Moderate-Low"
    MODERATE = "Moderate"
    AGGRESSIVE = "Aggressive"
    VERY_AGGRESSIVE = "Very Aggressive"


class RiskFactor(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    score: int = Field(ge=0, le=100)


class Recommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    severity: Literal["warning", "info", "success"]
    headline: str
    suggestion: str


class HoldingVolatility(BaseModel):
    model_config = ConfigDict(frozen=True)

    holding_id: str
    symbol: str
    name: str
    asset_class: AssetClass
    volatility: float = Field(ge=0.0, le=1.0)


class RiskAssessment(BaseModel):
    model_config = ConfigDict(frozen=True)

    overall_risk: int = Field(ge=0, le=100)
    risk_level: RiskLevel
    breakdown: list[RiskFactor]
    recommendations: list[Recommendation]
    holdings_volatility: list[HoldingVolatility] = Field(default_factory=list)
