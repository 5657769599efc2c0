from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from vault.analytics.aggregation import value_by_asset_class
from vault.models.holding import AssetClass, Holding
from vault.models.portfolio import (
    HoldingVolatility,
    PortfolioMetrics,
    Recommendation,
    RiskAssessment,
    RiskFactor,
    RiskLevel,
)
from vault.utils.rounding import round_half_up, safe_ratio

ASSET_CLASS_RISK: dict[str, int] = {
    AssetClass.CRYPTO.value: 90,
    AssetClass.STOCK.value: 55,
    AssetClass.ETF.value: 30,
    AssetClass.COMMODITY.value: 40,
}
DEFAULT_ASSET_CLASS_RISK = 50

# (exclusive lower bound on largest-holding %, score), checked top down.
CONCENTRATION_BREAKPOINTS: tuple[tuple[float, int], ...] = ((50, 90), (40, 80), (30, 60), (20, 40))
CONCENTRATION_FLOOR = 20

# (minimum holding count, score), checked top down.
DIVERSIFICATION_BREAKPOINTS: tuple[tuple[int, int], ...] = ((10, 20), (5, 35), (3, 50))
DIVERSIFICATION_CEILING = 70
SINGLE_CLASS_PENALTY = 15

# (inclusive upper bound on overall score, level).
RISK_LEVEL_THRESHOLDS: tuple[tuple[int, RiskLevel], ...] = (
    (30, RiskLevel.CONSERVATIVE),
    (45, RiskLevel.MODERATE_LOW),
    (60, RiskLevel.MODERATE),
    (75, RiskLevel.AGGRESSIVE),
)

FACTOR_WEIGHTS = {
    "Concentration": 0.25,
    "Asset Risk": 0.35,
    "Diversification": 0.20,
    "Volatility": 0.20,
}

CRYPTO_SHARE_LIMIT = 40.0
CONCENTRATION_LIMIT = 40.0
MIN_ASSET_CLASSES = 3
MIN_HOLDINGS = 5


@dataclass(frozen=True)
class RiskContext:
    holdings: Sequence[Holding]
    largest: Holding
    max_allocation_pct: float
    crypto_pct: float
    asset_class_count: int


def class_risk(asset_class: AssetClass | str) -> int:
    key = asset_class.value if isinstance(asset_class, AssetClass) else str(asset_class)
    return ASSET_CLASS_RISK.get(key, DEFAULT_ASSET_CLASS_RISK)


def concentration_risk(max_allocation_pct: float) -> int:
    for bound, score in CONCENTRATION_BREAKPOINTS:
        if max_allocation_pct > bound:
            return score
    return CONCENTRATION_FLOOR


def weighted_asset_class_risk(holdings: Sequence[Holding], total_value: float) -> float:
    if total_value <= 0:
        return 0.0
    return sum(class_risk(h.asset_class) * h.current_value / total_value for h in holdings)


def diversification_risk(holding_count: int, asset_class_count: int) -> int:
    score = DIVERSIFICATION_CEILING
    for minimum, bracket_score in DIVERSIFICATION_BREAKPOINTS:
        if holding_count >= minimum:
            score = bracket_score
            break
    if asset_class_count == 1:
        score += SINGLE_CLASS_PENALTY
    return max(0, min(100, score))


def volatility_risk(holdings: Sequence[Holding], asset_risk: float) -> int:
    avg_abs_change = safe_ratio(sum(abs(h.day_change_percent) for h in holdings), len(holdings))
    return min(100, round_half_up(avg_abs_change * 12 + asset_risk * 0.4))


def risk_level_for(overall_risk: int) -> RiskLevel:
    for upper, level in RISK_LEVEL_THRESHOLDS:
        if overall_risk <= upper:
            return level
    return RiskLevel.VERY_AGGRESSIVE


def holding_volatility(holding: Holding) -> float:
    return min(1.0, class_risk(holding.asset_class) / 100 * 0.6 + abs(holding.day_change_percent) / 15)


RecommendationRule = tuple[Callable[[RiskContext], bool], Callable[[RiskContext], Recommendation]]

RECOMMENDATION_RULES: tuple[RecommendationRule, ...] = (
    (
        lambda ctx: ctx.crypto_pct > CRYPTO_SHARE_LIMIT,
        lambda ctx: Recommendation(
            severity="warning",
            headline=f"High Crypto Exposure ({round_half_up(ctx.crypto_pct)}%)",
            suggestion="Consider reducing to below 40% for stability",
        ),
    ),
    (
        lambda ctx: ctx.max_allocation_pct > CONCENTRATION_LIMIT,
        lambda ctx: Recommendation(
            severity="warning",
            headline=f"Concentration Risk in {ctx.largest.symbol}",
            suggestion=f"{round_half_up(ctx.max_allocation_pct)}% in one asset. Consider rebalancing.",
        ),
    ),
    (
        lambda ctx: ctx.asset_class_count < MIN_ASSET_CLASSES,
        lambda ctx: Recommendation(
            severity="info",
            headline="Limited Diversification",
            suggestion="Adding different asset types could reduce risk",
        ),
    ),
    (
        lambda ctx: len(ctx.holdings) < MIN_HOLDINGS,
        lambda ctx: Recommendation(
            severity="info",
            headline="Few Holdings",
            suggestion="Consider adding more positions to spread risk",
        ),
    ),
)

BALANCED_RECOMMENDATION = Recommendation(
    severity="success",
    headline="Well-Balanced Portfolio",
    suggestion="Your allocation appears well-diversified",
)


def recommend(ctx: RiskContext) -> list[Recommendation]:
    triggered = [build(ctx) for applies, build in RECOMMENDATION_RULES if applies(ctx)]
    return triggered or [BALANCED_RECOMMENDATION]


def empty_assessment() -> RiskAssessment:
    return RiskAssessment(
        overall_risk=0,
        risk_level=RiskLevel.NO_DATA,
        breakdown=[RiskFactor(label=label, score=0) for label in FACTOR_WEIGHTS],
        recommendations=[
            Recommendation(
                severity="info",
                headline="No Portfolio Data",
                suggestion="Add assets to see your risk analysis",
            )
        ],
        holdings_volatility=[],
    )


def assess_risk(holdings: Sequence[Holding], metrics: PortfolioMetrics) -> RiskAssessment:
    """Score a holding set on concentration, asset mix, diversification and volatility.

    Pure function of its inputs. The result is a heuristic indicator built
    from current-day percent changes and fixed per-class weights, not from
    a historical return series.
    """
    items = list(holdings)
    if not items:
        return empty_assessment()

    total_value = metrics.total_value
    largest = max(items, key=lambda h: h.current_value)
    max_allocation_pct = safe_ratio(largest.current_value, total_value) * 100
    crypto_value = value_by_asset_class(items)[AssetClass.CRYPTO]
    asset_class_count = len({h.asset_class for h in items})

    concentration = concentration_risk(max_allocation_pct)
    asset_risk = weighted_asset_class_risk(items, total_value)
    diversification = diversification_risk(len(items), asset_class_count)
    volatility = volatility_risk(items, asset_risk)

    overall = round_half_up(
        concentration * FACTOR_WEIGHTS["Concentration"]
        + asset_risk * FACTOR_WEIGHTS["Asset Risk"]
        + diversification * FACTOR_WEIGHTS["Diversification"]
        + volatility * FACTOR_WEIGHTS["Volatility"]
    )
    overall = max(0, min(100, overall))

    ctx = RiskContext(
        holdings=items,
        largest=largest,
        max_allocation_pct=max_allocation_pct,
        crypto_pct=safe_ratio(crypto_value, total_value) * 100,
        asset_class_count=asset_class_count,
    )

    ranked = sorted(items, key=holding_volatility, reverse=True)
    return RiskAssessment(
        overall_risk=overall,
        risk_level=risk_level_for(overall),
        breakdown=[
            RiskFactor(label="Concentration", score=concentration),
            RiskFactor(label="Asset Risk", score=round_half_up(asset_risk)),
            RiskFactor(label="Diversification", score=diversification),
            RiskFactor(label="Volatility", score=volatility),
        ],
        recommendations=recommend(ctx),
        holdings_volatility=[
            HoldingVolatility(
                holding_id=h.id,
                symbol=h.symbol,
                name=h.name,
                asset_class=h.asset_class,
                volatility=holding_volatility(h),
            )
            for h in ranked
        ],
    )
