from __future__ import annotations

from collections.abc import Iterable, Mapping

from vault.models.holding import AssetClass, Holding
from vault.models.portfolio import Allocation, PortfolioMetrics
from vault.models.quote import PriceError, PriceQuote
from vault.utils.rounding import round_half_up, safe_ratio

# Display order of the allocation breakdown.
ALLOCATION_ORDER: tuple[AssetClass, ...] = (
    AssetClass.STOCK,
    AssetClass.CRYPTO,
    AssetClass.ETF,
    AssetClass.COMMODITY,
)

ASSET_CLASS_NAMES: dict[AssetClass, str] = {
    AssetClass.STOCK: "Stocks",
    AssetClass.CRYPTO: "Crypto",
    AssetClass.ETF: "ETFs",
    AssetClass.COMMODITY: "Commodities",
}

ASSET_CLASS_COLORS: dict[AssetClass, str] = {
    AssetClass.STOCK: "#D4AF37",
    AssetClass.CRYPTO: "#C0C0C0",
    AssetClass.ETF: "#B87333",
    AssetClass.COMMODITY: "#C9AE5D",
}


def enrich(holdings: Iterable[Holding], latest_prices: Mapping[str, PriceQuote | PriceError]) -> list[Holding]:
    """Apply a price-lookup snapshot to a holding set.

    Holdings whose symbol is missing from the snapshot, or mapped to a
    ``PriceError``, keep their last known price and day change. A quote
    tagged with a different asset class than the holding is ignored.
    """
    enriched: list[Holding] = []
    for holding in holdings:
        quote = latest_prices.get(holding.symbol.upper())
        if not isinstance(quote, PriceQuote) or quote.asset_class not in (None, holding.asset_class):
            enriched.append(holding)
            continue

        updates = {
            "current_price": quote.price,
            "day_change_percent": quote.change_percent,
        }
        if quote.name and quote.name.strip():
            updates["name"] = quote.name.strip()
        enriched.append(holding.model_copy(update=updates))
    return enriched


def previous_value(holding: Holding) -> float | None:
    """Back out yesterday's value from today's value and percent change.

    Returns None when the change is -100% or worse and no previous value exists.
    """
    growth = 1 + holding.day_change_percent / 100
    if growth <= 0:
        return None
    return holding.current_value / growth


def compute_metrics(holdings: Iterable[Holding]) -> PortfolioMetrics:
    items = list(holdings)
    if not items:
        return PortfolioMetrics()

    total_value = sum(h.current_value for h in items)
    total_cost = sum(h.total_cost for h in items)
    total_gain = total_value - total_cost

    day_change = 0.0
    for holding in items:
        prior = previous_value(holding)
        if prior is None:
            continue
        day_change += holding.current_value - prior

    day_change_percent = 0.0
    if total_value > 0:
        day_change_percent = safe_ratio(day_change, max(total_value - day_change, 0.0)) * 100

    return PortfolioMetrics(
        total_value=total_value,
        total_cost=total_cost,
        total_gain=total_gain,
        total_gain_percent=safe_ratio(total_gain, total_cost) * 100,
        day_change=day_change,
        day_change_percent=day_change_percent,
    )


def value_by_asset_class(holdings: Iterable[Holding]) -> dict[AssetClass, float]:
    totals = {asset_class: 0.0 for asset_class in ALLOCATION_ORDER}
    for holding in holdings:
        totals[holding.asset_class] = totals.get(holding.asset_class, 0.0) + holding.current_value
    return totals


def compute_allocations(holdings: Iterable[Holding], metrics: PortfolioMetrics) -> list[Allocation]:
    totals = value_by_asset_class(holdings)
    allocations: list[Allocation] = []
    for asset_class in ALLOCATION_ORDER:
        value = totals[asset_class]
        percent = round_half_up(value / metrics.total_value * 100) if metrics.total_value > 0 else 0
        allocations.append(
            Allocation(
                asset_class=asset_class,
                name=ASSET_CLASS_NAMES[asset_class],
                value=value,
                percent=percent,
                color=ASSET_CLASS_COLORS[asset_class],
            )
        )
    return allocations
