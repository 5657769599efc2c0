from __future__ import annotations

import logging
import time
from collections.abc import Iterable

from vault.config import get_settings
from vault.integrations.market_data.symbols import display_name, provider_symbol
from vault.integrations.market_data.yfinance_client import YFinanceClient
from vault.models.holding import AssetClass
from vault.models.quote import PriceError, PriceQuote, PriceRequest, PriceSnapshot
from vault.storage.cache import TTLCache

logger = logging.getLogger(__name__)

# Batches are fetched in this order; stocks and ETFs share one provider path.
FETCH_ORDER: tuple[tuple[AssetClass, ...], ...] = (
    (AssetClass.CRYPTO,),
    (AssetClass.COMMODITY,),
    (AssetClass.STOCK, AssetClass.ETF),
)

NAME_CACHE_TTL_SECONDS = 24 * 60 * 60


class PriceLookupService:
    def __init__(
        self,
        client: YFinanceClient | None = None,
        cache: TTLCache | None = None,
        pause_between_requests_seconds: float | None = None,
        resolve_names: bool = True,
    ) -> None:
        self.settings = get_settings()
        self.client = client or YFinanceClient()
        self.cache = cache or TTLCache(default_ttl_seconds=self.settings.price_cache_ttl_seconds)
        pause = self.settings.price_request_pause_seconds if pause_between_requests_seconds is None else pause_between_requests_seconds
        self.pause_between_requests_seconds = max(0.0, pause)
        self.resolve_names = resolve_names

    @staticmethod
    def _group(requests: Iterable[PriceRequest]) -> dict[AssetClass, list[str]]:
        grouped: dict[AssetClass, list[str]] = {asset_class: [] for asset_class in AssetClass}
        for request in requests:
            symbol = request.symbol.strip().upper()
            if symbol and symbol not in grouped[request.asset_class]:
                grouped[request.asset_class].append(symbol)
        return grouped

    def _lookup_name(self, symbol: str, asset_class: AssetClass, ticker: str) -> str | None:
        fixed = display_name(symbol, asset_class)
        if fixed or not self.resolve_names or asset_class not in (AssetClass.STOCK, AssetClass.ETF):
            return fixed

        cache_key = f"name:{ticker}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached or None
        name = self.client.fetch_name(ticker)
        self.cache.set(cache_key, name or "", ttl_seconds=NAME_CACHE_TTL_SECONDS)
        return name

    def fetch_price(self, symbol: str, asset_class: AssetClass) -> PriceQuote:
        clean = symbol.strip().upper()
        cache_key = f"price:{asset_class.value}:{clean}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        ticker = provider_symbol(clean, asset_class)
        raw = self.client.fetch_quote(ticker, period=self.settings.price_history_period)
        quote = PriceQuote(
            symbol=clean,
            asset_class=asset_class,
            name=self._lookup_name(clean, asset_class, ticker),
            price=float(raw["price"]),
            change=float(raw.get("change", 0.0)),
            change_percent=float(raw.get("change_percent", 0.0)),
            source="yfinance",
        )
        self.cache.set(cache_key, quote)
        return quote

    def fetch_prices(self, requests: Iterable[PriceRequest]) -> PriceSnapshot:
        """Resolve every requested symbol to a quote or an error marker.

        A failure for one symbol is recorded against that symbol only; the
        rest of the batch is still fetched.
        """
        grouped = self._group(requests)
        results: PriceSnapshot = {}
        fetched_any = False

        for asset_classes in FETCH_ORDER:
            for asset_class in asset_classes:
                for symbol in grouped[asset_class]:
                    if symbol in results:
                        logger.warning(
                            "Symbol requested under several asset classes, keeping the first",
                            extra={"symbol": symbol, "asset_class": asset_class.value},
                        )
                        continue
                    uncached = self.cache.get(f"price:{asset_class.value}:{symbol}") is None
                    if uncached and fetched_any and self.pause_between_requests_seconds > 0:
                        time.sleep(self.pause_between_requests_seconds)
                    fetched_any = fetched_any or uncached
                    try:
                        results[symbol] = self.fetch_price(symbol, asset_class)
                    except Exception as exc:
                        logger.warning(
                            "Price lookup failed, keeping last known price",
                            extra={"symbol": symbol, "asset_class": asset_class.value, "error": str(exc)},
                        )
                        results[symbol] = PriceError(
                            symbol=symbol,
                            asset_class=asset_class,
                            error=str(exc) or "Failed to fetch price",
                        )

        resolved = sum(1 for value in results.values() if isinstance(value, PriceQuote))
        logger.info(
            "Price lookup batch finished",
            extra={"requested": len(results), "resolved": resolved, "failed": len(results) - resolved},
        )
        return results
