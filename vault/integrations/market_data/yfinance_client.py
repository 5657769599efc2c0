from __future__ import annotations

import logging

import numpy as np
import pandas as pd
import yfinance as yf

logger = logging.getLogger(__name__)


class PriceLookupError(RuntimeError):
    def __init__(self, symbol: str, message: str) -> None:
        super().__init__(message)
        self.symbol = symbol


class YFinanceClient:
    def fetch_daily_closes(self, symbol: str, period: str = "5d") -> pd.Series:
        logger.info("Fetching yfinance daily closes", extra={"symbol": symbol, "period": period})
        try:
            df = yf.Ticker(symbol).history(interval="1d", period=period, auto_adjust=False)
        except Exception as exc:
            raise PriceLookupError(symbol, f"yfinance request failed for {symbol}: {exc}") from exc

        if df is None or df.empty or "Close" not in df.columns:
            raise PriceLookupError(symbol, f"No price data returned for {symbol}")

        closes = pd.to_numeric(df["Close"], errors="coerce").dropna()
        closes = closes[np.isfinite(closes.to_numpy())]
        if closes.empty:
            raise PriceLookupError(symbol, f"No valid closes after cleaning for {symbol}")
        return closes.reset_index(drop=True)

    def fetch_quote(self, symbol: str, period: str = "5d") -> dict:
        closes = self.fetch_daily_closes(symbol, period=period)
        price = float(closes.iloc[-1])
        if price <= 0:
            raise PriceLookupError(symbol, f"Non-positive price for {symbol}: {price}")

        previous = float(closes.iloc[-2]) if len(closes) >= 2 else 0.0
        change = price - previous if previous > 0 else 0.0
        change_pct = (change / previous) * 100 if previous > 0 else 0.0
        return {
            "symbol": symbol,
            "price": price,
            "change": change,
            "change_percent": change_pct,
        }

    def fetch_name(self, symbol: str) -> str | None:
        try:
            info = yf.Ticker(symbol).info or {}
        except Exception as exc:
            logger.warning("yfinance name lookup failed", extra={"symbol": symbol, "error": str(exc)})
            return None
        if not isinstance(info, dict):
            return None
        name = info.get("longName") or info.get("shortName") or info.get("displayName")
        clean = str(name).strip() if name else ""
        return clean or None
