from __future__ import annotations

from vault.models.holding import AssetClass

COMMODITY_METALS: dict[str, str] = {
    "XAU": "gold",
    "GOLD": "gold",
    "XAG": "silver",
    "SILVER": "silver",
    "XPT": "platinum",
    "PLATINUM": "platinum",
    "XPD": "palladium",
    "PALLADIUM": "palladium",
}

METAL_FUTURES: dict[str, str] = {
    "gold": "GC=F",
    "silver": "SI=F",
    "platinum": "PL=F",
    "palladium": "PA=F",
}

METAL_NAMES: dict[str, str] = {
    "gold": "Gold",
    "silver": "Silver",
    "platinum": "Platinum",
    "palladium": "Palladium",
}

KNOWN_CRYPTO: frozenset[str] = frozenset(
    {
        "BTC", "ETH", "USDT", "BNB", "XRP", "USDC", "SOL", "ADA", "DOGE", "TRX",
        "TON", "DOT", "MATIC", "LTC", "SHIB", "AVAX", "LINK", "XLM", "ATOM", "UNI",
        "XMR", "ETC", "FIL", "APT", "ARB", "OP", "NEAR", "VET", "ALGO", "FTM",
        "SAND", "MANA", "AXS", "AAVE", "MKR", "CRV", "LDO", "RNDR", "INJ", "SUI",
        "SEI", "PEPE", "WIF", "BONK",
    }
)

KNOWN_ETFS: frozenset[str] = frozenset(
    {"SPY", "QQQ", "IWM", "VTI", "VOO", "VEA", "VWO", "BND", "AGG", "GLD", "SLV", "USO"}
)

CRYPTO_QUOTE_CURRENCY = "USD"


class UnsupportedSymbolError(ValueError):
    pass


def detect_asset_class(symbol: str) -> AssetClass:
    clean = symbol.strip().upper()
    if clean in COMMODITY_METALS:
        return AssetClass.COMMODITY
    if clean in KNOWN_CRYPTO:
        return AssetClass.CRYPTO
    if clean in KNOWN_ETFS or (clean.endswith(".L") and "ETF" in clean):
        return AssetClass.ETF
    return AssetClass.STOCK


def provider_symbol(symbol: str, asset_class: AssetClass) -> str:
    """Translate a holding symbol to the ticker Yahoo Finance quotes it under."""
    clean = symbol.strip().upper()
    if asset_class == AssetClass.CRYPTO:
        return clean if "-" in clean else f"{clean}-{CRYPTO_QUOTE_CURRENCY}"
    if asset_class == AssetClass.COMMODITY:
        metal = COMMODITY_METALS.get(clean)
        if metal is None:
            raise UnsupportedSymbolError(f"Unknown commodity: {clean}")
        return METAL_FUTURES[metal]
    return clean


def display_name(symbol: str, asset_class: AssetClass) -> str | None:
    if asset_class == AssetClass.COMMODITY:
        metal = COMMODITY_METALS.get(symbol.strip().upper())
        return METAL_NAMES.get(metal) if metal else None
    return None
