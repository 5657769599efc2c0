from __future__ import annotations

import re

_SYMBOL_PATTERN = re.compile(r"^[A-Z0-9^][A-Z0-9.=\-^]{0,19}$")


def validate_symbol(symbol: str) -> str:
    clean = symbol.strip().upper()
    if not _SYMBOL_PATTERN.fullmatch(clean):
        raise ValueError("Symbol must be 1-20 characters of A-Z, 0-9, '.', '-', '=' or '^'")
    return clean
