from __future__ import annotations

import time
from typing import Any


class TTLCache:
    def __init__(self, default_ttl_seconds: int = 30) -> None:
        self.default_ttl_seconds = default_ttl_seconds
        self._data: dict[str, tuple[Any, float]] = {}

    def get(self, key: str) -> Any | None:
        record = self._data.get(key)
        if not record:
            return None
        value, expiry = record
        if time.monotonic() > expiry:
            self._data.pop(key, None)
            return None
        return value

    def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._data[key] = (value, time.monotonic() + ttl)
