"""In-process cacher with per-key expiry."""

from __future__ import annotations

import time


class MemoryCache:
    """Dict-backed Cacher. Expired entries are dropped on access.

    Not shared between processes; suitable for tests and single-process
    services.
    """

    def __init__(self) -> None:
        self._values: dict[str, tuple[bytes, float]] = {}

    async def get(self, key: str) -> bytes | None:
        entry = self._values.get(key)
        if entry is None:
            return None
        data, expires_at = entry
        if expires_at <= time.monotonic():
            del self._values[key]
            return None
        return data

    async def put(self, key: str, data: bytes, expiration: float) -> None:
        self._values[key] = (data, time.monotonic() + expiration)

    async def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def __len__(self) -> int:
        return len(self._values)
