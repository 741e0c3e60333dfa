"""Cache layer - optional read-through / invalidate-on-write entity cache."""

from __future__ import annotations

from row_entity.cache.memory import MemoryCache
from row_entity.cache.option import (
    CacheOption,
    Cacher,
    delete_cache,
    load_cache,
    resolve_cache_option,
    save_cache,
)

__all__ = [
    "Cacher",
    "CacheOption",
    "MemoryCache",
    "resolve_cache_option",
    "load_cache",
    "save_cache",
    "delete_cache",
]
