"""Storage and caching."""

from dotacoach.storage.cache import (
    MISSING,
    CacheEntry,
    CacheStore,
    TTLCache,
    FileCache,
    CacheSweeper,
)

__all__ = ["MISSING", "CacheEntry", "CacheStore", "TTLCache", "FileCache", "CacheSweeper"]
