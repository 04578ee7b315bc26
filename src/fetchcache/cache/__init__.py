"""Promise cache engine: entry storage and the single-flight controller."""

from fetchcache.cache.controller import (
    UNBOUNDED,
    WILDCARD,
    CacheMetrics,
    CacheStats,
    ExecutionContext,
    PromiseCache,
)
from fetchcache.cache.store import Entry, EntryStore

__all__ = [
    "CacheMetrics",
    "CacheStats",
    "Entry",
    "EntryStore",
    "ExecutionContext",
    "PromiseCache",
    "UNBOUNDED",
    "WILDCARD",
]
