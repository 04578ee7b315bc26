"""Single-flight promise cache with FIFO eviction and context-dependent expiry."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, TypeVar

from fetchcache.cache.store import Entry, EntryStore
from fetchcache.common.errors import InvalidConfigurationError
from fetchcache.common.logging import get_logger
from fetchcache.common.metrics import record_eviction, record_lookup, update_cache_entries

logger = get_logger(__name__)

T = TypeVar("T")

WILDCARD = "*"
UNBOUNDED = -1


class ExecutionContext(Enum):
    """Where the cache lives, which decides how entries expire."""

    SERVER = "server"  # Scoped to one request, entries never expire
    CLIENT = "client"  # Long-lived, entries expire after the validity window


@dataclass
class CacheMetrics:
    """Per-instance counters."""

    requests: int = 0
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    invalidations: int = 0


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time view of a cache."""

    entries: Mapping[str, Entry]
    count: int
    metrics: CacheMetrics


class PromiseCache:
    """
    Maps keys to shared asyncio futures.

    Concurrent and repeated requests for a key share one future until the
    entry expires, is invalidated or is evicted. Failures are stored like
    successes, so every awaiter of a failed entry sees the same exception
    until the entry is replaced.

    In SERVER context entries never expire; the instance is expected to be
    discarded with the request that created it. In CLIENT context an entry is
    served while younger than the validity window, and a window of 0 disables
    caching.
    """

    def __init__(
        self,
        context: ExecutionContext = ExecutionContext.CLIENT,
        default_cache_time: float = 0.0,
        max_size: int = 200,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the cache.

        Args:
            context: Execution context deciding the expiry model
            default_cache_time: Validity window in seconds (CLIENT context only)
            max_size: Maximum entries before FIFO eviction, or -1 for unbounded
            clock: Monotonic time source in seconds
        """
        if max_size != UNBOUNDED and max_size < 1:
            raise InvalidConfigurationError(
                f"max_size must be a positive integer or {UNBOUNDED} for unbounded, got {max_size}"
            )
        _check_cache_time(default_cache_time)

        self._context = context
        self._default_cache_time = default_cache_time
        self._max_size = max_size
        self._clock = clock
        self._store = EntryStore()
        self._metrics = CacheMetrics()

    @property
    def context(self) -> ExecutionContext:
        return self._context

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def size(self) -> int:
        return len(self._store)

    @property
    def metrics(self) -> CacheMetrics:
        """Copy of the per-instance counters."""
        return replace(self._metrics)

    def __len__(self) -> int:
        return len(self._store)

    def now(self) -> float:
        """Current reading of the cache clock."""
        return self._clock()

    def is_valid(self, key: str, cache_time: float | None = None) -> bool:
        """Whether the entry for key may be served."""
        entry = self._store.get(key)
        if entry is None:
            return False
        if self._context is ExecutionContext.SERVER:
            return True
        window = self._default_cache_time if cache_time is None else cache_time
        return self._clock() - entry.created_at < window

    def request(
        self,
        key: str,
        producer: Callable[[], Awaitable[T]],
        cache_time: float | None = None,
    ) -> asyncio.Future[T]:
        """
        Return the shared future for key, starting producer() on a miss.

        Must be called from a running event loop. Nothing here awaits, so a
        caller arriving while the first caller's operation is still pending
        finds the entry already registered.

        Args:
            key: Cache key (request path or operation name)
            producer: Zero-argument callable returning an awaitable
            cache_time: Validity window override in seconds

        Returns:
            Future shared by every caller of this key
        """
        if key == WILDCARD:
            raise InvalidConfigurationError(f"'{WILDCARD}' is reserved for invalidating the whole cache")
        if cache_time is not None:
            _check_cache_time(cache_time)

        self._metrics.requests += 1

        if self.is_valid(key, cache_time):
            self._metrics.hits += 1
            record_lookup(hit=True)
            logger.debug("Cache hit", key=key)
            return self._store.get(key).future  # type: ignore[union-attr]

        self._metrics.misses += 1
        record_lookup(hit=False)

        future = asyncio.ensure_future(producer())
        future.add_done_callback(lambda f: self._observe(key, f))

        if self._store.delete(key):
            record_eviction("expired")
            logger.debug("Dropped stale entry", key=key)

        if self._max_size != UNBOUNDED and len(self._store) >= self._max_size:
            self._evict_oldest()

        self._store.set(key, Entry(key=key, future=future, created_at=self._clock()))
        update_cache_entries(len(self._store))
        logger.debug("Cache miss", key=key, size=len(self._store))
        return future

    def invalidate(self, key: str) -> None:
        """Drop one entry, or every entry when key is '*'."""
        if key == WILDCARD:
            dropped = self._store.clear()
            self._metrics.invalidations += dropped
            record_eviction("cleared", dropped)
            logger.debug("Cache cleared", dropped=dropped)
        elif self._store.delete(key):
            self._metrics.invalidations += 1
            record_eviction("invalidated")
            logger.debug("Entry invalidated", key=key)
        update_cache_entries(len(self._store))

    def stats(self) -> CacheStats:
        """Snapshot of entries and counters."""
        return CacheStats(
            entries=self._store.snapshot(),
            count=len(self._store),
            metrics=replace(self._metrics),
        )

    def _evict_oldest(self) -> None:
        oldest = self._store.oldest_key()
        if oldest is None:
            return
        self._store.delete(oldest)
        self._metrics.evictions += 1
        record_eviction("capacity")
        logger.debug("Evicted oldest entry", key=oldest, max_size=self._max_size)

    def _observe(self, key: str, future: asyncio.Future[Any]) -> None:
        """Log failed operations; awaiters still receive the exception."""
        if future.cancelled():
            logger.debug("Cached operation cancelled", key=key)
            return
        exc = future.exception()
        if exc is not None:
            logger.debug("Cached operation failed", key=key, error=str(exc))


def _check_cache_time(cache_time: float) -> None:
    if cache_time < 0:
        raise InvalidConfigurationError(f"cache_time must be >= 0, got {cache_time}")
