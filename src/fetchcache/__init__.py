"""
fetchcache: request-deduplicating promise cache over an aiohttp client.

Concurrent and repeated GETs for the same path share one in-flight request.
Entries live for the whole client lifetime in server context, or for a
validity window in client context, and are evicted oldest-first once the
cache is full.
"""

from fetchcache.cache import ExecutionContext, PromiseCache
from fetchcache.client import FetchCache
from fetchcache.responses import ResponseType

__version__ = "1.0.0"

__all__ = [
    "ExecutionContext",
    "FetchCache",
    "PromiseCache",
    "ResponseType",
]
