"""HTTP client with a single-flight promise cache for GET requests."""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar
from urllib.parse import urljoin

import aiohttp

from fetchcache.cache.controller import CacheStats, ExecutionContext, PromiseCache
from fetchcache.common.errors import DecodeError, ResponseError, TransportError
from fetchcache.common.logging import get_logger
from fetchcache.common.metrics import record_transport_request
from fetchcache.common.settings import Settings
from fetchcache.responses import ResponseType, read_body

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_HEADERS = {"Content-Type": "application/json"}


class FetchCache:
    """
    HTTP client whose GET requests go through a PromiseCache.

    GETs for the same path share one in-flight or completed request until the
    cache entry expires or is invalidated. POST, PUT, PATCH, DELETE, HEAD and
    OPTIONS always hit the network and never touch the cache.
    """

    def __init__(
        self,
        settings: Settings,
        cache: PromiseCache | None = None,
        session: aiohttp.ClientSession | None = None,
    ):
        """
        Initialize the client.

        Args:
            settings: Client settings
            cache: Optional cache instance (built from settings if omitted)
            session: Optional externally managed aiohttp session
        """
        self._base_url = settings.base_url
        self._timeout = aiohttp.ClientTimeout(total=settings.http_timeout)
        self._debug = settings.debug
        if cache is None:
            cache = PromiseCache(
                context=ExecutionContext(settings.execution_context),
                default_cache_time=settings.default_cache_time,
                max_size=settings.max_cache_size,
            )
        self._cache = cache
        self._session = session
        self._owns_session = session is None
        self._get_calls = 0

        if self._debug:
            logger.info("New fetch cache instantiated", context=self._cache.context.value)

    @property
    def cache(self) -> PromiseCache:
        """Get the underlying cache."""
        return self._cache

    @property
    def get_calls(self) -> int:
        """Number of get() calls made on this client."""
        return self._get_calls

    async def __aenter__(self) -> "FetchCache":
        """Enter async context."""
        self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context."""
        await self.close()

    async def close(self) -> None:
        """Close the session if this client created it."""
        if self._session and self._owns_session:
            await self._session.close()
            self._session = None

    def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure session exists."""
        if not self._session:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    def _resolve_url(self, path: str) -> str:
        return urljoin(self._base_url, path)

    async def _fetch(
        self,
        method: str,
        path: str,
        response_type: ResponseType,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> Any:
        """
        Perform one HTTP request and decode the body.

        Args:
            method: HTTP method
            path: Path relative to base_url, or an absolute URL
            response_type: How to decode the body
            headers: Headers merged over the defaults
            **kwargs: Passed through to aiohttp (json, data, params, ...)

        Returns:
            Decoded response body

        Raises:
            ResponseError: On a non-2xx status
            DecodeError: When a successful body cannot be decoded
            TransportError: On connection failures and timeouts
        """
        session = self._ensure_session()
        url = self._resolve_url(path)
        merged_headers = {**DEFAULT_HEADERS, **(headers or {})}

        logger.debug("Sending request", method=method, url=url)
        start = time.perf_counter()
        try:
            response = await session.request(method, url, headers=merged_headers, **kwargs)
        except asyncio.TimeoutError as e:
            record_transport_request(method, "timeout", time.perf_counter() - start)
            raise TransportError(f"Request timed out: {method} {url}") from e
        except aiohttp.ClientError as e:
            record_transport_request(method, "error", time.perf_counter() - start)
            raise TransportError(f"Request failed: {e}") from e

        record_transport_request(method, response.status, time.perf_counter() - start)
        try:
            async with response:
                if not 200 <= response.status < 300:
                    body = await response.text()
                    if self._debug == "verbose":
                        logger.error("Request failed", method=method, url=url, status=response.status)
                    raise ResponseError(response.status, response=response, body=body)
                try:
                    return await read_body(response, response_type)
                except ValueError as e:
                    # JSONDecodeError and UnicodeDecodeError are both ValueErrors
                    raise DecodeError(
                        f"Failed to decode {response_type.value} body: {e}",
                        status=response.status,
                        response=response,
                    ) from e
        except asyncio.TimeoutError as e:
            raise TransportError(f"Timed out reading response: {method} {url}") from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Failed to read response: {e}") from e

    # === Cached Operations ===

    async def get(
        self,
        path: str,
        *,
        cache_time: float | None = None,
        response_type: ResponseType | str = ResponseType.JSON,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> Any:
        """
        GET a path through the cache.

        The path string is the cache key, so query strings belong in the
        path. Request options only apply to the call that creates the entry.

        Args:
            path: Path relative to base_url, or an absolute URL
            cache_time: Validity window override in seconds (client context)
            response_type: How to decode the body
            headers: Extra request headers
            **kwargs: Passed through to aiohttp

        Returns:
            Decoded response body, shared with other callers of the same path
        """
        rtype = ResponseType.parse(response_type)
        self._get_calls += 1

        future = self._lookup(
            path,
            lambda: self._fetch("GET", path, rtype, headers, **kwargs),
            cache_time,
        )
        return await asyncio.shield(future)

    async def memoize(
        self,
        key: str,
        producer: Callable[[], Awaitable[T]],
        *,
        cache_time: float | None = None,
    ) -> T:
        """
        Run an arbitrary coroutine through the cache under a caller-chosen key.

        Keys share the namespace used by get(); prefix them to avoid
        colliding with request paths. Logged like get() in debug mode but
        not counted in get_calls.
        """
        future = self._lookup(key, producer, cache_time)
        return await asyncio.shield(future)

    def _lookup(
        self,
        key: str,
        producer: Callable[[], Awaitable[T]],
        cache_time: float | None,
    ) -> asyncio.Future[T]:
        """Request key from the cache, logging hits and cache state in debug mode."""
        hits_before = self._cache.metrics.hits
        future = self._cache.request(key, producer, cache_time)
        if self._debug:
            if self._cache.metrics.hits > hits_before:
                logger.info("Fetch cache hit", key=key)
            self.log_cache()
        return future

    # === Uncached Operations ===

    async def _send(
        self,
        method: str,
        path: str,
        response_type: ResponseType | str,
        headers: dict[str, str] | None,
        **kwargs: Any,
    ) -> Any:
        rtype = ResponseType.parse(response_type)
        return await self._fetch(method, path, rtype, headers, **kwargs)

    async def post(
        self,
        path: str,
        *,
        response_type: ResponseType | str = ResponseType.JSON,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> Any:
        """Send a POST request."""
        return await self._send("POST", path, response_type, headers, **kwargs)

    async def put(
        self,
        path: str,
        *,
        response_type: ResponseType | str = ResponseType.JSON,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> Any:
        """Send a PUT request."""
        return await self._send("PUT", path, response_type, headers, **kwargs)

    async def patch(
        self,
        path: str,
        *,
        response_type: ResponseType | str = ResponseType.JSON,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> Any:
        """Send a PATCH request."""
        return await self._send("PATCH", path, response_type, headers, **kwargs)

    async def delete(
        self,
        path: str,
        *,
        response_type: ResponseType | str = ResponseType.JSON,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> Any:
        """Send a DELETE request."""
        return await self._send("DELETE", path, response_type, headers, **kwargs)

    async def head(
        self,
        path: str,
        *,
        response_type: ResponseType | str = ResponseType.JSON,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> Any:
        """Send a HEAD request."""
        return await self._send("HEAD", path, response_type, headers, **kwargs)

    async def options(
        self,
        path: str,
        *,
        response_type: ResponseType | str = ResponseType.JSON,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> Any:
        """Send an OPTIONS request."""
        return await self._send("OPTIONS", path, response_type, headers, **kwargs)

    # === Cache Management ===

    def invalidate(self, key: str) -> None:
        """Drop a cached entry, or all of them with '*'."""
        self._cache.invalidate(key)

    def stats(self) -> CacheStats:
        """Get cache statistics."""
        return self._cache.stats()

    def log_cache(self) -> None:
        """Log the current cache state."""
        stats = self._cache.stats()
        if self._debug == "verbose":
            logger.info(
                "Cache state",
                get_calls=self._get_calls,
                entries={key: entry.state for key, entry in stats.entries.items()},
            )
        else:
            logger.info("Cache state", get_calls=self._get_calls, entries=stats.count)
