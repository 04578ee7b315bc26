"""Prometheus metrics for cache and transport observability."""

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram, generate_latest

# === Counters ===

CACHE_LOOKUPS_TOTAL = Counter(
    "fetchcache_lookups_total",
    "Cache lookups",
    ["outcome"],  # outcome: hit, miss
)

CACHE_EVICTIONS_TOTAL = Counter(
    "fetchcache_evictions_total",
    "Entries removed from the cache",
    ["reason"],  # reason: capacity, expired, invalidated, cleared
)

TRANSPORT_REQUESTS_TOTAL = Counter(
    "fetchcache_transport_requests_total",
    "HTTP requests sent by the client",
    ["method", "status"],
)

# === Histograms ===

TRANSPORT_LATENCY = Histogram(
    "fetchcache_transport_latency_seconds",
    "HTTP request latency in seconds",
    ["method"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# === Gauges ===

CACHE_ENTRIES = Gauge(
    "fetchcache_entries",
    "Entries held by the most recently updated cache",
)


# === Helper Functions ===


def record_lookup(hit: bool) -> None:
    """Record a cache lookup."""
    CACHE_LOOKUPS_TOTAL.labels(outcome="hit" if hit else "miss").inc()


def record_eviction(reason: str, count: int = 1) -> None:
    """Record entries leaving the cache."""
    if count:
        CACHE_EVICTIONS_TOTAL.labels(reason=reason).inc(count)


def record_transport_request(method: str, status: int | str, latency: float) -> None:
    """Record an HTTP request with latency."""
    TRANSPORT_REQUESTS_TOTAL.labels(method=method, status=str(status)).inc()
    TRANSPORT_LATENCY.labels(method=method).observe(latency)


def update_cache_entries(count: int) -> None:
    """Update cache size gauge."""
    CACHE_ENTRIES.set(count)


def render_metrics(registry: CollectorRegistry = REGISTRY) -> str:
    """Render metrics in Prometheus text format."""
    return generate_latest(registry).decode("utf-8")
