#!/usr/bin/env python3
"""Fire concurrent GETs at one path and report how many reached the network."""

from __future__ import annotations

import argparse
import asyncio
import json
import time

from fetchcache.client import FetchCache
from fetchcache.common.errors import FetchCacheError
from fetchcache.common.settings import Settings


async def _run_one(
    api: FetchCache,
    path: str,
    latencies: list[float],
    errors: list[str],
) -> None:
    start = time.perf_counter()
    try:
        await api.get(path)
    except FetchCacheError as exc:
        errors.append(exc.code)
    finally:
        latencies.append(time.perf_counter() - start)


async def run_load_test(
    settings: Settings,
    path: str,
    requests: int,
    rounds: int,
) -> dict[str, float | int]:
    latencies: list[float] = []
    errors: list[str] = []

    async with FetchCache(settings) as api:
        start = time.perf_counter()
        for _ in range(rounds):
            await asyncio.gather(
                *(_run_one(api, path, latencies, errors) for _ in range(requests))
            )
        total = time.perf_counter() - start
        metrics = api.stats().metrics

    latencies_sorted = sorted(latencies)
    p50 = latencies_sorted[max(0, int(0.50 * len(latencies_sorted)) - 1)]
    p95 = latencies_sorted[max(0, int(0.95 * len(latencies_sorted)) - 1)]
    return {
        "requests": requests * rounds,
        "network_calls": metrics.misses,
        "cache_hits": metrics.hits,
        "total_seconds": round(total, 3),
        "p50_ms": round(p50 * 1000, 2),
        "p95_ms": round(p95 * 1000, 2),
        "errors": len(errors),
    }


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--base-url", default="http://localhost:8080")
    parser.add_argument("--path", default="/")
    parser.add_argument("--requests", type=int, default=50)
    parser.add_argument("--rounds", type=int, default=1)
    parser.add_argument("--context", choices=["server", "client"], default="server")
    parser.add_argument("--cache-time", type=float, default=0.0)
    parser.add_argument("--timeout", type=float, default=10.0)
    args = parser.parse_args()

    settings = Settings(
        base_url=args.base_url,
        execution_context=args.context,
        default_cache_time=args.cache_time,
        http_timeout=args.timeout,
    )
    summary = asyncio.run(run_load_test(settings, args.path, args.requests, args.rounds))

    print(json.dumps(summary, indent=2))
    return 1 if summary["errors"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
