"""fetchcache CLI - issue cached requests and inspect the cache."""

import asyncio
import json
import sys
import tomllib
from collections.abc import Callable, Coroutine
from pathlib import Path
from typing import Any, ParamSpec, TypeVar, cast

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from fetchcache.client import FetchCache
from fetchcache.common.errors import error_details
from fetchcache.common.logging import setup_logging
from fetchcache.common.metrics import render_metrics
from fetchcache.common.settings import Settings
from fetchcache.responses import ResponseType

console = Console()

P = ParamSpec("P")
R = TypeVar("R")


def async_command(f: Callable[P, Coroutine[Any, Any, R]]) -> Callable[P, R]:
    """Decorator to run async commands."""

    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        return asyncio.run(f(*args, **kwargs))

    return wrapper


def _load_config(path: str | None) -> dict[str, Any]:
    if not path:
        return {}
    config_path = Path(path).expanduser()
    if not config_path.exists():
        console.print(f"[red]Config not found: {config_path}[/red]")
        sys.exit(1)

    raw = config_path.read_bytes()
    if config_path.suffix.lower() == ".toml":
        data = tomllib.loads(raw.decode("utf-8"))
    else:
        data = json.loads(raw.decode("utf-8"))

    if isinstance(data, dict) and isinstance(data.get("cli"), dict):
        return cast(dict[str, Any], data["cli"])
    return cast(dict[str, Any], data) if isinstance(data, dict) else {}


@click.group()
@click.option("--base-url", default=None, help="Base URL that paths resolve against")
@click.option(
    "--config",
    type=click.Path(exists=False, dir_okay=False),
    help="Path to CLI config (JSON or TOML with optional [cli] section)",
)
@click.option(
    "--context",
    "execution_context",
    type=click.Choice(["server", "client"]),
    default=None,
    help="Cache expiry model",
)
@click.option("--cache-time", type=float, default=None, help="Validity window in seconds")
@click.option("--max-cache-size", type=int, default=None, help="Max entries (-1 = unbounded)")
@click.option("--log-level", default=None, help="Log level")
@click.pass_context
def cli(
    ctx: click.Context,
    base_url: str | None,
    config: str | None,
    execution_context: str | None,
    cache_time: float | None,
    max_cache_size: int | None,
    log_level: str | None,
) -> None:
    """fetchcache CLI - deduplicated, cached HTTP GETs."""
    config_data = _load_config(config)
    overrides = {
        "base_url": base_url or config_data.get("base_url"),
        "execution_context": execution_context or config_data.get("execution_context"),
        "default_cache_time": cache_time if cache_time is not None else config_data.get("cache_time"),
        "max_cache_size": max_cache_size if max_cache_size is not None else config_data.get("max_cache_size"),
        "log_level": log_level or config_data.get("log_level"),
    }
    settings = Settings(**{key: value for key, value in overrides.items() if value is not None})
    setup_logging(settings.log_level, settings.log_json)

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


def _render(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return f"<{len(value)} bytes>"
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, default=str)
    except (TypeError, ValueError):
        return repr(value)


@cli.command("get")
@click.argument("paths", nargs=-1, required=True)
@click.option("--repeat", type=int, default=1, show_default=True, help="Rounds of requests")
@click.option(
    "--response-type",
    type=click.Choice([member.value for member in ResponseType], case_sensitive=False),
    default=ResponseType.JSON.value,
    show_default=True,
)
@click.option("--metrics", "show_metrics", is_flag=True, help="Print Prometheus metrics")
@click.pass_context
@async_command
async def get_paths(
    ctx: click.Context,
    paths: tuple[str, ...],
    repeat: int,
    response_type: str,
    show_metrics: bool,
) -> None:
    """GET each path concurrently, REPEAT times, through one cache."""
    settings: Settings = ctx.obj["settings"]
    failed = False

    async with FetchCache(settings) as api:
        for _ in range(max(1, repeat)):
            results = await asyncio.gather(
                *(api.get(path, response_type=response_type) for path in paths),
                return_exceptions=True,
            )
            for path, result in zip(paths, results):
                if isinstance(result, Exception):
                    failed = True
                    console.print(f"[red]{escape(path)}: {escape(json.dumps(error_details(result)))}[/red]")
                elif isinstance(result, BaseException):
                    raise result
                else:
                    console.print(f"[green]{escape(path)}[/green] {escape(_render(result))}")

        stats = api.stats()
        now = api.cache.now()

        table = Table(title="Cache Entries")
        table.add_column("Key", style="cyan")
        table.add_column("State", style="magenta")
        table.add_column("Age (s)", justify="right")
        for key, entry in stats.entries.items():
            table.add_row(key, entry.state, f"{entry.age(now):.3f}")
        console.print(table)

        metrics = stats.metrics
        console.print(
            f"entries={stats.count} get_calls={api.get_calls} hits={metrics.hits} "
            f"misses={metrics.misses} evictions={metrics.evictions}"
        )

    if show_metrics:
        console.print(render_metrics(), markup=False)

    if failed:
        sys.exit(1)


def main() -> None:
    """Entry point for the fetchcache CLI."""
    cli()


if __name__ == "__main__":
    main()
