"""Tests for settings and metrics wiring."""

import pytest
from pydantic import ValidationError

from fetchcache.cache import ExecutionContext
from fetchcache.client import FetchCache
from fetchcache.common.metrics import record_lookup, render_metrics
from fetchcache.common.settings import Settings


def test_defaults_disable_client_retention(monkeypatch):
    for name in ("BASE_URL", "EXECUTION_CONTEXT", "DEFAULT_CACHE_TIME", "MAX_CACHE_SIZE", "DEBUG"):
        monkeypatch.delenv(f"FETCHCACHE_{name}", raising=False)

    settings = Settings(_env_file=None)

    assert settings.execution_context == "client"
    assert settings.default_cache_time == 0.0
    assert settings.max_cache_size == 200
    assert settings.debug is False


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("FETCHCACHE_EXECUTION_CONTEXT", "server")
    monkeypatch.setenv("FETCHCACHE_MAX_CACHE_SIZE", "-1")
    monkeypatch.setenv("FETCHCACHE_DEBUG", "verbose")

    settings = Settings(_env_file=None)

    assert settings.execution_context == "server"
    assert settings.max_cache_size == -1
    assert settings.debug == "verbose"


def test_rejects_invalid_values():
    with pytest.raises(ValidationError):
        Settings(max_cache_size=-5)
    with pytest.raises(ValidationError):
        Settings(max_cache_size=0)
    with pytest.raises(ValidationError):
        Settings(default_cache_time=-1)
    with pytest.raises(ValidationError):
        Settings(execution_context="browser")


def test_client_builds_cache_from_settings():
    settings = Settings(execution_context="server", max_cache_size=10, _env_file=None)
    api = FetchCache(settings)

    assert api.cache.context is ExecutionContext.SERVER
    assert api.cache.max_size == 10


def test_render_metrics_includes_lookups():
    record_lookup(hit=True)

    output = render_metrics()

    assert 'fetchcache_lookups_total{outcome="hit"}' in output
