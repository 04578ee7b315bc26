"""Configuration management using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FETCHCACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Transport
    base_url: str = Field(
        default="http://localhost:8080",
        description="Base URL that relative request paths resolve against",
    )
    http_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Total HTTP request timeout in seconds",
    )

    # Cache
    execution_context: Literal["server", "client"] = Field(
        default="client",
        description=(
            "server: entries live as long as the client instance (one per request); "
            "client: entries expire after the validity window"
        ),
    )
    default_cache_time: float = Field(
        default=0.0,
        ge=0,
        description="Default validity window in seconds for client context (0 = no caching)",
    )
    max_cache_size: int = Field(
        default=200,
        ge=-1,
        description="Maximum cached entries, evicted FIFO (-1 = unbounded)",
    )

    # Diagnostics
    debug: bool | Literal["verbose"] = Field(
        default=False,
        description="Log cache hits and cache state after each GET ('verbose' adds keys and failures)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level for structlog output",
    )
    log_json: bool = Field(
        default=False,
        description="Render logs as JSON lines",
    )

    @field_validator("max_cache_size")
    @classmethod
    def _check_max_cache_size(cls, value: int) -> int:
        if value == 0:
            raise ValueError("max_cache_size must be -1 (unbounded) or a positive integer")
        return value


@lru_cache
def get_settings() -> Settings:
    """Get cached settings."""
    return Settings()
