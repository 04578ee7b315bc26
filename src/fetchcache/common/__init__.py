"""Common utilities for fetchcache."""

from fetchcache.common.errors import (
    DecodeError,
    FetchCacheError,
    InvalidConfigurationError,
    ResponseError,
    TransportError,
)
from fetchcache.common.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "DecodeError",
    "FetchCacheError",
    "InvalidConfigurationError",
    "ResponseError",
    "TransportError",
]
