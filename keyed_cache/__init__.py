"""
keyed_cache: a keyed cache for asynchronously produced values.

Usage:
    from keyed_cache import KeyedAsyncCache, TtlAfter

    cache = KeyedAsyncCache(fetch_profile, ttl=300, ttl_after=TtlAfter.WRITE)
    profile = await cache.get("user-42")
"""

from keyed_cache.cache import KeyedAsyncCache, SingleValueCache, is_stale, single_value_cache
from keyed_cache.domain.exceptions import CacheClosedError, CacheError
from keyed_cache.domain.models import CacheEntry, CacheStats, TtlAfter
from keyed_cache.domain.protocols import Loader, RejectHandler
from keyed_cache.shared.config import FOREVER, NEVER, CacheConfig, CacheSettings, get_settings
from keyed_cache.shared.retry import reload_on_reject, retry_with_backoff

__version__ = "0.1.0"

__all__ = [
    "KeyedAsyncCache",
    "SingleValueCache",
    "single_value_cache",
    "is_stale",
    "CacheConfig",
    "CacheSettings",
    "get_settings",
    "NEVER",
    "FOREVER",
    "TtlAfter",
    "CacheEntry",
    "CacheStats",
    "CacheError",
    "CacheClosedError",
    "Loader",
    "RejectHandler",
    "reload_on_reject",
    "retry_with_backoff",
]
