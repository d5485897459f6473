"""Staleness policy shared by the lazy on-access check and the periodic sweep."""

from typing import Any

from keyed_cache.domain.models import CacheEntry, TtlAfter
from keyed_cache.shared.config import FOREVER, CacheConfig


def is_stale(entry: CacheEntry[Any], config: CacheConfig, now: float) -> bool:
    """
    Decide whether an entry must be treated as absent.

    Args:
        entry: Entry to check
        config: Cache configuration (ttl and ttl_after are used)
        now: Current reading of the cache's clock

    Returns:
        True when the entry's age exceeds the ttl
    """
    if config.ttl == FOREVER:
        return False
    if config.ttl_after == TtlAfter.WRITE:
        return now - entry.created_at > config.ttl
    return now - entry.last_accessed_at > config.ttl
