"""
Shared utilities module.

Configuration, logging setup and retry helpers used across the package.
"""

from keyed_cache.shared.config import FOREVER, NEVER, CacheConfig, CacheSettings, get_settings

__all__ = ["NEVER", "FOREVER", "CacheConfig", "CacheSettings", "get_settings"]
