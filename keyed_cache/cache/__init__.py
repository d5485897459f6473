"""In-memory keyed cache of asyncio futures."""

from .async_cache import KeyedAsyncCache, SingleValueCache, single_value_cache
from .policy import is_stale
from .stats import StatsCollector
from .sweeper import PeriodicSweeper

__all__ = [
    "KeyedAsyncCache",
    "SingleValueCache",
    "single_value_cache",
    "is_stale",
    "StatsCollector",
    "PeriodicSweeper",
]
