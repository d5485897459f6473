"""
Keyed cache for asynchronously produced values.

The cache memoizes the *future* of a load, not just its value:
- Concurrent requests for a key share one in-flight load
- Failed loads go through a fallback policy exactly once
- Entries expire by ttl, measured from last access or from creation
- Stale entries are evicted lazily on access and, optionally, by a
  periodic background sweep

All bookkeeping happens synchronously on the event loop thread, so the
lookup/decide/insert sequence in get() cannot interleave with another call.
"""

import asyncio
import functools
import logging
import time
from collections.abc import Awaitable, Callable
from types import TracebackType
from typing import Any, Generic, TypeVar

from keyed_cache.cache.policy import is_stale
from keyed_cache.cache.stats import StatsCollector
from keyed_cache.cache.sweeper import PeriodicSweeper
from keyed_cache.domain.exceptions import CacheClosedError
from keyed_cache.domain.models import CacheEntry, CacheStats
from keyed_cache.domain.protocols import Loader
from keyed_cache.shared.config import NEVER, CacheConfig, CacheSettings, get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

SINGLE_KEY = ""


class KeyedAsyncCache(Generic[T]):
    """
    Cache of asyncio futures keyed by string.

    Example:
        >>> users = KeyedAsyncCache(fetch_user, ttl=300, check_interval=60)
        >>> user = await users.get("42")
    """

    def __init__(
        self,
        loader: Loader[T],
        config: CacheConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        **options: Any,
    ) -> None:
        """
        Initialize the cache.

        Args:
            loader: ``loader(key)`` returning an awaitable of the value
            config: Base configuration (defaults: no ttl, no sweep)
            clock: Monotonic time source in seconds
            **options: CacheConfig fields overriding ``config``

        Raises:
            pydantic.ValidationError: If the configuration is invalid
        """
        self._loader = loader
        self._config = (config or CacheConfig()).with_options(**options)
        self._clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}
        self._stats = StatsCollector()
        self._closed = False

        self._sweeper: PeriodicSweeper | None = None
        if self._config.sweeps and self._config.check_interval != NEVER:
            self._sweeper = PeriodicSweeper(self, float(self._config.check_interval))
            self._ensure_sweeper()

        logger.debug(
            f"Initialized KeyedAsyncCache: ttl={self._config.ttl}, "
            f"ttl_after={self._config.ttl_after.value}, "
            f"check_interval={self._config.check_interval}, "
            f"remove_rejected={self._config.remove_rejected}"
        )

    @classmethod
    def from_settings(
        cls,
        loader: Loader[T],
        settings: CacheSettings | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        **options: Any,
    ) -> "KeyedAsyncCache[T]":
        """Build a cache configured from environment settings (KEYED_CACHE_*)."""
        settings = settings or get_settings()
        return cls(loader, settings.cache_config(**options), clock=clock)

    @property
    def config(self) -> CacheConfig:
        return self._config

    @property
    def closed(self) -> bool:
        return self._closed

    def get(self, key: str) -> "asyncio.Future[T]":
        """
        Get the future for ``key``, loading it if absent or stale.

        Callers asking for the same key while its entry is fresh share one
        load. Each caller gets its own shielded handle to it, so cancelling a
        handle (or timing out in ``asyncio.wait_for``) never aborts the load
        for the other callers.

        Args:
            key: Cache key

        Returns:
            Future resolving to the value (or to the reject policy's outcome)

        Raises:
            CacheClosedError: If the cache was closed
            RuntimeError: If called without a running event loop
        """
        self._check_open()
        loop = asyncio.get_running_loop()
        self._ensure_sweeper()
        now = self._clock()

        found = self._entries.get(key)
        if found is not None:
            if not is_stale(found, self._config, now):
                self._stats.hit()
                logger.debug(f"Cache hit: {key!r}")
                return asyncio.shield(found.touch(now))
            logger.debug(f"Cache entry stale: {key!r}")
            self._evict(key, found)

        self._stats.miss()
        logger.debug(f"Cache miss: {key!r} (loading)")
        loaded = loop.create_task(self._load(key), name=f"cache-load-{key}")
        loaded.add_done_callback(functools.partial(self._drop_if_cancelled, key))
        self._entries[key] = CacheEntry.fresh(loaded, now)
        return asyncio.shield(loaded)

    def set(self, key: str, value: T) -> None:
        """
        Store an already-known value, replacing any entry for ``key``.

        Statistics are untouched and the loader is not called.

        Raises:
            CacheClosedError: If the cache was closed
            RuntimeError: If called without a running event loop
        """
        self._check_open()
        future: asyncio.Future[T] = asyncio.get_running_loop().create_future()
        future.set_result(value)
        self._ensure_sweeper()
        self._entries[key] = CacheEntry.fresh(future, self._clock())
        logger.debug(f"Cache set: {key!r}")

    def delete(self, key: str) -> bool:
        """
        Drop the entry for ``key`` without calling ``on_remove``.

        Returns:
            True if an entry was removed, False if none existed
        """
        removed = self._entries.pop(key, None) is not None
        if removed:
            logger.debug(f"Cache delete: {key!r}")
        return removed

    def clear(self) -> int:
        """
        Drop every entry without calling ``on_remove``.

        Returns:
            Number of entries removed
        """
        count = len(self._entries)
        self._entries.clear()
        logger.debug(f"Cache clear: removed {count} entries")
        return count

    def statistics(self) -> CacheStats:
        """Snapshot of hits, misses, failed loads and current entry count."""
        return self._stats.export(len(self._entries))

    def evict_stale(self) -> int:
        """
        Evict every stale entry, calling ``on_remove`` for each.

        Iterates over a snapshot of the keys, so hooks may freely mutate the
        cache. A failing hook does not stop the sweep.

        Returns:
            Number of entries evicted
        """
        if not self._config.expires:
            return 0

        now = self._clock()
        evicted = 0
        for key in list(self._entries):
            entry = self._entries.get(key)
            if entry is None or not is_stale(entry, self._config, now):
                continue
            self._evict(key, entry)
            evicted += 1

        if evicted:
            logger.info(f"Cache sweep: evicted {evicted} stale entries, {len(self._entries)} remain")
        else:
            logger.debug(f"Cache sweep: nothing stale among {len(self._entries)} entries")
        return evicted

    def close(self) -> None:
        """Stop the background sweep and drop all entries. Idempotent."""
        if self._closed:
            return
        self._closed = True
        if self._sweeper is not None:
            self._sweeper.stop()
        count = self.clear()
        logger.info(f"Closed KeyedAsyncCache ({count} entries dropped)")

    async def __aenter__(self) -> "KeyedAsyncCache[T]":
        self._ensure_sweeper()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    async def _load(self, key: str) -> T:
        try:
            return await self._loader(key)
        except Exception as error:
            return await self._handle_reject(error, key)

    async def _handle_reject(self, error: Exception, key: str) -> T:
        self._stats.failed_load()
        logger.warning(f"Load failed for {key!r}: {error!r}")

        try:
            fallback = self._config.on_reject(error, key, self._loader)
        finally:
            if self._config.remove_rejected:
                self._discard_current_load(key)

        return await fallback

    def _discard_current_load(self, key: str) -> None:
        # Only drop the entry wrapping this load; a set() or reload may have replaced it
        entry = self._entries.get(key)
        if entry is not None and entry.result is asyncio.current_task():
            del self._entries[key]
            logger.debug(f"Removed rejected entry: {key!r}")

    def _drop_if_cancelled(self, key: str, load: "asyncio.Future[T]") -> None:
        # A cancelled load can never produce a value; the next get() reloads
        if not load.cancelled():
            return
        entry = self._entries.get(key)
        if entry is not None and entry.result is load:
            del self._entries[key]
            logger.debug(f"Removed cancelled entry: {key!r}")

    def _evict(self, key: str, entry: CacheEntry[T]) -> None:
        try:
            self._config.on_remove(key, entry.result)
        except Exception as e:
            logger.warning(f"on_remove hook failed for {key!r}: {e}", exc_info=True)

        if self._entries.get(key) is entry:
            del self._entries[key]

    def _ensure_sweeper(self) -> None:
        if self._sweeper is not None and not self._closed:
            self._sweeper.start()

    def _check_open(self) -> None:
        if self._closed:
            raise CacheClosedError()


class SingleValueCache(Generic[T]):
    """
    Cache for one recomputed value, e.g. an auth token.

    Calling the instance returns a handle to the shared load of the value.
    """

    def __init__(
        self,
        loader: Callable[[], Awaitable[T]],
        config: CacheConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        **options: Any,
    ) -> None:
        self.cache: KeyedAsyncCache[T] = KeyedAsyncCache(
            lambda _key: loader(), config, clock=clock, **options
        )

    def __call__(self) -> "asyncio.Future[T]":
        return self.cache.get(SINGLE_KEY)

    def set(self, value: T) -> None:
        self.cache.set(SINGLE_KEY, value)

    def statistics(self) -> CacheStats:
        return self.cache.statistics()

    def close(self) -> None:
        self.cache.close()


def single_value_cache(
    loader: Callable[[], Awaitable[T]],
    config: CacheConfig | None = None,
    **options: Any,
) -> SingleValueCache[T]:
    """
    Bind a cache to a single implicit key.

    Args:
        loader: Zero-argument async callable producing the value
        config: Base configuration
        **options: CacheConfig fields overriding ``config`` (``clock`` is accepted too)

    Returns:
        Callable returning the shared future for the value
    """
    return SingleValueCache(loader, config, **options)
