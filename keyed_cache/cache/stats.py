"""Statistics collection."""

from keyed_cache.domain.models import CacheStats


class StatsCollector:
    """Monotonic counters for one cache instance."""

    def __init__(self) -> None:
        self.hits = 0
        self.misses = 0
        self.failed_loads = 0

    def hit(self) -> None:
        self.hits += 1

    def miss(self) -> None:
        self.misses += 1

    def failed_load(self) -> None:
        self.failed_loads += 1

    def export(self, entries: int) -> CacheStats:
        return CacheStats(
            hits=self.hits,
            misses=self.misses,
            failed_loads=self.failed_loads,
            entries=entries,
        )
