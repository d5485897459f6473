"""
Background sweep driver.

Runs an asyncio task that periodically asks a cache to evict its stale
entries. The task only holds a weak reference to the cache: once the cache is
garbage collected the task ends on its next tick, and asyncio never waits on
it at shutdown.
"""

import asyncio
import logging
import weakref
from typing import Protocol

logger = logging.getLogger(__name__)


class Sweepable(Protocol):
    """Anything that can evict its own stale entries."""

    def evict_stale(self) -> int:
        ...


class PeriodicSweeper:
    """Calls ``evict_stale()`` on a cache every ``interval`` seconds."""

    def __init__(self, target: Sweepable, interval: float) -> None:
        self._target = weakref.ref(target)
        self.interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> bool:
        """
        Start the sweep task on the running event loop.

        Returns:
            True if a task is running afterwards, False when no loop is running
        """
        if self.running:
            return True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return False

        self._task = loop.create_task(self._run(), name=f"cache-sweeper-{id(self):x}")
        logger.debug(f"Started cache sweeper (interval={self.interval}s)")
        return True

    def stop(self) -> None:
        task = self._task
        if task is not None and not task.done():
            task.cancel()
            logger.debug("Stopped cache sweeper")
        self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            target = self._target()
            if target is None:
                logger.debug("Cache was garbage collected, sweeper exiting")
                return
            try:
                target.evict_stale()
            except Exception as e:
                logger.warning(f"Cache sweep failed: {e}", exc_info=True)
            # Drop the strong reference before sleeping again
            del target
