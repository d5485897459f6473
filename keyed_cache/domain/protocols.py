"""Protocol definitions for the callables the cache is wired with.

The cache depends on these shapes only; any plain function or ``async def``
with a matching signature satisfies them.
"""

from collections.abc import Awaitable
from typing import Protocol, TypeVar

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class Loader(Protocol[T_co]):
    """Produces the value for a key."""

    def __call__(self, key: str) -> Awaitable[T_co]:
        """Start loading the value for ``key``.

        Args:
            key: Cache key being requested

        Returns:
            Awaitable resolving to the value, or raising on failure
        """
        ...


class RejectHandler(Protocol[T]):
    """Fallback policy for failed loads."""

    def __call__(self, error: Exception, key: str, loader: Loader[T]) -> Awaitable[T]:
        """Produce a replacement for a failed load.

        Args:
            error: Exception raised by the loader
            key: Key whose load failed
            loader: The cache's loader, for policies that retry

        Returns:
            Awaitable whose outcome replaces the failed load
        """
        ...

