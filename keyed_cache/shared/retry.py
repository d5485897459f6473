"""
Retry helpers for loaders.

Two ways to retry a failing load:
- retry_with_backoff: decorate the loader so the cache only sees the final
  outcome (failures are never counted while retries remain)
- reload_on_reject: an ``on_reject`` policy, so the first failure is counted
  and the cache's own loader is re-invoked with backoff
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, ParamSpec, TypeVar

from keyed_cache.domain.protocols import Loader, RejectHandler

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


def backoff_delay(
    attempt: int,
    initial_delay: float,
    exponential_base: float,
    max_delay: float,
) -> float:
    """Delay before retry number ``attempt`` (0-based), capped at ``max_delay``."""
    return min(initial_delay * (exponential_base**attempt), max_delay)


def retry_with_backoff(
    max_retries: int = 3,
    initial_delay: float = 1.0,
    exponential_base: float = 2.0,
    max_delay: float = 60.0,
    exceptions: tuple[type[Exception], ...] = (Exception,),
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """
    Decorator for retrying an async loader with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts (default: 3)
        initial_delay: Delay in seconds before the first retry (default: 1.0)
        exponential_base: Base for exponential backoff calculation (default: 2.0)
        max_delay: Maximum delay in seconds between retries (default: 60.0)
        exceptions: Exception types that trigger a retry (default: all exceptions)

    Returns:
        Decorated async function with retry logic

    Example:
        >>> @retry_with_backoff(max_retries=2, initial_delay=0.5)
        ... async def load_token(key: str) -> str:
        ...     return await auth_client.fetch_token()
        >>> tokens = KeyedAsyncCache(load_token, ttl=3600)
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if attempt == max_retries:
                        logger.error(f"{func.__name__} failed after {max_retries} retries: {e}")
                        raise

                    delay = backoff_delay(attempt, initial_delay, exponential_base, max_delay)
                    logger.warning(
                        f"{func.__name__} attempt {attempt + 1}/{max_retries + 1} failed: {e}. "
                        f"Retrying in {delay:.2f}s..."
                    )
                    await asyncio.sleep(delay)

            raise RuntimeError(f"{func.__name__} exhausted retries without exception")

        return wrapper

    return decorator


def reload_on_reject(
    max_retries: int = 3,
    initial_delay: float = 1.0,
    exponential_base: float = 2.0,
    max_delay: float = 60.0,
    exceptions: tuple[type[Exception], ...] = (Exception,),
) -> RejectHandler[Any]:
    """
    Build an ``on_reject`` policy that reloads the key with exponential backoff.

    The policy runs once per failed load. When every reload fails too, the
    last exception propagates to the callers of ``get``.

    Args:
        max_retries: Reload attempts after the original failure (default: 3)
        initial_delay: Delay in seconds before the first reload (default: 1.0)
        exponential_base: Base for exponential backoff calculation (default: 2.0)
        max_delay: Maximum delay in seconds between reloads (default: 60.0)
        exceptions: Exception types that are worth reloading for

    Returns:
        Reject handler suitable for ``CacheConfig.on_reject``
    """

    async def on_reject(error: Exception, key: str, loader: Loader[Any]) -> Any:
        last_error = error
        for attempt in range(max_retries):
            if not isinstance(last_error, exceptions):
                logger.debug(f"Not reloading {key!r}: {type(last_error).__name__} is not retryable")
                raise last_error
            delay = backoff_delay(attempt, initial_delay, exponential_base, max_delay)
            logger.warning(
                f"Load of {key!r} failed: {last_error}. "
                f"Reload {attempt + 1}/{max_retries} in {delay:.2f}s..."
            )
            await asyncio.sleep(delay)
            try:
                return await loader(key)
            except Exception as e:
                last_error = e

        logger.error(f"Giving up on {key!r} after {max_retries} reloads: {last_error}")
        raise last_error

    return on_reject
