"""Cache-level exceptions.

Load failures are never wrapped: callers see whatever the loader (or the
``on_reject`` policy) raised.
"""


class CacheError(Exception):
    """Base exception for all cache errors."""
    pass


class CacheClosedError(CacheError):
    """Raised when a closed cache is used."""

    def __init__(self, message: str = "Cache is closed"):
        super().__init__(message)
