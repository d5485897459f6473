"""Domain models for the keyed async cache."""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class TtlAfter(str, Enum):
    """Which timestamp the ttl clock is measured from."""

    ACCESS = "ACCESS"
    WRITE = "WRITE"


@dataclass
class CacheEntry(Generic[T]):
    """Stored future plus the timestamps used by the staleness policy."""

    result: "asyncio.Future[T]"
    created_at: float
    last_accessed_at: float

    @classmethod
    def fresh(cls, result: "asyncio.Future[T]", now: float) -> "CacheEntry[T]":
        return cls(result=result, created_at=now, last_accessed_at=now)

    def touch(self, now: float) -> "asyncio.Future[T]":
        """Record a read and hand back the shared future."""
        self.last_accessed_at = now
        return self.result


class CacheStats(BaseModel):
    """Point-in-time snapshot of cache statistics."""

    hits: int = Field(ge=0, description="Requests served from a fresh entry")
    misses: int = Field(ge=0, description="Requests that triggered a load")
    failed_loads: int = Field(ge=0, description="Loads that raised an exception")
    entries: int = Field(ge=0, description="Entries currently held in the store")

    model_config = ConfigDict(frozen=True)

    @property
    def hit_ratio(self) -> float:
        """Fraction of requests served from cache (0.0 when nothing was requested)."""
        requests = self.hits + self.misses
        if requests == 0:
            return 0.0
        return self.hits / requests
