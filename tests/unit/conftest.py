"""Test configuration and fixtures.

Provides:
- A controllable clock for deterministic ttl tests
- Loaders that count their invocations
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import pytest


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingLoader:
    """Loader returning a fixed value, optionally after a delay."""

    def __init__(self, value: Any = "value", delay: float = 0.0) -> None:
        self.value = value
        self.delay = delay
        self.times_loaded = 0
        self.keys: list[str] = []

    async def load(self, key: str) -> Any:
        self.keys.append(key)
        if self.delay:
            await asyncio.sleep(self.delay)
        self.times_loaded += 1
        return self.value


def fails_one_time(value: Any) -> Callable[[str], Awaitable[Any]]:
    """Loader that raises on its first call and returns ``value`` afterwards."""
    failed = False

    async def load(key: str) -> Any:
        nonlocal failed
        if failed:
            return value
        failed = True
        raise RuntimeError("failing for first time")

    return load


@pytest.fixture
def clock() -> FakeClock:
    """Fake clock starting at an arbitrary non-zero time."""
    return FakeClock()


@pytest.fixture
def loader() -> CountingLoader:
    """Loader returning 'value' immediately."""
    return CountingLoader("value")


@pytest.fixture
def slow_loader() -> CountingLoader:
    """Loader returning 'value' after a short delay."""
    return CountingLoader("value", delay=0.005)


@pytest.fixture
def failing_once() -> Callable[[Any], Callable[[str], Awaitable[Any]]]:
    """Factory for loaders that fail once, then succeed."""
    return fails_one_time


@pytest.fixture
def make_loader() -> Callable[..., CountingLoader]:
    """Factory for counting loaders with custom value and delay."""
    return CountingLoader
