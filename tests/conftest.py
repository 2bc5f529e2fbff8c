"""
RunCache — Test Configuration and Shared Fixtures

Provides pytest configuration and shared fixtures for unit and integration tests.
"""

import asyncio
import os
from collections.abc import AsyncGenerator, Callable
from typing import Any

import pytest

from run_cache.cache.store import RunCache

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "DEBUG"


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: int = 1_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class Producer:
    """Source function that records calls and returns queued results."""

    def __init__(self, *results: Any, delay: float = 0.0) -> None:
        self.results = list(results)
        self.delay = delay
        self.calls = 0

    async def __call__(self) -> Any:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        result = self.results[min(self.calls, len(self.results)) - 1]
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def clock() -> FakeClock:
    """Fake clock starting at a fixed timestamp."""
    return FakeClock()


@pytest.fixture
async def cache(clock: FakeClock) -> AsyncGenerator[RunCache, None]:
    """Fresh cache on the fake clock; closed after each test."""
    instance = RunCache(clock=clock)
    yield instance
    await instance.close()


@pytest.fixture
async def live_cache() -> AsyncGenerator[RunCache, None]:
    """Fresh cache on the wall clock, for tests that wait on real timers."""
    instance = RunCache()
    yield instance
    await instance.close()


@pytest.fixture
def recorder() -> Callable[[], tuple[list[Any], Callable[[Any], None]]]:
    """Factory for (events, callback) pairs that collect event payloads."""

    def make() -> tuple[list[Any], Callable[[Any], None]]:
        events: list[Any] = []
        return events, events.append

    return make


@pytest.fixture
def make_producer() -> type[Producer]:
    """The Producer class, for building recording source functions."""
    return Producer
