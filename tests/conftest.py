"""
Shared fixtures: an in-memory counter store driven by a fake clock, and the
registry of the dummy GraphQL schema used across the tests.
"""

import pytest

from resource_limiter import EvaluationCoordinator, MemoryCounterStore, ResourceLimitRegistry


class FakeClock:
    """Clock the tests move forward by hand."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return MemoryCounterStore(clock=clock)


@pytest.fixture
def custom_store(clock):
    return MemoryCounterStore(clock=clock)


@pytest.fixture
def registry(custom_store):
    return ResourceLimitRegistry.from_mapping({
        'expensiveField': {'threshold': 5, 'interval': 15},
        'expensiveField2': {'threshold': 10, 'interval': 15},
        'fieldWithCustomRedisClient': {'threshold': 10, 'interval': 15, 'redis_client': custom_store},
        'fieldWithOnOption': {'threshold': 10, 'interval': 15, 'on': 'client_id'},
    })


@pytest.fixture
def coordinator(registry, store):
    return EvaluationCoordinator(registry, store)
