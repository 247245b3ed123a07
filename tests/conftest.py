"""Pytest configuration, Hypothesis profiles and shared fixtures."""

import pytest
from hypothesis import settings

from topicrelay.backends.inmemory import InMemoryBackend
from topicrelay.core.relay import Relay

# Register Hypothesis profiles
settings.register_profile("ci", max_examples=100)
settings.register_profile("dev", max_examples=20)

# Load dev profile by default, CI can override via --hypothesis-profile=ci
settings.load_profile("dev")


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, now: int = 1_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int = 1) -> int:
        self.now += ms
        return self.now


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture
def relay(backend: InMemoryBackend, clock: FakeClock) -> Relay:
    return Relay(backend, clock=clock)
