"""
Shared fixtures — a controllable clock and engines on in-memory stores.
"""
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from configs.settings import Settings
from services.telemetry_service import InMemoryStore, TelemetryEngine


class FakeClock:
    """Callable clock returning epoch seconds; advance it by hand."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def settings():
    return Settings(_env_file=None, storage_backend="memory")


@pytest.fixture()
def store():
    return InMemoryStore()


@pytest.fixture()
def engine(store, settings, clock):
    return TelemetryEngine(store, settings=settings, clock=clock)
