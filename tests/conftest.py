"""Shared fixtures."""

import pytest

from bus.event_bus import EventBus
from models.events import GymRecord


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def make_gym():
    def _make(name="득근 피트니스", address="서울특별시 마포구 월드컵로 1", confidence=0.9, source="seoul_public_api"):
        return GymRecord(
            name=name,
            address=address,
            source=source,
            service_type="gym",
            confidence=confidence,
        )
    return _make
