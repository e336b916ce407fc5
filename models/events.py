"""
Data models that cross agent boundaries through the EventBus.
Everything published on the bus is frozen; agents never mutate what they receive.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import time

ServiceType = str  # "gym", "crossfit", "pt", "gx", "yoga", "pilates", "sports_hall"


@dataclass(frozen=True, slots=True)
class GymRecord:
    """
    Canonical gym row produced by any crawl source.
    Only the fields the gym search needs are kept; raw provider columns are dropped.
    """
    name: str
    address: str
    source: str                      # e.g. "seoul_public_api"
    service_type: ServiceType
    phone: str | None = None
    facilities: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    business_status: str | None = None
    management_number: str | None = None
    confidence: float = 0.9


@dataclass(frozen=True, slots=True)
class CrawlResult:
    """
    Outcome of one poll of one source.
    error is None on success, "circuit_open" when the breaker short-circuited,
    or the exception text otherwise.
    """
    source: str
    records: tuple[GymRecord, ...] = ()
    error: str | None = None
    fetched_at: float = field(default_factory=time.time)

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True, slots=True)
class ExpEvent:
    """An experience-granting action reported by another service (post, workout, ...)."""
    user_id: int
    action: str            # e.g. "post", "comment", "workout"
    reason: str            # e.g. "post_creation", "workout_complete"
    occurred_at: float = field(default_factory=time.time)  # epoch seconds


@dataclass(frozen=True, slots=True)
class LevelReward:
    level: int
    type: str              # "badge", "title", ...
    name: str
    description: str = ""


@dataclass(frozen=True, slots=True)
class LevelUpEvent:
    user_id: int
    old_level: int
    new_level: int
    total_exp: int
    rewards: tuple[LevelReward, ...] = ()
