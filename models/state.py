"""
Mutable state objects owned by individual agents.
UserLevelStore is written only by the RewardAgent; CrawlMetrics only by the
CrawlerAgent.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import date

from models.events import LevelReward

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CooldownInfo:
    is_on_cooldown: bool
    remaining_ms: int = 0


@dataclass(frozen=True, slots=True)
class DailyLimitInfo:
    within_limit: bool
    daily_exp: int
    limit: int


@dataclass(frozen=True, slots=True)
class LevelTier:
    name: str              # "bronze"
    title: str             # display title
    min_level: int
    max_level: int
    color: str             # "#cd7f32"

    def contains(self, level: int) -> bool:
        return self.min_level <= level <= self.max_level


@dataclass(slots=True)
class UserLevel:
    """
    Per-user progress. total_exp is cumulative and is what the LevelEngine reads;
    level is cached here after every grant.
    """
    user_id: int
    level: int = 1
    total_exp: int = 0
    season_exp: int = 0
    last_action_at: dict[str, float] = field(default_factory=dict)  # action -> epoch seconds
    daily_exp: dict[date, int] = field(default_factory=dict)

    def exp_on(self, day: date) -> int:
        return self.daily_exp.get(day, 0)

    def apply_exp(self, action: str, amount: int, at: float, day: date) -> None:
        self.total_exp += amount
        self.season_exp += amount
        self.last_action_at[action] = at
        self.daily_exp[day] = self.daily_exp.get(day, 0) + amount
        # Only today's bucket matters for the daily cap
        for stale in [d for d in self.daily_exp if d < day]:
            del self.daily_exp[stale]


@dataclass(frozen=True, slots=True)
class GrantResult:
    success: bool
    user_id: int
    level: int
    total_exp: int
    exp_gained: int = 0
    leveled_up: bool = False
    rewards: tuple[LevelReward, ...] = ()
    cooldown: CooldownInfo | None = None
    daily_limit: DailyLimitInfo | None = None


class UserLevelStore:
    """In-memory user progress, keyed by user id. Persistence lives elsewhere."""

    def __init__(self) -> None:
        self._users: dict[int, UserLevel] = {}

    def get(self, user_id: int) -> UserLevel | None:
        return self._users.get(user_id)

    def get_or_create(self, user_id: int) -> UserLevel:
        user = self._users.get(user_id)
        if user is None:
            user = UserLevel(user_id=user_id)
            self._users[user_id] = user
            log.info("UserLevelStore: created level record for user=%d", user_id)
        return user

    def __len__(self) -> int:
        return len(self._users)


@dataclass(slots=True)
class CrawlMetrics:
    """
    Running counters for one crawl source.
    requests counts fetches that actually ran; skipped counts polls the
    breaker short-circuited. Latency covers successes and failures alike.
    """
    requests: int = 0
    successes: int = 0
    failures: int = 0
    skipped: int = 0
    total_latency_ms: float = 0.0

    @property
    def average_latency_ms(self) -> float:
        return self.total_latency_ms / self.requests if self.requests else 0.0

    @property
    def success_rate(self) -> float:
        return self.successes / self.requests * 100 if self.requests else 0.0

    def record_success(self, latency_ms: float) -> None:
        self.requests += 1
        self.successes += 1
        self.total_latency_ms += latency_ms

    def record_failure(self, latency_ms: float) -> None:
        self.requests += 1
        self.failures += 1
        self.total_latency_ms += latency_ms

    def record_skip(self) -> None:
        self.skipped += 1

    def snapshot(self) -> dict[str, float | int]:
        return {
            "requests": self.requests,
            "successes": self.successes,
            "failures": self.failures,
            "skipped": self.skipped,
            "success_rate": round(self.success_rate, 2),
            "average_latency_ms": round(self.average_latency_ms, 2),
        }
