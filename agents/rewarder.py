"""
Reward Agent — experience & levels.

Consumes ExpEvent from the EventBus, applies ExpRules, recomputes the user's
level with the LevelEngine and publishes a LevelUpEvent when the level rose.

The agent is the sole writer of the UserLevelStore.
"""

from __future__ import annotations
import asyncio
import logging
from datetime import date, datetime
from typing import Callable

from bus.event_bus import EventBus
from models.events import ExpEvent, LevelUpEvent
from models.state import GrantResult, UserLevel, UserLevelStore
from strategy.exp_rules import ExpRules
from strategy.level_engine import LevelEngine

log = logging.getLogger(__name__)


def _local_day(ts: float) -> date:
    return datetime.fromtimestamp(ts).date()


class RewardAgent:

    def __init__(
        self,
        bus: EventBus,
        engine: LevelEngine,
        rules: ExpRules,
        store: UserLevelStore,
        day_of: Callable[[float], date] = _local_day,
    ) -> None:
        self._bus = bus
        self._engine = engine
        self._rules = rules
        self._store = store
        self._day_of = day_of

    @property
    def store(self) -> UserLevelStore:
        return self._store

    async def run(self) -> None:
        log.info(
            "Reward agent running (max_level=%d daily_exp_limit=%d)",
            self._engine.max_level, self._rules.daily_exp_limit,
        )
        while True:
            try:
                event: ExpEvent = await self._bus.exp_events.get()
                self.grant(event)
            except asyncio.CancelledError:
                break
            except Exception as exc:
                log.exception("Reward agent unexpected error: %s", exc)

    def grant(self, event: ExpEvent) -> GrantResult:
        user = self._store.get_or_create(event.user_id)

        cooldown = self._rules.check_cooldown(
            event.action, user.last_action_at.get(event.action), event.occurred_at,
        )
        if cooldown.is_on_cooldown:
            log.debug(
                "Reward: user=%d %s on cooldown (%d ms left)",
                user.user_id, event.action, cooldown.remaining_ms,
            )
            return self._rejected(user, cooldown=cooldown)

        amount = self._rules.exp_amount(event.action, event.reason)
        day = self._day_of(event.occurred_at)
        daily = self._rules.check_daily_limit(user.exp_on(day), amount)
        if not daily.within_limit:
            log.info(
                "Reward: user=%d daily exp limit reached (%d/%d)",
                user.user_id, daily.daily_exp, daily.limit,
            )
            return self._rejected(user, cooldown=cooldown, daily_limit=daily)

        old_level = user.level
        user.apply_exp(event.action, amount, event.occurred_at, day)
        user.level = self._engine.calculate_level(user.total_exp)

        rewards: tuple = ()
        if user.level > old_level:
            rewards = tuple(self._rules.rewards_between(old_level, user.level))
            log.info(
                "Reward: user=%d leveled up %d -> %d (total_exp=%d, %d reward(s))",
                user.user_id, old_level, user.level, user.total_exp, len(rewards),
            )
            self._bus.publish_level_up(LevelUpEvent(
                user_id=user.user_id,
                old_level=old_level,
                new_level=user.level,
                total_exp=user.total_exp,
                rewards=rewards,
            ))

        return GrantResult(
            success=True,
            user_id=user.user_id,
            level=user.level,
            total_exp=user.total_exp,
            exp_gained=amount,
            leveled_up=user.level > old_level,
            rewards=rewards,
            cooldown=cooldown,
            daily_limit=daily,
        )

    def progress(self, user_id: int) -> dict[str, object] | None:
        """Level summary for one user, or None if the user has never earned exp."""
        user = self._store.get(user_id)
        if user is None:
            return None
        tier = self._rules.tier_for_level(user.level)
        return {
            "level": user.level,
            "total_exp": user.total_exp,
            "season_exp": user.season_exp,
            "exp_to_next_level": self._engine.get_exp_to_next_level(user.level, user.total_exp),
            "progress_percentage": self._engine.level_progress(user.total_exp),
            "tier": tier.name,
            "title": tier.title,
            "color": tier.color,
        }

    @staticmethod
    def _rejected(user: UserLevel, **info) -> GrantResult:
        return GrantResult(
            success=False,
            user_id=user.user_id,
            level=user.level,
            total_exp=user.total_exp,
            **info,
        )
