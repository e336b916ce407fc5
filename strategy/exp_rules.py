"""
Experience reward policy.

Decides how much exp an action is worth and whether it may be granted right
now. Everything here is a pure function of its arguments plus the static
config; the RewardAgent owns the state and the clock.

Checks run in this order (first failure wins):
  1. per-action cooldown    — e.g. one post reward per 5 minutes
  2. daily exp cap          — today's exp + this grant <= daily_exp_limit

Level-up rewards and tiers are looked up by level number only.
"""

from __future__ import annotations
import logging
from typing import Mapping, Sequence

from models.events import LevelReward
from models.state import CooldownInfo, DailyLimitInfo, LevelTier

log = logging.getLogger(__name__)

DEFAULT_EXP: int = 10
DAILY_EXP_LIMIT: int = 500

DEFAULT_TIERS: tuple[LevelTier, ...] = (
    LevelTier(name="bronze", title="브론즈", min_level=1, max_level=20, color="#cd7f32"),
    LevelTier(name="silver", title="실버", min_level=21, max_level=50, color="#c0c0c0"),
    LevelTier(name="gold", title="골드", min_level=51, max_level=80, color="#ffd700"),
    LevelTier(name="platinum", title="플래티넘", min_level=81, max_level=100, color="#e5e4e2"),
)


class ExpRules:
    def __init__(
        self,
        exp_values: Mapping[str, Mapping[str, int]] | None = None,
        cooldowns_ms: Mapping[str, int] | None = None,
        daily_exp_limit: int = DAILY_EXP_LIMIT,
        default_exp: int = DEFAULT_EXP,
        level_rewards: Mapping[int, LevelReward] | None = None,
        tiers: Sequence[LevelTier] = DEFAULT_TIERS,
    ) -> None:
        self._exp_values = {a: dict(r) for a, r in (exp_values or {}).items()}
        self._cooldowns_ms = dict(cooldowns_ms or {})
        self._daily_exp_limit = daily_exp_limit
        self._default_exp = default_exp
        self._level_rewards = dict(level_rewards or {})
        self._tiers = tuple(tiers) or DEFAULT_TIERS

    @property
    def daily_exp_limit(self) -> int:
        return self._daily_exp_limit

    def exp_amount(self, action: str, reason: str) -> int:
        """Configured exp for (action, reason); unknown pairs earn default_exp."""
        amount = self._exp_values.get(action, {}).get(reason)
        if amount is None:
            log.debug("No exp value for action=%s reason=%s, using default %d", action, reason, self._default_exp)
            return self._default_exp
        return amount

    def cooldown_ms(self, action: str) -> int:
        return self._cooldowns_ms.get(action, 0)

    def check_cooldown(self, action: str, last_action_at: float | None, now: float) -> CooldownInfo:
        """last_action_at and now are epoch seconds."""
        cooldown = self.cooldown_ms(action)
        if cooldown == 0 or last_action_at is None:
            return CooldownInfo(is_on_cooldown=False)
        since_ms = (now - last_action_at) * 1000
        remaining = max(0, int(cooldown - since_ms))
        return CooldownInfo(is_on_cooldown=since_ms < cooldown, remaining_ms=remaining)

    def check_daily_limit(self, daily_exp: int, exp_to_add: int) -> DailyLimitInfo:
        return DailyLimitInfo(
            within_limit=daily_exp + exp_to_add <= self._daily_exp_limit,
            daily_exp=daily_exp,
            limit=self._daily_exp_limit,
        )

    def reward_for_level(self, level: int) -> LevelReward | None:
        return self._level_rewards.get(level)

    def rewards_between(self, old_level: int, new_level: int) -> list[LevelReward]:
        """Rewards for every level in (old_level, new_level], ascending."""
        rewards = []
        for level in range(old_level + 1, new_level + 1):
            reward = self._level_rewards.get(level)
            if reward is not None:
                rewards.append(reward)
        return rewards

    def tier_for_level(self, level: int) -> LevelTier:
        for tier in self._tiers:
            if tier.contains(level):
                return tier
        return self._tiers[0]
