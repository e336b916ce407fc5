"""
Experience → level calculator.

The threshold table holds the cumulative experience needed to *enter* each
level, index 0 = level 1 (always 0 exp):

    thresholds = [0, 100, 220, 364, ...]
    level 1: 0 <= exp < 100
    level 2: 100 <= exp < 220
    ...

The default table comes from the per-level formula

    exp(level k -> k+1) = floor(BASE_EXP * MULTIPLIER ** (k - 1))

summed cumulatively. Thresholds must be strictly increasing; this module
does not check that, the config loader owns it.

Pure functions only. Safe to share one LevelEngine across every task.
"""

from __future__ import annotations
import math
from typing import Sequence

BASE_EXP: int = 100
EXP_MULTIPLIER: float = 1.2
MAX_LEVEL: int = 100


def build_thresholds(
    base_exp: int = BASE_EXP,
    multiplier: float = EXP_MULTIPLIER,
    max_level: int = MAX_LEVEL,
) -> list[int]:
    """
    Cumulative threshold table for levels 1..max_level.

    build_thresholds(100, 1.2, 4) -> [0, 100, 220, 364]
    """
    thresholds = [0]
    total = 0
    for k in range(1, max_level):
        total += math.floor(base_exp * multiplier ** (k - 1))
        thresholds.append(total)
    return thresholds


class LevelEngine:
    __slots__ = ("_thresholds",)

    def __init__(self, thresholds: Sequence[int] | None = None) -> None:
        self._thresholds: tuple[int, ...] = tuple(
            thresholds if thresholds is not None else build_thresholds()
        )

    @property
    def max_level(self) -> int:
        return len(self._thresholds)

    @property
    def thresholds(self) -> tuple[int, ...]:
        return self._thresholds

    def find_exp_required(self, level: int) -> int | None:
        """Threshold for entering `level`, or None when the level is not configured."""
        if level < 1 or level > self.max_level:
            return None
        return self._thresholds[level - 1]

    def get_exp_required(self, level: int) -> int:
        """
        Threshold for entering `level`.

        Returns 0 for out-of-range levels, which is indistinguishable from
        level 1's requirement. Use find_exp_required() when that matters.
        """
        required = self.find_exp_required(level)
        return 0 if required is None else required

    def calculate_level(self, exp: int) -> int:
        for level in range(self.max_level, 0, -1):
            if exp >= self._thresholds[level - 1]:
                return level
        return 1

    def get_exp_to_next_level(self, current_level: int, current_exp: int) -> int:
        """
        Exp still needed to reach current_level + 1.

        0 at the max level means "no further threshold", not "ready to level up".
        """
        return max(0, self.get_exp_required(current_level + 1) - current_exp)

    def level_progress(self, exp: int) -> float:
        """Percent (0-100) of the way through the current level's band."""
        level = self.calculate_level(exp)
        next_required = self.find_exp_required(level + 1)
        if next_required is None:
            return 100.0
        floor = self.get_exp_required(level)
        progress = (exp - floor) / (next_required - floor) * 100
        return max(0.0, min(100.0, progress))
