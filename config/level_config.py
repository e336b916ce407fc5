"""
Loads config/levels.yaml into a LevelEngine and ExpRules pair.

Usage:
    engine, rules = load_level_config(settings.level_config_path)
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Any

import yaml

from models.events import LevelReward
from models.state import LevelTier
from strategy.exp_rules import DAILY_EXP_LIMIT, DEFAULT_EXP, DEFAULT_TIERS, ExpRules
from strategy.level_engine import BASE_EXP, EXP_MULTIPLIER, MAX_LEVEL, LevelEngine, build_thresholds

log = logging.getLogger(__name__)

DEFAULT_LEVEL_CONFIG_PATH = Path(__file__).with_name("levels.yaml")


def load_level_config(path: str | Path = DEFAULT_LEVEL_CONFIG_PATH) -> tuple[LevelEngine, ExpRules]:
    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    engine, rules = parse_level_config(raw)
    log.info(
        "Level config loaded from %s (max_level=%d daily_exp_limit=%d)",
        path, engine.max_level, rules.daily_exp_limit,
    )
    return engine, rules


def parse_level_config(raw: dict[str, Any]) -> tuple[LevelEngine, ExpRules]:
    return LevelEngine(_thresholds(raw)), _rules(raw)


def _thresholds(raw: dict[str, Any]) -> list[int]:
    explicit = raw.get("thresholds")
    if explicit:
        return [int(t) for t in explicit]
    formula = raw.get("level_formula") or {}
    return build_thresholds(
        base_exp=int(formula.get("base_exp", BASE_EXP)),
        multiplier=float(formula.get("multiplier", EXP_MULTIPLIER)),
        max_level=int(formula.get("max_level", MAX_LEVEL)),
    )


def _rules(raw: dict[str, Any]) -> ExpRules:
    exp_values = {
        str(action): {str(reason): int(exp) for reason, exp in (reasons or {}).items()}
        for action, reasons in (raw.get("exp_values") or {}).items()
    }
    cooldowns = {str(action): int(ms) for action, ms in (raw.get("cooldowns_ms") or {}).items()}

    rewards = {}
    for level, spec in (raw.get("level_rewards") or {}).items():
        rewards[int(level)] = LevelReward(
            level=int(level),
            type=spec.get("type", "badge"),
            name=spec["name"],
            description=spec.get("description", ""),
        )

    tiers = tuple(
        LevelTier(
            name=t["name"],
            title=t.get("title", t["name"]),
            min_level=int(t["min_level"]),
            max_level=int(t["max_level"]),
            color=t.get("color", ""),
        )
        for t in (raw.get("tiers") or [])
    ) or DEFAULT_TIERS

    return ExpRules(
        exp_values=exp_values,
        cooldowns_ms=cooldowns,
        daily_exp_limit=int(raw.get("daily_exp_limit", DAILY_EXP_LIMIT)),
        default_exp=int(raw.get("default_exp", DEFAULT_EXP)),
        level_rewards=rewards,
        tiers=tiers,
    )
