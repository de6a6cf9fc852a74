"""Defense bonuses bought with skill points."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from realms_sheet.engine.build_config import BuildConfig
from realms_sheet.models.constants import DEFENSE_ABILITY, DEFENSE_NAMES
from realms_sheet.models.core_rules import CoreRules

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DefenseChange:
    applied: bool
    defense_skills: dict[int, int] = field(default_factory=dict)
    points: int = 0                 # skill points spent (+) or refunded (-)
    reason: str | None = None


def max_defense_skill(level: int) -> int:
    return max(0, int(level))


def increase_defense(
    defense_skills: Mapping[int, int],
    defense: int,
    level: int,
    config: BuildConfig | None = None,
) -> DefenseChange:
    cfg = config or BuildConfig()
    out = dict(defense_skills)
    current = int(out.get(defense, 0))
    cap = max_defense_skill(level)
    if current >= cap:
        name = DEFENSE_NAMES.get(int(defense), str(defense))
        logger.debug("increase %s rejected: at cap %d", name, cap)
        return DefenseChange(
            applied=False,
            defense_skills=dict(defense_skills),
            reason=f"Maximum {name} bonus at level {level} is {cap}",
        )
    out[defense] = current + 1
    return DefenseChange(applied=True, defense_skills=out, points=cfg.defense_increase_cost)


def decrease_defense(
    defense_skills: Mapping[int, int],
    defense: int,
    config: BuildConfig | None = None,
) -> DefenseChange:
    cfg = config or BuildConfig()
    out = dict(defense_skills)
    current = int(out.get(defense, 0))
    if current <= 0:
        out[defense] = 0
        return DefenseChange(applied=True, defense_skills=out, points=0)
    out[defense] = current - 1
    return DefenseChange(applied=True, defense_skills=out, points=-cfg.defense_increase_cost)


def defense_points_spent(
    defense_skills: Mapping[int, int],
    config: BuildConfig | None = None,
) -> int:
    cfg = config or BuildConfig()
    return cfg.defense_increase_cost * sum(max(0, int(v)) for v in defense_skills.values())


def defense_score(
    defense: int,
    abilities: Mapping[int, int],
    defense_skills: Mapping[int, int],
    rules: CoreRules | None = None,
) -> int:
    """Base defense + linked ability + bought bonus."""
    base = rules.get_int("base_defense", 10) if rules is not None else 10
    ability = int(abilities.get(DEFENSE_ABILITY[defense], 0))
    return base + ability + int(defense_skills.get(defense, 0))


def defense_violations(defense_skills: Mapping[int, int], level: int) -> list[str]:
    cap = max_defense_skill(level)
    problems = []
    for d, value in sorted(defense_skills.items()):
        name = DEFENSE_NAMES.get(int(d), str(d))
        if value < 0:
            problems.append(f"{name} bonus {value} is negative")
        elif value > cap:
            problems.append(f"{name} bonus {value} exceeds the level {level} maximum of {cap}")
    return problems
