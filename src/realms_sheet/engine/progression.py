"""Level-derived budgets for player characters.

Each budget is a plain function of level (and, for training points, the
highest archetype ability). PlayerProgression bundles them for one level,
and level_difference() reports what a level-up grants.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import asdict, dataclass

from realms_sheet.engine.proficiency import archetype_progression, proficiency_total
from realms_sheet.models.core_rules import CoreRules


def _rules(rules: CoreRules | None) -> CoreRules:
    return rules if rules is not None else CoreRules.defaults()


def ability_points(level: float, rules: CoreRules | None = None, allow_sub_level: bool = False) -> int:
    """7 at levels 1-3, +1 at levels 4, 7, 10..."""
    r = _rules(rules)
    base = r.get_int("base_ability_points", 7)
    if allow_sub_level and level < 1:
        return math.ceil(base * level)
    if level < 1:
        return 0
    if level < 3:
        return base
    per_3 = r.get_int("ability_points_per_3_levels", 1)
    return base + per_3 * int((level - 1) // 3)


def skill_points(level: float, rules: CoreRules | None = None) -> int:
    per_level = _rules(rules).get_int("skill_points_per_level", 3)
    return per_level * int(level)


def health_energy_pool(level: float, rules: CoreRules | None = None) -> int:
    """18 at level 1, +12 per level after."""
    r = _rules(rules)
    base = r.get_int("player_base_hit_energy", 18)
    per_level = r.get_int("hit_energy_per_level", 12)
    return int(base + per_level * (level - 1))


def training_points(level: int, highest_archetype_ability: int = 0, rules: CoreRules | None = None) -> int:
    """22 + a at level 1, then 2 + a per level."""
    r = _rules(rules)
    a = highest_archetype_ability or 0
    base = r.get_int("player_base_training_points", 22)
    per_level = r.get_int("player_tp_per_level", 2) + a
    return base + a + per_level * (level - 1)


def max_archetype_feats(level: float) -> int:
    return max(0, int(level))


def max_character_feats(level: float) -> int:
    return max(0, int(level))


@dataclass(frozen=True, slots=True)
class BudgetLine:
    """Total, spent, and remaining for one soft budget."""
    name: str
    total: float
    spent: float

    @property
    def remaining(self) -> float:
        return self.total - self.spent

    @property
    def over_budget(self) -> bool:
        return self.remaining < 0


@dataclass(frozen=True, slots=True)
class PlayerProgression:
    level: int
    health_energy_points: int
    ability_points: int
    skill_points: int
    training_points: int
    proficiency_points: int
    max_archetype_feats: int
    max_character_feats: int
    archetype_kind: str
    innate_threshold: int
    innate_pools: int
    innate_energy: int
    armament_proficiency: int


def player_progression(
    level: int,
    highest_archetype_ability: int = 0,
    martial: int = 0,
    power: int = 0,
    choices: Mapping[int, str] | None = None,
    rules: CoreRules | None = None,
) -> PlayerProgression:
    arch = archetype_progression(level, martial, power, choices)
    return PlayerProgression(
        level=level,
        health_energy_points=health_energy_pool(level, rules),
        ability_points=ability_points(level, rules),
        skill_points=skill_points(level, rules),
        training_points=training_points(level, highest_archetype_ability, rules),
        proficiency_points=proficiency_total(level, rules),
        max_archetype_feats=max_archetype_feats(level) + arch.bonus_archetype_feats,
        max_character_feats=max_character_feats(level),
        archetype_kind=arch.kind,
        innate_threshold=arch.innate_threshold,
        innate_pools=arch.innate_pools,
        innate_energy=arch.innate_energy,
        armament_proficiency=arch.armament_proficiency,
    )


def level_difference(
    from_level: int,
    to_level: int,
    highest_archetype_ability: int = 0,
    martial: int = 0,
    power: int = 0,
    choices: Mapping[int, str] | None = None,
    rules: CoreRules | None = None,
) -> dict[str, int]:
    """Per-budget gain going from *from_level* to *to_level*."""
    before = asdict(player_progression(from_level, highest_archetype_ability, martial, power, choices, rules))
    after = asdict(player_progression(to_level, highest_archetype_ability, martial, power, choices, rules))
    return {
        key: after[key] - before[key]
        for key, value in after.items()
        if key not in ("level", "archetype_kind") and isinstance(value, int)
    }
