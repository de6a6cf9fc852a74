"""Training-point pricing and level budgets for creature builds.

Every equipped armament, power, and technique charges training points for
the parts it selects. A part taken on several items of the same kind is
charged once, at the highest level taken in each option. Damage parts are
the exception: the item's damage types become part of the key, so "Weapon
Damage" typed fire and "Weapon Damage" typed cold are charged separately.
On armaments only "Weapon Damage" itself splits this way; on powers and
techniques any part with "damage" in its name does.

Feat points cover bought creature feats plus the mechanical ones implied by
the resistance, immunity, weakness and condition-immunity lists.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from realms_sheet.engine.abilities import ability_points_spent
from realms_sheet.engine.build_config import BuildConfig
from realms_sheet.engine.defenses import defense_points_spent
from realms_sheet.engine.progression import BudgetLine, ability_points
from realms_sheet.engine.skills import skill_points_spent
from realms_sheet.models.constants import (
    CREATURE_FEAT_CONDITION_IMMUNITY,
    CREATURE_FEAT_IMMUNITY,
    CREATURE_FEAT_RESISTANCE,
    CREATURE_FEAT_WEAKNESS,
    ITEM_ARMAMENT,
    ITEM_POWER,
    ITEM_TECHNIQUE,
)
from realms_sheet.models.core_rules import CoreRules
from realms_sheet.models.creature import CreatureBuild, CreatureItem, PartDefinition

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TPEntry:
    """One de-duplicated part charge."""
    key: tuple[str, str, str]         # (item kind, part name, damage types)
    name: str
    kind: str
    damage_types: str
    option_levels: tuple[int, int, int]
    tp: int


class PartLookup:
    """Part definitions addressable by id or case-insensitive name."""

    __slots__ = ("_by_id", "_by_name")

    def __init__(self, parts: Iterable[PartDefinition]) -> None:
        self._by_id: dict[int, PartDefinition] = {}
        self._by_name: dict[str, PartDefinition] = {}
        for part in parts:
            self._by_id[part.part_id] = part
            self._by_name.setdefault(part.name.strip().lower(), part)

    def find(self, part_id: int | None, name: str) -> PartDefinition | None:
        if part_id is not None and part_id in self._by_id:
            return self._by_id[part_id]
        return self._by_name.get((name or "").strip().lower())


def part_tp(definition: PartDefinition, option_levels: Sequence[int], kind: str = ITEM_POWER) -> int:
    """Training points for one part selection.

    Powers and techniques pay floor(base + sum(rate * level)). Armament
    properties pay floor(base) + floor(rate * level) for the first option
    only.
    """
    levels = _pad(option_levels)
    rates = definition.option_tp
    if kind == ITEM_ARMAMENT:
        option = math.floor(rates[0] * levels[0]) if levels[0] > 0 else 0
        return math.floor(definition.base_tp) + option
    first = rates[0] * levels[0]
    if kind == ITEM_TECHNIQUE and definition.name.strip().lower() == "additional damage":
        first = math.floor(first)
    return math.floor(definition.base_tp + first + rates[1] * levels[1] + rates[2] * levels[2])


def _damage_suffix(part_name: str, item: CreatureItem) -> str:
    name = part_name.strip().lower()
    if item.kind == ITEM_ARMAMENT:
        if name != "weapon damage":
            return ""
    elif "damage" not in name:
        return ""
    types = [t for t in item.damage_types if t and t.strip().lower() != "none"]
    return ", ".join(types)


def _pad(levels: Sequence[int]) -> tuple[int, int, int]:
    padded = [int(v or 0) for v in list(levels)[:3]]
    padded += [0] * (3 - len(padded))
    return padded[0], padded[1], padded[2]


def deduplicated_parts(items: Sequence[CreatureItem], parts: PartLookup) -> list[TPEntry]:
    """Merge repeated part selections, keeping the highest option levels."""
    merged: dict[tuple[str, str, str], tuple[PartDefinition, str, str, tuple[int, int, int]]] = {}
    for item in items:
        for selection in item.parts:
            definition = parts.find(selection.part_id, selection.name)
            if definition is None:
                logger.debug("part %r on %s not in catalog; skipped", selection.name, item.name)
                continue
            levels = _pad(selection.option_levels)
            if part_tp(definition, levels, item.kind) <= 0:
                continue
            damage = _damage_suffix(definition.name, item)
            key = (item.kind, definition.name.lower(), damage)
            if key in merged:
                held = merged[key][3]
                levels = (max(held[0], levels[0]), max(held[1], levels[1]), max(held[2], levels[2]))
            merged[key] = (definition, item.kind, damage, levels)

    return [
        TPEntry(
            key=key,
            name=definition.name,
            kind=kind,
            damage_types=damage,
            option_levels=levels,
            tp=part_tp(definition, levels, kind),
        )
        for key, (definition, kind, damage, levels) in merged.items()
    ]


def training_points_spent(items: Sequence[CreatureItem], parts: PartLookup) -> int:
    return sum(entry.tp for entry in deduplicated_parts(items, parts))


def creature_training_points(
    level: float,
    highest_non_vitality: int = 0,
    rules: CoreRules | None = None,
) -> float:
    """9 + a + (level - 1) * (1 + a); below level 1, ceil(22 * level) + a.

    Fractional levels above 1 keep their fractional share.
    """
    r = rules if rules is not None else CoreRules.defaults()
    a = highest_non_vitality or 0
    if level < 1:
        return math.ceil(r.get_int("creature_sub_level_training_points", 22) * level) + a
    base = r.get_int("creature_base_training_points", 9)
    per_level = r.get_int("creature_tp_per_level", 1) + a
    return base + a + (level - 1) * per_level


def training_points_remaining(build: CreatureBuild, parts: PartLookup, rules: CoreRules | None = None) -> float:
    total = creature_training_points(build.level, build.highest_non_vitality(), rules)
    return total - training_points_spent(build.items, parts)


def creature_ability_points(level: float, rules: CoreRules | None = None) -> int:
    return ability_points(level, rules, allow_sub_level=True)


def creature_skill_points(level: float, rules: CoreRules | None = None) -> int:
    r = rules if rules is not None else CoreRules.defaults()
    base = r.get_int("creature_base_skill_points", 5)
    if level < 1:
        return math.ceil(base * level)
    return base + r.get_int("creature_skill_points_per_level", 3) * (math.floor(level) - 1)


def creature_health_energy_pool(level: float, rules: CoreRules | None = None) -> float:
    r = rules if rules is not None else CoreRules.defaults()
    base = r.get_int("creature_base_hit_energy", 26)
    if level < 1:
        return math.ceil(base * level)
    return base + r.get_int("hit_energy_per_level", 12) * (level - 1)


def creature_proficiency(level: float, rules: CoreRules | None = None) -> int:
    r = rules if rules is not None else CoreRules.defaults()
    base = r.get_int("base_proficiency", 2)
    if level < 1:
        return math.ceil(base * level)
    return base + r.get_int("proficiency_per_5_levels", 1) * int(level // 5)


def creature_feat_points(level: float, martial_proficiency: int = 0, rules: CoreRules | None = None) -> float:
    """1.5 + martial at level 1, +1 per level after; below 1, ceil((1.5 + martial) * level)."""
    r = rules if rules is not None else CoreRules.defaults()
    at_first = r.get_float("creature_base_feat_points", 1.5) + martial_proficiency
    if level < 1:
        return math.ceil(at_first * level)
    return at_first + (level - 1)


# Feat points charged per entry in each defensive list, keyed by the codex
# feat id that can override the default.
MECHANICAL_FEATS: dict[str, tuple[int, float]] = {
    "resistances": (CREATURE_FEAT_RESISTANCE, 1.0),
    "immunities": (CREATURE_FEAT_IMMUNITY, 2.0),
    "weaknesses": (CREATURE_FEAT_WEAKNESS, -1.0),
    "condition_immunities": (CREATURE_FEAT_CONDITION_IMMUNITY, 1.0),
}


def mechanical_feat_points(build: CreatureBuild, feat_points: Mapping[int, float] | None = None) -> float:
    """Feat points implied by resistances, immunities, weaknesses, and condition immunities."""
    costs = feat_points or {}
    total = 0.0
    for attr, (feat_id, default) in MECHANICAL_FEATS.items():
        total += len(getattr(build, attr)) * costs.get(feat_id, default)
    return total


def feat_points_spent(build: CreatureBuild, feat_points: Mapping[int, float] | None = None) -> float:
    return sum(f.points for f in build.feats) + mechanical_feat_points(build, feat_points)


def creature_currency(level: float, rules: CoreRules | None = None) -> int:
    r = rules if rules is not None else CoreRules.defaults()
    base = r.get_float("creature_base_currency", 200)
    growth = r.get_float("creature_currency_growth", 1.45)
    return round(base * growth ** (level - 1))


def creature_budget(
    build: CreatureBuild,
    parts: PartLookup,
    rules: CoreRules | None = None,
    config: BuildConfig | None = None,
    feat_points: Mapping[int, float] | None = None,
) -> dict[str, BudgetLine]:
    """Every soft budget of a creature build, keyed by name.

    *feat_points* maps creature feat ids to their codex cost and overrides
    the default price of the mechanical feats.
    """
    level = build.level
    arch = build.archetype
    skill_spent = skill_points_spent(build.skills) + defense_points_spent(build.defense_skills, config)
    lines = [
        BudgetLine("ability_points", creature_ability_points(level, rules),
                   ability_points_spent(build.abilities, config)),
        BudgetLine("skill_points", creature_skill_points(level, rules), skill_spent),
        BudgetLine("health_energy", creature_health_energy_pool(level, rules),
                   build.health_points + build.energy_points),
        BudgetLine("proficiency", creature_proficiency(level, rules), arch.total_proficiency),
        BudgetLine("feat_points", creature_feat_points(level, arch.martial_proficiency, rules),
                   feat_points_spent(build, feat_points)),
        BudgetLine("training_points",
                   creature_training_points(level, build.highest_non_vitality(), rules),
                   training_points_spent(build.items, parts)),
        BudgetLine("currency", creature_currency(level, rules), 0),
    ]
    return {line.name: line for line in lines}
