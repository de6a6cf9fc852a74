"""Archetype proficiency totals, redistribution, and level progression.

Proficiency is a single level-gated pool split between the power and
martial tracks. The archetype type decides how the pool is split; the
split drives attack bonuses, power potency, armament proficiency, and the
innate-energy progression.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, replace

from realms_sheet.models.character import ArchetypeState
from realms_sheet.models.constants import (
    ARCHETYPE_MARTIAL,
    ARCHETYPE_POWER,
    ARCHETYPE_TYPES,
)
from realms_sheet.models.core_rules import CoreRules

logger = logging.getLogger(__name__)

KIND_POWER = "power"
KIND_MARTIAL = "martial"
KIND_MIXED = "mixed"
KIND_NONE = "none"

MILESTONE_INNATE = "innate"
MILESTONE_FEAT = "feat"

_FIRST_MILESTONE = 4
_MILESTONE_STEP = 3


def proficiency_total(level: float, rules: CoreRules | None = None) -> int:
    """2 + 1 per 5 full levels."""
    base = rules.get_int("base_proficiency", 2) if rules is not None else 2
    per_5 = rules.get_int("proficiency_per_5_levels", 1) if rules is not None else 1
    return base + per_5 * int(level // 5)


def redistribute_proficiency(
    archetype: ArchetypeState,
    new_type: str,
    level: int,
    keep_unused_ability: bool = False,
    rules: CoreRules | None = None,
) -> ArchetypeState:
    """Return a copy of *archetype* switched to *new_type*.

    The effective total (current split capped at the level total) is moved
    wholesale for single-track types and halved for powered-martial, with
    the odd point going to martial.
    """
    if new_type not in ARCHETYPE_TYPES:
        raise ValueError(f"Unknown archetype type: {new_type!r}")

    total = min(archetype.total_proficiency, proficiency_total(level, rules))
    total = max(0, total)
    updated = replace(archetype, type=new_type, milestone_choices=dict(archetype.milestone_choices))

    if new_type == ARCHETYPE_POWER:
        updated.power_proficiency, updated.martial_proficiency = total, 0
        if not keep_unused_ability:
            updated.martial_ability = None
    elif new_type == ARCHETYPE_MARTIAL:
        updated.power_proficiency, updated.martial_proficiency = 0, total
        if not keep_unused_ability:
            updated.power_ability = None
    else:
        half = total // 2
        updated.martial_proficiency = half + total % 2
        updated.power_proficiency = half

    logger.debug(
        "archetype %s -> %s: power=%d martial=%d",
        archetype.type, new_type, updated.power_proficiency, updated.martial_proficiency,
    )
    return updated


def proficiency_remaining(
    archetype: ArchetypeState,
    level: int,
    rules: CoreRules | None = None,
) -> int:
    return proficiency_total(level, rules) - archetype.total_proficiency


def archetype_kind(martial: int, power: int) -> str:
    if martial > 0 and power > 0:
        return KIND_MIXED
    if power > 0:
        return KIND_POWER
    if martial > 0:
        return KIND_MARTIAL
    return KIND_NONE


def armament_proficiency(martial: int) -> int:
    """Armament proficiency granted by martial proficiency: 3, 8, 12, then +3."""
    if martial <= 0:
        return 3
    if martial == 1:
        return 8
    if martial == 2:
        return 12
    return 12 + 3 * (martial - 2)


def milestone_levels(level: int) -> list[int]:
    """Milestone levels reached so far: 4, 7, 10..."""
    return list(range(_FIRST_MILESTONE, int(level) + 1, _MILESTONE_STEP))


def _milestones_reached(level: int) -> int:
    return len(milestone_levels(level))


def innate_threshold(level: int) -> int:
    return 8 + _milestones_reached(level)


def innate_pools(level: int) -> int:
    return 2 + _milestones_reached(level)


def bonus_archetype_feats(level: int) -> int:
    return 2 + _milestones_reached(level)


@dataclass(frozen=True, slots=True)
class ArchetypeProgression:
    """What the archetype grants at a level."""
    kind: str
    innate_threshold: int
    innate_pools: int
    innate_energy: int
    bonus_archetype_feats: int
    armament_proficiency: int


def archetype_progression(
    level: int,
    martial: int,
    power: int,
    choices: Mapping[int, str] | None = None,
) -> ArchetypeProgression:
    """Innate energy and bonus feats for an archetype at *level*.

    Power archetypes gain innate threshold and pools at each milestone;
    martial archetypes gain bonus feats. Mixed archetypes start smaller and
    pick "innate" (+1 threshold, +1 pool) or "feat" (+1 feat) at each
    milestone; a milestone without a choice grants nothing.
    """
    kind = archetype_kind(martial, power)
    armament = armament_proficiency(martial)

    if kind == KIND_POWER:
        threshold, pools, feats = innate_threshold(level), innate_pools(level), 0
    elif kind == KIND_MARTIAL:
        threshold, pools, feats = 0, 0, bonus_archetype_feats(level)
    elif kind == KIND_MIXED:
        threshold, pools, feats = 6, 1, 1
        picks = choices or {}
        for milestone in milestone_levels(level):
            choice = picks.get(milestone)
            if choice == MILESTONE_INNATE:
                threshold += 1
                pools += 1
            elif choice == MILESTONE_FEAT:
                feats += 1
    else:
        threshold, pools, feats = 0, 0, 0

    return ArchetypeProgression(
        kind=kind,
        innate_threshold=threshold,
        innate_pools=pools,
        innate_energy=threshold * pools,
        bonus_archetype_feats=feats,
        armament_proficiency=armament,
    )


def archetype_violations(archetype: ArchetypeState) -> list[str]:
    """Structural problems with a loaded archetype (not budget overspend)."""
    problems = []
    if archetype.type not in ARCHETYPE_TYPES:
        problems.append(f"Unknown archetype type {archetype.type!r}")
    if archetype.power_proficiency < 0 or archetype.martial_proficiency < 0:
        problems.append("Proficiency cannot be negative")
    if archetype.type == ARCHETYPE_POWER and archetype.martial_proficiency:
        problems.append("Power archetype has martial proficiency")
    if archetype.type == ARCHETYPE_MARTIAL and archetype.power_proficiency:
        problems.append("Martial archetype has power proficiency")
    return problems

