"""Skill and sub-skill point-buy.

Every operation takes the current skill list and returns a SkillChange with
a fresh list; entries are copied, never mutated in place. Skill points are a
soft budget, so increases are never clamped. The one hard constraint is the
parent rule: a sub-skill may only be proficient while its parent base skill
(or, for AnyBase sub-skills, some base skill) is proficient.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace

from realms_sheet.models.catalog import AnyBase, SpecificBase
from realms_sheet.models.character import SkillEntry

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SkillChange:
    """Result of a skill operation. `skills` is the list to keep."""
    applied: bool
    skills: list[SkillEntry] = field(default_factory=list)
    reason: str | None = None


def _copy(skills: Sequence[SkillEntry]) -> list[SkillEntry]:
    return [replace(s) for s in skills]


def _index_of(skills: Sequence[SkillEntry], skill_id: int) -> int:
    for i, entry in enumerate(skills):
        if entry.skill_id == skill_id:
            return i
    raise ValueError(f"Unknown skill id: {skill_id}")


def _rejected(skills: Sequence[SkillEntry], reason: str) -> SkillChange:
    logger.debug("skill change rejected: %s", reason)
    return SkillChange(applied=False, skills=_copy(skills), reason=reason)


def parent_is_proficient(skills: Sequence[SkillEntry], entry: SkillEntry) -> bool:
    """True when *entry* is a base skill or its parent requirement is met."""
    base = entry.base
    if base is None:
        return True
    if isinstance(base, SpecificBase):
        return any(
            s.skill_id == base.skill_id and s.proficient and not s.is_sub_skill
            for s in skills
        )
    if isinstance(base, AnyBase):
        return any(s.proficient and not s.is_sub_skill for s in skills)
    return False


def _cascade_orphans(skills: list[SkillEntry]) -> None:
    """Clear every sub-skill whose parent is no longer proficient."""
    for entry in skills:
        if entry.is_sub_skill and entry.proficient and not parent_is_proficient(skills, entry):
            logger.debug("clearing sub-skill %s: parent not proficient", entry.name)
            entry.proficient = False
            entry.value = 0


def _drop_base_proficiency(skills: list[SkillEntry], idx: int) -> None:
    entry = skills[idx]
    entry.proficient = False
    entry.value = 0
    _cascade_orphans(skills)


def toggle_base_proficiency(skills: Sequence[SkillEntry], skill_id: int) -> SkillChange:
    """Flip proficiency on a base skill.

    On: proficient at value 0. Off: value and proficiency cleared together,
    and dependent sub-skills lose proficiency as well.
    """
    out = _copy(skills)
    idx = _index_of(out, skill_id)
    entry = out[idx]
    if entry.is_sub_skill:
        return _rejected(skills, f"{entry.name} is a sub-skill")
    if entry.proficient:
        if entry.free_proficiency:
            return _rejected(skills, f"{entry.name} proficiency is granted for free")
        _drop_base_proficiency(out, idx)
    else:
        entry.proficient = True
        entry.value = 0
    return SkillChange(applied=True, skills=out)


def increase_skill(skills: Sequence[SkillEntry], skill_id: int) -> SkillChange:
    out = _copy(skills)
    entry = out[_index_of(out, skill_id)]
    if entry.proficient:
        entry.value += 1
        return SkillChange(applied=True, skills=out)

    if entry.is_sub_skill:
        if not parent_is_proficient(out, entry):
            return _rejected(skills, f"{entry.name} requires a proficient base skill")
        entry.proficient = True
        entry.value = 1
        return SkillChange(applied=True, skills=out)

    # First click on a base skill buys proficiency only.
    entry.proficient = True
    entry.value = 0
    return SkillChange(applied=True, skills=out)


def decrease_skill(skills: Sequence[SkillEntry], skill_id: int) -> SkillChange:
    out = _copy(skills)
    idx = _index_of(out, skill_id)
    entry = out[idx]

    if entry.is_sub_skill:
        if entry.proficient and entry.value <= 1:
            entry.proficient = False
            entry.value = 0
        else:
            entry.value = max(0, entry.value - 1)
        return SkillChange(applied=True, skills=out)

    if entry.value > 0:
        entry.value -= 1
        return SkillChange(applied=True, skills=out)

    if entry.proficient:
        if entry.free_proficiency:
            return _rejected(skills, f"{entry.name} proficiency is granted for free")
        _drop_base_proficiency(out, idx)
        return SkillChange(applied=True, skills=out)

    return SkillChange(applied=True, skills=out)


def skill_points_spent(skills: Sequence[SkillEntry], proficiency_cost: int = 1) -> int:
    """Sum of values plus one point per paid base-skill proficiency."""
    total = 0
    for entry in skills:
        total += entry.value
        if entry.proficient and not entry.is_sub_skill and not entry.free_proficiency:
            total += proficiency_cost
    return total


def linked_ability_score(entry: SkillEntry, abilities: Mapping[int, int]) -> int:
    if not entry.abilities:
        return 0
    return max(int(abilities.get(ab, 0)) for ab in entry.abilities)


def skill_bonus(entry: SkillEntry, abilities: Mapping[int, int]) -> int:
    """Roll bonus for a skill.

    Proficient: ability + value. Unproficient: half the ability rounded up,
    or double it when the ability is negative.
    """
    score = linked_ability_score(entry, abilities)
    if entry.proficient:
        return score + entry.value
    if score < 0:
        return score * 2
    return math.ceil(score / 2)


def parent_violations(skills: Sequence[SkillEntry]) -> list[str]:
    """Proficient sub-skills whose parent is not proficient (loaded data)."""
    return [
        f"{s.name} is proficient without a proficient base skill"
        for s in skills
        if s.is_sub_skill and s.proficient and not parent_is_proficient(skills, s)
    ]


def remove_skill(skills: Sequence[SkillEntry], skill_id: int) -> SkillChange:
    """Drop a skill from the sheet; sub-skills left without a parent lose proficiency."""
    out = _copy(skills)
    entry = out.pop(_index_of(out, skill_id))
    if entry.free_proficiency:
        return _rejected(skills, f"{entry.name} proficiency is granted for free")
    _cascade_orphans(out)
    return SkillChange(applied=True, skills=out)
