"""Feat ledger: leveled feats, slot counts, limited uses, requirements.

A feat whose name ends in a roman numeral I-X is a level of a base feat
("Action Surge III" is level 3 of "Action Surge"). Taking level N replaces
level N-1 on the sheet. Slot counts and missing prerequisites are reported,
never enforced.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field, replace

from realms_sheet.engine.skills import skill_bonus
from realms_sheet.models.catalog import Catalog, FeatDefinition
from realms_sheet.models.character import CharacterBuild, FeatEntry
from realms_sheet.models.constants import (
    RECOVERY_FULL,
    RECOVERY_PARTIAL,
    ROMAN_NUMERALS,
    ROMAN_TO_LEVEL,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FeatLevel:
    base_name: str
    level: int
    has_numeral: bool


@dataclass(slots=True)
class FeatChange:
    applied: bool
    feats: list[FeatEntry] = field(default_factory=list)
    replaced: FeatEntry | None = None
    missing_prerequisite: str | None = None
    reason: str | None = None


@dataclass(frozen=True, slots=True)
class SlotUsage:
    used: int
    maximum: int
    remaining: int

    @property
    def over_budget(self) -> bool:
        return self.remaining < 0


def parse_feat_level(name: str) -> FeatLevel:
    text = (name or "").strip()
    head, sep, tail = text.rpartition(" ")
    if sep and head.strip():
        level = ROMAN_TO_LEVEL.get(tail.upper())
        if level is not None:
            return FeatLevel(base_name=head.strip(), level=level, has_numeral=True)
    return FeatLevel(base_name=text, level=1, has_numeral=False)


def feat_name_for_level(base_name: str, level: int) -> str:
    """Level 1 is the bare name; higher levels append the numeral."""
    if level <= 1:
        return base_name
    return f"{base_name} {ROMAN_NUMERALS[level - 1]}"


def prerequisite_feat_name(name: str) -> str | None:
    parsed = parse_feat_level(name)
    if parsed.level <= 1:
        return None
    return feat_name_for_level(parsed.base_name, parsed.level - 1)


def _same_name(a: str, b: str) -> bool:
    return a.strip().lower() == b.strip().lower()


def _find(feats: Sequence[FeatEntry], name: str) -> int | None:
    for i, entry in enumerate(feats):
        if _same_name(entry.name, name):
            return i
    return None


def _held_level_one(feats: Sequence[FeatEntry], base_name: str) -> int | None:
    """Level 1 may be stored as "Name" or "Name I"."""
    idx = _find(feats, base_name)
    if idx is None:
        idx = _find(feats, f"{base_name} I")
    return idx


def add_feat(feats: Sequence[FeatEntry], entry: FeatEntry) -> FeatChange:
    """Add *entry*, replacing the held previous level of a leveled feat."""
    out = [replace(f) for f in feats]
    if _find(out, entry.name) is not None:
        logger.debug("feat %s rejected: already held", entry.name)
        return FeatChange(applied=False, feats=out, reason=f"{entry.name} is already taken")

    parsed = parse_feat_level(entry.name)
    new_entry = replace(entry)
    if new_entry.max_uses is not None and new_entry.current_uses is None:
        new_entry.current_uses = new_entry.max_uses

    if parsed.level <= 1:
        out.append(new_entry)
        return FeatChange(applied=True, feats=out)

    if parsed.level == 2:
        prev_idx = _held_level_one(out, parsed.base_name)
    else:
        prev_idx = _find(out, feat_name_for_level(parsed.base_name, parsed.level - 1))

    if prev_idx is None:
        missing = prerequisite_feat_name(entry.name)
        logger.debug("feat %s added without prerequisite %s", entry.name, missing)
        out.append(new_entry)
        return FeatChange(applied=True, feats=out, missing_prerequisite=missing)

    replaced = out[prev_idx]
    out[prev_idx] = new_entry
    return FeatChange(applied=True, feats=out, replaced=replaced)


def remove_feat(feats: Sequence[FeatEntry], name: str) -> FeatChange:
    out = [replace(f) for f in feats]
    idx = _find(out, name)
    if idx is None:
        return FeatChange(applied=False, feats=out, reason=f"{name} is not taken")
    removed = out.pop(idx)
    return FeatChange(applied=True, feats=out, replaced=removed)


def feat_slot_usage(feats: Sequence[FeatEntry], category: str, maximum: int) -> SlotUsage:
    used = sum(1 for f in feats if f.category == category)
    return SlotUsage(used=used, maximum=maximum, remaining=maximum - used)


def clamp_uses(entry: FeatEntry) -> FeatEntry:
    """Copy of *entry* with current_uses inside [0, max_uses]."""
    out = replace(entry)
    if out.max_uses is None:
        return out
    current = out.max_uses if out.current_uses is None else out.current_uses
    out.current_uses = max(0, min(out.max_uses, current))
    return out


def use_feat(entry: FeatEntry) -> FeatEntry:
    out = clamp_uses(entry)
    if out.max_uses is None:
        return out
    out.current_uses = max(0, out.current_uses - 1)
    return out


def recover_feat_use(entry: FeatEntry) -> FeatEntry:
    out = clamp_uses(entry)
    if out.max_uses is None:
        return out
    out.current_uses = min(out.max_uses, out.current_uses + 1)
    return out


def resets_on(recovery_period: str | None, recovery: str) -> bool:
    """Whether an entry tagged *recovery_period* resets on *recovery*.

    Full recovery resets anything with a period; partial recovery resets only
    partial-tagged entries.
    """
    if not recovery_period:
        return False
    period = recovery_period.lower()
    if recovery == RECOVERY_FULL:
        return True
    if recovery == RECOVERY_PARTIAL:
        return RECOVERY_PARTIAL in period
    raise ValueError(f"Unknown recovery type: {recovery!r}")


def reset_feat_uses(entries: Sequence[FeatEntry], recovery: str) -> tuple[list[FeatEntry], int]:
    """Refill uses on entries that reset on *recovery*.

    Returns the new entries and how many of them actually had uses spent.
    """
    out: list[FeatEntry] = []
    count = 0
    for entry in entries:
        copy = replace(entry)
        if copy.max_uses is not None and resets_on(copy.recovery_period, recovery):
            if copy.current_uses is not None and copy.current_uses < copy.max_uses:
                count += 1
            copy.current_uses = copy.max_uses
        out.append(copy)
    return out, count


def unmet_feat_requirements(
    definition: FeatDefinition,
    build: CharacterBuild,
    catalog: Catalog | None = None,
) -> list[str]:
    """Every requirement of *definition* that *build* does not meet."""
    issues: list[str] = []

    if definition.level_requirement and build.level < definition.level_requirement:
        issues.append(f"Requires level {definition.level_requirement}")

    for req in definition.ability_requirements:
        if req.ability is None:
            issues.append(f"Unknown ability {req.name}")
        elif build.ability(req.ability) < req.value:
            issues.append(f"Requires {req.name} {req.value}")

    for req in definition.skill_requirements:
        entry = None
        if req.skill_id is not None:
            entry = build.skill_by_id(req.skill_id)
        if entry is None:
            entry = next((s for s in build.skills if _same_name(s.name, req.skill_name)), None)
        if entry is None and catalog is not None:
            known = catalog.find_skill(req.skill_id if req.skill_id is not None else req.skill_name)
            if known is None:
                issues.append(f"Unknown skill {req.skill_name}")
                continue
        if entry is None or not entry.proficient:
            issues.append(f"Requires proficiency in {req.skill_name}")
        elif skill_bonus(entry, build.abilities) < req.value:
            issues.append(f"Requires {req.skill_name} +{req.value}")

    arch = build.archetype
    if arch.martial_proficiency < definition.martial_proficiency_requirement:
        issues.append(f"Requires martial proficiency {definition.martial_proficiency_requirement}")
    if arch.power_proficiency < definition.power_proficiency_requirement:
        issues.append(f"Requires power proficiency {definition.power_proficiency_requirement}")

    prerequisite = prerequisite_feat_name(definition.name)
    if prerequisite is not None:
        held = build.feats + build.traits
        parsed = parse_feat_level(definition.name)
        # Holding a higher level also satisfies the chain.
        if not _holds_level_at_least(held, parsed.base_name, parsed.level - 1):
            issues.append(f"Requires {prerequisite}")

    return issues


def _holds_level_at_least(feats: Sequence[FeatEntry], base_name: str, level: int) -> bool:
    for entry in feats:
        parsed = parse_feat_level(entry.name)
        if _same_name(parsed.base_name, base_name) and parsed.level >= level:
            return True
    return False
