"""Creature (NPC) build data model.

Parallel to CharacterBuild but priced in training points: each equipped
armament, power, or technique is a bundle of part/property selections, and
the parts come from their own codex tables. Every list here is a field of
the caller-owned build.
"""

from dataclasses import dataclass, field

from realms_sheet.models.character import ArchetypeState, SkillEntry
from realms_sheet.models.constants import Ability, Defense


@dataclass(slots=True)
class PartDefinition:
    """A power part, technique part, or item property from the codex.

    option_tp holds the per-level training-point rate for up to three
    options.
    """
    part_id: int
    name: str
    base_tp: float = 0.0
    option_tp: tuple[float, float, float] = (0.0, 0.0, 0.0)


@dataclass(slots=True)
class PartSelection:
    """A part chosen on an item, with the level taken in each option."""
    name: str
    part_id: int | None = None
    option_levels: tuple[int, int, int] = (0, 0, 0)


@dataclass(slots=True)
class CreatureItem:
    """An equipped armament, power, or technique."""
    name: str
    kind: str                                       # armament | power | technique
    parts: list[PartSelection] = field(default_factory=list)
    damage_types: list[str] = field(default_factory=list)


@dataclass(slots=True)
class CreatureFeat:
    """A creature feat and the feat points it costs."""
    name: str
    points: float = 1.0
    feat_id: int | None = None


@dataclass
class CreatureBuild:
    """A creature-creator build. Level may be fractional below 1."""

    name: str = "Creature"
    level: float = 1
    size: str = "medium"

    abilities: dict[int, int] = field(default_factory=lambda: {ab: 0 for ab in Ability})
    skills: list[SkillEntry] = field(default_factory=list)
    defense_skills: dict[int, int] = field(default_factory=lambda: {d: 0 for d in Defense})
    archetype: ArchetypeState = field(default_factory=ArchetypeState)

    items: list[CreatureItem] = field(default_factory=list)
    feats: list[CreatureFeat] = field(default_factory=list)

    resistances: list[str] = field(default_factory=list)
    weaknesses: list[str] = field(default_factory=list)
    immunities: list[str] = field(default_factory=list)
    condition_immunities: list[str] = field(default_factory=list)

    health_points: int = 0
    energy_points: int = 0

    def highest_non_vitality(self) -> int:
        """Highest ability score other than Vitality, floored at 0.

        Drives the TP total and the minimum energy.
        """
        values = [
            int(v) for ab, v in self.abilities.items() if ab != Ability.VITALITY
        ]
        return max([0, *values])
