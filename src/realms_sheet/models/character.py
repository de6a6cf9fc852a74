"""Character build data model.

Represents a player's point-buy choices: ability scores, skills and
sub-skills, defense bonuses, archetype proficiency, feats, traits, and the
health/energy allocation. This is the core input to the derived stats
calculator. The invoking application owns the record; the engine only reads
it and returns updated copies.
"""

from dataclasses import dataclass, field

from realms_sheet.models.catalog import BaseSkillRef
from realms_sheet.models.constants import ARCHETYPE_POWER, Ability, Defense


def _zero_abilities() -> dict[int, int]:
    return {ab: 0 for ab in Ability}


def _zero_defenses() -> dict[int, int]:
    return {d: 0 for d in Defense}


@dataclass(slots=True)
class SkillEntry:
    """One skill or sub-skill on the sheet.

    A sub-skill carries a reference to the base skill it hangs off
    (SpecificBase) or AnyBase when any proficient base skill qualifies. It
    can only be proficient while that parent is proficient.
    """
    skill_id: int
    name: str
    abilities: tuple[int, ...] = ()      # linked abilities (highest one is used)
    proficient: bool = False
    value: int = 0
    base: BaseSkillRef | None = None     # parent reference; None for a base skill
    free_proficiency: bool = False       # granted by species; costs nothing

    @property
    def is_sub_skill(self) -> bool:
        return self.base is not None


@dataclass(slots=True)
class ArchetypeState:
    """Archetype type and the power/martial proficiency split."""
    type: str = ARCHETYPE_POWER
    power_proficiency: int = 0
    martial_proficiency: int = 0
    power_ability: int | None = None
    martial_ability: int | None = None
    # Mixed archetypes pick "innate" or "feat" at milestone levels (4, 7, 10...)
    milestone_choices: dict[int, str] = field(default_factory=dict)

    @property
    def total_proficiency(self) -> int:
        return self.power_proficiency + self.martial_proficiency


@dataclass(slots=True)
class FeatEntry:
    """A feat or trait held by the character, with optional use tracking."""
    name: str
    feat_id: int | None = None
    category: str = "character"          # archetype | character | state
    max_uses: int | None = None
    current_uses: int | None = None
    recovery_period: str | None = None   # "full", "partial", or None


@dataclass(slots=True)
class ResourcePools:
    """Health/energy allocation and current values.

    health_points + energy_points split the level-derived health-energy
    pool. A current value of None means the pool is at its maximum.
    """
    health_points: int = 0
    energy_points: int = 0
    current_health: int | None = None
    current_energy: int | None = None


@dataclass
class CharacterBuild:
    """A Realms character build.

    Ability and defense references use the Ability/Defense IntEnums so every
    calculator agrees on the keys.
    """

    # Identity
    name: str = "Adventurer"
    level: int = 1
    experience: int = 0

    # Abilities: Ability -> score in [-2, max_ability(level)]
    abilities: dict[int, int] = field(default_factory=_zero_abilities)

    # Skills and sub-skills, in sheet order
    skills: list[SkillEntry] = field(default_factory=list)

    # Defense bonuses bought with skill points: Defense -> bonus >= 0
    defense_skills: dict[int, int] = field(default_factory=_zero_defenses)

    archetype: ArchetypeState = field(default_factory=ArchetypeState)

    feats: list[FeatEntry] = field(default_factory=list)
    traits: list[FeatEntry] = field(default_factory=list)

    resources: ResourcePools = field(default_factory=ResourcePools)

    # Per-character overrides of the core-rules combat bases
    speed_base: int | None = None
    evasion_base: int | None = None

    def ability(self, ability: int) -> int:
        return int(self.abilities.get(ability, 0))

    def skill_by_id(self, skill_id: int) -> SkillEntry | None:
        for entry in self.skills:
            if entry.skill_id == skill_id:
                return entry
        return None
