"""Feat and skill catalog data model.

Catalog records arrive from the codex store keyed by id in some places and
by name in others. They are normalized once (see parser.catalog_parser)
into these dataclasses; the rest of the engine only ever sees resolved ids.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class AnyBase:
    """A sub-skill that may hang off any proficient base skill."""


@dataclass(frozen=True, slots=True)
class SpecificBase:
    """A sub-skill tied to one particular base skill."""
    skill_id: int


BaseSkillRef = AnyBase | SpecificBase


@dataclass(slots=True)
class SkillDefinition:
    """A skill from the codex."""
    skill_id: int
    name: str
    abilities: tuple[int, ...] = ()
    base: BaseSkillRef | None = None     # None for a base skill
    description: str = ""

    @property
    def is_sub_skill(self) -> bool:
        return self.base is not None


@dataclass(slots=True)
class AbilityRequirement:
    """Requires an ability score at or above a threshold.

    An ability name that could not be resolved is kept with ability=None
    and always counts as unmet.
    """
    ability: int | None
    name: str
    value: int


@dataclass(slots=True)
class SkillBonusRequirement:
    """Requires proficiency in a skill and a skill bonus at or above a value."""
    skill_name: str
    value: int
    skill_id: int | None = None


@dataclass(slots=True)
class FeatDefinition:
    """A feat from the codex with typed requirements."""
    feat_id: int
    name: str
    category: str = "archetype"
    description: str = ""
    level_requirement: int = 0
    ability_requirements: list[AbilityRequirement] = field(default_factory=list)
    skill_requirements: list[SkillBonusRequirement] = field(default_factory=list)
    martial_proficiency_requirement: int = 0
    power_proficiency_requirement: int = 0
    max_uses: int | None = None
    recovery_period: str | None = None


class Catalog:
    """Read-only lookup over feat and skill definitions.

    find_feat()/find_skill() accept either an id or a name (case-insensitive)
    and return None when the entry is missing.
    """

    __slots__ = ("_feats", "_skills", "_feat_names", "_skill_names")

    def __init__(
        self,
        feats: list[FeatDefinition] | None = None,
        skills: list[SkillDefinition] | None = None,
    ) -> None:
        self._feats: dict[int, FeatDefinition] = {f.feat_id: f for f in feats or []}
        self._skills: dict[int, SkillDefinition] = {s.skill_id: s for s in skills or []}
        self._feat_names = {f.name.lower(): f.feat_id for f in self._feats.values()}
        self._skill_names = {s.name.lower(): s.skill_id for s in self._skills.values()}

    @property
    def feats(self) -> list[FeatDefinition]:
        return list(self._feats.values())

    @property
    def skills(self) -> list[SkillDefinition]:
        return list(self._skills.values())

    def find_feat(self, id_or_name: int | str | None) -> FeatDefinition | None:
        feat_id = _resolve(id_or_name, self._feat_names)
        return self._feats.get(feat_id) if feat_id is not None else None

    def find_skill(self, id_or_name: int | str | None) -> SkillDefinition | None:
        skill_id = _resolve(id_or_name, self._skill_names)
        return self._skills.get(skill_id) if skill_id is not None else None

    def base_skills(self) -> list[SkillDefinition]:
        return [s for s in self._skills.values() if not s.is_sub_skill]


def _resolve(id_or_name: int | str | None, names: dict[str, int]) -> int | None:
    if id_or_name is None or isinstance(id_or_name, bool):
        return None
    if isinstance(id_or_name, int):
        return id_or_name
    text = str(id_or_name).strip()
    if text.isdigit():
        return int(text)
    return names.get(text.lower())
