"""Sheet engine: applies point-buy clicks to a character and re-derives it.

Orchestrates the pure budget modules (abilities, skills, defenses,
proficiency, feats) and compute_stats() over a private CharacterBuild.
Every mutator either applies fully or leaves the build untouched, and
returns an OperationResult saying which. Queries recompute from the current
build on every call; nothing derived is cached.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from dataclasses import dataclass, replace

from realms_sheet.engine import abilities as ability_rules
from realms_sheet.engine import defenses as defense_rules
from realms_sheet.engine import feats as feat_rules
from realms_sheet.engine import skills as skill_rules
from realms_sheet.engine.build_config import BuildConfig
from realms_sheet.engine.proficiency import (
    MILESTONE_FEAT,
    MILESTONE_INNATE,
    archetype_progression,
    archetype_violations,
    milestone_levels,
    proficiency_total,
    redistribute_proficiency,
)
from realms_sheet.engine.progression import (
    BudgetLine,
    ability_points,
    max_archetype_feats,
    max_character_feats,
    skill_points,
)
from realms_sheet.models.catalog import Catalog, FeatDefinition
from realms_sheet.models.character import CharacterBuild, FeatEntry, SkillEntry
from realms_sheet.models.constants import ABILITY_INDICES, DEFENSE_INDICES
from realms_sheet.models.core_rules import CoreRules
from realms_sheet.models.derived_stats import CharacterStats, compute_stats
from realms_sheet.optimizer.recovery import RecoveryResult, recover
from realms_sheet.optimizer.specs import ALLOCATION_AUTOMATIC, Pool, RecoveryRequest

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class OperationResult:
    """Outcome of one point-buy click.

    `cost` is the change in the relevant budget's spend: positive when
    points were spent, negative when refunded.
    """

    applied: bool
    reason: str | None = None
    cost: int = 0


@dataclass(frozen=True, slots=True)
class BuildIssue:
    """A single problem found by validate()."""

    severity: str      # "error" | "warning"
    category: str      # "abilities" | "skills" | "defenses" | "archetype" | "feats" | "budget"
    message: str


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class SheetEngine:
    """Applies point-buy operations to a character build.

    Consumes CoreRules, Catalog, and BuildConfig without modifying any of
    them. The build itself is private; `state` hands out deep copies.
    """

    __slots__ = ("_state", "_rules", "_catalog", "_config")

    def __init__(
        self,
        rules: CoreRules | None = None,
        catalog: Catalog | None = None,
        config: BuildConfig | None = None,
    ) -> None:
        self._rules = rules if rules is not None else CoreRules.defaults()
        self._catalog = catalog if catalog is not None else Catalog()
        self._config = config or BuildConfig()
        self._state = CharacterBuild()

    # --- Factories ---------------------------------------------------------

    @classmethod
    def new_build(
        cls,
        rules: CoreRules | None = None,
        catalog: Catalog | None = None,
        config: BuildConfig | None = None,
        name: str = "Adventurer",
        level: int = 1,
    ) -> SheetEngine:
        """Create an engine around a fresh level-*level* build."""
        engine = cls(rules, catalog, config)
        engine._state.name = name
        engine.set_level(level)
        return engine

    @classmethod
    def from_state(
        cls,
        state: CharacterBuild,
        rules: CoreRules | None = None,
        catalog: Catalog | None = None,
        config: BuildConfig | None = None,
    ) -> SheetEngine:
        """Wrap a previously loaded build. The caller keeps its own copy."""
        engine = cls(rules, catalog, config)
        engine._state = copy.deepcopy(state)
        return engine

    def copy(self) -> SheetEngine:
        """Deep-copy the engine for speculative edits."""
        clone = SheetEngine.__new__(SheetEngine)
        clone._rules = self._rules
        clone._catalog = self._catalog
        clone._config = self._config
        clone._state = copy.deepcopy(self._state)
        return clone

    # --- State property ----------------------------------------------------

    @property
    def state(self) -> CharacterBuild:
        """Return a deep copy of the current build for persistence."""
        return copy.deepcopy(self._state)

    @property
    def level(self) -> int:
        return self._state.level

    # --- Identity ----------------------------------------------------------

    def set_name(self, name: str) -> None:
        self._state.name = name

    def set_level(self, level: int) -> None:
        if level < 1:
            raise ValueError(f"level must be >= 1, got {level}")
        self._state.level = int(level)

    def set_experience(self, experience: int) -> None:
        if experience < 0:
            raise ValueError(f"experience must be >= 0, got {experience}")
        self._state.experience = int(experience)

    # --- Abilities ---------------------------------------------------------

    def _require_ability(self, ability: int) -> None:
        if ability not in ABILITY_INDICES:
            raise ValueError(f"Invalid ability index: {ability}")

    def increase_ability(self, ability: int) -> OperationResult:
        self._require_ability(ability)
        remaining = self.ability_points_remaining()
        check = ability_rules.check_increase(
            self._state.abilities, ability, self._state.level, remaining, self._config
        )
        if not check.allowed:
            return OperationResult(False, check.reason)
        self._state.abilities[ability] = self._state.ability(ability) + 1
        if check.over_budget:
            logger.debug("ability points overspent by raising %d", ability)
        return OperationResult(True, cost=check.points)

    def decrease_ability(self, ability: int) -> OperationResult:
        self._require_ability(ability)
        check = ability_rules.can_decrease(self._state.abilities, ability, self._config)
        if not check.allowed:
            return OperationResult(False, check.reason)
        self._state.abilities[ability] = self._state.ability(ability) - 1
        return OperationResult(True, cost=-check.points)

    def ability_points_remaining(self) -> int:
        total = ability_points(self._state.level, self._rules)
        return total - ability_rules.ability_points_spent(self._state.abilities, self._config)

    # --- Skills ------------------------------------------------------------

    def _apply_skill_change(self, change: skill_rules.SkillChange) -> OperationResult:
        if not change.applied:
            return OperationResult(False, change.reason)
        before = self._skill_spend()
        self._state.skills = change.skills
        return OperationResult(True, cost=self._skill_spend() - before)

    def _skill_spend(self) -> int:
        return skill_rules.skill_points_spent(self._state.skills, self._config.skill_proficiency_cost)

    def add_skill(self, entry: SkillEntry) -> OperationResult:
        """Put a skill on the sheet (unproficient, value 0)."""
        if self._state.skill_by_id(entry.skill_id) is not None:
            return OperationResult(False, f"{entry.name} is already on the sheet")
        added = replace(entry, proficient=entry.free_proficiency, value=0)
        if added.is_sub_skill and added.proficient and not skill_rules.parent_is_proficient(
            self._state.skills, added
        ):
            return OperationResult(False, f"{entry.name} requires a proficient base skill")
        self._state.skills = [*self._state.skills, added]
        return OperationResult(True)

    def add_skill_from_catalog(self, id_or_name: int | str) -> OperationResult:
        definition = self._catalog.find_skill(id_or_name)
        if definition is None:
            return OperationResult(False, f"Unknown skill {id_or_name!r}")
        return self.add_skill(
            SkillEntry(
                skill_id=definition.skill_id,
                name=definition.name,
                abilities=definition.abilities,
                base=definition.base,
            )
        )

    def remove_skill(self, skill_id: int) -> OperationResult:
        if self._state.skill_by_id(skill_id) is None:
            return OperationResult(False, f"Skill {skill_id} is not on the sheet")
        return self._apply_skill_change(skill_rules.remove_skill(self._state.skills, skill_id))

    def toggle_skill_proficiency(self, skill_id: int) -> OperationResult:
        return self._apply_skill_change(
            skill_rules.toggle_base_proficiency(self._state.skills, skill_id)
        )

    def increase_skill(self, skill_id: int) -> OperationResult:
        return self._apply_skill_change(skill_rules.increase_skill(self._state.skills, skill_id))

    def decrease_skill(self, skill_id: int) -> OperationResult:
        return self._apply_skill_change(skill_rules.decrease_skill(self._state.skills, skill_id))

    def skill_points_spent(self) -> int:
        """Skill and defense spend out of the shared skill-point pool."""
        return self._skill_spend() + defense_rules.defense_points_spent(
            self._state.defense_skills, self._config
        )

    # --- Defenses ----------------------------------------------------------

    def _require_defense(self, defense: int) -> None:
        if defense not in DEFENSE_INDICES:
            raise ValueError(f"Invalid defense index: {defense}")

    def increase_defense(self, defense: int) -> OperationResult:
        self._require_defense(defense)
        change = defense_rules.increase_defense(
            self._state.defense_skills, defense, self._state.level, self._config
        )
        if not change.applied:
            return OperationResult(False, change.reason)
        self._state.defense_skills = change.defense_skills
        return OperationResult(True, cost=change.points)

    def decrease_defense(self, defense: int) -> OperationResult:
        self._require_defense(defense)
        change = defense_rules.decrease_defense(self._state.defense_skills, defense, self._config)
        self._state.defense_skills = change.defense_skills
        return OperationResult(True, cost=change.points)

    # --- Archetype ---------------------------------------------------------

    def set_archetype_type(self, new_type: str, keep_unused_ability: bool = False) -> OperationResult:
        """Switch archetype type and redistribute proficiency (ValueError on unknown type)."""
        self._state.archetype = redistribute_proficiency(
            self._state.archetype, new_type, self._state.level, keep_unused_ability, self._rules
        )
        return OperationResult(True)

    def set_proficiency(self, power: int, martial: int) -> OperationResult:
        """Set the split directly. Overspending the level total is allowed."""
        if power < 0 or martial < 0:
            raise ValueError(f"proficiency must be >= 0, got power={power} martial={martial}")
        arch = self._state.archetype
        trial = replace(arch, power_proficiency=power, martial_proficiency=martial)
        problems = archetype_violations(trial)
        if problems:
            logger.debug("proficiency split %d/%d rejected: %s", power, martial, problems[0])
            return OperationResult(False, problems[0])
        before = arch.total_proficiency
        self._state.archetype = trial
        return OperationResult(True, cost=trial.total_proficiency - before)

    def set_archetype_abilities(self, power_ability: int | None, martial_ability: int | None) -> None:
        for ability in (power_ability, martial_ability):
            if ability is not None:
                self._require_ability(ability)
        self._state.archetype.power_ability = power_ability
        self._state.archetype.martial_ability = martial_ability

    def set_milestone_choice(self, level: int, choice: str | None) -> OperationResult:
        if level not in milestone_levels(self._state.level):
            return OperationResult(False, f"Level {level} is not a reached milestone")
        choices = self._state.archetype.milestone_choices
        if choice is None:
            choices.pop(level, None)
            return OperationResult(True)
        if choice not in (MILESTONE_INNATE, MILESTONE_FEAT):
            raise ValueError(f"Unknown milestone choice: {choice!r}")
        choices[level] = choice
        return OperationResult(True)

    # --- Feats -------------------------------------------------------------

    def _feat_entry(self, feat: FeatEntry | FeatDefinition | int | str) -> FeatEntry | None:
        if isinstance(feat, FeatEntry):
            return feat
        definition = feat if isinstance(feat, FeatDefinition) else self._catalog.find_feat(feat)
        if definition is None:
            return None
        return FeatEntry(
            name=definition.name,
            feat_id=definition.feat_id,
            category=definition.category,
            max_uses=definition.max_uses,
            current_uses=definition.max_uses,
            recovery_period=definition.recovery_period,
        )

    def add_feat(self, feat: FeatEntry | FeatDefinition | int | str) -> OperationResult:
        """Take a feat; a higher level replaces the held lower level.

        Slot limits and unmet requirements are reported by validate(), not
        enforced here.
        """
        entry = self._feat_entry(feat)
        if entry is None:
            return OperationResult(False, f"Unknown feat {feat!r}")
        change = feat_rules.add_feat(self._state.feats, entry)
        if not change.applied:
            return OperationResult(False, change.reason)
        self._state.feats = change.feats
        reason = f"Missing prerequisite {change.missing_prerequisite}" if change.missing_prerequisite else None
        return OperationResult(True, reason, cost=0 if change.replaced is not None else 1)

    def remove_feat(self, name: str) -> OperationResult:
        change = feat_rules.remove_feat(self._state.feats, name)
        if not change.applied:
            return OperationResult(False, change.reason)
        self._state.feats = change.feats
        return OperationResult(True, cost=-1)

    def add_trait(self, trait: FeatEntry | FeatDefinition | int | str) -> OperationResult:
        entry = self._feat_entry(trait)
        if entry is None:
            return OperationResult(False, f"Unknown trait {trait!r}")
        change = feat_rules.add_feat(self._state.traits, entry)
        if not change.applied:
            return OperationResult(False, change.reason)
        self._state.traits = change.feats
        return OperationResult(True)

    def _update_uses(self, name: str, step: Callable[[FeatEntry], FeatEntry]) -> OperationResult:
        for entries in (self._state.feats, self._state.traits):
            for i, entry in enumerate(entries):
                if entry.name.lower() == name.strip().lower():
                    if entry.max_uses is None:
                        return OperationResult(False, f"{entry.name} has no limited uses")
                    updated = step(entry)
                    if updated.current_uses == feat_rules.clamp_uses(entry).current_uses:
                        return OperationResult(False, f"{entry.name} uses already at limit")
                    entries[i] = updated
                    return OperationResult(True)
        return OperationResult(False, f"{name} is not taken")

    def use_feat(self, name: str) -> OperationResult:
        return self._update_uses(name, feat_rules.use_feat)

    def recover_feat_use(self, name: str) -> OperationResult:
        return self._update_uses(name, feat_rules.recover_feat_use)

    def unmet_requirements(self, feat: FeatDefinition | int | str) -> list[str]:
        definition = feat if isinstance(feat, FeatDefinition) else self._catalog.find_feat(feat)
        if definition is None:
            return [f"Unknown feat {feat!r}"]
        return feat_rules.unmet_feat_requirements(definition, self._state, self._catalog)

    # --- Health / energy ---------------------------------------------------

    def allocate_health_energy(self, health_points: int, energy_points: int) -> OperationResult:
        """Split the health-energy pool. Overspending is allowed."""
        if health_points < 0 or energy_points < 0:
            raise ValueError("health and energy points must be >= 0")
        res = self._state.resources
        before = res.health_points + res.energy_points
        res.health_points = health_points
        res.energy_points = energy_points
        return OperationResult(True, cost=health_points + energy_points - before)

    def set_current_pools(self, health: int | None, energy: int | None) -> None:
        self._state.resources.current_health = health
        self._state.resources.current_energy = energy

    def recovery_request(
        self,
        mode: str,
        hours: int = 4,
        allocation: str = ALLOCATION_AUTOMATIC,
        health_quarters: int | None = None,
    ) -> RecoveryRequest:
        """A RecoveryRequest seeded from the current pools."""
        stats = self.stats()
        return RecoveryRequest(
            health=Pool(stats.current_health, stats.max_health),
            energy=Pool(stats.current_energy, stats.max_energy),
            mode=mode,
            hours=hours,
            allocation=allocation,
            health_quarters=health_quarters,
        )

    def apply_recovery(self, request: RecoveryRequest) -> RecoveryResult:
        """Rest, then write pools and feat/trait uses back into the build."""
        result = recover(request, self._state.feats, self._state.traits, self._config)
        res = self._state.resources
        res.current_health = result.health.current
        res.current_energy = result.energy.current
        self._state.feats = result.feats
        self._state.traits = result.traits
        logger.debug(
            "%s recovery: +%d health, +%d energy, %d uses reset",
            result.mode, result.health_restored, result.energy_restored,
            result.feats_reset + result.traits_reset,
        )
        return result

    # --- Queries -----------------------------------------------------------

    def stats(self) -> CharacterStats:
        return compute_stats(self._state, self._rules)

    def budgets(self) -> dict[str, BudgetLine]:
        """Every soft budget of the build, keyed by name."""
        s = self._state
        arch = archetype_progression(
            s.level, s.archetype.martial_proficiency, s.archetype.power_proficiency,
            s.archetype.milestone_choices,
        )
        stats = self.stats()
        archetype_feats = sum(1 for f in s.feats if f.category == "archetype")
        character_feats = sum(1 for f in s.feats if f.category == "character")
        lines = [
            BudgetLine("ability_points", ability_points(s.level, self._rules),
                       ability_rules.ability_points_spent(s.abilities, self._config)),
            BudgetLine("skill_points", skill_points(s.level, self._rules), self.skill_points_spent()),
            BudgetLine("proficiency", proficiency_total(s.level, self._rules),
                       s.archetype.total_proficiency),
            BudgetLine("health_energy", stats.health_energy_pool,
                       s.resources.health_points + s.resources.energy_points),
            BudgetLine("archetype_feats", max_archetype_feats(s.level) + arch.bonus_archetype_feats,
                       archetype_feats),
            BudgetLine("character_feats", max_character_feats(s.level), character_feats),
        ]
        return {line.name: line for line in lines}

    def validate(self) -> list[BuildIssue]:
        """Hard-constraint violations (errors) and overspent budgets (warnings)."""
        s = self._state
        issues: list[BuildIssue] = []
        for msg in ability_rules.ability_violations(s.abilities, s.level, self._config):
            issues.append(BuildIssue("error", "abilities", msg))
        for msg in skill_rules.parent_violations(s.skills):
            issues.append(BuildIssue("error", "skills", msg))
        for entry in s.skills:
            if not entry.proficient and entry.value > 0:
                issues.append(BuildIssue("error", "skills", f"{entry.name} has value without proficiency"))
        for msg in defense_rules.defense_violations(s.defense_skills, s.level):
            issues.append(BuildIssue("error", "defenses", msg))
        for msg in archetype_violations(s.archetype):
            issues.append(BuildIssue("error", "archetype", msg))

        for entry in s.feats:
            definition = self._catalog.find_feat(entry.feat_id if entry.feat_id is not None else entry.name)
            if definition is None:
                continue
            for msg in feat_rules.unmet_feat_requirements(definition, s, self._catalog):
                issues.append(BuildIssue("warning", "feats", f"{entry.name}: {msg}"))

        for line in self.budgets().values():
            if line.over_budget:
                issues.append(BuildIssue(
                    "warning", "budget",
                    f"{line.name} overspent by {line.spent - line.total:g}",
                ))
        return issues

    def is_valid(self) -> bool:
        """True when there are no error-severity issues."""
        return not any(issue.severity == "error" for issue in self.validate())
