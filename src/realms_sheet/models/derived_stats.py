"""Derived stat calculator driven by CoreRules constants.

Each method is one sheet formula. Base values (base defense, base speed,
base health...) come from the core-rules table via CoreRules; the formula
structure is fixed here. compute_stats() recomputes a full snapshot from a
CharacterBuild, so callers never hold stale derived values.
compute_creature_stats() does the same for a CreatureBuild.
"""

import math
from dataclasses import dataclass, field

from realms_sheet.models.character import ArchetypeState, CharacterBuild
from realms_sheet.models.constants import (
    ABILITY_NAMES,
    CREATURE_SIZE_MODIFIERS,
    DEFENSE_ABILITY,
    MARTIAL_ATTACK_ABILITIES,
    Ability,
    Defense,
)
from realms_sheet.models.core_rules import CoreRules
from realms_sheet.models.creature import CreatureBuild


def unproficient_bonus(score: int) -> int:
    """Half the score rounded up, or double it when negative."""
    return score * 2 if score < 0 else math.ceil(score / 2)


def archetype_ability(archetype: ArchetypeState) -> int | None:
    """The ability that drives energy: power ability first, then martial."""
    if archetype.power_ability is not None:
        return archetype.power_ability
    return archetype.martial_ability


@dataclass(frozen=True, slots=True)
class AttackBonus:
    proficient: int
    unproficient: int


class DerivedStats:
    """Computes derived stats from abilities and allocations using CoreRules."""

    def __init__(self, rules: CoreRules | None = None) -> None:
        self._rules = rules if rules is not None else CoreRules.defaults()

    @property
    def rules(self) -> CoreRules:
        return self._rules

    def defense_score(self, ability_score: int, bonus: int) -> int:
        """Defense = base_defense + linked ability + bought bonus."""
        return self._rules.get_int("base_defense", 10) + ability_score + bonus

    def speed(self, agility: int, base: int | None = None) -> int:
        """Speed = base_speed + ceil(AGI / 2)."""
        if base is None:
            base = self._rules.get_int("base_speed", 6)
        return base + math.ceil(agility / 2)

    def evasion(self, agility: int, base: int | None = None) -> int:
        """Evasion = base_evasion + AGI."""
        if base is None:
            base = self._rules.get_int("base_evasion", 10)
        return base + agility

    def power_potency(self, power_proficiency: int, power_ability_score: int) -> int:
        return self._rules.get_int("base_power_potency", 10) + power_proficiency + power_ability_score

    def attack_bonus(self, ability_score: int, proficiency: int) -> AttackBonus:
        return AttackBonus(
            proficient=ability_score + proficiency,
            unproficient=unproficient_bonus(ability_score),
        )

    def health_energy_pool(self, level: int) -> int:
        """Pool = player_base_hit_energy + hit_energy_per_level * (level - 1)."""
        base = self._rules.get_int("player_base_hit_energy", 18)
        per_level = self._rules.get_int("hit_energy_per_level", 12)
        return base + per_level * (level - 1)

    def max_health(self, health_points: int, ability_score: int, level: int) -> int:
        """Base health + ability * level (or ability once if negative) + points."""
        base = self._rules.get_int("base_health", 8)
        if ability_score < 0:
            return base + ability_score + health_points
        return base + ability_score * level + health_points

    def max_energy(self, energy_points: int, ability_score: int, level: int) -> int:
        return ability_score * level + energy_points

    def terminal(self, max_health: int) -> int:
        """A quarter of max health, rounded up."""
        return math.ceil(max_health / 4)


@dataclass
class CharacterStats:
    """Full derived-stats snapshot for a character at a given state."""

    level: int = 1
    abilities: dict[int, int] = field(default_factory=dict)

    defense_scores: dict[int, int] = field(default_factory=dict)
    defense_bonuses: dict[int, int] = field(default_factory=dict)
    attack_bonuses: dict[str, AttackBonus] = field(default_factory=dict)
    power_potency: int = 0

    speed: int = 0
    evasion: int = 0

    health_energy_pool: int = 0
    health_energy_remaining: int = 0
    max_health: int = 0
    max_energy: int = 0
    current_health: int = 0
    current_energy: int = 0
    terminal: int = 0


def compute_stats(build: CharacterBuild, rules: CoreRules | None = None) -> CharacterStats:
    """Compute the full derived-stats snapshot for *build*."""
    calc = DerivedStats(rules)
    abilities = {ab: build.ability(ab) for ab in Ability}
    arch = build.archetype

    defense_bonuses: dict[int, int] = {}
    defense_scores: dict[int, int] = {}
    for d in Defense:
        bought = int(build.defense_skills.get(d, 0))
        linked = abilities[DEFENSE_ABILITY[d]]
        defense_bonuses[d] = linked + bought
        defense_scores[d] = calc.defense_score(linked, bought)

    attack_bonuses: dict[str, AttackBonus] = {}
    for ab in MARTIAL_ATTACK_ABILITIES:
        attack_bonuses[ABILITY_NAMES[ab].lower()] = calc.attack_bonus(
            abilities[ab], arch.martial_proficiency
        )
    power_ab = arch.power_ability if arch.power_ability is not None else Ability.CHARISMA
    attack_bonuses["power"] = calc.attack_bonus(abilities[power_ab], arch.power_proficiency)

    # Strength stands in for Vitality when Vitality powers the archetype.
    if Ability.VITALITY in (arch.power_ability, arch.martial_ability):
        health_ability = abilities[Ability.STRENGTH]
    else:
        health_ability = abilities[Ability.VITALITY]
    energy_ab = archetype_ability(arch)
    energy_ability = abilities[energy_ab] if energy_ab is not None else 0

    res = build.resources
    max_health = calc.max_health(res.health_points, health_ability, build.level)
    max_energy = calc.max_energy(res.energy_points, energy_ability, build.level)
    pool = calc.health_energy_pool(build.level)

    return CharacterStats(
        level=build.level,
        abilities=abilities,
        defense_scores=defense_scores,
        defense_bonuses=defense_bonuses,
        attack_bonuses=attack_bonuses,
        power_potency=calc.power_potency(arch.power_proficiency, abilities[power_ab]),
        speed=calc.speed(abilities[Ability.AGILITY], build.speed_base),
        evasion=calc.evasion(abilities[Ability.AGILITY], build.evasion_base),
        health_energy_pool=pool,
        health_energy_remaining=pool - (res.health_points + res.energy_points),
        max_health=max_health,
        max_energy=max_energy,
        current_health=max_health if res.current_health is None else res.current_health,
        current_energy=max_energy if res.current_energy is None else res.current_energy,
        terminal=calc.terminal(max_health),
    )


@dataclass
class CreatureStats:
    """Derived-stats snapshot for a creature build."""

    level: float = 1
    defense_scores: dict[int, int] = field(default_factory=dict)
    speed: int = 0
    evasion: int = 0
    max_health: float = 0
    min_energy: float = 0
    max_energy: float = 0
    terminal: int = 0


def compute_creature_stats(build: CreatureBuild, rules: CoreRules | None = None) -> CreatureStats:
    """Creature variant of compute_stats.

    Health scales Vitality by at least one level (a negative Vitality counts
    once), energy starts from the highest non-Vitality ability times level,
    and speed adds the size modifier.
    """
    calc = DerivedStats(rules)
    abilities = {ab: int(build.abilities.get(ab, 0)) for ab in Ability}
    scale = max(1, build.level)

    vitality = abilities[Ability.VITALITY]
    vitality_share = vitality if vitality < 0 else vitality * scale
    max_health = calc.rules.get_int("base_health", 8) + vitality_share + build.health_points
    min_energy = build.highest_non_vitality() * scale

    defense_scores = {
        d: calc.defense_score(abilities[DEFENSE_ABILITY[d]], int(build.defense_skills.get(d, 0)))
        for d in Defense
    }
    agility = abilities[Ability.AGILITY]
    return CreatureStats(
        level=build.level,
        defense_scores=defense_scores,
        speed=calc.speed(agility) + CREATURE_SIZE_MODIFIERS.get(build.size, 0),
        evasion=calc.evasion(agility),
        max_health=max_health,
        min_energy=min_energy,
        max_energy=min_energy + build.energy_points,
        terminal=calc.terminal(max_health),
    )
