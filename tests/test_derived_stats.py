"""Tests for DerivedStats formulas with known inputs."""

import pytest

from realms_sheet.models.character import CharacterBuild
from realms_sheet.models.constants import Ability, Defense
from realms_sheet.models.core_rules import CoreRules
from realms_sheet.models.creature import CreatureBuild
from realms_sheet.models.derived_stats import (
    DerivedStats,
    compute_creature_stats,
    compute_stats,
    unproficient_bonus,
)


AB = Ability


@pytest.fixture
def calc():
    """DerivedStats with the published defaults."""
    return DerivedStats(CoreRules.defaults())


def _build(level: int = 1, **scores: int) -> CharacterBuild:
    build = CharacterBuild(level=level)
    for name, value in scores.items():
        build.abilities[Ability[name.upper()]] = value
    return build


# --- Single formulas ---

def test_defense_score(calc):
    """10 + 2 + 1 = 13."""
    assert calc.defense_score(2, 1) == 13


def test_speed_rounds_half_agility_up(calc):
    """6 + ceil(3 / 2) = 8."""
    assert calc.speed(3) == 8
    assert calc.speed(-1) == 6


def test_speed_and_evasion_base_override(calc):
    assert calc.speed(2, base=4) == 5
    assert calc.evasion(2, base=12) == 14


def test_evasion(calc):
    """10 + AGI."""
    assert calc.evasion(3) == 13


def test_power_potency(calc):
    """10 + proficiency 2 + ability 3 = 15."""
    assert calc.power_potency(2, 3) == 15


def test_attack_bonus(calc):
    bonus = calc.attack_bonus(3, 2)
    assert bonus.proficient == 5
    assert bonus.unproficient == 2


@pytest.mark.parametrize("score, expected", [(4, 2), (3, 2), (0, 0), (-1, -2)])
def test_unproficient_bonus(score, expected):
    assert unproficient_bonus(score) == expected


def test_max_health_scales_ability_by_level(calc):
    """8 + 2 * 3 + 10 = 24."""
    assert calc.max_health(10, 2, 3) == 24


def test_max_health_negative_ability_counts_once(calc):
    """8 + (-1) + 10 = 17, regardless of level."""
    assert calc.max_health(10, -1, 5) == 17


def test_max_energy(calc):
    """2 * 3 + 6 = 12."""
    assert calc.max_energy(6, 2, 3) == 12


def test_terminal_is_quarter_rounded_up(calc):
    assert calc.terminal(17) == 5
    assert calc.terminal(16) == 4


def test_rule_overrides():
    calc = DerivedStats(CoreRules.from_mapping({"COMBAT": {"baseDefense": 8, "baseSpeed": 5}}))
    assert calc.defense_score(0, 0) == 8
    assert calc.speed(0) == 5


# --- Snapshot ---

def test_compute_stats_defenses_and_combat():
    build = _build(agility=3, charisma=2)
    build.defense_skills[Defense.REFLEX] = 1
    stats = compute_stats(build)
    assert stats.defense_scores[Defense.REFLEX] == 14
    assert stats.defense_bonuses[Defense.REFLEX] == 4
    assert stats.defense_scores[Defense.MIGHT] == 10
    assert stats.speed == 8
    assert stats.evasion == 13


def test_compute_stats_attack_tracks():
    build = _build(strength=3, charisma=-1)
    build.archetype.martial_proficiency = 1
    build.archetype.power_proficiency = 1
    stats = compute_stats(build)
    assert stats.attack_bonuses["strength"].proficient == 4
    assert stats.attack_bonuses["strength"].unproficient == 2
    assert stats.attack_bonuses["power"].proficient == 0
    assert stats.attack_bonuses["power"].unproficient == -2
    assert set(stats.attack_bonuses) == {"strength", "agility", "acuity", "power"}


def test_power_track_uses_power_ability():
    build = _build(intelligence=3)
    build.archetype.power_ability = AB.INTELLIGENCE
    build.archetype.power_proficiency = 2
    stats = compute_stats(build)
    assert stats.attack_bonuses["power"].proficient == 5
    assert stats.power_potency == 15


def test_health_and_energy_pools():
    """Level 2: pool 30; health 8 + 2*2 + 12 = 24; energy 3*2 + 10 = 16."""
    build = _build(level=2, vitality=2, charisma=3)
    build.archetype.power_ability = AB.CHARISMA
    build.resources.health_points = 12
    build.resources.energy_points = 10
    stats = compute_stats(build)
    assert stats.health_energy_pool == 30
    assert stats.health_energy_remaining == 8
    assert stats.max_health == 24
    assert stats.max_energy == 16
    assert stats.current_health == 24
    assert stats.terminal == 6


def test_vitality_archetype_uses_strength_for_health():
    build = _build(level=2, strength=1, vitality=4)
    build.archetype.power_ability = AB.VITALITY
    stats = compute_stats(build)
    assert stats.max_health == 8 + 1 * 2
    assert stats.max_energy == 4 * 2


def test_energy_falls_back_to_martial_ability():
    build = _build(level=3, strength=2)
    build.archetype.martial_ability = AB.STRENGTH
    assert compute_stats(build).max_energy == 6


def test_no_archetype_ability_gives_zero_energy_scaling():
    build = _build(level=3, charisma=4)
    build.resources.energy_points = 5
    assert compute_stats(build).max_energy == 5


def test_current_pools_kept_when_set():
    build = _build()
    build.resources.current_health = 3
    build.resources.current_energy = 0
    stats = compute_stats(build)
    assert stats.current_health == 3
    assert stats.current_energy == 0


def test_stats_recompute_after_mutation():
    build = _build(agility=1)
    assert compute_stats(build).evasion == 11
    build.abilities[AB.AGILITY] = 2
    assert compute_stats(build).evasion == 12


# --- Creatures ---

def _creature(level: float = 1, size: str = "medium", **scores: int) -> CreatureBuild:
    build = CreatureBuild(level=level, size=size)
    for name, value in scores.items():
        build.abilities[Ability[name.upper()]] = value
    return build


def test_creature_health_scales_vitality_by_level():
    """8 + 2 * 3 + 4 = 18; terminal ceil(18 / 4) = 5."""
    build = _creature(level=3, vitality=2)
    build.health_points = 4
    stats = compute_creature_stats(build)
    assert stats.max_health == 18
    assert stats.terminal == 5


def test_creature_negative_vitality_counts_once():
    assert compute_creature_stats(_creature(level=4, vitality=-2)).max_health == 6


def test_sub_level_creature_scales_by_one_level():
    """Level 1/2 still counts Vitality and energy once: 8 + 3 and 2 * 1 + 1."""
    build = _creature(level=0.5, vitality=3, strength=2)
    build.energy_points = 1
    stats = compute_creature_stats(build)
    assert stats.max_health == 11
    assert stats.min_energy == 2
    assert stats.max_energy == 3


def test_creature_energy_from_highest_non_vitality():
    """Highest of STR 1, ACU 3 (VIT 5 ignored) at level 2: 6, plus 4 points."""
    build = _creature(level=2, strength=1, acuity=3, vitality=5)
    build.energy_points = 4
    stats = compute_creature_stats(build)
    assert stats.min_energy == 6
    assert stats.max_energy == 10


def test_creature_with_only_negative_abilities_has_no_minimum_energy():
    build = _creature(level=3, strength=-1, agility=-2)
    assert compute_creature_stats(build).min_energy == 0


@pytest.mark.parametrize(
    "size, agility, expected",
    [("medium", 3, 8), ("tiny", 3, 6), ("gargantuan", 0, 9), ("small", -1, 5)],
)
def test_creature_speed_includes_size(size, agility, expected):
    """6 + ceil(AGI / 2) + size modifier."""
    assert compute_creature_stats(_creature(size=size, agility=agility)).speed == expected


def test_creature_evasion_and_defenses():
    build = _creature(agility=2, strength=1)
    build.defense_skills[Defense.MIGHT] = 2
    stats = compute_creature_stats(build)
    assert stats.evasion == 12
    assert stats.defense_scores[Defense.MIGHT] == 13
    assert stats.defense_scores[Defense.REFLEX] == 12
