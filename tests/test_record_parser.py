"""Tests for stored character and creature record normalization."""

import pytest

from realms_sheet.models.catalog import AnyBase, Catalog, FeatDefinition, SkillDefinition, SpecificBase
from realms_sheet.models.constants import Ability, Defense
from realms_sheet.parser.record_parser import (
    build_from_record,
    creature_from_record,
    parse_abilities,
    parse_archetype,
    parse_defense_skills,
    parse_feat_entry,
    parse_skills,
    record_from_build,
)


@pytest.fixture
def catalog():
    return Catalog(
        feats=[
            FeatDefinition(100, "Action Surge", max_uses=1, recovery_period="Partial Recovery"),
            FeatDefinition(101, "Tough", category="character"),
        ],
        skills=[
            SkillDefinition(1, "Athletics", (Ability.STRENGTH,)),
            SkillDefinition(2, "Insight", (Ability.ACUITY,)),
            SkillDefinition(10, "Climbing", (Ability.STRENGTH,), base=SpecificBase(1)),
            SkillDefinition(11, "Tracking", (Ability.ACUITY,), base=AnyBase()),
        ],
    )


# --- Abilities and defenses ---

def test_abilities_accept_names_and_abbreviations():
    abilities = parse_abilities({"strength": "2", "AGI": 1, "cha": -1, "luck": 9})
    assert abilities[Ability.STRENGTH] == 2
    assert abilities[Ability.AGILITY] == 1
    assert abilities[Ability.CHARISMA] == -1
    assert abilities[Ability.VITALITY] == 0
    assert len(abilities) == 6


def test_defense_keys_camel_case():
    defenses = parse_defense_skills({"mentalFortitude": 2, "reflex": "1", "might": -3})
    assert defenses[Defense.MENTAL_FORTITUDE] == 2
    assert defenses[Defense.REFLEX] == 1
    assert defenses[Defense.MIGHT] == 0


# --- Feats ---

def test_string_feat_resolved_through_catalog(catalog):
    entry = parse_feat_entry("Action Surge", "archetype", catalog)
    assert entry.feat_id == 100
    assert entry.max_uses == 1
    assert entry.current_uses == 1
    assert entry.recovery_period == "Partial Recovery"


def test_stored_uses_clamped_to_max(catalog):
    entry = parse_feat_entry({"name": "Action Surge", "currentUses": 5}, "archetype", catalog)
    assert entry.current_uses == 1


def test_feat_without_name_dropped():
    assert parse_feat_entry({"currentUses": 1}) is None
    assert parse_feat_entry(42) is None


# --- Skills ---

def test_base_skill_id_zero_normalized_to_any_base(catalog):
    skills = parse_skills([{"id": 11, "name": "Tracking", "prof": True, "skill_val": 1, "baseSkillId": 0}], catalog)
    assert skills[0].base == AnyBase()


def test_parent_named_by_string(catalog):
    skills = parse_skills(
        [
            {"name": "Athletics", "prof": True},
            {"name": "Climbing", "prof": True, "skill_val": 2, "baseSkill": "Athletics"},
        ],
        catalog,
    )
    assert skills[0].skill_id == 1
    assert skills[1].base == SpecificBase(1)
    assert skills[1].value == 2


def test_catalog_parent_used_when_record_has_none(catalog):
    skills = parse_skills([{"id": 10, "name": "Climbing"}], catalog)
    assert skills[0].base == SpecificBase(1)
    assert skills[0].abilities == (Ability.STRENGTH,)


def test_unproficient_value_dropped(catalog):
    skills = parse_skills([{"name": "Insight", "prof": False, "skill_val": 3}], catalog)
    assert skills[0].value == 0


def test_free_species_skills(catalog):
    skills = parse_skills([{"name": "Insight", "prof": True}], catalog, free=["insight"])
    assert skills[0].free_proficiency is True


def test_unresolvable_skill_dropped():
    assert parse_skills([{"name": "Alchemy"}]) == []


# --- Archetype ---

def test_archetype_legacy_top_level_fields():
    arch = parse_archetype(
        {
            "archetype": {"type": "Powered-Martial"},
            "pow_prof": 1,
            "mart_prof": "2",
            "pow_abil": "Charisma",
            "mart_abil": "str",
            "archetypeChoices": {"4": "innate", "7": "bogus"},
        }
    )
    assert arch.type == "powered-martial"
    assert (arch.power_proficiency, arch.martial_proficiency) == (1, 2)
    assert arch.power_ability == Ability.CHARISMA
    assert arch.martial_ability == Ability.STRENGTH
    assert arch.milestone_choices == {4: "innate"}


def test_unknown_archetype_type_falls_back_to_power():
    assert parse_archetype({"archetype": {"type": "wizard"}}).type == "power"


# --- Whole records ---

def _record() -> dict:
    return {
        "name": "Ayla",
        "level": "3",
        "abilities": {"str": 2, "vitality": 1},
        "skills": [
            {"id": 1, "name": "Athletics", "prof": True, "skill_val": 1},
            {"id": 11, "name": "Tracking", "prof": True, "skill_val": 1, "baseSkillId": 0},
        ],
        "defenseVals": {"might": 1},
        "archetype": {"type": "martial", "mart_prof": 2},
        "mart_abil": "Strength",
        "archetypeFeats": ["Action Surge"],
        "feats": [{"name": "Tough"}],
        "traits": "Night Owl",
        "healthPoints": 20,
        "energyPoints": 10,
        "health": {"current": 12},
    }


def test_build_from_record(catalog):
    build = build_from_record(_record(), catalog)
    assert build.level == 3
    assert build.ability(Ability.STRENGTH) == 2
    assert build.defense_skills[Defense.MIGHT] == 1
    assert build.archetype.martial_proficiency == 2
    assert [(f.name, f.category) for f in build.feats] == [
        ("Action Surge", "archetype"),
        ("Tough", "character"),
    ]
    assert [t.name for t in build.traits] == ["Night Owl"]
    assert build.resources.health_points == 20
    assert build.resources.current_health == 12
    assert build.resources.current_energy is None


def test_malformed_record_degrades_to_defaults():
    build = build_from_record({"level": "high", "abilities": "none", "skills": 7})
    assert build.level == 1
    assert all(v == 0 for v in build.abilities.values())
    assert build.skills == []


def test_record_round_trip(catalog):
    build = build_from_record(_record(), catalog)
    again = build_from_record(record_from_build(build), catalog)
    assert again == build


def test_record_from_build_keys(catalog):
    record = record_from_build(build_from_record(_record(), catalog))
    assert record["defenseSkills"]["mentalFortitude"] == 0
    assert record["skills"][1]["baseSkillId"] == 0
    assert record["archetypeFeats"][0]["currentUses"] == 1
    assert record["currentHealth"] == 12
    assert "currentEnergy" not in record


# --- Creatures ---

def test_creature_from_record():
    creature = creature_from_record(
        {
            "name": "Wolf",
            "level": "0.5",
            "abilities": {"agility": 2},
            "weapons": [
                {
                    "name": "Bite",
                    "properties": [{"name": "Weapon Damage", "op_1_lvl": 2}],
                    "damage": [{"type": "piercing"}, {"type": "none"}],
                }
            ],
            "powers": ["Howl"],
            "feats": [{"name": "Pack Tactics", "points": "1.5"}],
            "resistances": [{"name": "Cold"}],
            "conditionImmunities": ["Frightened"],
        }
    )
    assert creature.level == 0.5
    assert [(i.name, i.kind) for i in creature.items] == [("Bite", "armament"), ("Howl", "power")]
    bite = creature.items[0]
    assert bite.parts[0].option_levels == (2, 0, 0)
    assert bite.damage_types == ["piercing", "none"]
    assert creature.feats[0].points == 1.5
    assert creature.resistances == ["Cold"]
    assert creature.condition_immunities == ["Frightened"]
    assert creature.size == "medium"


@pytest.mark.parametrize("raw, expected", [("Large", "large"), (" tiny ", "tiny"), ("colossal", "medium")])
def test_creature_size_normalized(raw, expected):
    assert creature_from_record({"name": "Ogre", "size": raw}).size == expected
