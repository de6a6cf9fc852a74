"""Tests for skill and sub-skill point-buy."""

import itertools

import pytest

from realms_sheet.engine.skills import (
    decrease_skill,
    increase_skill,
    parent_is_proficient,
    parent_violations,
    remove_skill,
    skill_bonus,
    skill_points_spent,
    toggle_base_proficiency,
)
from realms_sheet.models.catalog import AnyBase, SpecificBase
from realms_sheet.models.character import SkillEntry
from realms_sheet.models.constants import Ability


AB = Ability

ATHLETICS = 1
INSIGHT = 2
CLIMBING = 10     # sub-skill of Athletics
TRACKING = 11     # sub-skill of any base skill


def _skills(
    athletics: bool = False,
    insight: bool = False,
    climbing: tuple[bool, int] = (False, 0),
    tracking: tuple[bool, int] = (False, 0),
) -> list[SkillEntry]:
    return [
        SkillEntry(ATHLETICS, "Athletics", (AB.STRENGTH, AB.VITALITY), proficient=athletics),
        SkillEntry(INSIGHT, "Insight", (AB.ACUITY,), proficient=insight),
        SkillEntry(CLIMBING, "Climbing", (AB.STRENGTH,), proficient=climbing[0], value=climbing[1],
                   base=SpecificBase(ATHLETICS)),
        SkillEntry(TRACKING, "Tracking", (AB.ACUITY,), proficient=tracking[0], value=tracking[1],
                   base=AnyBase()),
    ]


def _by_id(skills: list[SkillEntry], skill_id: int) -> SkillEntry:
    return next(s for s in skills if s.skill_id == skill_id)


# --- Base skills ---

def test_first_increase_buys_proficiency_only():
    change = increase_skill(_skills(), ATHLETICS)
    entry = _by_id(change.skills, ATHLETICS)
    assert change.applied is True
    assert entry.proficient is True
    assert entry.value == 0


def test_increase_proficient_base_adds_value():
    change = increase_skill(_skills(athletics=True), ATHLETICS)
    assert _by_id(change.skills, ATHLETICS).value == 1


def test_operations_never_mutate_input():
    skills = _skills()
    increase_skill(skills, ATHLETICS)
    assert _by_id(skills, ATHLETICS).proficient is False


def test_decrease_base_at_zero_drops_proficiency():
    change = decrease_skill(_skills(athletics=True), ATHLETICS)
    assert _by_id(change.skills, ATHLETICS).proficient is False


def test_toggle_on_and_off():
    on = toggle_base_proficiency(_skills(), INSIGHT)
    assert _by_id(on.skills, INSIGHT).proficient is True
    off = toggle_base_proficiency(on.skills, INSIGHT)
    assert _by_id(off.skills, INSIGHT).proficient is False
    assert _by_id(off.skills, INSIGHT).value == 0


def test_toggle_rejects_sub_skill():
    change = toggle_base_proficiency(_skills(athletics=True), CLIMBING)
    assert change.applied is False
    assert change.reason == "Climbing is a sub-skill"


def test_free_proficiency_cannot_be_removed():
    skills = _skills(athletics=True)
    skills[0].free_proficiency = True
    change = toggle_base_proficiency(skills, ATHLETICS)
    assert change.applied is False
    assert _by_id(change.skills, ATHLETICS).proficient is True
    assert decrease_skill(skills, ATHLETICS).applied is False


def test_unknown_skill_raises():
    with pytest.raises(ValueError):
        increase_skill(_skills(), 999)


# --- Sub-skills ---

def test_sub_skill_requires_proficient_parent():
    change = increase_skill(_skills(), CLIMBING)
    assert change.applied is False
    assert change.reason == "Climbing requires a proficient base skill"
    assert _by_id(change.skills, CLIMBING).proficient is False


def test_sub_skill_first_increase_sets_value_one():
    change = increase_skill(_skills(athletics=True), CLIMBING)
    entry = _by_id(change.skills, CLIMBING)
    assert entry.proficient is True
    assert entry.value == 1


def test_specific_base_ignores_other_proficient_skills():
    change = increase_skill(_skills(insight=True), CLIMBING)
    assert change.applied is False


def test_any_base_accepts_any_proficient_base():
    change = increase_skill(_skills(insight=True), TRACKING)
    assert change.applied is True
    assert _by_id(change.skills, TRACKING).proficient is True


def test_decrease_sub_skill_from_one_clears_proficiency():
    change = decrease_skill(_skills(athletics=True, climbing=(True, 1)), CLIMBING)
    entry = _by_id(change.skills, CLIMBING)
    assert entry.proficient is False
    assert entry.value == 0


def test_dropping_parent_clears_dependent_sub_skill():
    skills = _skills(athletics=True, climbing=(True, 2))
    change = toggle_base_proficiency(skills, ATHLETICS)
    climbing = _by_id(change.skills, CLIMBING)
    assert climbing.proficient is False
    assert climbing.value == 0


def test_any_base_sub_skill_survives_while_another_base_is_proficient():
    skills = _skills(athletics=True, insight=True, tracking=(True, 1))
    change = toggle_base_proficiency(skills, ATHLETICS)
    assert _by_id(change.skills, TRACKING).proficient is True


def test_any_base_sub_skill_cleared_when_last_base_dropped():
    skills = _skills(athletics=True, tracking=(True, 1))
    change = decrease_skill(skills, ATHLETICS)
    assert _by_id(change.skills, TRACKING).proficient is False


def test_no_operation_leaves_orphaned_sub_skill():
    skills = _skills(athletics=True, climbing=(True, 1), tracking=(True, 1))
    for op in (toggle_base_proficiency, decrease_skill):
        change = op(skills, ATHLETICS)
        for entry in change.skills:
            if entry.is_sub_skill and entry.proficient:
                assert parent_is_proficient(change.skills, entry)


_MOVES = [
    (op, skill_id)
    for op in (toggle_base_proficiency, increase_skill, decrease_skill)
    for skill_id in (ATHLETICS, INSIGHT, CLIMBING, TRACKING)
]


def test_sub_skill_never_outlives_parent_over_any_click_sequence():
    """Every sequence of four clicks from a blank sheet, then a removal."""
    for sequence in itertools.product(_MOVES, repeat=4):
        skills = _skills()
        for op, skill_id in sequence:
            skills = op(skills, skill_id).skills
            assert parent_violations(skills) == [], sequence
            assert all(s.proficient or s.value == 0 for s in skills), sequence
        for base_id in (ATHLETICS, INSIGHT):
            assert parent_violations(remove_skill(skills, base_id).skills) == [], sequence


def test_remove_skill_cascades_to_sub_skills():
    skills = _skills(athletics=True, climbing=(True, 1))
    change = remove_skill(skills, ATHLETICS)
    assert [s.skill_id for s in change.skills] == [INSIGHT, CLIMBING, TRACKING]
    assert _by_id(change.skills, CLIMBING).proficient is False


# --- Points and bonuses ---

def test_points_spent_counts_base_proficiency_and_values():
    """Athletics prof (1) + value 2 + Climbing value 1 = 4."""
    skills = _skills(athletics=True, climbing=(True, 1))
    skills[0].value = 2
    assert skill_points_spent(skills) == 4


def test_free_proficiency_costs_nothing():
    skills = _skills(athletics=True)
    skills[0].free_proficiency = True
    assert skill_points_spent(skills) == 0


def test_bonus_proficient_uses_highest_linked_ability():
    """Athletics links STR 1 and VIT 3: 3 + value 2 = 5."""
    skills = _skills(athletics=True)
    skills[0].value = 2
    assert skill_bonus(skills[0], {AB.STRENGTH: 1, AB.VITALITY: 3}) == 5


@pytest.mark.parametrize("score, bonus", [(3, 2), (4, 2), (1, 1), (0, 0), (-1, -2), (-2, -4)])
def test_bonus_unproficient(score, bonus):
    entry = _skills()[1]
    assert skill_bonus(entry, {AB.ACUITY: score}) == bonus


def test_parent_violations_for_loaded_data():
    skills = _skills(climbing=(True, 1))
    assert parent_violations(skills) == ["Climbing is proficient without a proficient base skill"]
    assert parent_violations(_skills(athletics=True, climbing=(True, 1))) == []
