"""Tests for the feat ledger: leveled names, replacement, uses, requirements."""

import pytest

from realms_sheet.engine.feats import (
    add_feat,
    clamp_uses,
    feat_name_for_level,
    feat_slot_usage,
    parse_feat_level,
    prerequisite_feat_name,
    recover_feat_use,
    remove_feat,
    reset_feat_uses,
    resets_on,
    unmet_feat_requirements,
    use_feat,
)
from realms_sheet.models.catalog import (
    AbilityRequirement,
    Catalog,
    FeatDefinition,
    SkillBonusRequirement,
    SkillDefinition,
)
from realms_sheet.models.character import CharacterBuild, FeatEntry, SkillEntry
from realms_sheet.models.constants import Ability


def _feat(
    name: str,
    max_uses: int | None = None,
    current_uses: int | None = None,
    recovery_period: str | None = None,
    category: str = "archetype",
) -> FeatEntry:
    return FeatEntry(
        name=name,
        category=category,
        max_uses=max_uses,
        current_uses=current_uses,
        recovery_period=recovery_period,
    )


# --- Leveled names ---

def test_parse_leveled_name():
    parsed = parse_feat_level("Action Surge III")
    assert parsed.base_name == "Action Surge"
    assert parsed.level == 3
    assert prerequisite_feat_name("Action Surge III") == "Action Surge II"


def test_parse_plain_name_is_level_one():
    parsed = parse_feat_level("Action Surge")
    assert parsed.base_name == "Action Surge"
    assert parsed.level == 1
    assert parsed.has_numeral is False
    assert prerequisite_feat_name("Action Surge") is None


def test_level_two_prerequisite_is_bare_name():
    assert prerequisite_feat_name("Action Surge II") == "Action Surge"


def test_single_word_numeral_is_not_a_level():
    assert parse_feat_level("IV").level == 1


def test_name_for_level():
    assert feat_name_for_level("Tough", 1) == "Tough"
    assert feat_name_for_level("Tough", 4) == "Tough IV"


# --- Adding and removing ---

def test_add_level_two_replaces_bare_level_one():
    change = add_feat([_feat("Action Surge")], _feat("Action Surge II"))
    assert change.applied is True
    assert [f.name for f in change.feats] == ["Action Surge II"]
    assert change.replaced.name == "Action Surge"


def test_add_level_two_replaces_numbered_level_one():
    change = add_feat([_feat("Action Surge I")], _feat("Action Surge II"))
    assert [f.name for f in change.feats] == ["Action Surge II"]


def test_add_level_three_replaces_level_two_in_place():
    held = [_feat("Tough"), _feat("Action Surge II"), _feat("Quick")]
    change = add_feat(held, _feat("Action Surge III"))
    assert [f.name for f in change.feats] == ["Tough", "Action Surge III", "Quick"]


def test_missing_prerequisite_is_reported_not_enforced():
    change = add_feat([], _feat("Action Surge III"))
    assert change.applied is True
    assert change.missing_prerequisite == "Action Surge II"
    assert [f.name for f in change.feats] == ["Action Surge III"]


def test_duplicate_rejected():
    change = add_feat([_feat("Tough")], _feat("tough"))
    assert change.applied is False
    assert change.reason == "tough is already taken"


def test_add_fills_current_uses():
    change = add_feat([], _feat("Second Wind", max_uses=2))
    assert change.feats[0].current_uses == 2


def test_remove_feat():
    change = remove_feat([_feat("Tough"), _feat("Quick")], "TOUGH")
    assert [f.name for f in change.feats] == ["Quick"]
    assert remove_feat([], "Tough").applied is False


def test_slot_usage_counts_category():
    feats = [_feat("A"), _feat("B"), _feat("C", category="character")]
    usage = feat_slot_usage(feats, "archetype", maximum=1)
    assert usage.used == 2
    assert usage.remaining == -1
    assert usage.over_budget is True


# --- Uses ---

def test_use_and_recover_stay_in_range():
    entry = _feat("Second Wind", max_uses=2, current_uses=1)
    assert use_feat(entry).current_uses == 0
    assert use_feat(use_feat(entry)).current_uses == 0
    assert recover_feat_use(entry).current_uses == 2
    assert recover_feat_use(recover_feat_use(entry)).current_uses == 2


def test_clamp_uses():
    assert clamp_uses(_feat("A", max_uses=2, current_uses=5)).current_uses == 2
    assert clamp_uses(_feat("A", max_uses=2, current_uses=-1)).current_uses == 0
    assert clamp_uses(_feat("A", max_uses=2)).current_uses == 2


@pytest.mark.parametrize(
    "period, recovery, expected",
    [
        ("Partial Recovery", "partial", True),
        ("Partial Recovery", "full", True),
        ("Full Recovery", "partial", False),
        ("Full Recovery", "full", True),
        (None, "full", False),
    ],
)
def test_resets_on(period, recovery, expected):
    assert resets_on(period, recovery) is expected


def test_resets_on_unknown_recovery_raises():
    with pytest.raises(ValueError):
        resets_on("Full", "nap")


def test_partial_reset_only_touches_partial_entries():
    feats = [
        _feat("A", max_uses=2, current_uses=0, recovery_period="Partial"),
        _feat("B", max_uses=1, current_uses=0, recovery_period="Full"),
        _feat("C", max_uses=3, current_uses=3, recovery_period="Partial"),
    ]
    out, count = reset_feat_uses(feats, "partial")
    assert [f.current_uses for f in out] == [2, 0, 3]
    assert count == 1


def test_full_reset_counts_only_spent_entries():
    feats = [
        _feat("A", max_uses=2, current_uses=1, recovery_period="Partial"),
        _feat("B", max_uses=1, current_uses=0, recovery_period="Full"),
        _feat("C", max_uses=3, current_uses=3, recovery_period="Full"),
        _feat("D"),
    ]
    out, count = reset_feat_uses(feats, "full")
    assert [f.current_uses for f in out] == [2, 1, 3, None]
    assert count == 2
    assert feats[0].current_uses == 1


# --- Requirements ---

def _build() -> CharacterBuild:
    build = CharacterBuild(level=3)
    build.abilities[Ability.STRENGTH] = 2
    build.skills = [SkillEntry(1, "Athletics", (Ability.STRENGTH,), proficient=True, value=1)]
    build.archetype.martial_proficiency = 1
    return build


def test_all_requirements_met():
    definition = FeatDefinition(
        feat_id=5,
        name="Brawler",
        level_requirement=3,
        ability_requirements=[AbilityRequirement(Ability.STRENGTH, "Strength", 2)],
        skill_requirements=[SkillBonusRequirement("Athletics", 3, skill_id=1)],
        martial_proficiency_requirement=1,
    )
    assert unmet_feat_requirements(definition, _build()) == []


def test_each_unmet_requirement_reported():
    definition = FeatDefinition(
        feat_id=6,
        name="Titan",
        level_requirement=5,
        ability_requirements=[
            AbilityRequirement(Ability.STRENGTH, "Strength", 4),
            AbilityRequirement(None, "Luck", 1),
        ],
        skill_requirements=[SkillBonusRequirement("Athletics", 5, skill_id=1)],
        power_proficiency_requirement=1,
    )
    assert unmet_feat_requirements(definition, _build()) == [
        "Requires level 5",
        "Requires Strength 4",
        "Unknown ability Luck",
        "Requires Athletics +5",
        "Requires power proficiency 1",
    ]


def test_skill_requirement_needs_proficiency():
    catalog = Catalog(skills=[SkillDefinition(2, "Insight", (Ability.ACUITY,))])
    definition = FeatDefinition(
        feat_id=7,
        name="Reader",
        skill_requirements=[
            SkillBonusRequirement("Insight", 0, skill_id=2),
            SkillBonusRequirement("Alchemy", 0),
        ],
    )
    assert unmet_feat_requirements(definition, _build(), catalog) == [
        "Requires proficiency in Insight",
        "Unknown skill Alchemy",
    ]


def test_leveled_prerequisite():
    definition = FeatDefinition(feat_id=8, name="Action Surge III")
    build = _build()
    assert unmet_feat_requirements(definition, build) == ["Requires Action Surge II"]
    build.feats = [_feat("Action Surge II")]
    assert unmet_feat_requirements(definition, build) == []
