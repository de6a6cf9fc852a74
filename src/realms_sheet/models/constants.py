"""Realms abilities, defenses, archetype types, and recovery tags.

Ability and defense indices are fixed; every mapping in the engine is keyed
by these IntEnums rather than by display strings. Name lookups accept the
long names used on the sheet plus the abbreviations found in older records.
"""

from enum import IntEnum


class Ability(IntEnum):
    """The six core abilities, in sheet order."""
    STRENGTH = 0
    VITALITY = 1
    AGILITY = 2
    ACUITY = 3
    INTELLIGENCE = 4
    CHARISMA = 5


class Defense(IntEnum):
    """The six defenses, each linked to exactly one ability."""
    MIGHT = 0
    FORTITUDE = 1
    REFLEX = 2
    DISCERNMENT = 3
    MENTAL_FORTITUDE = 4
    RESOLVE = 5


ABILITY_NAMES: dict[int, str] = {
    0: "Strength",
    1: "Vitality",
    2: "Agility",
    3: "Acuity",
    4: "Intelligence",
    5: "Charisma",
}

DEFENSE_NAMES: dict[int, str] = {
    0: "Might",
    1: "Fortitude",
    2: "Reflex",
    3: "Discernment",
    4: "Mental Fortitude",
    5: "Resolve",
}

ABILITY_INDICES = frozenset(Ability)
DEFENSE_INDICES = frozenset(Defense)

# Linked ability for each defense score.
DEFENSE_ABILITY: dict[int, int] = {
    Defense.MIGHT: Ability.STRENGTH,
    Defense.FORTITUDE: Ability.VITALITY,
    Defense.REFLEX: Ability.AGILITY,
    Defense.DISCERNMENT: Ability.ACUITY,
    Defense.MENTAL_FORTITUDE: Ability.INTELLIGENCE,
    Defense.RESOLVE: Ability.CHARISMA,
}

# Abilities whose attack track draws on martial proficiency.
MARTIAL_ATTACK_ABILITIES: tuple[int, ...] = (
    Ability.STRENGTH,
    Ability.AGILITY,
    Ability.ACUITY,
)

_ABILITY_ALIASES: dict[str, int] = {
    "str": Ability.STRENGTH,
    "vit": Ability.VITALITY,
    "agi": Ability.AGILITY,
    "acu": Ability.ACUITY,
    "int": Ability.INTELLIGENCE,
    "cha": Ability.CHARISMA,
}

_DEFENSE_ALIASES: dict[str, int] = {
    "mentalfortitude": Defense.MENTAL_FORTITUDE,
    "mental_fortitude": Defense.MENTAL_FORTITUDE,
}

# Archetype types
ARCHETYPE_POWER = "power"
ARCHETYPE_MARTIAL = "martial"
ARCHETYPE_POWERED_MARTIAL = "powered-martial"
ARCHETYPE_TYPES: tuple[str, ...] = (
    ARCHETYPE_POWER,
    ARCHETYPE_MARTIAL,
    ARCHETYPE_POWERED_MARTIAL,
)

# Feat categories
FEAT_CATEGORIES: tuple[str, ...] = ("archetype", "character", "state")

# Recovery periods (matched case-insensitively as substrings)
RECOVERY_FULL = "full"
RECOVERY_PARTIAL = "partial"

ROMAN_NUMERALS: tuple[str, ...] = (
    "I", "II", "III", "IV", "V", "VI", "VII", "VIII", "IX", "X",
)
ROMAN_TO_LEVEL: dict[str, int] = {numeral: i + 1 for i, numeral in enumerate(ROMAN_NUMERALS)}

# Creature item kinds
ITEM_ARMAMENT = "armament"
ITEM_POWER = "power"
ITEM_TECHNIQUE = "technique"
ITEM_KINDS: tuple[str, ...] = (ITEM_ARMAMENT, ITEM_POWER, ITEM_TECHNIQUE)

# Creature sizes and their speed modifier
CREATURE_SIZE_MODIFIERS: dict[str, int] = {
    "tiny": -2,
    "small": -1,
    "medium": 0,
    "large": 1,
    "huge": 2,
    "gargantuan": 3,
}

# Codex ids of the creature feats priced by the defensive lists
CREATURE_FEAT_RESISTANCE = 2
CREATURE_FEAT_IMMUNITY = 3
CREATURE_FEAT_WEAKNESS = 4
CREATURE_FEAT_CONDITION_IMMUNITY = 34


def ability_from_name(name: object) -> Ability | None:
    """Resolve an ability from its display name, enum name, or abbreviation."""
    if isinstance(name, Ability):
        return name
    if isinstance(name, int) and not isinstance(name, bool):
        return Ability(name) if name in ABILITY_NAMES else None
    if not isinstance(name, str):
        return None
    key = name.strip().lower()
    if not key:
        return None
    for idx, label in ABILITY_NAMES.items():
        if label.lower() == key:
            return Ability(idx)
    alias = _ABILITY_ALIASES.get(key)
    return Ability(alias) if alias is not None else None


def defense_from_name(name: object) -> Defense | None:
    """Resolve a defense from its display name or a camelCase/snake_case key."""
    if isinstance(name, Defense):
        return name
    if not isinstance(name, str):
        return None
    key = name.strip().lower().replace(" ", "")
    if key in _DEFENSE_ALIASES:
        return Defense(_DEFENSE_ALIASES[key])
    for idx, label in DEFENSE_NAMES.items():
        if label.lower().replace(" ", "") == key:
            return Defense(idx)
    return None
