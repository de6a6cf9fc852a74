"""Core rules wrapper with typed accessors.

The base formulas (base health, base defense, pool sizes, training-point
bases) are owned by the core-rules table, not by this engine. This module
provides a thin interface over that table. Every accessor takes a default so
the engine works without a rules source; the published Realms values are
available via CoreRules.defaults().
"""

from collections.abc import Mapping
from dataclasses import dataclass, field


# Published Realms defaults for every rule value the formulas read.
_REALMS_DEFAULTS: dict[str, int | float] = {
    # Combat: base + ability
    "base_defense": 10,
    "base_speed": 6,
    "base_evasion": 10,
    "base_power_potency": 10,
    # Health: base + vitality * level + allocated points
    "base_health": 8,
    # Health-energy pool: base + per_level * (level - 1)
    "player_base_hit_energy": 18,
    "creature_base_hit_energy": 26,
    "hit_energy_per_level": 12,
    # Ability points: base + per_3_levels * floor((level - 1) / 3)
    "base_ability_points": 7,
    "ability_points_per_3_levels": 1,
    # Skill points
    "skill_points_per_level": 3,
    "creature_base_skill_points": 5,
    "creature_skill_points_per_level": 3,
    # Proficiency: base + per_5_levels * floor(level / 5)
    "base_proficiency": 2,
    "proficiency_per_5_levels": 1,
    # Training points
    "player_base_training_points": 22,
    "player_tp_per_level": 2,
    "creature_base_training_points": 9,
    "creature_tp_per_level": 1,
    "creature_sub_level_training_points": 22,
    # Creature feat points: base + martial + (level - 1)
    "creature_base_feat_points": 1.5,
    # Creature currency: base * growth ** (level - 1)
    "creature_base_currency": 200,
    "creature_currency_growth": 1.45,
}


@dataclass
class CoreRules:
    """Typed accessor over core-rules values.

    Use from_mapping() to load values from a stored rules table, or
    defaults() to get the published values.
    """

    _values: dict[str, int | float | str] = field(default_factory=dict)

    def get_float(self, key: str, default: float) -> float:
        """Get a float rule value, falling back to the provided default."""
        val = self._values.get(key)
        if val is None:
            return default
        try:
            return float(val)
        except (TypeError, ValueError):
            return default

    def get_int(self, key: str, default: int) -> int:
        """Get an integer rule value, falling back to the provided default."""
        val = self._values.get(key)
        if val is None:
            return default
        try:
            return int(val)
        except (TypeError, ValueError):
            return default

    @classmethod
    def from_mapping(cls, values: Mapping[str, object]) -> "CoreRules":
        """Overlay stored rule values on top of the defaults.

        Nested sections (``{"COMBAT": {"baseDefense": 10}}``) are flattened,
        and camelCase keys are converted to the snake_case names used here.
        """
        merged: dict[str, int | float | str] = dict(_REALMS_DEFAULTS)
        for key, value in _flatten(values):
            if isinstance(value, (int, float, str)) and not isinstance(value, bool):
                merged[key] = value
        return cls(_values=merged)

    @classmethod
    def defaults(cls) -> "CoreRules":
        """Return the published Realms defaults."""
        return cls(_values=dict(_REALMS_DEFAULTS))


def _flatten(values: Mapping[str, object]):
    for key, value in values.items():
        if isinstance(value, Mapping):
            yield from _flatten(value)
        else:
            yield _snake_case(str(key)), value


def _snake_case(key: str) -> str:
    out: list[str] = []
    for ch in key:
        if ch.isupper() and out:
            out.append("_")
        out.append(ch.lower())
    return "".join(out)
