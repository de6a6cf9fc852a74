"""Configuration knobs for the point-buy engine.

Defaults match the published Realms rules. Home-brew tables may override
the ability bounds, the cost threshold, or the recovery durations.
"""

from dataclasses import dataclass


@dataclass(slots=True)
class BuildConfig:
    """Tuneable parameters that aren't stored in the core-rules table."""

    ability_min: int = -2                 # Hard floor for any single ability
    max_negative_sum: int = -3            # Hard floor for the sum of negative abilities
    ability_cost_threshold: int = 4       # Raising from this value (or above) costs 2
    ability_high_cost: int = 2
    defense_increase_cost: int = 2        # Skill points per +1 defense bonus
    skill_proficiency_cost: int = 1       # Skill points to gain base-skill proficiency
    partial_recovery_hours: tuple[int, ...] = (2, 4, 6)
    hours_per_quarter: int = 2
