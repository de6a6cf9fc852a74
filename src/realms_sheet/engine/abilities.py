"""Ability score pricing and bounds.

Raising a score costs 1 point until the score reaches the cost threshold
(4 by default); from there each further point costs 2. Decreasing refunds
whatever the matching increase cost. Two hard constraints apply to
decreases: no score below -2, and the negative scores together may not sum
below -3. The point total itself is a soft budget.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from realms_sheet.engine.build_config import BuildConfig
from realms_sheet.models.constants import ABILITY_NAMES

logger = logging.getLogger(__name__)

# (max level, max ability score) steps; anything above the last step is 9.
_MAX_ABILITY_STEPS: tuple[tuple[int, int], ...] = (
    (1, 3),
    (3, 4),
    (6, 5),
    (9, 6),
    (12, 7),
    (15, 8),
)
_MAX_ABILITY_CEILING = 9


@dataclass(frozen=True, slots=True)
class AbilityCheck:
    """Outcome of an increase/decrease check.

    `points` is the cost of an increase or the refund of a decrease.
    `over_budget` is advisory: the change is still allowed.
    """

    allowed: bool
    points: int
    reason: str | None = None
    over_budget: bool = False


def ability_increase_cost(current_value: int, config: BuildConfig | None = None) -> int:
    """Points needed to raise a score from *current_value* by one."""
    cfg = config or BuildConfig()
    if current_value >= cfg.ability_cost_threshold:
        return cfg.ability_high_cost
    return 1


def ability_decrease_refund(current_value: int, config: BuildConfig | None = None) -> int:
    """Points returned when lowering a score from *current_value* by one."""
    cfg = config or BuildConfig()
    if current_value > cfg.ability_cost_threshold:
        return cfg.ability_high_cost
    return 1


def max_ability(level: int) -> int:
    """Highest score any ability may reach at *level*."""
    for max_level, cap in _MAX_ABILITY_STEPS:
        if level <= max_level:
            return cap
    return _MAX_ABILITY_CEILING


def can_increase(value: int, level: int) -> bool:
    return value < max_ability(level)


def negative_ability_sum(abilities: Mapping[int, int]) -> int:
    """Sum of all negative scores (0 or less)."""
    return sum(v for v in abilities.values() if v < 0)


def ability_points_spent(
    abilities: Mapping[int, int],
    config: BuildConfig | None = None,
) -> int:
    """Total points spent walking every score up (or down) from 0.

    Negative scores refund points, so a build with -1 Charisma has one more
    point to spend elsewhere.
    """
    total = 0
    for value in abilities.values():
        if value > 0:
            for v in range(0, value):
                total += ability_increase_cost(v, config)
        elif value < 0:
            for v in range(0, value, -1):
                total -= ability_decrease_refund(v, config)
    return total


def check_increase(
    abilities: Mapping[int, int],
    ability: int,
    level: int,
    available_points: int | None = None,
    config: BuildConfig | None = None,
) -> AbilityCheck:
    """Check raising *ability* by one.

    The level cap is enforced; running out of points is only flagged.
    """
    current = int(abilities.get(ability, 0))
    cost = ability_increase_cost(current, config)
    cap = max_ability(level)
    if current >= cap:
        return AbilityCheck(
            allowed=False,
            points=cost,
            reason=f"Maximum ability score at level {level} is {cap}",
        )
    over = available_points is not None and cost > available_points
    return AbilityCheck(allowed=True, points=cost, over_budget=over)


def can_decrease(
    abilities: Mapping[int, int],
    ability: int,
    config: BuildConfig | None = None,
) -> AbilityCheck:
    """Check lowering *ability* by one against the hard constraints."""
    cfg = config or BuildConfig()
    current = int(abilities.get(ability, 0))
    new_value = current - 1

    if new_value < cfg.ability_min:
        logger.debug("decrease %s rejected: %d below minimum", _name(ability), new_value)
        return AbilityCheck(
            allowed=False, points=0, reason=f"Cannot go below {cfg.ability_min}"
        )

    if new_value < 0:
        hypothetical = dict(abilities)
        hypothetical[ability] = new_value
        if negative_ability_sum(hypothetical) < cfg.max_negative_sum:
            logger.debug("decrease %s rejected: negative sum", _name(ability))
            return AbilityCheck(
                allowed=False,
                points=0,
                reason=f"Negative sum cannot exceed {cfg.max_negative_sum}",
            )

    return AbilityCheck(allowed=True, points=ability_decrease_refund(current, cfg))


def ability_violations(
    abilities: Mapping[int, int],
    level: int,
    config: BuildConfig | None = None,
) -> list[str]:
    """Describe every hard-constraint violation in a loaded ability map."""
    cfg = config or BuildConfig()
    problems: list[str] = []
    cap = max_ability(level)
    for ab, value in sorted(abilities.items()):
        if value < cfg.ability_min:
            problems.append(f"{_name(ab)} {value} is below {cfg.ability_min}")
        if value > cap:
            problems.append(f"{_name(ab)} {value} exceeds the level {level} maximum of {cap}")
    neg = negative_ability_sum(abilities)
    if neg < cfg.max_negative_sum:
        problems.append(f"Negative abilities sum to {neg} (limit {cfg.max_negative_sum})")
    return problems


def _name(ability: int) -> str:
    return ABILITY_NAMES.get(int(ability), str(ability))
