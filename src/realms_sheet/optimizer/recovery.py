"""Full and partial recovery, with the quarter allocation optimizer.

A partial rest grants one quarter per 2 hours. Each quarter restores a
quarter of either pool's maximum (rounded up), never more than the pool is
missing. Automatic allocation tries every split of the quarters and keeps
the one that recovers the largest combined fraction of both pools; ties go
to the most even split, then to the first split found. Scores are compared
as exact fractions.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from fractions import Fraction

from realms_sheet.engine.build_config import BuildConfig
from realms_sheet.engine.feats import reset_feat_uses
from realms_sheet.models.character import FeatEntry
from realms_sheet.models.constants import RECOVERY_FULL, RECOVERY_PARTIAL
from realms_sheet.optimizer.specs import ALLOCATION_AUTOMATIC, ALLOCATION_MANUAL, Pool, RecoveryRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class QuarterSplit:
    health: int
    energy: int


@dataclass(slots=True)
class RecoveryResult:
    """Outcome of one rest. Pools and entries are new objects."""

    mode: str
    health: Pool
    energy: Pool
    health_restored: int = 0
    energy_restored: int = 0
    quarters: int = 0
    split: QuarterSplit | None = None
    feats: list[FeatEntry] = field(default_factory=list)
    traits: list[FeatEntry] = field(default_factory=list)
    feats_reset: int = 0
    traits_reset: int = 0


def quarter_value(maximum: int) -> int:
    """Amount one quarter restores: ceil(max / 4)."""
    return math.ceil(max(0, maximum) / 4)


def quarters_for_hours(hours: int, config: BuildConfig | None = None) -> int:
    cfg = config or BuildConfig()
    if hours not in cfg.partial_recovery_hours:
        raise ValueError(
            f"Partial recovery lasts one of {cfg.partial_recovery_hours} hours, got {hours!r}"
        )
    return hours // cfg.hours_per_quarter


def restored(quarters: int, pool: Pool) -> int:
    return min(quarters * quarter_value(pool.maximum), pool.deficit)


def _fraction(amount: int, maximum: int) -> Fraction:
    if maximum <= 0:
        return Fraction(0)
    return min(Fraction(1), Fraction(amount, maximum))


def auto_allocate_quarters(quarters: int, health: Pool, energy: Pool) -> QuarterSplit:
    """Best split of *quarters* between the two pools."""
    if health.deficit == 0 and energy.deficit == 0:
        half = quarters // 2
        return QuarterSplit(health=half, energy=quarters - half)
    if health.deficit == 0:
        return QuarterSplit(health=0, energy=quarters)
    if energy.deficit == 0:
        return QuarterSplit(health=quarters, energy=0)

    best: QuarterSplit | None = None
    best_score = Fraction(-1)
    for hp_q in range(quarters + 1):
        en_q = quarters - hp_q
        score = _fraction(restored(hp_q, health), health.maximum) + _fraction(
            restored(en_q, energy), energy.maximum
        )
        if score > best_score:
            best, best_score = QuarterSplit(hp_q, en_q), score
        elif score == best_score and best is not None:
            if abs(hp_q - en_q) < abs(best.health - best.energy):
                best = QuarterSplit(hp_q, en_q)

    logger.debug("auto allocation of %d quarters: %s (score %s)", quarters, best, best_score)
    return best


def manual_split(quarters: int, health_quarters: int | None) -> QuarterSplit:
    if health_quarters is None:
        health_quarters = math.ceil(quarters / 2)
    hp_q = max(0, min(quarters, int(health_quarters)))
    return QuarterSplit(health=hp_q, energy=quarters - hp_q)


def full_recovery(
    health: Pool,
    energy: Pool,
    feats: Sequence[FeatEntry] = (),
    traits: Sequence[FeatEntry] = (),
) -> RecoveryResult:
    new_feats, feats_reset = reset_feat_uses(feats, RECOVERY_FULL)
    new_traits, traits_reset = reset_feat_uses(traits, RECOVERY_FULL)
    return RecoveryResult(
        mode=RECOVERY_FULL,
        health=Pool(health.maximum, health.maximum),
        energy=Pool(energy.maximum, energy.maximum),
        health_restored=health.deficit,
        energy_restored=energy.deficit,
        feats=new_feats,
        traits=new_traits,
        feats_reset=feats_reset,
        traits_reset=traits_reset,
    )


def partial_recovery(
    request: RecoveryRequest,
    feats: Sequence[FeatEntry] = (),
    traits: Sequence[FeatEntry] = (),
    config: BuildConfig | None = None,
) -> RecoveryResult:
    quarters = quarters_for_hours(request.hours, config)
    if request.allocation == ALLOCATION_AUTOMATIC:
        split = auto_allocate_quarters(quarters, request.health, request.energy)
    elif request.allocation == ALLOCATION_MANUAL:
        split = manual_split(quarters, request.health_quarters)
    else:
        raise ValueError(f"Unknown allocation mode: {request.allocation!r}")

    hp = restored(split.health, request.health)
    en = restored(split.energy, request.energy)
    new_feats, feats_reset = reset_feat_uses(feats, RECOVERY_PARTIAL)
    new_traits, traits_reset = reset_feat_uses(traits, RECOVERY_PARTIAL)
    return RecoveryResult(
        mode=RECOVERY_PARTIAL,
        health=Pool(request.health.current + hp, request.health.maximum),
        energy=Pool(request.energy.current + en, request.energy.maximum),
        health_restored=hp,
        energy_restored=en,
        quarters=quarters,
        split=split,
        feats=new_feats,
        traits=new_traits,
        feats_reset=feats_reset,
        traits_reset=traits_reset,
    )


def recover(
    request: RecoveryRequest,
    feats: Sequence[FeatEntry] = (),
    traits: Sequence[FeatEntry] = (),
    config: BuildConfig | None = None,
) -> RecoveryResult:
    """Run the rest described by *request*."""
    if request.mode == RECOVERY_FULL:
        return full_recovery(request.health, request.energy, feats, traits)
    if request.mode == RECOVERY_PARTIAL:
        return partial_recovery(request, feats, traits, config)
    raise ValueError(f"Unknown recovery mode: {request.mode!r}")
