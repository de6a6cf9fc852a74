"""Recovery planning interfaces."""

from realms_sheet.optimizer.recovery import (
    QuarterSplit,
    RecoveryResult,
    auto_allocate_quarters,
    full_recovery,
    partial_recovery,
    recover,
)
from realms_sheet.optimizer.specs import Pool, RecoveryRequest

__all__ = [
    "Pool",
    "QuarterSplit",
    "RecoveryRequest",
    "RecoveryResult",
    "auto_allocate_quarters",
    "full_recovery",
    "partial_recovery",
    "recover",
]
