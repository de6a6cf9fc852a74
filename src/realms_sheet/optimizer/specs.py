"""Input specs for recovery planning."""

from __future__ import annotations

from dataclasses import dataclass

from realms_sheet.models.constants import RECOVERY_PARTIAL

ALLOCATION_AUTOMATIC = "automatic"
ALLOCATION_MANUAL = "manual"


@dataclass(slots=True)
class Pool:
    """Current and maximum value of a health or energy pool."""

    current: int
    maximum: int

    @property
    def deficit(self) -> int:
        return max(0, self.maximum - self.current)


@dataclass(slots=True)
class RecoveryRequest:
    """A single rest the character takes.

    `mode`:
      - "full": both pools to max, every limited-use entry resets
      - "partial": `hours` (2, 4 or 6) of rest; each 2 hours is one quarter
        restoring ceil(max / 4) of health or energy

    `allocation` applies to partial rests only:
      - "automatic": quarters split to recover the largest share of both pools
      - "manual": `health_quarters` go to health, the rest to energy; None
        means an even split rounded toward health
    """

    health: Pool
    energy: Pool
    mode: str = RECOVERY_PARTIAL
    hours: int = 4
    allocation: str = ALLOCATION_AUTOMATIC
    health_quarters: int | None = None
