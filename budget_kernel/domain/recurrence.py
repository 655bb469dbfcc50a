"""
Recurrence -- is a recurring charge due in a given cycle at all?

Responsibility:
    Lifetime gate (active flag, start date, optional end date) and
    frequency gate (every 1, 2, 3, 6 or 12 cycle-months counted from the
    charge's start month).  Independent of the day-of-month placement done
    by ``domain.cycle.compute_due_date``.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Accepts
    ``ChargeInfo`` DTOs, never ORM entities.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from budget_kernel.domain.cycle import BudgetCycle
    from budget_kernel.domain.dtos import ChargeInfo


class Frequency(str, Enum):
    """How often, in cycle-months, a recurring charge falls due."""

    MONTHLY = "monthly"
    BIMONTHLY = "bimonthly"
    QUARTERLY = "quarterly"
    SEMIANNUAL = "semiannual"
    ANNUAL = "annual"

    @property
    def interval_months(self) -> int:
        return _INTERVALS[self]


_INTERVALS: dict[Frequency, int] = {
    Frequency.MONTHLY: 1,
    Frequency.BIMONTHLY: 2,
    Frequency.QUARTERLY: 3,
    Frequency.SEMIANNUAL: 6,
    Frequency.ANNUAL: 12,
}


def months_between(start: date, cycle_start: date) -> int:
    """Whole calendar months from ``start``'s month to ``cycle_start``'s month."""
    return (cycle_start.year - start.year) * 12 + (cycle_start.month - start.month)


def is_within_lifetime(charge: ChargeInfo, cycle: BudgetCycle) -> bool:
    """
    Active, started on or before the cycle end, not ended before the cycle start.

    The gate compares the charge lifetime with the whole cycle, not with the
    due date: a charge starting on Feb 10 with day 5 is due on Feb 5 in a
    Jan 25 .. Feb 24 cycle, before its own start date.  The same holds for a
    due date after ``end_date``.
    """
    if not charge.is_active:
        return False
    if charge.start_date > cycle.end:
        return False
    return charge.end_date is None or charge.end_date >= cycle.start


def matches_frequency(charge: ChargeInfo, cycle_start: date) -> bool:
    """Frequency gate: monthsSinceStart must be a multiple of the interval."""
    interval = Frequency(charge.frequency).interval_months
    if interval == 1:
        return True
    return months_between(charge.start_date, cycle_start) % interval == 0


def is_due_this_cycle(charge: ChargeInfo, cycle: BudgetCycle) -> bool:
    """Both the lifetime gate and the frequency gate must pass."""
    return is_within_lifetime(charge, cycle) and matches_frequency(charge, cycle.start)
