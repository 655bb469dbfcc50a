"""Pure domain core: clock, cycles, recurrence, categories, DTOs."""

from budget_kernel.domain.categories import (
    SnapshotBucket,
    TransactionCategory,
    classify,
)
from budget_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from budget_kernel.domain.cycle import (
    BudgetCycle,
    compute_cycle,
    compute_due_date,
    cycle_for_label,
    format_cycle_label,
    parse_cycle_label,
    previous_cycle_label,
)
from budget_kernel.domain.recurrence import Frequency, is_due_this_cycle

__all__ = [
    "BudgetCycle",
    "Clock",
    "DeterministicClock",
    "Frequency",
    "SnapshotBucket",
    "SystemClock",
    "TransactionCategory",
    "classify",
    "compute_cycle",
    "compute_due_date",
    "cycle_for_label",
    "format_cycle_label",
    "is_due_this_cycle",
    "parse_cycle_label",
    "previous_cycle_label",
]
