"""
Aggregation -- bucket totals of one cycle's ledger entries.

Pure counterpart of the snapshot freeze: the service fetches entries and
account balances, this module sums them.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from budget_kernel.db.types import ZERO, round_money
from budget_kernel.domain.categories import SnapshotBucket, classify
from budget_kernel.domain.dtos import LedgerEntryInfo


@dataclass(frozen=True)
class CycleTotals:
    """
    Bucket totals for one cycle.

    All totals are non-negative and rounded to cents.  ``entry_count``
    counts every entry in the cycle, classified or not.
    """

    revenue: Decimal = ZERO
    fixed_charges: Decimal = ZERO
    variable_expenses: Decimal = ZERO
    savings: Decimal = ZERO
    entry_count: int = 0
    fixed_charge_count: int = 0
    variable_expense_count: int = 0


def aggregate_entries(entries: Iterable[LedgerEntryInfo]) -> CycleTotals:
    """
    Classify and sum ledger entries.

    Example:
        Salary +3000, Rent -800, Rent refund +50 (fixed, credit)
        -> revenue 3000.00, fixed_charges 800.00, fixed_charge_count 1
    """
    sums: dict[SnapshotBucket, Decimal] = {bucket: ZERO for bucket in SnapshotBucket}
    counts: dict[SnapshotBucket, int] = {bucket: 0 for bucket in SnapshotBucket}
    total = 0

    for entry in entries:
        total += 1
        classified = classify(entry.category, entry.amount)
        if classified is None:
            continue
        bucket, contribution = classified
        sums[bucket] += contribution
        counts[bucket] += 1

    return CycleTotals(
        revenue=round_money(sums[SnapshotBucket.REVENUE]),
        fixed_charges=round_money(sums[SnapshotBucket.FIXED_CHARGES]),
        variable_expenses=round_money(sums[SnapshotBucket.VARIABLE_EXPENSES]),
        savings=round_money(sums[SnapshotBucket.SAVINGS]),
        entry_count=total,
        fixed_charge_count=counts[SnapshotBucket.FIXED_CHARGES],
        variable_expense_count=counts[SnapshotBucket.VARIABLE_EXPENSES],
    )
