"""
Module: budget_kernel.selectors.ledger_selector
Responsibility: Read-only ledger entry queries: entries of a user within a
    date range (snapshot aggregation) and the two idempotency lookups used
    by charge application.
Architecture position: Kernel > Selectors.  May import from models/ and
    selectors/base.py.

Invariants enforced:
    - Date ranges are inclusive on both ends.
    - Results are ordered by (entry_date, created_at) so aggregation and
      listing are deterministic.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import select

from budget_kernel.domain.categories import TransactionCategory
from budget_kernel.domain.dtos import LedgerEntryInfo
from budget_kernel.models.ledger_entry import LedgerEntry
from budget_kernel.selectors.base import BaseSelector


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class LedgerSelector(BaseSelector[LedgerEntry]):
    """
    Selector for ledger entries.

    Contract:
        Every query is scoped to one user; the kernel never reads another
        user's entries.
    """

    def entries_between(
        self,
        user_id: UUID,
        start: date,
        end: date,
    ) -> list[LedgerEntryInfo]:
        """All entries of ``user_id`` dated within [start, end]."""
        rows = self.session.scalars(
            select(LedgerEntry)
            .where(
                LedgerEntry.user_id == user_id,
                LedgerEntry.entry_date >= start,
                LedgerEntry.entry_date <= end,
            )
            .order_by(LedgerEntry.entry_date, LedgerEntry.created_at)
        ).all()
        return [LedgerEntryInfo.from_model(e) for e in rows]

    def find_charge_entry(
        self,
        charge_id: UUID,
        cycle_label: str,
    ) -> LedgerEntryInfo | None:
        """Entry written for (charge_id, cycle_label), if any."""
        entry = self.session.scalars(
            select(LedgerEntry).where(
                LedgerEntry.charge_id == charge_id,
                LedgerEntry.cycle_label == cycle_label,
            )
        ).first()
        return LedgerEntryInfo.from_model(entry) if entry is not None else None

    def find_matching_description(
        self,
        user_id: UUID,
        category: TransactionCategory | str,
        name_fragment: str,
        start: date,
        end: date,
    ) -> LedgerEntryInfo | None:
        """
        First entry of the user in ``category`` dated within [start, end]
        whose description contains ``name_fragment``.

        Matches entries recorded before charge ids were stored, and manual
        entries the user typed for a charge.
        """
        pattern = f"%{_escape_like(name_fragment)}%"
        entry = self.session.scalars(
            select(LedgerEntry)
            .where(
                LedgerEntry.user_id == user_id,
                LedgerEntry.category == TransactionCategory(category).value,
                LedgerEntry.description.like(pattern, escape="\\"),
                LedgerEntry.entry_date >= start,
                LedgerEntry.entry_date <= end,
            )
            .order_by(LedgerEntry.entry_date)
            .limit(1)
        ).first()
        return LedgerEntryInfo.from_model(entry) if entry is not None else None
