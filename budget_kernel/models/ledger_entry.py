"""
Module: budget_kernel.models.ledger_entry
Responsibility: ORM persistence for signed ledger entries (transactions).
Architecture position: Kernel > Models.  May import from db/base.py and
    domain enums only.

Invariants enforced:
    - Append-only from the kernel's perspective: the engine creates
      entries and never edits or deletes the ones it wrote.
    - Signed amount: negative is a debit, positive a credit.
    - UNIQUE (charge_id, cycle_label) backs the charge idempotency key.
      Manual entries leave both columns NULL and are never constrained.

Failure modes:
    - IntegrityError on uq_ledger_entry_charge_cycle when a concurrent pass
      already applied the same charge for the same cycle.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from budget_kernel.db.base import TrackedBase
from budget_kernel.domain.categories import TransactionCategory


class LedgerEntry(TrackedBase):
    """A single signed monetary record affecting one account's balance."""

    __tablename__ = "ledger_entries"

    __table_args__ = (
        UniqueConstraint(
            "charge_id",
            "cycle_label",
            name="uq_ledger_entry_charge_cycle",
        ),
        Index("idx_ledger_entry_user_date", "user_id", "entry_date"),
        Index("idx_ledger_entry_user_category", "user_id", "category"),
    )

    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id"), nullable=False)

    account_id: Mapped[UUID] = mapped_column(
        ForeignKey("accounts.id"),
        nullable=False,
    )

    amount: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    category: Mapped[TransactionCategory] = mapped_column(String(40), nullable=False)

    description: Mapped[str] = mapped_column(String(255), nullable=False)

    entry_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Idempotency key columns, set only for entries written by charge application
    charge_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("recurring_charges.id"),
        nullable=True,
    )

    cycle_label: Mapped[str | None] = mapped_column(String(7), nullable=True)

    def __repr__(self) -> str:
        return f"<LedgerEntry {self.entry_date} {self.amount} {self.category}>"
