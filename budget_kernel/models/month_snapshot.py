"""
Module: budget_kernel.models.month_snapshot
Responsibility: ORM persistence for frozen per-cycle aggregates.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - At most one snapshot per (user_id, cycle_label)
      (uq_month_snapshot_user_cycle).  A later freeze replaces the row's
      figures in place.
    - Budget targets reflect the user's split at freeze time, not the
      split that was active during the cycle.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from budget_kernel.db.base import TrackedBase


class MonthSnapshot(TrackedBase):
    """Frozen totals of one user's budget cycle."""

    __tablename__ = "month_snapshots"

    __table_args__ = (
        UniqueConstraint("user_id", "cycle_label", name="uq_month_snapshot_user_cycle"),
    )

    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id"), nullable=False)

    cycle_label: Mapped[str] = mapped_column(String(7), nullable=False)

    cycle_start: Mapped[date] = mapped_column(Date, nullable=False)
    cycle_end: Mapped[date] = mapped_column(Date, nullable=False)

    total_revenue: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    total_fixed_charges: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    total_variable_expenses: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        nullable=False,
    )
    total_savings: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    # Sum of the user's active current accounts at freeze time
    current_account_balance: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        nullable=False,
    )

    monthly_salary: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    budget_fixed_charges: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    budget_variable_expenses: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        nullable=False,
    )

    entry_count: Mapped[int] = mapped_column(Integer, nullable=False)
    fixed_charge_count: Mapped[int] = mapped_column(Integer, nullable=False)
    variable_expense_count: Mapped[int] = mapped_column(Integer, nullable=False)

    frozen_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<MonthSnapshot {self.cycle_label} user={self.user_id}>"
