"""
Module: budget_kernel.models.validated_salary
Responsibility: Records that a user confirmed receipt of their salary for a
    cycle.  The salary ledger entry itself lives in ledger_entries.
Architecture position: Kernel > Models.

Invariants enforced:
    - One row per (user_id, cycle_label); re-validating updates it.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from budget_kernel.db.base import TrackedBase


class ValidatedSalary(TrackedBase):
    __tablename__ = "validated_salaries"

    __table_args__ = (
        UniqueConstraint("user_id", "cycle_label", name="uq_validated_salary_user_cycle"),
    )

    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id"), nullable=False)

    cycle_label: Mapped[str] = mapped_column(String(7), nullable=False)

    amount: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    received_on: Mapped[date] = mapped_column(Date, nullable=False)

    ledger_entry_id: Mapped[UUID] = mapped_column(
        ForeignKey("ledger_entries.id"),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<ValidatedSalary {self.cycle_label} {self.amount}>"
