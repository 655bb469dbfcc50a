"""
Module: budget_kernel.models.recurring_charge
Responsibility: ORM persistence for user-defined recurring fixed charges.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain enums only.

Invariants enforced:
    - amount > 0 (ck_charge_amount_positive); the ledger entry written for
      the charge carries the negated amount.
    - day_of_month between 1 and 31 (ck_charge_day_of_month).
    - Charges are soft-deactivated once used; historical entries keep
      referencing them through charge_id.
    - version guards concurrent edits (version_id_col).
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from budget_kernel.db.base import TrackedBase
from budget_kernel.domain.categories import TransactionCategory
from budget_kernel.domain.recurrence import Frequency


class RecurringCharge(TrackedBase):
    """
    A fixed expense debited on a day of month at a given frequency.

    The frequency is counted in cycle-months from the start date's month.
    """

    __tablename__ = "recurring_charges"

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_charge_amount_positive"),
        CheckConstraint(
            "day_of_month BETWEEN 1 AND 31",
            name="ck_charge_day_of_month",
        ),
        Index("idx_charge_user_active", "user_id", "is_active"),
    )

    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id"), nullable=False)

    account_id: Mapped[UUID] = mapped_column(
        ForeignKey("accounts.id"),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    category: Mapped[TransactionCategory] = mapped_column(String(40), nullable=False)

    amount: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    day_of_month: Mapped[int] = mapped_column(Integer, nullable=False)

    frequency: Mapped[Frequency] = mapped_column(
        String(20),
        default=Frequency.MONTHLY,
        nullable=False,
    )

    start_date: Mapped[date] = mapped_column(Date, nullable=False)

    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"<RecurringCharge {self.name} {self.amount} "
            f"day={self.day_of_month} {self.frequency}>"
        )
