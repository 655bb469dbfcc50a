"""
Module: budget_kernel.models.user
Responsibility: ORM persistence for a ledger owner and their cycle/budget
    configuration.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - pay_day is between 1 and 31 (ck_user_pay_day).  Months shorter than
      the pay day clamp it at computation time; nothing is stored clamped.
    - The fixed/variable/savings split summing to 100 is enforced by the
      caller editing it, not by this model.

Failure modes:
    - UserNotFoundError when an operation references a missing user id.
"""

from decimal import Decimal

from sqlalchemy import CheckConstraint, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from budget_kernel.db.base import TrackedBase
from budget_kernel.domain.budget_split import (
    DEFAULT_FIXED_CHARGES_PCT,
    DEFAULT_SAVINGS_PCT,
    DEFAULT_VARIABLE_EXPENSES_PCT,
)


class User(TrackedBase):
    """
    The owner of accounts, charges, ledger entries and snapshots.

    Every core operation receives an explicit user id; there is no
    implicit current user.
    """

    __tablename__ = "users"

    __table_args__ = (
        CheckConstraint("pay_day BETWEEN 1 AND 31", name="ck_user_pay_day"),
    )

    display_name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Day of month the salary arrives (1-31)
    pay_day: Mapped[int] = mapped_column(Integer, nullable=False)

    monthly_net_salary: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        default=Decimal("0"),
        nullable=False,
    )

    # Used by dashboards for the current-account gauge
    overdraft_allowance: Mapped[Decimal | None] = mapped_column(
        Numeric(38, 9),
        nullable=True,
    )

    fixed_charges_pct: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        default=DEFAULT_FIXED_CHARGES_PCT,
        nullable=False,
    )

    variable_expenses_pct: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        default=DEFAULT_VARIABLE_EXPENSES_PCT,
        nullable=False,
    )

    savings_pct: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        default=DEFAULT_SAVINGS_PCT,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<User {self.display_name} pay_day={self.pay_day}>"
