"""
Module: budget_kernel.models.account
Responsibility: ORM persistence for a user's bank accounts and their running
    balances.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - balance is mutated only by LedgerGateway.adjust_balance(), never
      recomputed from entries by the core.
    - version is SQLAlchemy's version_id_col: an UPDATE against a stale
      version raises StaleDataError, surfaced as OptimisticLockError.
    - Accounts are soft-deactivated (is_active=False), never hard-deleted,
      because historical ledger entries and snapshots reference them.

Failure modes:
    - AccountNotFoundError when a posting targets a missing, inactive, or
      foreign account.
"""

from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from budget_kernel.db.base import TrackedBase


class AccountType(str, Enum):
    """Kinds of accounts a user holds."""

    CHECKING = "checking"
    SAVINGS = "savings"
    INVESTMENT = "investment"
    OTHER = "other"


class Account(TrackedBase):
    """A bank account with a running balance."""

    __tablename__ = "accounts"

    __table_args__ = (
        Index("idx_account_user_active", "user_id", "is_active"),
        Index("idx_account_user_type", "user_id", "account_type"),
    )

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    account_type: Mapped[AccountType] = mapped_column(
        String(20),
        default=AccountType.CHECKING,
        nullable=False,
    )

    balance: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        default=Decimal("0"),
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Account that receives the salary and carries fixed charges by default
    is_primary_for_charges: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<Account {self.name} {self.account_type} balance={self.balance}>"
