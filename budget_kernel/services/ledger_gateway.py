"""
LedgerGateway -- append-only entries and mutable account balances.

Responsibility:
    The only code that writes ledger entries or changes an account
    balance.  The charge engine and the salary service go through it.

Architecture position:
    Kernel > Services -- imperative shell, flush-only.

Invariants enforced:
    - An entry and its balance adjustment are flushed in the same
      transaction by ``post()``; a caller-held savepoint makes the pair
      atomic.
    - Balance updates lock the account row (FOR UPDATE on PostgreSQL) and
      are version-checked; a stale version raises OptimisticLockError.

Failure modes:
    - AccountNotFoundError: account missing, inactive, or foreign.
    - OptimisticLockError: account row changed under us.
    - IntegrityError propagates from ``append_entry`` when the
      (charge_id, cycle_label) key already exists.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from budget_kernel.db.types import to_money
from budget_kernel.domain.categories import TransactionCategory
from budget_kernel.domain.dtos import AccountInfo, LedgerEntryInfo
from budget_kernel.exceptions import AccountNotFoundError, OptimisticLockError
from budget_kernel.logging_config import get_logger
from budget_kernel.models.account import Account
from budget_kernel.models.ledger_entry import LedgerEntry
from budget_kernel.services.base import BaseService

logger = get_logger("services.ledger_gateway")


class LedgerGateway(BaseService[LedgerEntry]):
    """Writes ledger entries and adjusts account balances."""

    def __init__(self, session: Session):
        super().__init__(session)

    def append_entry(
        self,
        *,
        user_id: UUID,
        account_id: UUID,
        amount: Decimal,
        category: TransactionCategory | str,
        description: str,
        entry_date: date,
        charge_id: UUID | None = None,
        cycle_label: str | None = None,
    ) -> LedgerEntryInfo:
        """Insert one ledger entry.  Does not touch the balance."""
        entry = LedgerEntry(
            user_id=user_id,
            account_id=account_id,
            amount=to_money(amount),
            category=TransactionCategory(category).value,
            description=description,
            entry_date=entry_date,
            charge_id=charge_id,
            cycle_label=cycle_label,
        )
        self.session.add(entry)
        self.session.flush()

        logger.debug(
            "ledger_entry_appended",
            extra={
                "entry_id": str(entry.id),
                "account_id": str(account_id),
                "amount": str(entry.amount),
                "category": entry.category,
                "entry_date": entry_date.isoformat(),
            },
        )
        return LedgerEntryInfo.from_model(entry)

    def adjust_balance(
        self,
        account_id: UUID,
        delta: Decimal,
        *,
        user_id: UUID | None = None,
    ) -> AccountInfo:
        """
        Add ``delta`` (signed) to an account's balance.

        Raises:
            AccountNotFoundError: missing, inactive, or not owned by user_id.
            OptimisticLockError: the row was updated by another transaction.
        """
        account = self.session.execute(
            select(Account)
            .where(Account.id == account_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

        if (
            account is None
            or not account.is_active
            or (user_id is not None and account.user_id != user_id)
        ):
            raise AccountNotFoundError(
                str(account_id),
                str(user_id) if user_id is not None else None,
            )

        previous = account.balance
        account.balance = previous + to_money(delta)
        try:
            self.session.flush()
        except StaleDataError as exc:
            raise OptimisticLockError("Account", str(account_id)) from exc

        logger.debug(
            "account_balance_adjusted",
            extra={
                "account_id": str(account_id),
                "delta": str(delta),
                "balance": str(account.balance),
            },
        )
        return AccountInfo.from_model(account)

    def post(
        self,
        *,
        user_id: UUID,
        account_id: UUID,
        amount: Decimal,
        category: TransactionCategory | str,
        description: str,
        entry_date: date,
        charge_id: UUID | None = None,
        cycle_label: str | None = None,
    ) -> LedgerEntryInfo:
        """
        Adjust the balance, then append the entry, in the caller's
        transaction.

        A missing or foreign account surfaces as AccountNotFoundError
        before any entry is inserted.
        """
        self.adjust_balance(account_id, amount, user_id=user_id)
        return self.append_entry(
            user_id=user_id,
            account_id=account_id,
            amount=amount,
            category=category,
            description=description,
            entry_date=entry_date,
            charge_id=charge_id,
            cycle_label=cycle_label,
        )
