"""
SalaryService -- record a received salary or other income for a cycle.

Responsibility:
    Credit a positive income entry to the user's account and, for a
    SALARY, upsert the cycle's ValidatedSalary record.  Freezing the
    previous cycle and applying the current cycle's charges afterwards is
    the trigger layer's job.

Architecture position:
    Kernel > Services -- imperative shell, flush-only.

Failure modes:
    - InvalidArgumentError: non-income category, missing amount for a
      non-salary income, or non-positive amount.
    - InvalidCycleLabelError: malformed cycle label.
    - AccountNotFoundError: no usable account (explicit or default).
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from budget_kernel.db.types import to_money
from budget_kernel.domain.categories import TransactionCategory, is_revenue
from budget_kernel.domain.clock import Clock, SystemClock
from budget_kernel.domain.cycle import parse_cycle_label
from budget_kernel.domain.dtos import LedgerEntryInfo
from budget_kernel.exceptions import AccountNotFoundError, InvalidArgumentError
from budget_kernel.logging_config import get_logger
from budget_kernel.models.validated_salary import ValidatedSalary
from budget_kernel.selectors.user_selector import UserSelector
from budget_kernel.services.base import BaseService, storage_guard
from budget_kernel.services.ledger_gateway import LedgerGateway

logger = get_logger("services.salary")

_DESCRIPTION_LABELS = {
    TransactionCategory.SALARY: "Salary",
    TransactionCategory.BONUS: "Bonus",
    TransactionCategory.FREELANCE: "Freelance",
}


@dataclass(frozen=True)
class SalaryValidation:
    """What a salary validation wrote."""

    user_id: UUID
    cycle_label: str
    entry: LedgerEntryInfo
    is_salary: bool


def describe_income(category: TransactionCategory, cycle_label: str) -> str:
    return f"{_DESCRIPTION_LABELS.get(category, 'Income')} {cycle_label}"


class SalaryService(BaseService[ValidatedSalary]):
    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._users = UserSelector(session)
        self._gateway = LedgerGateway(session)

    def validate_salary(
        self,
        user_id: UUID,
        cycle_label: str,
        amount: Decimal | int | str | None = None,
        category: TransactionCategory | str = TransactionCategory.SALARY,
        received_on: date | None = None,
        account_id: UUID | None = None,
        description: str | None = None,
    ) -> SalaryValidation:
        """
        Record income for ``cycle_label``.

        The amount defaults to the user's monthly net salary for SALARY and
        is required for any other income category.  The account is
        ``account_id`` when given, else the user's default account.
        """
        parse_cycle_label(cycle_label)
        category = TransactionCategory(category)
        if not is_revenue(category):
            raise InvalidArgumentError(f"{category.value} is not an income category")

        with storage_guard("validate_salary"):
            user = self._users.get_user(user_id)

            if amount is None:
                if category is not TransactionCategory.SALARY:
                    raise InvalidArgumentError(f"An amount is required for {category.value}")
                value = user.monthly_net_salary
            else:
                value = to_money(amount)
            if value <= 0:
                raise InvalidArgumentError(f"Income amount must be positive, got {value}")

            if account_id is not None:
                account = self._users.get_account(account_id, user_id)
            else:
                account = self._users.find_default_account(user_id)
                if account is None:
                    raise AccountNotFoundError(None, str(user_id))

            received = received_on or self._clock.today()
            text = description if description and description.strip() else describe_income(
                category, cycle_label
            )

            entry = self._gateway.post(
                user_id=user_id,
                account_id=account.id,
                amount=value,
                category=category,
                description=text,
                entry_date=received,
            )

            is_salary = category is TransactionCategory.SALARY
            if is_salary:
                self._record_validated(user_id, cycle_label, value, received, entry.id)

        logger.info(
            "income_recorded",
            extra={
                "entry_id": str(entry.id),
                "account_id": str(account.id),
                "category": category.value,
                "amount": str(value),
                "received_on": received,
            },
        )
        return SalaryValidation(
            user_id=user_id,
            cycle_label=cycle_label,
            entry=entry,
            is_salary=is_salary,
        )

    def _find_validated(self, user_id: UUID, cycle_label: str) -> ValidatedSalary | None:
        return self.session.execute(
            select(ValidatedSalary)
            .where(
                ValidatedSalary.user_id == user_id,
                ValidatedSalary.cycle_label == cycle_label,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def _record_validated(
        self,
        user_id: UUID,
        cycle_label: str,
        amount: Decimal,
        received_on: date,
        entry_id: UUID,
    ) -> None:
        record = self._find_validated(user_id, cycle_label)
        if record is None:
            savepoint = self.session.begin_nested()
            try:
                self.session.add(
                    ValidatedSalary(
                        user_id=user_id,
                        cycle_label=cycle_label,
                        amount=amount,
                        received_on=received_on,
                        ledger_entry_id=entry_id,
                    )
                )
                self.session.flush()
                savepoint.commit()
                logger.info("salary_validated", extra={"amount": str(amount)})
                return
            except IntegrityError:
                savepoint.rollback()
                record = self._find_validated(user_id, cycle_label)
                if record is None:
                    raise

        record.amount = amount
        record.received_on = received_on
        record.ledger_entry_id = entry_id
        self.session.flush()
        logger.info("salary_revalidated", extra={"amount": str(amount)})
