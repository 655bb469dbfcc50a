"""
RecurringChargeService -- create, edit and deactivate recurring charges.

Responsibility:
    Validate charge input before any mutation and persist charges.  Charges
    are never hard-deleted: entries written for a charge keep referencing
    it, so removal is a soft deactivation.

Architecture position:
    Kernel > Services -- imperative shell, flush-only.

Failure modes:
    - InvalidChargeAmountError: amount <= 0.
    - InvalidDayOfMonthError: day_of_month outside 1-31.
    - InvalidDateRangeError: end_date before start_date.
    - AccountNotFoundError: target account missing, inactive, or foreign.
    - ChargeNotFoundError: unknown charge or foreign owner.
    - OptimisticLockError: the charge was edited concurrently, or the
      caller's expected version is stale.
"""

from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from budget_kernel.db.types import to_money
from budget_kernel.domain.categories import TransactionCategory
from budget_kernel.domain.clock import Clock, SystemClock
from budget_kernel.domain.cycle import validate_day_of_month
from budget_kernel.domain.dtos import ChargeInfo
from budget_kernel.domain.recurrence import Frequency
from budget_kernel.exceptions import (
    ChargeNotFoundError,
    InvalidChargeAmountError,
    InvalidDateRangeError,
    OptimisticLockError,
)
from budget_kernel.logging_config import get_logger
from budget_kernel.models.recurring_charge import RecurringCharge
from budget_kernel.selectors.user_selector import UserSelector
from budget_kernel.services.base import BaseService

logger = get_logger("services.charges")

_UNSET: Any = object()


def _validate_amount(amount: Decimal | int | str) -> Decimal:
    value = to_money(amount)
    if value <= 0:
        raise InvalidChargeAmountError(str(value))
    return value


def _validate_range(start_date: date, end_date: date | None) -> None:
    if end_date is not None and end_date < start_date:
        raise InvalidDateRangeError(str(start_date), str(end_date))


class RecurringChargeService(BaseService[RecurringCharge]):
    """Lifecycle of a user's recurring charges."""

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._users = UserSelector(session)

    def create_charge(
        self,
        user_id: UUID,
        *,
        account_id: UUID,
        name: str,
        category: TransactionCategory | str,
        amount: Decimal | int | str,
        day_of_month: int,
        frequency: Frequency | str = Frequency.MONTHLY,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> ChargeInfo:
        """
        Create an active recurring charge.

        ``start_date`` defaults to today.  All arguments are validated
        before anything is written.
        """
        self._users.get_user(user_id)
        value = _validate_amount(amount)
        validate_day_of_month(day_of_month)
        start = start_date or self._clock.today()
        _validate_range(start, end_date)
        category = TransactionCategory(category)
        frequency = Frequency(frequency)
        self._users.get_account(account_id, user_id)

        charge = RecurringCharge(
            user_id=user_id,
            account_id=account_id,
            name=name,
            category=category.value,
            amount=value,
            day_of_month=day_of_month,
            frequency=frequency.value,
            start_date=start,
            end_date=end_date,
            is_active=True,
        )
        self.session.add(charge)
        self.session.flush()

        logger.info(
            "recurring_charge_created",
            extra={
                "charge_id": str(charge.id),
                "charge_name": name,
                "amount": str(value),
                "day_of_month": day_of_month,
                "frequency": frequency.value,
            },
        )
        return ChargeInfo.from_model(charge)

    def update_charge(
        self,
        user_id: UUID,
        charge_id: UUID,
        *,
        expected_version: int | None = None,
        account_id: UUID = _UNSET,
        name: str = _UNSET,
        category: TransactionCategory | str = _UNSET,
        amount: Decimal | int | str = _UNSET,
        day_of_month: int = _UNSET,
        frequency: Frequency | str = _UNSET,
        start_date: date = _UNSET,
        end_date: date | None = _UNSET,
    ) -> ChargeInfo:
        """
        Edit the given fields of a charge; omitted fields are unchanged.

        Passing ``end_date=None`` clears the end date.
        """
        charge = self._load(user_id, charge_id)
        if expected_version is not None and charge.version != expected_version:
            raise OptimisticLockError("RecurringCharge", str(charge_id))

        changes: dict[str, Any] = {}
        if amount is not _UNSET:
            changes["amount"] = _validate_amount(amount)
        if day_of_month is not _UNSET:
            changes["day_of_month"] = validate_day_of_month(day_of_month)
        if category is not _UNSET:
            changes["category"] = TransactionCategory(category).value
        if frequency is not _UNSET:
            changes["frequency"] = Frequency(frequency).value
        if name is not _UNSET:
            changes["name"] = name
        if start_date is not _UNSET:
            changes["start_date"] = start_date
        if end_date is not _UNSET:
            changes["end_date"] = end_date
        if account_id is not _UNSET:
            self._users.get_account(account_id, user_id)
            changes["account_id"] = account_id

        _validate_range(
            changes.get("start_date", charge.start_date),
            changes.get("end_date", charge.end_date),
        )

        for field_name, value in changes.items():
            setattr(charge, field_name, value)
        self._flush(charge_id)

        logger.info(
            "recurring_charge_updated",
            extra={"charge_id": str(charge_id), "fields": sorted(changes)},
        )
        return ChargeInfo.from_model(charge)

    def deactivate_charge(self, user_id: UUID, charge_id: UUID) -> ChargeInfo:
        """Soft-delete: the charge stops applying but stays referenced."""
        charge = self._load(user_id, charge_id)
        if charge.is_active:
            charge.is_active = False
            self._flush(charge_id)
            logger.info("recurring_charge_deactivated", extra={"charge_id": str(charge_id)})
        return ChargeInfo.from_model(charge)

    def _load(self, user_id: UUID, charge_id: UUID) -> RecurringCharge:
        charge = self.session.get(RecurringCharge, charge_id)
        if charge is None or charge.user_id != user_id:
            raise ChargeNotFoundError(str(charge_id))
        return charge

    def _flush(self, charge_id: UUID) -> None:
        try:
            self.session.flush()
        except StaleDataError as exc:
            raise OptimisticLockError("RecurringCharge", str(charge_id)) from exc
