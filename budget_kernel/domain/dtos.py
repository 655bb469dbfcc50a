"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Immutable structures that cross the service boundary: user, account,
    charge and ledger-entry views, the per-charge outcome of an apply pass
    and the pass result, and the frozen snapshot view.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    ``from_model()`` class methods are boundary converters invoked from
    the service and selector layers only.

Invariants enforced:
    - Domain logic accepts and returns DTOs, never ORM entities.
    - All monetary fields are Decimal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from budget_kernel.domain.categories import TransactionCategory
from budget_kernel.domain.recurrence import Frequency

if TYPE_CHECKING:
    from budget_kernel.domain.cycle import BudgetCycle
    from budget_kernel.models.account import Account as AccountModel
    from budget_kernel.models.ledger_entry import LedgerEntry as LedgerEntryModel
    from budget_kernel.models.month_snapshot import MonthSnapshot as MonthSnapshotModel
    from budget_kernel.models.recurring_charge import (
        RecurringCharge as RecurringChargeModel,
    )
    from budget_kernel.models.user import User as UserModel


@dataclass(frozen=True)
class UserInfo:
    """Read view of a user's cycle and budget configuration."""

    id: UUID
    pay_day: int
    monthly_net_salary: Decimal
    fixed_charges_pct: Decimal
    variable_expenses_pct: Decimal
    savings_pct: Decimal

    @classmethod
    def from_model(cls, model: UserModel) -> UserInfo:
        return cls(
            id=model.id,
            pay_day=model.pay_day,
            monthly_net_salary=model.monthly_net_salary,
            fixed_charges_pct=model.fixed_charges_pct,
            variable_expenses_pct=model.variable_expenses_pct,
            savings_pct=model.savings_pct,
        )


@dataclass(frozen=True)
class AccountInfo:
    id: UUID
    user_id: UUID
    name: str
    account_type: str
    balance: Decimal
    is_active: bool

    @classmethod
    def from_model(cls, model: AccountModel) -> AccountInfo:
        return cls(
            id=model.id,
            user_id=model.user_id,
            name=model.name,
            account_type=getattr(model.account_type, "value", model.account_type),
            balance=model.balance,
            is_active=model.is_active,
        )


@dataclass(frozen=True)
class ChargeInfo:
    """Read view of a recurring charge, as consumed by the recurrence gates."""

    id: UUID
    user_id: UUID
    account_id: UUID
    name: str
    category: TransactionCategory
    amount: Decimal
    day_of_month: int
    frequency: Frequency
    start_date: date
    end_date: date | None = None
    is_active: bool = True

    @classmethod
    def from_model(cls, model: RecurringChargeModel) -> ChargeInfo:
        return cls(
            id=model.id,
            user_id=model.user_id,
            account_id=model.account_id,
            name=model.name,
            category=TransactionCategory(model.category),
            amount=model.amount,
            day_of_month=model.day_of_month,
            frequency=Frequency(model.frequency),
            start_date=model.start_date,
            end_date=model.end_date,
            is_active=model.is_active,
        )


@dataclass(frozen=True)
class LedgerEntryInfo:
    id: UUID
    user_id: UUID
    account_id: UUID
    amount: Decimal
    category: TransactionCategory
    description: str
    entry_date: date
    charge_id: UUID | None = None
    cycle_label: str | None = None

    @classmethod
    def from_model(cls, model: LedgerEntryModel) -> LedgerEntryInfo:
        return cls(
            id=model.id,
            user_id=model.user_id,
            account_id=model.account_id,
            amount=model.amount,
            category=TransactionCategory(model.category),
            description=model.description,
            entry_date=model.entry_date,
            charge_id=model.charge_id,
            cycle_label=model.cycle_label,
        )


class ChargeOutcomeStatus(str, Enum):
    """What an apply pass did with one charge."""

    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"
    NOT_ELIGIBLE = "not_eligible"
    NOT_IN_CYCLE = "not_in_cycle"
    NOT_YET_DUE = "not_yet_due"
    FAILED = "failed"


@dataclass(frozen=True)
class ChargeOutcome:
    charge_id: UUID
    charge_name: str
    status: ChargeOutcomeStatus
    due_date: date | None = None
    entry: LedgerEntryInfo | None = None
    error_code: str | None = None
    error_message: str | None = None


@dataclass(frozen=True)
class ChargeApplicationResult:
    """
    Result of one apply pass for one user and one cycle.

    Per-charge failures are reported here rather than raised, so the
    caller sees every outcome of the pass.
    """

    user_id: UUID
    cycle: BudgetCycle
    outcomes: tuple[ChargeOutcome, ...] = field(default_factory=tuple)

    @property
    def created_entries(self) -> tuple[LedgerEntryInfo, ...]:
        return tuple(
            o.entry for o in self.outcomes
            if o.status is ChargeOutcomeStatus.APPLIED and o.entry is not None
        )

    @property
    def failures(self) -> tuple[ChargeOutcome, ...]:
        return tuple(o for o in self.outcomes if o.status is ChargeOutcomeStatus.FAILED)

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)

    def count(self, status: ChargeOutcomeStatus) -> int:
        return sum(1 for o in self.outcomes if o.status is status)


@dataclass(frozen=True)
class SnapshotInfo:
    """Frozen totals of one user's cycle."""

    id: UUID
    user_id: UUID
    cycle_label: str
    cycle_start: date
    cycle_end: date
    total_revenue: Decimal
    total_fixed_charges: Decimal
    total_variable_expenses: Decimal
    total_savings: Decimal
    current_account_balance: Decimal
    monthly_salary: Decimal
    budget_fixed_charges: Decimal
    budget_variable_expenses: Decimal
    entry_count: int
    fixed_charge_count: int
    variable_expense_count: int
    frozen_at: datetime

    @classmethod
    def from_model(cls, model: MonthSnapshotModel) -> SnapshotInfo:
        return cls(
            id=model.id,
            user_id=model.user_id,
            cycle_label=model.cycle_label,
            cycle_start=model.cycle_start,
            cycle_end=model.cycle_end,
            total_revenue=model.total_revenue,
            total_fixed_charges=model.total_fixed_charges,
            total_variable_expenses=model.total_variable_expenses,
            total_savings=model.total_savings,
            current_account_balance=model.current_account_balance,
            monthly_salary=model.monthly_salary,
            budget_fixed_charges=model.budget_fixed_charges,
            budget_variable_expenses=model.budget_variable_expenses,
            entry_count=model.entry_count,
            fixed_charge_count=model.fixed_charge_count,
            variable_expense_count=model.variable_expense_count,
            frozen_at=model.frozen_at,
        )

    def totals(self) -> tuple[Decimal, ...]:
        """The frozen aggregates, in a fixed order (for comparisons)."""
        return (
            self.total_revenue,
            self.total_fixed_charges,
            self.total_variable_expenses,
            self.total_savings,
            self.current_account_balance,
            self.budget_fixed_charges,
            self.budget_variable_expenses,
            Decimal(self.entry_count),
            Decimal(self.fixed_charge_count),
            Decimal(self.variable_expense_count),
        )
