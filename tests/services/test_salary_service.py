"""Tests for SalaryService.validate_salary."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select

from budget_kernel.domain.categories import TransactionCategory
from budget_kernel.exceptions import (
    AccountNotFoundError,
    InvalidArgumentError,
    InvalidCycleLabelError,
)
from budget_kernel.models.account import AccountType
from budget_kernel.models.ledger_entry import LedgerEntry
from budget_kernel.models.validated_salary import ValidatedSalary
from budget_kernel.services.salary_service import SalaryService, describe_income


@pytest.fixture
def service(session, clock):
    return SalaryService(session, clock)


def _validated(session, user_id):
    return session.scalars(
        select(ValidatedSalary).where(ValidatedSalary.user_id == user_id)
    ).all()


class TestSalary:
    def test_defaults_to_monthly_salary(self, session, service, rent_user):
        user, account, _ = rent_user

        result = service.validate_salary(user.id, "2025-01")

        assert result.is_salary
        assert result.entry.amount == Decimal("3000.00")
        assert result.entry.category is TransactionCategory.SALARY
        assert result.entry.description == "Salary 2025-01"
        assert result.entry.entry_date == date(2025, 1, 28)
        assert result.entry.account_id == account.id
        assert account.balance == Decimal("3000.00")

        (record,) = _validated(session, user.id)
        assert record.cycle_label == "2025-01"
        assert record.ledger_entry_id == result.entry.id

    def test_explicit_amount_and_date(self, service, rent_user):
        user, _, _ = rent_user

        result = service.validate_salary(
            user.id, "2025-01", amount="3120.40", received_on=date(2025, 1, 24)
        )

        assert result.entry.amount == Decimal("3120.40")
        assert result.entry.entry_date == date(2025, 1, 24)

    def test_revalidation_updates_record(self, session, service, rent_user, captured_logs):
        user, _, _ = rent_user
        service.validate_salary(user.id, "2025-01")

        second = service.validate_salary(user.id, "2025-01", amount="3100.00")

        (record,) = _validated(session, user.id)
        assert record.amount == Decimal("3100.00")
        assert record.ledger_entry_id == second.entry.id
        messages = [r["message"] for r in captured_logs()]
        assert messages.count("salary_validated") == 1
        assert messages.count("salary_revalidated") == 1

    def test_custom_description(self, service, rent_user):
        user, _, _ = rent_user

        result = service.validate_salary(user.id, "2025-01", description="January pay")

        assert result.entry.description == "January pay"


class TestOtherIncome:
    def test_bonus_requires_amount(self, service, rent_user):
        user, _, _ = rent_user
        with pytest.raises(InvalidArgumentError):
            service.validate_salary(user.id, "2025-01", category=TransactionCategory.BONUS)

    def test_bonus_does_not_validate_salary(self, session, service, rent_user):
        user, _, _ = rent_user

        result = service.validate_salary(
            user.id, "2025-01", amount="250.00", category="bonus"
        )

        assert not result.is_salary
        assert result.entry.description == "Bonus 2025-01"
        assert _validated(session, user.id) == []

    def test_expense_category_rejected(self, session, service, rent_user):
        user, _, _ = rent_user
        with pytest.raises(InvalidArgumentError):
            service.validate_salary(
                user.id, "2025-01", amount="10.00", category=TransactionCategory.RENT
            )
        assert session.scalars(select(LedgerEntry)).all() == []

    @pytest.mark.parametrize("amount", ["0", "-1.00"])
    def test_non_positive_amount_rejected(self, service, rent_user, amount):
        user, _, _ = rent_user
        with pytest.raises(InvalidArgumentError):
            service.validate_salary(user.id, "2025-01", amount=amount)

    def test_malformed_label(self, service, rent_user):
        user, _, _ = rent_user
        with pytest.raises(InvalidCycleLabelError):
            service.validate_salary(user.id, "Jan-2025")

    @pytest.mark.parametrize(
        "category, expected",
        [
            (TransactionCategory.SALARY, "Salary 2025-03"),
            (TransactionCategory.FREELANCE, "Freelance 2025-03"),
            (TransactionCategory.REFUND, "Income 2025-03"),
        ],
    )
    def test_describe_income(self, category, expected):
        assert describe_income(category, "2025-03") == expected


class TestAccountChoice:
    def test_first_checking_without_primary(self, service, create_user, create_account):
        user = create_user()
        create_account(user, name="Savings", account_type=AccountType.SAVINGS)
        first = create_account(user, name="A checking")
        create_account(user, name="B checking")

        result = service.validate_salary(user.id, "2025-01")

        assert result.entry.account_id == first.id

    def test_explicit_account(self, service, create_user, create_account):
        user = create_user()
        create_account(user, name="Main", is_primary_for_charges=True)
        savings = create_account(user, name="Savings", account_type=AccountType.SAVINGS)

        result = service.validate_salary(user.id, "2025-01", account_id=savings.id)

        assert result.entry.account_id == savings.id

    def test_no_usable_account(self, service, create_user, create_account):
        user = create_user()
        create_account(user, is_active=False)

        with pytest.raises(AccountNotFoundError) as exc_info:
            service.validate_salary(user.id, "2025-01")
        assert exc_info.value.account_id is None
        assert exc_info.value.user_id == str(user.id)

    def test_foreign_explicit_account(self, service, create_user, create_account):
        user = create_user()
        other = create_user(display_name="Other")
        foreign = create_account(other)

        with pytest.raises(AccountNotFoundError):
            service.validate_salary(user.id, "2025-01", account_id=foreign.id)

    def test_unknown_user(self, service):
        from budget_kernel.exceptions import UserNotFoundError

        with pytest.raises(UserNotFoundError):
            service.validate_salary(uuid4(), "2025-01")
