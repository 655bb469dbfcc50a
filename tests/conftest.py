"""
Pytest fixtures for the budget cycle test suite.

Provides:
- A fresh in-memory SQLite database per test (StaticPool, one connection)
- Sessions that join one outer transaction, rolled back at teardown
- A DeterministicClock and factories for users, accounts and charges
- Captured structured logs

Kernel services and the orchestrator receive ``session_factory``; every
session it creates joins the test's outer transaction through a SAVEPOINT,
so an orchestrator "commit" is visible to the ``session`` fixture and still
undone at teardown.
"""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session, sessionmaker

from budget_kernel.db.engine import create_tables, init_engine_from_url, reset_engine
from budget_kernel.domain.categories import TransactionCategory
from budget_kernel.domain.clock import DeterministicClock
from budget_kernel.domain.recurrence import Frequency
from budget_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from budget_kernel.models.account import Account, AccountType
from budget_kernel.models.recurring_charge import RecurringCharge
from budget_kernel.models.user import User

MEMORY_URL = "sqlite:///:memory:"


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow_locks: mark test as running real threads against a database"
    )


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def production_log_level():
    """Run the test at INFO, the level the packaged configuration uses."""
    root = logging.getLogger("budget_kernel")
    root.setLevel(logging.INFO)
    yield
    root.setLevel(logging.DEBUG)


@pytest.fixture
def captured_logs():
    """
    Capture budget_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, engine_service):
            engine_service.apply_due_charges(...)
            logs = captured_logs()
            assert any(r["message"] == "charge_applied" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("budget_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def db_engine():
    """Fresh in-memory database with all tables."""
    eng = init_engine_from_url(MEMORY_URL, echo=False)
    create_tables()
    yield eng
    reset_engine()


@pytest.fixture
def connection(db_engine):
    conn = db_engine.connect()
    trans = conn.begin()
    yield conn
    if trans.is_active:
        trans.rollback()
    conn.close()


@pytest.fixture
def session_factory(connection) -> sessionmaker[Session]:
    """Sessions joining the test's outer transaction via SAVEPOINT."""
    return sessionmaker(
        bind=connection,
        join_transaction_mode="create_savepoint",
        expire_on_commit=False,
    )


@pytest.fixture
def session(session_factory) -> Generator[Session, None, None]:
    sess = session_factory()
    yield sess
    sess.close()


@pytest.fixture
def clock() -> DeterministicClock:
    """Clock pinned to 2025-01-28, inside the 2025-01 cycle of pay day 25."""
    return DeterministicClock.on(date(2025, 1, 28))


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def create_user(session):
    """Factory: persisted User (pay day 25, salary 3000.00, 50/30/20)."""

    def _create(
        pay_day: int = 25,
        monthly_net_salary: Decimal = Decimal("3000.00"),
        display_name: str = "Test User",
        fixed_charges_pct: Decimal = Decimal("50.00"),
        variable_expenses_pct: Decimal = Decimal("30.00"),
        savings_pct: Decimal = Decimal("20.00"),
    ) -> User:
        user = User(
            display_name=display_name,
            pay_day=pay_day,
            monthly_net_salary=monthly_net_salary,
            fixed_charges_pct=fixed_charges_pct,
            variable_expenses_pct=variable_expenses_pct,
            savings_pct=savings_pct,
        )
        session.add(user)
        session.flush()
        return user

    return _create


@pytest.fixture
def create_account(session):
    """Factory: persisted Account (CHECKING, balance 0)."""

    def _create(
        user: User,
        name: str = "Current account",
        account_type: AccountType = AccountType.CHECKING,
        balance: Decimal = Decimal("0.00"),
        is_active: bool = True,
        is_primary_for_charges: bool = False,
    ) -> Account:
        account = Account(
            user_id=user.id,
            name=name,
            account_type=AccountType(account_type).value,
            balance=balance,
            is_active=is_active,
            is_primary_for_charges=is_primary_for_charges,
        )
        session.add(account)
        session.flush()
        return account

    return _create


@pytest.fixture
def create_charge(session):
    """Factory: persisted RecurringCharge (MONTHLY rent, started 2024-01-01)."""

    def _create(
        user: User,
        account: Account,
        name: str = "Rent",
        amount: Decimal = Decimal("800.00"),
        day_of_month: int = 5,
        category: TransactionCategory = TransactionCategory.RENT,
        frequency: Frequency = Frequency.MONTHLY,
        start_date: date = date(2024, 1, 1),
        end_date: date | None = None,
        is_active: bool = True,
    ) -> RecurringCharge:
        charge = RecurringCharge(
            user_id=user.id,
            account_id=account.id,
            name=name,
            category=TransactionCategory(category).value,
            amount=amount,
            day_of_month=day_of_month,
            frequency=Frequency(frequency).value,
            start_date=start_date,
            end_date=end_date,
            is_active=is_active,
        )
        session.add(charge)
        session.flush()
        return charge

    return _create


@pytest.fixture
def rent_user(create_user, create_account, create_charge):
    """Pay day 25, salary 3000.00, one MONTHLY Rent of 800.00 on day 5."""
    user = create_user()
    account = create_account(user, is_primary_for_charges=True)
    charge = create_charge(user, account)
    return user, account, charge
