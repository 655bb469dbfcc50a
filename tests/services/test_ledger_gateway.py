"""Tests for LedgerGateway: entries, balance adjustment, version checks."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from budget_kernel.domain.categories import TransactionCategory
from budget_kernel.exceptions import AccountNotFoundError, OptimisticLockError
from budget_kernel.models.account import Account
from budget_kernel.models.ledger_entry import LedgerEntry
from budget_kernel.services.ledger_gateway import LedgerGateway


@pytest.fixture
def gateway(session):
    return LedgerGateway(session)


def _post(gateway, user, account, amount="-42.10", **kwargs):
    return gateway.post(
        user_id=user.id,
        account_id=account.id,
        amount=Decimal(amount),
        category=kwargs.pop("category", TransactionCategory.GROCERIES),
        description=kwargs.pop("description", "Market"),
        entry_date=kwargs.pop("entry_date", date(2025, 2, 1)),
        **kwargs,
    )


class TestPost:
    def test_post_writes_entry_and_moves_balance(
        self, session, gateway, create_user, create_account
    ):
        user = create_user()
        account = create_account(user, balance=Decimal("100.00"))

        entry = _post(gateway, user, account)

        assert entry.amount == Decimal("-42.10")
        assert entry.category is TransactionCategory.GROCERIES
        assert entry.charge_id is None
        stored = session.get(LedgerEntry, entry.id)
        assert stored.description == "Market"
        assert account.balance == Decimal("57.90")

    def test_balance_update_bumps_version(self, session, gateway, create_user, create_account):
        user = create_user()
        account = create_account(user)
        assert account.version == 1

        gateway.adjust_balance(account.id, Decimal("10.00"))
        info = gateway.adjust_balance(account.id, Decimal("-2.50"), user_id=user.id)

        assert info.balance == Decimal("7.50")
        assert account.version == 3

    def test_foreign_account_rejected_before_entry(
        self, session, gateway, create_user, create_account
    ):
        owner = create_user(display_name="Owner")
        intruder = create_user(display_name="Intruder")
        account = create_account(owner)

        with pytest.raises(AccountNotFoundError) as exc_info:
            _post(gateway, intruder, account)

        assert exc_info.value.account_id == str(account.id)
        assert exc_info.value.user_id == str(intruder.id)
        assert session.scalars(select(LedgerEntry)).all() == []

    def test_inactive_account_rejected(self, gateway, create_user, create_account):
        user = create_user()
        account = create_account(user, is_active=False)

        with pytest.raises(AccountNotFoundError):
            gateway.adjust_balance(account.id, Decimal("1.00"))

    def test_missing_account_rejected(self, gateway):
        with pytest.raises(AccountNotFoundError):
            gateway.adjust_balance(uuid4(), Decimal("1.00"))

    def test_stale_version_raises_optimistic_lock(
        self, session, gateway, create_user, create_account, monkeypatch
    ):
        user = create_user()
        account = create_account(user)
        original_flush = session.flush

        def stale_flush(*args, **kwargs):
            if any(isinstance(obj, Account) for obj in session.dirty):
                raise StaleDataError("UPDATE statement on table 'accounts' expected 1 row")
            return original_flush(*args, **kwargs)

        monkeypatch.setattr(session, "flush", stale_flush)

        with pytest.raises(OptimisticLockError) as exc_info:
            gateway.adjust_balance(account.id, Decimal("5.00"))
        assert exc_info.value.entity_type == "Account"
        assert exc_info.value.code == "OPTIMISTIC_LOCK_CONFLICT"


class TestAppendEntry:
    def test_append_leaves_balance_alone(self, gateway, create_user, create_account):
        user = create_user()
        account = create_account(user, balance=Decimal("5.00"))

        gateway.append_entry(
            user_id=user.id,
            account_id=account.id,
            amount=Decimal("-1.00"),
            category="transport",
            description="Bus",
            entry_date=date(2025, 2, 2),
        )

        assert account.balance == Decimal("5.00")

    def test_duplicate_charge_cycle_key_rejected(
        self, session, gateway, create_user, create_account, create_charge
    ):
        user = create_user()
        account = create_account(user)
        charge = create_charge(user, account)
        fields = dict(
            user_id=user.id,
            account_id=account.id,
            amount=Decimal("-800.00"),
            category=TransactionCategory.RENT,
            description="Rent - 2025-01",
            entry_date=date(2025, 2, 5),
            charge_id=charge.id,
            cycle_label="2025-01",
        )
        gateway.append_entry(**fields)

        savepoint = session.begin_nested()
        with pytest.raises(IntegrityError):
            gateway.append_entry(**fields)
        savepoint.rollback()

        gateway.append_entry(**{**fields, "cycle_label": "2025-02"})
        assert len(session.scalars(select(LedgerEntry)).all()) == 2
