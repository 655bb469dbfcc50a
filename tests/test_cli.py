"""Tests for the ``budget-cycle`` command-line entry point."""

from decimal import Decimal
from uuid import uuid4

import pytest

from budget_config import CONFIG_ENV_VAR, DATABASE_URL_ENV_VAR
from budget_kernel.db.engine import get_session_factory, reset_engine, session_scope
from budget_kernel.models.account import Account, AccountType
from budget_kernel.models.user import User
from budget_services.cli import fmt_amount, main


@pytest.fixture
def db_url(tmp_path, monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    monkeypatch.delenv(DATABASE_URL_ENV_VAR, raising=False)
    yield f"sqlite:///{tmp_path / 'cli.db'}"
    reset_engine()


def _seed_user() -> str:
    with session_scope(get_session_factory()) as session:
        user = User(display_name="Cli", pay_day=25, monthly_net_salary=Decimal("3000.00"))
        session.add(user)
        session.flush()
        session.add(
            Account(
                user_id=user.id,
                name="Main",
                account_type=AccountType.CHECKING.value,
                balance=Decimal("0.00"),
                is_primary_for_charges=True,
            )
        )
        return str(user.id)


def test_fmt_amount():
    assert fmt_amount(Decimal("-1234.5"), "EUR") == "-1,234.50 EUR"


def test_init_and_cycle(db_url, capsys):
    assert main(["--database-url", db_url, "init-db"]) == 0
    user_id = _seed_user()

    assert main(["--database-url", db_url, "cycle", "--user-id", user_id,
                 "--date", "2025-01-28"]) == 0

    out = capsys.readouterr().out
    assert "Tables created." in out
    assert "2025-01 [2025-01-25 .. 2025-02-24]" in out


def test_salary_then_snapshots(db_url, capsys):
    main(["--database-url", db_url, "init-db"])
    user_id = _seed_user()

    assert main(["--database-url", db_url, "validate-salary", "--user-id", user_id,
                 "--label", "2025-01", "--received-on", "2025-01-24"]) == 0
    assert main(["--database-url", db_url, "snapshots", "--user-id", user_id]) == 0

    out = capsys.readouterr().out
    assert "Recorded 3,000.00 EUR on 2025-01-24" in out
    assert "2024-12  [2024-12-25 .. 2025-01-24]" in out


def test_kernel_error_exit_code(db_url, capsys):
    main(["--database-url", db_url, "init-db"])

    code = main(["--database-url", db_url, "freeze", "--user-id", str(uuid4()),
                 "--label", "2025-01"])

    assert code == 2
    assert "USER_NOT_FOUND" in capsys.readouterr().err


def test_missing_config_file(db_url, tmp_path, capsys):
    code = main(["--config", str(tmp_path / "missing.yaml"), "init-db"])

    assert code == 1
    assert "Invalid configuration" in capsys.readouterr().err


def test_rejects_bad_uuid(db_url):
    with pytest.raises(SystemExit):
        main(["--database-url", db_url, "snapshots", "--user-id", "not-a-uuid"])
