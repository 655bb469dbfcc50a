"""
SnapshotAggregator -- freeze a cycle's totals into a MonthSnapshot.

Responsibility:
    Resolve a cycle label to its bounds, aggregate the user's ledger
    entries of that cycle into revenue, fixed-charge, variable-expense and
    savings totals, record the current-account balance and the target
    budgets at freeze time, and upsert one snapshot per (user, label).

Architecture position:
    Kernel > Services -- imperative shell, flush-only.  Classification and
    summing live in ``domain.aggregation``.

Invariants enforced:
    - At most one snapshot per (user, cycle label).  Re-freezing replaces
      the figures of the existing row; with unchanged ledger data the
      totals are identical.
    - The row is created under a SAVEPOINT; losing a concurrent insert race
      falls back to updating the winner's row.

Failure modes:
    - UserNotFoundError, InvalidCycleLabelError before any write.
    - SnapshotNotFoundError from ``get_snapshot``.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from budget_kernel.db.types import round_money
from budget_kernel.domain.aggregation import CycleTotals, aggregate_entries
from budget_kernel.domain.budget_split import TargetBudgets, target_budgets
from budget_kernel.domain.clock import Clock, SystemClock
from budget_kernel.domain.cycle import BudgetCycle, cycle_for_label
from budget_kernel.domain.dtos import SnapshotInfo
from budget_kernel.logging_config import get_logger
from budget_kernel.models.account import AccountType
from budget_kernel.models.month_snapshot import MonthSnapshot
from budget_kernel.selectors.ledger_selector import LedgerSelector
from budget_kernel.selectors.snapshot_selector import SnapshotSelector
from budget_kernel.selectors.user_selector import UserSelector
from budget_kernel.services.base import BaseService, storage_guard

logger = get_logger("services.snapshot")


class SnapshotAggregator(BaseService[MonthSnapshot]):
    """Freezes and reads month snapshots."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        *,
        current_account_type: AccountType | str = AccountType.CHECKING,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._current_account_type = AccountType(current_account_type)
        self._users = UserSelector(session)
        self._ledger = LedgerSelector(session)
        self._snapshots = SnapshotSelector(session)

    def freeze(self, user_id: UUID, cycle_label: str) -> SnapshotInfo:
        """
        Compute and upsert the snapshot of ``cycle_label`` for ``user_id``.

        Budget targets use the user's split as configured now, not as it
        was during the cycle.
        """
        with storage_guard("freeze_snapshot"):
            user = self._users.get_user(user_id)
            cycle = cycle_for_label(cycle_label, user.pay_day)

            entries = self._ledger.entries_between(user_id, cycle.start, cycle.end)
            totals = aggregate_entries(entries)
            balance = round_money(
                self._users.balance_by_type(user_id, self._current_account_type)
            )
            targets = target_budgets(
                user.monthly_net_salary,
                user.fixed_charges_pct,
                user.variable_expenses_pct,
                user.savings_pct,
            )

            salary = round_money(user.monthly_net_salary)
            snapshot = self._upsert(user_id, cycle, totals, balance, salary, targets)

        logger.info(
            "snapshot_frozen",
            extra={
                "snapshot_id": str(snapshot.id),
                "cycle_start": cycle.start,
                "cycle_end": cycle.end,
                "total_revenue": str(totals.revenue),
                "total_fixed_charges": str(totals.fixed_charges),
                "total_variable_expenses": str(totals.variable_expenses),
                "total_savings": str(totals.savings),
                "entry_count": totals.entry_count,
            },
        )
        return SnapshotInfo.from_model(snapshot)

    def get_snapshot(self, user_id: UUID, cycle_label: str) -> SnapshotInfo:
        return self._snapshots.get(user_id, cycle_label)

    def list_snapshots(self, user_id: UUID) -> list[SnapshotInfo]:
        """Newest cycle label first."""
        self._users.get_user(user_id)
        return self._snapshots.list_for_user(user_id)

    # ------------------------------------------------------------------

    def _select_for_update(self, user_id: UUID, cycle_label: str) -> MonthSnapshot | None:
        return self.session.execute(
            select(MonthSnapshot)
            .where(
                MonthSnapshot.user_id == user_id,
                MonthSnapshot.cycle_label == cycle_label,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def _upsert(
        self,
        user_id: UUID,
        cycle: BudgetCycle,
        totals: CycleTotals,
        balance,
        salary,
        targets: TargetBudgets,
    ) -> MonthSnapshot:
        snapshot = self._select_for_update(user_id, cycle.label)
        created = False

        if snapshot is None:
            savepoint = self.session.begin_nested()
            try:
                snapshot = MonthSnapshot(user_id=user_id, cycle_label=cycle.label)
                self._fill(snapshot, cycle, totals, balance, salary, targets)
                self.session.add(snapshot)
                self.session.flush()
                savepoint.commit()
                created = True
            except IntegrityError:
                logger.debug("snapshot_insert_race_retry")
                savepoint.rollback()
                snapshot = self._select_for_update(user_id, cycle.label)
                if snapshot is None:
                    raise

        if not created:
            self._fill(snapshot, cycle, totals, balance, salary, targets)
            self.session.flush()

        logger.debug(
            "snapshot_upserted",
            extra={"snapshot_created": created, "snapshot_id": str(snapshot.id)},
        )
        return snapshot

    def _fill(
        self,
        snapshot: MonthSnapshot,
        cycle: BudgetCycle,
        totals: CycleTotals,
        balance,
        salary,
        targets: TargetBudgets,
    ) -> None:
        snapshot.cycle_start = cycle.start
        snapshot.cycle_end = cycle.end
        snapshot.total_revenue = totals.revenue
        snapshot.total_fixed_charges = totals.fixed_charges
        snapshot.total_variable_expenses = totals.variable_expenses
        snapshot.total_savings = totals.savings
        snapshot.current_account_balance = balance
        snapshot.monthly_salary = salary
        snapshot.budget_fixed_charges = targets.fixed_charges
        snapshot.budget_variable_expenses = targets.variable_expenses
        snapshot.entry_count = totals.entry_count
        snapshot.fixed_charge_count = totals.fixed_charge_count
        snapshot.variable_expense_count = totals.variable_expense_count
        snapshot.frozen_at = self._clock.now()
