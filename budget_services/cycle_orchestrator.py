"""
budget_services.cycle_orchestrator -- transaction and locking boundary for
the budget-cycle triggers.

Responsibility:
    Run each trigger (dashboard load, salary validation, manual freeze,
    cycle display) as one unit of work: bind the log context, take the
    user's lock, open a ``session_scope()``, call the kernel services and
    commit.

Architecture position:
    Services -- sits above ``budget_kernel`` and ``budget_config``.  The
    kernel services flush only; this is the layer that commits.

Invariants enforced:
    - The user's lock is held from the first read until after commit, so
      two triggers for the same user never interleave in this process.
    - Salary validation freezes the previous cycle before applying the
      current cycle's charges, in the same transaction.
    - The cycle is always derived from the user's configured pay day.

Failure modes:
    - Kernel exceptions (NotFound, InvalidArgument, ConcurrencyConflict)
      propagate after rollback.
    - StorageFailureError when the database is unreachable, including at
      commit.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy.orm import Session, sessionmaker

from budget_config import BudgetEngineConfig
from budget_kernel.db.engine import get_session_factory, session_scope
from budget_kernel.domain.categories import TransactionCategory
from budget_kernel.domain.clock import Clock, SystemClock
from budget_kernel.domain.cycle import (
    BudgetCycle,
    compute_cycle,
    cycle_for_label,
    previous_cycle,
)
from budget_kernel.domain.dtos import ChargeApplicationResult, SnapshotInfo
from budget_kernel.logging_config import LogContext, get_logger
from budget_kernel.selectors.user_selector import UserSelector
from budget_kernel.services.base import storage_guard
from budget_kernel.services.charge_application import (
    DEFAULT_DESCRIPTION_TEMPLATE,
    ChargeApplicationEngine,
)
from budget_kernel.services.salary_service import SalaryService, SalaryValidation
from budget_kernel.services.snapshot_service import SnapshotAggregator
from budget_kernel.services.user_lock import UserLockRegistry

logger = get_logger("services.cycle_orchestrator")


@dataclass(frozen=True)
class SalaryCycleResult:
    """
    Outcome of the salary-validation trigger.

    ``previous_snapshot`` and ``charges`` are None for income that is not a
    salary, which is recorded without closing the cycle.
    """

    validation: SalaryValidation
    cycle: BudgetCycle
    previous_snapshot: SnapshotInfo | None = None
    charges: ChargeApplicationResult | None = None


class CycleOrchestrator:
    """
    Entry point for the budget-cycle triggers.

    Contract:
        Every public method is one transaction.  Nothing is left
        uncommitted on return; on error everything is rolled back.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
        *,
        lock_registry: UserLockRegistry | None = None,
        description_template: str = DEFAULT_DESCRIPTION_TEMPLATE,
        match_legacy_descriptions: bool = True,
        current_account_type: str = "checking",
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._locks = lock_registry or UserLockRegistry()
        self._description_template = description_template
        self._match_legacy_descriptions = match_legacy_descriptions
        self._current_account_type = current_account_type

    @classmethod
    def from_config(
        cls,
        config: BudgetEngineConfig,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
        lock_registry: UserLockRegistry | None = None,
    ) -> CycleOrchestrator:
        return cls(
            session_factory,
            clock,
            lock_registry=lock_registry,
            description_template=config.charges.description_template,
            match_legacy_descriptions=config.charges.match_legacy_descriptions,
            current_account_type=config.snapshot.current_account_type,
        )

    # ------------------------------------------------------------------
    # Unit of work
    # ------------------------------------------------------------------

    @contextmanager
    def _unit_of_work(
        self,
        operation: str,
        user_id: UUID,
        cycle_label: str | None = None,
    ) -> Iterator[Session]:
        factory = self._session_factory or get_session_factory()
        with LogContext.bind(
            correlation_id=str(uuid4()),
            user_id=str(user_id),
            cycle_label=cycle_label,
        ):
            with self._locks.hold(user_id):
                logger.debug("unit_of_work_started", extra={"operation": operation})
                with storage_guard(operation):
                    with session_scope(factory) as session:
                        yield session
                logger.debug("unit_of_work_committed", extra={"operation": operation})

    def _engine(self, session: Session) -> ChargeApplicationEngine:
        return ChargeApplicationEngine(
            session,
            description_template=self._description_template,
            match_legacy_descriptions=self._match_legacy_descriptions,
        )

    def _aggregator(self, session: Session) -> SnapshotAggregator:
        return SnapshotAggregator(
            session,
            self._clock,
            current_account_type=self._current_account_type,
        )

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def compute_cycle(self, user_id: UUID, reference_date: date | None = None) -> BudgetCycle:
        """The cycle containing ``reference_date`` (default today), for display."""
        reference = reference_date or self._clock.today()
        with self._unit_of_work("compute_cycle", user_id) as session:
            user = UserSelector(session).get_user(user_id)
            return compute_cycle(reference, user.pay_day)

    def check_due_charges(self, user_id: UUID) -> ChargeApplicationResult:
        """
        Dashboard trigger: apply the current cycle's charges that are
        already due.  A no-op when they were applied before.
        """
        today = self._clock.today()
        with self._unit_of_work("check_due_charges", user_id) as session:
            user = UserSelector(session).get_user(user_id)
            cycle = compute_cycle(today, user.pay_day)
            with LogContext.bind(cycle_label=cycle.label):
                result = self._engine(session).apply_due_charges(user_id, cycle, today=today)

        logger.info(
            "due_charges_checked",
            extra={"cycle_label": cycle.label, "entries_created": len(result.created_entries)},
        )
        return result

    def validate_salary(
        self,
        user_id: UUID,
        *,
        cycle_label: str | None = None,
        amount: Decimal | int | str | None = None,
        category: TransactionCategory | str = TransactionCategory.SALARY,
        received_on: date | None = None,
        account_id: UUID | None = None,
        description: str | None = None,
    ) -> SalaryCycleResult:
        """
        Salary-validation trigger.

        Records the income, then for a salary freezes the previous cycle
        and applies every charge due in the current cycle regardless of
        today's date.  The current cycle is ``cycle_label`` when given,
        else the cycle containing ``received_on`` (default today).
        """
        received = received_on or self._clock.today()
        with self._unit_of_work("validate_salary", user_id, cycle_label) as session:
            user = UserSelector(session).get_user(user_id)
            if cycle_label is not None:
                cycle = cycle_for_label(cycle_label, user.pay_day)
            else:
                cycle = compute_cycle(received, user.pay_day)

            with LogContext.bind(cycle_label=cycle.label):
                validation = SalaryService(session, self._clock).validate_salary(
                    user_id,
                    cycle.label,
                    amount=amount,
                    category=category,
                    received_on=received,
                    account_id=account_id,
                    description=description,
                )
                if not validation.is_salary:
                    return SalaryCycleResult(validation=validation, cycle=cycle)

                previous = previous_cycle(cycle, user.pay_day)
                snapshot = self._aggregator(session).freeze(user_id, previous.label)
                charges = self._engine(session).apply_due_charges(user_id, cycle)

        logger.info(
            "salary_cycle_processed",
            extra={
                "cycle_label": cycle.label,
                "frozen_cycle_label": previous.label,
                "entries_created": len(charges.created_entries),
                "failed": len(charges.failures),
            },
        )
        return SalaryCycleResult(
            validation=validation,
            cycle=cycle,
            previous_snapshot=snapshot,
            charges=charges,
        )

    def freeze_cycle(self, user_id: UUID, cycle_label: str) -> SnapshotInfo:
        with self._unit_of_work("freeze_cycle", user_id, cycle_label) as session:
            return self._aggregator(session).freeze(user_id, cycle_label)

    def get_snapshot(self, user_id: UUID, cycle_label: str) -> SnapshotInfo:
        with self._unit_of_work("get_snapshot", user_id, cycle_label) as session:
            return self._aggregator(session).get_snapshot(user_id, cycle_label)

    def list_snapshots(self, user_id: UUID) -> list[SnapshotInfo]:
        with self._unit_of_work("list_snapshots", user_id) as session:
            return self._aggregator(session).list_snapshots(user_id)
