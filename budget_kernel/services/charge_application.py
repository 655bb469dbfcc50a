"""
ChargeApplicationEngine -- apply a user's due recurring charges to the
ledger exactly once per cycle.

Responsibility:
    For each active charge of a user, decide whether it falls due in the
    given cycle and, if it was not applied yet, post one negative ledger
    entry on the charge's account and debit that account's balance.

Architecture position:
    Kernel > Services -- imperative shell, flush-only.  Pure decisions come
    from ``domain.recurrence`` and ``domain.cycle``.

Invariants enforced:
    - At most one entry per (charge_id, cycle_label).  The key is checked
      before writing and enforced by a unique constraint; a concurrent
      writer that wins the race turns our insert into ALREADY_APPLIED.
    - Entry and balance change of one charge share a SAVEPOINT: both are
      kept or neither is.
    - One failing charge never blocks the others.  It is reported as a
      FAILED outcome in the pass result.
    - A storage failure aborts the pass (StorageFailureError).

Failure modes:
    - UserNotFoundError before any charge is evaluated.
    - StorageFailureError when the database connection is lost.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from budget_kernel.domain.cycle import BudgetCycle, compute_due_date
from budget_kernel.domain.dtos import (
    ChargeApplicationResult,
    ChargeInfo,
    ChargeOutcome,
    ChargeOutcomeStatus,
)
from budget_kernel.domain.recurrence import is_due_this_cycle
from budget_kernel.exceptions import BudgetKernelError, UserNotFoundError
from budget_kernel.logging_config import LogContext, get_logger
from budget_kernel.models.ledger_entry import LedgerEntry
from budget_kernel.models.user import User
from budget_kernel.selectors.charge_selector import ChargeSelector
from budget_kernel.selectors.ledger_selector import LedgerSelector
from budget_kernel.services.base import BaseService, storage_guard
from budget_kernel.services.ledger_gateway import LedgerGateway
from budget_kernel.utils.idempotency import charge_idempotency_key

logger = get_logger("services.charge_application")

DEFAULT_DESCRIPTION_TEMPLATE = "{name} - {cycle_label}"


class ChargeApplicationEngine(BaseService[LedgerEntry]):
    """
    Applies due recurring charges for one user and one cycle.

    Contract:
        ``apply_due_charges(user_id, cycle)`` may be called any number of
        times for the same user and cycle; only the first call that finds a
        charge due writes its entry.

    Non-goals:
        - Does not commit.  The caller commits or rolls back the pass.
        - Does not serialize callers; the trigger layer holds the per-user
          lock.
    """

    def __init__(
        self,
        session: Session,
        *,
        description_template: str = DEFAULT_DESCRIPTION_TEMPLATE,
        match_legacy_descriptions: bool = True,
    ):
        super().__init__(session)
        self._description_template = description_template
        self._match_legacy_descriptions = match_legacy_descriptions
        self._charges = ChargeSelector(session)
        self._ledger = LedgerSelector(session)
        self._gateway = LedgerGateway(session)

    def apply_due_charges(
        self,
        user_id: UUID,
        cycle: BudgetCycle,
        *,
        today: date | None = None,
    ) -> ChargeApplicationResult:
        """
        Apply every charge of ``user_id`` that is due in ``cycle``.

        Args:
            user_id: Owner of the charges.
            cycle: Cycle to apply charges for.
            today: When given, charges whose due date is after ``today`` are
                skipped as NOT_YET_DUE (dashboard trigger).  When None, every
                due charge of the cycle is applied (after salary validation).

        Returns:
            ChargeApplicationResult with one outcome per active charge.

        Raises:
            UserNotFoundError: unknown user.
            StorageFailureError: database unavailable; nothing is kept.
        """
        with storage_guard("apply_due_charges"):
            self._lock_user(user_id)
            charges = self._charges.active_charges(user_id, cycle.start, cycle.end)

        logger.info(
            "charge_application_started",
            extra={
                "cycle_start": cycle.start,
                "cycle_end": cycle.end,
                "charge_count": len(charges),
                "only_due_by": today,
            },
        )

        outcomes = []
        for charge in charges:
            with LogContext.bind(charge_id=str(charge.id)):
                outcomes.append(self._apply_one(user_id, charge, cycle, today))

        result = ChargeApplicationResult(
            user_id=user_id,
            cycle=cycle,
            outcomes=tuple(outcomes),
        )
        logger.info(
            "charge_application_completed",
            extra={
                "applied": result.count(ChargeOutcomeStatus.APPLIED),
                "already_applied": result.count(ChargeOutcomeStatus.ALREADY_APPLIED),
                "not_yet_due": result.count(ChargeOutcomeStatus.NOT_YET_DUE),
                "failed": result.count(ChargeOutcomeStatus.FAILED),
            },
        )
        return result

    # ------------------------------------------------------------------

    def _lock_user(self, user_id: UUID) -> None:
        user = self.session.execute(
            select(User).where(User.id == user_id).with_for_update()
        ).scalar_one_or_none()
        if user is None:
            raise UserNotFoundError(str(user_id))

    def _skip(
        self,
        charge: ChargeInfo,
        status: ChargeOutcomeStatus,
        due_date: date | None = None,
        entry=None,
    ) -> ChargeOutcome:
        logger.debug(
            "charge_skipped",
            extra={"status": status.value, "due_date": due_date},
        )
        return ChargeOutcome(
            charge_id=charge.id,
            charge_name=charge.name,
            status=status,
            due_date=due_date,
            entry=entry,
        )

    def _apply_one(
        self,
        user_id: UUID,
        charge: ChargeInfo,
        cycle: BudgetCycle,
        today: date | None,
    ) -> ChargeOutcome:
        if not is_due_this_cycle(charge, cycle):
            return self._skip(charge, ChargeOutcomeStatus.NOT_ELIGIBLE)

        due_date = compute_due_date(cycle.start, cycle.end, charge.day_of_month)
        if due_date is None:
            return self._skip(charge, ChargeOutcomeStatus.NOT_IN_CYCLE)

        # Charges are never applied in advance by the dashboard trigger
        if today is not None and due_date > today:
            return self._skip(charge, ChargeOutcomeStatus.NOT_YET_DUE, due_date)

        with storage_guard("charge_idempotency_check"):
            existing = self._find_existing(user_id, charge, cycle)
        if existing is not None:
            return self._skip(charge, ChargeOutcomeStatus.ALREADY_APPLIED, due_date, existing)

        return self._post_charge(user_id, charge, cycle, due_date)

    def _find_existing(self, user_id: UUID, charge: ChargeInfo, cycle: BudgetCycle):
        existing = self._ledger.find_charge_entry(charge.id, cycle.label)
        if existing is None and self._match_legacy_descriptions:
            existing = self._ledger.find_matching_description(
                user_id,
                charge.category,
                charge.name,
                cycle.start,
                cycle.end,
            )
        return existing

    def _post_charge(
        self,
        user_id: UUID,
        charge: ChargeInfo,
        cycle: BudgetCycle,
        due_date: date,
    ) -> ChargeOutcome:
        key = charge_idempotency_key(charge.id, cycle.label)
        description = self._description_template.format(
            name=charge.name,
            cycle_label=cycle.label,
            category=charge.category.value,
        )

        with storage_guard("apply_charge"):
            savepoint = self.session.begin_nested()
            try:
                entry = self._gateway.post(
                    user_id=user_id,
                    account_id=charge.account_id,
                    amount=-charge.amount,
                    category=charge.category,
                    description=description,
                    entry_date=due_date,
                    charge_id=charge.id,
                    cycle_label=cycle.label,
                )
                savepoint.commit()
            except IntegrityError as exc:
                savepoint.rollback()
                return self._resolve_conflict(charge, cycle, due_date, key, exc)
            except (OperationalError, InterfaceError):
                raise
            except BudgetKernelError as exc:
                savepoint.rollback()
                return self._failed(charge, due_date, exc.code, str(exc))
            except SQLAlchemyError as exc:
                savepoint.rollback()
                return self._failed(charge, due_date, "STORAGE_WRITE_FAILED", str(exc))

        logger.info(
            "charge_applied",
            extra={
                "idempotency_key": key,
                "entry_id": str(entry.id),
                "account_id": str(charge.account_id),
                "amount": str(entry.amount),
                "due_date": due_date,
            },
        )
        return ChargeOutcome(
            charge_id=charge.id,
            charge_name=charge.name,
            status=ChargeOutcomeStatus.APPLIED,
            due_date=due_date,
            entry=entry,
        )

    def _resolve_conflict(
        self,
        charge: ChargeInfo,
        cycle: BudgetCycle,
        due_date: date,
        key: str,
        exc: IntegrityError,
    ) -> ChargeOutcome:
        # A concurrent pass committed the same key first
        winner = self._ledger.find_charge_entry(charge.id, cycle.label)
        if winner is not None:
            logger.info(
                "charge_concurrent_apply_conflict",
                extra={"idempotency_key": key},
            )
            return self._skip(charge, ChargeOutcomeStatus.ALREADY_APPLIED, due_date, winner)
        return self._failed(charge, due_date, "INTEGRITY_ERROR", str(exc.orig or exc))

    def _failed(
        self,
        charge: ChargeInfo,
        due_date: date,
        code: str,
        message: str,
    ) -> ChargeOutcome:
        logger.warning(
            "charge_application_failed",
            extra={"error_code": code, "error_message": message, "due_date": due_date},
        )
        return ChargeOutcome(
            charge_id=charge.id,
            charge_name=charge.name,
            status=ChargeOutcomeStatus.FAILED,
            due_date=due_date,
            error_code=code,
            error_message=message,
        )
