"""
Module: budget_kernel.selectors.charge_selector
Responsibility: Read access to recurring charges.
Architecture position: Kernel > Selectors.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import or_, select

from budget_kernel.domain.dtos import ChargeInfo
from budget_kernel.models.recurring_charge import RecurringCharge
from budget_kernel.selectors.base import BaseSelector


class ChargeSelector(BaseSelector[RecurringCharge]):
    def active_charges(
        self,
        user_id: UUID,
        cycle_start: date | None = None,
        cycle_end: date | None = None,
    ) -> list[ChargeInfo]:
        """
        Active charges of a user, ordered by day of month then name.

        When cycle bounds are given, charges whose lifetime cannot overlap
        the cycle are filtered out in SQL.  The recurrence gates still run
        in Python on the result.
        """
        stmt = select(RecurringCharge).where(
            RecurringCharge.user_id == user_id,
            RecurringCharge.is_active.is_(True),
        )
        if cycle_end is not None:
            stmt = stmt.where(RecurringCharge.start_date <= cycle_end)
        if cycle_start is not None:
            stmt = stmt.where(
                or_(
                    RecurringCharge.end_date.is_(None),
                    RecurringCharge.end_date >= cycle_start,
                )
            )
        stmt = stmt.order_by(
            RecurringCharge.day_of_month,
            RecurringCharge.name,
            RecurringCharge.created_at,
        )
        return [ChargeInfo.from_model(c) for c in self.session.scalars(stmt).all()]
