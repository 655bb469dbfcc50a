"""
Module: budget_kernel.selectors.snapshot_selector
Responsibility: Read access to frozen month snapshots.
Architecture position: Kernel > Selectors.
"""

from uuid import UUID

from sqlalchemy import select

from budget_kernel.domain.dtos import SnapshotInfo
from budget_kernel.exceptions import SnapshotNotFoundError
from budget_kernel.models.month_snapshot import MonthSnapshot
from budget_kernel.selectors.base import BaseSelector


class SnapshotSelector(BaseSelector[MonthSnapshot]):
    def find(self, user_id: UUID, cycle_label: str) -> SnapshotInfo | None:
        snapshot = self.session.scalars(
            select(MonthSnapshot).where(
                MonthSnapshot.user_id == user_id,
                MonthSnapshot.cycle_label == cycle_label,
            )
        ).first()
        return SnapshotInfo.from_model(snapshot) if snapshot is not None else None

    def get(self, user_id: UUID, cycle_label: str) -> SnapshotInfo:
        """
        Raises:
            SnapshotNotFoundError: no snapshot frozen for (user, label).
        """
        snapshot = self.find(user_id, cycle_label)
        if snapshot is None:
            raise SnapshotNotFoundError(str(user_id), cycle_label)
        return snapshot

    def list_for_user(self, user_id: UUID) -> list[SnapshotInfo]:
        """All snapshots of a user, newest cycle label first."""
        rows = self.session.scalars(
            select(MonthSnapshot)
            .where(MonthSnapshot.user_id == user_id)
            .order_by(MonthSnapshot.cycle_label.desc())
        ).all()
        return [SnapshotInfo.from_model(s) for s in rows]
