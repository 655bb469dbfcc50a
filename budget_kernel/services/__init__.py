"""Write-side kernel services.  All of them flush; none of them commit."""

from budget_kernel.services.charge_application import ChargeApplicationEngine
from budget_kernel.services.charge_service import RecurringChargeService
from budget_kernel.services.ledger_gateway import LedgerGateway
from budget_kernel.services.salary_service import SalaryService, SalaryValidation
from budget_kernel.services.snapshot_service import SnapshotAggregator
from budget_kernel.services.user_lock import UserLockRegistry

__all__ = [
    "ChargeApplicationEngine",
    "LedgerGateway",
    "RecurringChargeService",
    "SalaryService",
    "SalaryValidation",
    "SnapshotAggregator",
    "UserLockRegistry",
]
