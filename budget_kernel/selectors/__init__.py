"""Read-only query selectors."""

from budget_kernel.selectors.charge_selector import ChargeSelector
from budget_kernel.selectors.ledger_selector import LedgerSelector
from budget_kernel.selectors.snapshot_selector import SnapshotSelector
from budget_kernel.selectors.user_selector import UserSelector

__all__ = ["ChargeSelector", "LedgerSelector", "SnapshotSelector", "UserSelector"]
