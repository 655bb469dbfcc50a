"""
SQLAlchemy ORM models for the budget kernel.

Importing this package registers every table on ``Base.metadata``.
"""

from budget_kernel.models.account import Account, AccountType
from budget_kernel.models.ledger_entry import LedgerEntry
from budget_kernel.models.month_snapshot import MonthSnapshot
from budget_kernel.models.recurring_charge import RecurringCharge
from budget_kernel.models.user import User
from budget_kernel.models.validated_salary import ValidatedSalary

__all__ = [
    "Account",
    "AccountType",
    "LedgerEntry",
    "MonthSnapshot",
    "RecurringCharge",
    "User",
    "ValidatedSalary",
]
