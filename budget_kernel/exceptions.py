"""
Typed Exception Hierarchy for the Budget Kernel.

Every error the core raises has a TYPED class (catch by type, not by
message), a class-level machine-readable ``code``, an ``http_status`` hint
for the service layer, and structured attributes instead of a formatted
string only.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    BudgetKernelError (base)
    |
    +-- NotFoundError                      (404, never retried)
    |   +-- UserNotFoundError
    |   +-- AccountNotFoundError
    |   +-- ChargeNotFoundError
    |   +-- SnapshotNotFoundError
    |
    +-- InvalidArgumentError               (400, rejected before mutation)
    |   +-- InvalidCycleLabelError
    |   +-- InvalidChargeAmountError
    |   +-- InvalidDayOfMonthError
    |   +-- InvalidPercentageSplitError
    |   +-- InvalidDateRangeError
    |
    +-- ConcurrencyConflictError           (409, whole pass safe to retry)
    |   +-- OptimisticLockError
    |
    +-- StorageFailureError                (503, fatal for the current pass)

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
NotFound        | USER_NOT_FOUND              | User id doesn't exist
                | ACCOUNT_NOT_FOUND           | Account missing, inactive, or foreign
                | CHARGE_NOT_FOUND            | Recurring charge missing or inactive
                | SNAPSHOT_NOT_FOUND          | No frozen snapshot for (user, label)
----------------|-----------------------------|-----------------------------------------
Argument        | INVALID_CYCLE_LABEL         | Label is not YYYY-MM
                | INVALID_CHARGE_AMOUNT       | Charge amount <= 0
                | INVALID_DAY_OF_MONTH        | Pay day / charge day outside 1-31
                | INVALID_PERCENTAGE_SPLIT    | Budget split does not sum to 100
                | INVALID_DATE_RANGE          | End date before start date
----------------|-----------------------------|-----------------------------------------
Concurrency     | OPTIMISTIC_LOCK_CONFLICT    | Stale version on account/charge row
----------------|-----------------------------|-----------------------------------------
Storage         | STORAGE_FAILURE             | Database unreachable / connection lost
"""


class BudgetKernelError(Exception):
    """
    Base exception for all budget kernel errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    identification and an ``http_status`` hint for the outer layer.
    """

    code: str = "BUDGET_KERNEL_ERROR"
    http_status: int = 500


# NotFound


class NotFoundError(BudgetKernelError):
    """Referenced entity does not exist or is inactive."""

    code: str = "NOT_FOUND"
    http_status: int = 404


class UserNotFoundError(NotFoundError):
    """User with given ID was not found."""

    code: str = "USER_NOT_FOUND"

    def __init__(self, user_id: str):
        self.user_id = str(user_id)
        super().__init__(f"User not found: {user_id}")


class AccountNotFoundError(NotFoundError):
    """Account was not found, is inactive, or belongs to another user."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: str | None, user_id: str | None = None):
        self.account_id = str(account_id) if account_id is not None else None
        self.user_id = str(user_id) if user_id is not None else None
        if account_id is None:
            super().__init__(f"No active account available for user {user_id}")
        else:
            super().__init__(f"Account not found: {account_id}")


class ChargeNotFoundError(NotFoundError):
    """Recurring charge was not found or is inactive."""

    code: str = "CHARGE_NOT_FOUND"

    def __init__(self, charge_id: str):
        self.charge_id = str(charge_id)
        super().__init__(f"Recurring charge not found: {charge_id}")


class SnapshotNotFoundError(NotFoundError):
    """No snapshot has been frozen for the given user and cycle."""

    code: str = "SNAPSHOT_NOT_FOUND"

    def __init__(self, user_id: str, cycle_label: str):
        self.user_id = str(user_id)
        self.cycle_label = cycle_label
        super().__init__(f"No snapshot for user {user_id} and cycle {cycle_label}")


# InvalidArgument


class InvalidArgumentError(BudgetKernelError):
    """Input rejected before any mutation."""

    code: str = "INVALID_ARGUMENT"
    http_status: int = 400


class InvalidCycleLabelError(InvalidArgumentError):
    """Cycle label is not a valid YYYY-MM string."""

    code: str = "INVALID_CYCLE_LABEL"

    def __init__(self, label: str):
        self.label = label
        super().__init__(f"Invalid cycle label {label!r}: expected YYYY-MM")


class InvalidChargeAmountError(InvalidArgumentError):
    """Recurring charge amount must be strictly positive."""

    code: str = "INVALID_CHARGE_AMOUNT"

    def __init__(self, amount: str):
        self.amount = str(amount)
        super().__init__(f"Charge amount must be positive, got {amount}")


class InvalidDayOfMonthError(InvalidArgumentError):
    """Day-of-month value outside 1-31."""

    code: str = "INVALID_DAY_OF_MONTH"

    def __init__(self, field: str, value: int):
        self.field = field
        self.value = value
        super().__init__(f"{field} must be between 1 and 31, got {value}")


class InvalidPercentageSplitError(InvalidArgumentError):
    """Budget split percentages do not sum to 100."""

    code: str = "INVALID_PERCENTAGE_SPLIT"

    def __init__(self, total: str):
        self.total = str(total)
        super().__init__(f"Budget percentages must total 100, got {total}")


class InvalidDateRangeError(InvalidArgumentError):
    """End date precedes start date."""

    code: str = "INVALID_DATE_RANGE"

    def __init__(self, start_date: str, end_date: str):
        self.start_date = str(start_date)
        self.end_date = str(end_date)
        super().__init__(f"End date {end_date} is before start date {start_date}")


# Concurrency


class ConcurrencyConflictError(BudgetKernelError):
    """Concurrent modification detected; the apply pass may be retried."""

    code: str = "CONCURRENCY_CONFLICT"
    http_status: int = 409


class OptimisticLockError(ConcurrencyConflictError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = str(entity_id)
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )


# Storage


class StorageFailureError(BudgetKernelError):
    """Underlying store unavailable; the whole pass is rolled back."""

    code: str = "STORAGE_FAILURE"
    http_status: int = 503

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Storage failure during {operation}: {detail}")
