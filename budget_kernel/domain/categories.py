"""
Categories -- transaction categories and the snapshot bucket table.

Responsibility:
    Defines the closed set of ledger categories and the fixed
    category -> bucket classification used when a cycle is frozen.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Every category belongs to at most one bucket.
    - Income counts only credits (amount > 0); fixed charges, variable
      expenses and savings count only debits (amount < 0), as absolute
      values.  Anything else contributes to no bucket.
"""

from decimal import Decimal
from enum import Enum


class TransactionCategory(str, Enum):
    """Enumerated ledger entry categories."""

    # Income
    SALARY = "salary"
    BONUS = "bonus"
    FREELANCE = "freelance"
    BENEFITS = "benefits"
    REFUND = "refund"
    INVESTMENT_GAIN = "investment_gain"
    GIFT_RECEIVED = "gift_received"
    SALE = "sale"

    # Fixed charges
    RENT = "rent"
    INSURANCE = "insurance"
    SUBSCRIPTION = "subscription"
    MORTGAGE = "mortgage"
    CONSUMER_LOAN = "consumer_loan"
    TAXES = "taxes"
    HEALTH_INSURANCE = "health_insurance"
    BANK_FEES = "bank_fees"

    # Variable expenses
    GROCERIES = "groceries"
    RESTAURANT = "restaurant"
    TRANSPORT = "transport"
    FUEL = "fuel"
    SHOPPING = "shopping"
    LEISURE = "leisure"
    HEALTH = "health"
    BEAUTY = "beauty"
    HOUSEHOLD = "household"
    EDUCATION = "education"
    TRAVEL = "travel"

    # Savings and investment
    SAVINGS = "savings"
    INVESTMENT = "investment"

    # Unclassified
    INTERNAL_TRANSFER = "internal_transfer"
    GOAL_TRANSFER = "goal_transfer"
    GOAL_DEPOSIT = "goal_deposit"
    CASH_WITHDRAWAL = "cash_withdrawal"
    COMMISSION = "commission"
    OTHER = "other"


class SnapshotBucket(str, Enum):
    """Aggregation buckets of a frozen cycle."""

    REVENUE = "revenue"
    FIXED_CHARGES = "fixed_charges"
    VARIABLE_EXPENSES = "variable_expenses"
    SAVINGS = "savings"


# The snapshot only counts the first five income categories; investment
# gains, gifts and sales are income for display but not for the frozen
# revenue figure.
INCOME_CATEGORIES: frozenset[TransactionCategory] = frozenset({
    TransactionCategory.SALARY,
    TransactionCategory.BONUS,
    TransactionCategory.FREELANCE,
    TransactionCategory.BENEFITS,
    TransactionCategory.REFUND,
})

FIXED_CHARGE_CATEGORIES: frozenset[TransactionCategory] = frozenset({
    TransactionCategory.RENT,
    TransactionCategory.INSURANCE,
    TransactionCategory.SUBSCRIPTION,
    TransactionCategory.MORTGAGE,
    TransactionCategory.CONSUMER_LOAN,
    TransactionCategory.TAXES,
    TransactionCategory.HEALTH_INSURANCE,
    TransactionCategory.BANK_FEES,
})

VARIABLE_EXPENSE_CATEGORIES: frozenset[TransactionCategory] = frozenset({
    TransactionCategory.GROCERIES,
    TransactionCategory.RESTAURANT,
    TransactionCategory.TRANSPORT,
    TransactionCategory.FUEL,
    TransactionCategory.SHOPPING,
    TransactionCategory.LEISURE,
    TransactionCategory.HEALTH,
    TransactionCategory.BEAUTY,
    TransactionCategory.HOUSEHOLD,
    TransactionCategory.EDUCATION,
    TransactionCategory.TRAVEL,
})

SAVINGS_CATEGORIES: frozenset[TransactionCategory] = frozenset({
    TransactionCategory.SAVINGS,
    TransactionCategory.INVESTMENT,
})

REVENUE_CATEGORIES: frozenset[TransactionCategory] = INCOME_CATEGORIES | frozenset({
    TransactionCategory.INVESTMENT_GAIN,
    TransactionCategory.GIFT_RECEIVED,
    TransactionCategory.SALE,
})

_BUCKET_TABLE: dict[TransactionCategory, SnapshotBucket] = {
    **{c: SnapshotBucket.REVENUE for c in INCOME_CATEGORIES},
    **{c: SnapshotBucket.FIXED_CHARGES for c in FIXED_CHARGE_CATEGORIES},
    **{c: SnapshotBucket.VARIABLE_EXPENSES for c in VARIABLE_EXPENSE_CATEGORIES},
    **{c: SnapshotBucket.SAVINGS for c in SAVINGS_CATEGORIES},
}


def bucket_for(category: TransactionCategory | str) -> SnapshotBucket | None:
    """Return the bucket a category belongs to, or None."""
    return _BUCKET_TABLE.get(TransactionCategory(category))


def classify(
    category: TransactionCategory | str,
    amount: Decimal,
) -> tuple[SnapshotBucket, Decimal] | None:
    """
    Classify one signed ledger amount.

    Returns:
        (bucket, contribution) where contribution is non-negative, or None
        when the entry counts toward no bucket.
    """
    bucket = bucket_for(category)
    if bucket is None:
        return None
    if bucket is SnapshotBucket.REVENUE:
        return (bucket, amount) if amount > 0 else None
    return (bucket, -amount) if amount < 0 else None


def is_revenue(category: TransactionCategory | str) -> bool:
    return TransactionCategory(category) in REVENUE_CATEGORIES
