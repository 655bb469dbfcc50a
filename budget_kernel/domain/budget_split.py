"""
Budget split -- fixed / variable / savings percentages of the salary.

The sum-to-100 check belongs to the caller that edits a user's split; the
kernel only uses ``target_budgets`` when freezing a cycle.
"""

from dataclasses import dataclass
from decimal import Decimal

from budget_kernel.db.types import round_money
from budget_kernel.exceptions import InvalidPercentageSplitError

DEFAULT_FIXED_CHARGES_PCT = Decimal("50.00")
DEFAULT_VARIABLE_EXPENSES_PCT = Decimal("30.00")
DEFAULT_SAVINGS_PCT = Decimal("20.00")
TOTAL_PERCENTAGE = Decimal("100")


@dataclass(frozen=True)
class TargetBudgets:
    fixed_charges: Decimal
    variable_expenses: Decimal
    savings: Decimal


def validate_budget_split(
    fixed_charges_pct: Decimal,
    variable_expenses_pct: Decimal,
    savings_pct: Decimal,
) -> None:
    """
    Raises:
        InvalidPercentageSplitError: the three percentages do not total 100.
    """
    total = fixed_charges_pct + variable_expenses_pct + savings_pct
    if total != TOTAL_PERCENTAGE:
        raise InvalidPercentageSplitError(str(total))


def target_budgets(
    salary: Decimal,
    fixed_charges_pct: Decimal,
    variable_expenses_pct: Decimal,
    savings_pct: Decimal,
) -> TargetBudgets:
    """salary x (percentage / 100) per bucket, rounded to cents."""
    return TargetBudgets(
        fixed_charges=round_money(salary * fixed_charges_pct / TOTAL_PERCENTAGE),
        variable_expenses=round_money(salary * variable_expenses_pct / TOTAL_PERCENTAGE),
        savings=round_money(salary * savings_pct / TOTAL_PERCENTAGE),
    )
