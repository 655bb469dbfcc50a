"""
Cycle -- pay-day based budget cycle arithmetic.

Responsibility:
    Derives budget cycle boundaries from a reference date and a pay day,
    resolves cycle labels, and places a charge's day-of-month inside a
    cycle.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Cycles are derived
    values: they are recomputed on every call and never cached, so a pay
    day change affects the very next computation.

Invariants enforced:
    - Clamping: a pay day or charge day larger than a month's length is
      moved to that month's last day; no invalid date is ever built.
    - Contiguity: a cycle's end is always the day before the next cycle's
      start, so consecutive cycles share no day and leave no gap.
    - Labels: ``YYYY-MM`` of the calendar month the cycle starts in.

Failure modes:
    - InvalidDayOfMonthError for a pay day or charge day outside 1-31.
    - InvalidCycleLabelError for a label that is not ``YYYY-MM``.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date, timedelta

from budget_kernel.exceptions import InvalidCycleLabelError, InvalidDayOfMonthError

_LABEL_RE = re.compile(r"^(\d{4})-(\d{2})$")


@dataclass(frozen=True, slots=True)
class BudgetCycle:
    """
    An inclusive [start, end] pay-day-to-pay-day range.

    Guarantees:
        - start <= end.
        - label == format_cycle_label(start).
    """

    start: date
    end: date

    @property
    def label(self) -> str:
        return format_cycle_label(self.start)

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def __str__(self) -> str:
        return f"{self.label} [{self.start.isoformat()} .. {self.end.isoformat()}]"


def validate_day_of_month(value: int, field: str = "day_of_month") -> int:
    """Reject day-of-month values outside 1-31."""
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 31:
        raise InvalidDayOfMonthError(field, value)
    return value


def validate_pay_day(pay_day: int) -> int:
    return validate_day_of_month(pay_day, "pay_day")


def clamp_day(year: int, month: int, day: int) -> date:
    """Build a date, moving ``day`` back to the month's last day if needed."""
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last))


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _pay_date(year: int, month: int, pay_day: int) -> date:
    return clamp_day(year, month, pay_day)


def compute_cycle(reference_date: date, pay_day: int) -> BudgetCycle:
    """
    Compute the budget cycle containing ``reference_date``.

    If the reference day-of-month has reached the (clamped) pay day, the
    cycle starts on the pay day of the reference month; otherwise it starts
    on the pay day of the previous month.  It ends the day before the next
    month's (clamped) pay day.

    Example:
        compute_cycle(date(2025, 1, 28), 25)
        -> BudgetCycle(2025-01-25, 2025-02-24)
    """
    validate_pay_day(pay_day)

    this_month_pay = _pay_date(reference_date.year, reference_date.month, pay_day)
    if reference_date >= this_month_pay:
        start = this_month_pay
    else:
        y, m = _shift_month(reference_date.year, reference_date.month, -1)
        start = _pay_date(y, m, pay_day)

    ny, nm = _shift_month(start.year, start.month, 1)
    end = _pay_date(ny, nm, pay_day) - timedelta(days=1)
    return BudgetCycle(start=start, end=end)


def next_cycle(cycle: BudgetCycle, pay_day: int) -> BudgetCycle:
    """The cycle immediately following ``cycle``."""
    return compute_cycle(cycle.end + timedelta(days=1), pay_day)


def previous_cycle(cycle: BudgetCycle, pay_day: int) -> BudgetCycle:
    """The cycle immediately preceding ``cycle``."""
    return compute_cycle(cycle.start - timedelta(days=1), pay_day)


def compute_due_date(cycle_start: date, cycle_end: date, charge_day: int) -> date | None:
    """
    Place a charge's day-of-month inside a cycle.

    Tries ``charge_day`` (clamped) in the cycle-start month, then in the
    following month.  Returns None when neither candidate falls inside
    [cycle_start, cycle_end].
    """
    validate_day_of_month(charge_day, "charge_day")

    candidate = clamp_day(cycle_start.year, cycle_start.month, charge_day)
    if cycle_start <= candidate <= cycle_end:
        return candidate

    y, m = _shift_month(cycle_start.year, cycle_start.month, 1)
    candidate = clamp_day(y, m, charge_day)
    if cycle_start <= candidate <= cycle_end:
        return candidate

    return None


# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------


def format_cycle_label(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def parse_cycle_label(label: str) -> tuple[int, int]:
    """
    Parse ``YYYY-MM`` into (year, month).

    Raises:
        InvalidCycleLabelError: malformed label or month outside 1-12.
    """
    match = _LABEL_RE.match(label) if isinstance(label, str) else None
    if match is None:
        raise InvalidCycleLabelError(str(label))
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12 or year < 1:
        raise InvalidCycleLabelError(label)
    return year, month


def cycle_for_label(label: str, pay_day: int) -> BudgetCycle:
    """
    Resolve a cycle label to its bounds.

    The label names the month the cycle starts in, so the cycle is the one
    containing that month's (clamped) pay date.
    """
    year, month = parse_cycle_label(label)
    validate_pay_day(pay_day)
    return compute_cycle(_pay_date(year, month, pay_day), pay_day)


def previous_cycle_label(label: str) -> str:
    year, month = parse_cycle_label(label)
    y, m = _shift_month(year, month, -1)
    return f"{y:04d}-{m:02d}"


def next_cycle_label(label: str) -> str:
    year, month = parse_cycle_label(label)
    y, m = _shift_month(year, month, 1)
    return f"{y:04d}-{m:02d}"
