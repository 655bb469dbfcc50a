"""
Tests for recurring charge eligibility (lifetime and frequency gates).
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from budget_kernel.domain.categories import TransactionCategory
from budget_kernel.domain.cycle import (
    compute_cycle,
    compute_due_date,
    cycle_for_label,
    next_cycle,
)
from budget_kernel.domain.dtos import ChargeInfo
from budget_kernel.domain.recurrence import (
    Frequency,
    is_due_this_cycle,
    is_within_lifetime,
    matches_frequency,
    months_between,
)


def make_charge(**overrides) -> ChargeInfo:
    fields = dict(
        id=uuid4(),
        user_id=uuid4(),
        account_id=uuid4(),
        name="Insurance",
        category=TransactionCategory.INSURANCE,
        amount=Decimal("120.00"),
        day_of_month=10,
        frequency=Frequency.MONTHLY,
        start_date=date(2025, 1, 1),
    )
    fields.update(overrides)
    return ChargeInfo(**fields)


class TestFrequency:
    @pytest.mark.parametrize(
        "frequency, months",
        [
            (Frequency.MONTHLY, 1),
            (Frequency.BIMONTHLY, 2),
            (Frequency.QUARTERLY, 3),
            (Frequency.SEMIANNUAL, 6),
            (Frequency.ANNUAL, 12),
        ],
    )
    def test_interval_months(self, frequency, months):
        assert frequency.interval_months == months

    def test_months_between(self):
        assert months_between(date(2024, 11, 15), date(2025, 2, 1)) == 3
        assert months_between(date(2025, 2, 15), date(2025, 2, 1)) == 0


class TestLifetimeGate:
    def test_inactive_charge_is_never_due(self):
        cycle = compute_cycle(date(2025, 3, 1), 1)

        assert not is_within_lifetime(make_charge(is_active=False), cycle)

    def test_charge_starting_after_cycle_end(self):
        cycle = compute_cycle(date(2025, 3, 1), 1)

        assert not is_within_lifetime(make_charge(start_date=date(2025, 4, 1)), cycle)

    def test_charge_starting_on_cycle_end(self):
        cycle = compute_cycle(date(2025, 3, 1), 1)

        assert is_within_lifetime(make_charge(start_date=date(2025, 3, 31)), cycle)

    def test_charge_ended_before_cycle_start(self):
        cycle = compute_cycle(date(2025, 3, 1), 1)

        assert not is_within_lifetime(make_charge(end_date=date(2025, 2, 28)), cycle)

    def test_charge_ending_on_cycle_start(self):
        cycle = compute_cycle(date(2025, 3, 1), 1)

        assert is_within_lifetime(make_charge(end_date=date(2025, 3, 1)), cycle)

    def test_due_date_before_start_date_still_due(self):
        cycle = cycle_for_label("2025-01", 25)
        charge = make_charge(day_of_month=5, start_date=date(2025, 2, 10))

        assert is_due_this_cycle(charge, cycle)
        assert compute_due_date(cycle.start, cycle.end, charge.day_of_month) == date(2025, 2, 5)

    def test_due_date_after_end_date_still_due(self):
        cycle = cycle_for_label("2025-01", 25)
        charge = make_charge(
            day_of_month=5, start_date=date(2024, 6, 1), end_date=date(2025, 1, 30)
        )

        assert is_due_this_cycle(charge, cycle)
        assert compute_due_date(cycle.start, cycle.end, charge.day_of_month) == date(2025, 2, 5)


class TestFrequencyGate:
    def test_quarterly_from_january_over_two_years(self):
        charge = make_charge(frequency=Frequency.QUARTERLY, start_date=date(2025, 1, 1))
        cycle = cycle_for_label("2025-01", 1)

        due_months = []
        for _ in range(24):
            if is_due_this_cycle(charge, cycle):
                due_months.append(cycle.label)
            cycle = next_cycle(cycle, 1)

        assert due_months == [
            "2025-01", "2025-04", "2025-07", "2025-10",
            "2026-01", "2026-04", "2026-07", "2026-10",
        ]

    def test_bimonthly_alternates(self):
        charge = make_charge(frequency=Frequency.BIMONTHLY, start_date=date(2025, 1, 25))
        cycle = cycle_for_label("2025-01", 25)

        results = []
        for _ in range(8):
            results.append(matches_frequency(charge, cycle.start))
            cycle = next_cycle(cycle, 25)

        assert results == [True, False, True, False, True, False, True, False]

    def test_annual(self):
        charge = make_charge(frequency=Frequency.ANNUAL, start_date=date(2024, 6, 1))

        assert matches_frequency(charge, date(2025, 6, 25))
        assert not matches_frequency(charge, date(2025, 5, 25))

    def test_monthly_always_passes(self):
        charge = make_charge(start_date=date(2025, 1, 1))

        assert matches_frequency(charge, date(2031, 7, 3))

    def test_accepts_string_frequency(self):
        charge = make_charge(frequency="semiannual", start_date=date(2025, 1, 1))

        assert matches_frequency(charge, date(2025, 7, 1))
        assert not matches_frequency(charge, date(2025, 4, 1))

    def test_both_gates_must_pass(self):
        charge = make_charge(
            frequency=Frequency.QUARTERLY,
            start_date=date(2025, 1, 1),
            end_date=date(2025, 3, 31),
        )

        assert is_due_this_cycle(charge, cycle_for_label("2025-01", 1))
        assert not is_due_this_cycle(charge, cycle_for_label("2025-04", 1))
