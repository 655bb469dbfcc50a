"""
Idempotency key utilities for recurring charge application.

A charge is applied at most once per budget cycle.  The key is the pair
(charge_id, cycle_label), stored on the LedgerEntry in two columns backed
by a unique constraint; the string form below is carried in log records.
"""

from uuid import UUID

from budget_kernel.domain.cycle import parse_cycle_label

_PREFIX = "charge"


def charge_idempotency_key(charge_id: UUID | str, cycle_label: str) -> str:
    """
    Generate the idempotency key for one charge in one cycle.

    Format: charge:<charge_id>:<cycle_label>

    Example:
        >>> charge_idempotency_key(uuid, "2025-01")
        "charge:550e8400-e29b-41d4-a716-446655440000:2025-01"
    """
    parse_cycle_label(cycle_label)
    return f"{_PREFIX}:{charge_id}:{cycle_label}"
