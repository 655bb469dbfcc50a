"""Kernel utilities."""

from budget_kernel.utils.idempotency import charge_idempotency_key

__all__ = ["charge_idempotency_key"]
