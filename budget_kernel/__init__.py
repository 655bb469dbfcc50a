"""
Budget Kernel - pay-cycle reconciliation core

A personal-finance ledger core with:
- Pay-day based budget cycles instead of calendar months
- Frequency-gated recurring charges applied exactly once per cycle
- Atomic entry + balance writes per charge
- Replaceable frozen snapshots of each cycle's totals
"""

__version__ = "0.1.0"
