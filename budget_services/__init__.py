"""
budget_services -- trigger layer over the budget kernel.

Owns transaction boundaries and per-user serialization; the kernel
services it calls only flush.
"""

from budget_services.cycle_orchestrator import CycleOrchestrator, SalaryCycleResult

__all__ = ["CycleOrchestrator", "SalaryCycleResult"]
