"""Reconciliation of user records between stores."""

from .engine import Phase, ReconciliationEngine, ReconciliationResult

__all__ = ["Phase", "ReconciliationEngine", "ReconciliationResult"]
