"""One-shot reconciliation of user records between relational stores."""

from user_store_sync.scripts.reconcile import run_reconciliation

__version__ = "0.1.0"

__all__ = ["__version__", "run_reconciliation"]
