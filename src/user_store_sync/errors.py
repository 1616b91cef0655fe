"""Exceptions raised by record stores and the reconciliation engine."""

from typing import Optional


class StoreError(RuntimeError):
    """Base exception for all record store failures."""


class StoreConnectionError(StoreError):
    """
    Store could not be opened.

    Raised when:
    - Descriptor is empty or not recognised for any dialect
    - Host is unreachable or credentials are rejected
    - SQLite file is missing (read-only stores) or cannot be opened
    """


class SchemaError(StoreError):
    """Destination table cannot be created or does not match the expected shape."""


class QueryError(StoreError):
    """Reading records from a store failed."""


class ConstraintError(StoreError):
    """
    A single upsert was rejected.

    Raised for constraint violations other than the declared conflict key
    (NOT NULL, CHECK, type mismatches) and for records with invalid field types.
    """

    def __init__(self, message: str, record_id=None):
        super().__init__(message)
        self.record_id = record_id


class TransactionError(StoreError):
    """Transaction could not be started or was used after it finished."""


class CommitError(TransactionError):
    """Commit failed; nothing from the transaction is durable."""


class ReconciliationError(RuntimeError):
    """
    A reconciliation run aborted.

    Carries the phase the run was in when it failed. The store error that
    caused the abort is chained as ``__cause__`` and exposed as ``cause``.
    """

    def __init__(self, phase, cause: Optional[BaseException] = None, message: Optional[str] = None):
        self.phase = phase
        self.cause = cause
        if message is None:
            message = f"{cause}" if cause is not None else "unknown failure"
        super().__init__(f"Reconciliation aborted during {phase}: {message}")
