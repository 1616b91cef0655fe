"""Record stores over relational backends.

This package provides:
- RecordStore: Dialect-independent contract (connect, schema, fetch, transactions)
- Transaction: All-or-nothing unit of upserts
- SQLiteStore: sqlite3 dialect
- PostgresStore: psycopg2 dialect (imported lazily by create_store)
- create_store: Build a store from a connection descriptor
- bootstrap_store: Ensure schema and seed an empty store
"""

from .base import RecordStore, Transaction, redact_descriptor
from .bootstrap import bootstrap_store
from .factory import create_store, get_dialect
from .sqlite import SQLiteStore

__all__ = [
    "RecordStore",
    "SQLiteStore",
    "Transaction",
    "bootstrap_store",
    "create_store",
    "get_dialect",
    "redact_descriptor",
]
