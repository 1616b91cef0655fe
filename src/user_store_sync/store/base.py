"""Dialect-independent record store contract and transaction handling."""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from ..errors import (
    CommitError,
    ConstraintError,
    QueryError,
    SchemaError,
    StoreConnectionError,
    TransactionError,
)
from ..schema import USERS_TABLE, Record, TableSchema, is_compatible_type, map_logical_type

logger = logging.getLogger(__name__)

# Password runs to the last @ before the host, it may itself contain @
_URL_PASSWORD = re.compile(r"(://[^:/@]+:)[^/]*(@)")
_KV_PASSWORD = re.compile(r"(password\s*=\s*)\S+", re.IGNORECASE)


def redact_descriptor(descriptor: str) -> str:
    """Mask passwords in a connection descriptor for log and error output."""
    if not descriptor:
        return descriptor
    redacted = _URL_PASSWORD.sub(r"\1***\2", descriptor)
    return _KV_PASSWORD.sub(r"\1***", redacted)


@dataclass
class ExistingColumn:
    """A column as reported by the database catalog."""

    name: str
    db_type: str
    primary_key: bool = False


class RecordStore(ABC):
    """
    Uniform contract over a relational backend holding user records.

    Subclasses provide the driver connection, catalog introspection and the
    driver's base exception class. Everything else, including the upsert
    statement and transaction lifecycle, is shared.
    """

    dialect: str = ""
    placeholder: str = "?"
    driver_error: type[Exception] = Exception

    def __init__(self, descriptor: str, read_only: bool = False, table: TableSchema = USERS_TABLE):
        self.descriptor = descriptor
        self.read_only = read_only
        self.table = table
        self.conn: Optional[Any] = None
        self._transaction: Optional[Transaction] = None

    def __repr__(self):
        mode = "ro" if self.read_only else "rw"
        return f"<{type(self).__name__} {self.display_name} ({mode})>"

    @property
    def display_name(self) -> str:
        return redact_descriptor(self.descriptor)

    @property
    def is_connected(self) -> bool:
        return self.conn is not None

    @property
    def in_transaction(self) -> bool:
        return self._transaction is not None

    # Connection lifecycle

    @abstractmethod
    def _open_connection(self) -> Any:
        """Open and return a driver connection in autocommit mode."""

    @abstractmethod
    def _describe_table(self, table_name: str) -> Optional[dict[str, ExistingColumn]]:
        """Return existing columns keyed by lowercase name, or None if the table is absent."""

    def connect(self) -> RecordStore:
        """Establish the store connection."""
        if self.conn is not None:
            return self
        try:
            self.conn = self._open_connection()
        except self.driver_error as e:
            msg = f"Cannot connect to {self.dialect} store {self.display_name}: {e}"
            raise StoreConnectionError(msg) from e
        logger.debug("Connected to %s", self)
        return self

    def close(self):
        """Close the store connection, rolling back any open transaction."""
        if self._transaction is not None:
            self._transaction.rollback()
        if self.conn is not None:
            try:
                self.conn.close()
            except self.driver_error as e:
                logger.warning("Error closing %s: %s", self, e)
            finally:
                self.conn = None

    def __enter__(self):
        """Context manager entry - establish connection."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - close connection."""
        self.close()
        return False

    def _require_connection(self, error_cls: type[Exception]):
        if self.conn is None:
            msg = f"{self.dialect} store {self.display_name} is not connected"
            raise error_cls(msg)

    def _execute(self, sql: str, params: Optional[tuple] = None):
        cursor = self.conn.cursor()
        if params:
            cursor.execute(sql, params)
        else:
            cursor.execute(sql)
        return cursor

    # Schema

    def _column_ddl(self, column) -> str:
        ddl = f"{column.name} {map_logical_type(column.logical_type, self.dialect)}"
        if column.primary_key:
            ddl += " PRIMARY KEY"
        elif not column.nullable:
            ddl += " NOT NULL"
        return ddl

    def _create_table_sql(self, table: TableSchema) -> str:
        columns = ", ".join(self._column_ddl(col) for col in table.columns)
        return f"CREATE TABLE IF NOT EXISTS {table.table_name} ({columns})"

    def _missing_columns(self, table: TableSchema, existing: dict[str, ExistingColumn]) -> list:
        """
        Compare an existing table against the descriptor.

        Returns:
            Descriptor columns absent from the table (candidates for the additive migration)

        Raises:
            SchemaError: If the key column or an existing column is incompatible
        """
        key = table.primary_key
        if key is None:
            msg = f"Table descriptor '{table.table_name}' declares no primary key"
            raise SchemaError(msg)

        found_key = existing.get(key.name.lower())
        if found_key is None or not found_key.primary_key:
            msg = f"Table '{table.table_name}' exists but '{key.name}' is not its primary key"
            raise SchemaError(msg)

        # ON CONFLICT (id) needs id to be the whole key
        other_keys = sorted(col.name for col in existing.values() if col.primary_key and col is not found_key)
        if other_keys:
            msg = (
                f"Table '{table.table_name}' has a composite primary key "
                f"({key.name}, {', '.join(other_keys)}), '{key.name}' must be the only key column"
            )
            raise SchemaError(msg)

        missing = []
        for column in table.columns:
            found = existing.get(column.name.lower())
            if found is None:
                missing.append(column)
                continue
            if not is_compatible_type(column.logical_type, found.db_type, self.dialect):
                msg = (
                    f"Table '{table.table_name}' column '{column.name}' has type "
                    f"'{found.db_type}', expected {column.logical_type}"
                )
                raise SchemaError(msg)
        return missing

    def ensure_schema(self, table: Optional[TableSchema] = None) -> bool:
        """
        Create the table if absent, leave it untouched if compatible.

        Missing non-key columns are added with one ALTER TABLE each. This is
        the only migration performed; anything else incompatible is an error.

        Args:
            table: Entity descriptor (defaults to the store's table)

        Returns:
            True if any DDL was issued, False if the schema already matched

        Raises:
            SchemaError: If the table cannot be created or verified
        """
        table = table or self.table
        self._require_connection(SchemaError)
        if self.read_only:
            msg = f"Cannot modify schema of read-only store {self.display_name}"
            raise SchemaError(msg)

        try:
            existing = self._describe_table(table.table_name)
            if existing is None:
                self._execute(self._create_table_sql(table))
                logger.info("Created table '%s' in %s", table.table_name, self.display_name)
                return True

            missing = self._missing_columns(table, existing)
            for column in missing:
                if not column.nullable:
                    msg = f"Cannot add NOT NULL column '{column.name}' to existing table '{table.table_name}'"
                    raise SchemaError(msg)
                self._execute(f"ALTER TABLE {table.table_name} ADD COLUMN {self._column_ddl(column)}")
                logger.info("Added column '%s' to table '%s'", column.name, table.table_name)
            return bool(missing)
        except self.driver_error as e:
            msg = f"Cannot ensure schema of '{table.table_name}' in {self.display_name}: {e}"
            raise SchemaError(msg) from e

    # Reads

    def fetch_all(self) -> list[Record]:
        """
        Fetch every record, ordered by id.

        Raises:
            QueryError: If the read fails (including a missing table)
        """
        self._require_connection(QueryError)
        # S608: table name from descriptor, not user input
        sql = f"SELECT id, name FROM {self.table.table_name} ORDER BY id"  # noqa: S608
        try:
            rows = self._execute(sql).fetchall()
        except self.driver_error as e:
            msg = f"Cannot read '{self.table.table_name}' from {self.display_name}: {e}"
            raise QueryError(msg) from e
        return [Record.from_row(row) for row in rows]

    def count(self) -> int:
        """Count records in the table."""
        self._require_connection(QueryError)
        try:
            row = self._execute(f"SELECT COUNT(*) FROM {self.table.table_name}").fetchone()  # noqa: S608
        except self.driver_error as e:
            msg = f"Cannot count '{self.table.table_name}' in {self.display_name}: {e}"
            raise QueryError(msg) from e
        return row[0]

    # Writes

    def begin_transaction(self) -> Transaction:
        """
        Start an explicit transaction.

        Raises:
            TransactionError: If the store is not writable or a transaction is already open
        """
        self._require_connection(TransactionError)
        if self.read_only:
            msg = f"Cannot write to read-only store {self.display_name}"
            raise TransactionError(msg)
        if self._transaction is not None:
            msg = f"A transaction is already open on {self.display_name}"
            raise TransactionError(msg)
        try:
            self._execute("BEGIN")
        except self.driver_error as e:
            msg = f"Cannot begin transaction on {self.display_name}: {e}"
            raise TransactionError(msg) from e
        self._transaction = Transaction(self)
        return self._transaction

    def _upsert(self, record: Record) -> bool:
        table_name = self.table.table_name
        p = self.placeholder
        # S608: table name from descriptor, values parameterized
        cursor = self._execute(f"SELECT 1 FROM {table_name} WHERE id = {p}", (record.id,))  # noqa: S608
        is_new = cursor.fetchone() is None
        self._execute(
            f"INSERT INTO {table_name} (id, name) VALUES ({p}, {p}) "  # noqa: S608
            "ON CONFLICT (id) DO UPDATE SET name = excluded.name",
            (record.id, record.name),
        )
        return is_new

    def _rollback_quietly(self):
        if self.conn is None:
            return
        try:
            self._execute("ROLLBACK")
        except self.driver_error as e:
            logger.warning("Rollback on %s reported an error: %s", self.display_name, e)

    def seed_if_empty(self, records: Iterable[Record]) -> int:
        """
        Insert records in one transaction if the table holds none.

        Returns:
            Number of records inserted (0 if the table was already populated)
        """
        if self.count() > 0:
            return 0
        with self.begin_transaction() as tx:
            for record in records:
                tx.upsert(record)
            tx.commit()
        return tx.inserted


class Transaction:
    """
    A single all-or-nothing unit of work on a record store.

    Leaving the ``with`` block without a successful ``commit()`` rolls back.
    """

    def __init__(self, store: RecordStore):
        self._store = store
        self.active = True
        self.inserted = 0
        self.updated = 0

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.active:
            self.rollback()
        return False

    def _require_active(self):
        if not self.active:
            msg = "Transaction already finished"
            raise TransactionError(msg)

    def upsert(self, record: Record) -> bool:
        """
        Insert the record, or overwrite the name of the row with the same id.

        Returns:
            True if inserted, False if an existing row was updated

        Raises:
            ConstraintError: If the database rejects the write
        """
        self._require_active()
        if not isinstance(record.id, int) or isinstance(record.id, bool):
            msg = f"Record id must be an integer, got {record.id!r}"
            raise ConstraintError(msg, record_id=record.id)
        # NULL names are stored as is, the column is nullable
        if record.name is not None and not isinstance(record.name, str):
            msg = f"Record {record.id} name must be a string or None, got {type(record.name).__name__}"
            raise ConstraintError(msg, record_id=record.id)

        try:
            is_new = self._store._upsert(record)
        except self._store.driver_error as e:
            msg = f"Upsert of record {record.id} rejected: {e}"
            raise ConstraintError(msg, record_id=record.id) from e

        if is_new:
            self.inserted += 1
        else:
            self.updated += 1
        return is_new

    def commit(self):
        """
        Commit every upsert issued in this transaction.

        Raises:
            CommitError: If the commit fails (the transaction is rolled back)
        """
        self._require_active()
        try:
            self._store._execute("COMMIT")
        except self._store.driver_error as e:
            self._store._rollback_quietly()
            msg = f"Commit on {self._store.display_name} failed: {e}"
            raise CommitError(msg) from e
        finally:
            self._finish()

    def rollback(self):
        """Undo every upsert issued in this transaction. Never raises."""
        if not self.active:
            return
        self._store._rollback_quietly()
        self._finish()

    def _finish(self):
        self.active = False
        if self._store._transaction is self:
            self._store._transaction = None
