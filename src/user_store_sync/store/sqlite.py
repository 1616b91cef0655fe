"""SQLite record store."""

import sqlite3
from pathlib import Path
from typing import Optional

from ..schema import USERS_TABLE, TableSchema
from .base import ExistingColumn, RecordStore

MEMORY_PATH = ":memory:"


class SQLiteStore(RecordStore):
    """Record store backed by a SQLite database file."""

    dialect = "sqlite"
    placeholder = "?"
    driver_error = sqlite3.Error

    def __init__(self, db_path: str, read_only: bool = False, table: TableSchema = USERS_TABLE):
        super().__init__(db_path, read_only=read_only, table=table)
        self.db_path = db_path

    def _open_connection(self) -> sqlite3.Connection:
        # isolation_level=None: transactions are driven by explicit BEGIN/COMMIT/ROLLBACK
        if self.read_only and self.db_path != MEMORY_PATH:
            uri = f"{Path(self.db_path).resolve().as_uri()}?mode=ro"
            conn = sqlite3.connect(uri, uri=True, isolation_level=None)
        else:
            conn = sqlite3.connect(self.db_path, isolation_level=None)
        conn.row_factory = sqlite3.Row

        # Opening is lazy; touch the catalog so bad files fail here
        try:
            conn.execute("PRAGMA schema_version").fetchone()
        except sqlite3.Error:
            conn.close()
            raise
        return conn

    def _describe_table(self, table_name: str) -> Optional[dict[str, ExistingColumn]]:
        # PRAGMA rows: cid, name, type, notnull, dflt_value, pk
        rows = self._execute(f"PRAGMA table_info({table_name})").fetchall()
        if not rows:
            return None
        return {
            row[1].lower(): ExistingColumn(name=row[1], db_type=row[2], primary_key=bool(row[5]))
            for row in rows
        }
