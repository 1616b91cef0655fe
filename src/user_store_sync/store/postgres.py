"""PostgreSQL record store."""

from typing import Optional

import psycopg2

from ..schema import USERS_TABLE, TableSchema
from .base import ExistingColumn, RecordStore


class PostgresStore(RecordStore):
    """Record store backed by a PostgreSQL database (psycopg2)."""

    dialect = "postgresql"
    placeholder = "%s"
    driver_error = psycopg2.Error

    def __init__(self, dsn: str, read_only: bool = False, table: TableSchema = USERS_TABLE):
        super().__init__(dsn, read_only=read_only, table=table)
        self.dsn = dsn

    def _open_connection(self):
        conn = psycopg2.connect(self.dsn)
        try:
            # Transactions are driven by explicit BEGIN/COMMIT/ROLLBACK
            conn.set_session(readonly=self.read_only, autocommit=True)
        except psycopg2.Error:
            conn.close()
            raise
        return conn

    def _describe_table(self, table_name: str) -> Optional[dict[str, ExistingColumn]]:
        cursor = self._execute(
            """
            SELECT column_name, data_type
            FROM information_schema.columns
            WHERE table_name = %s AND table_schema = current_schema()
            ORDER BY ordinal_position
            """,
            (table_name,),
        )
        rows = cursor.fetchall()
        if not rows:
            return None

        cursor = self._execute(
            """
            SELECT kcu.column_name
            FROM information_schema.table_constraints tc
            JOIN information_schema.key_column_usage kcu
                ON tc.constraint_name = kcu.constraint_name
                AND tc.table_schema = kcu.table_schema
            WHERE tc.table_name = %s
                AND tc.constraint_type = 'PRIMARY KEY'
                AND tc.table_schema = current_schema()
            """,
            (table_name,),
        )
        primary_keys = {row[0].lower() for row in cursor.fetchall()}

        return {
            name.lower(): ExistingColumn(name=name, db_type=data_type, primary_key=name.lower() in primary_keys)
            for name, data_type in rows
        }
