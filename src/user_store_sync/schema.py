"""Record type and table descriptors for the users table."""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class Record:
    """A user identity row, identical in every store."""

    id: int
    name: Optional[str]

    @classmethod
    def from_row(cls, row: Any) -> "Record":
        """Build a record from a DB-API row (tuple, sqlite3.Row or mapping)."""
        if isinstance(row, dict):
            return cls(id=row["id"], name=row["name"])
        return cls(id=row[0], name=row[1])

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name}


@dataclass
class ColumnDefinition:
    """A single column of a table descriptor."""

    name: str
    logical_type: str  # 'integer' or 'text'
    primary_key: bool = False
    nullable: bool = True


@dataclass
class TableSchema:
    """Entity descriptor passed to ``RecordStore.ensure_schema``."""

    table_name: str
    columns: list[ColumnDefinition] = field(default_factory=list)

    @property
    def primary_key(self) -> Optional[ColumnDefinition]:
        for column in self.columns:
            if column.primary_key:
                return column
        return None

    def column(self, name: str) -> Optional[ColumnDefinition]:
        for column in self.columns:
            if column.name.lower() == name.lower():
                return column
        return None


USERS_TABLE = TableSchema(
    table_name="users",
    columns=[
        ColumnDefinition(name="id", logical_type="integer", primary_key=True, nullable=False),
        ColumnDefinition(name="name", logical_type="text"),
    ],
)

# Users created on first boot of an empty store
DEFAULT_SEED_RECORDS = [
    Record(id=1, name="Davida123"),
    Record(id=2, name="Brianabc"),
    Record(id=3, name="Jeff"),
]

# Logical type to DDL type, per dialect
TYPE_MAP_SQLITE = {
    "integer": "INTEGER",
    "text": "TEXT",
}

TYPE_MAP_POSTGRESQL = {
    "integer": "BIGINT",
    "text": "TEXT",
}

# Existing column types accepted as compatible with a logical type.
# SQLite uses type affinity, so any declared type containing INT is an integer column.
COMPATIBLE_TYPES_SQLITE = {
    "integer": ("INT",),
    "text": ("TEXT", "CHAR", "CLOB"),
}

COMPATIBLE_TYPES_POSTGRESQL = {
    "integer": ("smallint", "integer", "bigint"),
    "text": ("text", "character varying", "character"),
}


def map_logical_type(logical_type: str, dialect: str) -> str:
    """
    Map a logical column type to the DDL type of a dialect.

    Args:
        logical_type: 'integer' or 'text'
        dialect: 'sqlite' or 'postgresql'

    Returns:
        DDL type name

    Raises:
        ValueError: If the dialect or logical type is unknown
    """
    if dialect == "sqlite":
        type_map = TYPE_MAP_SQLITE
    elif dialect == "postgresql":
        type_map = TYPE_MAP_POSTGRESQL
    else:
        msg = f"Unknown dialect: {dialect}"
        raise ValueError(msg)

    if logical_type not in type_map:
        msg = f"Unknown logical type: {logical_type}"
        raise ValueError(msg)
    return type_map[logical_type]


def is_compatible_type(logical_type: str, db_type: str, dialect: str) -> bool:
    """Check whether an existing column type can hold values of a logical type."""
    if dialect == "sqlite":
        db_type = (db_type or "").upper()
        return any(marker in db_type for marker in COMPATIBLE_TYPES_SQLITE.get(logical_type, ()))
    if dialect == "postgresql":
        return (db_type or "").lower() in COMPATIBLE_TYPES_POSTGRESQL.get(logical_type, ())
    return False
