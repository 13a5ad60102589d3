"""Value objects for the record store domain.

Value objects are immutable types that represent domain concepts.
They have no identity - two value objects with the same attributes are equal.

Exports:
    Identifiers:
        - DatabaseName, TableName: Type-safe names
        - RESERVED_WORDS, RESERVED_DATABASE_NAMES: Names no object may take
        - validate_identifier, validate_database_name: Name rules
        - resolve_within_root: Path containment check

    Types:
        - ColumnType: int, string, date, binary
        - SnapshotScope: db, table
"""

from shql.domain.value_objects.column_types import ColumnType, SnapshotScope
from shql.domain.value_objects.identifiers import (
    RESERVED_DATABASE_NAMES,
    RESERVED_WORDS,
    DatabaseName,
    TableName,
    resolve_within_root,
    validate_database_name,
    validate_identifier,
)

__all__ = [
    # Identifiers
    "DatabaseName",
    "TableName",
    "RESERVED_WORDS",
    "RESERVED_DATABASE_NAMES",
    "validate_identifier",
    "validate_database_name",
    "resolve_within_root",
    # Types
    "ColumnType",
    "SnapshotScope",
]
