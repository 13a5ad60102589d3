"""Column types and snapshot scopes."""

from __future__ import annotations

from enum import Enum

from shql.domain.errors import ValidationError


class ColumnType(Enum):
    """Storage types a column may declare.

    INT: optionally signed decimal integer
    STRING: free text without the field delimiter or a newline
    DATE: normalized to YYYY-MM-DD before storage
    BINARY: filename of a compressed archive in the table's blob directory
    """

    INT = "int"
    STRING = "string"
    DATE = "date"
    BINARY = "binary"

    @classmethod
    def parse(cls, value: str) -> ColumnType:
        """Parse a declared type name."""
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(
                "Invalid data type. Must be 'int', 'string', 'date', or 'binary'.",
                type=value,
            ) from None


class SnapshotScope(Enum):
    """What a snapshot captures."""

    DB = "db"
    """The whole database directory tree."""

    TABLE = "table"
    """One table: schema file, data file and blob directory."""

    @classmethod
    def parse(cls, value: str | SnapshotScope) -> SnapshotScope:
        if isinstance(value, SnapshotScope):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValidationError("Snapshot scope must be 'db' or 'table'.", scope=value) from None
