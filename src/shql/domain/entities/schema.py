"""Table schema entity.

A schema is the ordered column list of one table. It is persisted as one
line per column::

    id:int:PK
    name:string
    born:date

The third field ``PK`` appears only on the primary-key column.
"""

from __future__ import annotations

from dataclasses import dataclass

from shql.domain.errors import InvariantViolationError
from shql.domain.value_objects import ColumnType

FIELD_DELIMITER = ":"
PK_MARKER = "PK"


@dataclass(frozen=True)
class Column:
    """One column of a table.

    Attributes:
        name: Column name, unique (case-insensitive) within the table.
        type: Declared storage type.
        primary_key: True for the single primary-key column.
    """

    name: str
    type: ColumnType
    primary_key: bool = False

    def to_line(self) -> str:
        """Serialize to a schema file line."""
        parts = [self.name, self.type.value]
        if self.primary_key:
            parts.append(PK_MARKER)
        return FIELD_DELIMITER.join(parts)

    @classmethod
    def from_line(cls, line: str) -> Column:
        """Parse a schema file line."""
        parts = line.split(FIELD_DELIMITER)
        if len(parts) < 2:
            raise InvariantViolationError(f"Malformed schema line: {line!r}", line=line)
        try:
            column_type = ColumnType(parts[1])
        except ValueError:
            raise InvariantViolationError(
                f"Unknown column type in schema line: {line!r}", line=line
            ) from None
        return cls(
            name=parts[0],
            type=column_type,
            primary_key=len(parts) > 2 and parts[2] == PK_MARKER,
        )


@dataclass(frozen=True)
class Schema:
    """Ordered column definition of a table.

    Instances built by the schema store always satisfy: exactly one
    primary-key column, and it has type ``int``.
    """

    table: str
    columns: tuple[Column, ...]

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self.columns]

    @property
    def pk_index(self) -> int:
        """Position of the primary-key column."""
        for index, column in enumerate(self.columns):
            if column.primary_key:
                return index
        raise InvariantViolationError(
            f"Table '{self.table}' has no primary key column.", table=self.table
        )

    @property
    def pk_column(self) -> Column:
        return self.columns[self.pk_index]

    def __len__(self) -> int:
        return len(self.columns)

    def to_lines(self) -> list[str]:
        return [column.to_line() for column in self.columns]

    @classmethod
    def from_lines(cls, table: str, lines: list[str]) -> Schema:
        """Rebuild a schema from its file lines and check the PK invariant."""
        columns = tuple(Column.from_line(line) for line in lines if line)
        schema = cls(table=table, columns=columns)
        pk_columns = [column for column in columns if column.primary_key]
        if len(pk_columns) != 1 or pk_columns[0].type is not ColumnType.INT:
            raise InvariantViolationError(
                f"Schema of table '{table}' must have exactly one int primary key.",
                table=table,
            )
        return schema
