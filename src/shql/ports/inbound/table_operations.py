"""Table Operations port.

This inbound port defines the CRUD surface the application layer drives:
insert, select, update, delete and drop over one table at a time.

Key responsibilities:
- Validate every value against the table schema before writing
- Keep primary keys unique
- Rewrite data files atomically on update and delete
- Archive binary payloads into the table's blob directory
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Protocol, Sequence

from shql.domain.entities import Record, Row


@dataclass
class SelectResult:
    """Projected column names and a lazy row stream."""

    columns: list[str]
    rows: Iterator[Row]


class TableOperations(Protocol):
    """Protocol for table-level CRUD.

    Errors:
        NotFoundError: Missing database, table, column or row.
        EmptyTableError: Update or delete on a table with no records.
        DuplicateError: Primary key collision.
        ValidationError: Value breaks its column's rules.
        SizeLimitExceededError: Binary source over the size limit.
        PathEscapeError: Derived path leaves the database directory.
        IOFailureError: A filesystem step failed.
    """

    @abstractmethod
    def list_tables(self, database: str) -> list[str]:
        """Return the table names of a database, sorted."""
        ...

    @abstractmethod
    def insert(self, database: str, table: str, values: Sequence[str]) -> Record:
        """Validate and append one record; binary values are source paths."""
        ...

    @abstractmethod
    def select(
        self,
        database: str,
        table: str,
        projection: Sequence[int] | None = None,
        where: tuple[int, str] | None = None,
    ) -> SelectResult:
        """Project and optionally filter a table's records."""
        ...

    @abstractmethod
    def update(
        self,
        database: str,
        table: str,
        pk_value: str,
        column: str | int,
        new_value: str,
    ) -> Record:
        """Set one column of the record with the given primary key."""
        ...

    @abstractmethod
    def delete(self, database: str, table: str, pk_value: str) -> Record:
        """Remove the record with the given primary key."""
        ...

    @abstractmethod
    def drop_table(self, database: str, table: str) -> None:
        """Remove a table's files and decrement the catalog count."""
        ...

    @abstractmethod
    def extract_blob(
        self, database: str, table: str, archive_name: str, destination: Path
    ) -> Path:
        """Restore a binary value's original file."""
        ...
