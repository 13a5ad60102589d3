"""Schema store: creates and loads table schemas.

A table lives in its database directory as three siblings::

    <db>/<table>.meta    schema, one column per line
    <db>/<table>.data    records, one per line
    <db>/<table>.bin/    blob archives for binary columns

Creation validates the whole column list in memory before anything is
written, so a rejected or cancelled definition leaves no file behind.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from shql.domain.entities import Column, Schema
from shql.domain.errors import (
    DuplicateError,
    InvariantViolationError,
    NotFoundError,
    ShqlError,
    ValidationError,
)
from shql.domain.services.catalog import Catalog
from shql.domain.value_objects import ColumnType, resolve_within_root, validate_identifier
from shql.infrastructure.logging import get_logger
from shql.ports.outbound import FileStore

logger = get_logger(__name__)

SCHEMA_SUFFIX = ".meta"
DATA_SUFFIX = ".data"
BLOB_SUFFIX = ".bin"

ColumnSpec = tuple[str, str, bool]
"""User column definition: (name, type name, primary-key flag)."""


@dataclass(frozen=True)
class TableFiles:
    """On-disk locations of one table, all checked against the database root."""

    database_dir: Path
    table: str

    @property
    def schema_file(self) -> Path:
        return resolve_within_root(self.database_dir, f"{self.table}{SCHEMA_SUFFIX}")

    @property
    def data_file(self) -> Path:
        return resolve_within_root(self.database_dir, f"{self.table}{DATA_SUFFIX}")

    @property
    def blob_dir(self) -> Path:
        return resolve_within_root(self.database_dir, f"{self.table}{BLOB_SUFFIX}")

    def all_paths(self) -> list[Path]:
        return [self.schema_file, self.data_file, self.blob_dir]


class SchemaStore:
    """Persists and loads table schemas.

    Usage:
        store = SchemaStore(file_store, catalog)
        schema = store.create("orders", "items", [("id", "int", True), ("name", "string", False)])
        schema = store.load("orders", "items")
    """

    def __init__(
        self,
        file_store: FileStore,
        catalog: Catalog,
        min_columns: int = 2,
        max_columns: int = 9,
    ) -> None:
        self._files = file_store
        self._catalog = catalog
        self._min_columns = min_columns
        self._max_columns = max_columns

    def database_dir(self, database: str) -> Path:
        """Directory of an active database.

        Raises:
            NotFoundError: If the database is not in the catalog.
            InvariantViolationError: If the catalog lists it but the
                directory is gone.
        """
        self._catalog.get(database)
        path = self._catalog.database_path(database)
        if not self._files.exists(path):
            raise InvariantViolationError(
                f"Database '{database}' is registered but its directory is missing.",
                database=database,
                path=str(path),
            )
        return path

    def table_files(self, database: str, table: str) -> TableFiles:
        validate_identifier(table, "table")
        return TableFiles(database_dir=self.database_dir(database), table=table)

    def exists(self, database: str, table: str) -> bool:
        return self._files.exists(self.table_files(database, table).schema_file)

    def list_tables(self, database: str) -> list[str]:
        """Names of the tables in a database, sorted."""
        directory = self.database_dir(database)
        return sorted(
            path.name[: -len(SCHEMA_SUFFIX)]
            for path in self._files.list_dir(directory, f"*{SCHEMA_SUFFIX}")
        )

    def load(self, database: str, table: str) -> Schema:
        """Load the schema of an existing table.

        Raises:
            NotFoundError: If the table does not exist.
        """
        files = self.table_files(database, table)
        if not self._files.exists(files.schema_file):
            raise NotFoundError(
                f"Table '{table}' does not exist.", database=database, table=table
            )
        return Schema.from_lines(table, self._files.read_lines(files.schema_file))

    def create(
        self,
        database: str,
        table: str,
        columns: Sequence[ColumnSpec],
        primary_key_fallback: int | None = None,
    ) -> Schema | None:
        """Validate and persist a new table.

        Args:
            database: Owning database.
            table: New table name.
            columns: Column definitions in order.
            primary_key_fallback: Position of the column to promote to
                primary key when none was flagged. None means the caller
                declined, which aborts creation.

        Returns:
            The persisted schema, or None if creation was cancelled.

        Raises:
            ValidationError: If the table or a column breaks the rules.
            DuplicateError: If the table already exists.
            IOFailureError: If the files cannot be written.
        """
        files = self.table_files(database, table)
        if self._files.exists(files.schema_file):
            raise DuplicateError(
                f"Table '{table}' already exists.", database=database, table=table
            )

        built = self._validate_columns(columns)
        if not any(column.primary_key for column in built):
            if primary_key_fallback is None:
                logger.info("table_creation_cancelled", database=database, table=table)
                return None
            built = self._promote(built, primary_key_fallback)

        schema = Schema(table=table, columns=tuple(built))
        self._files.write_lines(files.schema_file, schema.to_lines())
        try:
            self._files.create_empty(files.data_file)
        except ShqlError:
            self._files.remove_file(files.schema_file)
            raise
        self._catalog.increment_table_count(database)

        logger.info(
            "table_created", database=database, table=table, columns=len(schema)
        )
        return schema

    def _validate_columns(self, columns: Sequence[ColumnSpec]) -> list[Column]:
        if not self._min_columns <= len(columns) <= self._max_columns:
            raise ValidationError(
                f"Number of columns must be between {self._min_columns} "
                f"and {self._max_columns}.",
                count=len(columns),
            )

        built: list[Column] = []
        seen: set[str] = set()
        for name, type_name, primary_key in columns:
            validate_identifier(name, "column")
            if name.lower() in seen:
                raise ValidationError(
                    "Column name already used in this table.", column=name
                )
            seen.add(name.lower())

            column_type = ColumnType.parse(type_name)
            if primary_key:
                if any(column.primary_key for column in built):
                    raise ValidationError(
                        "Only one primary key is allowed.", column=name
                    )
                if column_type is not ColumnType.INT:
                    raise ValidationError(
                        "Primary key must be of type int.", column=name, type=type_name
                    )
            built.append(Column(name=name, type=column_type, primary_key=bool(primary_key)))
        return built

    @staticmethod
    def _promote(columns: Iterable[Column], position: int) -> list[Column]:
        built = list(columns)
        if not 0 <= position < len(built):
            raise ValidationError(
                "Primary key column position is out of range.", position=position
            )
        chosen = built[position]
        if chosen.type is not ColumnType.INT:
            raise ValidationError(
                "Primary key must be of type int.", column=chosen.name, type=chosen.type.value
            )
        built[position] = Column(name=chosen.name, type=chosen.type, primary_key=True)
        return built
