"""Table engine: validated CRUD over a table's data file.

Every operation loads the schema first, which re-validates the table name
and resolves its files inside the owning database directory. Inserts append
one line; Update and Delete rewrite the whole data file through the file
store's atomic replace, so an interrupted rewrite leaves the old file.

Binary values are never stored inline. The source file is archived into the
table's blob directory and the record keeps only the archive name.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, Sequence

from shql.domain.entities import Column, Record, Row, Schema
from shql.domain.errors import (
    DuplicateError,
    EmptyTableError,
    NotFoundError,
    ShqlError,
    SizeLimitExceededError,
    ValidationError,
)
from shql.domain.services.catalog import Catalog
from shql.domain.services.codec import ARCHIVE_NAME_PATTERN, FieldCodec
from shql.domain.services.schema_store import SchemaStore, TableFiles
from shql.domain.value_objects import ColumnType, resolve_within_root
from shql.infrastructure.logging import get_logger
from shql.infrastructure.metrics import MetricsRegistry
from shql.ports.inbound import SelectResult
from shql.ports.outbound import BlobArchiver, FileStore

logger = get_logger(__name__)

DEFAULT_MAX_BLOB_BYTES = 1024 * 1024


class TableEngine:
    """CRUD operations on tables.

    Usage:
        engine = TableEngine(schema_store, catalog, file_store, archiver)
        engine.insert("orders", "items", ["1", "pen"])
        result = engine.select("orders", "items")
        for row in result.rows:
            print(row)
    """

    def __init__(
        self,
        schema_store: SchemaStore,
        catalog: Catalog,
        file_store: FileStore,
        archiver: BlobArchiver,
        codec: FieldCodec | None = None,
        max_blob_bytes: int = DEFAULT_MAX_BLOB_BYTES,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        self._schemas = schema_store
        self._catalog = catalog
        self._files = file_store
        self._archiver = archiver
        self._codec = codec or FieldCodec()
        self._max_blob_bytes = max_blob_bytes
        self._metrics = metrics

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_tables(self, database: str) -> list[str]:
        return self._schemas.list_tables(database)

    def select(
        self,
        database: str,
        table: str,
        projection: Sequence[int] | None = None,
        where: tuple[int, str] | None = None,
    ) -> SelectResult:
        """Project and filter the records of a table.

        Args:
            database: Owning database.
            table: Table to read.
            projection: Schema positions to return, in order. None for all.
            where: ``(projected_position, value)`` equality filter. An empty
                value disables the filter.

        Returns:
            Column names and a lazy iterator of rows. An empty table gives
            an empty iterator, not an error.

        Raises:
            NotFoundError: If the database or table does not exist.
            ValidationError: If the projection or filter is out of range.
        """
        schema = self._schemas.load(database, table)
        files = self._schemas.table_files(database, table)

        positions = list(range(len(schema))) if projection is None else list(projection)
        if not positions:
            raise ValidationError("Select at least one column.", table=table)
        for position in positions:
            if not 0 <= position < len(schema):
                raise ValidationError(
                    "Column position is out of range.", table=table, position=position
                )

        if where is not None and where[1] == "":
            where = None
        if where is not None and not 0 <= where[0] < len(positions):
            raise ValidationError(
                "Filter column is not in the selection.", table=table, position=where[0]
            )

        names = [schema.columns[position].name for position in positions]
        return SelectResult(
            columns=names,
            rows=self._scan(files.data_file, schema, positions, names, where),
        )

    def _scan(
        self,
        data_file: Path,
        schema: Schema,
        positions: list[int],
        names: list[str],
        where: tuple[int, str] | None,
    ) -> Iterator[Row]:
        for line in self._files.iter_lines(data_file):
            if not line:
                continue
            record = self._codec.decode(line, schema)
            values = [record[position] for position in positions]
            if where is not None and values[where[0]] != where[1]:
                continue
            yield Row(columns=names, values=values)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def insert(self, database: str, table: str, values: Sequence[str]) -> Record:
        """Validate and append one record.

        Binary columns take a path to an existing source file; it is
        archived only after every other field has passed validation.

        Raises:
            ValidationError: If a value breaks its column's rules.
            DuplicateError: If the primary key is already taken.
            SizeLimitExceededError: If a binary source exceeds the limit.
        """
        schema = self._schemas.load(database, table)
        files = self._schemas.table_files(database, table)
        if len(values) != len(schema):
            raise ValidationError(
                f"Expected {len(schema)} values, got {len(values)}.",
                table=table,
                expected=len(schema),
                received=len(values),
            )

        stored: list[str] = []
        sources: dict[int, Path] = {}
        for position, (column, raw) in enumerate(zip(schema.columns, values)):
            if column.type is ColumnType.BINARY:
                sources[position] = self._check_blob_source(column, raw)
                stored.append("")
            else:
                stored.append(self._codec.normalize(column, raw))

        pk_value = stored[schema.pk_index]
        if any(record[schema.pk_index] == pk_value for record in self._records(files, schema)):
            raise DuplicateError(
                "Primary key value already exists.",
                table=table,
                column=schema.pk_column.name,
                value=pk_value,
            )

        created = self._archive_all(files, schema, sources, stored)
        try:
            line = self._codec.encode(stored)
            self._files.append_line(files.data_file, line)
        except ShqlError:
            self._discard_archives(files, created)
            raise

        self._record_written("insert")
        logger.info("record_inserted", database=database, table=table, pk=pk_value)
        return Record(tuple(stored))

    def update(
        self,
        database: str,
        table: str,
        pk_value: str,
        column: str | int,
        new_value: str,
    ) -> Record:
        """Set one column of the record with the given primary key.

        Raises:
            EmptyTableError: If the table holds no records.
            NotFoundError: If no record has that primary key.
            DuplicateError: If a new primary key value is already taken.
        """
        schema = self._schemas.load(database, table)
        files = self._schemas.table_files(database, table)
        index = self._column_index(schema, column)
        target = schema.columns[index]

        records = self._records(files, schema)
        position = self._locate(schema, records, table, pk_value)

        created: list[str] = []
        if target.type is ColumnType.BINARY:
            source = self._check_blob_source(target, new_value)
            value = self._archive(files, source)
            created.append(value)
        else:
            value = self._codec.normalize(target, new_value)
            if target.primary_key and any(
                record[index] == value
                for other, record in enumerate(records)
                if other != position
            ):
                raise DuplicateError(
                    "Primary key value already exists.",
                    table=table,
                    column=target.name,
                    value=value,
                )

        old = records[position]
        records[position] = old.replace(index, value)
        try:
            self._rewrite(files, records)
        except ShqlError:
            self._discard_archives(files, created)
            raise

        if target.type is ColumnType.BINARY and old[index] != value:
            self._discard_archives(files, [old[index]])
        self._record_written("update")
        logger.info(
            "record_updated", database=database, table=table, pk=pk_value, column=target.name
        )
        return records[position]

    def delete(self, database: str, table: str, pk_value: str) -> Record:
        """Remove the record with the given primary key.

        Raises:
            EmptyTableError: If the table holds no records.
            NotFoundError: If no record has that primary key.
        """
        schema = self._schemas.load(database, table)
        files = self._schemas.table_files(database, table)
        records = self._records(files, schema)
        position = self._locate(schema, records, table, pk_value)

        removed = records.pop(position)
        self._rewrite(files, records)
        self._discard_archives(
            files,
            [
                removed[index]
                for index, column in enumerate(schema.columns)
                if column.type is ColumnType.BINARY
            ],
        )
        self._record_written("delete")
        logger.info("record_deleted", database=database, table=table, pk=pk_value)
        return removed

    def drop_table(self, database: str, table: str) -> None:
        """Remove a table's files, then decrement the catalog count.

        Files go first: a crash between the two steps leaves the count one
        too high until the next reconcile, never a count below the files.
        """
        self._schemas.load(database, table)
        files = self._schemas.table_files(database, table)
        self._files.remove_file(files.schema_file)
        self._files.remove_file(files.data_file)
        self._files.remove_tree(files.blob_dir)
        self._catalog.decrement_table_count(database)
        logger.info("table_dropped", database=database, table=table)

    def extract_blob(
        self, database: str, table: str, archive_name: str, destination: Path
    ) -> Path:
        """Restore the original file of a binary value into ``destination``."""
        self._schemas.load(database, table)
        files = self._schemas.table_files(database, table)
        if not ARCHIVE_NAME_PATTERN.match(archive_name):
            raise ValidationError("Invalid archive name.", archive=archive_name)
        archive_path = resolve_within_root(files.blob_dir, archive_name)
        if not self._files.exists(archive_path):
            raise NotFoundError(
                f"Archive '{archive_name}' does not exist.", table=table, archive=archive_name
            )
        return self._archiver.extract(archive_path, destination)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _records(self, files: TableFiles, schema: Schema) -> list[Record]:
        return [
            self._codec.decode(line, schema)
            for line in self._files.read_lines(files.data_file)
            if line
        ]

    def _rewrite(self, files: TableFiles, records: list[Record]) -> None:
        self._files.write_lines(
            files.data_file, [self._codec.encode_record(record) for record in records]
        )

    def _locate(
        self, schema: Schema, records: list[Record], table: str, pk_value: str
    ) -> int:
        if not records:
            raise EmptyTableError(f"Table '{table}' is empty.", table=table)
        pk_value = self._codec.normalize(schema.pk_column, pk_value)
        for position, record in enumerate(records):
            if record[schema.pk_index] == pk_value:
                return position
        raise NotFoundError(
            f"No record with primary key {pk_value}.", table=table, pk=pk_value
        )

    @staticmethod
    def _column_index(schema: Schema, column: str | int) -> int:
        if isinstance(column, int):
            if not 0 <= column < len(schema):
                raise ValidationError("Column position is out of range.", position=column)
            return column
        try:
            return schema.column_names.index(column)
        except ValueError:
            raise NotFoundError(
                f"Column '{column}' does not exist.", table=schema.table, column=column
            ) from None

    def _check_blob_source(self, column: Column, raw: str) -> Path:
        if raw == "":
            raise ValidationError("Value cannot be empty.", column=column.name)
        source = Path(raw).expanduser()
        if not source.is_file():
            raise ValidationError(
                "File does not exist.", column=column.name, path=str(source)
            )
        size = self._files.file_size(source)
        if size > self._max_blob_bytes:
            raise SizeLimitExceededError(
                f"File exceeds the {self._max_blob_bytes} byte limit.",
                column=column.name,
                path=str(source),
                size=size,
                limit=self._max_blob_bytes,
            )
        return source

    def _archive(self, files: TableFiles, source: Path) -> str:
        name = self._archiver.archive(source, files.blob_dir)
        if self._metrics is not None:
            self._metrics.blob_bytes_archived_total.inc(self._files.file_size(source))
        logger.debug("blob_archived", source=str(source), archive=name)
        return name

    def _archive_all(
        self,
        files: TableFiles,
        schema: Schema,
        sources: dict[int, Path],
        stored: list[str],
    ) -> list[str]:
        created: list[str] = []
        try:
            for position, source in sources.items():
                name = self._archive(files, source)
                created.append(name)
                stored[position] = self._codec.normalize(schema.columns[position], name)
        except ShqlError:
            self._discard_archives(files, created)
            raise
        return created

    def _discard_archives(self, files: TableFiles, names: list[str]) -> None:
        for name in names:
            if name:
                self._files.remove_file(resolve_within_root(files.blob_dir, name))

    def _record_written(self, kind: str) -> None:
        if self._metrics is not None:
            self._metrics.records_written_total.labels(kind=kind).inc()
