"""Catalog of databases.

The catalog file is the registry of every database with its table count,
creation and modification times. It is re-read on every call and every
mutation rewrites it atomically, so no state is cached between operations.

Database creation and drop follow a backup / mutate / commit protocol:

    1. copy the catalog file to ``DBS.bak``
    2. write the mutated catalog (atomic replace)
    3. create, delete or rename the database directory
    4. on success drop the backup; on failure restore the catalog from it

so the catalog row and the directory never silently disagree.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Callable

from shql.domain.entities import CatalogEntry
from shql.domain.errors import (
    DuplicateError,
    InvariantViolationError,
    NotFoundError,
    ShqlError,
    ValidationError,
)
from shql.domain.value_objects import resolve_within_root, validate_database_name
from shql.infrastructure.logging import get_logger
from shql.ports.outbound import FileStore

logger = get_logger(__name__)


class Catalog:
    """File-backed registry of databases.

    Usage:
        catalog = Catalog(file_store, config.storage.catalog_file, config.storage.data_dir)
        catalog.create_database("orders")
        catalog.increment_table_count("orders")
    """

    def __init__(
        self,
        file_store: FileStore,
        catalog_file: Path,
        data_dir: Path,
        clock: Callable[[], float] = time.time,
        min_name_length: int = 3,
        max_name_length: int = 55,
    ) -> None:
        self._files = file_store
        self._catalog_file = catalog_file
        self._backup_file = catalog_file.with_name(catalog_file.name + ".bak")
        self._data_dir = data_dir
        self._clock = clock
        self._min_name_length = min_name_length
        self._max_name_length = max_name_length

    @property
    def catalog_file(self) -> Path:
        return self._catalog_file

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _now(self) -> int:
        return int(self._clock())

    # ------------------------------------------------------------------
    # Raw file access
    # ------------------------------------------------------------------

    def _read(self) -> list[CatalogEntry]:
        if not self._files.exists(self._catalog_file):
            return []
        return [
            CatalogEntry.from_line(line)
            for line in self._files.read_lines(self._catalog_file)
            if line.strip()
        ]

    def _write(self, entries: list[CatalogEntry]) -> None:
        self._files.write_lines(self._catalog_file, [entry.to_line() for entry in entries])

    def _update(self, name: str, change: Callable[[CatalogEntry], CatalogEntry]) -> CatalogEntry:
        entries = self._read()
        for index, entry in enumerate(entries):
            if not entry.is_tombstone and entry.name == name:
                entries[index] = change(entry)
                self._write(entries)
                return entries[index]
        raise NotFoundError(f"Database '{name}' does not exist.", database=name)

    # ------------------------------------------------------------------
    # Registry operations
    # ------------------------------------------------------------------

    def list(self) -> list[CatalogEntry]:
        """Return active (non-tombstoned) databases in catalog order."""
        return [entry for entry in self._read() if not entry.is_tombstone]

    def tombstones(self) -> list[CatalogEntry]:
        return [entry for entry in self._read() if entry.is_tombstone]

    def get(self, name: str) -> CatalogEntry:
        for entry in self.list():
            if entry.name == name:
                return entry
        raise NotFoundError(f"Database '{name}' does not exist.", database=name)

    def exists(self, name: str, case_insensitive: bool = False) -> bool:
        """Check whether an active database is registered under ``name``.

        Raises:
            DuplicateError: If ``case_insensitive`` is set and more than one
                case variant matches; the caller must disambiguate.
        """
        if not case_insensitive:
            return any(entry.name == name for entry in self.list())
        matches = [entry.name for entry in self.list() if entry.name.lower() == name.lower()]
        if len(matches) > 1:
            raise DuplicateError(
                f"Database name '{name}' is ambiguous: {', '.join(matches)}",
                database=name,
                matches=matches,
            )
        return bool(matches)

    def register(self, name: str) -> CatalogEntry:
        """Add a catalog row for a new database (no directory is created)."""
        if self.exists(name, case_insensitive=True):
            raise DuplicateError(f"Database '{name}' already exists.", database=name)
        now = self._now()
        entry = CatalogEntry(name=name, table_count=0, created_at=now, modified_at=now)
        self._write([*self._read(), entry])
        return entry

    def increment_table_count(self, name: str) -> CatalogEntry:
        now = self._now()
        return self._update(name, lambda e: e.with_table_count(e.table_count + 1, now))

    def decrement_table_count(self, name: str) -> CatalogEntry:
        now = self._now()
        return self._update(name, lambda e: e.with_table_count(e.table_count - 1, now))

    def reconcile_table_count(self, name: str, actual: int) -> CatalogEntry:
        """Overwrite the stored table count with the number actually on disk."""
        entry = self.get(name)
        if entry.table_count == actual:
            return entry
        logger.warning(
            "table_count_reconciled", database=name, stored=entry.table_count, actual=actual
        )
        now = self._now()
        return self._update(name, lambda e: e.with_table_count(actual, now))

    def soft_delete(self, name: str, at: int | None = None) -> CatalogEntry:
        """Rename the row to its tombstone key ``<at>!<name>``."""
        stamp = self._now() if at is None else at
        return self._update(name, lambda e: e.tombstoned(stamp))

    def hard_delete(self, name: str) -> None:
        """Remove the row entirely."""
        entries = self._read()
        kept = [e for e in entries if e.is_tombstone or e.name != name]
        if len(kept) == len(entries):
            raise NotFoundError(f"Database '{name}' does not exist.", database=name)
        self._write(kept)

    def database_path(self, name: str) -> Path:
        """Directory of a database, checked to stay inside the data directory."""
        return resolve_within_root(self._data_dir, name)

    # ------------------------------------------------------------------
    # Database lifecycle (backup / mutate / commit)
    # ------------------------------------------------------------------

    def create_database(self, name: str) -> CatalogEntry:
        """Register a database and create its directory.

        Raises:
            ValidationError: If the name breaks the naming rules.
            DuplicateError: If the database or its directory already exists.
            IOFailureError: If the directory cannot be created; the catalog
                is restored first.
        """
        validate_database_name(name, self._min_name_length, self._max_name_length)
        path = self.database_path(name)
        if self.exists(name, case_insensitive=True) or self._files.exists(path):
            raise DuplicateError(f"Database '{name}' already exists.", database=name)

        self._backup()
        entry = self.register(name)
        self._commit_or_restore(lambda: self._files.make_dir(path), path)
        logger.info("database_created", database=name, path=str(path))
        return entry

    def drop_database(
        self,
        name: str,
        hard: bool = False,
        preserve_data: bool = False,
    ) -> CatalogEntry | None:
        """Drop a database.

        Args:
            name: Database to drop.
            hard: Remove the catalog row instead of tombstoning it.
            preserve_data: Soft delete only; rename the directory to the
                tombstone name instead of deleting it.

        Returns:
            The tombstone entry for a soft delete, None for a hard delete.
        """
        if hard and preserve_data:
            raise ValidationError(
                "Data can only be preserved by a soft delete.", database=name
            )
        self.get(name)
        path = self.database_path(name)

        self._backup()
        if hard:
            self.hard_delete(name)
            tombstone = None
            action: Callable[[], None] = lambda: self._files.remove_tree(path)
        else:
            tombstone = self.soft_delete(name)
            if preserve_data:
                target = self._data_dir / tombstone.name
                action = lambda: self._files.rename(path, target)
            else:
                action = lambda: self._files.remove_tree(path)

        self._commit_or_restore(action, path)
        logger.info(
            "database_dropped",
            database=name,
            hard=hard,
            preserved=preserve_data,
            tombstone=tombstone.name if tombstone else None,
        )
        return tombstone

    def _backup(self) -> None:
        if not self._files.exists(self._catalog_file):
            self._files.create_empty(self._catalog_file)
        self._files.copy_file(self._catalog_file, self._backup_file)

    def _commit_or_restore(self, action: Callable[[], None], path: Path) -> None:
        try:
            action()
        except ShqlError as e:
            try:
                self._files.rename(self._backup_file, self._catalog_file)
            except ShqlError as restore_error:
                raise InvariantViolationError(
                    "Catalog and database directory disagree; restoring the "
                    f"catalog backup failed: {restore_error}",
                    path=str(path),
                    catalog=str(self._catalog_file),
                    backup=str(self._backup_file),
                ) from e
            logger.error("catalog_restored", path=str(path), error=str(e))
            raise
        self._files.remove_file(self._backup_file)
