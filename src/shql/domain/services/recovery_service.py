"""Snapshot and rollback.

Snapshots are write-once directory copies under the snapshot root::

    snapshots/db/<db>_<ts>/                 whole database tree
    snapshots/table/<db>_<table>_<ts>/      <table>.meta, <table>.data, <table>.bin/

each with a ``snapshot.meta`` record written last, so a directory without
one is an unfinished snapshot and is never listed.

Rollback runs in two phases:
    1. Backup: snapshot the live state with description
       ``backup-before-rollback`` (skipped only for a missing live table)
    2. Restore: clear the live target and copy every snapshot file except
       its metadata record

A failed restore leaves the backup in place and is reported as an invariant
violation naming it; the engine never retries.
"""

from __future__ import annotations

import time
from datetime import datetime
from pathlib import Path
from typing import Callable

from shql.domain.entities import (
    BACKUP_DESCRIPTION,
    DEFAULT_DESCRIPTION,
    SNAPSHOT_META_FILE,
    SnapshotInfo,
)
from shql.domain.errors import (
    InvariantViolationError,
    NotFoundError,
    ShqlError,
    ValidationError,
)
from shql.domain.services.catalog import Catalog
from shql.domain.services.schema_store import SchemaStore, TableFiles
from shql.domain.value_objects import SnapshotScope, resolve_within_root
from shql.infrastructure.logging import get_logger
from shql.infrastructure.metrics import MetricsRegistry
from shql.ports.inbound import RollbackOutcome
from shql.ports.outbound import FileStore

logger = get_logger(__name__)

CREATED_FORMAT = "%Y-%m-%d %H:%M:%S"


class RecoveryService:
    """Creates snapshots and rolls databases or tables back to them.

    Usage:
        recovery = RecoveryService(file_store, catalog, schema_store, config.storage.snapshot_dir)
        snap = recovery.create_snapshot("table", "orders", "items", "before cleanup")
        recovery.rollback("table", snap.identity)
    """

    def __init__(
        self,
        file_store: FileStore,
        catalog: Catalog,
        schema_store: SchemaStore,
        snapshot_dir: Path,
        clock: Callable[[], float] = time.time,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        self._files = file_store
        self._catalog = catalog
        self._schemas = schema_store
        self._roots = {
            SnapshotScope.DB: snapshot_dir / SnapshotScope.DB.value,
            SnapshotScope.TABLE: snapshot_dir / SnapshotScope.TABLE.value,
        }
        self._clock = clock
        self._metrics = metrics

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def create_snapshot(
        self,
        scope: SnapshotScope | str,
        database: str,
        table: str | None = None,
        description: str = "",
    ) -> SnapshotInfo:
        """Snapshot a whole database or one table.

        Args:
            scope: ``db`` or ``table``.
            database: Source database.
            table: Source table, required for table scope.
            description: Free text; blank becomes "No description".

        Raises:
            NotFoundError: If the source does not exist.
            ValidationError: If the scope or table argument is wrong.
        """
        scope = SnapshotScope.parse(scope)
        description = self._clean_description(description) or DEFAULT_DESCRIPTION
        if scope is SnapshotScope.DB:
            return self._snapshot_database(database, f"{database}_", description)

        if not table:
            raise ValidationError("Table snapshots need a table name.", database=database)
        files = self._existing_table(database, table)
        return self._snapshot_table(files, database, f"{database}_{table}_", description)

    def list_snapshots(self, database: str) -> list[SnapshotInfo]:
        """All snapshots of a database across both scopes, oldest first."""
        found: list[SnapshotInfo] = []
        for scope, root in self._roots.items():
            for path in self._files.list_dir(root, f"{database}_*"):
                meta_file = path / SNAPSHOT_META_FILE
                if not self._files.exists(meta_file):
                    continue
                try:
                    info = SnapshotInfo.from_meta_text(self._files.read_text(meta_file), path)
                except InvariantViolationError as e:
                    logger.warning("snapshot_unreadable", path=str(path), error=e.message)
                    continue
                if info.database == database and info.scope is scope:
                    found.append(info)
        return sorted(found, key=lambda info: (info.scope.value, info.timestamp, info.identity))

    def get_snapshot(self, scope: SnapshotScope | str, name: str) -> SnapshotInfo:
        scope = SnapshotScope.parse(scope)
        if not name:
            raise ValidationError("Snapshot name cannot be empty.")
        path = resolve_within_root(self._roots[scope], name)
        meta_file = path / SNAPSHOT_META_FILE
        if not self._files.exists(meta_file):
            raise NotFoundError(
                f"Snapshot '{name}' does not exist.", scope=scope.value, snapshot=name
            )
        return SnapshotInfo.from_meta_text(self._files.read_text(meta_file), path)

    # ------------------------------------------------------------------
    # Rollback
    # ------------------------------------------------------------------

    def rollback(self, scope: SnapshotScope | str, snapshot_name: str) -> RollbackOutcome:
        """Back up the live state, then restore it from a snapshot.

        Raises:
            NotFoundError: If the snapshot or its database is missing.
            InvariantViolationError: If restoring fails after the backup
                was taken; the backup path is in the error context.
        """
        scope = SnapshotScope.parse(scope)
        snapshot = self.get_snapshot(scope, snapshot_name)
        database = snapshot.database
        self._catalog.get(database)

        if scope is SnapshotScope.DB:
            database_dir = self._catalog.database_path(database)
            if not self._files.exists(database_dir):
                raise NotFoundError(
                    f"Database directory for '{database}' is missing.",
                    database=database,
                    path=str(database_dir),
                )
            backup = self._snapshot_database(
                database, f"{database}_backup_before_rollback_", BACKUP_DESCRIPTION
            )
            self._restore(
                scope, snapshot, backup, lambda: self._restore_database(snapshot, database_dir)
            )
        else:
            table = snapshot.table or ""
            files = self._schemas.table_files(database, table)
            backup = None
            if self._files.exists(files.schema_file):
                backup = self._snapshot_table(
                    files, database, f"{database}_{table}_backup_", BACKUP_DESCRIPTION
                )
            else:
                logger.info("rollback_backup_skipped", database=database, table=table)
            self._restore(scope, snapshot, backup, lambda: self._restore_table(snapshot, files))

        actual = len(self._schemas.list_tables(database))
        self._catalog.reconcile_table_count(database, actual)
        if self._metrics is not None:
            self._metrics.rollbacks_total.labels(scope=scope.value, status="ok").inc()
        logger.info(
            "rollback_completed",
            scope=scope.value,
            snapshot=snapshot.identity,
            backup=backup.identity if backup else None,
        )
        return RollbackOutcome(snapshot=snapshot, backup=backup)

    def _restore(
        self,
        scope: SnapshotScope,
        snapshot: SnapshotInfo,
        backup: SnapshotInfo | None,
        action: Callable[[], None],
    ) -> None:
        try:
            action()
        except ShqlError as e:
            if self._metrics is not None:
                self._metrics.rollbacks_total.labels(scope=scope.value, status="failed").inc()
            raise InvariantViolationError(
                f"Rollback from '{snapshot.identity}' failed mid-restore: {e}. "
                "Recover manually from the backup.",
                snapshot=str(snapshot.path),
                backup=str(backup.path) if backup else None,
            ) from e

    def _restore_database(self, snapshot: SnapshotInfo, database_dir: Path) -> None:
        for item in self._files.list_dir(database_dir):
            if item.is_dir():
                self._files.remove_tree(item)
            else:
                self._files.remove_file(item)
        for item in self._files.list_dir(snapshot.path):
            if item.name == SNAPSHOT_META_FILE:
                continue
            target = database_dir / item.name
            if item.is_dir():
                self._files.copy_tree(item, target)
            else:
                self._files.copy_file(item, target)

    def _restore_table(self, snapshot: SnapshotInfo, files: TableFiles) -> None:
        self._files.remove_file(files.schema_file)
        self._files.remove_file(files.data_file)
        self._files.remove_tree(files.blob_dir)

        source = snapshot.path
        self._files.copy_file(source / files.schema_file.name, files.schema_file)
        if self._files.exists(source / files.data_file.name):
            self._files.copy_file(source / files.data_file.name, files.data_file)
        else:
            self._files.create_empty(files.data_file)
        if self._files.exists(source / files.blob_dir.name):
            self._files.copy_tree(source / files.blob_dir.name, files.blob_dir)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _existing_table(self, database: str, table: str) -> TableFiles:
        files = self._schemas.table_files(database, table)
        if not self._files.exists(files.schema_file):
            raise NotFoundError(
                f"Table '{table}' does not exist.", database=database, table=table
            )
        return files

    def _snapshot_database(self, database: str, prefix: str, description: str) -> SnapshotInfo:
        source = self._schemas.database_dir(database)
        return self._write_snapshot(
            SnapshotScope.DB,
            database,
            None,
            prefix,
            description,
            lambda target: self._files.copy_tree(source, target),
        )

    def _snapshot_table(
        self, files: TableFiles, database: str, prefix: str, description: str
    ) -> SnapshotInfo:
        def copy(target: Path) -> None:
            self._files.copy_file(files.schema_file, target / files.schema_file.name)
            if self._files.exists(files.data_file):
                self._files.copy_file(files.data_file, target / files.data_file.name)
            else:
                self._files.create_empty(target / files.data_file.name)
            if self._files.exists(files.blob_dir):
                self._files.copy_tree(files.blob_dir, target / files.blob_dir.name)

        return self._write_snapshot(
            SnapshotScope.TABLE, database, files.table, prefix, description, copy
        )

    def _write_snapshot(
        self,
        scope: SnapshotScope,
        database: str,
        table: str | None,
        prefix: str,
        description: str,
        copy: Callable[[Path], None],
    ) -> SnapshotInfo:
        root = self._roots[scope]
        self._files.make_dir(root)

        timestamp = int(self._clock())
        path = resolve_within_root(root, f"{prefix}{timestamp}")
        while self._files.exists(path):
            timestamp += 1
            path = resolve_within_root(root, f"{prefix}{timestamp}")

        info = SnapshotInfo(
            identity=path.name,
            scope=scope,
            database=database,
            table=table,
            timestamp=timestamp,
            description=description,
            created=datetime.fromtimestamp(timestamp).strftime(CREATED_FORMAT),
            path=path,
        )

        self._files.make_dir(path)
        try:
            copy(path)
            # The metadata record marks the snapshot complete
            self._files.write_text(path / SNAPSHOT_META_FILE, info.to_meta_text())
        except ShqlError:
            self._files.remove_tree(path)
            raise

        if self._metrics is not None:
            kind = "backup" if info.is_backup else "manual"
            self._metrics.snapshots_total.labels(scope=scope.value, kind=kind).inc()
        logger.info(
            "snapshot_created",
            scope=scope.value,
            database=database,
            table=table,
            snapshot=info.identity,
        )
        return info

    @staticmethod
    def _clean_description(description: str) -> str:
        return " ".join(description.split())
