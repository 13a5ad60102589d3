"""Recovery port for snapshots and rollback.

Snapshots are write-once copies of a database or a table. Rollback always
snapshots the live state first, then restores from the selected snapshot.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from typing import Protocol

from shql.domain.entities import SnapshotInfo
from shql.domain.value_objects import SnapshotScope


@dataclass
class RollbackOutcome:
    """What a completed rollback restored and where the backup went."""

    snapshot: SnapshotInfo
    backup: SnapshotInfo | None  # None when the live table did not exist


class RecoveryEngine(Protocol):
    """Protocol for snapshot management.

    Invariants:
        A snapshot directory is never written after its metadata record
        exists; rollback only reads it.
    """

    @abstractmethod
    def create_snapshot(
        self,
        scope: SnapshotScope | str,
        database: str,
        table: str | None = None,
        description: str = "",
    ) -> SnapshotInfo:
        """Copy a database or table into a new snapshot."""
        ...

    @abstractmethod
    def list_snapshots(self, database: str) -> list[SnapshotInfo]:
        """Snapshots of a database across both scopes."""
        ...

    @abstractmethod
    def get_snapshot(self, scope: SnapshotScope | str, name: str) -> SnapshotInfo:
        """Load one snapshot's metadata."""
        ...

    @abstractmethod
    def rollback(self, scope: SnapshotScope | str, snapshot_name: str) -> RollbackOutcome:
        """Back up the live state and restore it from a snapshot.

        Raises:
            InvariantViolationError: If restoring fails after the backup;
                the context names the backup path.
        """
        ...
