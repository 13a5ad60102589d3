"""Snapshot metadata entity.

Each snapshot directory carries a ``snapshot.meta`` key:value record::

    name:items
    type:table
    database:orders
    timestamp:1718000000
    description:before cleanup
    created:2024-06-10 06:13:20

``name`` is the database for db-scope snapshots and the table for
table-scope ones.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from shql.domain.errors import InvariantViolationError
from shql.domain.value_objects import SnapshotScope

SNAPSHOT_META_FILE = "snapshot.meta"
DEFAULT_DESCRIPTION = "No description"
BACKUP_DESCRIPTION = "backup-before-rollback"

_REQUIRED_KEYS = ("name", "type", "database", "timestamp", "description", "created")


@dataclass(frozen=True)
class SnapshotInfo:
    """Metadata of one snapshot plus where it lives."""

    identity: str
    scope: SnapshotScope
    database: str
    table: str | None
    timestamp: int
    description: str
    created: str
    path: Path

    @property
    def is_backup(self) -> bool:
        return self.description == BACKUP_DESCRIPTION

    def to_meta_text(self) -> str:
        fields = {
            "name": self.table if self.scope is SnapshotScope.TABLE else self.database,
            "type": self.scope.value,
            "database": self.database,
            "timestamp": str(self.timestamp),
            "description": self.description,
            "created": self.created,
        }
        return "".join(f"{key}:{value}\n" for key, value in fields.items())

    @classmethod
    def from_meta_text(cls, text: str, path: Path) -> SnapshotInfo:
        fields: dict[str, str] = {}
        for line in text.splitlines():
            key, sep, value = line.partition(":")
            if sep:
                fields[key] = value
        missing = [key for key in _REQUIRED_KEYS if key not in fields]
        if missing:
            raise InvariantViolationError(
                f"Snapshot metadata is missing keys: {', '.join(missing)}",
                path=str(path),
            )
        try:
            scope = SnapshotScope(fields["type"])
            timestamp = int(fields["timestamp"])
        except ValueError:
            raise InvariantViolationError(
                "Snapshot metadata has an invalid type or timestamp.", path=str(path)
            ) from None
        return cls(
            identity=path.name,
            scope=scope,
            database=fields["database"],
            table=fields["name"] if scope is SnapshotScope.TABLE else None,
            timestamp=timestamp,
            description=fields["description"],
            created=fields["created"],
            path=path,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.identity,
            "scope": self.scope.value,
            "database": self.database,
            "table": self.table,
            "timestamp": self.timestamp,
            "description": self.description,
            "created": self.created,
        }
