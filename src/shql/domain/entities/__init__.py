"""Domain entities for the record store.

Exports:
    Schema:
        - Column: Name, type and primary-key flag
        - Schema: Ordered columns of one table

    Records:
        - Record: Stored field values in column order
        - Row: Projected row returned by Select

    Catalog:
        - CatalogEntry: Per-database table count, timestamps, tombstone

    Snapshots:
        - SnapshotInfo: Metadata record of a snapshot
"""

from shql.domain.entities.catalog_entry import TOMBSTONE_SEPARATOR, CatalogEntry
from shql.domain.entities.record import Record, Row
from shql.domain.entities.schema import FIELD_DELIMITER, PK_MARKER, Column, Schema
from shql.domain.entities.snapshot import (
    BACKUP_DESCRIPTION,
    DEFAULT_DESCRIPTION,
    SNAPSHOT_META_FILE,
    SnapshotInfo,
)

__all__ = [
    # Schema
    "Column",
    "Schema",
    "FIELD_DELIMITER",
    "PK_MARKER",
    # Records
    "Record",
    "Row",
    # Catalog
    "CatalogEntry",
    "TOMBSTONE_SEPARATOR",
    # Snapshots
    "SnapshotInfo",
    "SNAPSHOT_META_FILE",
    "DEFAULT_DESCRIPTION",
    "BACKUP_DESCRIPTION",
]
