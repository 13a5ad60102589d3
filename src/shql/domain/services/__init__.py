"""Domain services for the record store.

Exports:
    - FieldCodec: Per-type validation and record line encoding
    - SchemaStore, TableFiles: Table definitions and their on-disk locations
    - TableEngine: Validated CRUD over data files
    - Catalog: Database registry with the backup/mutate/commit drop protocol
    - RecoveryService: Snapshots and rollback
"""

from shql.domain.services.catalog import Catalog
from shql.domain.services.codec import FieldCodec, normalize_date
from shql.domain.services.recovery_service import RecoveryService
from shql.domain.services.schema_store import ColumnSpec, SchemaStore, TableFiles
from shql.domain.services.table_engine import TableEngine

__all__ = [
    "FieldCodec",
    "normalize_date",
    "SchemaStore",
    "TableFiles",
    "ColumnSpec",
    "TableEngine",
    "Catalog",
    "RecoveryService",
]
