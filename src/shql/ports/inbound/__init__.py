"""Inbound ports - API contracts for the record store.

Inbound ports define the interfaces the application layer uses to work
with tables, the database catalog and snapshots.
"""

from shql.ports.inbound.catalog import CatalogPort
from shql.ports.inbound.recovery import RecoveryEngine, RollbackOutcome
from shql.ports.inbound.table_operations import SelectResult, TableOperations

__all__ = [
    # Catalog
    "CatalogPort",
    # Recovery
    "RecoveryEngine",
    "RollbackOutcome",
    # Table Operations
    "SelectResult",
    "TableOperations",
]
