"""Ports layer - interface definitions following Hexagonal Architecture.

Ports are abstract interfaces (protocols) that define contracts:
- Inbound ports: APIs offered to clients (TableOperations, CatalogPort, RecoveryEngine)
- Outbound ports: Dependencies on external systems (FileStore, BlobArchiver)

Adapters implement these ports with concrete functionality.
"""

from shql.ports.inbound import (
    CatalogPort,
    RecoveryEngine,
    RollbackOutcome,
    SelectResult,
    TableOperations,
)
from shql.ports.outbound import BlobArchiver, FileStore

__all__ = [
    # Inbound ports
    "CatalogPort",
    "RecoveryEngine",
    "RollbackOutcome",
    "SelectResult",
    "TableOperations",
    # Outbound ports
    "BlobArchiver",
    "FileStore",
]
