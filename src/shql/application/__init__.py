"""Application layer - operation dispatch and wiring."""

from shql.application.bootstrap import build_container, create_record_store
from shql.application.record_store import (
    OperationRequest,
    OperationResult,
    RecordStore,
)

__all__ = [
    "RecordStore",
    "OperationRequest",
    "OperationResult",
    "build_container",
    "create_record_store",
]
