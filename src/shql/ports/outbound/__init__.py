"""Outbound ports - interfaces for external dependencies.

Outbound ports define contracts for the systems the record store
depends on: the filesystem and the archive format for binary payloads.
"""

from shql.ports.outbound.blob_archiver import BlobArchiver
from shql.ports.outbound.file_store import FileStore

__all__ = [
    "BlobArchiver",
    "FileStore",
]
