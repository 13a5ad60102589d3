"""Outbound adapters - implementations of outbound ports.

These adapters implement the filesystem access and binary payload
archiving the record store depends on.
"""

from shql.adapters.outbound.local_file_store import LocalFileStore
from shql.adapters.outbound.tar_blob_archiver import TarBlobArchiver

__all__ = [
    "LocalFileStore",
    "TarBlobArchiver",
]
