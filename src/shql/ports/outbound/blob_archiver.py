"""Blob Archiver port for binary column payloads.

Binary values are never stored inline. The source file is packed into a
compressed single-file archive inside the table's blob directory and the
record keeps only the archive's filename.
"""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import Protocol


class BlobArchiver(Protocol):
    """Protocol for packing and unpacking binary payloads."""

    @property
    @abstractmethod
    def suffix(self) -> str:
        """Filename suffix of the archives produced (e.g. ``.tar.gz``)."""
        ...

    @abstractmethod
    def archive(self, source: Path, blob_dir: Path) -> str:
        """Pack ``source`` into a new archive under ``blob_dir``.

        The archive name is collision-resistant (derived from a high
        resolution timestamp) and unique within ``blob_dir``.

        Returns:
            The archive filename, relative to ``blob_dir``.

        Raises:
            IOFailureError: If the archive cannot be written.
        """
        ...

    @abstractmethod
    def extract(self, archive_path: Path, destination: Path) -> Path:
        """Unpack the single file of an archive into ``destination``.

        Returns:
            Path of the extracted file.
        """
        ...
