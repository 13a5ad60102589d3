"""File Store port for line-oriented file persistence.

This outbound port defines the contract for the flat files the record
store keeps: catalog, schema, data and snapshot metadata files, plus the
directory trees snapshots copy around.

The file store is responsible for:
- Reading files as lines (eagerly or lazily)
- Rewriting whole files atomically (temp file + rename)
- Appending single lines
- Copying and removing files and directory trees
"""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import Iterator, Protocol


class FileStore(Protocol):
    """Protocol for filesystem access.

    All failures surface as ``IOFailureError`` carrying the affected path.

    Atomicity:
        ``write_lines`` and ``write_text`` never leave a truncated file: a
        crash leaves either the old or the new content. ``append_line`` is
        safe only with a single writer.
    """

    @abstractmethod
    def exists(self, path: Path) -> bool:
        """Return True if the file or directory exists."""
        ...

    @abstractmethod
    def read_lines(self, path: Path) -> list[str]:
        """Read all lines of a text file without line terminators.

        Raises:
            IOFailureError: If the file cannot be read.
        """
        ...

    @abstractmethod
    def iter_lines(self, path: Path) -> Iterator[str]:
        """Lazily yield the lines of a text file without line terminators."""
        ...

    @abstractmethod
    def read_text(self, path: Path) -> str:
        """Read a whole text file."""
        ...

    @abstractmethod
    def write_lines(self, path: Path, lines: list[str]) -> None:
        """Replace the file content with ``lines`` atomically.

        Raises:
            IOFailureError: If writing or the final rename fails. The
                original file is left untouched in that case.
        """
        ...

    @abstractmethod
    def write_text(self, path: Path, text: str) -> None:
        """Replace the file content with ``text`` atomically."""
        ...

    @abstractmethod
    def append_line(self, path: Path, line: str) -> None:
        """Append one line to a text file."""
        ...

    @abstractmethod
    def create_empty(self, path: Path) -> None:
        """Create an empty file, truncating any existing content."""
        ...

    @abstractmethod
    def make_dir(self, path: Path) -> None:
        """Create a directory and its parents."""
        ...

    @abstractmethod
    def copy_file(self, source: Path, destination: Path) -> None:
        """Copy one file, preserving metadata."""
        ...

    @abstractmethod
    def copy_tree(self, source: Path, destination: Path) -> None:
        """Copy a directory tree into ``destination`` (created if missing)."""
        ...

    @abstractmethod
    def rename(self, source: Path, destination: Path) -> None:
        """Rename a file or directory."""
        ...

    @abstractmethod
    def remove_file(self, path: Path) -> None:
        """Remove a file if it exists."""
        ...

    @abstractmethod
    def remove_tree(self, path: Path) -> None:
        """Remove a directory tree if it exists."""
        ...

    @abstractmethod
    def list_dir(self, path: Path, pattern: str = "*") -> list[Path]:
        """Return the entries of a directory matching ``pattern``, sorted."""
        ...

    @abstractmethod
    def file_size(self, path: Path) -> int:
        """Return the size of a file in bytes."""
        ...
