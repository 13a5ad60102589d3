"""Local filesystem implementation of the FileStore port.

Whole-file rewrites go through a temporary file created in the same
directory as the target, flushed and fsynced, then moved over the target
with ``os.replace``. A crash at any point leaves either the old or the new
file, never a truncated mix.

Thread Safety:
    None. The store assumes a single session mutates a database at a time.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from typing import Iterator

from shql.domain.errors import IOFailureError, InvariantViolationError

ENCODING = "utf-8"


class LocalFileStore:
    """FileStore backed by the local filesystem.

    Attributes:
        fsync: Whether to fsync written files before they become visible.
    """

    def __init__(self, fsync: bool = True) -> None:
        self._fsync = fsync

    def exists(self, path: Path) -> bool:
        return path.exists()

    def read_text(self, path: Path) -> str:
        try:
            with open(path, encoding=ENCODING, newline="\n") as handle:
                return handle.read()
        except UnicodeDecodeError as e:
            raise _undecodable(path, e) from e
        except OSError as e:
            raise IOFailureError(f"Failed to read {path}: {e}", path=str(path)) from e

    def read_lines(self, path: Path) -> list[str]:
        # Split on "\n" only: string values may hold \f, \x1c or \u2028
        lines = self.read_text(path).split("\n")
        if lines[-1] == "":
            lines.pop()
        return lines

    def iter_lines(self, path: Path) -> Iterator[str]:
        try:
            with open(path, encoding=ENCODING, newline="\n") as handle:
                for line in handle:
                    yield line.rstrip("\n")
        except UnicodeDecodeError as e:
            raise _undecodable(path, e) from e
        except OSError as e:
            raise IOFailureError(f"Failed to read {path}: {e}", path=str(path)) from e

    def write_lines(self, path: Path, lines: list[str]) -> None:
        self.write_text(path, "".join(f"{line}\n" for line in lines))

    def write_text(self, path: Path, text: str) -> None:
        """Atomically replace ``path`` with ``text``.

        Raises:
            IOFailureError: If any step fails; the temp file is removed and
                the original file is left byte-identical.
        """
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
            )
        except OSError as e:
            raise IOFailureError(f"Failed to write {path}: {e}", path=str(path)) from e
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding=ENCODING) as handle:
                handle.write(text)
                handle.flush()
                if self._fsync:
                    os.fsync(handle.fileno())
            os.replace(tmp_path, path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise IOFailureError(f"Failed to write {path}: {e}", path=str(path)) from e

    def append_line(self, path: Path, line: str) -> None:
        try:
            with open(path, "a+b") as handle:
                size = handle.seek(0, os.SEEK_END)
                prefix = b""
                if size:
                    handle.seek(size - 1)
                    if handle.read(1) != b"\n":
                        prefix = b"\n"
                handle.write(prefix + line.encode(ENCODING) + b"\n")
                handle.flush()
                if self._fsync:
                    os.fsync(handle.fileno())
        except OSError as e:
            raise IOFailureError(f"Failed to append to {path}: {e}", path=str(path)) from e

    def create_empty(self, path: Path) -> None:
        try:
            with open(path, "w", encoding=ENCODING):
                pass
        except OSError as e:
            raise IOFailureError(f"Failed to create {path}: {e}", path=str(path)) from e

    def make_dir(self, path: Path) -> None:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IOFailureError(f"Failed to create directory {path}: {e}", path=str(path)) from e

    def copy_file(self, source: Path, destination: Path) -> None:
        try:
            shutil.copy2(source, destination)
        except OSError as e:
            raise IOFailureError(
                f"Failed to copy {source} to {destination}: {e}", path=str(source)
            ) from e

    def copy_tree(self, source: Path, destination: Path) -> None:
        try:
            shutil.copytree(source, destination, dirs_exist_ok=True)
        except (OSError, shutil.Error) as e:
            raise IOFailureError(
                f"Failed to copy {source} to {destination}: {e}", path=str(source)
            ) from e

    def rename(self, source: Path, destination: Path) -> None:
        try:
            os.replace(source, destination)
        except OSError as e:
            raise IOFailureError(
                f"Failed to rename {source} to {destination}: {e}", path=str(source)
            ) from e

    def remove_file(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise IOFailureError(f"Failed to remove {path}: {e}", path=str(path)) from e

    def remove_tree(self, path: Path) -> None:
        if not path.exists():
            return
        try:
            shutil.rmtree(path)
        except OSError as e:
            raise IOFailureError(f"Failed to remove {path}: {e}", path=str(path)) from e

    def list_dir(self, path: Path, pattern: str = "*") -> list[Path]:
        if not path.is_dir():
            return []
        return sorted(path.glob(pattern))

    def file_size(self, path: Path) -> int:
        try:
            return path.stat().st_size
        except OSError as e:
            raise IOFailureError(f"Failed to stat {path}: {e}", path=str(path)) from e


def _undecodable(path: Path, error: UnicodeDecodeError) -> InvariantViolationError:
    return InvariantViolationError(
        f"{path} is not valid {ENCODING}: {error.reason} at byte {error.start}",
        path=str(path),
        offset=error.start,
    )
