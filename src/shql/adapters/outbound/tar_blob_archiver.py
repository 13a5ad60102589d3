"""Gzip tar implementation of the BlobArchiver port.

Each binary value becomes ``<blob_dir>/<time_ns>.tar.gz`` holding exactly
the one original file under its base name.
"""

from __future__ import annotations

import shutil
import tarfile
import time
from pathlib import Path
from typing import Callable

from shql.domain.errors import IOFailureError, InvariantViolationError

ARCHIVE_SUFFIX = ".tar.gz"


class TarBlobArchiver:
    """BlobArchiver producing gzip-compressed single-file tar archives."""

    def __init__(self, clock_ns: Callable[[], int] = time.time_ns) -> None:
        """Initialize the archiver.

        Args:
            clock_ns: Source of the nanosecond timestamps used as names.
        """
        self._clock_ns = clock_ns

    @property
    def suffix(self) -> str:
        return ARCHIVE_SUFFIX

    def archive(self, source: Path, blob_dir: Path) -> str:
        try:
            blob_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IOFailureError(f"Failed to create {blob_dir}: {e}", path=str(blob_dir)) from e

        token = self._clock_ns()
        while True:
            name = f"{token}{ARCHIVE_SUFFIX}"
            target = blob_dir / name
            try:
                # "x" mode refuses to overwrite an archive created in the same tick
                with tarfile.open(target, "x:gz") as tar:
                    tar.add(source, arcname=source.name, recursive=False)
                return name
            except FileExistsError:
                token += 1
            except (OSError, tarfile.TarError) as e:
                target.unlink(missing_ok=True)
                raise IOFailureError(
                    f"Failed to archive {source}: {e}", path=str(source)
                ) from e

    def extract(self, archive_path: Path, destination: Path) -> Path:
        try:
            with tarfile.open(archive_path, "r:gz") as tar:
                members = [member for member in tar.getmembers() if member.isfile()]
                if len(members) != 1:
                    raise InvariantViolationError(
                        "Blob archive must contain exactly one file.",
                        path=str(archive_path),
                        files=len(members),
                    )
                member = members[0]
                stream = tar.extractfile(member)
                if stream is None:
                    raise InvariantViolationError(
                        "Blob archive member is not readable.", path=str(archive_path)
                    )
                destination.mkdir(parents=True, exist_ok=True)
                # Only the base name is trusted; member paths are never joined as-is
                target = destination / Path(member.name).name
                with stream, open(target, "wb") as out:
                    shutil.copyfileobj(stream, out)
                return target
        except (OSError, tarfile.TarError) as e:
            raise IOFailureError(
                f"Failed to extract {archive_path}: {e}", path=str(archive_path)
            ) from e
