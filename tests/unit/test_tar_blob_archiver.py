"""Unit tests for TarBlobArchiver."""

from __future__ import annotations

import io
import tarfile
from pathlib import Path

import pytest

from shql.adapters.outbound import TarBlobArchiver
from shql.domain.errors import InvariantViolationError


@pytest.mark.unit
class TestTarBlobArchiver:
    """Tests for TarBlobArchiver."""

    def test_archive_and_extract(self, temp_dir: Path) -> None:
        source = temp_dir / "photo.png"
        source.write_bytes(b"\x89PNG data")
        archiver = TarBlobArchiver(clock_ns=lambda: 1718000000000000001)

        name = archiver.archive(source, temp_dir / "items.bin")

        assert name == "1718000000000000001.tar.gz"
        with tarfile.open(temp_dir / "items.bin" / name, "r:gz") as tar:
            assert tar.getnames() == ["photo.png"]

        restored = archiver.extract(temp_dir / "items.bin" / name, temp_dir / "out")
        assert restored == temp_dir / "out" / "photo.png"
        assert restored.read_bytes() == b"\x89PNG data"

    def test_same_tick_does_not_overwrite(self, temp_dir: Path) -> None:
        source = temp_dir / "doc.txt"
        source.write_text("x")
        archiver = TarBlobArchiver(clock_ns=lambda: 42)

        first = archiver.archive(source, temp_dir / "bin")
        second = archiver.archive(source, temp_dir / "bin")

        assert first == "42.tar.gz"
        assert second == "43.tar.gz"

    def test_extract_uses_base_name_only(self, temp_dir: Path) -> None:
        archive = temp_dir / "evil.tar.gz"
        data = b"payload"
        with tarfile.open(archive, "w:gz") as tar:
            info = tarfile.TarInfo("../../escape.txt")
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))

        restored = TarBlobArchiver().extract(archive, temp_dir / "out")

        assert restored == temp_dir / "out" / "escape.txt"
        assert not (temp_dir.parent / "escape.txt").exists()

    def test_extract_requires_single_file(self, temp_dir: Path) -> None:
        archive = temp_dir / "two.tar.gz"
        with tarfile.open(archive, "w:gz") as tar:
            for name in ("a", "b"):
                info = tarfile.TarInfo(name)
                info.size = 1
                tar.addfile(info, io.BytesIO(b"x"))

        with pytest.raises(InvariantViolationError, match="exactly one file"):
            TarBlobArchiver().extract(archive, temp_dir / "out")
