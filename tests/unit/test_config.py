"""Unit tests for configuration module."""

from __future__ import annotations

from pathlib import Path

import pytest

from shql.infrastructure.config import Config, LimitsConfig, StorageConfig


@pytest.mark.unit
class TestConfig:
    """Tests for Config class."""

    def test_default_config(self) -> None:
        """Test default configuration values."""
        config = Config()

        assert config.storage.data_dir == Path("data")
        assert config.storage.fsync is True
        assert config.limits.max_blob_bytes == 1048576  # 1MiB
        assert config.limits.min_columns == 2
        assert config.limits.max_columns == 9
        assert config.server.port == 8000
        assert config.observability.log_format == "json"

    def test_derived_directories(self, temp_dir: Path) -> None:
        """Catalog and snapshot dirs default to reserved subdirectories."""
        storage = StorageConfig(data_dir=temp_dir / "data")

        assert storage.meta_dir == temp_dir / "data" / "meta"
        assert storage.snapshot_dir == temp_dir / "data" / "snapshots"
        assert storage.catalog_file == temp_dir / "data" / "meta" / "DBS"

    def test_explicit_directories_kept(self, temp_dir: Path) -> None:
        storage = StorageConfig(
            data_dir=temp_dir / "data",
            snapshot_dir=temp_dir / "elsewhere",
        )

        assert storage.snapshot_dir == temp_dir / "elsewhere"

    def test_ensure_directories(self, temp_dir: Path) -> None:
        """Test that ensure_directories creates required directories."""
        config = Config(storage=StorageConfig(data_dir=temp_dir / "data"))

        config.ensure_directories()

        assert config.storage.data_dir.exists()
        assert config.storage.catalog_file.is_file()
        assert (temp_dir / "data" / "snapshots" / "db").is_dir()
        assert (temp_dir / "data" / "snapshots" / "table").is_dir()

    def test_invalid_blob_limit(self) -> None:
        """Test that a non-positive blob limit raises validation error."""
        with pytest.raises(ValueError):
            LimitsConfig(max_blob_bytes=0)

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch, temp_dir: Path) -> None:
        """Nested settings are read from SHQL_ variables."""
        monkeypatch.setenv("SHQL_STORAGE__DATA_DIR", str(temp_dir / "env"))
        monkeypatch.setenv("SHQL_LIMITS__MAX_BLOB_BYTES", "2048")

        config = Config()

        assert config.storage.data_dir == temp_dir / "env"
        assert config.limits.max_blob_bytes == 2048
