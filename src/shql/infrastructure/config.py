"""Configuration management for the record store."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageConfig(BaseModel):
    """Storage configuration.

    Databases live as directories directly under ``data_dir``. The catalog
    and the snapshot namespace default to reserved subdirectories of it.
    """

    data_dir: Path = Field(default=Path("data"), description="Data directory path")
    meta_dir: Path | None = Field(default=None, description="Catalog directory path")
    snapshot_dir: Path | None = Field(default=None, description="Snapshot directory path")
    fsync: bool = Field(default=True, description="fsync files before atomic replace")

    @model_validator(mode="after")
    def _derive_dirs(self) -> StorageConfig:
        if self.meta_dir is None:
            self.meta_dir = self.data_dir / "meta"
        if self.snapshot_dir is None:
            self.snapshot_dir = self.data_dir / "snapshots"
        return self

    @property
    def catalog_file(self) -> Path:
        """Path of the catalog file listing every database."""
        assert self.meta_dir is not None
        return self.meta_dir / "DBS"


class LimitsConfig(BaseModel):
    """Validation limits."""

    max_blob_bytes: int = Field(
        default=1048576, ge=1, description="Largest binary payload accepted (default 1MiB)"
    )
    min_columns: int = Field(default=2, ge=1, description="Minimum columns per table")
    max_columns: int = Field(default=9, ge=1, description="Maximum columns per table")
    min_database_name: int = Field(default=3, ge=1, description="Shortest database name")
    max_database_name: int = Field(default=55, ge=1, description="Longest database name")


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, ge=1, le=65535, description="REST API port")
    metrics_port: int = Field(default=8001, ge=1, le=65535, description="Prometheus metrics port")


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(default="json", description="Log format")
    otel_endpoint: str | None = Field(
        default=None, description="OpenTelemetry collector endpoint"
    )
    otel_service_name: str = Field(default="shql", description="Service name for tracing")


class Config(BaseSettings):
    """Main configuration for the record store."""

    model_config = SettingsConfigDict(
        env_prefix="SHQL_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    storage: StorageConfig = Field(default_factory=StorageConfig)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    def ensure_directories(self) -> None:
        """Ensure data, catalog and snapshot directories exist."""
        assert self.storage.meta_dir is not None
        assert self.storage.snapshot_dir is not None
        self.storage.data_dir.mkdir(parents=True, exist_ok=True)
        self.storage.meta_dir.mkdir(parents=True, exist_ok=True)
        (self.storage.snapshot_dir / "db").mkdir(parents=True, exist_ok=True)
        (self.storage.snapshot_dir / "table").mkdir(parents=True, exist_ok=True)
        self.storage.catalog_file.touch(exist_ok=True)


@lru_cache
def get_config() -> Config:
    """Get the global configuration instance."""
    config = Config()
    config.ensure_directories()
    return config
