"""Pytest configuration and fixtures for shql tests."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Generator

import pytest
from prometheus_client import CollectorRegistry

from shql.adapters.outbound import LocalFileStore, TarBlobArchiver
from shql.application import RecordStore, build_container
from shql.domain.services import Catalog, RecoveryService, SchemaStore, TableEngine
from shql.infrastructure.config import Config, StorageConfig
from shql.infrastructure.container import Container, reset_container
from shql.infrastructure.metrics import MetricsRegistry

ITEMS_COLUMNS = [("id", "int", True), ("name", "string", False)]


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_config(temp_dir: Path) -> Config:
    """Provide a test configuration with temporary directories."""
    config = Config(
        storage=StorageConfig(
            data_dir=temp_dir / "data",
            fsync=False,  # Faster for tests
        ),
    )
    config.ensure_directories()
    return config


@pytest.fixture
def container() -> Generator[Container, None, None]:
    """Provide a fresh DI container for each test."""
    reset_container()
    c = Container()
    yield c
    c.clear()


@pytest.fixture
def metrics_registry() -> MetricsRegistry:
    """Provide a fresh metrics registry for each test."""
    # Use a separate registry to avoid conflicts between tests
    registry = CollectorRegistry(auto_describe=True)
    return MetricsRegistry(registry=registry)


@pytest.fixture
def file_store() -> LocalFileStore:
    return LocalFileStore(fsync=False)


@pytest.fixture
def catalog(test_config: Config, file_store: LocalFileStore) -> Catalog:
    return Catalog(file_store, test_config.storage.catalog_file, test_config.storage.data_dir)


@pytest.fixture
def schema_store(file_store: LocalFileStore, catalog: Catalog) -> SchemaStore:
    return SchemaStore(file_store, catalog)


@pytest.fixture
def table_engine(
    schema_store: SchemaStore,
    catalog: Catalog,
    file_store: LocalFileStore,
    metrics_registry: MetricsRegistry,
) -> TableEngine:
    return TableEngine(
        schema_store, catalog, file_store, TarBlobArchiver(), metrics=metrics_registry
    )


@pytest.fixture
def recovery(
    test_config: Config,
    file_store: LocalFileStore,
    catalog: Catalog,
    schema_store: SchemaStore,
    metrics_registry: MetricsRegistry,
) -> RecoveryService:
    assert test_config.storage.snapshot_dir is not None
    return RecoveryService(
        file_store,
        catalog,
        schema_store,
        test_config.storage.snapshot_dir,
        metrics=metrics_registry,
    )


@pytest.fixture
def orders(catalog: Catalog) -> str:
    """An empty database named ``orders``."""
    catalog.create_database("orders")
    return "orders"


@pytest.fixture
def items(orders: str, schema_store: SchemaStore) -> str:
    """Table ``orders.items`` with columns ``id:int:PK`` and ``name:string``."""
    schema_store.create(orders, "items", ITEMS_COLUMNS)
    return "items"


@pytest.fixture
def store(
    test_config: Config, metrics_registry: MetricsRegistry, container: Container
) -> RecordStore:
    """A fully wired record store over the test data directory."""
    return build_container(test_config, metrics_registry, container).resolve(RecordStore)


# Markers for test categories
def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests")
