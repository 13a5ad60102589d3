"""Wiring of the record store components.

Every service is registered in the DI container against its concrete type
and, for the ones with a port, against the port as well, so adapters and
tests can resolve either.
"""

from __future__ import annotations

from shql.adapters.outbound import LocalFileStore, TarBlobArchiver
from shql.application.record_store import RecordStore
from shql.domain.services import Catalog, FieldCodec, RecoveryService, SchemaStore, TableEngine
from shql.infrastructure.config import Config, get_config
from shql.infrastructure.container import Container
from shql.infrastructure.logging import get_logger
from shql.infrastructure.metrics import MetricsRegistry
from shql.ports.inbound import CatalogPort, RecoveryEngine, TableOperations
from shql.ports.outbound import BlobArchiver, FileStore

logger = get_logger(__name__)


def build_container(
    config: Config | None = None,
    metrics: MetricsRegistry | None = None,
    container: Container | None = None,
) -> Container:
    """Register every component of the record store.

    Args:
        config: Configuration; the global one if None.
        metrics: Metrics registry; services record no metrics if None.
        container: Container to fill; a fresh one if None.

    Returns:
        The populated container.
    """
    config = config or get_config()
    config.ensure_directories()
    container = container or Container()
    storage = config.storage
    limits = config.limits
    assert storage.snapshot_dir is not None

    container.register_singleton(Config, config)
    if metrics is not None:
        container.register_singleton(MetricsRegistry, metrics)

    container.register_factory(FileStore, lambda c: LocalFileStore(fsync=storage.fsync))
    container.register_factory(BlobArchiver, lambda c: TarBlobArchiver())
    container.register_factory(FieldCodec, lambda c: FieldCodec())
    container.register_factory(
        Catalog,
        lambda c: Catalog(
            c.resolve(FileStore),
            storage.catalog_file,
            storage.data_dir,
            min_name_length=limits.min_database_name,
            max_name_length=limits.max_database_name,
        ),
    )
    container.register_factory(
        SchemaStore,
        lambda c: SchemaStore(
            c.resolve(FileStore),
            c.resolve(Catalog),
            min_columns=limits.min_columns,
            max_columns=limits.max_columns,
        ),
    )
    container.register_factory(
        TableEngine,
        lambda c: TableEngine(
            c.resolve(SchemaStore),
            c.resolve(Catalog),
            c.resolve(FileStore),
            c.resolve(BlobArchiver),
            codec=c.resolve(FieldCodec),
            max_blob_bytes=limits.max_blob_bytes,
            metrics=metrics,
        ),
    )
    container.register_factory(
        RecoveryService,
        lambda c: RecoveryService(
            c.resolve(FileStore),
            c.resolve(Catalog),
            c.resolve(SchemaStore),
            storage.snapshot_dir,
            metrics=metrics,
        ),
    )
    container.register_factory(CatalogPort, lambda c: c.resolve(Catalog))
    container.register_factory(TableOperations, lambda c: c.resolve(TableEngine))
    container.register_factory(RecoveryEngine, lambda c: c.resolve(RecoveryService))
    container.register_factory(
        RecordStore,
        lambda c: RecordStore(
            c.resolve(CatalogPort),
            c.resolve(SchemaStore),
            c.resolve(TableOperations),
            c.resolve(RecoveryEngine),
            metrics=metrics,
        ),
    )

    logger.debug("container_built", data_dir=str(storage.data_dir))
    return container


def create_record_store(
    config: Config | None = None,
    metrics: MetricsRegistry | None = None,
) -> RecordStore:
    """Build a ready-to-use record store."""
    return build_container(config, metrics).resolve(RecordStore)
