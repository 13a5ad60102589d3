"""Prometheus metrics for the record store."""

from __future__ import annotations

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    Info,
    start_http_server,
    REGISTRY,
    CollectorRegistry,
)


class MetricsRegistry:
    """Registry of all record store metrics."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize metrics registry."""
        self._registry = registry or REGISTRY

        # Boundary operations
        self.operations_total = Counter(
            "shql_operations_total",
            "Total number of operations executed",
            ["operation", "outcome"],  # outcome: ok, cancelled, error
            registry=self._registry,
        )

        self.operation_latency_seconds = Histogram(
            "shql_operation_latency_seconds",
            "Operation latency in seconds",
            ["operation"],
            buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 5.0),
            registry=self._registry,
        )

        self.errors_total = Counter(
            "shql_errors_total",
            "Total number of typed errors surfaced to callers",
            ["code"],
            registry=self._registry,
        )

        # Table engine
        self.records_written_total = Counter(
            "shql_records_written_total",
            "Records appended or rewritten",
            ["kind"],  # insert, update, delete
            registry=self._registry,
        )

        self.blob_bytes_archived_total = Counter(
            "shql_blob_bytes_archived_total",
            "Source bytes of binary payloads archived",
            registry=self._registry,
        )

        # Recovery
        self.snapshots_total = Counter(
            "shql_snapshots_total",
            "Snapshots created",
            ["scope", "kind"],  # kind: manual, backup
            registry=self._registry,
        )

        self.rollbacks_total = Counter(
            "shql_rollbacks_total",
            "Rollbacks performed",
            ["scope", "status"],
            registry=self._registry,
        )

        # Catalog
        self.databases_active = Gauge(
            "shql_databases_active",
            "Number of active databases in the catalog",
            registry=self._registry,
        )

        self.info = Info(
            "shql",
            "Record store information",
            registry=self._registry,
        )


# Global metrics registry
_metrics: MetricsRegistry | None = None


def setup_metrics(port: int = 8001, registry: CollectorRegistry | None = None) -> MetricsRegistry:
    """
    Set up Prometheus metrics server.

    Args:
        port: Port for the metrics HTTP server
        registry: Optional custom registry

    Returns:
        The metrics registry
    """
    global _metrics
    _metrics = MetricsRegistry(registry)

    from shql import __version__
    _metrics.info.info({
        "version": __version__,
    })

    start_http_server(port, registry=registry or REGISTRY)

    return _metrics


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsRegistry()
    return _metrics
