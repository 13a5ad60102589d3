"""Infrastructure layer - cross-cutting concerns."""

from shql.infrastructure.config import Config, get_config
from shql.infrastructure.logging import get_logger, operation_context, setup_logging
from shql.infrastructure.metrics import MetricsRegistry, get_metrics, setup_metrics
from shql.infrastructure.tracing import get_tracer, setup_tracing, trace_span

__all__ = [
    "Config",
    "get_config",
    "setup_logging",
    "get_logger",
    "operation_context",
    "setup_metrics",
    "get_metrics",
    "MetricsRegistry",
    "setup_tracing",
    "get_tracer",
    "trace_span",
]
