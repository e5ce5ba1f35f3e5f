"""
dagmigrate Observability Module.

Structured logging, OpenTelemetry tracing and metrics for migration runs.

Usage:
    from dagmigrate.observability import ObservabilityConfig, configure_observability

    configure_observability(ObservabilityConfig(log_format="json", enable_tracing=True))
"""

from dagmigrate.observability.config import (
    ObservabilityConfig,
    configure_observability,
    shutdown_observability,
)
from dagmigrate.observability.logging import (
    JSONFormatter,
    StructuredLogger,
    TextFormatter,
    get_logger,
    setup_logging,
)
from dagmigrate.observability.metrics import MigrationMetrics, get_metrics
from dagmigrate.observability.tracing import get_tracer, trace_method, traced_span

__all__ = [
    # Configuration
    "ObservabilityConfig",
    "configure_observability",
    "shutdown_observability",
    # Logging
    "JSONFormatter",
    "TextFormatter",
    "StructuredLogger",
    "get_logger",
    "setup_logging",
    # Metrics
    "MigrationMetrics",
    "get_metrics",
    # Tracing
    "get_tracer",
    "trace_method",
    "traced_span",
]
