"""
dagmigrate Observability Configuration.

One-call setup of logging plus the OpenTelemetry SDK tracer and meter
providers.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from opentelemetry import metrics, trace
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

from dagmigrate.observability.logging import setup_logging

logger = logging.getLogger(__name__)

_tracer_provider: Optional[TracerProvider] = None
_meter_provider: Optional[MeterProvider] = None

# OpenTelemetry accepts one global provider per process
_tracer_installed = False
_meter_installed = False


@dataclass
class ObservabilityConfig:
    """
    Observability settings.

    Attributes:
        service_name: Service name for logs, traces and metrics
        environment: Deployment environment (development, staging, production)
        enable_tracing: Install an SDK tracer provider
        enable_metrics: Install an SDK meter provider
        log_level: Logging level for the dagmigrate logger hierarchy
        log_format: "json" or "text"
        console_spans: Export finished spans to stdout (debugging aid)
        resource_attributes: Extra OpenTelemetry resource attributes
    """

    service_name: str = "dagmigrate"
    environment: str = field(
        default_factory=lambda: os.environ.get("DAGMIGRATE_ENVIRONMENT", "development")
    )
    enable_tracing: bool = False
    enable_metrics: bool = False
    log_level: str = field(
        default_factory=lambda: os.environ.get("DAGMIGRATE_LOG_LEVEL", "INFO")
    )
    log_format: str = field(
        default_factory=lambda: os.environ.get("DAGMIGRATE_LOG_FORMAT", "text")
    )
    console_spans: bool = False
    resource_attributes: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ObservabilityConfig":
        """Build from the `logging`/`observability` config sections."""
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)


def configure_observability(
    config: Optional[ObservabilityConfig] = None,
) -> ObservabilityConfig:
    """
    Configure logging, tracing and metrics.

    Call once at process start, before running migrations. SDK providers are
    installed at most once per process; once shut down they are not replaced.

    Args:
        config: Settings to apply (defaults read from the environment)

    Returns:
        The applied configuration
    """
    global _tracer_provider, _meter_provider, _tracer_installed, _meter_installed

    config = config or ObservabilityConfig()

    setup_logging(
        level=config.log_level,
        format_type=config.log_format,
        service_name=config.service_name,
    )

    resource = Resource.create(
        {
            "service.name": config.service_name,
            "deployment.environment": config.environment,
            **config.resource_attributes,
        }
    )

    if config.enable_tracing and _tracer_installed:
        logger.debug("Tracer provider already installed in this process")
    elif config.enable_tracing:
        _tracer_provider = TracerProvider(resource=resource)
        if config.console_spans:
            _tracer_provider.add_span_processor(
                BatchSpanProcessor(ConsoleSpanExporter())
            )
        trace.set_tracer_provider(_tracer_provider)
        _tracer_installed = True

    if config.enable_metrics and _meter_installed:
        logger.debug("Meter provider already installed in this process")
    elif config.enable_metrics:
        _meter_provider = MeterProvider(resource=resource)
        metrics.set_meter_provider(_meter_provider)
        _meter_installed = True

    logger.info(
        "dagmigrate observability configured",
        extra={
            "service_name": config.service_name,
            "environment": config.environment,
            "tracing_enabled": config.enable_tracing,
            "metrics_enabled": config.enable_metrics,
        },
    )
    return config


def shutdown_observability() -> None:
    """Flush and shut down any SDK providers installed by configure_observability."""
    global _tracer_provider, _meter_provider

    if _tracer_provider is not None:
        _tracer_provider.shutdown()
    if _meter_provider is not None:
        _meter_provider.shutdown()

    _tracer_provider = None
    _meter_provider = None
