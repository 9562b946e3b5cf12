"""
Metrics Core - Meter Setup
OpenTelemetry meter provider configuration around the export readers
"""

import logging
from typing import List, Sequence, Tuple

from opentelemetry import metrics
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import ConsoleMetricExporter, MetricReader, PeriodicExportingMetricReader
from opentelemetry.sdk.metrics.view import View
from opentelemetry.sdk.resources import Resource

logger = logging.getLogger(__name__)

def setup_metrics(
    resource: Resource,
    metric_readers: List[MetricReader],
    service_name: str,
    service_version: str = "1.0.0",
    views: Sequence[View] = ()
) -> Tuple[MeterProvider, metrics.Meter]:
    """Create a meter provider for the readers and a meter for the service"""

    provider = MeterProvider(
        resource=resource,
        metric_readers=metric_readers,
        views=list(views)
    )

    meter = provider.get_meter(
        f"metrics_core.{service_name}",
        service_version
    )

    logger.info(f"Metrics collection configured for {service_name} with {len(metric_readers)} readers and {len(views)} views")
    return provider, meter

def create_console_metric_reader(
    export_interval: int = 30000
) -> PeriodicExportingMetricReader:
    """Create console metric reader for development"""

    return PeriodicExportingMetricReader(
        exporter=ConsoleMetricExporter(),
        export_interval_millis=export_interval
    )
