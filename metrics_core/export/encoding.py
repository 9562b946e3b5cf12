"""
Metrics Core - Wire Encoding
Default conversion of aggregated snapshots into an OTLP export request
"""

from typing import Callable, Sequence

from opentelemetry.exporter.otlp.proto.common.metrics_encoder import encode_metrics
from opentelemetry.proto.collector.metrics.v1.metrics_service_pb2 import ExportMetricsServiceRequest
from opentelemetry.sdk.metrics.export import MetricsData, ResourceMetrics

BatchEncoder = Callable[[Sequence[object]], ExportMetricsServiceRequest]


def encode_batch(batch: Sequence[ResourceMetrics]) -> ExportMetricsServiceRequest:
    """Encode SDK resource-metrics snapshots as one ExportMetricsServiceRequest"""
    return encode_metrics(MetricsData(resource_metrics=list(batch)))
