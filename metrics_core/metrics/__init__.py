"""
Metrics Core - SDK Integration
Meter provider setup and SDK exporters backed by the export pipeline
"""

from .meter_setup import setup_metrics, create_console_metric_reader
from .exporters import (
    PipelineMetricExporter,
    create_metric_readers,
    create_sdk_views,
    literal_name,
    to_sdk_aggregation,
    type_configuration
)

__all__ = [
    'setup_metrics',
    'create_console_metric_reader',
    'PipelineMetricExporter',
    'create_metric_readers',
    'create_sdk_views',
    'literal_name',
    'to_sdk_aggregation',
    'type_configuration'
]
