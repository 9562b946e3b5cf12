"""
Metrics Core
Aggregation view resolution and OTLP/gRPC export for OpenTelemetry metrics
"""

from .errors import ConfigurationError, MetricsCoreError, UnknownInstrumentTypeError
from .config import Settings, get_settings
from .core import AggregatorKind, InstrumentDescriptor, InstrumentType
from .views import (
    AggregationConfiguration,
    DEFAULT_CONFIGURATIONS,
    InstrumentSelector,
    ViewRegistry,
    default_configuration
)
from .export import (
    CompletionToken,
    MetricExportPipeline,
    MetricExportPipelineBuilder,
    PipelineState,
    TokenState,
    TransportStatus
)
from .framework import MetricsFramework

__all__ = [
    'ConfigurationError',
    'MetricsCoreError',
    'UnknownInstrumentTypeError',
    'Settings',
    'get_settings',
    'AggregatorKind',
    'InstrumentDescriptor',
    'InstrumentType',
    'AggregationConfiguration',
    'DEFAULT_CONFIGURATIONS',
    'InstrumentSelector',
    'ViewRegistry',
    'default_configuration',
    'CompletionToken',
    'MetricExportPipeline',
    'MetricExportPipelineBuilder',
    'PipelineState',
    'TokenState',
    'TransportStatus',
    'MetricsFramework'
]
