"""
Metrics Core - Metric Export
Completion tokens, transport status, and the OTLP/gRPC export pipeline
"""

from .completion import CompletionToken, TokenState
from .status import TransportStatus, classify_status
from .encoding import encode_batch
from .pipeline import MetricExportPipeline, PipelineState
from .builder import MetricExportPipelineBuilder

__all__ = [
    'CompletionToken',
    'TokenState',
    'TransportStatus',
    'classify_status',
    'encode_batch',
    'MetricExportPipeline',
    'PipelineState',
    'MetricExportPipelineBuilder'
]
