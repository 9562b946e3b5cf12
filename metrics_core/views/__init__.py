"""
Metrics Core - Aggregation Views
Aggregation configuration, instrument selectors, and the view registry
"""

from .aggregation import (
    AggregationConfiguration,
    DEFAULT_CONFIGURATIONS,
    default_configuration
)
from .selector import InstrumentSelector
from .registry import ViewRegistry

__all__ = [
    'AggregationConfiguration',
    'DEFAULT_CONFIGURATIONS',
    'default_configuration',
    'InstrumentSelector',
    'ViewRegistry'
]
