"""
Metrics Core - Core Components
Instrument types, descriptors, and resource management
"""

from .instrument_types import InstrumentType, AggregatorKind
from .descriptors import InstrumentDescriptor
from .resource_manager import create_resource, get_default_resource_attributes

__all__ = [
    'InstrumentType',
    'AggregatorKind',
    'InstrumentDescriptor',
    'create_resource',
    'get_default_resource_attributes'
]
