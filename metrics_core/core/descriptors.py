"""
Metrics Core - Instrument Descriptors
Immutable identity of an instrument, consumed by view resolution
"""

from dataclasses import dataclass

from metrics_core.core.instrument_types import InstrumentType


@dataclass(frozen=True)
class InstrumentDescriptor:
    """Type and name of an instrument"""
    instrument_type: InstrumentType
    name: str
    description: str = ""
    unit: str = ""

    def __post_init__(self):
        if not isinstance(self.instrument_type, InstrumentType):
            raise TypeError(f"instrument_type must be an InstrumentType, got {self.instrument_type!r}")
        if not isinstance(self.name, str):
            raise TypeError("name must be a string")
