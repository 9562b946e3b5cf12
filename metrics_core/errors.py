"""
Metrics Core - Error Types
Configuration and programming errors raised synchronously by the core
"""


class MetricsCoreError(Exception):
    """Base class for errors raised by metrics_core"""


class ConfigurationError(MetricsCoreError, ValueError):
    """Invalid builder or settings input, reported at construction time"""


class UnknownInstrumentTypeError(MetricsCoreError, TypeError):
    """An instrument type outside the closed InstrumentType enumeration"""

    def __init__(self, instrument_type):
        super().__init__(f"Unknown instrument type: {instrument_type!r}")
        self.instrument_type = instrument_type
