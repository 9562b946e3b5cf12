"""
Metrics Core - Instrument Types & Aggregator Kinds
Closed enumerations used for view resolution
"""

from enum import Enum


class InstrumentType(Enum):
    """Kinds of instruments that report measurements"""
    COUNTER = "counter"
    UP_DOWN_COUNTER = "up_down_counter"
    VALUE_RECORDER = "value_recorder"
    SUM_OBSERVER = "sum_observer"
    UP_DOWN_SUM_OBSERVER = "up_down_sum_observer"
    VALUE_OBSERVER = "value_observer"


class AggregatorKind(Enum):
    """Reduction applied to raw measurements"""
    SUM = "sum"
    MIN_MAX_SUM_COUNT = "min_max_sum_count"
    LAST_VALUE = "last_value"
