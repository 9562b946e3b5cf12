"""
Metrics Core - Aggregation Configuration
Aggregator/temporality pairs and the built-in per-type defaults
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from opentelemetry.sdk.metrics.export import AggregationTemporality

from metrics_core.core.instrument_types import AggregatorKind, InstrumentType
from metrics_core.errors import UnknownInstrumentTypeError


@dataclass(frozen=True)
class AggregationConfiguration:
    """Which aggregator to apply and how its values accumulate over time"""
    aggregator: AggregatorKind
    temporality: AggregationTemporality

    @classmethod
    def create(cls, aggregator: AggregatorKind, temporality: AggregationTemporality) -> 'AggregationConfiguration':
        if not isinstance(aggregator, AggregatorKind):
            raise TypeError(f"aggregator must be an AggregatorKind, got {aggregator!r}")
        if temporality not in (AggregationTemporality.CUMULATIVE, AggregationTemporality.DELTA):
            raise TypeError(f"temporality must be CUMULATIVE or DELTA, got {temporality!r}")
        return cls(aggregator, temporality)


CUMULATIVE_SUM = AggregationConfiguration.create(AggregatorKind.SUM, AggregationTemporality.CUMULATIVE)
DELTA_SUMMARY = AggregationConfiguration.create(AggregatorKind.MIN_MAX_SUM_COUNT, AggregationTemporality.DELTA)
CUMULATIVE_LAST_VALUE = AggregationConfiguration.create(AggregatorKind.LAST_VALUE, AggregationTemporality.CUMULATIVE)
DELTA_LAST_VALUE = AggregationConfiguration.create(AggregatorKind.LAST_VALUE, AggregationTemporality.DELTA)

DEFAULT_CONFIGURATIONS: Mapping[InstrumentType, AggregationConfiguration] = MappingProxyType({
    InstrumentType.COUNTER: CUMULATIVE_SUM,
    InstrumentType.UP_DOWN_COUNTER: CUMULATIVE_SUM,
    InstrumentType.VALUE_RECORDER: DELTA_SUMMARY,
    InstrumentType.VALUE_OBSERVER: DELTA_LAST_VALUE,
    InstrumentType.SUM_OBSERVER: CUMULATIVE_LAST_VALUE,
    InstrumentType.UP_DOWN_SUM_OBSERVER: CUMULATIVE_LAST_VALUE,
})


def default_configuration(instrument_type: InstrumentType) -> AggregationConfiguration:
    """Get the built-in aggregation for an instrument type"""
    try:
        return DEFAULT_CONFIGURATIONS[instrument_type]
    except (KeyError, TypeError):
        raise UnknownInstrumentTypeError(instrument_type) from None
