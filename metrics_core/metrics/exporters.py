"""
Metrics Core - Metric Exporters
SDK metric exporter backed by the export pipeline, and reader construction
"""

import logging
import re
from typing import Dict, List, Optional

from opentelemetry.sdk.metrics import (
    Counter,
    Histogram,
    ObservableCounter,
    ObservableGauge,
    ObservableUpDownCounter,
    UpDownCounter,
)
from opentelemetry.sdk.metrics.export import (
    AggregationTemporality,
    MetricExporter,
    MetricExportResult,
    MetricReader,
    MetricsData,
    PeriodicExportingMetricReader,
)
from opentelemetry.sdk.metrics.view import (
    Aggregation,
    ExplicitBucketHistogramAggregation,
    LastValueAggregation,
    SumAggregation,
    View,
)

from metrics_core.config import Settings, get_settings
from metrics_core.core.instrument_types import AggregatorKind, InstrumentType
from metrics_core.export.pipeline import MetricExportPipeline
from metrics_core.metrics.meter_setup import create_console_metric_reader
from metrics_core.views.aggregation import AggregationConfiguration, default_configuration
from metrics_core.views.registry import ViewRegistry
from metrics_core.views.selector import MATCH_ALL

logger = logging.getLogger(__name__)

SDK_INSTRUMENT_CLASSES = {
    InstrumentType.COUNTER: Counter,
    InstrumentType.UP_DOWN_COUNTER: UpDownCounter,
    InstrumentType.VALUE_RECORDER: Histogram,
    InstrumentType.SUM_OBSERVER: ObservableCounter,
    InstrumentType.UP_DOWN_SUM_OBSERVER: ObservableUpDownCounter,
    InstrumentType.VALUE_OBSERVER: ObservableGauge,
}


# Regex characters that make a pattern match more than one literal name
_REGEX_SPECIAL = frozenset(".^$*+?{}[]|()")
# Characters the SDK treats as wildcards in a view's instrument name
_SDK_WILDCARDS = frozenset("*?[")


def to_sdk_aggregation(configuration: AggregationConfiguration) -> Aggregation:
    """Get the SDK aggregation that computes an aggregator kind"""

    if configuration.aggregator is AggregatorKind.SUM:
        return SumAggregation()
    if configuration.aggregator is AggregatorKind.LAST_VALUE:
        return LastValueAggregation()
    # A histogram without boundaries keeps exactly min, max, sum, and count
    return ExplicitBucketHistogramAggregation(boundaries=())


def literal_name(pattern: re.Pattern) -> Optional[str]:
    """Get the only name a pattern fully matches, or None when it can match several"""

    name = []
    escaped = False
    for char in pattern.pattern:
        if escaped:
            # \d, \w and friends are character classes
            if char.isalnum():
                return None
            name.append(char)
            escaped = False
        elif char == "\\":
            escaped = True
        elif char in _REGEX_SPECIAL:
            return None
        else:
            name.append(char)

    if escaped or not name or pattern.flags & re.IGNORECASE:
        return None
    name = "".join(name)
    if _SDK_WILDCARDS.intersection(name):
        return None
    return name


def type_configuration(registry: Optional[ViewRegistry], instrument_type: InstrumentType) -> AggregationConfiguration:
    """Get the configuration for every instrument of a type: the newest match-all view, else the default"""

    if registry is not None:
        for pattern, configuration in registry.views(instrument_type):
            if pattern.pattern == MATCH_ALL:
                return configuration
    return default_configuration(instrument_type)


def create_sdk_views(registry: ViewRegistry) -> List[View]:
    """Translate the registry's literal-name views into SDK views.

    The SDK picks temporality per instrument class, so a named view only
    changes the aggregator; its instruments report with the temporality of
    their type's configuration. Views whose pattern is neither a literal name
    nor match-all are left to `ViewRegistry.resolve`.
    """

    sdk_views: List[View] = []
    for instrument_type, sdk_class in SDK_INSTRUMENT_CLASSES.items():
        temporality = type_configuration(registry, instrument_type).temporality
        named = set()
        for pattern, configuration in registry.views(instrument_type):
            if pattern.pattern == MATCH_ALL:
                # Shadows every older view of this type
                break

            name = literal_name(pattern)
            if name is None:
                logger.warning(
                    f"View {pattern.pattern!r} for {instrument_type.value} is not a literal name "
                    f"and is not applied to SDK instruments"
                )
                continue
            if name.lower() in named:
                continue
            named.add(name.lower())

            if configuration.temporality is not temporality:
                logger.warning(
                    f"View {name!r} for {instrument_type.value} asks for {configuration.temporality.name}, "
                    f"SDK instruments of this type report {temporality.name}"
                )
            sdk_views.append(
                View(instrument_type=sdk_class, instrument_name=name, aggregation=to_sdk_aggregation(configuration))
            )

    return sdk_views


class PipelineMetricExporter(MetricExporter):
    """OpenTelemetry SDK exporter that hands each collection to a MetricExportPipeline"""

    def __init__(self, pipeline: MetricExportPipeline, registry: Optional[ViewRegistry] = None):
        preferred_temporality: Dict[type, AggregationTemporality] = {}
        preferred_aggregation: Dict[type, Aggregation] = {}
        for instrument_type, sdk_class in SDK_INSTRUMENT_CLASSES.items():
            configuration = type_configuration(registry, instrument_type)
            preferred_temporality[sdk_class] = configuration.temporality
            preferred_aggregation[sdk_class] = to_sdk_aggregation(configuration)

        super().__init__(
            preferred_temporality=preferred_temporality,
            preferred_aggregation=preferred_aggregation
        )
        self._pipeline = pipeline

    @property
    def pipeline(self) -> MetricExportPipeline:
        return self._pipeline

    def export(
        self,
        metrics_data: MetricsData,
        timeout_millis: float = 10_000,
        **kwargs
    ) -> MetricExportResult:
        token = self._pipeline.export(metrics_data.resource_metrics)
        token.join(timeout_millis / 1000)
        if token.is_success():
            return MetricExportResult.SUCCESS
        return MetricExportResult.FAILURE

    def force_flush(self, timeout_millis: float = 10_000) -> bool:
        return self._pipeline.flush().join(timeout_millis / 1000).is_success()

    def shutdown(self, timeout_millis: float = 30_000, **kwargs) -> None:
        self._pipeline.shutdown()


def create_metric_readers(
    pipeline: MetricExportPipeline,
    registry: Optional[ViewRegistry] = None,
    settings: Optional[Settings] = None,
    enable_console_export: bool = False
) -> List[MetricReader]:
    """Create periodic readers that export through the pipeline"""

    settings = settings or get_settings()
    export_interval = settings.metric_export_interval

    readers: List[MetricReader] = [
        PeriodicExportingMetricReader(
            exporter=PipelineMetricExporter(pipeline, registry),
            export_interval_millis=export_interval
        )
    ]

    # Console exporter for development
    if enable_console_export:
        readers.append(create_console_metric_reader(export_interval=export_interval))

    logger.info(f"Created {len(readers)} metric readers (Pipeline{', Console' if enable_console_export else ''})")
    logger.info(f"Export interval: {export_interval}ms")

    return readers
