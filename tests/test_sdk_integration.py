"""Tests for the OpenTelemetry SDK bridge and MetricsFramework."""

import re
from unittest.mock import MagicMock

import pytest
from opentelemetry.sdk.metrics import Counter, Histogram, ObservableGauge
from opentelemetry.sdk.metrics.export import AggregationTemporality, MetricExportResult, MetricsData
from opentelemetry.sdk.metrics.view import (
    ExplicitBucketHistogramAggregation,
    LastValueAggregation,
    SumAggregation,
)

from metrics_core import (
    AggregationConfiguration,
    AggregatorKind,
    InstrumentDescriptor,
    InstrumentSelector,
    InstrumentType,
    MetricExportPipeline,
    MetricsFramework,
    PipelineState,
    ViewRegistry,
)
from metrics_core.export import CompletionToken
from metrics_core.metrics import (
    PipelineMetricExporter,
    create_metric_readers,
    create_sdk_views,
    literal_name,
    to_sdk_aggregation,
    type_configuration,
)

DELTA = AggregationTemporality.DELTA
CUMULATIVE = AggregationTemporality.CUMULATIVE


def exported(collector, name):
    """Metrics named `name` across every request the collector received"""
    return [
        metric
        for request in collector.received
        for resource_metrics in request.resource_metrics
        for scope_metrics in resource_metrics.scope_metrics
        for metric in scope_metrics.metrics
        if metric.name == name
    ]


class TestSdkAggregation:
    """Tests for to_sdk_aggregation."""

    def test_mapping(self):
        delta = AggregationTemporality.DELTA

        assert isinstance(to_sdk_aggregation(AggregationConfiguration(AggregatorKind.SUM, delta)), SumAggregation)
        assert isinstance(
            to_sdk_aggregation(AggregationConfiguration(AggregatorKind.LAST_VALUE, delta)), LastValueAggregation
        )
        assert isinstance(
            to_sdk_aggregation(AggregationConfiguration(AggregatorKind.MIN_MAX_SUM_COUNT, delta)),
            ExplicitBucketHistogramAggregation,
        )


class TestPipelineMetricExporter:
    """Tests for PipelineMetricExporter."""

    def test_preferred_temporality_from_defaults(self):
        exporter = PipelineMetricExporter(MagicMock())

        assert exporter._preferred_temporality[Counter] is AggregationTemporality.CUMULATIVE
        assert exporter._preferred_temporality[Histogram] is AggregationTemporality.DELTA
        assert exporter._preferred_temporality[ObservableGauge] is AggregationTemporality.DELTA
        assert isinstance(exporter._preferred_aggregation[ObservableGauge], LastValueAggregation)

    def test_export_result(self, fake_metric):
        pipeline = MagicMock()
        pipeline.export.return_value = CompletionToken.succeeded()
        exporter = PipelineMetricExporter(pipeline)

        result = exporter.export(MetricsData(resource_metrics=[fake_metric]))

        assert result is MetricExportResult.SUCCESS
        pipeline.export.assert_called_once_with([fake_metric])

    def test_export_failure(self, fake_metric):
        pipeline = MagicMock()
        pipeline.export.return_value = CompletionToken.failed()

        result = PipelineMetricExporter(pipeline).export(MetricsData(resource_metrics=[fake_metric]))

        assert result is MetricExportResult.FAILURE

    def test_pending_export_reports_failure_after_timeout(self, fake_metric):
        pipeline = MagicMock()
        pipeline.export.return_value = CompletionToken()

        result = PipelineMetricExporter(pipeline).export(
            MetricsData(resource_metrics=[fake_metric]), timeout_millis=10
        )

        assert result is MetricExportResult.FAILURE

    def test_shutdown_shuts_pipeline(self):
        pipeline = MagicMock()

        PipelineMetricExporter(pipeline).shutdown()

        pipeline.shutdown.assert_called_once()

    def test_console_reader_optional(self, settings):
        readers = create_metric_readers(MagicMock(), settings=settings, enable_console_export=True)

        assert len(readers) == 2
        for reader in readers:
            reader.shutdown()


class TestSdkViews:
    """Tests for carrying registry views into the SDK."""

    @pytest.mark.parametrize(
        "pattern, name",
        [
            ("requests", "requests"),
            (r"http\.server\.duration", "http.server.duration"),
            ("queue-depth/total", "queue-depth/total"),
            ("http.server", None),
            (".*", None),
            ("requests_(get|post)", None),
            (r"\d+", None),
        ],
    )
    def test_literal_name(self, pattern, name):
        assert literal_name(re.compile(pattern)) == name

    def test_type_configuration_uses_newest_match_all_view(self):
        registry = ViewRegistry()
        older = AggregationConfiguration(AggregatorKind.LAST_VALUE, DELTA)
        newer = AggregationConfiguration(AggregatorKind.SUM, DELTA)
        registry.register_view(InstrumentSelector.of(InstrumentType.COUNTER), older)
        registry.register_view(InstrumentSelector.of(InstrumentType.COUNTER), newer)
        registry.register_view(
            InstrumentSelector.of(InstrumentType.COUNTER, "requests"),
            AggregationConfiguration(AggregatorKind.LAST_VALUE, CUMULATIVE),
        )

        assert type_configuration(registry, InstrumentType.COUNTER) is newer
        assert type_configuration(registry, InstrumentType.UP_DOWN_COUNTER).temporality is CUMULATIVE

    def test_exporter_preferences_follow_match_all_views(self):
        registry = ViewRegistry()
        registry.register_view(
            InstrumentSelector.of(InstrumentType.COUNTER),
            AggregationConfiguration(AggregatorKind.SUM, DELTA),
        )

        exporter = PipelineMetricExporter(MagicMock(), registry)

        assert exporter._preferred_temporality[Counter] is DELTA
        assert exporter._preferred_temporality[Histogram] is DELTA
        assert isinstance(exporter._preferred_aggregation[Counter], SumAggregation)

    def test_named_views_become_sdk_views(self):
        """Only the newest view per literal name is translated; regex views stay in the registry."""
        registry = ViewRegistry()
        registry.register_view(
            InstrumentSelector.of(InstrumentType.VALUE_RECORDER, "latency"),
            AggregationConfiguration(AggregatorKind.SUM, DELTA),
        )
        registry.register_view(
            InstrumentSelector.of(InstrumentType.VALUE_RECORDER, "latency"),
            AggregationConfiguration(AggregatorKind.LAST_VALUE, DELTA),
        )
        registry.register_view(
            InstrumentSelector.of(InstrumentType.VALUE_RECORDER, "db_.*"),
            AggregationConfiguration(AggregatorKind.SUM, DELTA),
        )

        views = create_sdk_views(registry)

        assert len(views) == 1
        assert views[0]._instrument_type is Histogram
        assert views[0]._instrument_name == "latency"
        assert isinstance(views[0]._aggregation, LastValueAggregation)

    def test_match_all_view_shadows_older_named_views(self):
        registry = ViewRegistry()
        registry.register_view(
            InstrumentSelector.of(InstrumentType.COUNTER, "requests"),
            AggregationConfiguration(AggregatorKind.LAST_VALUE, CUMULATIVE),
        )
        registry.register_view(
            InstrumentSelector.of(InstrumentType.COUNTER),
            AggregationConfiguration(AggregatorKind.SUM, CUMULATIVE),
        )

        assert create_sdk_views(registry) == []

    def test_no_views_by_default(self):
        assert create_sdk_views(ViewRegistry()) == []


class TestMetricsFramework:
    """End-to-end tests through the SDK meter provider."""

    def test_counter_reaches_collector(self, collector, channel, settings):
        pipeline = MetricExportPipeline.builder().set_channel(channel).build()
        framework = MetricsFramework(settings=settings, pipeline=pipeline)
        try:
            counter = framework.get_meter().create_counter("requests_total")
            counter.add(3, {"route": "/health"})

            assert framework.force_flush()
        finally:
            framework.shutdown()

        names = [
            metric.name
            for request in collector.received
            for resource_metrics in request.resource_metrics
            for scope_metrics in resource_metrics.scope_metrics
            for metric in scope_metrics.metrics
        ]
        assert "requests_total" in names
        assert pipeline.state is PipelineState.SHUTDOWN

    def test_views_resolved_through_framework(self, channel, settings):
        pipeline = MetricExportPipeline.builder().set_channel(channel).build()
        with MetricsFramework(settings=settings, pipeline=pipeline) as framework:
            config = AggregationConfiguration(AggregatorKind.SUM, AggregationTemporality.DELTA)
            framework.register_view(InstrumentSelector.of(InstrumentType.VALUE_RECORDER, "latency"), config)

            assert framework.resolve(InstrumentDescriptor(InstrumentType.VALUE_RECORDER, "latency")) is config
            assert framework.resolve(InstrumentDescriptor(InstrumentType.VALUE_RECORDER, "size")) != config

        assert pipeline.state is PipelineState.SHUTDOWN

    def test_match_all_view_sets_exported_temporality(self, collector, channel, settings):
        """A view registered before the meter is used changes what the collector receives."""
        pipeline = MetricExportPipeline.builder().set_channel(channel).build()
        framework = MetricsFramework(settings=settings, pipeline=pipeline)
        try:
            framework.register_view(
                InstrumentSelector.of(InstrumentType.COUNTER),
                AggregationConfiguration(AggregatorKind.SUM, DELTA),
            )
            counter = framework.get_meter().create_counter("requests")
            for _ in range(2):
                counter.add(1)
                assert framework.force_flush()
        finally:
            framework.shutdown()

        metrics = exported(collector, "requests")
        assert len(metrics) >= 2
        assert {metric.sum.aggregation_temporality for metric in metrics} == {DELTA.value}
        assert [metric.sum.data_points[0].as_int for metric in metrics[:2]] == [1, 1]

    def test_named_view_changes_exported_aggregation(self, collector, channel, settings):
        pipeline = MetricExportPipeline.builder().set_channel(channel).build()
        framework = MetricsFramework(settings=settings, pipeline=pipeline)
        try:
            framework.register_view(
                InstrumentSelector.of(InstrumentType.VALUE_RECORDER, "latency"),
                AggregationConfiguration(AggregatorKind.LAST_VALUE, DELTA),
            )
            meter = framework.get_meter()
            latency = meter.create_histogram("latency")
            size = meter.create_histogram("size")
            latency.record(5)
            latency.record(7)
            size.record(3)

            assert framework.force_flush()
        finally:
            framework.shutdown()

        latency_metric = exported(collector, "latency")[0]
        assert latency_metric.WhichOneof("data") == "gauge"
        assert latency_metric.gauge.data_points[0].as_int == 7
        assert exported(collector, "size")[0].WhichOneof("data") == "histogram"
