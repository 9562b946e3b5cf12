"""
Metrics Core Framework
Owns the view registry, the export pipeline, and the SDK meter provider
"""

import logging
import threading
from typing import Optional

from opentelemetry.sdk.metrics import MeterProvider

from .config import Settings, get_settings
from .core import InstrumentDescriptor, create_resource
from .export import CompletionToken, MetricExportPipeline
from .metrics import create_metric_readers, create_sdk_views, setup_metrics
from .views import AggregationConfiguration, InstrumentSelector, ViewRegistry

logger = logging.getLogger(__name__)

class MetricsFramework:
    """Aggregation configuration and export for one service.

    The framework is an explicit object: create one where the metrics pipeline
    is assembled and pass it (or its registry) to whatever resolves views.

    The meter provider is built on the first call to `get_meter`,
    `get_meter_provider` or `force_flush`, from the views registered up to
    then. The SDK fixes its views and per-type temporality at that point;
    later registrations still reach `resolve` but not SDK instruments.
    """

    def __init__(
        self,
        service_name: Optional[str] = None,
        service_version: str = "1.0.0",
        environment: Optional[str] = None,
        settings: Optional[Settings] = None,
        pipeline: Optional[MetricExportPipeline] = None,
        registry: Optional[ViewRegistry] = None,
        enable_console_export: bool = False
    ):
        self.settings = settings or get_settings()
        self.service_name = service_name or self.settings.service_name
        self.service_version = service_version
        self.environment = environment or self.settings.environment
        self.enable_console_export = enable_console_export

        self.registry = registry or ViewRegistry()
        self.pipeline = pipeline or MetricExportPipeline.builder().read_settings(self.settings).build()

        self.resource = create_resource(
            self.service_name,
            self.service_version,
            self.environment,
            self.settings
        )

        self._lock = threading.Lock()
        self._meter_provider: Optional[MeterProvider] = None
        self._meter = None

        logger.info(f"Metrics framework initialized for {self.service_name}")

    def _ensure_provider(self) -> MeterProvider:
        """Build readers and meter provider from the current views, once"""

        with self._lock:
            if self._meter_provider is None:
                metric_readers = create_metric_readers(
                    self.pipeline,
                    self.registry,
                    self.settings,
                    self.enable_console_export
                )
                self._meter_provider, self._meter = setup_metrics(
                    self.resource,
                    metric_readers,
                    self.service_name,
                    self.service_version,
                    create_sdk_views(self.registry)
                )
            return self._meter_provider

    def register_view(self, selector: InstrumentSelector, configuration: AggregationConfiguration):
        """Register an aggregation view"""
        self.registry.register_view(selector, configuration)
        if self._meter_provider is not None:
            logger.warning(
                f"View {selector.name_pattern.pattern!r} for {selector.instrument_type.value} registered "
                f"after the meter provider was built; SDK instruments keep their aggregation"
            )

    def resolve(self, descriptor: InstrumentDescriptor) -> AggregationConfiguration:
        """Get the aggregation for an instrument"""
        return self.registry.resolve(descriptor)

    def get_meter(self):
        """Get configured meter"""
        self._ensure_provider()
        return self._meter

    def get_meter_provider(self) -> MeterProvider:
        """Get configured meter provider"""
        return self._ensure_provider()

    def force_flush(self, timeout_millis: float = 10_000) -> bool:
        """Collect and export now, then wait for exports in flight"""
        collected = self._ensure_provider().force_flush(timeout_millis)
        return collected and self.pipeline.flush().join(timeout_millis / 1000).is_success()

    def shutdown(self) -> CompletionToken:
        """Shutdown metrics framework"""
        logger.info(f"Shutting down metrics framework for {self.service_name}")
        with self._lock:
            provider = self._meter_provider
        if provider is not None:
            # The reader shuts the pipeline down after its final collection
            provider.shutdown()
        return self.pipeline.shutdown()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()
