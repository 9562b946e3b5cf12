"""Shared fixtures: an in-process OTLP metrics collector and sample snapshots."""

import threading
import time
from concurrent import futures

import grpc
import pytest
from opentelemetry.proto.collector.metrics.v1.metrics_service_pb2 import ExportMetricsServiceResponse
from opentelemetry.proto.collector.metrics.v1.metrics_service_pb2_grpc import (
    MetricsServiceServicer,
    add_MetricsServiceServicer_to_server,
)
from opentelemetry.sdk.metrics.export import (
    AggregationTemporality,
    Metric,
    NumberDataPoint,
    ResourceMetrics,
    ScopeMetrics,
    Sum,
)
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.util.instrumentation import InstrumentationScope

from metrics_core.config import Settings


class FakeCollector(MetricsServiceServicer):
    """Collector whose response status can be chosen per test."""

    def __init__(self):
        self.received = []
        self.metadata = []
        self.returned_status = grpc.StatusCode.OK
        self.stall = False
        self.release = threading.Event()
        self.target = None

    @property
    def calls(self):
        return len(self.received)

    def Export(self, request, context):
        self.received.append(request)
        self.metadata.append(tuple(context.invocation_metadata()))

        if self.stall:
            # Never answer before the client deadline
            self.release.wait(timeout=5)
            return ExportMetricsServiceResponse()

        if self.returned_status is not grpc.StatusCode.OK:
            context.abort(self.returned_status, "fake collector failure")

        return ExportMetricsServiceResponse()


@pytest.fixture
def collector():
    collector = FakeCollector()
    server = grpc.server(futures.ThreadPoolExecutor(max_workers=4))
    add_MetricsServiceServicer_to_server(collector, server)
    port = server.add_insecure_port("localhost:0")
    server.start()
    collector.target = f"localhost:{port}"

    yield collector

    collector.release.set()
    server.stop(grace=None)


@pytest.fixture
def channel(collector):
    channel = grpc.insecure_channel(collector.target)
    yield channel
    channel.close()


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        service_name="test-service",
        environment="test",
        exporter_otlp_endpoint="http://localhost:4317",
        metric_export_interval=60000,
    )


def generate_fake_metric(name="name", value=5):
    start_ns = time.time_ns()
    end_ns = start_ns + 900_000_000
    return ResourceMetrics(
        resource=Resource.create({"service.name": "test-service"}),
        scope_metrics=[
            ScopeMetrics(
                scope=InstrumentationScope("tests"),
                metrics=[
                    Metric(
                        name=name,
                        description="description",
                        unit="1",
                        data=Sum(
                            data_points=[
                                NumberDataPoint(
                                    attributes={"k": "v"},
                                    start_time_unix_nano=start_ns,
                                    time_unix_nano=end_ns,
                                    value=value,
                                )
                            ],
                            aggregation_temporality=AggregationTemporality.CUMULATIVE,
                            is_monotonic=True,
                        ),
                    )
                ],
                schema_url="",
            )
        ],
        schema_url="",
    )


@pytest.fixture
def fake_metric():
    return generate_fake_metric()


@pytest.fixture
def metric_factory():
    return generate_fake_metric
