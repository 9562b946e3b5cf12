"""
Metrics Core - Metric Export Pipeline
Batched OTLP/gRPC export of aggregated metrics with per-call deadlines
"""

import logging
import threading
from enum import Enum
from typing import Callable, List, Optional, Sequence, Set, Tuple

import grpc
from opentelemetry.proto.collector.metrics.v1.metrics_service_pb2_grpc import MetricsServiceStub

from metrics_core.export.completion import CompletionToken
from metrics_core.export.encoding import BatchEncoder, encode_batch
from metrics_core.export.status import TransportStatus, classify_future

logger = logging.getLogger(__name__)

StatusListener = Callable[[TransportStatus, Optional[str]], None]


class PipelineState(Enum):
    """Lifecycle of an export pipeline"""
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    SHUTDOWN = "shutdown"


class MetricExportPipeline:
    """Exports batches of aggregated metrics to a collector.

    Each `export` issues exactly one MetricsService/Export call with the
    configured deadline and reports the outcome through the returned
    CompletionToken. Transport problems never raise into the caller; they
    surface only as failed tokens, with the full TransportStatus passed to
    the logger and the optional status listener first.
    """

    DEFAULT_TIMEOUT = 10.0
    # Extra wait past the call deadline for done-callbacks during shutdown
    SHUTDOWN_GRACE = 1.0

    def __init__(
        self,
        channel: grpc.Channel,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        headers: Sequence[Tuple[str, str]] = (),
        encoder: BatchEncoder = encode_batch,
        owns_channel: bool = False,
        status_listener: Optional[StatusListener] = None
    ):
        self._channel = channel
        self._stub = MetricsServiceStub(channel)
        # A zero timeout means the call carries no deadline
        self._timeout = timeout if timeout else None
        self._metadata = tuple(headers) or None
        self._encoder = encoder
        self._owns_channel = owns_channel
        self._status_listener = status_listener

        self._lock = threading.Lock()
        self._state = PipelineState.RUNNING
        self._in_flight: Set[CompletionToken] = set()

    @staticmethod
    def builder():
        """Get a builder for a new pipeline"""
        from metrics_core.export.builder import MetricExportPipelineBuilder
        return MetricExportPipelineBuilder()

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def timeout(self) -> Optional[float]:
        return self._timeout

    @property
    def headers(self) -> List[Tuple[str, str]]:
        return list(self._metadata or ())

    def export(self, batch: Sequence) -> CompletionToken:
        """Export one batch; the returned token reports whether the collector accepted it"""

        batch = list(batch)
        with self._lock:
            if self._state is not PipelineState.RUNNING:
                logger.debug(f"Rejecting export of {len(batch)} metrics, pipeline is {self._state.value}")
                return CompletionToken.failed()
            if not batch:
                return CompletionToken.succeeded()
            token = CompletionToken()
            self._in_flight.add(token)

        token.when_complete(self._retire)

        try:
            request = self._encoder(batch)
            call = self._stub.Export.future(request, timeout=self._timeout, metadata=self._metadata)
        except Exception as e:
            logger.exception(f"Failed to dispatch export of {len(batch)} metrics")
            self._report(TransportStatus.OTHER, str(e), len(batch))
            token.fail()
            return token

        call.add_done_callback(lambda done: self._on_call_done(done, token, len(batch)))
        return token

    def _on_call_done(self, call, token: CompletionToken, batch_size: int):
        try:
            status = classify_future(call)
            detail = None if status.is_success else call.details()
        except Exception as e:
            logger.exception("Could not read export call status")
            status, detail = TransportStatus.OTHER, str(e)

        self._report(status, detail, batch_size)

        if status.is_success:
            token.succeed()
        else:
            token.fail()

    def _report(self, status: TransportStatus, detail: Optional[str], batch_size: int):
        if status.is_success:
            logger.debug(f"Exported {batch_size} metrics")
        else:
            logger.warning(f"Failed to export {batch_size} metrics: {status.value} ({detail or 'no details'})")

        if self._status_listener is not None:
            try:
                self._status_listener(status, detail)
            except Exception:
                logger.exception("Export status listener raised")

    def _retire(self, token: CompletionToken):
        with self._lock:
            self._in_flight.discard(token)

    def flush(self) -> CompletionToken:
        """Token for every export in flight when flush was called"""

        with self._lock:
            if self._state is PipelineState.SHUTDOWN:
                return CompletionToken.succeeded()
            pending = list(self._in_flight)

        return CompletionToken.of_all(pending)

    def shutdown(self) -> CompletionToken:
        """Stop accepting exports, drain in-flight calls, and release an owned channel"""

        with self._lock:
            if self._state is not PipelineState.RUNNING:
                logger.info(f"Export pipeline already {self._state.value}, ignoring shutdown")
                return CompletionToken.succeeded()
            self._state = PipelineState.SHUTTING_DOWN
            pending = list(self._in_flight)

        logger.info(f"Shutting down export pipeline with {len(pending)} exports in flight")

        if pending:
            # Calls carry a deadline, so this wait ends shortly after it
            CompletionToken.of_all(pending).join((self._timeout or self.DEFAULT_TIMEOUT) + self.SHUTDOWN_GRACE)

        try:
            if self._owns_channel:
                self._channel.close()
        except Exception:
            logger.exception("Error closing export channel")
        finally:
            with self._lock:
                self._state = PipelineState.SHUTDOWN

        return CompletionToken.succeeded()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()
