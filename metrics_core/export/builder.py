"""
Metrics Core - Export Pipeline Builder
Validated construction of MetricExportPipeline instances
"""

import logging
import math
from datetime import timedelta
from typing import List, Optional, Tuple, Union

import grpc

from metrics_core.config import Settings
from metrics_core.errors import ConfigurationError
from metrics_core.export.encoding import BatchEncoder, encode_batch
from metrics_core.export.pipeline import MetricExportPipeline, StatusListener

logger = logging.getLogger(__name__)

# Seconds per supported time unit
TIME_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
}


class MetricExportPipelineBuilder:
    """Builder for MetricExportPipeline.

    Misuse is reported immediately with ConfigurationError, never through a
    completion token. A pipeline either receives an externally owned channel
    via `set_channel` or builds and owns one from `set_endpoint` /
    `set_use_tls`; the two styles cannot be mixed.
    """

    DEFAULT_ENDPOINT = "localhost:4317"

    def __init__(self):
        self._timeout: float = MetricExportPipeline.DEFAULT_TIMEOUT
        self._endpoint: Optional[str] = None
        self._use_tls: Optional[bool] = None
        self._channel: Optional[grpc.Channel] = None
        self._headers: List[Tuple[str, str]] = []
        self._encoder: BatchEncoder = encode_batch
        self._status_listener: Optional[StatusListener] = None

    def set_timeout(
        self,
        timeout: Union[int, float, timedelta, None],
        unit: Optional[str] = "s"
    ) -> 'MetricExportPipelineBuilder':
        """Set the deadline applied to every export call; zero disables the deadline"""

        if timeout is None:
            raise ConfigurationError("timeout")

        if isinstance(timeout, timedelta):
            seconds = timeout.total_seconds()
        else:
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
                raise ConfigurationError(f"timeout must be a number or timedelta, got {timeout!r}")
            if timeout < 0:
                raise ConfigurationError("timeout must be non-negative")
            if unit is None:
                raise ConfigurationError("unit")
            if unit not in TIME_UNITS:
                raise ConfigurationError(f"unknown time unit {unit!r}, expected one of {sorted(TIME_UNITS)}")
            seconds = timeout * TIME_UNITS[unit]

        if not math.isfinite(seconds):
            raise ConfigurationError(f"timeout must be finite, got {timeout!r}")
        if seconds < 0:
            raise ConfigurationError("timeout must be non-negative")

        self._timeout = seconds
        return self

    def set_endpoint(self, endpoint: str) -> 'MetricExportPipelineBuilder':
        """Set the collector target; an https:// scheme turns TLS on"""

        if not endpoint:
            raise ConfigurationError("endpoint")

        if endpoint.startswith("https://"):
            self._use_tls = True
            endpoint = endpoint[len("https://"):]
        elif endpoint.startswith("http://"):
            self._use_tls = False
            endpoint = endpoint[len("http://"):]

        self._endpoint = endpoint.rstrip("/")
        return self

    def set_use_tls(self, use_tls: bool) -> 'MetricExportPipelineBuilder':
        self._use_tls = bool(use_tls)
        return self

    def set_channel(self, channel: grpc.Channel) -> 'MetricExportPipelineBuilder':
        """Use an externally owned channel; the pipeline will not close it"""
        if channel is None:
            raise ConfigurationError("channel")
        self._channel = channel
        return self

    def add_header(self, name: str, value: str) -> 'MetricExportPipelineBuilder':
        """Append a header sent as call metadata on every export"""
        if not isinstance(name, str) or not name:
            raise ConfigurationError("header name must be a non-empty string")
        if not isinstance(value, str):
            raise ConfigurationError(f"header {name!r} value must be a string")
        # gRPC rejects upper-case metadata keys
        self._headers.append((name.lower(), value))
        return self

    def set_encoder(self, encoder: BatchEncoder) -> 'MetricExportPipelineBuilder':
        if not callable(encoder):
            raise ConfigurationError("encoder must be callable")
        self._encoder = encoder
        return self

    def set_status_listener(self, listener: StatusListener) -> 'MetricExportPipelineBuilder':
        """Receive the full transport status of every export before its token completes"""
        if not callable(listener):
            raise ConfigurationError("status listener must be callable")
        self._status_listener = listener
        return self

    def read_settings(self, settings: Settings) -> 'MetricExportPipelineBuilder':
        """Apply endpoint, TLS, timeout, and headers from environment settings"""

        endpoint = settings.exporter_otlp_endpoint
        self.set_endpoint(endpoint)
        if "://" not in endpoint:
            self.set_use_tls(not settings.exporter_otlp_insecure)
        self.set_timeout(settings.exporter_otlp_timeout, "ms")
        for name, value in settings.get_headers():
            self.add_header(name, value)

        return self

    def build(self) -> MetricExportPipeline:
        """Create the pipeline, opening a channel when none was supplied"""

        if self._channel is not None:
            if self._endpoint is not None or self._use_tls is not None:
                raise ConfigurationError("channel cannot be combined with endpoint or TLS settings")
            channel, owns_channel = self._channel, False
            logger.info(f"Building export pipeline on supplied channel (timeout {self._timeout}s)")
        else:
            target = self._endpoint or self.DEFAULT_ENDPOINT
            if self._use_tls:
                channel = grpc.secure_channel(target, grpc.ssl_channel_credentials())
            else:
                channel = grpc.insecure_channel(target)
            owns_channel = True
            logger.info(
                f"Building export pipeline for {target} "
                f"(tls={bool(self._use_tls)}, timeout {self._timeout}s, {len(self._headers)} headers)"
            )

        return MetricExportPipeline(
            channel,
            timeout=self._timeout,
            headers=tuple(self._headers),
            encoder=self._encoder,
            owns_channel=owns_channel,
            status_listener=self._status_listener
        )
