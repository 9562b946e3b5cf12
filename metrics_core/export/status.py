"""
Metrics Core - Transport Status
Terminal outcomes of an export call and their success/failure collapse
"""

from enum import Enum
from typing import Optional

import grpc


class TransportStatus(Enum):
    """Terminal status of one export RPC"""
    OK = "ok"
    CANCELLED = "cancelled"
    DEADLINE_EXCEEDED = "deadline_exceeded"
    RESOURCE_EXHAUSTED = "resource_exhausted"
    OUT_OF_RANGE = "out_of_range"
    UNAVAILABLE = "unavailable"
    DATA_LOSS = "data_loss"
    PERMISSION_DENIED = "permission_denied"
    OTHER = "other"

    @property
    def is_success(self) -> bool:
        return self is TransportStatus.OK


_GRPC_STATUS = {
    grpc.StatusCode.OK: TransportStatus.OK,
    grpc.StatusCode.CANCELLED: TransportStatus.CANCELLED,
    grpc.StatusCode.DEADLINE_EXCEEDED: TransportStatus.DEADLINE_EXCEEDED,
    grpc.StatusCode.RESOURCE_EXHAUSTED: TransportStatus.RESOURCE_EXHAUSTED,
    grpc.StatusCode.OUT_OF_RANGE: TransportStatus.OUT_OF_RANGE,
    grpc.StatusCode.UNAVAILABLE: TransportStatus.UNAVAILABLE,
    grpc.StatusCode.DATA_LOSS: TransportStatus.DATA_LOSS,
    grpc.StatusCode.PERMISSION_DENIED: TransportStatus.PERMISSION_DENIED,
}


def classify_status(code: Optional[grpc.StatusCode]) -> TransportStatus:
    """Map a gRPC status code onto the transport status enumeration.

    A missing code means the call finished without a status; that is treated
    as a deadline expiry since nothing was received before the call ended.
    """
    if code is None:
        return TransportStatus.DEADLINE_EXCEEDED
    return _GRPC_STATUS.get(code, TransportStatus.OTHER)


def classify_future(future) -> TransportStatus:
    """Classify a completed gRPC call future"""
    if future.cancelled():
        return TransportStatus.CANCELLED
    return classify_status(future.code())
