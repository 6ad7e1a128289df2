"""Transport layer for rover-link - live WebSocket channel with HTTP fallback."""

from .channel import LiveChannel, WebSocketChannel
from .exceptions import FallbackDeliveryError, RobotTransportError, TransportUnavailableError
from .models import (
    ConnectionState,
    ImuReading,
    LogEvent,
    LogLevel,
    LogScope,
    Orientation,
    TelemetrySnapshot,
    TransportKind,
    Vector3,
    parse_telemetry,
)
from .robot_client import RobotTransportClient, TransportHandlers
from .urls import derive_fallback_url

__all__ = [
    "ConnectionState",
    "FallbackDeliveryError",
    "ImuReading",
    "LiveChannel",
    "LogEvent",
    "LogLevel",
    "LogScope",
    "Orientation",
    "RobotTransportClient",
    "RobotTransportError",
    "TelemetrySnapshot",
    "TransportHandlers",
    "TransportKind",
    "TransportUnavailableError",
    "Vector3",
    "WebSocketChannel",
    "derive_fallback_url",
    "parse_telemetry",
]
