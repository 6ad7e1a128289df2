"""
Data contracts produced by the robot transport.

Robot → dashboard:
- Telemetry snapshots (IMU accel/gyro/orientation, camera fps)

Transport → dashboard:
- Connection state changes
- Log events for the activity feed
"""

import json
import math
import time
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, Optional


class ConnectionState(str, Enum):
    """Live channel connection state."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class TransportKind(str, Enum):
    """Which channel delivered a command."""
    LIVE = "live"
    HTTP = "http"


class LogScope(str, Enum):
    SESSION = "session"
    SYSTEM = "system"
    DETECTION = "detection"


class LogLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Vector3:
    x: float
    y: float
    z: float


@dataclass(frozen=True)
class Orientation:
    """Euler angles in degrees."""
    roll: float
    pitch: float
    yaw: float


@dataclass(frozen=True)
class ImuReading:
    """IMU sub-record; any of the three readings may be absent."""
    accel: Optional[Vector3] = None
    gyro: Optional[Vector3] = None
    orientation: Optional[Orientation] = None


@dataclass
class TelemetrySnapshot:
    """
    One telemetry update from the robot.

    ts is the local receipt time in milliseconds since epoch. Any timestamp
    the robot embeds in the payload is ignored so that clock skew between the
    robot and the dashboard never shows up in the UI.
    """
    ts: int
    imu: Optional[ImuReading] = None
    fps: Optional[float] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict in the robot's wire shape, without absent fields."""
        data: Dict[str, Any] = dict(self.extra)
        if self.imu is not None:
            data["imu"] = {
                key: asdict(value)
                for key, value in (
                    ("accel", self.imu.accel),
                    ("gyro", self.imu.gyro),
                    ("orientation", self.imu.orientation),
                )
                if value is not None
            }
        if self.fps is not None:
            data["fps"] = self.fps
        data["ts"] = self.ts
        return data


@dataclass(frozen=True)
class LogEvent:
    """Activity feed entry emitted by the transport."""
    ts: int
    scope: LogScope
    level: LogLevel
    title: str
    detail: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "ts": self.ts,
            "scope": self.scope.value,
            "level": self.level.value,
            "title": self.title,
        }
        if self.detail is not None:
            data["detail"] = self.detail
        return data


def now_ms() -> int:
    """Current wall-clock time in milliseconds since epoch."""
    return int(time.time() * 1000)


def _number(value: Any) -> Optional[float]:
    # bool is an int subclass; the robot never sends booleans for axes
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


def _parse_triple(data: Any, keys, cls):
    if not isinstance(data, dict):
        return None
    values = [_number(data.get(key)) for key in keys]
    if any(v is None for v in values):
        return None
    return cls(*values)


def _parse_imu(data: Any) -> Optional[ImuReading]:
    if not isinstance(data, dict):
        return None
    return ImuReading(
        accel=_parse_triple(data.get("accel"), ("x", "y", "z"), Vector3),
        gyro=_parse_triple(data.get("gyro"), ("x", "y", "z"), Vector3),
        orientation=_parse_triple(
            data.get("orientation"), ("roll", "pitch", "yaw"), Orientation
        ),
    )


def parse_telemetry(raw: str, received_at: Optional[int] = None) -> Optional[TelemetrySnapshot]:
    """
    Extract a telemetry snapshot from a raw live-channel message.

    Args:
        raw: Message text as received from the robot
        received_at: Receipt time in ms (defaults to now)

    Returns:
        TelemetrySnapshot, or None if the message is not JSON, not an object,
        or carries no telemetry object. Never raises.
    """
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError):
        return None

    if not isinstance(payload, dict):
        return None

    telemetry = payload.get("telemetry")
    if not telemetry or not isinstance(telemetry, dict):
        return None

    extra = {
        key: value
        for key, value in telemetry.items()
        if key not in ("imu", "fps", "ts")
    }
    return TelemetrySnapshot(
        ts=received_at if received_at is not None else now_ms(),
        imu=_parse_imu(telemetry.get("imu")),
        fps=_number(telemetry.get("fps")),
        extra=extra,
    )
