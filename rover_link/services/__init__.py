"""Dashboard services built on the robot transport."""

from .activity_log import ActivityLog, ActivityLogEntry
from .activity_stream import ActivityStream, SSEParser
from .robot_controls import DRIVE_PRESETS, RobotControls

__all__ = [
    "ActivityLog",
    "ActivityLogEntry",
    "ActivityStream",
    "DRIVE_PRESETS",
    "RobotControls",
    "SSEParser",
]
