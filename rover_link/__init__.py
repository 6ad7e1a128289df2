"""Command and telemetry link between the rover dashboard and the robot."""

__version__ = "0.1.0"
