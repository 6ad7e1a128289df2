"""Errors raised by RobotTransportClient.send()."""

from typing import Optional


class RobotTransportError(Exception):
    """A command could not be delivered to the robot."""


class TransportUnavailableError(RobotTransportError):
    """Neither the live channel nor an HTTP fallback endpoint is usable."""


class FallbackDeliveryError(RobotTransportError):
    """The HTTP fallback request failed or returned a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
