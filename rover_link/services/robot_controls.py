"""
Drive controls - command helpers over RobotTransportClient.

Commands:
- drive: {"type": "drive", "throttle": float, "steer": float}
- stop:  {"type": "stop"}
- ping:  {"type": "ping"}
"""

from typing import Any, Dict, Mapping, Optional, Tuple

from loguru import logger

from ..transport.exceptions import RobotTransportError
from ..transport.models import TransportKind
from ..transport.robot_client import RobotTransportClient

# (throttle, steer) for the dashboard's drive pad
DRIVE_PRESETS: Dict[str, Tuple[float, float]] = {
    "forward": (1.0, 0.0),
    "backward": (-1.0, 0.0),
    "left": (0.5, -1.0),
    "right": (0.5, 1.0),
}


class RobotControls:
    """
    Issues drive commands and turns the outcome into operator feedback.

    Feedback strings:
    - "Sent via WebSocket"
    - "Sent via HTTP fallback"
    - "Send failed: <reason>"
    """

    def __init__(self, client: Optional[RobotTransportClient]):
        self.client = client
        self.last_feedback: str = ""

    async def send_command(self, payload: Mapping[str, Any]) -> str:
        """
        Send a command and record the feedback.

        Args:
            payload: Command dict

        Returns:
            Feedback string (also stored in last_feedback)
        """
        if self.client is None:
            feedback = "Send failed: WebSocket client unavailable"
        else:
            try:
                transport = await self.client.send(payload)
                if transport is TransportKind.LIVE:
                    feedback = "Sent via WebSocket"
                else:
                    feedback = "Sent via HTTP fallback"
            except RobotTransportError as e:
                logger.warning(f"Command {payload.get('type')} failed: {e}")
                feedback = f"Send failed: {e}"

        self.last_feedback = feedback
        return feedback

    async def drive(self, throttle: float, steer: float) -> str:
        """
        Drive with the given throttle and steering.

        Args:
            throttle: -1 (reverse) to 1 (forward)
            steer: -1 (left) to 1 (right)
        """
        return await self.send_command({"type": "drive", "throttle": throttle, "steer": steer})

    async def preset(self, name: str) -> str:
        """Drive using one of DRIVE_PRESETS (forward, backward, left, right)."""
        try:
            throttle, steer = DRIVE_PRESETS[name]
        except KeyError:
            raise ValueError(f"Unknown drive preset: {name}") from None
        return await self.drive(throttle, steer)

    async def stop(self) -> str:
        return await self.send_command({"type": "stop"})

    async def ping(self) -> str:
        return await self.send_command({"type": "ping"})
